"""Minimal JSON-over-HTTP POST helper (urllib, no extra dependencies).

Shared by the grading client and the relay. Any HTTP status, including
4xx/5xx, is returned to the caller together with its body; only a missing
response (DNS, refused connection, timeout, a reply that is not HTTP) raises.
"""

from __future__ import annotations

import http.client
import socket
import urllib.error
import urllib.request
from typing import Callable, Mapping

from domain.errors import NetworkError


USER_AGENT = "CardGraderClient/0.1"

# (url, body, headers, timeout_s) -> (status, body)
Transport = Callable[[str, bytes, Mapping[str, str], float], "tuple[int, bytes]"]


def post_json(url: str, body: bytes, headers: Mapping[str, str], timeout_s: float) -> tuple[int, bytes]:
    """POST `body` to `url`. Raises NetworkError when no response arrives."""
    all_headers = {"Content-Type": "application/json", "User-Agent": USER_AGENT}
    all_headers.update(headers)
    req = urllib.request.Request(url, data=body, headers=all_headers, method="POST")
    try:
        with urllib.request.urlopen(req, timeout=timeout_s) as resp:
            return int(resp.status), resp.read()
    except urllib.error.HTTPError as exc:
        # Non-2xx still carries a response; hand it back unchanged.
        try:
            payload = exc.read()
        except http.client.HTTPException as read_exc:
            raise NetworkError(_invalid_reply(read_exc)) from read_exc
        finally:
            exc.close()
        return int(exc.code), payload
    except urllib.error.URLError as exc:
        raise NetworkError(f"Could not reach the grading service: {exc.reason}") from exc
    except http.client.HTTPException as exc:
        # BadStatusLine, IncompleteRead, ...: something answered, but not HTTP.
        raise NetworkError(_invalid_reply(exc)) from exc
    except (socket.timeout, TimeoutError) as exc:
        raise NetworkError("The grading service did not respond in time.") from exc
    except OSError as exc:
        raise NetworkError(f"Network error: {exc}") from exc


def _invalid_reply(exc: http.client.HTTPException) -> str:
    return f"Invalid response from the grading service ({type(exc).__name__})."
