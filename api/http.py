"""HTTP/Lambda helpers.

Goals:
- Keep JSON responses stable (sorted keys, no whitespace).
- Support both API Gateway REST (v1) and HTTP API (v2) / Netlify event shapes.
- Allow raw pass-through bodies for the relay.
"""

from __future__ import annotations

import base64
import json
from typing import Any, Optional


def stable_json_dumps(obj: Any) -> str:
    """Deterministic JSON: stable key order + no whitespace."""
    return json.dumps(obj, sort_keys=True, separators=(",", ":"))


def raw_response(status_code: int, body: str, headers: Optional[dict[str, str]] = None) -> dict[str, Any]:
    base_headers = {
        "content-type": "application/json; charset=utf-8",
    }
    if headers:
        base_headers.update({k.lower(): v for k, v in headers.items()})

    return {
        "statusCode": status_code,
        "headers": base_headers,
        "body": body,
    }


def raw_bytes_response(status_code: int, body: bytes, headers: Optional[dict[str, str]] = None) -> dict[str, Any]:
    """Pass `body` through unchanged; non-UTF-8 bytes are sent base64-encoded."""
    try:
        return raw_response(status_code, body.decode("utf-8"), headers)
    except UnicodeDecodeError:
        resp = raw_response(status_code, base64.b64encode(body).decode("ascii"), headers)
        resp["isBase64Encoded"] = True
        return resp


def response_body_bytes(resp: dict[str, Any]) -> bytes:
    """Inverse of raw_bytes_response: the exact body bytes of a handler response."""
    body = resp.get("body") or ""
    if resp.get("isBase64Encoded") is True:
        return base64.b64decode(body)
    return body.encode("utf-8")


def response(status_code: int, body: Any, headers: Optional[dict[str, str]] = None) -> dict[str, Any]:
    return raw_response(status_code, stable_json_dumps(body), headers)


def method(event: dict[str, Any]) -> str:
    # v2: requestContext.http.method
    rc = event.get("requestContext") or {}
    http = rc.get("http") or {}
    if isinstance(http, dict) and http.get("method"):
        return str(http.get("method")).upper()
    # v1 / Netlify: httpMethod
    if event.get("httpMethod"):
        return str(event.get("httpMethod")).upper()
    return ""


def body_bytes(event: dict[str, Any]) -> bytes:
    """Request body exactly as the caller sent it."""
    raw = event.get("body")
    if raw is None:
        return b""

    if event.get("isBase64Encoded") is True:
        return base64.b64decode(raw)

    if isinstance(raw, bytes):
        return raw
    if not isinstance(raw, str):
        raise ValueError("invalid body type")
    return raw.encode("utf-8")
