"""Grading relay (Lambda / Netlify function entrypoint).

Forwards a grading request to the upstream service with the server-held
credential, so browsers and other clients never see the key.

Contract:
- The request body is forwarded byte-for-byte.
- The upstream status code and body bytes are returned unchanged, errors
  included. Bodies that are not UTF-8 go out base64-encoded (isBase64Encoded).
- No key configured      -> 500 {"error": "Missing API key"}
- Upstream unreachable or not speaking HTTP
                         -> 500 {"error": "Request failed", "details": "..."}
"""

from __future__ import annotations

import http.client
import logging
from typing import Any, Callable, Optional

from api.http import body_bytes, method, raw_bytes_response, response
from domain.errors import NetworkError
from services.config import GraderConfig, load_config
from services.grading_client import auth_header
from services.http_transport import Transport, post_json


logger = logging.getLogger(__name__)

RelayHandler = Callable[[dict[str, Any], Any], dict[str, Any]]


def forward(config: GraderConfig, body: bytes, transport: Optional[Transport] = None) -> dict[str, Any]:
    """Forward `body` upstream and build the relay's HTTP response."""
    if not config.api_key:
        logger.error("Relay has no API key configured")
        return response(500, {"error": "Missing API key"})

    send = transport or post_json
    try:
        status, upstream_body = send(config.endpoint, body, auth_header(config.api_key), config.timeout_s)
    except (NetworkError, http.client.HTTPException) as exc:
        cause = exc.__cause__ or exc
        logger.error("Relay request to %s failed: %r", config.endpoint, cause)
        return response(500, {"error": "Request failed", "details": str(cause) or type(cause).__name__})

    logger.info("Relayed %d bytes to %s -> %d", len(body), config.endpoint, status)
    return raw_bytes_response(status, upstream_body or b"")


def make_handler(config: GraderConfig, transport: Optional[Transport] = None) -> RelayHandler:
    def handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
        if method(event) not in ("", "POST"):
            return response(405, {"error": "Method not allowed"})
        try:
            body = body_bytes(event)
        except ValueError:
            return response(400, {"error": "Invalid request body"})
        return forward(config, body, transport)

    return handler


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    # Read per invocation so a key added to the environment is picked up.
    return make_handler(load_config())(event, context)
