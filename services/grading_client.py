"""Submission client for the remote card grading service.

Two interchangeable modes behind the same `submit()`:
- direct: the client sends `Authorization: Token <key>` to the service itself
- relayed: the client sends no credential; a relay injects it server-side
  and passes the upstream status and body back unchanged.

No retries: a failed submission needs a new explicit submit.
"""

from __future__ import annotations

import logging
from typing import Optional

from api.schemas import GradeRequest, decode_body, error_message_or_generic, parse_grading_response
from domain.errors import MalformedResponse, MissingCredential, UpstreamError
from domain.types import EncodedPayload, GradingResponse
from services.config import GraderConfig
from services.http_transport import Transport, post_json


logger = logging.getLogger(__name__)


def auth_header(api_key: str) -> dict[str, str]:
    return {"Authorization": f"Token {api_key}"}


class GradingClient:
    def __init__(self, config: GraderConfig, transport: Optional[Transport] = None):
        self._config = config
        self._transport = transport or post_json

    @property
    def config(self) -> GraderConfig:
        return self._config

    @property
    def mode(self) -> str:
        return "relayed" if self._config.relayed else "direct"

    def _target(self) -> tuple[str, dict[str, str]]:
        if self._config.relayed:
            return str(self._config.relay_url), {}
        if not self._config.api_key:
            raise MissingCredential()
        return self._config.endpoint, auth_header(self._config.api_key)

    def submit(self, payload: EncodedPayload) -> GradingResponse:
        url, headers = self._target()
        body = GradeRequest(payload).to_json_bytes()

        logger.info("Submitting %d base64 chars to %s (%s mode)", len(payload), url, self.mode)
        status, raw = self._transport(url, body, headers, self._config.timeout_s)
        logger.info("Grading endpoint answered %d (%d bytes)", status, len(raw or b""))

        decoded = decode_body(raw)
        if not 200 <= status < 300:
            message = error_message_or_generic(decoded)
            logger.warning("Grading failed with HTTP %d: %s", status, message)
            raise UpstreamError(status, message)

        if decoded is None:
            raise MalformedResponse("Unexpected grading response: body is not JSON.")
        return parse_grading_response(decoded, http_status=status)
