"""
Card Grader Wire Schemas

JSON contract of the remote card grading endpoint, and normalisation of its
responses into domain types.

REQUEST (POST):
    {"records": [{"_base64": "<encoded image>"}]}

RESPONSE:
    {
      "status": {"code": int, "text": str, "request_id": str},
      "records": [{
        "_full_url_card": str?,
        "grades": {"final", "condition", "corners", "edges", "surface", "centering"},
        "card": [{"centering": {"left/right": str, "top/bottom": str}}]
      }],
      "statistics": {"processing time": number}
    }

SCHEMA QUIRKS:
- Some payloads spell the request id as 'requiest_id'. Both are accepted.
- 'records', 'card' and 'statistics' may be absent; they default to empty.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

from domain.errors import GENERIC_FAILURE_MESSAGE, MalformedResponse
from domain.types import (
    CenteringRatios,
    EncodedPayload,
    Grades,
    GradingRecord,
    GradingResponse,
)


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================

@dataclass(frozen=True)
class GradeRequest:
    """
    Request body for the grading endpoint. Always exactly one record.
    """

    payload: EncodedPayload

    def to_dict(self) -> dict:
        return {"records": [{"_base64": self.payload.data}]}

    def to_json_bytes(self) -> bytes:
        return json.dumps(self.to_dict(), separators=(",", ":")).encode("utf-8")


# =============================================================================
# RESPONSE NORMALISATION
# =============================================================================

_GRADE_SCORES = ("final", "corners", "edges", "surface", "centering")


def _number(value: Any, where: str) -> float:
    # bool is an int subclass; the service never sends it for a score.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedResponse(f"Unexpected grading response: {where} is not a number.")
    return float(value)


def _parse_grades(raw: Any, index: int) -> Grades:
    if not isinstance(raw, dict):
        raise MalformedResponse(f"Unexpected grading response: records[{index}].grades missing.")
    scores = {k: _number(raw.get(k), f"records[{index}].grades.{k}") for k in _GRADE_SCORES}
    condition = raw.get("condition")
    if condition is None:
        condition = ""
    if not isinstance(condition, str):
        condition = str(condition)
    return Grades(condition=condition, **scores)


def _parse_centering(raw: Any) -> CenteringRatios:
    # card: [{"centering": {"left/right": ..., "top/bottom": ...}}]
    if not isinstance(raw, list) or not raw or not isinstance(raw[0], dict):
        return CenteringRatios(left_right="", top_bottom="")
    centering = raw[0].get("centering") or {}
    if not isinstance(centering, dict):
        return CenteringRatios(left_right="", top_bottom="")
    return CenteringRatios(
        left_right=str(centering.get("left/right") or ""),
        top_bottom=str(centering.get("top/bottom") or ""),
    )


def _parse_record(raw: Any, index: int) -> GradingRecord:
    if not isinstance(raw, dict):
        raise MalformedResponse(f"Unexpected grading response: records[{index}] is not an object.")
    url = raw.get("_full_url_card")
    return GradingRecord(
        grades=_parse_grades(raw.get("grades"), index),
        centering_ratios=_parse_centering(raw.get("card")),
        card_image_url=url if isinstance(url, str) and url else None,
    )


def parse_grading_response(body: Any, http_status: int = 200) -> GradingResponse:
    """Normalise a decoded 2xx body. Raises MalformedResponse on a bad shape."""
    if not isinstance(body, dict):
        raise MalformedResponse("Unexpected grading response: body is not a JSON object.")

    status = body.get("status") or {}
    if not isinstance(status, dict):
        raise MalformedResponse("Unexpected grading response: status is not an object.")

    records_raw = body.get("records")
    if records_raw is None:
        records_raw = []
    if not isinstance(records_raw, list):
        raise MalformedResponse("Unexpected grading response: records is not a list.")

    stats = body.get("statistics") or {}
    processing = stats.get("processing time") if isinstance(stats, dict) else None
    processing_time_s = 0.0 if processing is None else _number(processing, "statistics.processing time")

    code = status.get("code", http_status)
    try:
        status_code = int(code)
    except (TypeError, ValueError):
        status_code = http_status

    request_id = status.get("request_id")
    if request_id is None:
        request_id = status.get("requiest_id")

    return GradingResponse(
        status_code=status_code,
        status_text=str(status.get("text") or ""),
        request_id=str(request_id or ""),
        records=tuple(_parse_record(r, i) for i, r in enumerate(records_raw)),
        processing_time_s=processing_time_s,
    )


def decode_body(raw: bytes) -> Any:
    """Decode a JSON body; returns None when it is not JSON."""
    if not raw:
        return None
    try:
        return json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, ValueError):
        return None


def extract_error_message(body: Any) -> Optional[str]:
    """Pick the upstream's own error text out of an error body, if any.

    Checked in order: 'text' (service errors), 'error' + 'details' (relay
    errors), 'status.text'.
    """
    if not isinstance(body, dict):
        return None

    text = body.get("text")
    if isinstance(text, str) and text.strip():
        return text

    error = body.get("error")
    if isinstance(error, str) and error.strip():
        details = body.get("details")
        if isinstance(details, str) and details.strip():
            return f"{error}: {details}"
        return error

    status = body.get("status")
    if isinstance(status, dict):
        stext = status.get("text")
        if isinstance(stext, str) and stext.strip():
            return stext

    return None


def error_message_or_generic(body: Any) -> str:
    return extract_error_message(body) or GENERIC_FAILURE_MESSAGE
