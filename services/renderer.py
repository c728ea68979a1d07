"""Result rendering.

Pure projections: GradingResponse -> DisplayModel and WorkflowState ->
StateView. Nothing here has side effects or raises on an empty result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from domain.types import (
    CameraActive,
    Failed,
    GradingResponse,
    ImageReady,
    Submitting,
    Success,
    WorkflowState,
)


SUBMIT_LABEL = "Upload & Grade"
BUSY_LABEL = "Grading..."
NO_RESULT_TEXT = "No grading result."


@dataclass(frozen=True)
class DisplayModel:
    has_result: bool
    final_grade: Optional[float] = None
    condition: str = ""
    corners: Optional[float] = None
    edges: Optional[float] = None
    surface: Optional[float] = None
    centering: Optional[float] = None
    centering_text: str = ""
    processing_time_s: Optional[float] = None
    card_image_url: Optional[str] = None
    request_id: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "has_result": self.has_result,
            "final_grade": self.final_grade,
            "condition": self.condition,
            "corners": self.corners,
            "edges": self.edges,
            "surface": self.surface,
            "centering": self.centering,
            "centering_text": self.centering_text,
            "processing_time_s": self.processing_time_s,
            "card_image_url": self.card_image_url,
            "request_id": self.request_id,
        }


EMPTY_DISPLAY = DisplayModel(has_result=False)


def _centering_text(left_right: str, top_bottom: str) -> str:
    if not left_right and not top_bottom:
        return ""
    return f"Left/Right {left_right or '-'}, Top/Bottom {top_bottom or '-'}"


def render_response(response: GradingResponse) -> DisplayModel:
    """Project the first graded record for display."""
    if not response.records:
        return DisplayModel(
            has_result=False,
            processing_time_s=response.processing_time_s,
            request_id=response.request_id,
        )

    record = response.records[0]
    g = record.grades
    return DisplayModel(
        has_result=True,
        final_grade=g.final,
        condition=g.condition,
        corners=g.corners,
        edges=g.edges,
        surface=g.surface,
        centering=g.centering,
        centering_text=_centering_text(
            record.centering_ratios.left_right, record.centering_ratios.top_bottom
        ),
        processing_time_s=response.processing_time_s,
        card_image_url=record.card_image_url,
        request_id=response.request_id,
    )


def _fmt(value: Optional[float]) -> str:
    if value is None:
        return "-"
    return f"{value:g}"


def format_display(model: DisplayModel) -> list[str]:
    """Human-readable lines for a terminal or log."""
    if not model.has_result:
        return [NO_RESULT_TEXT]

    lines = [
        f"Final Grade: {_fmt(model.final_grade)}",
        f"Condition: {model.condition}",
        f"Corners: {_fmt(model.corners)}",
        f"Edges: {_fmt(model.edges)}",
        f"Surface: {_fmt(model.surface)}",
        f"Centering: {_fmt(model.centering)}",
    ]
    if model.centering_text:
        lines.append(f"Centering ratio: {model.centering_text}")
    if model.processing_time_s is not None:
        lines.append(f"Processed in {_fmt(model.processing_time_s)} seconds")
    if model.card_image_url:
        lines.append(f"Card image: {model.card_image_url}")
    return lines


@dataclass(frozen=True)
class StateView:
    state: str
    submit_label: str
    submit_enabled: bool
    busy: bool
    camera_live: bool
    image_name: str = ""
    error: Optional[str] = None
    display: DisplayModel = EMPTY_DISPLAY


def render_state(state: WorkflowState) -> StateView:
    """What the UI should show for the workflow's current state."""
    busy = isinstance(state, Submitting)
    image_name = ""
    if isinstance(state, (ImageReady, Submitting)):
        image_name = state.artifact.name

    return StateView(
        state=state.name,
        submit_label=BUSY_LABEL if busy else SUBMIT_LABEL,
        submit_enabled=isinstance(state, ImageReady),
        busy=busy,
        camera_live=isinstance(state, CameraActive),
        image_name=image_name,
        error=state.message if isinstance(state, Failed) else None,
        display=render_response(state.response) if isinstance(state, Success) else EMPTY_DISPLAY,
    )
