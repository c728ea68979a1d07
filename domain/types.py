"""
Card Grader Core Domain Types

These types define the data structures shared by the acquisition, encoding,
submission and rendering layers. Grading itself is done by the remote
service; these types only carry images to it and its answers back.
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union
from enum import Enum


class ImageSource(str, Enum):
    """
    How an image artifact was acquired.
    """
    FILE = "file"
    CAMERA = "camera"


@dataclass(frozen=True)
class ImageArtifact:
    """
    A single still image, regardless of how it was acquired.

    File artifacts keep only the path and are read when they are encoded,
    so a file removed after selection is reported as unreadable at submit
    time. Camera artifacts always carry their bytes.
    """

    source: ImageSource
    """Acquisition path: 'file' or 'camera'."""

    media_type: str
    """MIME type advertised for the image (e.g., 'image/jpeg')."""

    name: str = ""
    """Display name (file name, or a generated name for captures)."""

    data: Optional[bytes] = field(default=None, repr=False)
    """In-memory image bytes, if already loaded."""

    path: Optional[str] = None
    """Filesystem path to read the bytes from, if not in memory."""

    def read_bytes(self) -> bytes:
        """Return the raw image bytes. May raise OSError for file artifacts."""
        if self.data is not None:
            return self.data
        if self.path is None:
            raise OSError("image artifact has neither data nor path")
        with open(self.path, "rb") as fh:
            return fh.read()


@dataclass(frozen=True)
class EncodedPayload:
    """
    Base64 text derived from exactly one ImageArtifact.

    Ephemeral: created right before a submission and dropped after it.
    The repr is redacted so card images never end up in logs.
    """

    data: str

    def __repr__(self) -> str:
        return f"EncodedPayload(len={len(self.data)}, head={self.data[:12]!r}...)"

    __str__ = __repr__

    def __len__(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class Grades:
    final: float
    condition: str
    corners: float
    edges: float
    surface: float
    centering: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "final": self.final,
            "condition": self.condition,
            "corners": self.corners,
            "edges": self.edges,
            "surface": self.surface,
            "centering": self.centering,
        }


@dataclass(frozen=True)
class CenteringRatios:
    left_right: str  # e.g. "55/45"
    top_bottom: str


@dataclass(frozen=True)
class GradingRecord:
    """
    The grading service's assessment of one submitted card image.
    """

    grades: Grades
    centering_ratios: CenteringRatios
    card_image_url: Optional[str] = None
    """URL of the cropped card image produced by the service, if any."""

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "grades": self.grades.to_dict(),
            "centering": {
                "left/right": self.centering_ratios.left_right,
                "top/bottom": self.centering_ratios.top_bottom,
            },
        }
        if self.card_image_url is not None:
            d["card_image_url"] = self.card_image_url
        return d


@dataclass(frozen=True)
class GradingResponse:
    """
    Normalised result of one submission.
    """

    status_code: int
    status_text: str
    request_id: str
    records: tuple[GradingRecord, ...]
    """May be empty."""
    processing_time_s: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": {
                "code": self.status_code,
                "text": self.status_text,
                "request_id": self.request_id,
            },
            "records": [r.to_dict() for r in self.records],
            "processing_time_s": self.processing_time_s,
        }


# =============================================================================
# WORKFLOW STATES
# =============================================================================
# A tagged variant: exactly one of these is the workflow's current state.


@dataclass(frozen=True)
class Idle:
    name = "idle"


@dataclass(frozen=True)
class ImageReady:
    artifact: ImageArtifact
    name = "image_ready"


@dataclass(frozen=True)
class CameraActive:
    session: Any  # services.image_source.CameraSession
    name = "camera_active"


@dataclass(frozen=True)
class Submitting:
    artifact: ImageArtifact
    name = "submitting"


@dataclass(frozen=True)
class Success:
    response: GradingResponse
    name = "success"


@dataclass(frozen=True)
class Failed:
    message: str
    error: Optional[Exception] = field(default=None, compare=False)
    name = "failed"


WorkflowState = Union[Idle, ImageReady, CameraActive, Submitting, Success, Failed]
