"""Image acquisition: file selection and live camera capture.

Both paths end in the same ImageArtifact. The camera is the only shared
device in the system, so a CameraSession releases its capture handle on
every exit path (capture, failed read, explicit release).
"""

from __future__ import annotations

import io
import logging
import mimetypes
import os
import threading
from typing import Any, Callable, Optional

import cv2
import numpy as np
from PIL import Image

from domain.errors import DeviceError, ValidationError
from domain.types import ImageArtifact, ImageSource


logger = logging.getLogger(__name__)

CAPTURE_MEDIA_TYPE = "image/jpeg"
CAPTURE_JPEG_QUALITY = 92


def is_image_media_type(media_type: Optional[str]) -> bool:
    return bool(media_type) and str(media_type).lower().startswith("image/")


def guess_media_type(name: str) -> Optional[str]:
    media_type, _ = mimetypes.guess_type(name)
    return media_type


def artifact_from_file(path: str, media_type: Optional[str] = None) -> ImageArtifact:
    """Adopt a file chosen by the user (drop or browse).

    Only the advertised type is checked; the bytes are read later, when the
    artifact is encoded.
    """
    media_type = media_type or guess_media_type(path)
    if not is_image_media_type(media_type):
        raise ValidationError(f"Not an image file: {os.path.basename(path) or path}")
    return ImageArtifact(
        source=ImageSource.FILE,
        media_type=str(media_type).lower(),
        name=os.path.basename(path),
        path=path,
    )


def artifact_from_bytes(data: bytes, media_type: Optional[str], name: str = "") -> ImageArtifact:
    """Adopt an already uploaded file held in memory."""
    media_type = media_type or (guess_media_type(name) if name else None)
    if not is_image_media_type(media_type):
        raise ValidationError(f"Not an image file: {name or '(unnamed upload)'}")
    return ImageArtifact(
        source=ImageSource.FILE,
        media_type=str(media_type).lower(),
        name=name,
        data=bytes(data),
    )


def frame_to_jpeg(frame: np.ndarray, quality: int = CAPTURE_JPEG_QUALITY) -> bytes:
    """Encode an OpenCV BGR frame as JPEG bytes at its native resolution."""
    if frame.ndim == 2:
        rgb = cv2.cvtColor(frame, cv2.COLOR_GRAY2RGB)
    else:
        rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
    img = Image.fromarray(rgb)
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


class CameraSession:
    """A live video capture handle, snapshotted into a still image."""

    def __init__(self, capture: Any, device: Any = 0):
        self._capture = capture
        self._device = device
        self._released = False
        self._captures = 0
        # A read may run in a worker thread while release() comes from the loop.
        self._lock = threading.Lock()

    @property
    def active(self) -> bool:
        return not self._released

    @property
    def device(self) -> Any:
        return self._device

    def _read(self) -> np.ndarray:
        with self._lock:
            if self._released:
                raise DeviceError("Camera is not active.")
            ok, frame = self._capture.read()
        if not ok or frame is None:
            raise DeviceError("Could not read a frame from the camera.")
        return frame

    def preview_frame(self) -> np.ndarray:
        """Latest live frame, for preview. The session stays open."""
        return self._read()

    def capture(self) -> ImageArtifact:
        """Take one still frame and release the camera."""
        try:
            frame = self._read()
            try:
                data = frame_to_jpeg(frame)
            except (cv2.error, ValueError, OSError) as exc:
                raise DeviceError(f"Could not encode the camera frame: {exc}") from exc
        finally:
            self.release()
        self._captures += 1
        h, w = frame.shape[:2]
        logger.info("Captured %dx%d frame from camera %s (%d bytes)", w, h, self._device, len(data))
        return ImageArtifact(
            source=ImageSource.CAMERA,
            media_type=CAPTURE_MEDIA_TYPE,
            name=f"capture-{self._captures}.jpg",
            data=data,
        )

    def release(self) -> None:
        with self._lock:
            if self._released:
                return
            self._released = True
            try:
                self._capture.release()
            finally:
                logger.info("Camera %s released", self._device)

    def __enter__(self) -> "CameraSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


def open_camera(
    device: Any = 0,
    capture_factory: Optional[Callable[[Any], Any]] = None,
) -> CameraSession:
    """Open a video capture device for live preview.

    Raises DeviceError when the device is missing or access is denied.
    """
    factory = capture_factory or cv2.VideoCapture
    try:
        capture = factory(device)
    except cv2.error as exc:
        raise DeviceError(f"Camera unavailable: {exc}") from exc
    except OSError as exc:
        raise DeviceError(f"Camera unavailable: {exc}") from exc

    if capture is None or not capture.isOpened():
        if capture is not None:
            capture.release()
        raise DeviceError(f"Camera {device} unavailable or permission denied.")

    logger.info("Camera %s opened", device)
    return CameraSession(capture, device=device)
