import io

import cv2
import numpy as np
import pytest
from PIL import Image

from domain.errors import DeviceError, ValidationError
from domain.types import ImageSource
from services.image_source import (
    CameraSession,
    artifact_from_bytes,
    artifact_from_file,
    frame_to_jpeg,
    open_camera,
)

from conftest import FakeCapture


# ---------------------------------------------------------------------------
# File selection
# ---------------------------------------------------------------------------


def test_file_media_type_is_guessed(jpeg_file):
    artifact = artifact_from_file(str(jpeg_file))
    assert artifact.source == ImageSource.FILE
    assert artifact.media_type == "image/jpeg"
    assert artifact.name == "card.jpg"
    assert artifact.data is None  # read lazily


def test_explicit_media_type_wins(tmp_path):
    path = tmp_path / "upload.bin"
    path.write_bytes(b"\x89PNG...")
    assert artifact_from_file(str(path), media_type="image/png").media_type == "image/png"


def test_non_image_file_is_rejected(tmp_path):
    path = tmp_path / "notes.txt"
    path.write_text("hello")
    with pytest.raises(ValidationError):
        artifact_from_file(str(path))


def test_bytes_without_image_type_rejected():
    with pytest.raises(ValidationError):
        artifact_from_bytes(b"%PDF-1.4", "application/pdf", name="scan.pdf")


# ---------------------------------------------------------------------------
# Camera
# ---------------------------------------------------------------------------


def test_open_camera_missing_device_raises_and_releases():
    cap = FakeCapture(opened=False)
    with pytest.raises(DeviceError):
        open_camera(0, capture_factory=lambda device: cap)
    assert cap.released


def test_open_camera_backend_error_becomes_device_error():
    def factory(device):
        raise cv2.error("permission denied")

    with pytest.raises(DeviceError):
        open_camera(0, capture_factory=factory)


def test_capture_keeps_native_resolution_and_releases():
    cap = FakeCapture(width=320, height=240)
    session = open_camera(0, capture_factory=lambda device: cap)
    session.preview_frame()
    assert session.active

    artifact = session.capture()

    assert cap.released
    assert not session.active
    assert artifact.source == ImageSource.CAMERA
    assert artifact.media_type == "image/jpeg"
    img = Image.open(io.BytesIO(artifact.data))
    assert img.size == (320, 240)


def test_capture_converts_bgr_to_rgb():
    cap = FakeCapture()  # pure red in BGR order
    artifact = CameraSession(cap).capture()
    r, g, b = Image.open(io.BytesIO(artifact.data)).convert("RGB").getpixel((5, 5))
    assert r > 150 and g < 60 and b < 60


def test_failed_read_still_releases():
    cap = FakeCapture(frames=[])
    session = CameraSession(cap)
    with pytest.raises(DeviceError):
        session.capture()
    assert cap.released


def test_capture_after_release_is_device_error():
    session = CameraSession(FakeCapture())
    session.release()
    with pytest.raises(DeviceError):
        session.capture()


def test_release_is_idempotent():
    cap = FakeCapture()
    with CameraSession(cap) as session:
        session.release()
    assert cap.released


def test_grayscale_frame_is_encoded():
    frame = np.full((40, 30), 128, dtype=np.uint8)
    img = Image.open(io.BytesIO(frame_to_jpeg(frame)))
    assert img.size == (30, 40)
