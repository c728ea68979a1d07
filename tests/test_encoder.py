"""Tests for image encoding.

These tests verify:
1. Encoding round-trips back to the original image bytes
2. The data URL envelope never reaches the payload
3. Unreadable artifacts surface as EncodingError
"""

import base64

import pytest

from domain.errors import EncodingError
from domain.types import EncodedPayload, ImageArtifact, ImageSource
from services.encoder import decode, encode, strip_transport_prefix, to_data_url
from services.image_source import artifact_from_bytes, artifact_from_file

from conftest import make_image_bytes


@pytest.mark.parametrize("fmt,media_type", [("JPEG", "image/jpeg"), ("PNG", "image/png")])
def test_round_trip_returns_original_bytes(fmt, media_type):
    data = make_image_bytes(fmt)
    artifact = artifact_from_bytes(data, media_type, name=f"card.{fmt.lower()}")

    payload = encode(artifact)

    assert decode(payload) == data


def test_file_artifact_round_trip(jpeg_file, jpeg_bytes):
    payload = encode(artifact_from_file(str(jpeg_file)))
    assert decode(payload) == jpeg_bytes


def test_payload_has_no_data_url_prefix(jpeg_bytes):
    artifact = artifact_from_bytes(jpeg_bytes, "image/jpeg")

    payload = encode(artifact)

    assert not payload.data.startswith("data:")
    assert "," not in payload.data
    assert payload.data == base64.b64encode(jpeg_bytes).decode("ascii")


def test_encode_is_deterministic(jpeg_bytes):
    artifact = artifact_from_bytes(jpeg_bytes, "image/jpeg")
    assert encode(artifact) == encode(artifact)


def test_data_url_carries_media_type(jpeg_bytes):
    url = to_data_url(artifact_from_bytes(jpeg_bytes, "image/jpeg"))
    assert url.startswith("data:image/jpeg;base64,")
    assert strip_transport_prefix(url) == base64.b64encode(jpeg_bytes).decode("ascii")


def test_strip_leaves_plain_base64_alone():
    assert strip_transport_prefix("QUJD") == "QUJD"


def test_removed_file_raises_encoding_error(jpeg_file):
    artifact = artifact_from_file(str(jpeg_file))
    jpeg_file.unlink()

    with pytest.raises(EncodingError):
        encode(artifact)


def test_empty_image_raises_encoding_error():
    artifact = ImageArtifact(source=ImageSource.FILE, media_type="image/png", data=b"")
    with pytest.raises(EncodingError):
        encode(artifact)


def test_decode_rejects_garbage():
    with pytest.raises(EncodingError):
        decode("not base64!!")


def test_payload_repr_is_redacted(jpeg_bytes):
    payload = encode(artifact_from_bytes(jpeg_bytes, "image/jpeg"))
    text = repr(payload)
    assert payload.data not in text
    assert str(len(payload.data)) in text
    assert isinstance(payload, EncodedPayload)
