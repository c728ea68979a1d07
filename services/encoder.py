from __future__ import annotations

import base64
import binascii

from domain.errors import EncodingError
from domain.types import EncodedPayload, ImageArtifact


DATA_URL_SCHEME = "data:"


def strip_transport_prefix(text: str) -> str:
    """Drop a `data:<mime>;base64,` envelope, leaving only the encoded bytes."""
    if text.startswith(DATA_URL_SCHEME) and "," in text:
        return text.split(",", 1)[1]
    return text


def _read(artifact: ImageArtifact) -> bytes:
    try:
        data = artifact.read_bytes()
    except OSError as exc:
        raise EncodingError(f"Could not read image {artifact.name or '(unnamed)'}: {exc}") from exc
    if not data:
        raise EncodingError("The selected image is empty.")
    return data


def to_data_url(artifact: ImageArtifact) -> str:
    """Browser-style data URL of the artifact (used for previews)."""
    encoded = base64.b64encode(_read(artifact)).decode("ascii")
    return f"{DATA_URL_SCHEME}{artifact.media_type};base64,{encoded}"


def encode(artifact: ImageArtifact) -> EncodedPayload:
    """Encode an artifact as raw base64 for embedding in a JSON body.

    The service expects the bare base64 text, not the data URL envelope.
    """
    return EncodedPayload(data=strip_transport_prefix(to_data_url(artifact)))


def decode(payload: EncodedPayload | str) -> bytes:
    text = payload.data if isinstance(payload, EncodedPayload) else payload
    try:
        return base64.b64decode(strip_transport_prefix(text), validate=True)
    except (binascii.Error, ValueError) as exc:
        raise EncodingError("Payload is not valid base64.") from exc
