"""
Card Grader Error Taxonomy

Every failure the client can run into while acquiring, encoding or
submitting a card image. All of them are recoverable: the workflow catches
them at its boundary and turns them into a single user-visible message.
"""

from typing import Optional


GENERIC_FAILURE_MESSAGE = "Failed to grade the card."


class GraderError(Exception):
    """Base class for all recoverable card grader failures."""

    default_message = GENERIC_FAILURE_MESSAGE

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def user_message(self) -> str:
        """Text suitable for showing to the end user."""
        return str(self)


class ValidationError(GraderError):
    """Raised when the selected file is not advertised as an image."""

    default_message = "Please select an image file."


class DeviceError(GraderError):
    """Raised when the camera is unavailable or access was denied."""

    default_message = "Camera unavailable or permission denied."


class EncodingError(GraderError):
    """Raised when the image artifact cannot be read."""

    default_message = "Could not read the selected image."


class MissingCredential(GraderError):
    """Raised in direct mode when no API key is configured."""

    default_message = "Missing API key. Please check your .env file."


class NetworkError(GraderError):
    """Raised when no response was received from the grading endpoint."""


class UpstreamError(GraderError):
    """Raised for non-2xx responses. Carries the upstream status code."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code


class MalformedResponse(GraderError):
    """Raised when a 2xx body does not have the expected shape."""
