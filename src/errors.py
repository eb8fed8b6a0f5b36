"""Error taxonomy for capture, upload and remote analysis.

Every failure collapses into the session's Failed state; the class is kept
only so logs can tell the causes apart.
"""
from src.constants import (
    MSG_ANALYSIS_FAILED,
    MSG_CAMERA_UNAVAILABLE,
    MSG_INVALID_IMAGE,
)


class ScanError(Exception):
    user_message = MSG_ANALYSIS_FAILED

    @property
    def kind(self) -> str:
        return type(self).__name__


class InvalidInput(ScanError):
    """Missing, empty, oversized or unrecognized image. Raised before any network call."""

    user_message = MSG_INVALID_IMAGE


class DeviceUnavailable(ScanError):
    """Camera could not be opened, or stopped delivering frames."""

    user_message = MSG_CAMERA_UNAVAILABLE


class ServiceUnavailable(ScanError):
    """Transport or service failure, including timeouts."""


class MalformedResponse(ScanError):
    """The service answered, but not with a payload matching the schema."""
