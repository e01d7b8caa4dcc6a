"""
Exceptions raised by the telemetry pipeline.

    TelemetryError (base)
    ├── ConfigurationError - startup configuration is missing or invalid
    ├── InferenceError     - inference endpoint call failed or returned garbage
    ├── ArchiveError       - image could not be decoded or uploaded
    └── DataQualityError   - payload or inference response fails validation (event skipped)
"""

from typing import Optional


class TelemetryError(Exception):
    """Base exception for the telemetry pipeline."""


class ConfigurationError(TelemetryError):
    """Raised by create_app() when load_settings() reports problems."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__("Invalid configuration: " + "; ".join(errors))


class InferenceError(TelemetryError):
    """
    The inference call did not produce a usable JSON body.

    Attributes:
        status_code: HTTP status returned by the endpoint, if any
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ArchiveError(TelemetryError):
    """Image decoding or blob upload failed."""

    def __init__(self, message: str, blob_path: Optional[str] = None):
        self.blob_path = blob_path
        super().__init__(f"{message} [blob={blob_path}]" if blob_path else message)


class DataQualityError(TelemetryError):
    """
    A payload or inference response is missing fields or has wrong value kinds.
    The event is skipped, not failed.

    Attributes:
        reason: SkipReason value naming which input was bad
    """

    def __init__(self, reason: str, message: str):
        self.reason = reason
        super().__init__(message)
