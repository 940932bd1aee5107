class InspectionError(Exception):
    """Base exception for the capture and upload pipeline."""


class CapturePreparationError(InspectionError):
    """Raised when a capture cannot be prepared (missing project details, no output path)."""


class TagWriteError(InspectionError):
    """Raised when embedded EXIF tags cannot be written to a captured photo."""


class InvalidTransitionError(InspectionError):
    """Raised when an upload-state transition is not allowed."""
