"""
Custom exception hierarchy for the photo retimer.

Only EmptyInputError (and ConfigurationError, raised before any file is
touched) end a run. Everything else is a per-file failure.
"""


class PhotoRetimerError(Exception):
    """Base exception for all photo retimer errors."""
    pass


class ConfigurationError(PhotoRetimerError):
    """Raised when run options are missing or inconsistent."""
    pass


class EmptyInputError(PhotoRetimerError):
    """Raised when the sequential policy has no photos to anchor against."""
    pass


class PhaseError(PhotoRetimerError):
    """Raised when the sequential calculator is driven out of order."""
    pass


class TimestampReadError(PhotoRetimerError):
    """Raised when no capture time can be read from a file."""
    pass


class TimestampParseError(PhotoRetimerError):
    """Raised when a date cannot be parsed out of a filename."""
    pass


class MetadataWriteError(PhotoRetimerError):
    """Raised when a file's timestamp could not be persisted."""
    pass


class UnsupportedFormatError(MetadataWriteError):
    """Raised when no write strategy exists for a file's extension."""
    pass


class TimestampRangeError(PhotoRetimerError):
    """Raised when shifting the set would leave the representable date range."""
    pass
