"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class GribFetchError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(GribFetchError):
    """Raised for issues related to configuration loading or validation."""


class IndexDownloadError(GribFetchError):
    """Raised when the .idx file cannot be retrieved from the server."""


class IndexParseError(GribFetchError):
    """Raised when the index stream itself cannot be read."""


class RangeFetchError(GribFetchError):
    """Raised when a byte range request is not answered with partial content."""

    def __init__(self, message: str, status: int | None = None):
        super().__init__(message)
        self.status = status


class PreallocationError(GribFetchError):
    """Raised when the destination file cannot be created or sized."""


class TransferError(GribFetchError):
    """
    Raised after all range fetches finished and at least one of them failed.

    Ranges that succeeded have already been written; the partial file is left
    on disk.
    """

    def __init__(self, failures: list):
        self.failures = failures
        details = "; ".join(
            f"range {f.byte_range.start}-{f.byte_range.end}: {f.describe_error()}"
            for f in failures
        )
        super().__init__(
            f"Encountered {len(failures)} errors during download: {details}"
        )
