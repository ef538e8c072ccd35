"""
Error taxonomy for drive operations.

Every error derives from OSError so callers that already handle filesystem
errors keep working; NotFoundError and ForbiddenError are also the matching
builtin exceptions.
"""


class DriveError(OSError):
    """Base class for all drive errors."""


class NotFoundError(DriveError, FileNotFoundError):
    """A path or remote id does not exist."""


class ForbiddenError(DriveError, PermissionError):
    """The remote store refused access (HTTP 401/403)."""


class TransientFetchError(DriveError):
    """Network failure or 408/429/5xx response that survived every retry."""


class PermanentFetchError(DriveError):
    """Non-retryable remote failure: other 4xx, API error code, malformed body."""


class InvariantViolation(DriveError):
    """Internal cache state contradicts itself."""
