"""
Exception hierarchy for the chat archive query layer.

Every error raised by this package derives from ArchiveError, so callers can
catch all archive failures with a single except clause. Each subclass maps to
one category of failure surfaced to the façade.
"""

from typing import Any, Dict, Optional


class ArchiveError(Exception):
    """Base exception for all archive errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """Initialize the exception with a message and optional details.

        Args:
            message: Human-readable error message
            details: Additional context about the error (optional)
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert the exception to a dictionary for tool responses."""
        return {
            "type": self.__class__.__name__,
            "message": str(self),
            "details": self.details,
        }


class InitializationFailure(ArchiveError):
    """Raised when the archive cannot be opened.

    Used for:
    - no usable message shard
    - a required single-instance store (contact, session, media) missing or unopenable
    """

    pass


class InvalidArgument(ArchiveError):
    """Raised for empty or malformed keys and unsupported media types."""

    pass


class NotFound(ArchiveError):
    """Raised when a time range has no shard coverage or media has no match."""

    pass


class QueryFailure(ArchiveError):
    """Raised when a round trip to an underlying store fails."""

    pass


class MissingTable(QueryFailure):
    """Raised when a query names a table the store does not have."""

    pass


class ScanFailure(ArchiveError):
    """Raised when a returned row cannot be decoded into a record."""

    pass


class QueryCancelled(ArchiveError):
    """Raised when a multi-shard query is cancelled at a shard boundary."""

    pass


class CloseFailure(ArchiveError):
    """Raised by close() when one or more handles failed to close.

    Only the first error is kept in ``cause``.
    """

    def __init__(self, cause: BaseException):
        super().__init__(f"failed to close archive: {cause}", {"cause": repr(cause)})
        self.cause = cause
