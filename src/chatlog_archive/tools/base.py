"""
Base functionality for MCP tools.

This module provides the shared error response format and the check for an
opened archive.
"""

import re
from typing import TYPE_CHECKING, Any, Dict, Optional

from pydantic import ValidationError

from ..errors import ArchiveError

if TYPE_CHECKING:
    from ..datasource import ArchiveDataSource


def error_type_for(error: Exception) -> str:
    """Snake-case name of an archive error class, e.g. ``not_found``."""
    if isinstance(error, ValidationError):
        return "invalid_argument"
    if not isinstance(error, ArchiveError):
        return "unknown_error"
    return re.sub(r"(?<!^)(?=[A-Z])", "_", type(error).__name__).lower()


def create_error_response(error: Exception, error_type: Optional[str] = None) -> Dict[str, Any]:
    """
    Create a standardized error response.

    Args:
        error: The exception that occurred
        error_type: Type of error for categorization; derived from the error if omitted

    Returns:
        Dict containing error information
    """
    return {"error": str(error), "error_type": error_type or error_type_for(error)}


def create_unavailable_error() -> Dict[str, Any]:
    """Create the response returned when no archive is open."""
    return {"error": "Archive is not open", "error_type": "archive_unavailable"}


def is_available(datasource: Optional["ArchiveDataSource"]) -> bool:
    return datasource is not None and datasource.messages is not None
