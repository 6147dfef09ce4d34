"""
Recent session tool for the chat archive.
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

from pydantic import ValidationError

from ..errors import ArchiveError
from . import KeyQuery
from .base import create_error_response, create_unavailable_error, is_available

if TYPE_CHECKING:
    from ..datasource import ArchiveDataSource


async def sessions_tool(
    datasource: Optional["ArchiveDataSource"], key: str = "", limit: int = 50, offset: int = 0
) -> Dict[str, Any]:
    """
    List recent sessions, most recent first.

    A key filters to sessions with that id or that last sender display name.
    """
    if not is_available(datasource):
        return create_unavailable_error()

    try:
        query = KeyQuery(key=key, limit=limit, offset=offset)
        sessions = await datasource.get_sessions(query.key, query.limit, query.offset)
    except (ArchiveError, ValidationError) as e:
        return create_error_response(e)

    return {
        "sessions": [s.model_dump(mode="json") for s in sessions],
        "count": len(sessions),
    }
