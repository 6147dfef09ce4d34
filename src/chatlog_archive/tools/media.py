"""
Media lookup tool for the chat archive.
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

from pydantic import ValidationError

from ..errors import ArchiveError
from . import MediaQuery
from .base import create_error_response, create_unavailable_error, is_available

if TYPE_CHECKING:
    from ..datasource import ArchiveDataSource


async def media_tool(
    datasource: Optional["ArchiveDataSource"], media_type: str, key: str
) -> Dict[str, Any]:
    """
    Resolve a media key to its stored file reference.

    Args:
        datasource: Opened archive
        media_type: image, video or file
        key: 32-character MD5 of the file, or a file-name prefix of that length

    Returns:
        Dict with the asset's key, name, size, modify time and directory parts
    """
    if not is_available(datasource):
        return create_unavailable_error()

    try:
        query = MediaQuery(media_type=media_type, key=key)
        media = await datasource.get_media(query.media_type, query.key)
    except (ArchiveError, ValidationError) as e:
        return create_error_response(e)

    return {"media": media.model_dump(mode="json")}
