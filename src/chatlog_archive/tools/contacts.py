"""
Contact and chat-room lookup tools for the chat archive.
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

from pydantic import ValidationError

from ..errors import ArchiveError
from . import KeyQuery
from .base import create_error_response, create_unavailable_error, is_available

if TYPE_CHECKING:
    from ..datasource import ArchiveDataSource


async def contacts_tool(
    datasource: Optional["ArchiveDataSource"], key: str = "", limit: int = 50, offset: int = 0
) -> Dict[str, Any]:
    """
    List contacts or find those matching a key.

    The key must equal a contact's id, alias, remark or nickname exactly.
    """
    if not is_available(datasource):
        return create_unavailable_error()

    try:
        query = KeyQuery(key=key, limit=limit, offset=offset)
        contacts = await datasource.get_contacts(query.key, query.limit, query.offset)
    except (ArchiveError, ValidationError) as e:
        return create_error_response(e)

    return {
        "contacts": [c.model_dump(mode="json") for c in contacts],
        "count": len(contacts),
    }


async def chat_rooms_tool(
    datasource: Optional["ArchiveDataSource"], key: str = "", limit: int = 50, offset: int = 0
) -> Dict[str, Any]:
    """
    List chat rooms or resolve one by id or by a matching contact.

    Rooms known only from the contact list come back without members.
    """
    if not is_available(datasource):
        return create_unavailable_error()

    try:
        query = KeyQuery(key=key, limit=limit, offset=offset)
        rooms = await datasource.get_chat_rooms(query.key, query.limit, query.offset)
    except (ArchiveError, ValidationError) as e:
        return create_error_response(e)

    return {
        "chat_rooms": [r.model_dump(mode="json") for r in rooms],
        "count": len(rooms),
    }
