"""
Contact and chat-room lookups against the contact store.

Both directories read from ``contact.db``: the ``contact`` table holds every
contact (chat rooms included, with ids ending in ``@chatroom``), the
``chat_room`` table holds room ownership and packed membership.
"""

import logging
from typing import List

from .db import ReadOnlyDatabase, paginate
from .errors import ArchiveError
from .models import ChatRoom, Contact, decode_rows

logger = logging.getLogger(__name__)

CONTACT_COLUMNS = "username, local_type, alias, remark, nick_name"
CHAT_ROOM_COLUMNS = "username, owner, ext_buffer"


class ContactDirectory:
    """Keyed lookup and listing of contacts."""

    def __init__(self, db: ReadOnlyDatabase):
        self.db = db

    async def get_contacts(self, key: str = "", limit: int = 0, offset: int = 0) -> List[Contact]:
        """List contacts, or those whose id, alias, remark or nickname equals ``key``.

        Results are ordered by id and paginated after filtering.
        """
        query = f"SELECT {CONTACT_COLUMNS} FROM contact"
        params: List[str] = []
        if key:
            query += " WHERE username = ? OR alias = ? OR remark = ? OR nick_name = ?"
            params = [key, key, key, key]
        query += " ORDER BY username"

        query, args = paginate(query, params, limit, offset)
        rows = await self.db.execute_query(query, args)
        return decode_rows(rows, Contact.from_row)


class ChatRoomDirectory:
    """Keyed lookup and listing of chat rooms.

    A keyed lookup that misses the ``chat_room`` table falls back to the
    contact directory: a contact matching the key whose id is a chat-room id
    is looked up again by that id, and if the room still has no record a
    placeholder room without members is returned.
    """

    def __init__(self, db: ReadOnlyDatabase, contacts: ContactDirectory):
        self.db = db
        self.contacts = contacts

    async def get_chat_rooms(self, key: str = "", limit: int = 0, offset: int = 0) -> List[ChatRoom]:
        if not key:
            query, args = paginate(
                f"SELECT {CHAT_ROOM_COLUMNS} FROM chat_room ORDER BY username", [], limit, offset
            )
            rows = await self.db.execute_query(query, args)
            return decode_rows(rows, ChatRoom.from_row)

        rooms = await self._find_room(key)
        if rooms:
            return rooms

        try:
            contacts = await self.contacts.get_contacts(key, 1, 0)
        except ArchiveError as e:
            logger.debug(f"Contact fallback for chat room {key!r} failed: {e}")
            return []

        if not contacts or not contacts[0].is_chat_room:
            return []

        room_id = contacts[0].id
        rooms = await self._find_room(room_id)
        if not rooms:
            rooms = [ChatRoom.placeholder(room_id)]
        return rooms

    async def _find_room(self, room_id: str) -> List[ChatRoom]:
        rows = await self.db.execute_query(
            f"SELECT {CHAT_ROOM_COLUMNS} FROM chat_room WHERE username = ?", (room_id,)
        )
        return decode_rows(rows, ChatRoom.from_row)
