"""Recent-session listing against the session store."""

from typing import List

from .db import ReadOnlyDatabase, paginate
from .models import Session, decode_rows

SESSION_QUERY = """
    SELECT username, summary, last_timestamp, last_msg_sender, last_sender_display_name
    FROM SessionTable
"""


class SessionIndex:
    """Sessions ordered by recency, most recent first."""

    def __init__(self, db: ReadOnlyDatabase):
        self.db = db

    async def get_sessions(self, key: str = "", limit: int = 0, offset: int = 0) -> List[Session]:
        """List sessions, or those whose id or last sender display name equals ``key``."""
        query = SESSION_QUERY
        params: List[str] = []
        if key:
            query += " WHERE username = ? OR last_sender_display_name = ?"
            params = [key, key]
        query += " ORDER BY sort_timestamp DESC"

        query, args = paginate(query, params, limit, offset)
        rows = await self.db.execute_query(query, args)
        return decode_rows(rows, Session.from_row)
