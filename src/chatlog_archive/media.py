"""
Content-addressed media lookup against the hardlink store.

Each media kind has its own ``<type>_hardlink_info_v3`` table keyed by the
file's MD5. Directory components are interned in ``dir2id``.
"""

from typing import Optional

from .db import ReadOnlyDatabase
from .errors import InvalidArgument, NotFound
from .models import MediaAsset, MediaType, decode_rows

MEDIA_KEY_LENGTH = 32

MEDIA_QUERY = """
    SELECT
        f.md5,
        f.file_name,
        f.file_size,
        f.modify_time,
        IFNULL(d1.username, '') AS dir1,
        IFNULL(d2.username, '') AS dir2
    FROM {table} f
    LEFT JOIN dir2id d1 ON d1.rowid = f.dir1
    LEFT JOIN dir2id d2 ON d2.rowid = f.dir2
    WHERE f.md5 = ? OR f.file_name LIKE ? || '%'
"""


class MediaResolver:
    """Resolves a media key to its stored asset."""

    def __init__(self, db: ReadOnlyDatabase):
        self.db = db

    async def get_media(self, media_type: str, key: str) -> MediaAsset:
        """Look up a media asset by content hash or file-name prefix.

        Rows are taken in scan order and the last one wins, except for images:
        the first row that is not a thumbnail is returned immediately.

        Raises:
            InvalidArgument: empty key, key not 32 characters, unknown media type
            NotFound: no row matched
        """
        if not key:
            raise InvalidArgument("key required")
        if len(key) != MEDIA_KEY_LENGTH:
            raise InvalidArgument("key must be 32 characters", {"key": key})

        try:
            kind = MediaType(media_type)
        except ValueError:
            raise InvalidArgument("unsupported media type", {"media_type": media_type})

        rows = await self.db.execute_query(MEDIA_QUERY.format(table=kind.table), (key, key))

        media: Optional[MediaAsset] = None
        for row in rows:
            media = decode_rows([row], lambda r: MediaAsset.from_row(r, kind))[0]
            if kind is MediaType.IMAGE and not media.is_thumbnail:
                break

        if media is None:
            raise NotFound("media not found", {"media_type": media_type, "key": key})
        return media
