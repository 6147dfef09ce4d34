"""
Archive data source: owns every store handle and exposes all queries.

Layout of an archive directory::

    message_0.db, message_1.db, ...   time-sharded message stores
    contact.db                        contacts and chat rooms
    session.db                        recent sessions
    hardlink.db                       media references
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from .config import Config
from .contacts import ChatRoomDirectory, ContactDirectory
from .db import ReadOnlyDatabase
from .discovery import (
    CONTACT_FILE_PATTERN,
    MEDIA_FILE_PATTERN,
    SESSION_FILE_PATTERN,
    find_files,
)
from .errors import ArchiveError, CloseFailure, InitializationFailure
from .media import MediaResolver
from .messages import MessageQueryEngine
from .models import ChatRoom, Contact, MediaAsset, MessageQueryResult, Session, ShardInfo
from .sessions import SessionIndex
from .shards import ShardCatalog

logger = logging.getLogger(__name__)


class ArchiveDataSource:
    """Read-only query façade over one archive directory."""

    def __init__(self, root_path: Union[str, Path], config: Optional[Config] = None):
        self.root_path = Path(root_path).expanduser()
        self.config = config or Config()
        self.catalog = ShardCatalog(
            timeout=self.config.archive.timeout_seconds,
            recursive=self.config.archive.recursive,
        )
        self.contact_db: Optional[ReadOnlyDatabase] = None
        self.session_db: Optional[ReadOnlyDatabase] = None
        self.media_db: Optional[ReadOnlyDatabase] = None

        self.messages: Optional[MessageQueryEngine] = None
        self.contacts: Optional[ContactDirectory] = None
        self.chat_rooms: Optional[ChatRoomDirectory] = None
        self.sessions: Optional[SessionIndex] = None
        self.media: Optional[MediaResolver] = None

    @classmethod
    async def open(
        cls,
        root_path: Union[str, Path],
        config: Optional[Config] = None,
        event_logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
    ) -> "ArchiveDataSource":
        """Open every store under ``root_path``.

        Raises:
            InitializationFailure: no usable shard, or a single store is missing
        """
        source = cls(root_path, config)
        await source.initialize(event_logger)
        return source

    async def initialize(
        self, event_logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None
    ) -> None:
        try:
            await self.catalog.initialize(self.root_path)
            self.contact_db = await self._open_single(CONTACT_FILE_PATTERN)
            self.session_db = await self._open_single(SESSION_FILE_PATTERN)
            self.media_db = await self._open_single(MEDIA_FILE_PATTERN)
        except InitializationFailure:
            try:
                await self.close()
            except CloseFailure as e:
                logger.warning(f"Cleanup after failed initialization: {e}")
            raise

        self.messages = MessageQueryEngine(self.catalog, event_logger)
        self.contacts = ContactDirectory(self.contact_db)
        self.chat_rooms = ChatRoomDirectory(self.contact_db, self.contacts)
        self.sessions = SessionIndex(self.session_db)
        self.media = MediaResolver(self.media_db)

        logger.info(f"Archive opened: {self.root_path}")

    async def _open_single(self, pattern: str) -> ReadOnlyDatabase:
        files = find_files(self.root_path, pattern, self.config.archive.recursive)
        if not files:
            raise InitializationFailure(
                f"No file matching {pattern} under {self.root_path}",
                {"path": str(self.root_path), "pattern": pattern},
            )
        db = ReadOnlyDatabase(files[0], timeout=self.config.archive.timeout_seconds)
        await db.initialize()
        return db

    async def get_messages(
        self,
        start_time: datetime,
        end_time: datetime,
        conversation_id: str,
        limit: int = 0,
        offset: int = 0,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> MessageQueryResult:
        return await self.messages.get_messages(
            start_time, end_time, conversation_id, limit, offset, cancel_event
        )

    async def get_contacts(self, key: str = "", limit: int = 0, offset: int = 0) -> List[Contact]:
        return await self.contacts.get_contacts(key, limit, offset)

    async def get_chat_rooms(self, key: str = "", limit: int = 0, offset: int = 0) -> List[ChatRoom]:
        return await self.chat_rooms.get_chat_rooms(key, limit, offset)

    async def get_sessions(self, key: str = "", limit: int = 0, offset: int = 0) -> List[Session]:
        return await self.sessions.get_sessions(key, limit, offset)

    async def get_media(self, media_type: str, key: str) -> MediaAsset:
        return await self.media.get_media(media_type, key)

    def describe_shards(self) -> List[ShardInfo]:
        return self.catalog.describe()

    async def close(self) -> None:
        """Close every store handle.

        Raises:
            CloseFailure: wrapping the first close error; later errors are dropped
        """
        errors: List[Exception] = await self.catalog.close()

        for db in (self.contact_db, self.session_db, self.media_db):
            if db is None:
                continue
            try:
                await db.close()
            except ArchiveError as e:
                errors.append(e)

        self.messages = None
        self.contacts = None
        self.chat_rooms = None
        self.sessions = None
        self.media = None

        if errors:
            raise CloseFailure(errors[0])

    async def __aenter__(self) -> "ArchiveDataSource":
        if self.messages is None:
            await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
