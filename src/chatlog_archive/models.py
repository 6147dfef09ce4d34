"""
Pydantic records returned by the archive query layer.

Records are built fresh from scanned rows on every call. Column values are
carried through as stored; decoding of packed payloads (protobuf member lists,
compressed message bodies) is left to the consumer.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ScanFailure

CHATROOM_SUFFIX = "@chatroom"
THUMBNAIL_MARKER = "_t"

RawValue = Optional[Union[str, bytes]]


class ArchiveRecord(BaseModel):
    """Base for all records; binary columns serialize as base64 in JSON."""

    model_config = ConfigDict(ser_json_bytes="base64")


class Message(ArchiveRecord):
    """One message of a conversation."""

    sequence_number: int
    local_type: int = 0
    sender_display_name: Optional[str] = None
    create_time: int
    content: RawValue = None
    packed_info: RawValue = None
    status: int = 0
    conversation_id: str

    @property
    def time(self) -> datetime:
        return datetime.fromtimestamp(self.create_time).astimezone()

    @classmethod
    def from_row(cls, row: Dict[str, Any], conversation_id: str) -> "Message":
        return cls(
            sequence_number=row["sort_seq"],
            local_type=row["local_type"] or 0,
            sender_display_name=row["user_name"],
            create_time=row["create_time"],
            content=row["message_content"],
            packed_info=row["packed_info_data"],
            status=row["status"] or 0,
            conversation_id=conversation_id,
        )


class Contact(ArchiveRecord):
    """Contact entry."""

    id: str
    local_type: int = 0
    alias: str = ""
    remark: str = ""
    nickname: str = ""

    @property
    def is_chat_room(self) -> bool:
        return self.id.endswith(CHATROOM_SUFFIX)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Contact":
        return cls(
            id=row["username"],
            local_type=row["local_type"] or 0,
            alias=row["alias"] or "",
            remark=row["remark"] or "",
            nickname=row["nick_name"] or "",
        )


class ChatRoomMember(ArchiveRecord):
    """Member of a chat room."""

    user_id: str
    display_name: str = ""


class ChatRoom(ArchiveRecord):
    """Chat room entry.

    Membership is packed inside ``ext_buffer`` and is not decoded here, so
    ``members`` and ``member_display_names`` stay empty unless a consumer
    fills them in.
    """

    id: str
    owner: str = ""
    ext_buffer: Optional[bytes] = None
    members: List[ChatRoomMember] = Field(default_factory=list)
    member_display_names: Dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "ChatRoom":
        return cls(id=row["username"], owner=row["owner"] or "", ext_buffer=row["ext_buffer"])

    @classmethod
    def placeholder(cls, room_id: str) -> "ChatRoom":
        """Room known only from its contact entry."""
        return cls(id=room_id)


class Session(ArchiveRecord):
    """Recent conversation entry."""

    id: str
    summary: str = ""
    last_timestamp: int = 0
    last_sender_id: str = ""
    last_sender_display_name: str = ""

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Session":
        return cls(
            id=row["username"],
            summary=row["summary"] or "",
            last_timestamp=row["last_timestamp"] or 0,
            last_sender_id=row["last_msg_sender"] or "",
            last_sender_display_name=row["last_sender_display_name"] or "",
        )


class MediaType(str, Enum):
    """Media kinds with a backing hardlink table."""

    IMAGE = "image"
    VIDEO = "video"
    FILE = "file"

    @property
    def table(self) -> str:
        return f"{self.value}_hardlink_info_v3"


class MediaAsset(ArchiveRecord):
    """Content-addressed media reference."""

    key: str
    name: str
    size: int = 0
    modify_time: int = 0
    dir1: str = ""
    dir2: str = ""
    media_type: MediaType

    @property
    def is_thumbnail(self) -> bool:
        return THUMBNAIL_MARKER in self.name

    @classmethod
    def from_row(cls, row: Dict[str, Any], media_type: MediaType) -> "MediaAsset":
        return cls(
            key=row["md5"],
            name=row["file_name"],
            size=row["file_size"] or 0,
            modify_time=row["modify_time"] or 0,
            dir1=row["dir1"],
            dir2=row["dir2"],
            media_type=media_type,
        )


class ShardStatus(str, Enum):
    """Outcome of scanning one shard."""

    SCANNED = "scanned"
    EMPTY = "empty"  # conversation has no table in the shard
    SKIPPED = "skipped"


class ShardScan(ArchiveRecord):
    """Per-shard entry of a message query report."""

    file_path: str
    status: ShardStatus
    rows: int = 0
    reason: Optional[str] = None


class MessageQueryResult(ArchiveRecord):
    """Messages of a query plus the per-shard report."""

    messages: List[Message] = Field(default_factory=list)
    shards: List[ShardScan] = Field(default_factory=list)

    @property
    def skipped(self) -> List[ShardScan]:
        return [s for s in self.shards if s.status == ShardStatus.SKIPPED]

    @property
    def is_partial(self) -> bool:
        return bool(self.skipped)


class ShardInfo(ArchiveRecord):
    """Coverage window of one message shard."""

    file_path: str
    start_time: datetime
    end_time: datetime


T = TypeVar("T")


def decode_rows(rows: Iterable[Dict[str, Any]], factory: Callable[[Dict[str, Any]], T]) -> List[T]:
    """Build records from rows, converting decode errors to ScanFailure."""
    records = []
    for row in rows:
        try:
            records.append(factory(row))
        except (KeyError, ValidationError) as e:
            raise ScanFailure(f"Failed to decode row: {e}")
    return records
