"""
MCP tools for the chat archive.

Each tool module wraps one archive query and returns JSON-ready dicts. Input
schemas shared by several tools live here.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class Pagination(BaseModel):
    """Schema for limit/offset parameters."""

    limit: int = Field(default=0, ge=0, description="Maximum results; 0 returns everything")
    offset: int = Field(default=0, ge=0, description="Results to skip")


class KeyQuery(Pagination):
    """Schema for keyed listing tools."""

    key: str = Field(default="", description="Exact id or name to match; empty lists all")


class MessageQuery(Pagination):
    """Schema for message queries."""

    conversation_id: str = Field(description="Talker or chat-room id")
    start: datetime = Field(
        default=datetime(1970, 1, 1, tzinfo=timezone.utc), description="Window start (ISO 8601)"
    )
    end: Optional[datetime] = Field(default=None, description="Window end (ISO 8601); now if omitted")


class MediaQuery(BaseModel):
    """Schema for media lookups."""

    media_type: str = Field(description="One of image, video, file")
    key: str = Field(description="32-character content hash or file-name prefix")


__all__ = ["Pagination", "KeyQuery", "MessageQuery", "MediaQuery"]
