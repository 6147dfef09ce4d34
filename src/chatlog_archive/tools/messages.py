"""
Message retrieval tool for the chat archive.

Returns a conversation's messages for a time window, merged across shards.
"""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional

from pydantic import ValidationError

from ..errors import ArchiveError
from . import MessageQuery
from .base import create_error_response, create_unavailable_error, is_available

if TYPE_CHECKING:
    from ..datasource import ArchiveDataSource

logger = logging.getLogger(__name__)


async def messages_tool(
    datasource: Optional["ArchiveDataSource"],
    conversation_id: str,
    start: Optional[str] = None,
    end: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> Dict[str, Any]:
    """
    Get a conversation's messages between two timestamps.

    Args:
        datasource: Opened archive
        conversation_id: Talker or chat-room id
        start: ISO 8601 window start; beginning of time if omitted
        end: ISO 8601 window end; now if omitted
        limit: Maximum messages to return (0 for all)
        offset: Messages to skip

    Returns:
        Dict containing:
        - messages ordered by sequence number
        - per-shard report (scanned, empty, skipped with reason)
        - partial flag when a shard was skipped
    """
    if not is_available(datasource):
        return create_unavailable_error()

    try:
        params: Dict[str, Any] = {
            "conversation_id": conversation_id,
            "end": end,
            "limit": limit,
            "offset": offset,
        }
        if start:
            params["start"] = start
        query = MessageQuery(**params)

        end_time: datetime = query.end or datetime.now(timezone.utc)
        result = await datasource.get_messages(
            query.start, end_time, query.conversation_id, query.limit, query.offset
        )
    except (ArchiveError, ValidationError) as e:
        logger.info(f"messages_tool failed for {conversation_id!r}: {e}")
        return create_error_response(e)

    data = result.model_dump(mode="json")
    data["count"] = len(result.messages)
    data["partial"] = result.is_partial
    return data
