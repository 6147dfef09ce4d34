"""
Message queries across time-sharded stores.

A conversation's messages live in one ``Msg_<md5>`` table per shard. A query
resolves the shards overlapping the requested window, scans each in time
order and merges the results into one sequence ordered by ``sort_seq``.

A shard that fails during a multi-shard query is skipped and reported in the
result's shard report; the query still returns what the other shards produced.
"""

import asyncio
import logging
from datetime import datetime
from typing import List, Optional, Union

from .db import paginate
from .errors import (
    InvalidArgument,
    NotFound,
    QueryCancelled,
    QueryFailure,
    ScanFailure,
)
from .models import Message, MessageQueryResult, ShardScan, ShardStatus, decode_rows
from .naming import message_table_name
from .shards import Shard, ShardCatalog, as_utc

logger = logging.getLogger(__name__)

MESSAGE_QUERY = """
    SELECT m.sort_seq, m.local_type, n.user_name, m.create_time,
           m.message_content, m.packed_info_data, m.status
    FROM {table} m
    LEFT JOIN Name2Id n ON m.real_sender_id = n.rowid
    WHERE m.create_time >= ? AND m.create_time <= ?
    ORDER BY m.sort_seq ASC
"""


class MessageQueryEngine:
    """Resolves, scans and merges message shards for one conversation."""

    def __init__(
        self,
        catalog: ShardCatalog,
        event_logger: Optional[Union[logging.Logger, logging.LoggerAdapter]] = None,
    ):
        self.catalog = catalog
        self.log = event_logger or logger

    async def get_messages(
        self,
        start_time: datetime,
        end_time: datetime,
        conversation_id: str,
        limit: int = 0,
        offset: int = 0,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> MessageQueryResult:
        """Get a conversation's messages within ``[start_time, end_time]``.

        Args:
            start_time: Window start (naive values are local time)
            end_time: Window end
            conversation_id: Talker or chat-room id
            limit: Maximum messages to return; 0 or less returns everything
            offset: Messages to skip before the first returned one
            cancel_event: Checked before each shard of a multi-shard scan

        Returns:
            MessageQueryResult with messages ordered by sequence number and one
            report entry per visited shard

        Raises:
            InvalidArgument: empty conversation id
            NotFound: no shard covers the window
            QueryCancelled: cancel_event was set at a shard boundary
            QueryFailure: single-shard scan failed
        """
        if not conversation_id:
            raise InvalidArgument("conversation id required")

        shards = self.catalog.overlapping(start_time, end_time)
        if not shards:
            raise NotFound(
                "no data for time range",
                {"start": start_time.isoformat(), "end": end_time.isoformat()},
            )

        offset = max(offset, 0)
        start_ts = int(as_utc(start_time).timestamp())
        end_ts = int(as_utc(end_time).timestamp())
        table = message_table_name(conversation_id)

        if len(shards) == 1:
            # a single ordered scan is already globally ordered
            return await self._query_single(
                shards[0], table, start_ts, end_ts, conversation_id, limit, offset
            )

        return await self._query_many(
            shards, table, start_ts, end_ts, conversation_id, limit, offset, cancel_event
        )

    async def _query_single(
        self,
        shard: Shard,
        table: str,
        start_ts: int,
        end_ts: int,
        conversation_id: str,
        limit: int,
        offset: int,
    ) -> MessageQueryResult:
        if not await shard.handle.table_exists(table):
            return MessageQueryResult(
                shards=[ShardScan(file_path=str(shard.file_path), status=ShardStatus.EMPTY)]
            )

        messages = await self._scan(
            shard, table, start_ts, end_ts, conversation_id, limit, offset
        )

        return MessageQueryResult(
            messages=messages,
            shards=[
                ShardScan(
                    file_path=str(shard.file_path),
                    status=ShardStatus.SCANNED,
                    rows=len(messages),
                )
            ],
        )

    async def _query_many(
        self,
        shards: List[Shard],
        table: str,
        start_ts: int,
        end_ts: int,
        conversation_id: str,
        limit: int,
        offset: int,
        cancel_event: Optional[asyncio.Event],
    ) -> MessageQueryResult:
        gathered: List[Message] = []
        report: List[ShardScan] = []

        for shard in shards:
            if cancel_event is not None and cancel_event.is_set():
                raise QueryCancelled(
                    "message query cancelled", {"conversation_id": conversation_id}
                )

            path = str(shard.file_path)
            try:
                if not await shard.handle.table_exists(table):
                    report.append(ShardScan(file_path=path, status=ShardStatus.EMPTY))
                    continue
                messages = await self._scan(shard, table, start_ts, end_ts, conversation_id)
            except (QueryFailure, ScanFailure) as e:
                self.log.warning(
                    f"Skipping shard {path} for {conversation_id}: {e}",
                    extra={"shard": path, "conversation_id": conversation_id},
                )
                report.append(ShardScan(file_path=path, status=ShardStatus.SKIPPED, reason=str(e)))
                continue

            gathered.extend(messages)
            report.append(ShardScan(file_path=path, status=ShardStatus.SCANNED, rows=len(messages)))

            if limit + offset > 0 and len(gathered) >= limit + offset:
                break

        # sequence numbers may interleave across shard boundaries
        gathered.sort(key=lambda message: message.sequence_number)

        if limit > 0:
            if offset >= len(gathered):
                return MessageQueryResult(shards=report)
            gathered = gathered[offset : offset + limit]

        return MessageQueryResult(messages=gathered, shards=report)

    async def _scan(
        self,
        shard: Shard,
        table: str,
        start_ts: int,
        end_ts: int,
        conversation_id: str,
        limit: int = 0,
        offset: int = 0,
    ) -> List[Message]:
        query, params = paginate(MESSAGE_QUERY.format(table=table), [start_ts, end_ts], limit, offset)
        rows = await shard.handle.execute_query(query, params)
        return decode_rows(rows, lambda row: Message.from_row(row, conversation_id))
