#!/usr/bin/env python3
"""
Tests for the MCP tool layer and server wiring.
"""

import asyncio

import pytest

from chatlog_archive.errors import InvalidArgument, NotFound, QueryCancelled
from chatlog_archive.datasource import ArchiveDataSource
from chatlog_archive.tools.base import create_error_response, error_type_for, is_available
from chatlog_archive.tools.contacts import chat_rooms_tool, contacts_tool
from chatlog_archive.tools.health import health_tool
from chatlog_archive.tools.media import media_tool
from chatlog_archive.tools.messages import messages_tool
from chatlog_archive.tools.sessions import sessions_tool

from conftest import IMG_KEY


class TestErrorResponses:
    """Test the shared error format."""

    def test_error_type_names(self):
        assert error_type_for(InvalidArgument("x")) == "invalid_argument"
        assert error_type_for(NotFound("x")) == "not_found"
        assert error_type_for(QueryCancelled("x")) == "query_cancelled"
        assert error_type_for(RuntimeError("x")) == "unknown_error"

    def test_create_error_response(self):
        response = create_error_response(NotFound("media not found"))
        assert response == {"error": "media not found", "error_type": "not_found"}


class TestTools:
    """Test tool functions against an opened archive."""

    @pytest.mark.asyncio
    async def test_messages(self, datasource):
        result = await messages_tool(
            datasource, "wxid_bob", start="2023-01-01T00:00:00Z", limit=3
        )

        assert result["count"] == 3
        assert [m["sequence_number"] for m in result["messages"]] == [10, 20, 30]
        assert result["partial"] is False
        assert result["messages"][0]["packed_info"] == "CAE="

    @pytest.mark.asyncio
    async def test_messages_error(self, datasource):
        result = await messages_tool(datasource, "")
        assert result["error_type"] == "invalid_argument"

        result = await messages_tool(
            datasource, "wxid_bob", start="2000-01-01T00:00:00Z", end="2000-02-01T00:00:00Z"
        )
        assert result["error_type"] == "not_found"

    @pytest.mark.asyncio
    async def test_messages_bad_timestamp(self, datasource):
        result = await messages_tool(datasource, "wxid_bob", start="yesterday-ish")
        assert result["error_type"] == "invalid_argument"

    @pytest.mark.asyncio
    async def test_negative_limit_rejected(self, datasource):
        result = await contacts_tool(datasource, limit=-1)
        assert result["error_type"] == "invalid_argument"

    @pytest.mark.asyncio
    async def test_contacts_and_rooms(self, datasource):
        contacts = await contacts_tool(datasource, "bob")
        assert contacts["count"] == 4

        rooms = await chat_rooms_tool(datasource, "alice")
        assert rooms["chat_rooms"][0]["id"] == "alice@chatroom"
        assert rooms["chat_rooms"][0]["members"] == []

    @pytest.mark.asyncio
    async def test_sessions(self, datasource):
        sessions = await sessions_tool(datasource, limit=1)
        assert [s["id"] for s in sessions["sessions"]] == ["12345@chatroom"]

    @pytest.mark.asyncio
    async def test_media(self, datasource):
        result = await media_tool(datasource, "image", IMG_KEY)
        assert result["media"]["name"] == f"{IMG_KEY}.dat"
        assert result["media"]["media_type"] == "image"

        result = await media_tool(datasource, "image", "short")
        assert result["error_type"] == "invalid_argument"

    @pytest.mark.asyncio
    async def test_health(self, datasource):
        health = await health_tool(datasource)

        assert health["status"] == "healthy"
        assert health["stores"] == {"contact": True, "session": True, "media": True}
        assert len(health["shards"]) == 3
        assert health["errors"] == []

    @pytest.mark.asyncio
    async def test_unavailable_archive(self):
        assert (await contacts_tool(None))["error_type"] == "archive_unavailable"
        assert (await messages_tool(None, "wxid_bob"))["error_type"] == "archive_unavailable"

        health = await health_tool(None)
        assert health["status"] == "unhealthy"

    @pytest.mark.asyncio
    async def test_closed_archive_is_unavailable(self, archive_dir):
        source = await ArchiveDataSource.open(archive_dir)
        assert is_available(source)
        await source.close()

        assert not is_available(source)
        assert (await contacts_tool(source))["error_type"] == "archive_unavailable"
        assert (await messages_tool(source, "wxid_bob"))["error_type"] == "archive_unavailable"


class TestServer:
    """Test server registration and lifecycle."""

    def test_tools_registered(self):
        from chatlog_archive import main

        tools = asyncio.run(main.mcp.list_tools())
        names = {tool.name for tool in tools}
        assert {
            "chatlog_health",
            "chatlog_messages",
            "chatlog_contacts",
            "chatlog_chat_rooms",
            "chatlog_sessions",
            "chatlog_media",
        } <= names

    @pytest.mark.asyncio
    async def test_startup_and_shutdown(self, archive_dir, monkeypatch):
        from chatlog_archive import main

        monkeypatch.setenv("CHATLOG_DATA_DIR", str(archive_dir))
        monkeypatch.chdir(archive_dir)

        await main.startup()
        try:
            assert main.datasource is not None
            result = await main.chatlog_contacts("bob")
            assert result["count"] == 4
        finally:
            await main.shutdown()

        assert main.datasource is None

    @pytest.mark.asyncio
    async def test_startup_without_archive(self, tmp_path, monkeypatch):
        from chatlog_archive import main

        monkeypatch.setenv("CHATLOG_DATA_DIR", str(tmp_path / "missing"))
        monkeypatch.chdir(tmp_path)

        await main.startup()
        assert main.datasource is None
        result = await main.chatlog_sessions()
        assert result["error_type"] == "archive_unavailable"
        await main.shutdown()
