#!/usr/bin/env python3
"""
Chatlog Archive MCP Server.

Serves read-only queries over a local time-sharded chat archive on the stdio
transport.
"""

import asyncio
import logging
import sys
from typing import Optional

# MCP SDK imports
from mcp.server.fastmcp import FastMCP

# Local imports
from chatlog_archive.config import Config, load_config
from chatlog_archive.datasource import ArchiveDataSource
from chatlog_archive.errors import ArchiveError
from chatlog_archive.tools.contacts import chat_rooms_tool, contacts_tool
from chatlog_archive.tools.health import health_tool
from chatlog_archive.tools.media import media_tool
from chatlog_archive.tools.messages import messages_tool
from chatlog_archive.tools.sessions import sessions_tool

logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("Chatlog Archive")

# Global instances
config: Optional[Config] = None
datasource: Optional[ArchiveDataSource] = None


@mcp.tool()
async def chatlog_health():
    """Report open stores and the time window covered by each message shard."""
    return await health_tool(datasource)


@mcp.tool()
async def chatlog_messages(
    conversation_id: str,
    start: Optional[str] = None,
    end: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
):
    """Get a conversation's messages between two ISO 8601 timestamps."""
    return await messages_tool(datasource, conversation_id, start, end, limit, offset)


@mcp.tool()
async def chatlog_contacts(key: str = "", limit: int = 50, offset: int = 0):
    """List contacts, or find contacts whose id, alias, remark or nickname equals key."""
    return await contacts_tool(datasource, key, limit, offset)


@mcp.tool()
async def chatlog_chat_rooms(key: str = "", limit: int = 50, offset: int = 0):
    """List chat rooms, or resolve one by id or matching contact."""
    return await chat_rooms_tool(datasource, key, limit, offset)


@mcp.tool()
async def chatlog_sessions(key: str = "", limit: int = 50, offset: int = 0):
    """List recent sessions, most recent first."""
    return await sessions_tool(datasource, key, limit, offset)


@mcp.tool()
async def chatlog_media(media_type: str, key: str):
    """Resolve an image, video or file key to its stored reference."""
    return await media_tool(datasource, media_type, key)


def configure_logging(cfg: Config) -> None:
    logging.basicConfig(
        level=getattr(logging, cfg.logging.level.upper(), logging.INFO),
        format=cfg.logging.format,
        handlers=[logging.StreamHandler(sys.stderr)],
    )


async def startup():
    """Initialize server resources on startup."""
    global config, datasource

    logger.info("Starting Chatlog Archive MCP Server...")

    config = load_config()
    logger.info(f"Loaded configuration: {config}")

    try:
        datasource = await ArchiveDataSource.open(config.get_data_dir(), config)
        logger.info(f"Archive opened with {len(datasource.catalog)} message shard(s)")
    except ArchiveError as e:
        logger.error(f"Failed to open archive: {e}")
        # Continue anyway - tools report the archive as unavailable

    logger.info("Server startup complete")


async def shutdown():
    """Clean up resources on shutdown."""
    global datasource

    logger.info("Shutting down Chatlog Archive MCP Server...")

    if datasource is not None:
        try:
            await datasource.close()
        except ArchiveError as e:
            logger.error(f"Error closing archive: {e}")
        datasource = None

    logger.info("Server shutdown complete")


def main():
    """Main entry point for the server."""
    configure_logging(load_config())
    try:
        asyncio.run(startup())

        logger.info("Starting MCP server on stdio transport...")
        mcp.run(transport="stdio")
    except KeyboardInterrupt:
        logger.info("Server interrupted by user")
    except Exception as e:
        logger.error(f"Server error: {e}", exc_info=True)
    finally:
        asyncio.run(shutdown())


if __name__ == "__main__":
    main()
