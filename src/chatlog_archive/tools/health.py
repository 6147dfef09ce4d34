"""
Health check tool for the chat archive.

Reports which stores are open and the coverage window of every message
shard, without reading any message content.
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

if TYPE_CHECKING:
    from ..datasource import ArchiveDataSource


async def health_tool(datasource: Optional["ArchiveDataSource"]) -> Dict[str, Any]:
    """
    Validate that the archive is open and describe its shards.

    Returns:
        Dict containing:
        - status: healthy or unhealthy
        - stores: open flag per single store
        - shards: file path and coverage window per message shard
        - errors
    """
    health: Dict[str, Any] = {
        "status": "unhealthy",
        "root_path": None,
        "stores": {},
        "shards": [],
        "errors": [],
    }

    if datasource is None:
        health["errors"].append("Archive is not open")
        return health

    health["root_path"] = str(datasource.root_path)
    health["stores"] = {
        "contact": bool(datasource.contact_db and datasource.contact_db.is_open),
        "session": bool(datasource.session_db and datasource.session_db.is_open),
        "media": bool(datasource.media_db and datasource.media_db.is_open),
    }
    health["shards"] = [info.model_dump(mode="json") for info in datasource.describe_shards()]

    for name, is_open in health["stores"].items():
        if not is_open:
            health["errors"].append(f"{name} store is not open")
    if not health["shards"]:
        health["errors"].append("No message shard is open")

    if not health["errors"]:
        health["status"] = "healthy"
    return health
