"""Pytest configuration and fixtures for chatlog archive tests."""

import hashlib
import sqlite3
from pathlib import Path
from typing import Dict, List, Tuple

import pytest
import pytest_asyncio

from chatlog_archive.datasource import ArchiveDataSource

# Shard anchors (Unix seconds, UTC)
T0 = 1672531200  # 2023-01-01
T1 = 1704067200  # 2024-01-01
T2 = 1735689600  # 2025-01-01

HOUR = 3600

IMG_KEY = "0123456789abcdef0123456789abcdef"
IMG_KEY_REVERSED = "fedcba9876543210fedcba9876543210"
IMG_THUMB_ONLY = "aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa"
VIDEO_KEY = "bbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb"
FILE_KEY = "cccccccccccccccccccccccccccccccc"

# (sort_seq, create_time, real_sender_id, content)
MessageRow = Tuple[int, int, int, str]

NAME2ID = [(1, "wxid_alice"), (2, "wxid_me"), (3, "wxid_bob")]

SHARD_MESSAGES: Dict[int, Dict[str, List[MessageRow]]] = {
    T0: {
        "wxid_bob": [(10, T0 + HOUR, 3, "bob 1"), (20, T0 + 2 * HOUR, 2, "bob 2")],
        "wxid_carol": [(500, T0 + HOUR, 2, "carol late seq"), (600, T0 + 2 * HOUR, 2, "carol later seq")],
    },
    T1: {
        "wxid_alice": [
            (1001, T1 + HOUR, 1, "hi"),
            (1002, T1 + 2 * HOUR, 2, "hello"),
            (1003, T1 + 3 * HOUR, 999, "who am I"),
            (1004, T1 + 4 * HOUR, 1, "lunch?"),
            (1005, T1 + 5 * HOUR, 2, "sure"),
        ],
        "wxid_bob": [(30, T1 + HOUR, 3, "bob 3"), (40, T1 + 2 * HOUR, 2, "bob 4")],
        "wxid_carol": [(100, T1 + HOUR, 2, "carol early seq"), (200, T1 + 2 * HOUR, 2, "carol earlier")],
    },
    T2: {
        "wxid_bob": [(50, T2 + HOUR, 3, "bob 5")],
        "12345@chatroom": [(7, T2 + HOUR, 1, "room hello")],
    },
}


def message_table(conversation_id: str) -> str:
    return "Msg_" + hashlib.md5(conversation_id.encode()).hexdigest()


def create_message_shard(
    path: Path,
    anchor: int = None,
    conversations: Dict[str, List[MessageRow]] = None,
) -> Path:
    """Create a message shard; ``anchor=None`` leaves out the Timestamp table."""
    conn = sqlite3.connect(path)
    cursor = conn.cursor()

    if anchor is not None:
        cursor.execute("CREATE TABLE Timestamp (timestamp INTEGER)")
        cursor.execute("INSERT INTO Timestamp (timestamp) VALUES (?)", (anchor,))

    cursor.execute("CREATE TABLE Name2Id (user_name TEXT)")
    cursor.executemany("INSERT INTO Name2Id (rowid, user_name) VALUES (?, ?)", NAME2ID)

    for conversation_id, rows in (conversations or {}).items():
        table = message_table(conversation_id)
        cursor.execute(
            f"""CREATE TABLE {table} (
                local_id INTEGER PRIMARY KEY,
                sort_seq INTEGER,
                local_type INTEGER,
                real_sender_id INTEGER,
                create_time INTEGER,
                message_content TEXT,
                packed_info_data BLOB,
                status INTEGER
            )"""
        )
        for seq, create_time, sender, content in rows:
            cursor.execute(
                f"""INSERT INTO {table}
                (sort_seq, local_type, real_sender_id, create_time, message_content,
                 packed_info_data, status)
                VALUES (?, 1, ?, ?, ?, ?, 2)""",
                (seq, sender, create_time, content, b"\x08\x01"),
            )

    conn.commit()
    conn.close()
    return path


def create_contact_store(path: Path) -> Path:
    conn = sqlite3.connect(path)
    cursor = conn.cursor()
    cursor.executescript("""
        CREATE TABLE contact (
            username TEXT PRIMARY KEY,
            local_type INTEGER,
            alias TEXT,
            remark TEXT,
            nick_name TEXT
        );

        CREATE TABLE chat_room (
            username TEXT PRIMARY KEY,
            owner TEXT,
            ext_buffer BLOB
        );
    """)

    contacts = [
        ("wxid_alice", 1, "alice_w", "Alice W", "Ali"),
        ("wxid_bob", 1, "bob", "", "Bobby B"),
        ("wxid_bobby", 1, "", "", "bob"),
        ("bob", 1, "", "", ""),
        ("wxid_rob", 1, "", "bob", "Rob"),
        ("wxid_bobcat", 1, "bobcat", "", ""),
        ("12345@chatroom", 2, "", "", "Family"),
        ("alice@chatroom", 2, "alice", "", ""),
        ("team@chatroom", 2, "", "", "Team"),
    ]
    cursor.executemany("INSERT INTO contact VALUES (?, ?, ?, ?, ?)", contacts)

    rooms = [
        ("12345@chatroom", "wxid_alice", b"\x0a\x02"),
        ("team@chatroom", "wxid_bob", None),
    ]
    cursor.executemany("INSERT INTO chat_room VALUES (?, ?, ?)", rooms)

    conn.commit()
    conn.close()
    return path


def create_session_store(path: Path) -> Path:
    conn = sqlite3.connect(path)
    cursor = conn.cursor()
    cursor.execute("""
        CREATE TABLE SessionTable (
            username TEXT PRIMARY KEY,
            summary TEXT,
            last_timestamp INTEGER,
            last_msg_sender TEXT,
            last_sender_display_name TEXT,
            sort_timestamp INTEGER
        )
    """)
    sessions = [
        ("wxid_alice", "sure", T1 + 5 * HOUR, "wxid_me", "Alice", 300),
        ("12345@chatroom", "room hello", T2 + HOUR, "wxid_bob", "Bob", 500),
        ("wxid_bob", "bob 5", T2 + HOUR, "wxid_bob", "Bob", 100),
        ("wxid_carol", "carol", T1 + 2 * HOUR, "wxid_me", "Carol", 200),
    ]
    cursor.executemany("INSERT INTO SessionTable VALUES (?, ?, ?, ?, ?, ?)", sessions)
    conn.commit()
    conn.close()
    return path


def create_media_store(path: Path) -> Path:
    conn = sqlite3.connect(path)
    cursor = conn.cursor()
    cursor.execute("CREATE TABLE dir2id (username TEXT)")
    cursor.executemany(
        "INSERT INTO dir2id (rowid, username) VALUES (?, ?)",
        [(1, "wxid_alice"), (2, "2024-01")],
    )
    for kind in ("image", "video", "file"):
        cursor.execute(
            f"""CREATE TABLE {kind}_hardlink_info_v3 (
                md5 TEXT,
                file_name TEXT,
                file_size INTEGER,
                modify_time INTEGER,
                dir1 INTEGER,
                dir2 INTEGER
            )"""
        )

    images = [
        (IMG_KEY, f"{IMG_KEY}_t.dat", 100, T1, 1, 2),
        (IMG_KEY, f"{IMG_KEY}.dat", 2000, T1, 1, 2),
        (IMG_KEY, f"{IMG_KEY}_h.dat", 4000, T1, 1, 2),
        (IMG_KEY_REVERSED, f"{IMG_KEY_REVERSED}.dat", 2000, T1, 1, 2),
        (IMG_KEY_REVERSED, f"{IMG_KEY_REVERSED}_t.dat", 100, T1, 1, 2),
        (IMG_THUMB_ONLY, f"{IMG_THUMB_ONLY}_t.dat", 100, T1, 1, 2),
        (IMG_THUMB_ONLY, f"{IMG_THUMB_ONLY}_t2.dat", 120, T1, 1, 99),
    ]
    cursor.executemany("INSERT INTO image_hardlink_info_v3 VALUES (?, ?, ?, ?, ?, ?)", images)

    videos = [
        (VIDEO_KEY, f"{VIDEO_KEY}.mp4", 9000, T1, 1, 2),
        (VIDEO_KEY, f"{VIDEO_KEY}_thumb.jpg", 300, T1, 1, 2),
    ]
    cursor.executemany("INSERT INTO video_hardlink_info_v3 VALUES (?, ?, ?, ?, ?, ?)", videos)

    files = [
        ("dddddddddddddddddddddddddddddddd", f"{FILE_KEY}.pdf", 512, T2, 1, 2),
    ]
    cursor.executemany("INSERT INTO file_hardlink_info_v3 VALUES (?, ?, ?, ?, ?, ?)", files)

    conn.commit()
    conn.close()
    return path


def build_archive(root: Path) -> Path:
    """Build a complete archive with three message shards."""
    root.mkdir(parents=True, exist_ok=True)
    for i, anchor in enumerate(sorted(SHARD_MESSAGES)):
        create_message_shard(root / f"message_{i}.db", anchor, SHARD_MESSAGES[anchor])
    create_contact_store(root / "contact.db")
    create_session_store(root / "session.db")
    create_media_store(root / "hardlink.db")
    return root


@pytest.fixture
def archive_dir(tmp_path):
    """Temporary archive directory with every store present."""
    return build_archive(tmp_path / "db_storage")


@pytest_asyncio.fixture
async def datasource(archive_dir):
    """Opened data source over the temporary archive."""
    source = await ArchiveDataSource.open(archive_dir)
    yield source
    await source.close()
