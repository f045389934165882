"""
Shared fixtures for topicloader tests.
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio

from topicloader.storage.database import TopicDatabase
from topicloader.storage.schema import migrate_schema


def make_profile(profile_id: int, name: str = "User") -> Dict[str, Any]:
    return {
        "id": profile_id,
        "first_name": name,
        "last_name": f"Number{profile_id}",
        "screen_name": f"user{profile_id}",
        "photo": f"https://example.com/photo/{profile_id}.jpg",
    }


def make_comment(
    comment_id: int,
    from_id: int = 7,
    text: str = "First!",
    attachments: Optional[List[Any]] = None,
    reply_to_uid: int = 0,
    reply_to_cid: int = 0,
) -> Dict[str, Any]:
    return {
        "id": comment_id,
        "from_id": from_id,
        "date": 1500000000 + comment_id,
        "text": text,
        "likes": 3,
        "reply_to_uid": reply_to_uid,
        "reply_to_cid": reply_to_cid,
        "attachments": attachments or [],
    }


def make_poll(poll_id: int = 500, answers: int = 2) -> Dict[str, Any]:
    return {
        "id": poll_id,
        "question": "Tabs or spaces?",
        "votes": 30,
        "multiple": False,
        "end_date": 0,
        "closed": False,
        "answers": [
            {"id": poll_id * 10 + i, "text": f"Answer {i}", "votes": 10 + i, "rate": 33.3 + i}
            for i in range(answers)
        ],
    }


def make_topic_data(
    topic_id: int = 1,
    updated_at: int = 100,
    title: str = "Hi",
    comments: Optional[List[Dict[str, Any]]] = None,
    poll: Optional[Dict[str, Any]] = None,
    creator_id: int = 7,
    updater_id: int = 7,
    participants: Optional[List[int]] = None,
) -> Dict[str, Any]:
    """Build an exported topic document as the exporter writes it."""
    if comments is None:
        comments = [make_comment(topic_id * 10)]
    if participants is None:
        participants = sorted({creator_id, updater_id} | {c["from_id"] for c in comments})

    return {
        "id": topic_id,
        "title": title,
        "is_closed": False,
        "is_fixed": False,
        "created_at": 50,
        "updated_at": updated_at,
        "created_by": make_profile(creator_id),
        "updated_by": make_profile(updater_id),
        "profiles": {str(pid): make_profile(pid) for pid in participants},
        "comments": comments,
        "poll": poll,
    }


def write_document(folder: Path, name: str, data: Any) -> Path:
    """Write a topic export file and return its path."""
    path = folder / name
    if isinstance(data, (bytes, str)):
        path.write_bytes(data if isinstance(data, bytes) else data.encode("utf-8"))
    else:
        path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def topic_data():
    return make_topic_data()


@pytest.fixture
def documents_folder(tmp_path):
    folder = tmp_path / "backup"
    folder.mkdir()
    return folder


@pytest_asyncio.fixture
async def database(tmp_path):
    """Initialized database with every table created."""
    db = TopicDatabase(tmp_path / "topics.db", timeout=5.0, max_connections=4)
    await db.initialize()
    await migrate_schema(db)
    yield db
    await db.close()


async def fetch_all(db: TopicDatabase, query: str, params: tuple = ()) -> List[tuple]:
    async with db.connection() as conn:
        async with conn.execute(query, params) as cursor:
            return [tuple(row) for row in await cursor.fetchall()]


async def snapshot(db: TopicDatabase) -> Dict[str, List[tuple]]:
    """Every row of every table, in a stable order."""
    tables = ["profiles", "topics", "comments", "attachments", "polls", "poll_answers"]
    return {
        table: await fetch_all(db, f'SELECT * FROM "{table}" ORDER BY 1, 2')
        for table in tables
    }
