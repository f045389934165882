"""
Cascading topic writer.

Persists a topic and everything nested in it as one transaction. Every
statement is an upsert keyed by the entity identity, so writing the same
topic twice leaves the same rows behind. Rows missing from a newer document
are kept, never deleted.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, List, Tuple

from ..models.errors import WriteError
from ..models.outcome_models import Decision, OutcomeStatus
from ..models.topic_models import Profile, Topic
from .backends import Database

logger = logging.getLogger(__name__)

PROFILE_UPSERT = """
    INSERT INTO profiles (id, first_name, last_name, screen_name, photo)
    VALUES (?, ?, ?, ?, ?)
    ON CONFLICT (id) DO UPDATE SET
        first_name = excluded.first_name,
        last_name = excluded.last_name,
        screen_name = excluded.screen_name,
        photo = excluded.photo
"""

TOPIC_UPSERT = """
    INSERT INTO topics (
        id, title, is_closed, is_fixed, created_at, updated_at,
        created_by, updated_by, deleted
    )
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, FALSE)
    ON CONFLICT (id) DO UPDATE SET
        title = excluded.title,
        is_closed = excluded.is_closed,
        is_fixed = excluded.is_fixed,
        created_at = excluded.created_at,
        updated_at = excluded.updated_at,
        created_by = excluded.created_by,
        updated_by = excluded.updated_by
"""

COMMENT_UPSERT = """
    INSERT INTO comments (
        id, from_id, date, text, likes, reply_to_uid, reply_to_cid,
        topic_id, profile_id
    )
    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT (id) DO UPDATE SET
        from_id = excluded.from_id,
        date = excluded.date,
        text = excluded.text,
        likes = excluded.likes,
        reply_to_uid = excluded.reply_to_uid,
        reply_to_cid = excluded.reply_to_cid,
        profile_id = excluded.profile_id
"""

ATTACHMENT_UPSERT = """
    INSERT INTO attachments (content, comment_id)
    VALUES (?, ?)
    ON CONFLICT (comment_id, content) DO NOTHING
"""

POLL_UPSERT = """
    INSERT INTO polls (id, question, votes, multiple, end_date, closed, topic_id)
    VALUES (?, ?, ?, ?, ?, ?, ?)
    ON CONFLICT (id) DO UPDATE SET
        question = excluded.question,
        votes = excluded.votes,
        multiple = excluded.multiple,
        end_date = excluded.end_date,
        closed = excluded.closed
"""

POLL_ANSWER_UPSERT = """
    INSERT INTO poll_answers (id, text, votes, rate, poll_id)
    VALUES (?, ?, ?, ?, ?)
    ON CONFLICT (id) DO UPDATE SET
        text = excluded.text,
        votes = excluded.votes,
        rate = excluded.rate
"""


def collect_profiles(topic: Topic) -> Dict[int, Profile]:
    """
    Every profile the topic rows reference.

    Exports occasionally leave the creator or the last updater out of the
    participant map; they are added from the topic itself in that case.
    """
    profiles = dict(topic.profiles)

    for profile in (topic.created_by, topic.updated_by):
        if profile.id not in profiles:
            logger.debug(f"Topic {topic.id}: adding profile {profile.id} missing from participants")
            profiles[profile.id] = profile

    return profiles


class TopicWriter:
    """Writes approved topics in foreign key order inside one transaction."""

    def __init__(self, database: Database):
        self.database = database

    def _write_steps(
        self,
    ) -> List[Tuple[str, Callable[[Any, Topic], Awaitable[None]]]]:
        # Referenced rows always come before the rows referencing them
        return [
            ("profiles", self._write_profiles),
            ("topic", self._write_topic),
            ("comments", self._write_comments),
            ("attachments", self._write_attachments),
            ("poll", self._write_poll),
            ("poll_answers", self._write_poll_answers),
        ]

    async def write(self, topic: Topic, decision: Decision) -> OutcomeStatus:
        """
        Persist a topic approved by the staleness check.

        Args:
            topic: Decoded topic document
            decision: CREATE or UPDATE, as resolved against the stored version

        Returns:
            OutcomeStatus.CREATED or OutcomeStatus.UPDATED

        Raises:
            WriteError: If any statement fails; nothing of the topic is persisted
        """
        if not decision.requires_write:
            raise ValueError(f"Decision {decision.value} does not allow a write")

        step = "begin"
        try:
            async with self.database.transaction() as conn:
                for step, handler in self._write_steps():
                    await handler(conn, topic)
                step = "commit"
        except Exception as e:
            verb = "create" if decision == Decision.CREATE else "update"
            raise WriteError(
                f"could not {verb} topic {topic.id} ({step}): {e}",
                topic_id=topic.id,
                original_error=e,
                step=step,
            ) from e

        if decision == Decision.CREATE:
            return OutcomeStatus.CREATED
        return OutcomeStatus.UPDATED

    async def _write_profiles(self, conn: Any, topic: Topic) -> None:
        await self.database.executemany(
            conn,
            PROFILE_UPSERT,
            [
                (p.id, p.first_name, p.last_name, p.screen_name, p.photo)
                for p in sorted(collect_profiles(topic).values(), key=lambda p: p.id)
            ],
        )

    async def _write_topic(self, conn: Any, topic: Topic) -> None:
        await self.database.execute(
            conn,
            TOPIC_UPSERT,
            (
                topic.id,
                topic.title,
                topic.is_closed,
                topic.is_fixed,
                topic.created_at,
                topic.updated_at,
                topic.created_by.id,
                topic.updated_by.id,
            ),
        )

    async def _write_comments(self, conn: Any, topic: Topic) -> None:
        await self.database.executemany(
            conn,
            COMMENT_UPSERT,
            [
                (
                    c.id,
                    c.from_id,
                    c.date,
                    c.text,
                    c.likes,
                    c.reply_to_uid,
                    c.reply_to_cid,
                    topic.id,
                    c.from_id,
                )
                for c in topic.comments
            ],
        )

    async def _write_attachments(self, conn: Any, topic: Topic) -> None:
        await self.database.executemany(
            conn,
            ATTACHMENT_UPSERT,
            [
                (content, comment.id)
                for comment in topic.comments
                for content in comment.attachments
            ],
        )

    async def _write_poll(self, conn: Any, topic: Topic) -> None:
        poll = topic.poll
        if poll is None:
            return

        await self.database.execute(
            conn,
            POLL_UPSERT,
            (
                poll.id,
                poll.question,
                poll.votes,
                poll.multiple,
                poll.end_date,
                poll.closed,
                topic.id,
            ),
        )

    async def _write_poll_answers(self, conn: Any, topic: Topic) -> None:
        poll = topic.poll
        if poll is None:
            return

        await self.database.executemany(
            conn,
            POLL_ANSWER_UPSERT,
            [(a.id, a.text, a.votes, a.rate, poll.id) for a in poll.answers],
        )
