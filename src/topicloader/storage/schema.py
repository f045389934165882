"""
Target schema for exported topics.

Six tables linked by foreign keys: profiles <- topics <- comments <- attachments,
topics <- polls <- poll_answers. Timestamps are unix seconds.
"""

import logging
from typing import Dict, List

from ..models.errors import SetupError
from .backends import Database

logger = logging.getLogger(__name__)

REQUIRED_TABLES = (
    "topics",
    "comments",
    "profiles",
    "polls",
    "poll_answers",
    "attachments",
)

SQLITE_SCHEMA = """
CREATE TABLE IF NOT EXISTS "profiles"
(
 "id"          INTEGER NOT NULL,
 "first_name"  TEXT NOT NULL,
 "last_name"   TEXT NOT NULL,
 "screen_name" TEXT NOT NULL,
 "photo"       TEXT NOT NULL,
 CONSTRAINT "PK_profiles" PRIMARY KEY ("id")
);

CREATE TABLE IF NOT EXISTS "topics"
(
 "id"          INTEGER NOT NULL,
 "title"       TEXT NOT NULL,
 "is_closed"   BOOLEAN NOT NULL,
 "is_fixed"    BOOLEAN NOT NULL,
 "created_at"  INTEGER NOT NULL,
 "updated_at"  INTEGER NOT NULL,
 "created_by"  INTEGER NOT NULL,
 "updated_by"  INTEGER NOT NULL,
 "deleted"     BOOLEAN NOT NULL DEFAULT 0,
 CONSTRAINT "PK_topics" PRIMARY KEY ("id"),
 CONSTRAINT "FK_topics_created_by" FOREIGN KEY ("created_by") REFERENCES "profiles" ("id") ON DELETE CASCADE,
 CONSTRAINT "FK_topics_updated_by" FOREIGN KEY ("updated_by") REFERENCES "profiles" ("id") ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS "idx_topics_created_by" ON "topics" ("created_by");

CREATE INDEX IF NOT EXISTS "idx_topics_updated_by" ON "topics" ("updated_by");

CREATE TABLE IF NOT EXISTS "comments"
(
 "id"           INTEGER NOT NULL,
 "from_id"      INTEGER NOT NULL,
 "date"         INTEGER NOT NULL,
 "text"         TEXT NOT NULL,
 "likes"        INTEGER NOT NULL,
 "reply_to_uid" INTEGER,
 "reply_to_cid" INTEGER,
 "topic_id"     INTEGER NOT NULL,
 "profile_id"   INTEGER NOT NULL,
 CONSTRAINT "PK_comments" PRIMARY KEY ("id"),
 CONSTRAINT "FK_comments_topic" FOREIGN KEY ("topic_id") REFERENCES "topics" ("id") ON DELETE CASCADE,
 CONSTRAINT "FK_comments_profile" FOREIGN KEY ("profile_id") REFERENCES "profiles" ("id") ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS "idx_comments_topic_id" ON "comments" ("topic_id");

CREATE INDEX IF NOT EXISTS "idx_comments_profile_id" ON "comments" ("profile_id");

CREATE TABLE IF NOT EXISTS "attachments"
(
 "content"    TEXT NOT NULL,
 "comment_id" INTEGER NOT NULL,
 PRIMARY KEY ("comment_id", "content"),
 CONSTRAINT "FK_attachments_comment" FOREIGN KEY ("comment_id") REFERENCES "comments" ("id") ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS "idx_attachments_comment_id" ON "attachments" ("comment_id");

CREATE TABLE IF NOT EXISTS "polls"
(
 "id"       INTEGER NOT NULL,
 "question" TEXT NOT NULL,
 "votes"    INTEGER NOT NULL,
 "multiple" BOOLEAN NOT NULL,
 "end_date" INTEGER NOT NULL,
 "closed"   BOOLEAN NOT NULL,
 "topic_id" INTEGER NOT NULL,
 CONSTRAINT "PK_polls" PRIMARY KEY ("id"),
 CONSTRAINT "FK_polls_topic" FOREIGN KEY ("topic_id") REFERENCES "topics" ("id") ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS "idx_polls_topic_id" ON "polls" ("topic_id");

CREATE TABLE IF NOT EXISTS "poll_answers"
(
 "id"      INTEGER NOT NULL,
 "text"    TEXT NOT NULL,
 "votes"   INTEGER NOT NULL,
 "rate"    REAL NOT NULL,
 "poll_id" INTEGER NOT NULL,
 CONSTRAINT "PK_poll_answers" PRIMARY KEY ("id"),
 CONSTRAINT "FK_poll_answers_poll" FOREIGN KEY ("poll_id") REFERENCES "polls" ("id") ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS "idx_poll_answers_poll_id" ON "poll_answers" ("poll_id");
"""


POSTGRES_SCHEMA = """
CREATE TABLE IF NOT EXISTS "profiles"
(
 "id"          BIGINT NOT NULL,
 "first_name"  TEXT NOT NULL,
 "last_name"   TEXT NOT NULL,
 "screen_name" TEXT NOT NULL,
 "photo"       TEXT NOT NULL,
 CONSTRAINT "PK_profiles" PRIMARY KEY ("id")
);

CREATE TABLE IF NOT EXISTS "topics"
(
 "id"          BIGINT NOT NULL,
 "title"       TEXT NOT NULL,
 "is_closed"   BOOLEAN NOT NULL,
 "is_fixed"    BOOLEAN NOT NULL,
 "created_at"  BIGINT NOT NULL,
 "updated_at"  BIGINT NOT NULL,
 "created_by"  BIGINT NOT NULL,
 "updated_by"  BIGINT NOT NULL,
 "deleted"     BOOLEAN NOT NULL DEFAULT FALSE,
 CONSTRAINT "PK_topics" PRIMARY KEY ("id"),
 CONSTRAINT "FK_topics_created_by" FOREIGN KEY ("created_by") REFERENCES "profiles" ("id") ON DELETE CASCADE,
 CONSTRAINT "FK_topics_updated_by" FOREIGN KEY ("updated_by") REFERENCES "profiles" ("id") ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS "idx_topics_created_by" ON "topics" ("created_by");

CREATE INDEX IF NOT EXISTS "idx_topics_updated_by" ON "topics" ("updated_by");

CREATE TABLE IF NOT EXISTS "comments"
(
 "id"           BIGINT NOT NULL,
 "from_id"      BIGINT NOT NULL,
 "date"         BIGINT NOT NULL,
 "text"         TEXT NOT NULL,
 "likes"        BIGINT NOT NULL,
 "reply_to_uid" BIGINT,
 "reply_to_cid" BIGINT,
 "topic_id"     BIGINT NOT NULL,
 "profile_id"   BIGINT NOT NULL,
 CONSTRAINT "PK_comments" PRIMARY KEY ("id"),
 CONSTRAINT "FK_comments_topic" FOREIGN KEY ("topic_id") REFERENCES "topics" ("id") ON DELETE CASCADE,
 CONSTRAINT "FK_comments_profile" FOREIGN KEY ("profile_id") REFERENCES "profiles" ("id") ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS "idx_comments_topic_id" ON "comments" ("topic_id");

CREATE INDEX IF NOT EXISTS "idx_comments_profile_id" ON "comments" ("profile_id");

CREATE TABLE IF NOT EXISTS "attachments"
(
 "content"    TEXT NOT NULL,
 "comment_id" BIGINT NOT NULL,
 PRIMARY KEY ("comment_id", "content"),
 CONSTRAINT "FK_attachments_comment" FOREIGN KEY ("comment_id") REFERENCES "comments" ("id") ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS "idx_attachments_comment_id" ON "attachments" ("comment_id");

CREATE TABLE IF NOT EXISTS "polls"
(
 "id"       BIGINT NOT NULL,
 "question" TEXT NOT NULL,
 "votes"    BIGINT NOT NULL,
 "multiple" BOOLEAN NOT NULL,
 "end_date" BIGINT NOT NULL,
 "closed"   BOOLEAN NOT NULL,
 "topic_id" BIGINT NOT NULL,
 CONSTRAINT "PK_polls" PRIMARY KEY ("id"),
 CONSTRAINT "FK_polls_topic" FOREIGN KEY ("topic_id") REFERENCES "topics" ("id") ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS "idx_polls_topic_id" ON "polls" ("topic_id");

CREATE TABLE IF NOT EXISTS "poll_answers"
(
 "id"      BIGINT NOT NULL,
 "text"    TEXT NOT NULL,
 "votes"   BIGINT NOT NULL,
 "rate"    DOUBLE PRECISION NOT NULL,
 "poll_id" BIGINT NOT NULL,
 CONSTRAINT "PK_poll_answers" PRIMARY KEY ("id"),
 CONSTRAINT "FK_poll_answers_poll" FOREIGN KEY ("poll_id") REFERENCES "polls" ("id") ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS "idx_poll_answers_poll_id" ON "poll_answers" ("poll_id");
"""

SCHEMAS: Dict[str, str] = {
    "sqlite": SQLITE_SCHEMA,
    "postgresql": POSTGRES_SCHEMA,
}


def schema_statements(dialect: str = "sqlite") -> List[str]:
    """Split the schema of one SQL dialect into individual statements."""
    try:
        schema = SCHEMAS[dialect]
    except KeyError:
        raise ValueError(f"No schema for SQL dialect '{dialect}'") from None
    return [q.strip() for q in schema.split(";") if q.strip()]


async def migrate_schema(database: Database) -> None:
    """Create every missing table and index in one transaction."""
    logger.info(f"Migrating database schema ({database.dialect})")

    try:
        async with database.transaction() as conn:
            for statement in schema_statements(database.dialect):
                await database.execute(conn, statement)
    except database.driver_errors as e:
        raise SetupError(f"error migrating database schema: {e}") from e


async def check_schema(database: Database) -> None:
    """
    Verify that every table the loader writes to exists.

    Raises:
        SetupError: Naming the first missing table
    """
    try:
        tables = set(await database.list_tables())
    except database.driver_errors as e:
        raise SetupError(f"could not list database tables: {e}") from e

    for table in REQUIRED_TABLES:
        if table not in tables:
            raise SetupError(f"table {table} missing")

    logger.debug("Database schema check passed")
