"""SQLite schema and initialization for the durable store.

Only tasks and command history are persisted; the other entity kinds
live in process memory for the lifetime of the store.

Tables:
- tasks: Task records with priority, completion flag and optional due date
- command_history: One row per processed command

Timestamps are stored as ISO 8601 UTC text with a fixed microsecond
layout, so lexical ORDER BY matches chronological order.

Usage:
    from zoya.db.models import init_database

    # Initialize database (creates tables if not exist)
    await init_database("data/zoya.db")
"""

import stat
from datetime import UTC, datetime
from pathlib import Path

import aiosqlite

from zoya.core.errors import StorageUnavailableError
from zoya.core.logging import get_logger
from zoya.core.timestamps import ensure_utc

logger = get_logger(__name__)

# Schema version for migrations (increment when schema changes)
SCHEMA_VERSION = 1

REQUIRED_TABLES = ("tasks", "command_history")

# SQL schema definition
SCHEMA_SQL = """
-- MUST be set before creating tables. Persists across connections.
PRAGMA journal_mode=WAL;

CREATE TABLE IF NOT EXISTS tasks (
    id TEXT PRIMARY KEY,                    -- UUID4 assigned at creation
    title TEXT NOT NULL,
    description TEXT,
    completed INTEGER NOT NULL DEFAULT 0,   -- 1 once the task is done
    priority TEXT NOT NULL DEFAULT 'medium',-- 'low', 'medium', 'high'
    due_date TIMESTAMP,                     -- NULL sorts last in pending queries
    created_at TIMESTAMP NOT NULL
);

-- Index for pending task listing
CREATE INDEX IF NOT EXISTS idx_tasks_pending ON tasks(completed, due_date);

CREATE TABLE IF NOT EXISTS command_history (
    id TEXT PRIMARY KEY,
    input TEXT NOT NULL,
    response TEXT NOT NULL,
    language TEXT NOT NULL,                 -- 'en', 'ur', 'roman-ur'
    input_type TEXT NOT NULL DEFAULT 'text',-- 'text', 'voice'
    status TEXT NOT NULL DEFAULT 'completed',
    created_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_command_history_created_at ON command_history(created_at);
"""


def to_db_timestamp(value: datetime | None) -> str | None:
    """Render an aware datetime as fixed-width UTC text for storage."""
    if value is None:
        return None
    value = ensure_utc(value)
    # strftime does not zero-pad years below 1000
    return f"{value.year:04d}-" + value.strftime("%m-%dT%H:%M:%S.%f+00:00")


def from_db_timestamp(value: str | None) -> datetime | None:
    """Parse a stored timestamp back into an aware UTC datetime."""
    if value is None:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


async def init_database(db_path: str | Path) -> None:
    """Initialize the SQLite database with schema and WAL mode.

    Creates the database file if it doesn't exist, enables WAL mode and
    creates the tables and indexes. Safe to run repeatedly.

    Args:
        db_path: Path to the SQLite database file

    Raises:
        StorageUnavailableError: If database initialization fails
    """
    db_path = Path(db_path)

    # Ensure parent directory exists
    db_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        async with aiosqlite.connect(db_path) as db:
            await db.execute("PRAGMA journal_mode=WAL")
            journal_mode = await db.execute("PRAGMA journal_mode")
            mode = await journal_mode.fetchone()
            if mode and mode[0].lower() != "wal":
                logger.warning(
                    "wal_mode_not_enabled",
                    requested="wal",
                    actual=mode[0],
                    db_path=str(db_path),
                )

            await db.executescript(SCHEMA_SQL)
            await db.commit()

            cursor = await db.execute("SELECT COUNT(*) FROM sqlite_master WHERE type='table'")
            table_count = (await cursor.fetchone())[0]

        # Command history holds user text; owner read/write only
        db_path.chmod(stat.S_IRUSR | stat.S_IWUSR)

        logger.info(
            "database_initialized",
            db_path=str(db_path),
            schema_version=SCHEMA_VERSION,
            tables=table_count,
        )

    except aiosqlite.Error as e:
        logger.error("database_init_failed", db_path=str(db_path), error=str(e))
        raise StorageUnavailableError(
            f"Failed to initialize database at {db_path}: {e}. "
            "Check that the directory is writable and the database file is not corrupted.",
            operation="initialize",
        ) from e


async def verify_schema(db_path: str | Path) -> bool:
    """Verify that the database has the expected tables.

    Args:
        db_path: Path to the SQLite database file

    Returns:
        True if all tables exist, False otherwise
    """
    try:
        async with aiosqlite.connect(db_path) as db:
            cursor = await db.execute("SELECT name FROM sqlite_master WHERE type='table'")
            existing_tables = {row[0] for row in await cursor.fetchall()}

            missing = set(REQUIRED_TABLES) - existing_tables
            if missing:
                logger.warning(
                    "database_tables_missing",
                    missing=sorted(missing),
                    db_path=str(db_path),
                )
                return False

            return True

    except aiosqlite.Error as e:
        logger.error("schema_verification_failed", db_path=str(db_path), error=str(e))
        return False
