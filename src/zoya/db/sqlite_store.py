"""Durable store backed by SQLite.

Tasks and command history are persisted through a bounded connection
pool. Emails, calendar events and reminders are delegated to an
in-process MemoryStore held for the lifetime of this store.

Every SQL failure and pool timeout surfaces as StorageUnavailableError.

Usage:
    from zoya.db.sqlite_store import SqliteStore

    store = SqliteStore("data/zoya.db", fallback=MemoryStore(seed=True))
    await store.initialize()

    task = await store.create_task(TaskCreate(title="Buy milk"))
    pending = await store.get_pending_tasks()
"""

from __future__ import annotations

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from zoya.core.errors import StorageUnavailableError
from zoya.core.logging import get_logger
from zoya.core.timestamps import utc_now
from zoya.db.entities import (
    CalendarEvent,
    CalendarEventCreate,
    CommandHistory,
    CommandHistoryCreate,
    Email,
    EmailCreate,
    Reminder,
    ReminderCreate,
    Task,
    TaskCreate,
    TaskUpdate,
)
from zoya.db.memory import MemoryStore
from zoya.db.models import from_db_timestamp, init_database, to_db_timestamp
from zoya.db.pool import ConnectionPool
from zoya.db.store import Store

logger = get_logger(__name__)

# Columns update_task may touch, keyed by record attribute
_TASK_UPDATE_COLUMNS = {
    "title": "title",
    "description": "description",
    "completed": "completed",
    "priority": "priority",
    "due_date": "due_date",
}


def _row_to_task(row: aiosqlite.Row) -> Task:
    return Task(
        id=row["id"],
        created_at=from_db_timestamp(row["created_at"]),
        title=row["title"],
        description=row["description"],
        completed=bool(row["completed"]),
        priority=row["priority"],
        due_date=from_db_timestamp(row["due_date"]),
    )


def _row_to_command(row: aiosqlite.Row) -> CommandHistory:
    return CommandHistory(
        id=row["id"],
        created_at=from_db_timestamp(row["created_at"]),
        input=row["input"],
        response=row["response"],
        language=row["language"],
        input_type=row["input_type"],
        status=row["status"],
    )


class SqliteStore(Store):
    """Store persisting tasks and command history to SQLite.

    Attributes:
        db_path: Path to the SQLite database file
        _pool: Bounded connection pool
        _fallback: In-process store for emails, events and reminders
    """

    backend_name = "sqlite"

    def __init__(
        self,
        db_path: str | Path,
        fallback: MemoryStore | None = None,
        pool_size: int = 5,
        acquire_timeout: float = 5.0,
        busy_timeout_ms: int = 10000,
    ):
        self.db_path = Path(db_path)
        self._fallback = fallback or MemoryStore()
        self._pool = ConnectionPool(
            self.db_path,
            size=pool_size,
            acquire_timeout=acquire_timeout,
            busy_timeout_ms=busy_timeout_ms,
        )
        self._initialized = False

    async def initialize(self) -> None:
        """Create the tables if needed. Runs once; later calls are no-ops."""
        if self._initialized:
            return
        await init_database(self.db_path)
        self._initialized = True

    async def close(self) -> None:
        await self._pool.close()

    @asynccontextmanager
    async def _db(self, operation: str) -> AsyncIterator[aiosqlite.Connection]:
        """Check out a pooled connection, mapping SQL failures to StorageUnavailableError.

        The pool closes a connection that raised, which rolls back its transaction.

        Usage:
            async with self._db("create_task") as db:
                await db.execute(...)
        """
        try:
            async with self._pool.acquire() as db:
                yield db
        except aiosqlite.Error as e:
            logger.error("storage_operation_failed", operation=operation, error=str(e))
            raise StorageUnavailableError(
                f"Storage operation '{operation}' failed: {e}",
                operation=operation,
            ) from e

    # =========================================================================
    # Emails (in-process)
    # =========================================================================

    async def get_emails(self) -> list[Email]:
        return await self._fallback.get_emails()

    async def get_unread_emails(self) -> list[Email]:
        return await self._fallback.get_unread_emails()

    async def create_email(self, data: EmailCreate) -> Email:
        return await self._fallback.create_email(data)

    async def mark_email_as_read(self, email_id: str) -> None:
        await self._fallback.mark_email_as_read(email_id)

    # =========================================================================
    # Calendar events (in-process)
    # =========================================================================

    async def get_calendar_events(self) -> list[CalendarEvent]:
        return await self._fallback.get_calendar_events()

    async def get_today_events(self) -> list[CalendarEvent]:
        return await self._fallback.get_today_events()

    async def get_upcoming_events(self) -> list[CalendarEvent]:
        return await self._fallback.get_upcoming_events()

    async def create_calendar_event(self, data: CalendarEventCreate) -> CalendarEvent:
        return await self._fallback.create_calendar_event(data)

    async def delete_calendar_event(self, event_id: str) -> None:
        await self._fallback.delete_calendar_event(event_id)

    # =========================================================================
    # Tasks
    # =========================================================================

    async def get_tasks(self) -> list[Task]:
        async with self._db("get_tasks") as db:
            cursor = await db.execute(
                "SELECT * FROM tasks ORDER BY created_at DESC, rowid DESC"
            )
            rows = await cursor.fetchall()
        return [_row_to_task(row) for row in rows]

    async def get_pending_tasks(self) -> list[Task]:
        async with self._db("get_pending_tasks") as db:
            cursor = await db.execute(
                """
                SELECT * FROM tasks
                WHERE completed = 0
                ORDER BY due_date IS NULL, due_date ASC, created_at DESC, rowid DESC
                """
            )
            rows = await cursor.fetchall()
        return [_row_to_task(row) for row in rows]

    async def get_task(self, task_id: str) -> Task | None:
        async with self._db("get_task") as db:
            cursor = await db.execute("SELECT * FROM tasks WHERE id = ?", (task_id,))
            row = await cursor.fetchone()
        return _row_to_task(row) if row else None

    async def create_task(self, data: TaskCreate) -> Task:
        task = Task(
            id=str(uuid.uuid4()),
            created_at=utc_now(),
            title=data.title,
            description=data.description,
            completed=data.completed,
            priority=data.priority,
            due_date=data.due_date,
        )
        async with self._db("create_task") as db:
            await db.execute(
                """
                INSERT INTO tasks (id, title, description, completed, priority, due_date, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task.id,
                    task.title,
                    task.description,
                    1 if task.completed else 0,
                    task.priority,
                    to_db_timestamp(task.due_date),
                    to_db_timestamp(task.created_at),
                ),
            )
            await db.commit()

        logger.debug("task_created", task_id=task.id, backend=self.backend_name)
        return task

    async def update_task(self, task_id: str, updates: TaskUpdate) -> Task | None:
        """Apply a partial update.

        An update with no fields set returns the stored task unchanged.
        """
        changes = updates.changes()
        if not changes:
            return await self.get_task(task_id)

        assignments = []
        values: list[object] = []
        for attr, value in changes.items():
            assignments.append(f"{_TASK_UPDATE_COLUMNS[attr]} = ?")
            if attr == "completed":
                values.append(1 if value else 0)
            elif attr == "due_date":
                values.append(to_db_timestamp(value))
            else:
                values.append(value)
        values.append(task_id)

        async with self._db("update_task") as db:
            cursor = await db.execute(
                f"UPDATE tasks SET {', '.join(assignments)} WHERE id = ?",
                values,
            )
            await db.commit()
            if cursor.rowcount == 0:
                return None
            cursor = await db.execute("SELECT * FROM tasks WHERE id = ?", (task_id,))
            row = await cursor.fetchone()

        return _row_to_task(row) if row else None

    async def delete_task(self, task_id: str) -> None:
        async with self._db("delete_task") as db:
            await db.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            await db.commit()

    # =========================================================================
    # Reminders (in-process)
    # =========================================================================

    async def get_reminders(self) -> list[Reminder]:
        return await self._fallback.get_reminders()

    async def get_active_reminders(self) -> list[Reminder]:
        return await self._fallback.get_active_reminders()

    async def create_reminder(self, data: ReminderCreate) -> Reminder:
        return await self._fallback.create_reminder(data)

    async def deactivate_reminder(self, reminder_id: str) -> None:
        await self._fallback.deactivate_reminder(reminder_id)

    # =========================================================================
    # Command history
    # =========================================================================

    async def get_command_history(self) -> list[CommandHistory]:
        async with self._db("get_command_history") as db:
            cursor = await db.execute(
                "SELECT * FROM command_history ORDER BY created_at DESC, rowid DESC"
            )
            rows = await cursor.fetchall()
        return [_row_to_command(row) for row in rows]

    async def create_command_history(self, data: CommandHistoryCreate) -> CommandHistory:
        command = CommandHistory(
            id=str(uuid.uuid4()),
            created_at=utc_now(),
            input=data.input,
            response=data.response,
            language=data.language,
            input_type=data.input_type,
            status=data.status,
        )
        async with self._db("create_command_history") as db:
            await db.execute(
                """
                INSERT INTO command_history
                    (id, input, response, language, input_type, status, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    command.id,
                    command.input,
                    command.response,
                    command.language,
                    command.input_type,
                    command.status,
                    to_db_timestamp(command.created_at),
                ),
            )
            await db.commit()
        return command

    async def clear_command_history(self) -> None:
        async with self._db("clear_command_history") as db:
            await db.execute("DELETE FROM command_history")
            await db.commit()
        logger.info("command_history_cleared", backend=self.backend_name)
