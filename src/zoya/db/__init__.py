"""Persistence layer for the Zoya assistant.

Two interchangeable stores sit behind the ``Store`` interface: an
in-process ``MemoryStore`` and a ``SqliteStore`` that persists tasks and
command history.

Usage:
    from zoya.db import TaskCreate, create_store

    store = await create_store(config)
    task = await store.create_task(TaskCreate(title="Buy milk"))
"""

from zoya.db.entities import (
    SUPPORTED_LANGUAGES,
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
from zoya.db.factory import create_store
from zoya.db.memory import MemoryStore
from zoya.db.models import SCHEMA_VERSION, init_database, verify_schema
from zoya.db.pool import ConnectionPool
from zoya.db.sqlite_store import SqliteStore
from zoya.db.store import UPCOMING_EVENTS_LIMIT, Store

__all__ = [
    # Stores
    "Store",
    "MemoryStore",
    "SqliteStore",
    "ConnectionPool",
    "create_store",
    "UPCOMING_EVENTS_LIMIT",
    # Schema
    "SCHEMA_VERSION",
    "init_database",
    "verify_schema",
    # Records
    "Email",
    "CalendarEvent",
    "Task",
    "Reminder",
    "CommandHistory",
    "SUPPORTED_LANGUAGES",
    # Payloads
    "EmailCreate",
    "CalendarEventCreate",
    "TaskCreate",
    "TaskUpdate",
    "ReminderCreate",
    "CommandHistoryCreate",
]
