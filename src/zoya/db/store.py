"""Persistence interface shared by the transient and durable stores.

The command executor, dashboard and HTTP routes only talk to ``Store``.
Which implementation sits behind it is decided once at startup by
``zoya.db.factory.create_store``.

Ordering guarantees every implementation keeps:
- calendar events: ascending start time
- tasks, emails, command history: descending creation time
- pending tasks: due date ascending, undated last, then newest first
- reminders: ascending reminder time
Ties in creation time break by insertion order (later insert is newer).

Usage:
    store = await create_store(config)
    task = await store.create_task(TaskCreate(title="Buy milk"))
    pending = await store.get_pending_tasks()
"""

from __future__ import annotations

from abc import ABC, abstractmethod

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

# Maximum number of events returned by get_upcoming_events()
UPCOMING_EVENTS_LIMIT = 10


class Store(ABC):
    """Asynchronous CRUD surface over the six entity kinds.

    Any method may raise StorageUnavailableError when the backing store
    cannot service the call. No operation is atomic across entity kinds.
    """

    backend_name: str = "abstract"

    async def initialize(self) -> None:
        """Prepare the backing store. Called once right after construction."""

    async def close(self) -> None:
        """Release held resources (connections, pools)."""

    # =========================================================================
    # Emails
    # =========================================================================

    @abstractmethod
    async def get_emails(self) -> list[Email]: ...

    @abstractmethod
    async def get_unread_emails(self) -> list[Email]: ...

    @abstractmethod
    async def create_email(self, data: EmailCreate) -> Email: ...

    @abstractmethod
    async def mark_email_as_read(self, email_id: str) -> None: ...

    # =========================================================================
    # Calendar events
    # =========================================================================

    @abstractmethod
    async def get_calendar_events(self) -> list[CalendarEvent]: ...

    @abstractmethod
    async def get_today_events(self) -> list[CalendarEvent]: ...

    @abstractmethod
    async def get_upcoming_events(self) -> list[CalendarEvent]: ...

    @abstractmethod
    async def create_calendar_event(self, data: CalendarEventCreate) -> CalendarEvent: ...

    @abstractmethod
    async def delete_calendar_event(self, event_id: str) -> None: ...

    # =========================================================================
    # Tasks
    # =========================================================================

    @abstractmethod
    async def get_tasks(self) -> list[Task]: ...

    @abstractmethod
    async def get_pending_tasks(self) -> list[Task]: ...

    @abstractmethod
    async def get_task(self, task_id: str) -> Task | None: ...

    @abstractmethod
    async def create_task(self, data: TaskCreate) -> Task: ...

    @abstractmethod
    async def update_task(self, task_id: str, updates: TaskUpdate) -> Task | None:
        """Apply a partial update. Returns None when the task does not exist."""

    @abstractmethod
    async def delete_task(self, task_id: str) -> None: ...

    # =========================================================================
    # Reminders
    # =========================================================================

    @abstractmethod
    async def get_reminders(self) -> list[Reminder]: ...

    @abstractmethod
    async def get_active_reminders(self) -> list[Reminder]: ...

    @abstractmethod
    async def create_reminder(self, data: ReminderCreate) -> Reminder: ...

    @abstractmethod
    async def deactivate_reminder(self, reminder_id: str) -> None: ...

    # =========================================================================
    # Command history
    # =========================================================================

    @abstractmethod
    async def get_command_history(self) -> list[CommandHistory]: ...

    @abstractmethod
    async def create_command_history(self, data: CommandHistoryCreate) -> CommandHistory: ...

    @abstractmethod
    async def clear_command_history(self) -> None: ...
