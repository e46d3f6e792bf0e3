"""Transient in-process store.

Holds every entity kind in a per-kind id -> record mapping. Nothing
survives a restart. Queries sort explicitly; mapping order is never
relied on. Records handed out are copies, so callers cannot mutate the
store behind its back.

This store never raises StorageUnavailableError.

Usage:
    from zoya.db.memory import MemoryStore

    store = MemoryStore(tz=ZoneInfo("Asia/Karachi"), seed=True)
    events = await store.get_today_events()
"""

from __future__ import annotations

import copy
import dataclasses
import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta, tzinfo
from itertools import count
from typing import TypeVar

from zoya.core.logging import get_logger
from zoya.core.timestamps import day_bounds, utc_now
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
from zoya.db.store import UPCOMING_EVENTS_LIMIT, Store

logger = get_logger(__name__)

RecordT = TypeVar("RecordT")


class MemoryStore(Store):
    """In-memory implementation of the Store interface.

    Attributes:
        _tz: Timezone defining "today" for event queries
        _clock: Source of the current time (injectable for tests)
        _seq: Insertion sequence per record id, used to break creation-time ties
    """

    backend_name = "memory"

    def __init__(
        self,
        tz: tzinfo = UTC,
        seed: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the store.

        Args:
            tz: Timezone defining the local day for get_today_events()
            seed: Load the demo emails, events and tasks
            clock: Returns the current aware datetime
        """
        self._tz = tz
        self._clock = clock
        self._counter = count()
        self._seq: dict[str, int] = {}
        self._emails: dict[str, Email] = {}
        self._events: dict[str, CalendarEvent] = {}
        self._tasks: dict[str, Task] = {}
        self._reminders: dict[str, Reminder] = {}
        self._commands: dict[str, CommandHistory] = {}

        if seed:
            self._seed_sample_data()

    # -------------------------------------------------------------------------
    # Internal helpers
    # -------------------------------------------------------------------------

    def _new_identity(self) -> tuple[str, datetime]:
        record_id = str(uuid.uuid4())
        self._seq[record_id] = next(self._counter)
        return record_id, self._clock()

    def _newest_first(self, records: list[RecordT]) -> list[RecordT]:
        return sorted(
            records,
            key=lambda r: (r.created_at, self._seq.get(r.id, 0)),
            reverse=True,
        )

    def _pending_key(self, task: Task) -> tuple:
        # due ascending, undated last, then newest first
        due = task.due_date.timestamp() if task.due_date else 0.0
        return (
            task.due_date is None,
            due,
            -task.created_at.timestamp(),
            -self._seq.get(task.id, 0),
        )

    @staticmethod
    def _snapshot(records: list[RecordT]) -> list[RecordT]:
        return [copy.deepcopy(r) for r in records]

    def _seed_sample_data(self) -> None:
        """Load the fixed demo data set (emails, today's events, tasks)."""
        now = self._clock()
        local_now = now.astimezone(self._tz)
        today = local_now.replace(hour=0, minute=0, second=0, microsecond=0)

        for sender, subject, body in (
            (
                "Sarah Johnson",
                "Project Timeline Update",
                "Hi! I wanted to update you on the project timeline. We've made good "
                "progress and should be able to deliver on schedule.",
            ),
            (
                "Marketing Team",
                "Monthly Report Ready",
                "The monthly marketing report is ready for review. Please find the "
                "attached document with all the key metrics.",
            ),
            (
                "Alex Chen",
                "Meeting Reschedule Request",
                "Could we please reschedule our meeting to tomorrow? Something urgent "
                "came up that needs my immediate attention.",
            ),
        ):
            self._add_email(
                EmailCreate(
                    sender=sender,
                    recipient="user@company.com",
                    subject=subject,
                    body=body,
                )
            )

        for title, description, start_h, end_h, attendees, location in (
            (
                "Team Standup with Development Team",
                "Daily standup meeting",
                14.0,
                14.5,
                ["Development Team"],
                "Conference Room A",
            ),
            (
                "Client Meeting - Project Review",
                "Review project progress with client",
                15.5,
                16.5,
                ["Client", "Project Manager"],
                "Meeting Room B",
            ),
            (
                "Weekly Team Sync",
                "Weekly team synchronization meeting",
                17.0,
                17.5,
                ["Team"],
                "Virtual",
            ),
        ):
            self._add_event(
                CalendarEventCreate(
                    title=title,
                    description=description,
                    start_time=today + timedelta(hours=start_h),
                    end_time=today + timedelta(hours=end_h),
                    attendees=attendees,
                    location=location,
                )
            )

        for title, description, completed, priority, due in (
            (
                "Review client proposal document",
                "Review and provide feedback on the new client proposal",
                False,
                "high",
                today + timedelta(hours=18),
            ),
            (
                "Send meeting notes to team",
                "Send notes from today's meeting to all team members",
                True,
                "medium",
                today - timedelta(hours=2),
            ),
            (
                "Prepare Q4 budget presentation",
                "Prepare the quarterly budget presentation for management",
                False,
                "medium",
                today + timedelta(hours=24),
            ),
        ):
            self._add_task(
                TaskCreate(
                    title=title,
                    description=description,
                    completed=completed,
                    priority=priority,
                    due_date=due,
                )
            )

        logger.info(
            "sample_data_seeded",
            emails=len(self._emails),
            events=len(self._events),
            tasks=len(self._tasks),
        )

    def _add_email(self, data: EmailCreate) -> Email:
        record_id, created_at = self._new_identity()
        email = Email(id=record_id, created_at=created_at, **data.model_dump())
        self._emails[record_id] = email
        return email

    def _add_event(self, data: CalendarEventCreate) -> CalendarEvent:
        record_id, created_at = self._new_identity()
        event = CalendarEvent(id=record_id, created_at=created_at, **data.model_dump())
        self._events[record_id] = event
        return event

    def _add_task(self, data: TaskCreate) -> Task:
        record_id, created_at = self._new_identity()
        task = Task(id=record_id, created_at=created_at, **data.model_dump())
        self._tasks[record_id] = task
        return task

    # =========================================================================
    # Emails
    # =========================================================================

    async def get_emails(self) -> list[Email]:
        return self._snapshot(self._newest_first(list(self._emails.values())))

    async def get_unread_emails(self) -> list[Email]:
        unread = [e for e in self._emails.values() if not e.is_read]
        return self._snapshot(self._newest_first(unread))

    async def create_email(self, data: EmailCreate) -> Email:
        return copy.deepcopy(self._add_email(data))

    async def mark_email_as_read(self, email_id: str) -> None:
        email = self._emails.get(email_id)
        if email:
            email.is_read = True

    # =========================================================================
    # Calendar events
    # =========================================================================

    async def get_calendar_events(self) -> list[CalendarEvent]:
        events = sorted(self._events.values(), key=lambda e: e.start_time)
        return self._snapshot(events)

    async def get_today_events(self) -> list[CalendarEvent]:
        start, end = day_bounds(self._clock(), self._tz)
        events = sorted(
            (e for e in self._events.values() if start <= e.start_time < end),
            key=lambda e: e.start_time,
        )
        return self._snapshot(events)

    async def get_upcoming_events(self) -> list[CalendarEvent]:
        now = self._clock()
        events = sorted(
            (e for e in self._events.values() if e.start_time > now),
            key=lambda e: e.start_time,
        )
        return self._snapshot(events[:UPCOMING_EVENTS_LIMIT])

    async def create_calendar_event(self, data: CalendarEventCreate) -> CalendarEvent:
        return copy.deepcopy(self._add_event(data))

    async def delete_calendar_event(self, event_id: str) -> None:
        self._events.pop(event_id, None)
        self._seq.pop(event_id, None)

    # =========================================================================
    # Tasks
    # =========================================================================

    async def get_tasks(self) -> list[Task]:
        return self._snapshot(self._newest_first(list(self._tasks.values())))

    async def get_pending_tasks(self) -> list[Task]:
        pending = sorted(
            (t for t in self._tasks.values() if not t.completed),
            key=self._pending_key,
        )
        return self._snapshot(pending)

    async def get_task(self, task_id: str) -> Task | None:
        task = self._tasks.get(task_id)
        return copy.deepcopy(task) if task else None

    async def create_task(self, data: TaskCreate) -> Task:
        return copy.deepcopy(self._add_task(data))

    async def update_task(self, task_id: str, updates: TaskUpdate) -> Task | None:
        task = self._tasks.get(task_id)
        if task is None:
            return None
        updated = dataclasses.replace(task, **updates.changes())
        self._tasks[task_id] = updated
        return copy.deepcopy(updated)

    async def delete_task(self, task_id: str) -> None:
        self._tasks.pop(task_id, None)
        self._seq.pop(task_id, None)

    # =========================================================================
    # Reminders
    # =========================================================================

    async def get_reminders(self) -> list[Reminder]:
        reminders = sorted(self._reminders.values(), key=lambda r: r.reminder_time)
        return self._snapshot(reminders)

    async def get_active_reminders(self) -> list[Reminder]:
        reminders = sorted(
            (r for r in self._reminders.values() if r.is_active),
            key=lambda r: r.reminder_time,
        )
        return self._snapshot(reminders)

    async def create_reminder(self, data: ReminderCreate) -> Reminder:
        record_id, created_at = self._new_identity()
        reminder = Reminder(id=record_id, created_at=created_at, **data.model_dump())
        self._reminders[record_id] = reminder
        return copy.deepcopy(reminder)

    async def deactivate_reminder(self, reminder_id: str) -> None:
        reminder = self._reminders.get(reminder_id)
        if reminder:
            reminder.is_active = False

    # =========================================================================
    # Command history
    # =========================================================================

    async def get_command_history(self) -> list[CommandHistory]:
        return self._snapshot(self._newest_first(list(self._commands.values())))

    async def create_command_history(self, data: CommandHistoryCreate) -> CommandHistory:
        record_id, created_at = self._new_identity()
        command = CommandHistory(id=record_id, created_at=created_at, **data.model_dump())
        self._commands[record_id] = command
        return copy.deepcopy(command)

    async def clear_command_history(self) -> None:
        for record_id in self._commands:
            self._seq.pop(record_id, None)
        self._commands.clear()
