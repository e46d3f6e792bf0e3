"""Entity records and their insert/update schemas.

Records are plain dataclasses owned by a store. Insert and update
payloads are Pydantic models so the HTTP layer and the command executor
validate input the same way before anything reaches a store.

JSON produced by ``to_dict()`` uses camelCase keys and ISO 8601
timestamps; the insert schemas accept camelCase or snake_case keys.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from zoya.core.timestamps import ensure_utc, to_iso

# Type aliases
Priority = Literal["low", "medium", "high"]
InputType = Literal["text", "voice"]
Language = Literal["en", "ur", "roman-ur"]
CommandStatus = Literal["completed", "processed", "failed", "processing"]

SUPPORTED_LANGUAGES: tuple[str, ...] = ("en", "ur", "roman-ur")


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass
class Email:
    """Email record."""

    id: str
    created_at: datetime
    sender: str
    recipient: str
    subject: str
    body: str
    is_read: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "sender": self.sender,
            "recipient": self.recipient,
            "subject": self.subject,
            "body": self.body,
            "isRead": self.is_read,
            "createdAt": to_iso(self.created_at),
        }


@dataclass
class CalendarEvent:
    """Calendar event record."""

    id: str
    created_at: datetime
    title: str
    start_time: datetime
    end_time: datetime
    description: str | None = None
    attendees: list[str] = field(default_factory=list)
    location: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "startTime": to_iso(self.start_time),
            "endTime": to_iso(self.end_time),
            "attendees": list(self.attendees),
            "location": self.location,
            "createdAt": to_iso(self.created_at),
        }


@dataclass
class Task:
    """Task record."""

    id: str
    created_at: datetime
    title: str
    description: str | None = None
    completed: bool = False
    priority: Priority = "medium"
    due_date: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "completed": self.completed,
            "priority": self.priority,
            "dueDate": to_iso(self.due_date),
            "createdAt": to_iso(self.created_at),
        }


@dataclass
class Reminder:
    """Reminder record. Reminders are deactivated, never deleted."""

    id: str
    created_at: datetime
    title: str
    reminder_time: datetime
    description: str | None = None
    is_active: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "reminderTime": to_iso(self.reminder_time),
            "isActive": self.is_active,
            "createdAt": to_iso(self.created_at),
        }


@dataclass
class CommandHistory:
    """One processed command. Append-only from the engine's side."""

    id: str
    created_at: datetime
    input: str
    response: str
    language: str
    input_type: InputType
    status: CommandStatus = "completed"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "input": self.input,
            "response": self.response,
            "language": self.language,
            "inputType": self.input_type,
            "status": self.status,
            "createdAt": to_iso(self.created_at),
        }


# ---------------------------------------------------------------------------
# Insert / update schemas
# ---------------------------------------------------------------------------


class _Payload(BaseModel):
    """Base for payload schemas: camelCase aliases, unknown keys ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


def _utc(value: datetime | None) -> datetime | None:
    return ensure_utc(value) if value is not None else None


class EmailCreate(_Payload):
    sender: str
    recipient: str
    subject: str
    body: str
    is_read: bool = False


class CalendarEventCreate(_Payload):
    title: str = Field(min_length=1)
    description: str | None = None
    start_time: datetime
    end_time: datetime
    attendees: list[str] = Field(default_factory=list)
    location: str | None = None

    @field_validator("start_time", "end_time")
    @classmethod
    def normalize_times(cls, v: datetime) -> datetime:
        return ensure_utc(v)

    @model_validator(mode="after")
    def check_time_order(self) -> CalendarEventCreate:
        if self.end_time < self.start_time:
            raise ValueError("endTime must not be earlier than startTime")
        return self


class TaskCreate(_Payload):
    title: str = Field(min_length=1)
    description: str | None = None
    completed: bool = False
    priority: Priority = "medium"
    due_date: datetime | None = None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v: datetime | None) -> datetime | None:
        return _utc(v)


class TaskUpdate(_Payload):
    """Partial task update. Only fields present in the payload are applied."""

    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    completed: bool | None = None
    priority: Priority | None = None
    due_date: datetime | None = None

    @field_validator("due_date")
    @classmethod
    def normalize_due_date(cls, v: datetime | None) -> datetime | None:
        return _utc(v)

    def changes(self) -> dict[str, Any]:
        """Return the explicitly set fields keyed by record attribute name.

        An explicit null only clears nullable fields (description, dueDate).
        """
        data = self.model_dump(exclude_unset=True)
        return {
            key: value
            for key, value in data.items()
            if value is not None or key in ("description", "due_date")
        }


class ReminderCreate(_Payload):
    title: str = Field(min_length=1)
    description: str | None = None
    reminder_time: datetime
    is_active: bool = True

    @field_validator("reminder_time")
    @classmethod
    def normalize_reminder_time(cls, v: datetime) -> datetime:
        return ensure_utc(v)


class CommandHistoryCreate(_Payload):
    input: str
    response: str
    language: str
    input_type: InputType = "text"
    status: CommandStatus = "completed"
