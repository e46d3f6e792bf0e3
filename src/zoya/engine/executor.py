"""Command executor: classified intent -> side effect -> history record.

Pipeline per command:
1. Reject empty / non-string input (ClientInputError, nothing recorded)
2. Classify (never raises; degrades to the fallback matcher)
3. Run at most one side effect for the intent's action
4. Write one CommandHistory record with the final status
5. Hand back the outcome plus the push notifications to publish

Status rules:
- completed: default, including a known action whose required
  parameters were missing (side effect silently skipped)
- processed: actions without a handler (send_email, reschedule_meeting,
  greeting, unknown, error)
- failed: the side effect raised; the reply text produced so far stands

Storage errors while writing the history record propagate to the caller.

Usage:
    from zoya.engine.executor import CommandExecutor

    executor = CommandExecutor(store, classifier, summarizer, tz=config.tzinfo)
    outcome = await executor.execute("add a task to call mom", "en", "text")
    outcome.history.status  # 'completed'
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, timedelta, tzinfo
from typing import TYPE_CHECKING, Any

from zoya.classifier.intents import (
    CreateTaskParams,
    Intent,
    ScheduleMeetingParams,
    SetReminderParams,
)
from zoya.core.errors import ClientInputError
from zoya.core.logging import command_scope, get_logger
from zoya.core.timestamps import format_clock, parse_timestamp
from zoya.db.entities import (
    SUPPORTED_LANGUAGES,
    CalendarEventCreate,
    CommandHistory,
    CommandHistoryCreate,
    ReminderCreate,
    TaskCreate,
)

if TYPE_CHECKING:
    from zoya.classifier.command_classifier import CommandClassifier
    from zoya.classifier.summarizer import EmailSummarizer
    from zoya.db.store import Store

logger = get_logger(__name__)

INPUT_TYPES = ("text", "voice")
TASK_PRIORITIES = ("low", "medium", "high")

# How many items the check_* replies enumerate
LIST_PREVIEW_SIZE = 3

DEFAULT_MEETING_LENGTH = timedelta(hours=1)
DEFAULT_MEETING_LOCATION = "Virtual"

Notification = tuple[str, Any]


@dataclass
class ExecutionOutcome:
    """Everything produced by one processed command.

    Attributes:
        response_text: Final reply shown to the user
        language: Language of the reply
        intent: Classified intent
        result: JSON-ready side-effect result (entity, list, summary or None)
        history: The CommandHistory record written for this command
        notifications: (event_type, payload) pairs the caller publishes
    """

    response_text: str
    language: str
    intent: Intent
    result: Any
    history: CommandHistory
    notifications: list[Notification] = field(default_factory=list)

    @property
    def status(self) -> str:
        return self.history.status

    def to_response(self) -> dict[str, Any]:
        """Body of a successful command submission."""
        return {
            "success": True,
            "response": self.response_text,
            "language": self.language,
            "intent": self.intent.to_dict(),
            "result": self.result,
            "command": self.history.to_dict(),
        }


@dataclass
class _Effect:
    """Mutable scratch state for one side effect."""

    response: str
    result: Any = None
    notifications: list[Notification] = field(default_factory=list)


Handler = Callable[[Intent, _Effect, str], Awaitable[None]]


def validate_command_input(raw_input: Any, language: Any, input_type: Any) -> None:
    """Reject malformed submissions before anything is classified.

    Raises:
        ClientInputError: If the text is empty or not a string, or the
            language / input type is not supported
    """
    if not isinstance(raw_input, str) or not raw_input.strip():
        raise ClientInputError("Invalid input: command text must be a non-empty string")
    if language not in SUPPORTED_LANGUAGES:
        raise ClientInputError(
            f"Invalid language '{language}'. Use one of: {', '.join(SUPPORTED_LANGUAGES)}"
        )
    if input_type not in INPUT_TYPES:
        raise ClientInputError(
            f"Invalid inputType '{input_type}'. Use one of: {', '.join(INPUT_TYPES)}"
        )


class CommandExecutor:
    """Runs classified commands against a Store.

    Attributes:
        _store: Persistence backend
        _classifier: Command classifier
        _summarizer: Email summarizer for summarize_emails
        _tz: Timezone used to render HH:MM in replies
    """

    def __init__(
        self,
        store: Store,
        classifier: CommandClassifier,
        summarizer: EmailSummarizer,
        tz: tzinfo = UTC,
    ):
        self._store = store
        self._classifier = classifier
        self._summarizer = summarizer
        self._tz = tz
        self._handlers: dict[str, Handler] = {
            "schedule_meeting": self._schedule_meeting,
            "create_task": self._create_task,
            "set_reminder": self._set_reminder,
            "check_calendar": self._check_calendar,
            "check_emails": self._check_emails,
            "check_tasks": self._check_tasks,
            "summarize_emails": self._summarize_emails,
        }

    async def execute(
        self,
        raw_input: str,
        language: str = "en",
        input_type: str = "text",
    ) -> ExecutionOutcome:
        """Classify and execute one command.

        Args:
            raw_input: Command text as typed or transcribed
            language: Language hint ('en', 'ur', 'roman-ur')
            input_type: 'text' or 'voice'

        Returns:
            ExecutionOutcome with the reply and the history record

        Raises:
            ClientInputError: If the input is rejected (nothing is recorded)
            StorageUnavailableError: If the history record cannot be written
        """
        validate_command_input(raw_input, language, input_type)

        with command_scope():
            return await self._run(raw_input, language, input_type)

    async def _run(self, raw_input: str, language: str, input_type: str) -> ExecutionOutcome:
        classified = await self._classifier.classify(raw_input, language)
        intent = classified.intent
        effect = _Effect(response=classified.response)
        status = "completed"

        handler = self._handlers.get(intent.action)
        if handler is None:
            status = "processed"
        else:
            try:
                await handler(intent, effect, language)
            except Exception as e:
                # Reply text produced so far stands; the command is recorded as failed
                status = "failed"
                logger.error(
                    "command_side_effect_failed",
                    action=intent.action,
                    error=str(e),
                    exc_info=True,
                )

        history = await self._store.create_command_history(
            CommandHistoryCreate(
                input=raw_input,
                response=effect.response,
                language=classified.language,
                input_type=input_type,
                status=status,
            )
        )

        effect.notifications.append(
            (
                "command_executed",
                {
                    "command": history.to_dict(),
                    "result": effect.result,
                    "aiResponse": {
                        "intent": intent.to_dict(),
                        "response": effect.response,
                        "language": classified.language,
                    },
                },
            )
        )

        logger.info(
            "command_executed",
            action=intent.action,
            status=status,
            source=classified.source,
            input_type=input_type,
        )

        return ExecutionOutcome(
            response_text=effect.response,
            language=classified.language,
            intent=intent,
            result=effect.result,
            history=history,
            notifications=effect.notifications,
        )

    # =========================================================================
    # Creating handlers
    # =========================================================================

    async def _schedule_meeting(self, intent: Intent, effect: _Effect, language: str) -> None:
        params = intent.params
        if not isinstance(params, ScheduleMeetingParams) or not (params.title and params.start_time):
            return

        start = parse_timestamp(params.start_time)
        end = parse_timestamp(params.end_time) if params.end_time else start + DEFAULT_MEETING_LENGTH
        event = await self._store.create_calendar_event(
            CalendarEventCreate(
                title=params.title,
                description=params.description,
                start_time=start,
                end_time=end,
                attendees=params.attendees,
                location=params.location or DEFAULT_MEETING_LOCATION,
            )
        )
        effect.result = event.to_dict()
        effect.notifications.append(("event_created", event.to_dict()))

    async def _create_task(self, intent: Intent, effect: _Effect, language: str) -> None:
        params = intent.params
        if not isinstance(params, CreateTaskParams) or not params.title:
            return

        priority = (params.priority or "medium").lower()
        if priority not in TASK_PRIORITIES:
            logger.debug("task_priority_defaulted", requested=params.priority)
            priority = "medium"

        task = await self._store.create_task(
            TaskCreate(
                title=params.title,
                description=params.description,
                priority=priority,
                due_date=parse_timestamp(params.due_date) if params.due_date else None,
            )
        )
        effect.result = task.to_dict()
        effect.response = f'Task created successfully: "{task.title}"'
        effect.notifications.append(("task_created", task.to_dict()))

    async def _set_reminder(self, intent: Intent, effect: _Effect, language: str) -> None:
        params = intent.params
        if not isinstance(params, SetReminderParams) or not (params.title and params.reminder_time):
            return

        reminder = await self._store.create_reminder(
            ReminderCreate(
                title=params.title,
                description=params.description,
                reminder_time=parse_timestamp(params.reminder_time),
            )
        )
        effect.result = reminder.to_dict()
        effect.notifications.append(("reminder_created", reminder.to_dict()))

    # =========================================================================
    # Reading handlers
    # =========================================================================

    async def _check_calendar(self, intent: Intent, effect: _Effect, language: str) -> None:
        events = await self._store.get_today_events()
        effect.result = [event.to_dict() for event in events]

        if not events:
            effect.response = "You have no events scheduled for today."
            return

        listing = ", ".join(
            f"{event.title} at {format_clock(event.start_time, self._tz)}"
            for event in events[:LIST_PREVIEW_SIZE]
        )
        more = "..." if len(events) > LIST_PREVIEW_SIZE else ""
        effect.response = f"You have {len(events)} event(s) today: {listing}{more}"

    async def _check_emails(self, intent: Intent, effect: _Effect, language: str) -> None:
        emails = await self._store.get_unread_emails()
        effect.result = [email.to_dict() for email in emails]

        if not emails:
            effect.response = "You have no unread emails."
            return

        latest = emails[0]
        effect.response = (
            f"You have {len(emails)} unread email(s). "
            f'The most recent is from {latest.sender}: "{latest.subject}"'
        )

    async def _check_tasks(self, intent: Intent, effect: _Effect, language: str) -> None:
        tasks = await self._store.get_tasks()
        effect.result = [task.to_dict() for task in tasks]

        if not tasks:
            effect.response = "You have no tasks. Would you like to create one?"
            return

        pending = [task for task in tasks if not task.completed]
        if not pending:
            effect.response = "All your tasks are completed! Great job!"
            return

        listing = ", ".join(
            f"{task.title} ({task.priority})" for task in pending[:LIST_PREVIEW_SIZE]
        )
        more = "..." if len(pending) > LIST_PREVIEW_SIZE else ""
        effect.response = f"You have {len(pending)} pending task(s): {listing}{more}"

    async def _summarize_emails(self, intent: Intent, effect: _Effect, language: str) -> None:
        emails = await self._store.get_unread_emails()
        summary = await self._summarizer.summarize(emails, language)
        effect.result = {"summary": summary, "emailCount": len(emails)}
