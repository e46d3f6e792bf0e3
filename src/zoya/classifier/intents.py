"""Intent types produced by the classifier and consumed by the executor.

The provider returns parameters as a loosely typed mapping. ``Intent``
keeps that mapping as-is for the JSON response and offers a typed view
through ``Intent.params``, one dataclass per action family.

Time values stay as the raw strings the provider sent; the executor
parses them inside its side-effect block so a bad timestamp fails the
command instead of the classification.

Usage:
    from zoya.classifier.intents import Intent, CreateTaskParams

    intent = Intent.from_provider(raw["intent"], language_hint="en")
    if isinstance(intent.params, CreateTaskParams) and intent.params.title:
        ...
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

# Actions the provider is asked to choose from
ACTION_VOCABULARY: tuple[str, ...] = (
    "schedule_meeting",
    "check_calendar",
    "send_email",
    "check_emails",
    "create_task",
    "set_reminder",
    "summarize_emails",
    "reschedule_meeting",
)

# Everything the executor may see. check_tasks and greeting come from the fallback matcher.
KNOWN_ACTIONS: frozenset[str] = frozenset(
    ACTION_VOCABULARY + ("check_tasks", "greeting", "unknown", "error")
)

DEFAULT_CONFIDENCE = 0.5


# ---------------------------------------------------------------------------
# Typed parameter variants
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ScheduleMeetingParams:
    title: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    description: str | None = None
    attendees: list[str] = field(default_factory=list)
    location: str | None = None


@dataclass(frozen=True, slots=True)
class RescheduleMeetingParams:
    title: str | None = None
    new_start_time: str | None = None
    new_end_time: str | None = None


@dataclass(frozen=True, slots=True)
class CreateTaskParams:
    title: str | None = None
    description: str | None = None
    priority: str | None = None
    due_date: str | None = None


@dataclass(frozen=True, slots=True)
class SetReminderParams:
    title: str | None = None
    reminder_time: str | None = None
    description: str | None = None


@dataclass(frozen=True, slots=True)
class SendEmailParams:
    recipient: str | None = None
    subject: str | None = None
    content: str | None = None


@dataclass(frozen=True, slots=True)
class QueryParams:
    """Read-only actions (check_*, summarize_emails, greeting)."""

    query: str | None = None


@dataclass(frozen=True, slots=True)
class UnparsedParams:
    """unknown/error intents: the raw mapping, nothing interpreted."""

    raw: dict[str, Any] = field(default_factory=dict)


IntentParams = (
    ScheduleMeetingParams
    | RescheduleMeetingParams
    | CreateTaskParams
    | SetReminderParams
    | SendEmailParams
    | QueryParams
    | UnparsedParams
)


def _text(parameters: dict[str, Any], *keys: str) -> str | None:
    """First non-empty scalar among ``keys``, as a stripped string."""
    for key in keys:
        value = parameters.get(key)
        if value is None or isinstance(value, dict | list | bool):
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def _names(value: Any) -> list[str]:
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, list):
        return [str(item).strip() for item in value if str(item).strip()]
    return []


def parse_params(action: str, parameters: dict[str, Any]) -> IntentParams:
    """Build the typed parameter view for an action.

    Accepts both camelCase and snake_case keys.
    """
    p = parameters
    if action == "schedule_meeting":
        return ScheduleMeetingParams(
            title=_text(p, "title"),
            start_time=_text(p, "startTime", "start_time"),
            end_time=_text(p, "endTime", "end_time"),
            description=_text(p, "description"),
            attendees=_names(p.get("attendees")),
            location=_text(p, "location"),
        )
    if action == "reschedule_meeting":
        return RescheduleMeetingParams(
            title=_text(p, "title", "meeting"),
            new_start_time=_text(p, "newStartTime", "new_start_time", "startTime", "start_time"),
            new_end_time=_text(p, "newEndTime", "new_end_time", "endTime", "end_time"),
        )
    if action == "create_task":
        return CreateTaskParams(
            title=_text(p, "title"),
            description=_text(p, "description"),
            priority=_text(p, "priority"),
            due_date=_text(p, "dueDate", "due_date"),
        )
    if action == "set_reminder":
        return SetReminderParams(
            title=_text(p, "title"),
            reminder_time=_text(p, "reminderTime", "reminder_time"),
            description=_text(p, "description"),
        )
    if action == "send_email":
        return SendEmailParams(
            recipient=_text(p, "recipient", "to"),
            subject=_text(p, "subject"),
            content=_text(p, "content", "body"),
        )
    if action in ("unknown", "error") or action not in KNOWN_ACTIONS:
        return UnparsedParams(raw=dict(p))
    return QueryParams(query=_text(p, "query"))


def _confidence(value: Any) -> float:
    if isinstance(value, bool):
        return DEFAULT_CONFIDENCE
    try:
        number = float(value)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    if number != number:  # NaN
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, number))


# ---------------------------------------------------------------------------
# Intent
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Intent:
    """A classified command.

    Attributes:
        action: One of KNOWN_ACTIONS
        parameters: Raw parameter mapping as returned by the classifier
        language: Detected language tag
        confidence: Classifier confidence in [0, 1]
    """

    action: str
    parameters: dict[str, Any]
    language: str
    confidence: float

    @property
    def params(self) -> IntentParams:
        """Typed view of ``parameters`` for this action."""
        return parse_params(self.action, self.parameters)

    @classmethod
    def from_provider(cls, data: Any, language_hint: str) -> Intent:
        """Defensively build an intent from the provider's ``intent`` object.

        Missing action becomes 'unknown', actions outside the known set are
        coerced to 'unknown', missing confidence becomes 0.5 and missing
        language falls back to the hint.
        """
        if not isinstance(data, dict):
            data = {}

        action = data.get("action")
        if not isinstance(action, str) or action.strip() not in KNOWN_ACTIONS:
            action = "unknown"
        else:
            action = action.strip()

        parameters = data.get("parameters")
        if not isinstance(parameters, dict):
            parameters = {}

        language = data.get("language")
        if not isinstance(language, str) or not language.strip():
            language = language_hint

        confidence = data.get("confidence")
        return cls(
            action=action,
            parameters=dict(parameters),
            language=language,
            confidence=DEFAULT_CONFIDENCE if confidence is None else _confidence(confidence),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "parameters": self.parameters,
            "language": self.language,
            "confidence": self.confidence,
        }


@dataclass(frozen=True, slots=True)
class ClassifiedCommand:
    """Full classifier output: the intent plus the user-facing reply.

    Attributes:
        intent: Structured intent
        response: Reply text in the detected language
        language: Language the reply is written in
        source: 'provider', 'fallback' or 'error'
    """

    intent: Intent
    response: str
    language: str
    source: str = "provider"

    def to_dict(self) -> dict[str, Any]:
        return {
            "intent": self.intent.to_dict(),
            "response": self.response,
            "language": self.language,
        }
