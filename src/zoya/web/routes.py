"""HTTP routes and the push channel for the Zoya assistant.

Contains two routers:
- api_router: JSON API under /api (commands, dashboard, entity CRUD, health)
- ws_router: the /ws observer channel

All routes use FastAPI dependency injection to access shared state.
Request bodies are validated against the entity insert/update schemas;
violations surface as EntityValidationError (400). Every write publishes
a push event without waiting for delivery.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request, WebSocket
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from zoya.classifier.command_classifier import CommandClassifier
from zoya.classifier.summarizer import EmailDrafter, EmailSummarizer
from zoya.config_schema import AppConfig
from zoya.core.errors import (
    ClientInputError,
    EntityNotFoundError,
    EntityValidationError,
    ZoyaError,
    format_validation_errors,
)
from zoya.core.logging import get_logger
from zoya.db.entities import (
    CalendarEventCreate,
    EmailCreate,
    Language,
    ReminderCreate,
    TaskCreate,
    TaskUpdate,
)
from zoya.db.store import Store
from zoya.engine.dashboard import build_dashboard
from zoya.engine.executor import CommandExecutor
from zoya.web.dependencies import (
    get_broadcaster,
    get_classifier,
    get_config,
    get_drafter,
    get_executor,
    get_store,
    get_summarizer,
)
from zoya.web.events import EventBroadcaster

logger = get_logger(__name__)

APP_VERSION = "0.1.0"

# Routers
api_router = APIRouter(prefix="/api")
ws_router = APIRouter()


# ---------------------------------------------------------------------------
# Request models and body parsing
# ---------------------------------------------------------------------------


class SummarizeRequest(BaseModel):
    """Request body for summarizing unread emails."""

    language: Language = "en"


class GenerateEmailRequest(BaseModel):
    """Request body for drafting email content."""

    subject: str = Field(min_length=1)
    context: str = Field(min_length=1)
    language: Language = "en"


async def _json_body(request: Request, required: bool = True) -> dict[str, Any]:
    """Read the request body as a JSON object.

    An empty body is treated as ``{}`` when ``required`` is False.

    Raises:
        ClientInputError: If the body is not valid JSON or not an object
    """
    raw = await request.body()
    if not raw.strip() and not required:
        return {}
    try:
        data = await request.json()
    except ValueError:
        raise ClientInputError("Request body must be valid JSON") from None
    if not isinstance(data, dict):
        raise ClientInputError("Request body must be a JSON object")
    return data


def _validate(model: type[BaseModel], data: dict[str, Any], entity: str) -> Any:
    """Validate a payload against a schema, raising EntityValidationError."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        errors = format_validation_errors(e.errors())
        logger.info("request_validation_failed", entity=entity, errors=errors)
        raise EntityValidationError(f"Invalid {entity} data", entity, errors) from None


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@api_router.post("/commands/process")
async def process_command(
    request: Request,
    executor: CommandExecutor = Depends(get_executor),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
):
    """Classify and execute one command, then publish its notifications.

    Body: ``{input, language?, inputType?}``.
    """
    body = await _json_body(request)
    try:
        outcome = await executor.execute(
            body.get("input"),
            body.get("language", "en"),
            body.get("inputType", "text"),
        )
    except ZoyaError:
        raise
    except Exception as e:
        logger.error("command_processing_failed", error=str(e), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Failed to process command"},
        )

    broadcaster.publish_all(outcome.notifications)
    return outcome.to_response()


@api_router.get("/commands/history")
async def list_command_history(store: Store = Depends(get_store)):
    return [command.to_dict() for command in await store.get_command_history()]


@api_router.delete("/commands/history")
async def clear_command_history(
    store: Store = Depends(get_store),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
):
    await store.clear_command_history()
    broadcaster.publish("history_cleared", {})
    return {"success": True}


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


@api_router.get("/dashboard")
async def dashboard(
    store: Store = Depends(get_store),
    config: AppConfig = Depends(get_config),
):
    """Counts and recent slices for the dashboard widgets."""
    return await build_dashboard(store, tz=config.tzinfo)


# ---------------------------------------------------------------------------
# Emails
# ---------------------------------------------------------------------------


@api_router.get("/emails")
async def list_emails(store: Store = Depends(get_store)):
    return [email.to_dict() for email in await store.get_emails()]


@api_router.get("/emails/unread")
async def list_unread_emails(store: Store = Depends(get_store)):
    return [email.to_dict() for email in await store.get_unread_emails()]


@api_router.post("/emails")
async def create_email(
    request: Request,
    store: Store = Depends(get_store),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
):
    payload = _validate(EmailCreate, await _json_body(request), "email")
    email = await store.create_email(payload)
    broadcaster.publish("email_created", email.to_dict())
    return email.to_dict()


@api_router.patch("/emails/{email_id}/read")
async def mark_email_read(
    email_id: str,
    store: Store = Depends(get_store),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
):
    await store.mark_email_as_read(email_id)
    broadcaster.publish("email_read", {"id": email_id})
    return {"success": True}


@api_router.post("/emails/summarize")
async def summarize_emails(
    request: Request,
    store: Store = Depends(get_store),
    summarizer: EmailSummarizer = Depends(get_summarizer),
):
    """Summarize the unread emails in the requested language."""
    body = _validate(SummarizeRequest, await _json_body(request, required=False), "summary request")
    emails = await store.get_unread_emails()
    summary = await summarizer.summarize(emails, body.language)
    return {"summary": summary, "emailCount": len(emails)}


@api_router.post("/emails/generate")
async def generate_email(
    request: Request,
    drafter: EmailDrafter = Depends(get_drafter),
):
    """Draft professional email content from a subject and context."""
    body = _validate(GenerateEmailRequest, await _json_body(request), "email draft")
    content = await drafter.draft(body.subject, body.context, body.language)
    return {"content": content}


# ---------------------------------------------------------------------------
# Calendar
# ---------------------------------------------------------------------------


@api_router.get("/calendar/events")
async def list_calendar_events(store: Store = Depends(get_store)):
    return [event.to_dict() for event in await store.get_calendar_events()]


@api_router.get("/calendar/today")
async def list_today_events(store: Store = Depends(get_store)):
    return [event.to_dict() for event in await store.get_today_events()]


@api_router.get("/calendar/upcoming")
async def list_upcoming_events(store: Store = Depends(get_store)):
    return [event.to_dict() for event in await store.get_upcoming_events()]


@api_router.post("/calendar/events")
async def create_calendar_event(
    request: Request,
    store: Store = Depends(get_store),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
):
    payload = _validate(CalendarEventCreate, await _json_body(request), "calendar event")
    event = await store.create_calendar_event(payload)
    broadcaster.publish("event_created", event.to_dict())
    return event.to_dict()


@api_router.delete("/calendar/events/{event_id}")
async def delete_calendar_event(
    event_id: str,
    store: Store = Depends(get_store),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
):
    await store.delete_calendar_event(event_id)
    broadcaster.publish("event_deleted", {"id": event_id})
    return {"success": True}


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@api_router.get("/tasks")
async def list_tasks(store: Store = Depends(get_store)):
    return [task.to_dict() for task in await store.get_tasks()]


@api_router.get("/tasks/pending")
async def list_pending_tasks(store: Store = Depends(get_store)):
    return [task.to_dict() for task in await store.get_pending_tasks()]


@api_router.post("/tasks")
async def create_task(
    request: Request,
    store: Store = Depends(get_store),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
):
    payload = _validate(TaskCreate, await _json_body(request), "task")
    task = await store.create_task(payload)
    broadcaster.publish("task_created", task.to_dict())
    return task.to_dict()


@api_router.patch("/tasks/{task_id}")
async def update_task(
    task_id: str,
    request: Request,
    store: Store = Depends(get_store),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
):
    """Apply a partial update; unknown ids give 404."""
    updates = _validate(TaskUpdate, await _json_body(request), "task")
    task = await store.update_task(task_id, updates)
    if task is None:
        raise EntityNotFoundError("Task not found", "task", task_id)
    broadcaster.publish("task_updated", task.to_dict())
    return task.to_dict()


@api_router.delete("/tasks/{task_id}")
async def delete_task(
    task_id: str,
    store: Store = Depends(get_store),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
):
    await store.delete_task(task_id)
    broadcaster.publish("task_deleted", {"id": task_id})
    return {"success": True}


# ---------------------------------------------------------------------------
# Reminders
# ---------------------------------------------------------------------------


@api_router.get("/reminders")
async def list_reminders(store: Store = Depends(get_store)):
    return [reminder.to_dict() for reminder in await store.get_reminders()]


@api_router.get("/reminders/active")
async def list_active_reminders(store: Store = Depends(get_store)):
    return [reminder.to_dict() for reminder in await store.get_active_reminders()]


@api_router.post("/reminders")
async def create_reminder(
    request: Request,
    store: Store = Depends(get_store),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
):
    payload = _validate(ReminderCreate, await _json_body(request), "reminder")
    reminder = await store.create_reminder(payload)
    broadcaster.publish("reminder_created", reminder.to_dict())
    return reminder.to_dict()


@api_router.patch("/reminders/{reminder_id}/deactivate")
async def deactivate_reminder(
    reminder_id: str,
    store: Store = Depends(get_store),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
):
    await store.deactivate_reminder(reminder_id)
    broadcaster.publish("reminder_deactivated", {"id": reminder_id})
    return {"success": True}


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@api_router.get("/health")
async def health(
    store: Store = Depends(get_store),
    classifier: CommandClassifier = Depends(get_classifier),
    broadcaster: EventBroadcaster = Depends(get_broadcaster),
):
    """Liveness plus storage backend, classifier availability and observers.

    Status is "degraded" while the classifier breaker is open.
    """
    availability = classifier.availability.snapshot()
    return {
        "status": "healthy" if availability["available"] else "degraded",
        "storage": store.backend_name,
        "classifier": {"mode": classifier.mode, **availability},
        "observers": broadcaster.observer_count,
        "version": APP_VERSION,
    }


# ---------------------------------------------------------------------------
# Push channel
# ---------------------------------------------------------------------------


@ws_router.websocket("/ws")
async def observer_channel(websocket: WebSocket):
    """Register an observer and keep it until the socket closes.

    Inbound frames, text or binary, are read and ignored.
    """
    broadcaster: EventBroadcaster = websocket.app.state.broadcaster
    observer_id = await broadcaster.connect(websocket)
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                logger.debug("observer_socket_closed", observer_id=observer_id)
                break
    finally:
        broadcaster.disconnect(observer_id)
