"""Tests for the FastAPI routes and the /ws push channel.

The lifespan is replaced by a no-op and app.state is populated by hand
with a fresh in-memory store and a fallback-only classifier.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from httpx import ASGITransport, AsyncClient

from zoya.classifier.command_classifier import CommandClassifier
from zoya.classifier.provider import AvailabilityState
from zoya.classifier.summarizer import EmailDrafter, EmailSummarizer
from zoya.config_schema import AppConfig, ClassifierConfig
from zoya.core.errors import StorageUnavailableError
from zoya.db.memory import MemoryStore
from zoya.engine.executor import CommandExecutor
from zoya.web.app import create_app
from zoya.web.events import EventBroadcaster


@asynccontextmanager
async def _noop_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    yield


def _build_app(broadcaster: EventBroadcaster | MagicMock | None = None) -> FastAPI:
    app = create_app()
    app.router.lifespan_context = _noop_lifespan

    config = AppConfig()
    store = MemoryStore()
    availability = AvailabilityState(cooldown_seconds=config.classifier.cooldown_seconds)
    classifier = CommandClassifier(None, config.classifier, availability)
    summarizer = EmailSummarizer(None, config.classifier, availability)

    app.state.config = config
    app.state.store = store
    app.state.anthropic_client = None
    app.state.classifier = classifier
    app.state.summarizer = summarizer
    app.state.drafter = EmailDrafter(None, ClassifierConfig(), availability)
    app.state.executor = CommandExecutor(store, classifier, summarizer)
    app.state.broadcaster = broadcaster or EventBroadcaster()
    return app


@pytest.fixture
def broadcaster() -> MagicMock:
    """Broadcaster double that records publishes."""
    mock = MagicMock()
    mock.observer_count = 0
    return mock


@pytest.fixture
def app(broadcaster: MagicMock) -> FastAPI:
    return _build_app(broadcaster)


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


def _published(broadcaster: MagicMock) -> list[str]:
    return [call.args[0] for call in broadcaster.publish.call_args_list]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


class TestProcessCommand:
    async def test_creates_task(self, client: AsyncClient, broadcaster: MagicMock) -> None:
        resp = await client.post(
            "/api/commands/process", json={"input": "add a note buy groceries", "language": "en"}
        )

        assert resp.status_code == 200
        data = resp.json()
        assert data["success"] is True
        assert data["intent"]["action"] == "create_task"
        assert data["result"]["title"] == "buy groceries"
        assert data["command"]["status"] == "completed"

        notifications = broadcaster.publish_all.call_args.args[0]
        assert [event_type for event_type, _ in notifications] == ["task_created", "command_executed"]

        pending = await client.get("/api/tasks/pending")
        assert [t["title"] for t in pending.json()].count("buy groceries") == 1

    async def test_greeting_is_processed(self, client: AsyncClient) -> None:
        resp = await client.post("/api/commands/process", json={"input": "hello", "inputType": "voice"})

        data = resp.json()
        assert data["intent"]["action"] == "greeting"
        assert data["command"]["status"] == "processed"
        assert data["command"]["inputType"] == "voice"

    @pytest.mark.parametrize("body", [{"input": ""}, {"input": "   "}, {"input": 12}, {}])
    async def test_invalid_input(self, client: AsyncClient, body: dict) -> None:
        resp = await client.post("/api/commands/process", json=body)

        assert resp.status_code == 400
        assert resp.json()["success"] is False
        assert (await client.get("/api/commands/history")).json() == []

    async def test_malformed_json(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/commands/process",
            content=b"{not json",
            headers={"content-type": "application/json"},
        )

        assert resp.status_code == 400
        assert resp.json() == {"success": False, "error": "Request body must be valid JSON"}

    async def test_unexpected_failure_is_500(self, app: FastAPI, client: AsyncClient) -> None:
        app.state.executor = MagicMock()
        app.state.executor.execute = AsyncMock(side_effect=RuntimeError("boom"))

        resp = await client.post("/api/commands/process", json={"input": "hello"})

        assert resp.status_code == 500
        assert resp.json() == {"success": False, "error": "Failed to process command"}

    async def test_storage_failure_is_500(self, app: FastAPI, client: AsyncClient) -> None:
        app.state.store.create_command_history = AsyncMock(
            side_effect=StorageUnavailableError("No database connection available", "create_command_history")
        )

        resp = await client.post("/api/commands/process", json={"input": "hello"})

        assert resp.status_code == 500
        assert resp.json()["success"] is False


class TestCommandHistory:
    async def test_list_and_clear(self, client: AsyncClient, broadcaster: MagicMock) -> None:
        await client.post("/api/commands/process", json={"input": "hello"})
        await client.post("/api/commands/process", json={"input": "show my tasks"})

        history = (await client.get("/api/commands/history")).json()
        assert [h["input"] for h in history] == ["show my tasks", "hello"]

        resp = await client.delete("/api/commands/history")
        assert resp.json() == {"success": True}
        assert (await client.get("/api/commands/history")).json() == []
        broadcaster.publish.assert_called_with("history_cleared", {})


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


class TestTasks:
    async def test_create_defaults(self, client: AsyncClient, broadcaster: MagicMock) -> None:
        resp = await client.post("/api/tasks", json={"title": "Buy milk"})

        assert resp.status_code == 200
        task = resp.json()
        assert task["priority"] == "medium"
        assert task["completed"] is False
        assert task["dueDate"] is None
        assert _published(broadcaster) == ["task_created"]

    async def test_create_invalid(self, client: AsyncClient) -> None:
        resp = await client.post("/api/tasks", json={"title": "", "priority": "urgent"})

        assert resp.status_code == 400
        data = resp.json()
        assert data["success"] is False
        assert data["error"] == "Invalid task data"
        assert len(data["errors"]) == 2

    async def test_partial_update(self, client: AsyncClient, broadcaster: MagicMock) -> None:
        created = (await client.post("/api/tasks", json={"title": "Draft", "priority": "low"})).json()

        resp = await client.patch(f"/api/tasks/{created['id']}", json={"completed": True})

        assert resp.status_code == 200
        updated = resp.json()
        assert updated["completed"] is True
        assert updated["title"] == "Draft"
        assert updated["priority"] == "low"
        assert _published(broadcaster) == ["task_created", "task_updated"]

    async def test_update_unknown(self, client: AsyncClient) -> None:
        resp = await client.patch("/api/tasks/missing", json={"completed": True})

        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "Task not found"}

    async def test_delete(self, client: AsyncClient) -> None:
        created = (await client.post("/api/tasks", json={"title": "x"})).json()

        resp = await client.delete(f"/api/tasks/{created['id']}")

        assert resp.json() == {"success": True}
        assert (await client.get("/api/tasks")).json() == []

    async def test_non_object_body(self, client: AsyncClient) -> None:
        resp = await client.post("/api/tasks", json=["Buy milk"])

        assert resp.status_code == 400
        assert resp.json()["error"] == "Request body must be a JSON object"


# ---------------------------------------------------------------------------
# Calendar, emails, reminders
# ---------------------------------------------------------------------------


class TestCalendar:
    async def test_create_and_list(self, client: AsyncClient, broadcaster: MagicMock) -> None:
        resp = await client.post(
            "/api/calendar/events",
            json={
                "title": "Design review",
                "startTime": "2099-01-05T10:00:00Z",
                "endTime": "2099-01-05T11:00:00Z",
                "attendees": ["Ali"],
            },
        )

        assert resp.status_code == 200
        event = resp.json()
        assert event["startTime"].startswith("2099-01-05T10:00:00")
        assert [e["id"] for e in (await client.get("/api/calendar/upcoming")).json()] == [event["id"]]
        assert _published(broadcaster) == ["event_created"]

    async def test_end_before_start(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/calendar/events",
            json={
                "title": "Backwards",
                "startTime": "2099-01-05T11:00:00Z",
                "endTime": "2099-01-05T10:00:00Z",
            },
        )

        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid calendar event data"

    async def test_delete(self, client: AsyncClient, broadcaster: MagicMock) -> None:
        event = (
            await client.post(
                "/api/calendar/events",
                json={"title": "x", "startTime": "2099-01-05T10:00:00Z", "endTime": "2099-01-05T10:30:00Z"},
            )
        ).json()

        resp = await client.delete(f"/api/calendar/events/{event['id']}")

        assert resp.json() == {"success": True}
        assert (await client.get("/api/calendar/events")).json() == []
        broadcaster.publish.assert_called_with("event_deleted", {"id": event["id"]})


class TestEmails:
    async def test_create_read_and_unread(self, client: AsyncClient, broadcaster: MagicMock) -> None:
        email = (
            await client.post(
                "/api/emails",
                json={"sender": "Ali", "recipient": "me", "subject": "Invoice", "body": "Attached."},
            )
        ).json()
        assert email["isRead"] is False

        resp = await client.patch(f"/api/emails/{email['id']}/read")

        assert resp.json() == {"success": True}
        assert (await client.get("/api/emails/unread")).json() == []
        assert len((await client.get("/api/emails")).json()) == 1
        assert _published(broadcaster) == ["email_created", "email_read"]

    async def test_summarize_without_body(self, client: AsyncClient) -> None:
        await client.post(
            "/api/emails",
            json={"sender": "Ali", "recipient": "me", "subject": "Invoice", "body": "..."},
        )

        resp = await client.post("/api/emails/summarize")

        assert resp.json() == {"summary": "You have 1 email(s):\n\n1. From Ali: Invoice", "emailCount": 1}

    async def test_summarize_empty(self, client: AsyncClient) -> None:
        resp = await client.post("/api/emails/summarize", json={"language": "ur"})

        assert resp.json()["emailCount"] == 0

    async def test_generate(self, client: AsyncClient) -> None:
        resp = await client.post(
            "/api/emails/generate", json={"subject": "Budget", "context": "Ask for Q4 numbers"}
        )

        assert resp.status_code == 200
        assert "Ask for Q4 numbers" in resp.json()["content"]

    async def test_generate_requires_subject(self, client: AsyncClient) -> None:
        resp = await client.post("/api/emails/generate", json={"context": "Ask for numbers"})

        assert resp.status_code == 400


class TestReminders:
    async def test_create_and_deactivate(self, client: AsyncClient, broadcaster: MagicMock) -> None:
        reminder = (
            await client.post(
                "/api/reminders", json={"title": "Pay rent", "reminderTime": "2099-01-01T08:00:00Z"}
            )
        ).json()
        assert reminder["isActive"] is True

        resp = await client.patch(f"/api/reminders/{reminder['id']}/deactivate")

        assert resp.json() == {"success": True}
        assert (await client.get("/api/reminders/active")).json() == []
        assert len((await client.get("/api/reminders")).json()) == 1
        assert _published(broadcaster) == ["reminder_created", "reminder_deactivated"]


# ---------------------------------------------------------------------------
# Dashboard and health
# ---------------------------------------------------------------------------


class TestDashboardAndHealth:
    async def test_dashboard_shape(self, client: AsyncClient) -> None:
        data = (await client.get("/api/dashboard")).json()

        assert set(data) == {
            "todayMeetings",
            "unreadEmails",
            "pendingTasks",
            "nextMeeting",
            "upcomingEvents",
            "recentEmails",
            "recentTasks",
            "commandHistory",
        }

    async def test_health(self, client: AsyncClient) -> None:
        data = (await client.get("/api/health")).json()

        assert data["status"] == "healthy"
        assert data["storage"] == "memory"
        assert data["classifier"]["mode"] == "fallback_only"
        assert data["observers"] == 0

    async def test_health_degraded_while_breaker_open(self, app: FastAPI, client: AsyncClient) -> None:
        app.state.classifier.availability.mark_unavailable()

        data = (await client.get("/api/health")).json()

        assert data["status"] == "degraded"
        assert data["classifier"]["available"] is False


# ---------------------------------------------------------------------------
# Push channel
# ---------------------------------------------------------------------------


class TestObserverChannel:
    def test_observer_receives_task_created(self) -> None:
        app = _build_app()

        with TestClient(app) as tc:
            with tc.websocket_connect("/ws") as ws:
                resp = tc.post("/api/tasks", json={"title": "Buy milk"})
                assert resp.status_code == 200

                frame = ws.receive_json()

        assert frame["type"] == "task_created"
        assert frame["data"]["title"] == "Buy milk"

    def test_command_events_arrive_in_order(self) -> None:
        app = _build_app()

        with TestClient(app) as tc:
            with tc.websocket_connect("/ws") as ws:
                tc.post("/api/commands/process", json={"input": "add a note call the bank"})

                first = ws.receive_json()
                second = ws.receive_json()

        assert [first["type"], second["type"]] == ["task_created", "command_executed"]
        assert second["data"]["command"]["status"] == "completed"

    def test_binary_frames_are_ignored(self) -> None:
        app = _build_app()

        with TestClient(app) as tc:
            with tc.websocket_connect("/ws") as ws:
                ws.send_bytes(b"\x00\x01")
                ws.send_text("ping")
                resp = tc.post("/api/tasks", json={"title": "Pay rent"})
                assert resp.status_code == 200

                frame = ws.receive_json()

        assert frame["type"] == "task_created"
        assert frame["data"]["title"] == "Pay rent"
