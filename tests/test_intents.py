"""Tests for intent parsing, typed parameters and provider output parsing."""

import json

import pytest

from zoya.classifier.command_classifier import parse_provider_output, strip_code_fences
from zoya.classifier.intents import (
    CreateTaskParams,
    Intent,
    QueryParams,
    ScheduleMeetingParams,
    SetReminderParams,
    UnparsedParams,
)
from zoya.core.errors import ClassifierError


class TestIntentFromProvider:
    def test_known_action(self) -> None:
        intent = Intent.from_provider(
            {
                "action": "create_task",
                "parameters": {"title": "Buy milk"},
                "language": "en",
                "confidence": 0.92,
            },
            language_hint="en",
        )
        assert intent.action == "create_task"
        assert intent.confidence == 0.92
        assert intent.params == CreateTaskParams(title="Buy milk")

    def test_unlisted_action_coerced_to_unknown(self) -> None:
        intent = Intent.from_provider({"action": "order_pizza"}, language_hint="en")
        assert intent.action == "unknown"
        assert isinstance(intent.params, UnparsedParams)

    @pytest.mark.parametrize(
        "raw, expected",
        [
            (1.7, 1.0),
            (-0.2, 0.0),
            ("0.25", 0.25),
            ("high", 0.5),
            (True, 0.5),
            (float("nan"), 0.5),
            (None, 0.5),
        ],
    )
    def test_confidence_clamped(self, raw: object, expected: float) -> None:
        intent = Intent.from_provider({"action": "check_emails", "confidence": raw}, "en")
        assert intent.confidence == expected

    def test_missing_fields_default(self) -> None:
        intent = Intent.from_provider("not a dict", language_hint="roman-ur")
        assert intent.action == "unknown"
        assert intent.parameters == {}
        assert intent.language == "roman-ur"
        assert intent.confidence == 0.5

    def test_non_dict_parameters_dropped(self) -> None:
        intent = Intent.from_provider({"action": "create_task", "parameters": ["x"]}, "en")
        assert intent.parameters == {}


class TestTypedParams:
    def test_schedule_meeting_accepts_camel_and_snake(self) -> None:
        camel = Intent(
            "schedule_meeting",
            {"title": "Sync", "startTime": "2026-03-10T15:00:00Z", "attendees": "Ali, Sara"},
            "en",
            0.9,
        )
        snake = Intent("schedule_meeting", {"title": "Sync", "start_time": "2026-03-10T15:00:00Z"}, "en", 0.9)

        assert camel.params == ScheduleMeetingParams(
            title="Sync", start_time="2026-03-10T15:00:00Z", attendees=["Ali", "Sara"]
        )
        assert snake.params.start_time == "2026-03-10T15:00:00Z"

    def test_set_reminder(self) -> None:
        intent = Intent("set_reminder", {"title": "Pay rent", "reminderTime": "2026-03-11T08:00:00"}, "en", 0.8)
        assert intent.params == SetReminderParams(title="Pay rent", reminder_time="2026-03-11T08:00:00")

    def test_blank_values_read_as_missing(self) -> None:
        intent = Intent("create_task", {"title": "   ", "priority": None}, "en", 0.8)
        assert intent.params == CreateTaskParams()

    def test_read_actions_get_query_params(self) -> None:
        assert isinstance(Intent("check_calendar", {}, "en", 0.6).params, QueryParams)

    def test_to_dict_keeps_raw_parameters(self) -> None:
        intent = Intent("create_task", {"title": "x", "extra": 1}, "en", 0.7)
        assert intent.to_dict()["parameters"] == {"title": "x", "extra": 1}


class TestParseProviderOutput:
    def _payload(self, **overrides: object) -> str:
        data = {
            "intent": {
                "action": "check_calendar",
                "parameters": {},
                "language": "en",
                "confidence": 0.9,
            },
            "response": "Let me check your calendar.",
            "language": "en",
        }
        data.update(overrides)
        return json.dumps(data)

    def test_plain_json(self) -> None:
        command = parse_provider_output(self._payload(), "en")
        assert command.intent.action == "check_calendar"
        assert command.response == "Let me check your calendar."
        assert command.source == "provider"

    def test_fenced_json(self) -> None:
        text = f"```json\n{self._payload()}\n```"
        assert parse_provider_output(text, "en").intent.action == "check_calendar"

    def test_missing_response_and_language_defaulted(self) -> None:
        command = parse_provider_output(self._payload(response="", language=None), "ur")
        assert command.response == "Command processed."
        assert command.language == "ur"

    def test_malformed_json_raises(self) -> None:
        with pytest.raises(ClassifierError, match="malformed"):
            parse_provider_output("{not json", "en")

    def test_non_object_raises(self) -> None:
        with pytest.raises(ClassifierError, match="expected an object"):
            parse_provider_output("[1, 2]", "en")


def test_strip_code_fences_leaves_plain_text() -> None:
    assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'
    assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'
