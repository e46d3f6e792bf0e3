"""Tests for email summaries, drafts and language detection."""

from types import SimpleNamespace
from unittest.mock import MagicMock

import anthropic
import httpx
import pytest

from zoya.classifier.language import detect_language
from zoya.classifier.provider import AvailabilityState
from zoya.classifier.summarizer import (
    NO_UNREAD_EMAILS,
    EmailDrafter,
    EmailSummarizer,
    plain_summary,
    template_draft,
)
from zoya.config_schema import ClassifierConfig
from zoya.db.entities import EmailCreate
from zoya.db.memory import MemoryStore


def _message(text: str) -> SimpleNamespace:
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=text)])


async def _emails(store: MemoryStore, count: int = 2) -> list:
    for i in range(count):
        await store.create_email(
            EmailCreate(
                sender=f"Sender {i}",
                recipient="user@company.com",
                subject=f"Subject {i}",
                body=f"Body {i}",
            )
        )
    return await store.get_unread_emails()


class TestEmailSummarizer:
    async def test_empty_list_skips_provider(self, mock_anthropic_client: MagicMock) -> None:
        summarizer = EmailSummarizer(mock_anthropic_client, ClassifierConfig())

        assert await summarizer.summarize([], "en") == NO_UNREAD_EMAILS
        mock_anthropic_client.messages.create.assert_not_called()

    async def test_provider_summary(
        self, mock_anthropic_client: MagicMock, memory_store: MemoryStore
    ) -> None:
        mock_anthropic_client.messages.create.return_value = _message("  Two updates.  ")
        summarizer = EmailSummarizer(mock_anthropic_client, ClassifierConfig())
        emails = await _emails(memory_store)

        summary = await summarizer.summarize(emails, "roman-ur")

        assert summary == "Two updates."
        kwargs = mock_anthropic_client.messages.create.call_args.kwargs
        assert kwargs["model"] == ClassifierConfig().summary_model
        assert "Roman Urdu" in kwargs["messages"][0]["content"]

    async def test_failure_returns_enumerated_listing(
        self, mock_anthropic_client: MagicMock, memory_store: MemoryStore
    ) -> None:
        mock_anthropic_client.messages.create.side_effect = anthropic.APIConnectionError(
            request=httpx.Request("POST", "https://api.anthropic.com/v1/messages")
        )
        summarizer = EmailSummarizer(mock_anthropic_client, ClassifierConfig())
        emails = await _emails(memory_store)

        summary = await summarizer.summarize(emails, "en")

        assert summary == (
            "You have 2 email(s):\n\n1. From Sender 1: Subject 1\n2. From Sender 0: Subject 0"
        )

    async def test_open_breaker_skips_provider(
        self, mock_anthropic_client: MagicMock, memory_store: MemoryStore
    ) -> None:
        availability = AvailabilityState(cooldown_seconds=60)
        availability.mark_unavailable()
        summarizer = EmailSummarizer(mock_anthropic_client, ClassifierConfig(), availability)
        emails = await _emails(memory_store, count=1)

        assert await summarizer.summarize(emails, "en") == plain_summary(emails)
        mock_anthropic_client.messages.create.assert_not_called()

    async def test_no_client(self, memory_store: MemoryStore) -> None:
        emails = await _emails(memory_store, count=1)
        summary = await EmailSummarizer(None, ClassifierConfig()).summarize(emails, "en")
        assert summary.startswith("You have 1 email(s):")


class TestEmailDrafter:
    async def test_provider_draft(self, mock_anthropic_client: MagicMock) -> None:
        mock_anthropic_client.messages.create.return_value = _message("Dear team, ...")
        drafter = EmailDrafter(mock_anthropic_client, ClassifierConfig())

        assert await drafter.draft("Budget", "Ask for Q4 numbers", "en") == "Dear team, ..."

    async def test_fallback_template(self) -> None:
        content = await EmailDrafter(None, ClassifierConfig()).draft("Budget", "Ask for numbers", "en")

        assert content == template_draft("Budget", "Ask for numbers")
        assert content == (
            "Dear [Recipient],\n\nAsk for numbers\n\nSubject: Budget\n\nBest regards,\n[Your Name]"
        )


class TestDetectLanguage:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ("آج میری میٹنگ کب ہے", "ur"),
            ("mera calendar check karo", "roman-ur"),
            ("aap kaise hain", "roman-ur"),
            ("Schedule a meeting tomorrow at noon", "en"),
            ("Summarize my unread emails", "en"),
        ],
    )
    def test_detection(self, text: str, expected: str) -> None:
        assert detect_language(text) == expected
