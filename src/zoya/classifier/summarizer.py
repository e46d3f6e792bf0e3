"""Email summaries and drafts via Claude, with deterministic fallbacks.

Both helpers honour the breaker shared with the command classifier: while
it is open they skip the provider and return their fallback text.

Usage:
    summarizer = EmailSummarizer(client, config.classifier, availability)
    text = await summarizer.summarize(unread_emails, "en")

    drafter = EmailDrafter(client, config.classifier, availability)
    body = await drafter.draft("Budget", "Ask for Q4 numbers", "en")
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from zoya.classifier.prompts import (
    DRAFT_SYSTEM_PROMPT,
    SUMMARY_SYSTEM_PROMPT,
    build_draft_prompt,
    build_summary_prompt,
)
from zoya.classifier.provider import AvailabilityState, request_text
from zoya.core.errors import ClassifierError
from zoya.core.logging import get_logger

if TYPE_CHECKING:
    import anthropic

    from zoya.config_schema import ClassifierConfig
    from zoya.db.entities import Email

logger = get_logger(__name__)

NO_UNREAD_EMAILS = "You have no unread emails."


def plain_summary(emails: Sequence[Email]) -> str:
    """Enumerated listing used when the provider cannot summarize."""
    lines = [f"{idx}. From {email.sender}: {email.subject}" for idx, email in enumerate(emails, 1)]
    return f"You have {len(emails)} email(s):\n\n" + "\n".join(lines)


def template_draft(subject: str, context: str) -> str:
    """Fixed email template used when the provider cannot draft."""
    return f"Dear [Recipient],\n\n{context}\n\nSubject: {subject}\n\nBest regards,\n[Your Name]"


class _ProviderHelper:
    def __init__(
        self,
        anthropic_client: anthropic.AsyncAnthropic | None,
        config: ClassifierConfig,
        availability: AvailabilityState | None = None,
    ):
        self._client = anthropic_client
        self._config = config
        self._availability = availability or AvailabilityState(
            cooldown_seconds=config.cooldown_seconds
        )

    def _provider_usable(self) -> bool:
        return (
            self._client is not None
            and self._config.enabled
            and not self._availability.should_short_circuit()
        )

    async def _ask(self, operation: str, system: str, prompt: str) -> str:
        try:
            text = await request_text(
                self._client,
                timeout=self._config.timeout_seconds,
                operation=operation,
                model=self._config.summary_model,
                max_tokens=self._config.max_tokens,
                system=system,
                messages=[{"role": "user", "content": prompt}],
            )
        except ClassifierError as e:
            if e.trips_breaker:
                self._availability.mark_unavailable()
            raise
        self._availability.mark_available()
        return text.strip()


class EmailSummarizer(_ProviderHelper):
    """Summarizes a list of emails in the requested language."""

    async def summarize(self, emails: Sequence[Email], language: str) -> str:
        """Summarize ``emails``. Never raises.

        Returns:
            Provider summary, or the enumerated listing on any failure
        """
        if not emails:
            return NO_UNREAD_EMAILS
        if not self._provider_usable():
            return plain_summary(emails)

        try:
            summary = await self._ask(
                "summarize", SUMMARY_SYSTEM_PROMPT, build_summary_prompt(emails, language)
            )
        except ClassifierError as e:
            logger.warning("email_summary_failed", error=str(e), email_count=len(emails))
            return plain_summary(emails)

        logger.info("emails_summarized", email_count=len(emails), language=language)
        return summary


class EmailDrafter(_ProviderHelper):
    """Writes professional email bodies from a subject and some context."""

    async def draft(self, subject: str, context: str, language: str) -> str:
        if not self._provider_usable():
            return template_draft(subject, context)

        try:
            content = await self._ask(
                "draft", DRAFT_SYSTEM_PROMPT, build_draft_prompt(subject, context, language)
            )
        except ClassifierError as e:
            logger.warning("email_draft_failed", error=str(e))
            return template_draft(subject, context)

        logger.info("email_drafted", language=language, chars=len(content))
        return content
