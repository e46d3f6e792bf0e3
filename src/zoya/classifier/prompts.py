"""Prompt templates for the command classifier, summarizer and drafter.

The command prompt enumerates the action vocabulary and asks for a
single JSON object. Provider output is never trusted; see
``command_classifier.parse_provider_output``.

Usage:
    from zoya.classifier.prompts import build_command_prompt

    prompt = build_command_prompt("schedule a meeting tomorrow at 3pm")
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from zoya.db.entities import Email

LANGUAGE_NAMES: dict[str, str] = {
    "en": "English",
    "ur": "Urdu",
    "roman-ur": "Roman Urdu",
}


def language_name(language: str) -> str:
    """Human-readable language name for prompts. Unknown tags read as English."""
    return LANGUAGE_NAMES.get(language, "English")


# ---------------------------------------------------------------------------
# Command classification
# ---------------------------------------------------------------------------

COMMAND_SYSTEM_PROMPT = """You are Zoya, an AI personal assistant. Analyze the user's command and extract the intent and parameters.

Support these actions:
- schedule_meeting: Schedule a new meeting (requires title, startTime; optional endTime, attendees, location)
- check_calendar: Check calendar for specific date or today
- send_email: Send an email (requires recipient, subject, content)
- check_emails: Check recent or unread emails
- create_task: Create a new task (requires title, optional priority/dueDate)
- set_reminder: Set a reminder (requires title, reminderTime)
- summarize_emails: Summarize recent emails
- reschedule_meeting: Reschedule an existing meeting

Languages supported: English (en), Urdu (ur), Roman Urdu (roman-ur)

Times must be ISO 8601 timestamps (for example 2025-03-14T15:00:00Z).
Priority is one of: low, medium, high.

Respond with JSON only, in this format:
{
  "intent": {
    "action": "action_name",
    "parameters": { "key": "value" },
    "language": "detected_language",
    "confidence": 0.95
  },
  "response": "Natural response in the detected language",
  "language": "detected_language"
}

For Roman Urdu, respond in Roman Urdu. For Urdu, respond in Urdu script. For English, respond in English."""


def build_command_prompt(text: str, language_hint: str = "en", now_iso: str | None = None) -> str:
    """Build the per-command user message.

    Args:
        text: Raw user command
        language_hint: Language the client believes the command is in
        now_iso: Current time, so relative dates can be resolved

    Returns:
        User message content
    """
    lines = []
    if now_iso:
        lines.append(f"Current time: {now_iso}")
    lines.append(f"Language hint: {language_hint}")
    lines.append(f"User command: {text}")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Email summary and drafting
# ---------------------------------------------------------------------------

SUMMARY_SYSTEM_PROMPT = (
    "You are Zoya, a personal assistant. Summarize emails concisely, "
    "highlighting key points and action items. Reply with the summary text only."
)

DRAFT_SYSTEM_PROMPT = (
    "You are Zoya, a personal assistant. Write professional email content. "
    "Reply with the email text only."
)


def build_summary_prompt(emails: Sequence[Email], language: str) -> str:
    email_text = "\n\n---\n\n".join(
        f"From: {email.sender}\nSubject: {email.subject}\nContent: {email.body}"
        for email in emails
    )
    return (
        "Summarize the following emails concisely, highlighting key points and action items.\n"
        f"Language: {language_name(language)}\n\n"
        f"Emails:\n{email_text}"
    )


def build_draft_prompt(subject: str, context: str, language: str) -> str:
    return (
        "Generate professional email content based on the subject and context provided.\n"
        f"Language: {language_name(language)}\n\n"
        f"Subject: {subject}\n"
        f"Context: {context}"
    )
