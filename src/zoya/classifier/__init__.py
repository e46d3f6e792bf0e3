"""Command understanding components.

This package turns free text into structured intents:
- Claude command classifier with a circuit breaker
- Local fallback matcher with canned multilingual replies
- Intent and typed parameter definitions
- Email summarizer and drafter
- Language detection
"""

from zoya.classifier.command_classifier import CommandClassifier, parse_provider_output
from zoya.classifier.fallback import FallbackMatcher, error_command, localized
from zoya.classifier.intents import (
    ACTION_VOCABULARY,
    KNOWN_ACTIONS,
    ClassifiedCommand,
    CreateTaskParams,
    Intent,
    QueryParams,
    RescheduleMeetingParams,
    ScheduleMeetingParams,
    SendEmailParams,
    SetReminderParams,
    UnparsedParams,
)
from zoya.classifier.language import detect_language
from zoya.classifier.provider import AvailabilityState, build_client
from zoya.classifier.summarizer import EmailDrafter, EmailSummarizer

__all__ = [
    # Classifier
    "CommandClassifier",
    "parse_provider_output",
    "AvailabilityState",
    "build_client",
    # Fallback
    "FallbackMatcher",
    "error_command",
    "localized",
    # Intents
    "ACTION_VOCABULARY",
    "KNOWN_ACTIONS",
    "ClassifiedCommand",
    "Intent",
    "ScheduleMeetingParams",
    "RescheduleMeetingParams",
    "CreateTaskParams",
    "SetReminderParams",
    "SendEmailParams",
    "QueryParams",
    "UnparsedParams",
    # Email helpers
    "EmailSummarizer",
    "EmailDrafter",
    # Language
    "detect_language",
]
