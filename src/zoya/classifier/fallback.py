"""Local pattern-based command matcher.

Used when the provider is disabled, short-circuited by the breaker, or
fails. Deterministic: the same text and language always give the same
intent. Keyword families are checked in precedence order:

1. Greeting prefixes (hi, hello, hey, salam, assalam)     -> greeting, 0.8
2. Explicit creation phrasing ("add a note buy milk")      -> create_task, 0.7
3. Task / todo / note keywords                             -> check_tasks, 0.6
4. Meeting / schedule keywords                             -> check_calendar, 0.6
5. Email / mail keywords                                   -> check_emails, 0.6
6. Anything else                                           -> unknown, 0.3

Patterns run through the ``regex`` library with a timeout, so a
pathological input raises TimeoutError instead of hanging the request.

Usage:
    from zoya.classifier.fallback import FallbackMatcher

    matcher = FallbackMatcher()
    command = matcher.match("add a note buy groceries", "en")
    command.intent.parameters["title"]  # 'buy groceries'
"""

from __future__ import annotations

import regex

from zoya.classifier.intents import ClassifiedCommand, Intent
from zoya.core.logging import get_logger

logger = get_logger(__name__)

# Timeout for regex operations (seconds)
REGEX_TIMEOUT = 1.0

GREETING_CONFIDENCE = 0.8
CREATE_CONFIDENCE = 0.7
KEYWORD_CONFIDENCE = 0.6
UNKNOWN_CONFIDENCE = 0.3

_VERBS = r"(?:create|add|make|save|take|write|new)"
_NOUNS = r"(?:task|todo|note|reminder)s?"

# =============================================================================
# Patterns
# =============================================================================

GREETING_PATTERN = regex.compile(r"^(?:hi|hello|hey|salam|assalam)\b", regex.IGNORECASE)

CREATE_PATTERNS = [
    # Verb anywhere ("please add milk"), or "new ... task"
    regex.compile(rf"\b(?:create|add|make|save|take|write)\b|\bnew\b.*\b{_NOUNS}\b", regex.IGNORECASE),
    # Noun before verb ("task: make slides")
    regex.compile(rf"\b{_NOUNS}\b.*\b{_VERBS}\b", regex.IGNORECASE),
]

# Title extraction, tried in order; group 1 is the title
TITLE_PATTERNS = [
    regex.compile(
        rf"\b{_VERBS}\s+(?:a\s+)?(?:{_NOUNS}\b)?\s*(?:(?:to|for|about|that)\b|:)?\s*(.+)",
        regex.IGNORECASE,
    ),
    regex.compile(
        rf"\b{_NOUNS}\b\s*(?:(?:to|for|about|that)\b|:)?\s*(.+)",
        regex.IGNORECASE,
    ),
]

TASK_PATTERN = regex.compile(r"\b(?:tasks?|todos?|notes?)\b", regex.IGNORECASE)
MEETING_PATTERN = regex.compile(r"\bmeeting|\bschedul", regex.IGNORECASE)
EMAIL_PATTERN = regex.compile(r"\b(?:e-?mail|mail)", regex.IGNORECASE)


# =============================================================================
# Canned replies
# =============================================================================

RESPONSES: dict[str, dict[str, str]] = {
    "greeting": {
        "en": "Hello! I'm Zoya, your personal assistant. How can I help you today?",
        "ur": "السلام علیکم! میں زویا ہوں، آپ کی ذاتی معاون۔ میں کیسے مدد کر سکتی ہوں؟",
        "roman-ur": (
            "Assalam o alaikum! Main Zoya hun, aap ki personal assistant. "
            "Main kaise madad kar sakti hun?"
        ),
    },
    "create_task": {
        "en": "Creating task: {title}",
        "ur": "ٹاسک بنایا جا رہا ہے: {title}",
        "roman-ur": "Task banaya ja raha hai: {title}",
    },
    "check_tasks": {
        "en": "Let me check your tasks",
        "ur": "میں آپ کے ٹاسک چیک کر رہی ہوں",
        "roman-ur": "Main aap ke tasks check kar rahi hun",
    },
    "check_calendar": {
        "en": "Let me check your calendar",
        "ur": "میں آپ کی کیلنڈر چیک کر رہی ہوں",
        "roman-ur": "Main aap ki calendar check kar rahi hun",
    },
    "check_emails": {
        "en": "Let me check your emails",
        "ur": "میں آپ کے ای میل چیک کر رہی ہوں",
        "roman-ur": "Main aap ke emails check kar rahi hun",
    },
    "unknown": {
        "en": "I'm here to help! Could you please be more specific about what you need?",
        "ur": "معذرت، میں آپ کی مدد کرنے کی کوشش کر رہی ہوں۔ براہ کرم زیادہ تفصیل سے بتائیں",
        "roman-ur": (
            "Maazrat, main aap ki madad karne ki koshish kar rahi hun. "
            "Meherbani karke zyada tafseel se batayein"
        ),
    },
    "error": {
        "en": "Sorry, I couldn't process that command. Please try again.",
        "ur": "معذرت، میں یہ کمانڈ سمجھ نہیں سکی۔ براہ کرم دوبارہ کوشش کریں۔",
        "roman-ur": "Maazrat, main yeh command samajh nahi saki. Meherbani karke dobara koshish karein.",
    },
}


def localized(key: str, language: str, **values: str) -> str:
    """Pick the reply for ``key`` in ``language`` (English when unsupported)."""
    variants = RESPONSES[key]
    template = variants.get(language, variants["en"])
    return template.format(**values) if values else template


def error_command(language: str) -> ClassifiedCommand:
    """The intent returned when neither the provider nor the matcher produced one."""
    return ClassifiedCommand(
        intent=Intent(action="error", parameters={}, language=language, confidence=0.0),
        response=localized("error", language),
        language=language,
        source="error",
    )


# =============================================================================
# Matcher
# =============================================================================


class FallbackMatcher:
    """Keyword-family matcher producing canned, language-selected replies."""

    def __init__(self, timeout: float = REGEX_TIMEOUT):
        self._timeout = timeout

    def _search(self, pattern: regex.Pattern, text: str) -> regex.Match | None:
        return pattern.search(text, timeout=self._timeout)

    def extract_title(self, text: str) -> str:
        """Strip the leading creation verb and domain noun from ``text``.

        Returns the whole input when no pattern yields a non-empty title.
        """
        for pattern in TITLE_PATTERNS:
            match = self._search(pattern, text)
            if match and match.group(1).strip():
                return match.group(1).strip()
        return text.strip()

    def match(self, text: str, language: str) -> ClassifiedCommand:
        """Classify ``text`` by keyword family.

        Raises:
            TimeoutError: If a pattern exceeds the regex timeout
            regex.error: If a pattern fails to evaluate
        """
        lowered = text.lower()

        if self._search(GREETING_PATTERN, lowered):
            command = self._reply(
                "greeting", {}, GREETING_CONFIDENCE, localized("greeting", language), language
            )
        elif any(self._search(pattern, lowered) for pattern in CREATE_PATTERNS):
            command = self._create_task(text, language)
        elif self._search(TASK_PATTERN, lowered):
            command = self._keyword("check_tasks", {}, language)
        elif self._search(MEETING_PATTERN, lowered):
            command = self._keyword("check_calendar", {"query": text}, language)
        elif self._search(EMAIL_PATTERN, lowered):
            command = self._keyword("check_emails", {}, language)
        else:
            command = self._reply(
                "unknown", {"query": text}, UNKNOWN_CONFIDENCE, localized("unknown", language), language
            )

        logger.debug(
            "fallback_matched",
            action=command.intent.action,
            confidence=command.intent.confidence,
            language=language,
        )
        return command

    # -------------------------------------------------------------------------
    # Branch builders
    # -------------------------------------------------------------------------

    @staticmethod
    def _reply(
        action: str,
        parameters: dict[str, str],
        confidence: float,
        response: str,
        language: str,
    ) -> ClassifiedCommand:
        return ClassifiedCommand(
            intent=Intent(
                action=action,
                parameters=parameters,
                language=language,
                confidence=confidence,
            ),
            response=response,
            language=language,
            source="fallback",
        )

    def _create_task(self, text: str, language: str) -> ClassifiedCommand:
        title = self.extract_title(text)
        return self._reply(
            "create_task",
            {"title": title, "description": title},
            CREATE_CONFIDENCE,
            localized("create_task", language, title=title),
            language,
        )

    def _keyword(self, action: str, parameters: dict[str, str], language: str) -> ClassifiedCommand:
        return self._reply(action, parameters, KEYWORD_CONFIDENCE, localized(action, language), language)
