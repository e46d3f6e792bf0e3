"""Language detection for command text.

Urdu script is detected by Unicode range. Roman Urdu is scored against a
few families of common Urdu words written in Latin script. Anything else
is English.
"""

import regex

from zoya.core.logging import get_logger

logger = get_logger(__name__)

REGEX_TIMEOUT = 1.0

URDU_SCRIPT_PATTERN = regex.compile(r"[\u0600-\u06FF]")

# Two or more families matching means Roman Urdu
ROMAN_URDU_FAMILIES = [
    regex.compile(r"\b(?:aap|ap|main|mai|hoon|hun|hai|hain|ka|ki|ke|ko|se|me|mein|par|pe)\b", regex.IGNORECASE),
    regex.compile(r"\b(?:kya|kaise|kahan|kab|kyun|kyu|kaun|kon)\b", regex.IGNORECASE),
    regex.compile(r"\b(?:achha|acha|theek|thik|bhi|bhe|nahi|nahin)\b", regex.IGNORECASE),
    regex.compile(r"\b(?:jana|karna|dena|lena)\b", regex.IGNORECASE),
    regex.compile(r"\b(?:ghar|office|school|university|hospital)\b", regex.IGNORECASE),
    regex.compile(r"\b(?:meeting|call|email|reminder|task)\b", regex.IGNORECASE),
]

# Any one of these phrases is enough
ROMAN_URDU_PHRASES = [
    regex.compile(r"\b(?:mera|meri|mere|tumhara|tumhari|tumhare)\b", regex.IGNORECASE),
    regex.compile(r"\b(?:calendar|check|karo|kar|do|lagao|dikhao)\b", regex.IGNORECASE),
    regex.compile(r"\b(?:time|waqt|samay|baje|subah|sham|raat)\b", regex.IGNORECASE),
]


def detect_language(text: str) -> str:
    """Guess the language tag ('en', 'ur' or 'roman-ur') of ``text``."""
    try:
        if URDU_SCRIPT_PATTERN.search(text, timeout=REGEX_TIMEOUT):
            return "ur"

        score = sum(
            1 for pattern in ROMAN_URDU_FAMILIES if pattern.search(text, timeout=REGEX_TIMEOUT)
        )
        if score >= 2:
            return "roman-ur"

        if any(pattern.search(text, timeout=REGEX_TIMEOUT) for pattern in ROMAN_URDU_PHRASES):
            return "roman-ur"
    except (regex.error, TimeoutError) as e:
        logger.warning("language_detection_failed", error=str(e))

    return "en"
