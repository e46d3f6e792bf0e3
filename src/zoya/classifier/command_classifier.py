"""Command classifier: Claude first, local matcher as the safety net.

Classification flow:
1. Provider disabled or no client            -> fallback matcher
2. Breaker open and inside the cooldown       -> fallback matcher, no call
3. Call Claude, parse the JSON reply          -> provider intent, breaker reset
4. Call or parse failed                       -> fallback matcher
   (401/403/404 and timeouts also open the breaker)
5. Fallback matcher itself failed             -> 'error' intent, confidence 0.0

``classify`` never raises.

Usage:
    from zoya.classifier.command_classifier import CommandClassifier

    classifier = CommandClassifier(anthropic_client, config.classifier)
    command = await classifier.classify("add a task to call mom", "en")
    command.intent.action  # 'create_task'
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import regex

from zoya.classifier.fallback import FallbackMatcher, error_command
from zoya.classifier.intents import ClassifiedCommand, Intent
from zoya.classifier.prompts import COMMAND_SYSTEM_PROMPT, build_command_prompt
from zoya.classifier.provider import AvailabilityState, request_text
from zoya.core.errors import ClassifierError
from zoya.core.logging import get_logger
from zoya.core.timestamps import to_iso, utc_now

if TYPE_CHECKING:
    import anthropic

    from zoya.config_schema import ClassifierConfig

logger = get_logger(__name__)

DEFAULT_RESPONSE = "Command processed."


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence (```json ... ```), if any."""
    stripped = text.strip()
    if not stripped.startswith("```"):
        return stripped
    lines = stripped.splitlines()
    body = lines[1:]
    if body and body[-1].strip() == "```":
        body = body[:-1]
    return "\n".join(body).strip()


def parse_provider_output(text: str, language_hint: str) -> ClassifiedCommand:
    """Parse the provider's JSON reply into a ClassifiedCommand.

    The reply is untrusted: every field is checked and defaulted.

    Raises:
        ClassifierError: If the text is not a JSON object
    """
    try:
        data: Any = json.loads(strip_code_fences(text))
    except json.JSONDecodeError as e:
        raise ClassifierError(f"Provider returned malformed JSON: {e.msg}") from e

    if not isinstance(data, dict):
        raise ClassifierError(
            f"Provider returned JSON {type(data).__name__}, expected an object"
        )

    intent = Intent.from_provider(data.get("intent"), language_hint)

    response = data.get("response")
    if not isinstance(response, str) or not response.strip():
        response = DEFAULT_RESPONSE

    language = data.get("language")
    if not isinstance(language, str) or not language.strip():
        language = language_hint

    return ClassifiedCommand(intent=intent, response=response, language=language)


class CommandClassifier:
    """Turns free text into a ClassifiedCommand.

    Attributes:
        _client: Async Anthropic client, or None for fallback-only mode
        _config: Classifier configuration
        _availability: Breaker state, shared with the summarizer and drafter
        _matcher: Local fallback matcher
    """

    def __init__(
        self,
        anthropic_client: anthropic.AsyncAnthropic | None,
        config: ClassifierConfig,
        availability: AvailabilityState | None = None,
        matcher: FallbackMatcher | None = None,
    ):
        self._client = anthropic_client
        self._config = config
        self._availability = availability or AvailabilityState(
            cooldown_seconds=config.cooldown_seconds
        )
        self._matcher = matcher or FallbackMatcher()

    @property
    def availability(self) -> AvailabilityState:
        return self._availability

    @property
    def mode(self) -> str:
        """'provider' when Claude is in use, 'fallback_only' otherwise."""
        if self._client is None or not self._config.enabled:
            return "fallback_only"
        return "provider"

    async def classify(self, text: str, language: str) -> ClassifiedCommand:
        """Classify a command. Never raises.

        Args:
            text: Raw command text (already validated as non-empty)
            language: Language hint from the client

        Returns:
            ClassifiedCommand from the provider, the fallback matcher, or
            an 'error' intent when both failed
        """
        if self.mode == "fallback_only":
            return self._fallback(text, language)

        if self._availability.should_short_circuit():
            logger.info("classifier_short_circuited", cooldown_seconds=self._availability.cooldown_seconds)
            return self._fallback(text, language)

        try:
            command = await self._classify_with_claude(text, language)
        except ClassifierError as e:
            if e.trips_breaker:
                self._availability.mark_unavailable()
                logger.warning(
                    "classifier_unavailable",
                    status_code=e.status_code,
                    error=str(e),
                    cooldown_seconds=self._availability.cooldown_seconds,
                )
            else:
                logger.warning("classifier_failed", status_code=e.status_code, error=str(e))
            return self._fallback(text, language)

        self._availability.mark_available()
        logger.info(
            "command_classified",
            action=command.intent.action,
            confidence=command.intent.confidence,
            language=command.language,
            source=command.source,
        )
        return command

    async def _classify_with_claude(self, text: str, language: str) -> ClassifiedCommand:
        assert self._client is not None
        output = await request_text(
            self._client,
            timeout=self._config.timeout_seconds,
            operation="classify",
            model=self._config.model,
            max_tokens=self._config.max_tokens,
            temperature=self._config.temperature,
            system=COMMAND_SYSTEM_PROMPT,
            messages=[
                {
                    "role": "user",
                    "content": build_command_prompt(text, language, to_iso(utc_now())),
                }
            ],
        )
        return parse_provider_output(output, language)

    def _fallback(self, text: str, language: str) -> ClassifiedCommand:
        try:
            command = self._matcher.match(text, language)
        except (TimeoutError, regex.error) as e:
            logger.error("fallback_matcher_failed", error=str(e))
            return error_command(language)

        logger.info(
            "command_classified",
            action=command.intent.action,
            confidence=command.intent.confidence,
            language=command.language,
            source=command.source,
        )
        return command
