"""Shared plumbing for Claude calls: availability state and a bounded request.

The classifier, summarizer and drafter share one ``AvailabilityState``
per process. When a call fails with an authentication, permission or
not-found status, or times out, the state flips to unavailable and
callers skip the provider for ``cooldown_seconds``. The state is read and
written without locking; a few extra live calls right after an outage
are acceptable.

Transient errors (429, 5xx, network) are retried inside the Anthropic
SDK (``max_retries`` on the client). Everything that still fails is
raised as ClassifierError.

Usage:
    state = AvailabilityState(cooldown_seconds=60)
    if not state.should_short_circuit():
        text = await request_text(client, timeout=15, model=..., ...)
"""

from __future__ import annotations

import asyncio
import os
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any

import anthropic

from zoya.core.errors import ClassifierError
from zoya.core.logging import get_logger
from zoya.core.timestamps import to_iso, utc_now

if TYPE_CHECKING:
    from zoya.config_schema import ClassifierConfig

logger = get_logger(__name__)

# Status codes that mean "this provider will not work until someone fixes config"
BREAKER_STATUS_CODES = frozenset({401, 403, 404})


@dataclass
class AvailabilityState:
    """Circuit-breaker state for the external provider.

    Attributes:
        available: False once a breaker-tripping failure was seen
        last_checked_at: Wall-clock time of the last state change
        cooldown_seconds: How long to skip the provider once unavailable
        clock: Monotonic clock used for the cooldown (injectable for tests)
    """

    available: bool = True
    last_checked_at: datetime | None = None
    cooldown_seconds: float = 60.0
    clock: Callable[[], float] = time.monotonic
    _last_check: float | None = field(default=None, repr=False)

    def should_short_circuit(self) -> bool:
        """True while unavailable and still inside the cooldown window."""
        if self.available or self._last_check is None:
            return False
        return (self.clock() - self._last_check) < self.cooldown_seconds

    def mark_available(self) -> None:
        self.available = True
        self._touch()

    def mark_unavailable(self) -> None:
        self.available = False
        self._touch()

    def _touch(self) -> None:
        self._last_check = self.clock()
        self.last_checked_at = utc_now()

    def snapshot(self) -> dict[str, Any]:
        return {
            "available": self.available,
            "lastCheckedAt": to_iso(self.last_checked_at),
        }


def response_text(response: Any) -> str:
    """Concatenate the text blocks of a Messages API response."""
    parts = []
    for block in getattr(response, "content", None) or []:
        if getattr(block, "type", None) == "text":
            parts.append(block.text)
    return "".join(parts)


async def request_text(
    client: anthropic.AsyncAnthropic,
    *,
    timeout: float,
    operation: str,
    **create_kwargs: Any,
) -> str:
    """Run one Messages API call bounded by ``timeout`` and return its text.

    Args:
        client: Async Anthropic client
        timeout: Upper bound on the whole call, SDK retries included
        operation: Label for logs ('classify', 'summarize', 'draft')
        **create_kwargs: Passed through to ``messages.create``

    Raises:
        ClassifierError: On timeout, API error or empty output. ``trips_breaker``
            is set for timeouts and 401/403/404.
    """
    start_time = time.monotonic()
    try:
        response = await asyncio.wait_for(
            client.messages.create(**create_kwargs),
            timeout=timeout,
        )
    except (TimeoutError, anthropic.APITimeoutError) as e:
        raise ClassifierError(
            f"Provider call '{operation}' timed out after {timeout}s",
            trips_breaker=True,
        ) from e
    except anthropic.APIStatusError as e:
        raise ClassifierError(
            f"Provider call '{operation}' failed with status {e.status_code}: {e.message}",
            status_code=e.status_code,
            trips_breaker=e.status_code in BREAKER_STATUS_CODES,
        ) from e
    except anthropic.APIConnectionError as e:
        raise ClassifierError(f"Provider call '{operation}' could not connect: {e}") from e
    except anthropic.AnthropicError as e:
        raise ClassifierError(f"Provider call '{operation}' failed: {e}") from e

    text = response_text(response)
    duration_ms = int((time.monotonic() - start_time) * 1000)
    logger.debug(
        "provider_call_complete",
        operation=operation,
        duration_ms=duration_ms,
        output_chars=len(text),
    )
    if not text.strip():
        raise ClassifierError(f"Provider call '{operation}' returned no text")
    return text


def build_client(config: ClassifierConfig) -> anthropic.AsyncAnthropic | None:
    """Create the async Claude client, or None for fallback-only mode.

    Returns None when the classifier is disabled, ANTHROPIC_API_KEY is
    not set, or the SDK refuses to build a client.
    """
    if not config.enabled:
        logger.info("classifier_disabled_fallback_only")
        return None
    if not os.environ.get("ANTHROPIC_API_KEY"):
        logger.warning("anthropic_key_missing_fallback_only")
        return None
    try:
        # SDK handles transient retries (429, 5xx, connection errors)
        return anthropic.AsyncAnthropic(max_retries=config.max_retries)
    except anthropic.AnthropicError as e:
        logger.error("anthropic_client_init_failed", error=str(e))
        return None
