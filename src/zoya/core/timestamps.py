"""Timestamp helpers shared by the stores, executor and routes.

Every timestamp the assistant stores is timezone-aware UTC. Naive values
(from the provider or an API client) are interpreted as UTC.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta, tzinfo


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC.

    Args:
        value: Naive (assumed UTC) or aware datetime

    Returns:
        The same instant with tzinfo=UTC
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_timestamp(value: str | datetime) -> datetime:
    """Parse an ISO 8601 timestamp into aware UTC.

    Accepts a trailing 'Z' and naive strings.

    Raises:
        ValueError: If the value is not a valid ISO 8601 timestamp
    """
    if isinstance(value, datetime):
        return ensure_utc(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Expected an ISO 8601 timestamp, got {value!r}")
    return ensure_utc(datetime.fromisoformat(value.strip()))


def to_iso(value: datetime | None) -> str | None:
    """Render a timestamp as ISO 8601 text, or None."""
    return value.isoformat() if value is not None else None


def day_bounds(now: datetime, tz: tzinfo) -> tuple[datetime, datetime]:
    """Return the UTC start and end of the local day containing ``now``.

    Args:
        now: Reference instant
        tz: Timezone that defines the local day

    Returns:
        (start, end) as aware UTC datetimes; end is exclusive
    """
    local = ensure_utc(now).astimezone(tz)
    start_local = local.replace(hour=0, minute=0, second=0, microsecond=0)
    end_local = start_local + timedelta(days=1)
    return start_local.astimezone(UTC), end_local.astimezone(UTC)


def format_clock(value: datetime, tz: tzinfo) -> str:
    """Render a timestamp as 24-hour HH:MM in the given timezone."""
    return ensure_utc(value).astimezone(tz).strftime("%H:%M")
