"""Dashboard aggregate read.

The four reads touch disjoint collections and run concurrently.

Usage:
    data = await build_dashboard(store, tz=config.tzinfo)
    data["nextMeeting"]  # {'title': ..., 'time': '14:00 - 14:30'} or None
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, tzinfo
from typing import TYPE_CHECKING, Any

from zoya.core.timestamps import ensure_utc, format_clock, utc_now

if TYPE_CHECKING:
    from zoya.db.entities import CalendarEvent
    from zoya.db.store import Store

SLICE_SIZE = 5
HISTORY_SLICE_SIZE = 10


def next_meeting(events: list[CalendarEvent], now: datetime, tz: tzinfo) -> dict[str, str] | None:
    """First of today's events that has not started yet."""
    for event in events:
        if event.start_time > now:
            return {
                "title": event.title,
                "time": f"{format_clock(event.start_time, tz)} - {format_clock(event.end_time, tz)}",
            }
    return None


async def build_dashboard(
    store: Store,
    tz: tzinfo = UTC,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Collect counts and recent slices for the dashboard.

    Raises:
        StorageUnavailableError: If any of the reads fails
    """
    today_events, unread_emails, pending_tasks, history = await asyncio.gather(
        store.get_today_events(),
        store.get_unread_emails(),
        store.get_pending_tasks(),
        store.get_command_history(),
    )
    current = ensure_utc(now) if now else utc_now()

    return {
        "todayMeetings": len(today_events),
        "unreadEmails": len(unread_emails),
        "pendingTasks": len(pending_tasks),
        "nextMeeting": next_meeting(today_events, current, tz),
        "upcomingEvents": [event.to_dict() for event in today_events[:SLICE_SIZE]],
        "recentEmails": [email.to_dict() for email in unread_emails[:SLICE_SIZE]],
        "recentTasks": [task.to_dict() for task in pending_tasks[:SLICE_SIZE]],
        "commandHistory": [command.to_dict() for command in history[:HISTORY_SLICE_SIZE]],
    }
