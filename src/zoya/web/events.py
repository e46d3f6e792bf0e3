"""Push-update broadcaster for connected websocket observers.

Fire-and-forget fan-out: every event goes to the observers connected at
that moment. There is no buffering and no replay; an observer that was
offline simply misses what was published meanwhile. Sockets that are no
longer open are skipped, and a socket whose send fails is dropped.

Event frames are JSON text: ``{"type": <event>, "data": <payload>}``.

Usage:
    broadcaster = EventBroadcaster()

    # In the /ws endpoint
    observer_id = await broadcaster.connect(websocket)
    ...
    broadcaster.disconnect(observer_id)

    # From a route, without awaiting delivery
    broadcaster.publish("task_created", task.to_dict())
"""

from __future__ import annotations

import asyncio
import json
import uuid
from typing import Any

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from zoya.core.logging import get_logger

logger = get_logger(__name__)


class EventBroadcaster:
    """Registry of open observer sockets with best-effort delivery.

    Attributes:
        _observers: Observer id -> websocket
        _pending: Publish tasks still running (kept so they are not GC'd)
    """

    def __init__(self) -> None:
        self._observers: dict[str, WebSocket] = {}
        self._pending: set[asyncio.Task] = set()

    @property
    def observer_count(self) -> int:
        return len(self._observers)

    async def connect(self, websocket: WebSocket) -> str:
        """Register and accept a websocket. Returns its observer id.

        The socket is registered before the handshake completes; broadcasts
        skip it until it is connected.
        """
        observer_id = str(uuid.uuid4())
        self._observers[observer_id] = websocket
        try:
            await websocket.accept()
        except Exception:
            self._observers.pop(observer_id, None)
            raise
        logger.info("observer_connected", observer_id=observer_id, observers=len(self._observers))
        return observer_id

    def disconnect(self, observer_id: str) -> None:
        if self._observers.pop(observer_id, None) is not None:
            logger.info(
                "observer_disconnected",
                observer_id=observer_id,
                observers=len(self._observers),
            )

    async def broadcast(self, event_type: str, data: Any) -> int:
        """Send one event to every open observer.

        Returns:
            Number of observers the event was delivered to
        """
        message = json.dumps({"type": event_type, "data": data}, ensure_ascii=False, default=str)
        delivered = 0
        dropped = []

        for observer_id, websocket in list(self._observers.items()):
            if websocket.application_state != WebSocketState.CONNECTED:
                continue
            try:
                await websocket.send_text(message)
                delivered += 1
            except Exception as e:
                logger.warning(
                    "broadcast_send_failed",
                    observer_id=observer_id,
                    event_type=event_type,
                    error=str(e),
                )
                dropped.append(observer_id)

        for observer_id in dropped:
            self.disconnect(observer_id)

        logger.debug("event_broadcast", event_type=event_type, delivered=delivered)
        return delivered

    def publish(self, event_type: str, data: Any) -> None:
        """Schedule a broadcast without waiting for it.

        Must be called from within a running event loop.
        """
        self._track(asyncio.create_task(self.broadcast(event_type, data)))

    def publish_all(self, notifications: list[tuple[str, Any]]) -> None:
        """Schedule several events, delivered in order, without waiting."""
        if notifications:
            self._track(asyncio.create_task(self._broadcast_in_order(list(notifications))))

    async def _broadcast_in_order(self, notifications: list[tuple[str, Any]]) -> None:
        for event_type, data in notifications:
            await self.broadcast(event_type, data)

    def _track(self, task: asyncio.Task) -> None:
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for every scheduled publish to finish. Used on shutdown and in tests."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
