"""Server-sent events sent to web dash clients."""

from __future__ import annotations

import asyncio
import json
import logging
import time
from typing import Any, Mapping

_log = logging.getLogger(__name__)

HELLO_RETRY_MS = 10000
CLIENT_QUEUE_SIZE = 64


def format_event(
    data: str, event: str | None = None, event_id: int = 0, retry: int = 0
) -> str:
    """Encode one event in the text/event-stream format."""
    parts: list[str] = []
    if retry:
        parts.append(f"retry: {retry}\r\n")
    if event_id:
        parts.append(f"id: {event_id}\r\n")
    if event:
        parts.append(f"event: {event}\r\n")
    for line in data.splitlines() or [""]:
        parts.append(f"data: {line}\r\n")
    parts.append("\r\n")
    return "".join(parts)


class EventBroadcaster:
    """Fans encoded events out to every subscribed client queue."""

    def __init__(self) -> None:
        self._start = time.monotonic()
        self._clients: set[asyncio.Queue[str]] = set()
        self.notifications_sent = 0

    def _millis(self) -> int:
        return int((time.monotonic() - self._start) * 1000)

    @property
    def client_count(self) -> int:
        return len(self._clients)

    def subscribe(self) -> asyncio.Queue[str]:
        """Register a client and greet it; return the queue its events arrive on."""
        queue: asyncio.Queue[str] = asyncio.Queue(maxsize=CLIENT_QUEUE_SIZE)
        self._clients.add(queue)
        _log.info("Client connected")
        queue.put_nowait(format_event("hello!", None, self._millis(), HELLO_RETRY_MS))
        return queue

    def unsubscribe(self, queue: asyncio.Queue[str]) -> None:
        """Stop sending events to ``queue``."""
        self._clients.discard(queue)

    def send(
        self, data: str, event: str | None = None, event_id: int = 0, retry: int = 0
    ) -> None:
        """Queue an event for every client; clients that fall behind miss it."""
        message = format_event(data, event, event_id, retry)
        for queue in list(self._clients):
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull:
                _log.debug("Dropping event for a slow client")

    def notify_clients(self, readings: Mapping[str, Any]) -> None:
        """Send the current readings as a JSON ``reading`` event."""
        payload = json.dumps(dict(readings), separators=(",", ":"))
        self.send(payload, "reading", self._millis())
        self.notifications_sent += 1

    def send_ping(self) -> None:
        """Send a keep-alive."""
        self.send("ping", None, self._millis())

    def send_no_data(self) -> None:
        """Tell clients that no data is coming from the ECU."""
        self.send("nodata", "nodata", self._millis())

    def send_debug(self, message: str) -> None:
        """Forward a debug message to clients."""
        self.send(message, "debug", self._millis())
        self.send("debug", message, self._millis())