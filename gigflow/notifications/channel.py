"""Per-user notification channel.

A user may have any number of live connections (one per open stream). `publish`
hands an event to every connection currently subscribed for that user and returns
immediately; nothing is queued for users with no connection and nothing is
redelivered.

Connections belong to an asyncio event loop, but publishers may run anywhere
(request handlers execute in a threadpool), so delivery is scheduled onto the
connection's loop with `call_soon_threadsafe`. For one producer, events reach
each connection in publish order. The registry lock is held only to mutate or
snapshot the registry, never while delivering.
"""

import asyncio
import logging
import threading
from typing import Any

from gigflow.shared.config import settings

logger = logging.getLogger(__name__)

Message = tuple[str, dict[str, Any]]  # (event name, data)


class Connection:
    """One live subscriber: a bounded queue drained by a single async consumer."""

    def __init__(self, loop: asyncio.AbstractEventLoop, maxsize: int | None = None):
        self.loop = loop
        self.queue: asyncio.Queue[Message] = asyncio.Queue(maxsize=maxsize or settings.NOTIFY_QUEUE_SIZE)

    @classmethod
    def open(cls, maxsize: int | None = None) -> "Connection":
        # must be called from the loop that will consume the connection
        return cls(asyncio.get_running_loop(), maxsize)

    def deliver(self, msg: Message) -> None:
        """Schedule `msg` onto the owning loop. Safe from any thread; never blocks."""
        try:
            running = asyncio.get_running_loop()
        except RuntimeError:
            running = None
        if running is self.loop:
            self._put(msg)
        else:
            self.loop.call_soon_threadsafe(self._put, msg)

    def _put(self, msg: Message) -> None:
        try:
            self.queue.put_nowait(msg)
        except asyncio.QueueFull:
            logger.warning("notification buffer full, dropping %r", msg[0])

    async def get(self) -> Message:
        return await self.queue.get()


class NotificationChannel:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        # user_id -> live connections, and the reverse for unsubscribe
        self._subs: dict[str, set[Connection]] = {}
        self._owners: dict[Connection, set[str]] = {}

    def subscribe(self, user_id: str, connection: Connection) -> None:
        with self._lock:
            self._subs.setdefault(user_id, set()).add(connection)
            self._owners.setdefault(connection, set()).add(user_id)

    def unsubscribe(self, connection: Connection) -> None:
        """Forget `connection` for every user it was subscribed for."""
        with self._lock:
            for user_id in self._owners.pop(connection, set()):
                conns = self._subs.get(user_id)
                if conns is None:
                    continue
                conns.discard(connection)
                if not conns:
                    del self._subs[user_id]

    def connection_count(self, user_id: str) -> int:
        with self._lock:
            return len(self._subs.get(user_id, ()))

    def publish(self, user_id: str, event: str, data: dict[str, Any]) -> int:
        """
        Hand (event, data) to each of the user's connections. Returns how many took it.
        A connection whose loop has gone away is skipped; its stream unsubscribes it.
        """
        with self._lock:
            targets = list(self._subs.get(user_id, ()))
        handed = 0
        for conn in targets:
            try:
                conn.deliver((event, data))
                handed += 1
            except RuntimeError:
                logger.warning("connection for %s is closed, skipping %r", user_id, event)
        return handed


# process-wide channel
channel = NotificationChannel()
