"""Session-deleted signal consumer.

The connection object's subscriber multiplexes ``session_deleted`` events
for every topic it relays. Handlers only enqueue; one consumer task per
attached connection drains the queue in arrival order and resets local
state when the deleted topic is the tracked session.
"""
from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Final

from loguru import logger

from pairkit.engine.protocols import SESSION_DELETED
from pairkit.engine.reset import ResetCoordinator
from pairkit.engine.session import ClientStore

if TYPE_CHECKING:
    from pairkit.engine.protocols import ConnectionObject

# consumer shutdown marker (queued behind any events already received)
_STOP: Final = object()


def topicOf(event: Any) -> str:
    """Extract the topic from a ``{"topic": ...}`` payload or an object with ``.topic``."""
    if isinstance(event, Mapping):
        return event["topic"]

    return event.topic


class SessionMonitor:
    """Routes ``session_deleted`` events to the reset coordinator.

    Parameters
    ----------
    client:
        Store holding the tracked session topic.
    resetter:
        Coordinator invoked synchronously on a topic match.
    """

    def __init__(self, client: ClientStore, resetter: ResetCoordinator):
        self.client = client
        self.resetter = resetter
        self.events: asyncio.Queue[Any] = asyncio.Queue()
        self.source: ConnectionObject | None = None
        self.consumer: asyncio.Task | None = None

        # consumers detached while events were still queued for them
        self.retired: set[asyncio.Task] = set()

    def attach(self, source: ConnectionObject) -> None:
        """Subscribe and start the consumer without yielding to the loop."""
        self.detach()
        source.subscriber.on(SESSION_DELETED, self.enqueue)
        self.source = source
        self.consumer = asyncio.get_running_loop().create_task(
            self.consume(self.events), name="session monitor"
        )

    def detach(self) -> None:
        if self.source is not None:
            self.source.subscriber.off(SESSION_DELETED, self.enqueue)
            self.source = None

        if self.consumer is not None:
            # the old consumer finishes what it already received, then exits
            self.events.put_nowait(_STOP)
            self.events = asyncio.Queue()
            self.retired.add(self.consumer)
            self.consumer.add_done_callback(self.retired.discard)
            self.consumer = None

    def enqueue(self, event: Any) -> None:
        self.events.put_nowait(event)

    async def drain(self) -> None:
        """Wait until every event received so far has been handled.

        Covers events still queued for a consumer retired by ``detach()``.
        """
        await self.events.join()
        if self.retired:
            await asyncio.gather(*list(self.retired))

    async def consume(self, events: asyncio.Queue[Any]) -> None:
        while True:
            event = await events.get()
            try:
                if event is _STOP:
                    return

                try:
                    topic = topicOf(event)
                except (KeyError, AttributeError, TypeError):
                    logger.warning("[monitor] Ignoring malformed {} payload: {}", SESSION_DELETED, event)
                    continue

                self.onDeleted(topic)
            finally:
                events.task_done()

    def onDeleted(self, topic: str) -> bool:
        """Reset everything if ``topic`` is the tracked session. Returns True on reset."""
        current = self.client.sessionTopic
        if not current or topic != current:
            logger.trace("[monitor] Session {} deleted (not ours: {})", topic, current)
            return False

        logger.warning("[monitor] Remote side deleted active session {}", topic)
        self.resetter.reset()
        return True
