"""Topic broadcaster — fans broadcasts out to subscribed connections.

Each subscribed browser holds an SSE connection with its own queue.
``publish`` enqueues a whole ``Broadcast`` (one morph batch or one server
message) as a single item per subscriber, so a batch is always delivered
atomically and in order relative to other batches on the same topic.

Thread-safe: subscriber map protected by a lock.
Per-worker: each server worker has its own Broadcaster instance.
"""

from __future__ import annotations

import asyncio
import sys
import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from whisker.channel.dispatcher import Broadcast


@dataclass(frozen=True, slots=True)
class SSEConnection:
    """A connected SSE client.

    Attributes:
        client_id: Unique identifier for this connection.
        topic: The topic this client listens on.
        queue: Queue of ``Broadcast`` objects awaiting delivery.

    """

    client_id: str
    topic: str
    queue: asyncio.Queue[Any] = field(
        default_factory=lambda: asyncio.Queue(maxsize=256), compare=False, hash=False,
    )


class Broadcaster:
    """Manages topic subscriptions and publishes broadcasts to them.

    Implements the channel's ``Publisher`` protocol.

    """

    def __init__(self) -> None:
        self._subscribers: dict[str, set[SSEConnection]] = defaultdict(set)
        self._lock = threading.Lock()

    @property
    def subscriber_count(self) -> int:
        """Total number of active connections across all topics."""
        with self._lock:
            return sum(len(conns) for conns in self._subscribers.values())

    def subscribe(self, conn: SSEConnection) -> None:
        """Register a connection on its topic."""
        with self._lock:
            self._subscribers[conn.topic].add(conn)

    def unsubscribe(self, conn: SSEConnection) -> None:
        """Remove a connection; unknown connections are ignored."""
        with self._lock:
            conns = self._subscribers.get(conn.topic)
            if conns is None:
                return
            conns.discard(conn)
            if not conns:
                del self._subscribers[conn.topic]

    def get_subscribers(self, topic: str) -> frozenset[SSEConnection]:
        """Snapshot of a topic's subscribers (no lock held on return)."""
        with self._lock:
            return frozenset(self._subscribers.get(topic, set()))

    def get_topics(self) -> frozenset[str]:
        """Topics with at least one subscriber."""
        with self._lock:
            return frozenset(self._subscribers.keys())

    async def publish(self, topic: str, broadcast: Broadcast) -> int:
        """Enqueue ``broadcast`` once on every subscriber of ``topic``.

        Subscribers whose queue is full miss the broadcast; they are slow
        or gone, and blocking here would stall the whole topic.

        Returns:
            Number of subscribers the broadcast was enqueued for.

        """
        count = 0
        for conn in self.get_subscribers(topic):
            try:
                conn.queue.put_nowait(broadcast)
                count += 1
            except asyncio.QueueFull:
                print(
                    f"  Dropped {broadcast.kind} broadcast for slow client {conn.client_id}",
                    file=sys.stderr,
                )
        return count

    async def client_generator(self, conn: SSEConnection) -> AsyncIterator[Broadcast]:
        """Yield broadcasts from a connection's queue until it is cancelled.

        Catches ``CancelledError`` (client disconnect) and ``GeneratorExit``
        (generator cleanup) so disconnects end the stream quietly.

        """
        try:
            while True:
                yield await conn.queue.get()
        except (asyncio.CancelledError, GeneratorExit):
            return
