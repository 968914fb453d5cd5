"""Event log — bounded, thread-safe store of reflex events.

Keeps the most recent ``max_events`` events in a ring buffer and answers
queries by event type, age, topic, and target.

Thread Safety:
    All methods are protected by a ``threading.Lock``.  Messages from many
    connections may record concurrently.

"""

import threading
from collections import Counter, deque
from typing import Any

from whisker.observability.events import StackEvent


class EventLog:
    """Ring buffer of events with simple filtering.

    Args:
        max_events: Maximum number of events to retain; older events are
            discarded first.

    """

    __slots__ = ("_events", "_lock", "_max_events")

    def __init__(self, max_events: int = 10_000) -> None:
        self._max_events = max_events
        self._events: deque[StackEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._events)

    def append(self, event: StackEvent) -> None:
        """Record an event."""
        with self._lock:
            self._events.append(event)

    def query(
        self,
        *,
        event_type: type | None = None,
        since_ns: int = 0,
        topic: str | None = None,
        target: str | None = None,
        limit: int = 100,
    ) -> list[StackEvent]:
        """Return matching events, newest first.

        Args:
            event_type: Only events of this type.
            since_ns: Only events recorded at or after this timestamp.
            topic: Only events broadcast to exactly this topic.
            target: Only events for this ``Reflex#method`` target.
            limit: Maximum number of events returned.

        """
        with self._lock:
            snapshot = list(self._events)

        results: list[StackEvent] = []
        for event in reversed(snapshot):
            if len(results) >= limit:
                break
            if event_type is not None and not isinstance(event, event_type):
                continue
            if since_ns and getattr(event, "timestamp_ns", 0) < since_ns:
                continue
            if topic is not None and getattr(event, "topic", None) != topic:
                continue
            if target is not None and getattr(event, "target", None) != target:
                continue
            results.append(event)
        return results

    def recent(self, n: int = 20) -> list[StackEvent]:
        """The ``n`` most recent events, oldest first."""
        with self._lock:
            items = list(self._events)
        return items[-n:] if n > 0 else []

    def clear(self) -> int:
        """Drop every event; returns how many were dropped."""
        with self._lock:
            count = len(self._events)
            self._events.clear()
        return count

    def stats(self) -> dict[str, Any]:
        """Counts per event type plus buffer capacity."""
        with self._lock:
            by_type = Counter(type(event).__name__ for event in self._events)
            total = len(self._events)
        return {
            "total": total,
            "max_events": self._max_events,
            "by_type": dict(by_type),
        }
