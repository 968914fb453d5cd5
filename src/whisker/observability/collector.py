"""Stack collector — single entry point for recording reflex events.

Also implements the server's duck-typed ``LifecycleCollector`` protocol
(``record(event)``) so connection lifecycle events land in the same log
as reflex events.

Thread Safety:
    The collector delegates to ``EventLog`` which is internally locked.

"""

from __future__ import annotations

from typing import Any

from whisker.observability.events import (
    ReflexFailed,
    ReflexProcessed,
    SessionCommitFailed,
    now_ns,
)
from whisker.observability.log import EventLog


class StackCollector:
    """Records reflex, failure, and session events into an ``EventLog``.

    Args:
        log: The EventLog to store events in (a fresh one by default).

    """

    __slots__ = ("_log",)

    def __init__(self, log: EventLog | None = None) -> None:
        self._log = log if log is not None else EventLog()

    @property
    def log(self) -> EventLog:
        """The underlying event log."""
        return self._log

    def record(self, event: Any) -> None:
        """Record a server lifecycle event verbatim."""
        self._log.append(event)

    def record_processed(
        self,
        target: str,
        topic: str,
        *,
        outcome: str,
        operations: int = 0,
        duration_ms: float = 0.0,
    ) -> None:
        """Record the terminal broadcast of a reflex message."""
        self._log.append(
            ReflexProcessed(
                target=target,
                topic=topic,
                outcome=outcome,  # type: ignore[arg-type]
                operations=operations,
                duration_ms=duration_ms,
                timestamp_ns=now_ns(),
            )
        )

    def record_failure(
        self,
        target: str,
        topic: str,
        *,
        phase: str,
        error_kind: str,
        exception_type: str,
        message: str,
        location: str = "",
    ) -> None:
        """Record a reflex failure before it is broadcast as an error."""
        self._log.append(
            ReflexFailed(
                target=target,
                topic=topic,
                phase=phase,  # type: ignore[arg-type]
                error_kind=error_kind,
                exception_type=exception_type,
                message=message,
                location=location,
                timestamp_ns=now_ns(),
            )
        )

    def record_commit_failure(self, url: str, message: str) -> None:
        """Record a session commit failure (never fatal)."""
        self._log.append(
            SessionCommitFailed(url=url, message=message, timestamp_ns=now_ns())
        )
