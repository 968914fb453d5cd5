"""Event model for reflex observability.

All events are frozen dataclasses with:
- ``timestamp_ns``: Monotonic nanosecond timestamp
- Descriptive fields for the specific event type

Server lifecycle events (connections, requests) are stored as-is when the
collector is handed to the server.

Thread Safety:
    All events are frozen (immutable) and safe to share across threads.

"""

import time
from dataclasses import dataclass
from typing import Any, Literal, Union


# ---------------------------------------------------------------------------
# Reflex pipeline events
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ReflexProcessed:
    """A reflex message reached its terminal broadcast.

    Attributes:
        target: The ``Reflex#method`` target string from the client.
        topic: Topic the outcome was broadcast to.
        outcome: ``morph`` for a morph batch, else the server message subject.
        operations: Number of morph operations broadcast (0 for messages).
        duration_ms: Time from receipt to broadcast completion.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    target: str
    topic: str
    outcome: Literal["morph", "error", "halted", "none"]
    operations: int
    duration_ms: float
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class ReflexFailed:
    """A reflex failed while resolving, invoking, or rendering.

    Attributes:
        target: The ``Reflex#method`` target string from the client.
        topic: Topic the error was broadcast to.
        phase: ``invoke`` (resolution included) or ``render``.
        error_kind: Whisker error class, e.g. ``UnknownHandlerError``.
        exception_type: Type of the original exception.
        message: Exception message.
        location: Innermost ``file:line`` of the original exception.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    target: str
    topic: str
    phase: Literal["invoke", "render"]
    error_kind: str
    exception_type: str
    message: str
    location: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class SessionCommitFailed:
    """Session state could not be committed after a page render.

    Attributes:
        url: URL of the page whose session failed to commit.
        message: Summary of the failure.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    url: str
    message: str
    timestamp_ns: int


@dataclass(frozen=True, slots=True)
class PipelineProfile:
    """Per-stage timing for one reflex message.

    Attributes:
        target: The ``Reflex#method`` target string.
        outcome: Terminal outcome of the message.
        resolve_ms: Time spent resolving the target.
        invoke_ms: Time spent running the reflex method and callbacks.
        render_ms: Time spent rendering the page.
        extract_ms: Time spent extracting fragments.
        broadcast_ms: Time spent publishing the outcome.
        total_ms: End-to-end time.
        timestamp_ns: Monotonic nanosecond timestamp.

    """

    target: str
    outcome: str
    resolve_ms: float
    invoke_ms: float
    render_ms: float
    extract_ms: float
    broadcast_ms: float
    total_ms: float
    timestamp_ns: int


# ---------------------------------------------------------------------------
# Union type
# ---------------------------------------------------------------------------

StackEvent = Union[
    ReflexProcessed,
    ReflexFailed,
    SessionCommitFailed,
    PipelineProfile,
    Any,
]


def now_ns() -> int:
    """Return the current monotonic clock value in nanoseconds."""
    return time.monotonic_ns()
