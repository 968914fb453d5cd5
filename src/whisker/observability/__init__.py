"""Reflex observability — structured events, event log, and profiling.

Every reflex message records:
- **ReflexProcessed**: its terminal broadcast (morph batch or message)
- **ReflexFailed**: any failure turned into an ``error`` broadcast
- **PipelineProfile**: per-stage timings (resolve, invoke, render, ...)

Session commit failures are recorded as **SessionCommitFailed**.

Quick Start:
    >>> from whisker.observability import StackCollector, EventLog
    >>> collector = StackCollector(EventLog())
    >>> # Pass collector to ReflexChannel and to the server as lifecycle_collector

"""

from whisker.observability.collector import StackCollector
from whisker.observability.events import (
    PipelineProfile,
    ReflexFailed,
    ReflexProcessed,
    SessionCommitFailed,
    StackEvent,
    now_ns,
)
from whisker.observability.log import EventLog
from whisker.observability.profiler import PipelineProfiler, compute_aggregate_stats

__all__ = [
    "EventLog",
    "PipelineProfile",
    "PipelineProfiler",
    "ReflexFailed",
    "ReflexProcessed",
    "SessionCommitFailed",
    "StackCollector",
    "StackEvent",
    "compute_aggregate_stats",
    "now_ns",
]
