"""Pipeline profiler — per-stage latency of one reflex message.

Usage::

    profiler = PipelineProfiler(event_log)
    profiler.begin("counter#increment")
    profiler.start("invoke")
    ...
    profiler.stop("invoke")
    profiler.finish(outcome="morph")

``finish()`` appends a ``PipelineProfile`` event to the log and, when
verbose, prints a one-line summary to stderr.

Thread Safety:
    A profiler belongs to one message; create one per message.  Aggregate
    queries go through the locked ``EventLog``.

"""

from __future__ import annotations

import sys
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from whisker.observability.events import PipelineProfile, now_ns

if TYPE_CHECKING:
    from whisker.observability.log import EventLog

STAGES: tuple[str, ...] = ("resolve", "invoke", "render", "extract", "broadcast")


@dataclass(slots=True)
class _Timer:
    """Accumulates timing for a named stage."""

    name: str
    _start: float = 0.0
    elapsed_ms: float = 0.0

    def start(self) -> None:
        self._start = time.perf_counter()

    def stop(self) -> None:
        if self._start > 0:
            self.elapsed_ms += (time.perf_counter() - self._start) * 1000
            self._start = 0.0


class PipelineProfiler:
    """Records stage timings for a single reflex message.

    Args:
        log: Event log receiving the ``PipelineProfile``.
        verbose: Print a summary line to stderr on ``finish()``.

    """

    __slots__ = ("_log", "_t0", "_target", "_timers", "_verbose")

    def __init__(self, log: EventLog, *, verbose: bool = False) -> None:
        self._log = log
        self._verbose = verbose
        self._target = ""
        self._t0 = 0.0
        self._timers = {name: _Timer(name=name) for name in STAGES}

    def begin(self, target: str) -> None:
        """Start profiling a message."""
        self._target = target
        self._t0 = time.perf_counter()
        for timer in self._timers.values():
            timer.elapsed_ms = 0.0

    def start(self, stage: str) -> None:
        timer = self._timers.get(stage)
        if timer is not None:
            timer.start()

    def stop(self, stage: str) -> None:
        timer = self._timers.get(stage)
        if timer is not None:
            timer.stop()

    def finish(self, *, outcome: str) -> PipelineProfile:
        """Emit the ``PipelineProfile`` event and return it."""
        total_ms = (time.perf_counter() - self._t0) * 1000 if self._t0 > 0 else 0.0
        profile = PipelineProfile(
            target=self._target,
            outcome=outcome,
            resolve_ms=self._timers["resolve"].elapsed_ms,
            invoke_ms=self._timers["invoke"].elapsed_ms,
            render_ms=self._timers["render"].elapsed_ms,
            extract_ms=self._timers["extract"].elapsed_ms,
            broadcast_ms=self._timers["broadcast"].elapsed_ms,
            total_ms=total_ms,
            timestamp_ns=now_ns(),
        )
        self._log.append(profile)
        if self._verbose:
            self._print_summary(profile)
        return profile

    def _print_summary(self, p: PipelineProfile) -> None:
        stages = ", ".join(
            f"{name}: {getattr(p, f'{name}_ms'):.1f}ms" for name in STAGES
        )
        print(f"  [{p.total_ms:.0f}ms] {p.target} -> {p.outcome} ({stages})", file=sys.stderr)


def compute_aggregate_stats(log: EventLog, *, limit: int = 100) -> dict:
    """Latency percentiles and per-stage averages of recent messages."""
    profiles = log.query(event_type=PipelineProfile, limit=limit)
    if not profiles:
        return {"count": 0}

    totals = sorted(p.total_ms for p in profiles)
    count = len(totals)

    def percentile(data: list[float], pct: float) -> float:
        idx = int(len(data) * pct / 100)
        return data[min(idx, len(data) - 1)]

    outcomes: dict[str, int] = {}
    for p in profiles:
        outcomes[p.outcome] = outcomes.get(p.outcome, 0) + 1

    return {
        "count": count,
        "total_ms": {
            "p50": round(percentile(totals, 50), 1),
            "p95": round(percentile(totals, 95), 1),
            "p99": round(percentile(totals, 99), 1),
            "min": round(totals[0], 1),
            "max": round(totals[-1], 1),
        },
        "avg_by_stage_ms": {
            name: round(sum(getattr(p, f"{name}_ms") for p in profiles) / count, 1)
            for name in STAGES
        },
        "outcomes": outcomes,
    }
