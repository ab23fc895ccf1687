"""Metrics collector — turns the event stream into reportable numbers.

The collector sits downstream of the scheduler and never influences
it.  It is fed events either one at a time (``record``) or by wrapping
the scheduler's lazy stream (``consume``)::

    collector = MetricsCollector()
    for event in collector.consume(scheduler.run()):
        ...

From the recorded events it answers the questions a plot or report
needs: CPU time per task, dispatch counts, vruntime over time, and how
close the actual CPU split came to the weight-derived expectation.
"""

from __future__ import annotations

import json
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING

from cfs_sim.events import EventKind, SchedEvent
from cfs_sim.weights import expected_share

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator
    from pathlib import Path

    from cfs_sim.scheduler import RunSummary


@dataclass(frozen=True)
class FairnessRow:
    """Expected versus actual CPU share for one task."""

    task_id: int
    weight: float
    expected_share: float
    actual_share: float

    @property
    def error(self) -> float:
        """Return ``actual - expected``."""
        return self.actual_share - self.expected_share


class MetricsCollector:
    """Record scheduling events and derive per-task statistics."""

    def __init__(self) -> None:
        """Create an empty collector."""
        self._events: list[SchedEvent] = []
        self._cpu_time: defaultdict[int, int] = defaultdict(int)

    @property
    def events(self) -> list[SchedEvent]:
        """Return every recorded event in order."""
        return list(self._events)

    def record(self, event: SchedEvent) -> None:
        """Append one event."""
        self._events.append(event)
        if event.kind is EventKind.RUNNING:
            self._cpu_time[event.task_id] += event.duration

    def consume(self, events: Iterable[SchedEvent]) -> Iterator[SchedEvent]:
        """Record each event of *events* and pass it through."""
        for event in events:
            self.record(event)
            yield event

    def clear(self) -> None:
        """Forget every recorded event."""
        self._events.clear()
        self._cpu_time.clear()

    # -- Queries ----------------------------------------------------------------

    def cpu_time(self, task_id: int) -> int:
        """Return the CPU time *task_id* received across RUNNING events."""
        return self._cpu_time.get(task_id, 0)

    @property
    def total_cpu_time(self) -> int:
        """Return the sum of all RUNNING durations."""
        return sum(self._cpu_time.values())

    def dispatches(self, task_id: int, *, until: int | None = None) -> int:
        """Return how many CPU slices *task_id* got, optionally before *until*."""
        return sum(
            1
            for e in self._events
            if e.task_id == task_id
            and e.kind is EventKind.RUNNING
            and (until is None or e.tick < until)
        )

    def vruntime_series(self, task_id: int) -> list[tuple[int, float]]:
        """Return ``(tick, vruntime)`` points for *task_id*, one per phase."""
        return [
            (e.tick + e.duration, e.vruntime)
            for e in self._events
            if e.task_id == task_id and e.kind is not EventKind.FINISHED
        ]

    def completion_order(self) -> list[int]:
        """Return task ids in the order they finished."""
        return [e.task_id for e in self._events if e.kind is EventKind.FINISHED]

    def first_completion_tick(self) -> int | None:
        """Return the tick of the first FINISHED event, or None."""
        for e in self._events:
            if e.kind is EventKind.FINISHED:
                return e.tick
        return None

    def cpu_share(self, *, until: int | None = None) -> dict[int, float]:
        """Return each task's fraction of CPU time in slices started before *until*."""
        used: defaultdict[int, int] = defaultdict(int)
        for e in self._events:
            if e.kind is EventKind.RUNNING and (until is None or e.tick < until):
                used[e.task_id] += e.duration
        total = sum(used.values())
        if total == 0:
            return {}
        return {task_id: used[task_id] / total for task_id in sorted(used)}

    def fairness_report(self, summary: RunSummary) -> list[FairnessRow]:
        """Compare weight-derived and observed shares before the first completion.

        While every task is still runnable the expected share is
        ``weight / Σ weights``.  After the first task finishes the set
        changes, so the comparison window stops there.
        """
        until = self.first_completion_tick()
        actual = self.cpu_share(until=until)
        weights = [t.weight for t in summary.tasks]
        return [
            FairnessRow(
                task_id=t.task_id,
                weight=t.weight,
                expected_share=expected_share(t.weight, weights),
                actual_share=actual.get(t.task_id, 0.0),
            )
            for t in summary.tasks
        ]

    # -- Export -----------------------------------------------------------------

    def to_dict(self, summary: RunSummary | None = None) -> dict[str, object]:
        """Return the trace (and optional summary) as a JSON-ready dict."""
        data: dict[str, object] = {"events": [e.to_dict() for e in self._events]}
        if summary is not None:
            data["summary"] = summary.to_dict()
        return data

    def dump(self, path: Path, summary: RunSummary | None = None) -> None:
        """Write the trace to *path* as JSON."""
        path.write_text(json.dumps(self.to_dict(summary), indent=2))
