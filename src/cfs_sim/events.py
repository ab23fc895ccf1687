"""Scheduling events — the record emitted by each dispatch phase.

Events carry task *ids*, never live Task references, so whoever
consumes the stream (metrics, CLI trace, web API) is decoupled from the
scheduler's task objects.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import StrEnum


class EventKind(StrEnum):
    """What happened to the task during a dispatch phase."""

    RUNNING = "running"
    WAITING = "waiting"
    FINISHED = "finished"


@dataclass(frozen=True)
class SchedEvent:
    """A single entry in the event stream.

    Attributes:
        tick: Virtual clock (ms) when the phase started.
        task_id: The task the event concerns.
        kind: RUNNING (a CPU slice), WAITING (an I/O wait), or FINISHED.
        vruntime: The task's vruntime after the phase.
        remaining_cpu_time: The task's remaining work after the phase.
        duration: Virtual time the phase took (0 for FINISHED).

    """

    tick: int
    task_id: int
    kind: EventKind
    vruntime: float
    remaining_cpu_time: int
    duration: int = 0

    def to_dict(self) -> dict[str, object]:
        """Return the event as a JSON-ready dict."""
        data = asdict(self)
        data["kind"] = str(self.kind)
        return data

    def __str__(self) -> str:
        """Format as ``[tick] task N kind ...``."""
        return (
            f"[{self.tick:>6}] task {self.task_id:<4} {self.kind:<8} "
            f"dur={self.duration:<3} vruntime={self.vruntime:<10g} "
            f"remaining={self.remaining_cpu_time}"
        )
