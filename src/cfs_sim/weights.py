"""Weight table — priority to scheduling weight, and the vruntime law.

CFS never orders tasks by priority directly.  Priority only decides a
task's *weight*, and the weight decides how fast its vruntime grows:

    weight(p)      = NICE_0_LOAD / (p + 1)
    Δvruntime      = Δt × NICE_0_LOAD / weight

A priority-0 task has weight NICE_0_LOAD, so its vruntime advances in
real milliseconds.  A priority-1 task has half the weight, so its
vruntime grows twice as fast and it gets dispatched half as often.

The same ``vruntime_delta`` charges CPU timeslices *and* I/O-wait
penalties, which keeps both in one currency.

Expected CPU share (``weight / Σ weights``) is derived here for
reporting only.  Ordering uses vruntime, because share shifts every
time the runnable set changes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from cfs_sim.config import DEFAULT_MAX_PRIORITY, DEFAULT_NICE_0_LOAD
from cfs_sim.errors import InvalidPriorityError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from cfs_sim.config import SchedulerConfig


def weight(priority: int, *, nice_0_load: int = DEFAULT_NICE_0_LOAD) -> float:
    """Return the scheduling weight for *priority*.

    Args:
        priority: Priority level, 0 being the highest.
        nice_0_load: Normalisation constant (weight of priority 0).

    Raises:
        InvalidPriorityError: If *priority* is negative.

    """
    if priority < 0:
        msg = f"Priority must be non-negative, got {priority}"
        raise InvalidPriorityError(msg)
    return nice_0_load / (priority + 1)


def vruntime_delta(duration: int, task_weight: float, *, nice_0_load: int) -> float:
    """Return the vruntime charge for *duration* ms at *task_weight*."""
    return duration * nice_0_load / task_weight


def expected_share(task_weight: float, runnable_weights: Iterable[float]) -> float:
    """Return the fraction of CPU a task of *task_weight* should receive.

    Args:
        task_weight: The task's own weight.
        runnable_weights: Weights of every runnable task, the task
            itself included.

    Returns:
        ``task_weight / Σ runnable_weights``, or 0.0 for an empty set.

    """
    total = sum(runnable_weights)
    if total <= 0:
        return 0.0
    return task_weight / total


@dataclass(frozen=True)
class WeightTable:
    """A weight function bound to one normalisation constant and range."""

    nice_0_load: int = DEFAULT_NICE_0_LOAD
    max_priority: int = DEFAULT_MAX_PRIORITY

    @classmethod
    def from_config(cls, config: SchedulerConfig) -> WeightTable:
        """Build a table from the run's configuration."""
        return cls(nice_0_load=config.nice_0_load, max_priority=config.max_priority)

    def weight(self, priority: int) -> float:
        """Return the weight of *priority* within the supported range.

        Raises:
            InvalidPriorityError: If *priority* is negative or above
                ``max_priority``.

        """
        if priority > self.max_priority:
            msg = f"Priority {priority} is above the maximum {self.max_priority}"
            raise InvalidPriorityError(msg)
        return weight(priority, nice_0_load=self.nice_0_load)

    def delta(self, duration: int, task_weight: float) -> float:
        """Return the vruntime charge for *duration* ms at *task_weight*."""
        return vruntime_delta(duration, task_weight, nice_0_load=self.nice_0_load)
