"""Task — one schedulable unit of work and its runtime state.

A task is the simulator's equivalent of a kernel ``sched_entity``: it
carries the fixed description of the work (id, priority, CPU burst) and
the mutable bookkeeping CFS needs (vruntime, remaining time, state).

There are two kinds of task, distinguished by a tag rather than by
subclassing:

- **CPU** — consumes CPU in back-to-back timeslices, never blocks.
- **IO** — blocks for ``io_wait_time`` before its CPU bursts, so it
  alternates WAITING and RUNNING.

The scheduler branches on ``task.kind``; keeping the variant explicit
makes every dispatch path visible in one ``match``.

Tasks follow a strict state machine: each transition method enforces
the source state, and an illegal move raises InvariantViolationError::

    RUNNABLE → RUNNING → RUNNABLE
                 ↓  ↑
               WAITING
    RUNNING → FINISHED
"""

from __future__ import annotations

import math
from enum import StrEnum

from cfs_sim.errors import ConfigurationError, InvariantViolationError
from cfs_sim.weights import WeightTable


class TaskKind(StrEnum):
    """The two task variants."""

    CPU = "cpu"
    IO = "io"


class TaskState(StrEnum):
    """Lifecycle states of a task.

    - RUNNABLE: queued on the runqueue, waiting for the CPU.
    - RUNNING: owns the CPU for the current dispatch step.
    - WAITING: blocked on simulated I/O.
    - FINISHED: all CPU work done; archived for reporting.
    """

    RUNNABLE = "runnable"
    RUNNING = "running"
    WAITING = "waiting"
    FINISHED = "finished"


class Task:
    """A simulated task with CFS accounting.

    Validation happens here, at creation time, so the scheduler loop
    never receives a malformed task.
    """

    def __init__(
        self,
        *,
        task_id: int,
        priority: int,
        burst: int,
        kind: TaskKind = TaskKind.CPU,
        io_wait_time: int = 0,
        weights: WeightTable | None = None,
    ) -> None:
        """Create a RUNNABLE task with vruntime 0.

        Args:
            task_id: Unique non-negative identifier.
            priority: Priority level (0 = highest).
            burst: Total CPU work in ms (must be positive).
            kind: CPU or IO variant.
            io_wait_time: Wait per I/O cycle in ms (IO tasks only).
            weights: Weight table used to derive the weight.

        Raises:
            ConfigurationError: If any argument is invalid, including an
                out-of-range priority (InvalidPriorityError).

        """
        for name, value in (
            ("task_id", task_id),
            ("priority", priority),
            ("burst", burst),
            ("io_wait_time", io_wait_time),
        ):
            if isinstance(value, bool) or not isinstance(value, int):
                msg = f"Task {task_id!r}: {name} must be an integer, got {value!r}"
                raise ConfigurationError(msg)
        if task_id < 0:
            msg = f"Task id must be non-negative, got {task_id}"
            raise ConfigurationError(msg)
        if burst <= 0:
            msg = f"Task {task_id}: burst must be positive, got {burst}"
            raise ConfigurationError(msg)
        match kind:
            case TaskKind.CPU:
                if io_wait_time != 0:
                    msg = f"Task {task_id}: CPU tasks cannot have an I/O wait"
                    raise ConfigurationError(msg)
            case TaskKind.IO:
                if io_wait_time <= 0:
                    msg = f"Task {task_id}: io_wait_time must be positive, got {io_wait_time}"
                    raise ConfigurationError(msg)
            case _:
                msg = f"Task {task_id}: unknown task kind {kind!r}"
                raise ConfigurationError(msg)
        table = weights if weights is not None else WeightTable()
        self._task_id = task_id
        self._kind = TaskKind(kind)
        self._priority = priority
        self._weight = table.weight(priority)
        self._burst = burst
        self._io_wait_time = io_wait_time
        self._state = TaskState.RUNNABLE
        self._vruntime = 0.0
        self._remaining = burst
        self._cpu_time = 0
        self._total_wait_time = 0
        self._dispatch_count = 0
        self._completion_tick: int | None = None

    @property
    def task_id(self) -> int:
        """Return the unique task identifier."""
        return self._task_id

    @property
    def kind(self) -> TaskKind:
        """Return the task variant."""
        return self._kind

    @property
    def priority(self) -> int:
        """Return the priority level (immutable)."""
        return self._priority

    @property
    def weight(self) -> float:
        """Return the scheduling weight derived from priority."""
        return self._weight

    @property
    def burst(self) -> int:
        """Return the total CPU work requested at creation."""
        return self._burst

    @property
    def io_wait_time(self) -> int:
        """Return the I/O wait per cycle (0 for CPU tasks)."""
        return self._io_wait_time

    @property
    def state(self) -> TaskState:
        """Return the current lifecycle state."""
        return self._state

    @property
    def vruntime(self) -> float:
        """Return the accumulated virtual runtime."""
        return self._vruntime

    @property
    def remaining_cpu_time(self) -> int:
        """Return the CPU work still to do."""
        return self._remaining

    @property
    def cpu_time(self) -> int:
        """Return the CPU time consumed so far."""
        return self._cpu_time

    @property
    def total_wait_time(self) -> int:
        """Return the total time spent blocked on I/O."""
        return self._total_wait_time

    @property
    def dispatch_count(self) -> int:
        """Return how many times the task has been given the CPU."""
        return self._dispatch_count

    @property
    def completion_tick(self) -> int | None:
        """Return the tick the task finished at, or None."""
        return self._completion_tick

    @property
    def sort_key(self) -> tuple[float, int]:
        """Return the runqueue ordering key ``(vruntime, task_id)``."""
        return (self._vruntime, self._task_id)

    # -- Accounting -------------------------------------------------------------

    def charge_cpu(self, duration: int, delta: float) -> None:
        """Account *duration* ms of CPU and add *delta* to vruntime.

        Raises:
            InvariantViolationError: If the task is not RUNNING, the slice
                overruns the remaining work, or the charge is not a
                positive finite number.

        """
        self._require(TaskState.RUNNING, "charge CPU to")
        if duration <= 0 or duration > self._remaining:
            msg = (
                f"Task {self._task_id}: slice of {duration}ms is invalid with "
                f"{self._remaining}ms remaining"
            )
            raise InvariantViolationError(msg)
        self._advance_vruntime(delta)
        self._remaining -= duration
        self._cpu_time += duration

    def charge_wait(self, duration: int, delta: float) -> None:
        """Account *duration* ms of I/O wait and add the *delta* penalty.

        Raises:
            InvariantViolationError: If the task is not WAITING or the
                penalty is not a positive finite number.

        """
        self._require(TaskState.WAITING, "charge a wait to")
        self._advance_vruntime(delta)
        self._total_wait_time += duration

    def _advance_vruntime(self, delta: float) -> None:
        new_vruntime = self._vruntime + delta
        if not math.isfinite(new_vruntime) or new_vruntime <= self._vruntime:
            msg = (
                f"Task {self._task_id}: vruntime must strictly increase, "
                f"got {self._vruntime} -> {new_vruntime}"
            )
            raise InvariantViolationError(msg)
        self._vruntime = new_vruntime

    # -- State transitions -------------------------------------------------------

    def _require(self, expected: TaskState, action: str) -> None:
        if self._state is not expected:
            msg = f"Cannot {action} task {self._task_id}: state is {self._state}, expected {expected}"
            raise InvariantViolationError(msg)

    def _transition(self, action: str, expected: TaskState, target: TaskState) -> None:
        """Enforce a state transition.

        Raises:
            InvariantViolationError: If the task is not in *expected*.

        """
        self._require(expected, action)
        self._state = target

    def dispatch(self) -> None:
        """Transition RUNNABLE → RUNNING and count the dispatch."""
        self._transition("dispatch", TaskState.RUNNABLE, TaskState.RUNNING)
        self._dispatch_count += 1

    def block(self) -> None:
        """Transition RUNNING → WAITING. Start an I/O wait."""
        self._transition("block", TaskState.RUNNING, TaskState.WAITING)

    def wake(self) -> None:
        """Transition WAITING → RUNNING. The I/O wait completed."""
        self._transition("wake", TaskState.WAITING, TaskState.RUNNING)

    def preempt(self) -> None:
        """Transition RUNNING → RUNNABLE. Only legal with work remaining."""
        if self._remaining == 0:
            msg = f"Cannot preempt task {self._task_id}: no work remaining, it must finish"
            raise InvariantViolationError(msg)
        self._transition("preempt", TaskState.RUNNING, TaskState.RUNNABLE)

    def finish(self, *, tick: int) -> None:
        """Transition RUNNING → FINISHED at *tick*. Only legal at zero remaining."""
        if self._remaining != 0:
            msg = f"Cannot finish task {self._task_id}: {self._remaining}ms remaining"
            raise InvariantViolationError(msg)
        self._transition("finish", TaskState.RUNNING, TaskState.FINISHED)
        self._completion_tick = tick

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        return (
            f"Task(id={self._task_id}, kind={self._kind}, priority={self._priority}, "
            f"vruntime={self._vruntime:g}, remaining={self._remaining}, state={self._state})"
        )
