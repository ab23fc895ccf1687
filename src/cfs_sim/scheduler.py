"""CFS scheduler — the dispatch loop that ties everything together.

The scheduler owns the runqueue, the task arena, and a virtual clock.
It repeatedly takes the task with the smallest vruntime, gives it one
timeslice (preceded by an I/O wait for IO tasks that are due one),
charges vruntime via the weight table, and either requeues or retires
the task.

Loop state machine::

    IDLE  →  RUNNING  →  DRAINING  →  HALTED

- IDLE: nothing loaded yet.
- RUNNING: dispatch steps are legal while the runqueue is non-empty.
- DRAINING: the runqueue emptied; resolve any task still blocked.
- HALTED: every task finished, no waits pending.

Dispatch step (one call to ``step()``):

    1. extract_min() → current, mark RUNNING.
    2. IO task due for I/O: block, advance the clock by its wait,
       charge the penalty, wake.  Emit WAITING.
    3. Run min(timeslice, remaining): charge CPU, advance the clock.
       Emit RUNNING.
    4. Remaining is zero → FINISHED (emit FINISHED); else requeue.

I/O waits are synchronous clock advances, not real blocking.  A task is
always owned by exactly one place: the runqueue, the waiting set, or
the CPU.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

from cfs_sim.config import SchedulerConfig
from cfs_sim.errors import (
    ConfigurationError,
    InvariantViolationError,
    ProtocolViolationError,
    SchedulerError,
)
from cfs_sim.events import EventKind, SchedEvent
from cfs_sim.logging import Logger, LogLevel
from cfs_sim.runqueue import Runqueue
from cfs_sim.task import Task, TaskKind, TaskState
from cfs_sim.weights import WeightTable
from cfs_sim.workload import build_tasks

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from cfs_sim.workload import TaskSpec

_LOG_SOURCE = "scheduler"


class SchedulerState(StrEnum):
    """Phases of the dispatch loop."""

    IDLE = "idle"
    RUNNING = "running"
    DRAINING = "draining"
    HALTED = "halted"


@dataclass(frozen=True)
class TaskSummary:
    """Final accounting for one task, handed to reporting layers."""

    task_id: int
    kind: TaskKind
    priority: int
    weight: float
    completion_tick: int | None
    vruntime: float
    cpu_time: int
    total_wait_time: int
    dispatch_count: int

    @classmethod
    def from_task(cls, task: Task) -> TaskSummary:
        """Snapshot *task*'s accounting."""
        return cls(
            task_id=task.task_id,
            kind=task.kind,
            priority=task.priority,
            weight=task.weight,
            completion_tick=task.completion_tick,
            vruntime=task.vruntime,
            cpu_time=task.cpu_time,
            total_wait_time=task.total_wait_time,
            dispatch_count=task.dispatch_count,
        )

    def to_dict(self) -> dict[str, object]:
        """Return the summary as a JSON-ready dict."""
        data = asdict(self)
        data["kind"] = str(self.kind)
        return data


@dataclass(frozen=True)
class RunSummary:
    """The termination report: loop state, final clock, and per-task totals."""

    state: SchedulerState
    final_tick: int
    tasks: tuple[TaskSummary, ...]

    @property
    def halted(self) -> bool:
        """Return True if the run reached HALTED."""
        return self.state is SchedulerState.HALTED

    def task(self, task_id: int) -> TaskSummary:
        """Return the summary for *task_id*.

        Raises:
            KeyError: If no such task took part in the run.

        """
        for summary in self.tasks:
            if summary.task_id == task_id:
                return summary
        raise KeyError(task_id)

    def to_dict(self) -> dict[str, object]:
        """Return the report as a JSON-ready dict."""
        return {
            "state": str(self.state),
            "final_tick": self.final_tick,
            "tasks": [t.to_dict() for t in self.tasks],
        }


@dataclass(frozen=True)
class SimulationResult:
    """Everything one complete run produced."""

    events: tuple[SchedEvent, ...]
    summary: RunSummary


class Scheduler:
    """Single-CPU, tick-synchronous CFS dispatch loop."""

    def __init__(
        self,
        *,
        config: SchedulerConfig | None = None,
        logger: Logger | None = None,
    ) -> None:
        """Create an IDLE scheduler with an empty runqueue at tick 0.

        Args:
            config: Tunables for the run (defaults if omitted).
            logger: Log buffer to write to (a fresh one if omitted).

        """
        self._config = config if config is not None else SchedulerConfig()
        self._logger = logger if logger is not None else Logger()
        self._weights = WeightTable.from_config(self._config)
        self._runqueue = Runqueue()
        self._tasks: dict[int, Task] = {}
        self._waiting: dict[int, Task] = {}
        self._current: Task | None = None
        self._state = SchedulerState.IDLE
        self._tick = 0
        self._dispatches = 0

    @property
    def config(self) -> SchedulerConfig:
        """Return the run's configuration."""
        return self._config

    @property
    def logger(self) -> Logger:
        """Return the log buffer."""
        return self._logger

    @property
    def weights(self) -> WeightTable:
        """Return the weight table bound to this run."""
        return self._weights

    @property
    def state(self) -> SchedulerState:
        """Return the loop state."""
        return self._state

    @property
    def tick(self) -> int:
        """Return the virtual clock in ms."""
        return self._tick

    @property
    def ready_count(self) -> int:
        """Return the number of RUNNABLE tasks in the runqueue."""
        return len(self._runqueue)

    @property
    def current(self) -> Task | None:
        """Return the task owning the CPU, or None between steps."""
        return self._current

    @property
    def dispatches(self) -> int:
        """Return the number of dispatch steps performed."""
        return self._dispatches

    @property
    def tasks(self) -> list[Task]:
        """Return every task of the run, ordered by id."""
        return [self._tasks[task_id] for task_id in sorted(self._tasks)]

    def task(self, task_id: int) -> Task:
        """Return the task with *task_id* from the arena.

        Raises:
            KeyError: If no such task was loaded.

        """
        return self._tasks[task_id]

    def dmesg(self) -> list[str]:
        """Return the log buffer as formatted lines."""
        return [str(entry) for entry in self._logger.entries]

    def _log(self, level: LogLevel, message: str) -> None:
        self._logger.log(level, message, source=_LOG_SOURCE, tick=self._tick)

    # -- Loading ----------------------------------------------------------------

    def load(self, tasks: Iterable[Task]) -> None:
        """Admit *tasks* into the arena and runqueue.

        The batch is checked as a whole before anything is admitted, so a
        rejected batch leaves the scheduler exactly as it was.

        Raises:
            ProtocolViolationError: If the run has already started.
            ConfigurationError: If a task id repeats, a task is not fresh,
                or a task's weight disagrees with this run's weight table.

        """
        if self._state is not SchedulerState.IDLE:
            msg = f"Cannot load tasks: scheduler is {self._state}, expected idle"
            self._log(LogLevel.ERROR, msg)
            raise ProtocolViolationError(msg)
        batch = list(tasks)
        seen: set[int] = set()
        for task in batch:
            try:
                self._check_admissible(task, seen)
            except ConfigurationError as e:
                self._log(LogLevel.ERROR, str(e))
                raise
            seen.add(task.task_id)
        for task in batch:
            self._admit(task)
        if not self._runqueue.is_empty:
            self._state = SchedulerState.RUNNING
            self._log(LogLevel.INFO, f"Loaded {len(self._tasks)} tasks, running")

    def _check_admissible(self, task: Task, seen: set[int]) -> None:
        if task.task_id in self._tasks or task.task_id in seen:
            msg = f"Duplicate task id {task.task_id}"
            raise ConfigurationError(msg)
        if task.state is not TaskState.RUNNABLE or task.dispatch_count:
            msg = f"Task {task.task_id} has already run (state {task.state})"
            raise ConfigurationError(msg)
        if task.weight != self._weights.weight(task.priority):
            msg = f"Task {task.task_id} was built with a different weight table"
            raise ConfigurationError(msg)

    def _admit(self, task: Task) -> None:
        self._tasks[task.task_id] = task
        self._runqueue.insert(task)
        self._log(
            LogLevel.DEBUG,
            f"Admitted task {task.task_id} ({task.kind}, priority {task.priority}, "
            f"weight {task.weight:g}, burst {task.burst}ms)",
        )

    # -- Dispatch ---------------------------------------------------------------

    def step(self) -> list[SchedEvent]:
        """Perform one dispatch step and return the events it emitted.

        Raises:
            ProtocolViolationError: If the loop is not RUNNING.
            InvariantViolationError: If a task's accounting breaks.

        """
        if self._state is not SchedulerState.RUNNING:
            msg = f"Cannot dispatch: scheduler is {self._state}, expected running"
            self._log(LogLevel.ERROR, msg)
            raise ProtocolViolationError(msg)
        try:
            events = self._dispatch()
        except SchedulerError as e:
            self._log(LogLevel.ERROR, f"Run aborted: {e}")
            raise
        if self._runqueue.is_empty:
            self._drain()
        return events

    def _dispatch(self) -> list[SchedEvent]:
        current = self._runqueue.extract_min()
        current.dispatch()
        self._current = current
        self._dispatches += 1
        self._log(
            LogLevel.DEBUG,
            f"Dispatch task {current.task_id} (vruntime {current.vruntime:g})",
        )

        events: list[SchedEvent] = []
        match current.kind:
            case TaskKind.IO:
                if self._io_wait_due(current):
                    events.append(self._io_wait(current))
            case TaskKind.CPU:
                pass
        events.append(self._run_slice(current))

        if current.remaining_cpu_time == 0:
            current.finish(tick=self._tick)
            events.append(self._event(current, EventKind.FINISHED, start=self._tick))
            self._log(LogLevel.INFO, f"Task {current.task_id} finished")
        else:
            current.preempt()
            self._runqueue.insert(current)
        self._current = None
        return events

    def _io_wait_due(self, task: Task) -> bool:
        """Return True if *task* waits on I/O during this dispatch."""
        return (task.dispatch_count - 1) % self._config.io_wait_interval == 0

    def _io_wait(self, task: Task) -> SchedEvent:
        wait = task.io_wait_time
        start = self._tick
        task.block()
        self._waiting[task.task_id] = task
        self._tick += wait
        task.charge_wait(wait, self._weights.delta(wait, task.weight))
        del self._waiting[task.task_id]
        task.wake()
        return self._event(task, EventKind.WAITING, start=start, duration=wait)

    def _run_slice(self, task: Task) -> SchedEvent:
        if task.remaining_cpu_time <= 0:
            msg = (
                f"Task {task.task_id} dispatched with {task.remaining_cpu_time}ms "
                f"remaining at tick {self._tick}"
            )
            raise InvariantViolationError(msg)
        timeslice = min(self._config.cpu_timeslice, task.remaining_cpu_time)
        start = self._tick
        task.charge_cpu(timeslice, self._weights.delta(timeslice, task.weight))
        self._tick += timeslice
        return self._event(task, EventKind.RUNNING, start=start, duration=timeslice)

    @staticmethod
    def _event(task: Task, kind: EventKind, *, start: int, duration: int = 0) -> SchedEvent:
        return SchedEvent(
            tick=start,
            task_id=task.task_id,
            kind=kind,
            vruntime=task.vruntime,
            remaining_cpu_time=task.remaining_cpu_time,
            duration=duration,
        )

    def _drain(self) -> None:
        """Resolve the end of the run once the runqueue is empty.

        Waits complete inside the dispatch step that starts them, so
        nothing can still be blocked here.

        Raises:
            InvariantViolationError: If a task is still in the waiting set.

        """
        self._state = SchedulerState.DRAINING
        if self._waiting:
            stuck = ", ".join(str(task_id) for task_id in sorted(self._waiting))
            msg = f"Runqueue drained at tick {self._tick} with tasks still waiting: {stuck}"
            self._log(LogLevel.ERROR, msg)
            raise InvariantViolationError(msg)
        self._state = SchedulerState.HALTED
        self._log(
            LogLevel.INFO,
            f"Halted after {self._dispatches} dispatches, {len(self._tasks)} tasks finished",
        )

    def run(self) -> Iterator[SchedEvent]:
        """Lazily yield every event until the loop halts.

        Raises:
            ProtocolViolationError: If no tasks were loaded.

        """
        if self._state is SchedulerState.IDLE:
            msg = "Cannot run: no tasks loaded"
            self._log(LogLevel.ERROR, msg)
            raise ProtocolViolationError(msg)
        while self._state is SchedulerState.RUNNING:
            yield from self.step()

    def summary(self) -> RunSummary:
        """Return the loop state, clock, and per-task accounting."""
        return RunSummary(
            state=self._state,
            final_tick=self._tick,
            tasks=tuple(TaskSummary.from_task(task) for task in self.tasks),
        )


def simulate(
    specs: Sequence[TaskSpec],
    *,
    config: SchedulerConfig | None = None,
    logger: Logger | None = None,
) -> SimulationResult:
    """Run a complete simulation of *specs* and collect the results.

    Args:
        specs: Validated task descriptors.
        config: Tunables for the run (defaults if omitted).
        logger: Log buffer to write to.

    Returns:
        The full event stream and the termination summary.

    """
    scheduler = Scheduler(config=config, logger=logger)
    scheduler.load(build_tasks(specs, config=scheduler.config))
    events = tuple(scheduler.run())
    return SimulationResult(events=events, summary=scheduler.summary())
