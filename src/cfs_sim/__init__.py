"""A single-CPU simulation of the Linux Completely Fair Scheduler.

Re-exports public symbols so callers can write::

    from cfs_sim import Scheduler, SchedulerConfig, parse_workload, simulate
"""

from cfs_sim.config import SchedulerConfig, load_config
from cfs_sim.errors import (
    ConfigurationError,
    DuplicateTaskError,
    EmptyQueueError,
    InvalidPriorityError,
    InvariantViolationError,
    ProtocolViolationError,
    RunqueueError,
    SchedulerError,
)
from cfs_sim.events import EventKind, SchedEvent
from cfs_sim.logging import LogEntry, Logger, LogLevel
from cfs_sim.metrics import FairnessRow, MetricsCollector
from cfs_sim.runqueue import Runqueue
from cfs_sim.scheduler import (
    RunSummary,
    Scheduler,
    SchedulerState,
    SimulationResult,
    TaskSummary,
    simulate,
)
from cfs_sim.task import Task, TaskKind, TaskState
from cfs_sim.weights import WeightTable, expected_share, vruntime_delta, weight
from cfs_sim.workload import (
    TaskSpec,
    build_tasks,
    load_workload,
    parse_workload,
    random_workload,
)

__all__ = [
    "ConfigurationError",
    "DuplicateTaskError",
    "EmptyQueueError",
    "EventKind",
    "FairnessRow",
    "InvalidPriorityError",
    "InvariantViolationError",
    "LogEntry",
    "LogLevel",
    "Logger",
    "MetricsCollector",
    "ProtocolViolationError",
    "RunSummary",
    "Runqueue",
    "RunqueueError",
    "SchedEvent",
    "Scheduler",
    "SchedulerConfig",
    "SchedulerError",
    "SchedulerState",
    "SimulationResult",
    "Task",
    "TaskKind",
    "TaskSpec",
    "TaskState",
    "TaskSummary",
    "WeightTable",
    "build_tasks",
    "expected_share",
    "load_config",
    "load_workload",
    "parse_workload",
    "random_workload",
    "simulate",
    "vruntime_delta",
    "weight",
]
