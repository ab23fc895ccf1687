"""Workload descriptors — parsing, validation, and generation.

A workload is an ordered list of task descriptors::

    {"id": 0, "type": "cpu", "priority": 0, "burst_ms": 100}
    {"id": 1, "type": "io",  "priority": 2, "burst_ms": 50, "io_wait_ms": 10}

Every descriptor is checked before the simulation starts.  A bad one
raises ConfigurationError naming its position and id, and the run
never dispatches anything.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from random import Random
from typing import TYPE_CHECKING, Any

from cfs_sim.config import SchedulerConfig
from cfs_sim.errors import ConfigurationError
from cfs_sim.task import Task, TaskKind
from cfs_sim.weights import WeightTable

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

_REQUIRED_FIELDS = ("id", "type", "priority", "burst_ms")
_KNOWN_FIELDS = frozenset((*_REQUIRED_FIELDS, "io_wait_ms"))


@dataclass(frozen=True)
class TaskSpec:
    """Immutable, validated description of one task."""

    task_id: int
    kind: TaskKind
    priority: int
    burst: int
    io_wait_time: int = 0

    def to_dict(self) -> dict[str, Any]:
        """Return the descriptor form of this spec."""
        data: dict[str, Any] = {
            "id": self.task_id,
            "type": str(self.kind),
            "priority": self.priority,
            "burst_ms": self.burst,
        }
        if self.kind is TaskKind.IO:
            data["io_wait_ms"] = self.io_wait_time
        return data


def _int_field(descriptor: Mapping[str, Any], name: str, where: str) -> int:
    value = descriptor[name]
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{where}: '{name}' must be an integer, got {value!r}"
        raise ConfigurationError(msg)
    return value


def parse_descriptor(
    descriptor: Mapping[str, Any],
    *,
    index: int,
    config: SchedulerConfig,
) -> TaskSpec:
    """Validate one descriptor and return its TaskSpec.

    Args:
        descriptor: The raw mapping.
        index: Position in the workload (for error messages).
        config: Supplies the priority range and default I/O wait.

    Raises:
        ConfigurationError: If the descriptor is malformed.

    """
    if not isinstance(descriptor, Mapping):
        msg = f"Task descriptor #{index}: expected a mapping, got {type(descriptor).__name__}"
        raise ConfigurationError(msg)
    where = f"Task descriptor #{index} (id={descriptor.get('id')!r})"
    missing = [name for name in _REQUIRED_FIELDS if name not in descriptor]
    if missing:
        msg = f"{where}: missing field(s) {', '.join(missing)}"
        raise ConfigurationError(msg)
    unknown = sorted(set(descriptor) - _KNOWN_FIELDS)
    if unknown:
        msg = f"{where}: unknown field(s) {', '.join(unknown)}"
        raise ConfigurationError(msg)

    task_id = _int_field(descriptor, "id", where)
    if task_id < 0:
        msg = f"{where}: id must be non-negative"
        raise ConfigurationError(msg)
    try:
        kind = TaskKind(str(descriptor["type"]).lower())
    except ValueError:
        msg = f"{where}: unknown task type {descriptor['type']!r}"
        raise ConfigurationError(msg) from None
    priority = _int_field(descriptor, "priority", where)
    if not 0 <= priority <= config.max_priority:
        msg = f"{where}: priority {priority} outside 0..{config.max_priority}"
        raise ConfigurationError(msg)
    burst = _int_field(descriptor, "burst_ms", where)
    if burst <= 0:
        msg = f"{where}: burst_ms must be positive, got {burst}"
        raise ConfigurationError(msg)

    io_wait_time = 0
    match kind:
        case TaskKind.IO:
            io_wait_time = config.io_wait_time
            if "io_wait_ms" in descriptor:
                io_wait_time = _int_field(descriptor, "io_wait_ms", where)
            if io_wait_time <= 0:
                msg = f"{where}: io_wait_ms must be positive, got {io_wait_time}"
                raise ConfigurationError(msg)
        case TaskKind.CPU:
            if "io_wait_ms" in descriptor:
                msg = f"{where}: io_wait_ms is only valid for io tasks"
                raise ConfigurationError(msg)

    return TaskSpec(
        task_id=task_id,
        kind=kind,
        priority=priority,
        burst=burst,
        io_wait_time=io_wait_time,
    )


def parse_workload(
    descriptors: Iterable[Mapping[str, Any]],
    *,
    config: SchedulerConfig | None = None,
) -> list[TaskSpec]:
    """Validate an ordered sequence of descriptors.

    Raises:
        ConfigurationError: If any descriptor is malformed, an id repeats,
            or the workload is empty.

    """
    cfg = config if config is not None else SchedulerConfig()
    specs: list[TaskSpec] = []
    seen: set[int] = set()
    for index, descriptor in enumerate(descriptors):
        spec = parse_descriptor(descriptor, index=index, config=cfg)
        if spec.task_id in seen:
            msg = f"Task descriptor #{index}: duplicate id {spec.task_id}"
            raise ConfigurationError(msg)
        seen.add(spec.task_id)
        specs.append(spec)
    if not specs:
        msg = "Workload contains no tasks"
        raise ConfigurationError(msg)
    return specs


def load_workload(path: Path, *, config: SchedulerConfig | None = None) -> list[TaskSpec]:
    """Load and validate a JSON workload file.

    The file holds either a list of descriptors or an object with a
    ``"tasks"`` list.

    Raises:
        ConfigurationError: If the file cannot be read or is invalid.

    """
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        msg = f"Cannot load workload from {path}: {e}"
        raise ConfigurationError(msg) from e
    if isinstance(data, dict):
        data = data.get("tasks")
    if not isinstance(data, list):
        msg = f"Workload in {path} must be a list of tasks or an object with a 'tasks' list"
        raise ConfigurationError(msg)
    return parse_workload(data, config=config)


def build_tasks(specs: Sequence[TaskSpec], *, config: SchedulerConfig | None = None) -> list[Task]:
    """Create fresh Task objects for *specs* under *config*'s weight table."""
    cfg = config if config is not None else SchedulerConfig()
    weights = WeightTable.from_config(cfg)
    return [
        Task(
            task_id=spec.task_id,
            kind=spec.kind,
            priority=spec.priority,
            burst=spec.burst,
            io_wait_time=spec.io_wait_time,
            weights=weights,
        )
        for spec in specs
    ]


def random_workload(
    count: int,
    *,
    seed: int | None = None,
    io_ratio: float = 0.5,
    max_priority: int = 4,
    burst_range: tuple[int, int] = (5, 50),
    io_wait_time: int = 10,
) -> list[TaskSpec]:
    """Generate a reproducible mixed workload.

    Args:
        count: Number of tasks (ids 0..count-1).
        seed: Seed for the private random generator.
        io_ratio: Probability that a task is IO-bound.
        max_priority: Priorities are drawn from 0..max_priority.
        burst_range: Inclusive (low, high) bounds for the CPU burst.
        io_wait_time: Wait per cycle for IO tasks.

    Raises:
        ConfigurationError: If any argument is out of range.

    """
    low, high = burst_range
    if count <= 0:
        msg = f"count must be positive, got {count}"
        raise ConfigurationError(msg)
    if not 0.0 <= io_ratio <= 1.0:
        msg = f"io_ratio must be within [0, 1], got {io_ratio}"
        raise ConfigurationError(msg)
    if low <= 0 or high < low:
        msg = f"burst_range must satisfy 0 < low <= high, got {burst_range}"
        raise ConfigurationError(msg)
    if max_priority < 0 or io_wait_time <= 0:
        msg = "max_priority must be non-negative and io_wait_time positive"
        raise ConfigurationError(msg)

    rng = Random(seed)  # noqa: S311
    specs: list[TaskSpec] = []
    for task_id in range(count):
        is_io = rng.random() < io_ratio
        specs.append(
            TaskSpec(
                task_id=task_id,
                kind=TaskKind.IO if is_io else TaskKind.CPU,
                priority=rng.randint(0, max_priority),
                burst=rng.randint(low, high),
                io_wait_time=io_wait_time if is_io else 0,
            )
        )
    return specs
