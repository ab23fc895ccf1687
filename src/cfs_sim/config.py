"""Simulation parameters — read once at start, immutable during a run.

The Linux kernel exposes its CFS tunables under ``/proc/sys/kernel``
(``sched_min_granularity_ns`` and friends).  Our equivalent is a frozen
dataclass threaded explicitly through the weight table and scheduler,
never stored as a module-level global.  That keeps several
configurations side by side in one process (handy for tests).

All durations are integer milliseconds of *virtual* time.
"""

from __future__ import annotations

import dataclasses
import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from cfs_sim.errors import ConfigurationError

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

DEFAULT_NICE_0_LOAD = 1024
DEFAULT_CPU_TIMESLICE = 1
DEFAULT_IO_WAIT_TIME = 10
DEFAULT_MIN_GRANULARITY = 1
DEFAULT_MAX_PRIORITY = 39
DEFAULT_IO_WAIT_INTERVAL = 1


@dataclass(frozen=True)
class SchedulerConfig:
    """Immutable tunables for one simulation run.

    Attributes:
        nice_0_load: Normalisation constant, the weight of a priority-0
            task, and the scale of every vruntime charge.
        cpu_timeslice: CPU time granted per dispatch (ms).
        io_wait_time: Default I/O wait per wait cycle for IO tasks (ms).
        min_granularity: Smallest timeslice the scheduler may grant (ms).
        max_priority: Highest accepted priority number (0 is highest).
        io_wait_interval: An IO task waits before its CPU slice on every
            Nth dispatch, starting with the first.  1 means every
            dispatch.

    """

    nice_0_load: int = DEFAULT_NICE_0_LOAD
    cpu_timeslice: int = DEFAULT_CPU_TIMESLICE
    io_wait_time: int = DEFAULT_IO_WAIT_TIME
    min_granularity: int = DEFAULT_MIN_GRANULARITY
    max_priority: int = DEFAULT_MAX_PRIORITY
    io_wait_interval: int = DEFAULT_IO_WAIT_INTERVAL

    def __post_init__(self) -> None:
        """Validate every field.

        Raises:
            ConfigurationError: If any parameter is out of range.

        """
        for field in dataclasses.fields(self):
            value = getattr(self, field.name)
            if isinstance(value, bool) or not isinstance(value, int):
                msg = f"{field.name} must be an integer, got {value!r}"
                raise ConfigurationError(msg)
        positive = (
            "nice_0_load",
            "cpu_timeslice",
            "io_wait_time",
            "min_granularity",
            "io_wait_interval",
        )
        for name in positive:
            if getattr(self, name) <= 0:
                msg = f"{name} must be positive, got {getattr(self, name)}"
                raise ConfigurationError(msg)
        if self.max_priority < 0:
            msg = f"max_priority must be non-negative, got {self.max_priority}"
            raise ConfigurationError(msg)
        if self.cpu_timeslice < self.min_granularity:
            msg = (
                f"cpu_timeslice ({self.cpu_timeslice}) is below "
                f"min_granularity ({self.min_granularity})"
            )
            raise ConfigurationError(msg)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> SchedulerConfig:
        """Build a config from a mapping, keeping defaults for absent keys.

        Args:
            data: Parameter names mapped to values.

        Raises:
            ConfigurationError: If a key is unknown or a value is invalid.

        """
        known = {field.name for field in dataclasses.fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            msg = f"Unknown configuration keys: {', '.join(unknown)}"
            raise ConfigurationError(msg)
        return cls(**dict(data))

    def replace(self, **changes: Any) -> SchedulerConfig:
        """Return a copy with *changes* applied (validated again)."""
        return dataclasses.replace(self, **changes)

    def to_dict(self) -> dict[str, int]:
        """Return the parameters as a plain dict."""
        return dataclasses.asdict(self)


def load_config(path: Path) -> SchedulerConfig:
    """Load a config from a JSON object file.

    Raises:
        ConfigurationError: If the file cannot be read, is not valid
            JSON, or holds invalid parameters.

    """
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as e:
        msg = f"Cannot load configuration from {path}: {e}"
        raise ConfigurationError(msg) from e
    if not isinstance(data, dict):
        msg = f"Configuration in {path} must be a JSON object"
        raise ConfigurationError(msg)
    return SchedulerConfig.from_mapping(data)
