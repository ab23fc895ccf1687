"""Per-run trace buffer for the scheduler.

Every record is stamped with the simulation's virtual tick rather than
wall time, so replaying a workload under the same configuration gives
an identical ``dmesg``.  The scheduler logs admissions and dispatch
phases at DEBUG, the start of a run at INFO, and any rejected load or
broken invariant at ERROR right before raising it.  A ``Logger`` built
with ``min_level=LogLevel.INFO`` keeps the per-dispatch lines out of
long runs.
"""

from dataclasses import dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """How loud a trace record is; higher values survive more filtering."""

    DEBUG = 0
    INFO = 1
    WARNING = 2
    ERROR = 3


@dataclass(frozen=True)
class LogEntry:
    """One line of the scheduler trace.

    Attributes:
        level: Severity of the record.
        message: What the scheduler did or rejected.
        source: Emitting component, ``"scheduler"`` for the dispatch loop.
        tick: Virtual clock value when the record was written.

    """

    level: LogLevel
    message: str
    source: str
    tick: int = 0

    def __str__(self) -> str:
        """Render as ``[  tick] [LEVEL] source: message`` with a 6-wide tick."""
        return f"[{self.tick:>6}] [{self.level.name}] {self.source}: {self.message}"


class Logger:
    """Trace buffer owned by one scheduler.

    Records below ``min_level`` are discarded when written, not when
    read, so they cost no memory.
    """

    def __init__(self, *, min_level: LogLevel = LogLevel.DEBUG) -> None:
        """Create an empty buffer that keeps records at *min_level* and above."""
        self._entries: list[LogEntry] = []
        self._min_level = min_level

    @property
    def min_level(self) -> LogLevel:
        """Return the write-time threshold."""
        return self._min_level

    @property
    def entries(self) -> list[LogEntry]:
        """Return a copy of the kept records, oldest first."""
        return list(self._entries)

    def log(
        self,
        level: LogLevel,
        message: str,
        *,
        source: str,
        tick: int = 0,
    ) -> None:
        """Record *message* at *tick* unless *level* is under the threshold."""
        if level < self._min_level:
            return
        self._entries.append(LogEntry(level=level, message=message, source=source, tick=tick))

    def filter(
        self,
        *,
        min_level: LogLevel | None = None,
        source: str | None = None,
    ) -> list[LogEntry]:
        """Select kept records by read-time level and emitting component.

        Both criteria are optional; with neither, this is ``entries``.
        """
        result = self._entries
        if min_level is not None:
            result = [e for e in result if e.level >= min_level]
        if source is not None:
            result = [e for e in result if e.source == source]
        return result if result is not self._entries else list(result)

    def clear(self) -> None:
        """Drop every kept record."""
        self._entries.clear()
