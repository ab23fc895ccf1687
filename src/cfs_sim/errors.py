"""Error hierarchy for the scheduler simulation.

Every failure the simulator can report derives from ``SchedulerError``
so callers can catch the whole family in one place.  The kinds differ
in *who* is at fault:

- **ConfigurationError** — bad workload descriptor or parameter.  Raised
  before the first dispatch; the run never starts.
- **InvariantViolationError** — an internal contract broke (negative
  remaining time, illegal state transition).  This is a simulator bug.
- **ProtocolViolationError** — the scheduler API was driven out of
  order (e.g. ``step()`` after the run halted).
- **EmptyQueueError** / **DuplicateTaskError** — runqueue misuse.

There is no retry anywhere: the simulation is deterministic, so a
failure is never transient.
"""


class SchedulerError(Exception):
    """Base class for every simulator error."""


class ConfigurationError(SchedulerError, ValueError):
    """Raise when a workload descriptor or parameter is invalid."""


class InvalidPriorityError(ConfigurationError):
    """Raise when a priority falls outside the supported range."""


class InvariantViolationError(SchedulerError, RuntimeError):
    """Raise when an internal scheduling invariant is broken."""


class ProtocolViolationError(InvariantViolationError):
    """Raise when the scheduler is driven from the wrong loop state."""


class RunqueueError(SchedulerError):
    """Base class for runqueue contract violations."""


class EmptyQueueError(RunqueueError):
    """Raise when extracting or peeking from an empty runqueue."""


class DuplicateTaskError(RunqueueError):
    """Raise when inserting a task id that is already queued."""
