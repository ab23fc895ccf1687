"""Runqueue — the ordered set of RUNNABLE tasks.

The Linux kernel keeps runnable entities in a red-black tree keyed by
vruntime and caches the leftmost node.  The only operations the
dispatch loop needs are "take the smallest" and "put back", so a binary
min-heap gives the same O(log n) bounds with far less code.

Ordering key: ``(vruntime, task_id)``.  The id breaks vruntime ties, so
selection is a deterministic total order — two runs over the same
workload pick tasks in the same sequence.

A task's vruntime only changes while it is *out* of the queue (it is
charged while RUNNING or WAITING), so the key captured at insert time
stays valid for as long as the task is queued.
"""

from __future__ import annotations

import heapq

from cfs_sim.errors import DuplicateTaskError, EmptyQueueError, InvariantViolationError
from cfs_sim.task import Task, TaskState


class Runqueue:
    """Binary min-heap of RUNNABLE tasks ordered by ``(vruntime, task_id)``."""

    def __init__(self) -> None:
        """Create an empty runqueue."""
        self._heap: list[tuple[float, int, Task]] = []
        self._members: set[int] = set()

    def __len__(self) -> int:
        """Return the number of queued tasks."""
        return len(self._heap)

    def __contains__(self, task_id: object) -> bool:
        """Return True if a task with *task_id* is queued."""
        return task_id in self._members

    @property
    def is_empty(self) -> bool:
        """Return True if no task is queued."""
        return not self._heap

    @property
    def min_vruntime(self) -> float:
        """Return the smallest queued vruntime, or 0.0 when empty."""
        if not self._heap:
            return 0.0
        return self._heap[0][0]

    def insert(self, task: Task) -> None:
        """Queue a RUNNABLE task.

        Raises:
            DuplicateTaskError: If the task id is already queued.
            InvariantViolationError: If the task is not RUNNABLE.

        """
        if task.task_id in self._members:
            msg = f"Task {task.task_id} is already in the runqueue"
            raise DuplicateTaskError(msg)
        if task.state is not TaskState.RUNNABLE:
            msg = f"Cannot queue task {task.task_id}: state is {task.state}, expected runnable"
            raise InvariantViolationError(msg)
        heapq.heappush(self._heap, (task.vruntime, task.task_id, task))
        self._members.add(task.task_id)

    def extract_min(self) -> Task:
        """Remove and return the task with the smallest ``(vruntime, id)``.

        Raises:
            EmptyQueueError: If the runqueue is empty.

        """
        if not self._heap:
            msg = "Cannot extract from an empty runqueue"
            raise EmptyQueueError(msg)
        _, task_id, task = heapq.heappop(self._heap)
        self._members.discard(task_id)
        return task

    def peek_min(self) -> Task:
        """Return the task ``extract_min`` would remove, leaving it queued.

        Raises:
            EmptyQueueError: If the runqueue is empty.

        """
        if not self._heap:
            msg = "Cannot peek into an empty runqueue"
            raise EmptyQueueError(msg)
        return self._heap[0][2]

    def tasks(self) -> list[Task]:
        """Return a snapshot of the queued tasks in dispatch order."""
        return [entry[2] for entry in sorted(self._heap, key=lambda e: (e[0], e[1]))]
