"""Tests for the runqueue.

The runqueue orders RUNNABLE tasks by ``(vruntime, task_id)`` and
supports insert, extract_min and peek_min in O(log n).
"""

import random

import pytest

from cfs_sim.errors import DuplicateTaskError, EmptyQueueError, InvariantViolationError
from cfs_sim.runqueue import Runqueue
from cfs_sim.task import Task

TASK_COUNT = 3


def _task(task_id: int, *, vruntime: float = 0.0) -> Task:
    """Create a RUNNABLE task whose vruntime is *vruntime*."""
    task = Task(task_id=task_id, priority=0, burst=1000)
    if vruntime:
        task.dispatch()
        task.charge_cpu(1, vruntime)
        task.preempt()
    return task


class TestRunqueueBasics:
    """Verify size and emptiness queries."""

    def test_new_runqueue_is_empty(self) -> None:
        """A new runqueue holds nothing."""
        rq = Runqueue()
        assert rq.is_empty
        assert len(rq) == 0
        assert rq.min_vruntime == 0.0

    def test_insert_increases_size(self) -> None:
        """Each insert adds one task."""
        rq = Runqueue()
        for i in range(TASK_COUNT):
            rq.insert(_task(i))
        assert len(rq) == TASK_COUNT
        assert 1 in rq
        assert 99 not in rq

    def test_duplicate_insert_raises(self) -> None:
        """The same id cannot be queued twice."""
        rq = Runqueue()
        task = _task(0)
        rq.insert(task)
        with pytest.raises(DuplicateTaskError, match="already"):
            rq.insert(task)

    def test_insert_non_runnable_raises(self) -> None:
        """Only RUNNABLE tasks may be queued."""
        rq = Runqueue()
        task = _task(0)
        task.dispatch()
        with pytest.raises(InvariantViolationError, match="expected runnable"):
            rq.insert(task)

    def test_extract_from_empty_raises(self) -> None:
        """extract_min on an empty queue is a contract violation."""
        with pytest.raises(EmptyQueueError):
            Runqueue().extract_min()

    def test_peek_from_empty_raises(self) -> None:
        """peek_min shares the failure mode."""
        with pytest.raises(EmptyQueueError):
            Runqueue().peek_min()


class TestRunqueueOrdering:
    """Verify the (vruntime, id) total order."""

    def test_extract_returns_smallest_vruntime(self) -> None:
        """The leftmost task has the smallest vruntime."""
        rq = Runqueue()
        rq.insert(_task(0, vruntime=5.0))
        rq.insert(_task(1, vruntime=2.0))
        rq.insert(_task(2, vruntime=9.0))
        assert rq.extract_min().task_id == 1
        assert rq.extract_min().task_id == 0
        assert rq.extract_min().task_id == 2

    def test_ties_break_on_id(self) -> None:
        """Equal vruntime picks the lowest id, whatever the insert order."""
        rq = Runqueue()
        rq.insert(_task(7))
        rq.insert(_task(3))
        rq.insert(_task(5))
        assert [rq.extract_min().task_id for _ in range(TASK_COUNT)] == [3, 5, 7]

    def test_peek_does_not_remove(self) -> None:
        """peek_min leaves the task queued."""
        rq = Runqueue()
        rq.insert(_task(0, vruntime=1.0))
        rq.insert(_task(1, vruntime=0.5))
        assert rq.peek_min().task_id == 1
        assert len(rq) == 2
        assert rq.min_vruntime == 0.5

    def test_extract_allows_reinsert(self) -> None:
        """An extracted id can be queued again."""
        rq = Runqueue()
        task = _task(0)
        rq.insert(task)
        rq.extract_min()
        assert 0 not in rq
        rq.insert(task)
        assert 0 in rq

    def test_snapshot_in_dispatch_order(self) -> None:
        """tasks() lists the queue in extraction order."""
        rq = Runqueue()
        rq.insert(_task(2, vruntime=1.0))
        rq.insert(_task(0, vruntime=3.0))
        rq.insert(_task(1, vruntime=1.0))
        assert [t.task_id for t in rq.tasks()] == [1, 2, 0]
        assert len(rq) == TASK_COUNT

    def test_mixed_operations_always_yield_minimum(self) -> None:
        """After any insert/extract sequence the minimum comes out first."""
        rng = random.Random(1234)
        rq = Runqueue()
        queued: dict[int, Task] = {}
        next_id = 0
        for _ in range(200):
            if queued and rng.random() < 0.4:
                expected = min(queued.values(), key=lambda t: t.sort_key)
                got = rq.extract_min()
                assert got is expected
                del queued[got.task_id]
            else:
                task = _task(next_id, vruntime=float(rng.randint(1, 20)))
                next_id += 1
                rq.insert(task)
                queued[task.task_id] = task
