"""Tests for WaitingQueue."""

from __future__ import annotations

from snackroom.core.queue import WaitingQueue
from snackroom.models.enums import Mood, VisitorMode
from snackroom.models.participant import Participant


def _queue(*handles: str) -> tuple[WaitingQueue, dict[str, Participant]]:
    participants = {
        h: Participant(handle=h, mood=Mood.LISTEN, mode=VisitorMode.TEXT) for h in handles
    }
    queue = WaitingQueue(participants.get)
    for h in handles:
        queue.enqueue(h)
    return queue, participants


class TestWaitingQueue:
    def test_fifo_positions(self) -> None:
        queue, _ = _queue("a", "b", "c")

        assert [queue.position_of(h) for h in ("a", "b", "c")] == [1, 2, 3]
        assert queue.position_of("zzz") == 0

    def test_enqueue_is_idempotent(self) -> None:
        queue, _ = _queue("a")

        assert queue.enqueue("a") is False
        assert len(queue) == 1

    def test_remove(self) -> None:
        queue, _ = _queue("a", "b")

        assert queue.remove("a") is True
        assert queue.remove("a") is False
        assert queue.position_of("b") == 1

    def test_prune(self) -> None:
        queue, _ = _queue("a", "b", "c")

        dropped = queue.prune(lambda h: h != "b")

        assert dropped == ["b"]
        assert list(queue) == ["a", "c"]

    def test_snapshot_prunes_vanished(self) -> None:
        queue, participants = _queue("a", "b")
        del participants["a"]

        snapshot = queue.snapshot()

        assert [e.handle for e in snapshot] == ["b"]
        assert "a" not in queue
        assert snapshot[0].mood == Mood.LISTEN
        assert snapshot[0].joined_at == participants["b"].joined_at

    def test_iteration_is_a_copy(self) -> None:
        queue, _ = _queue("a", "b")

        for handle in queue:
            queue.remove(handle)

        assert len(queue) == 0
