"""Unit tests for the bounded undo/redo history.

WHY: Undo depth is capped, and a wrong cursor shift after trimming
makes undo restore the wrong snapshot. That failure is silent.

HOW: Snapshots are HistorySnapshot instances told apart by
current_time, so each test can read back which one the cursor is on.

RULES:
- Each test creates its own HistoryManager
"""

import pytest

from transcript_editor.config import MAX_HISTORY
from transcript_editor.core.history import HistoryManager
from transcript_editor.core.ir import HistorySnapshot


def _snap(marker: float) -> HistorySnapshot:
    return HistorySnapshot(current_time=marker)


def _markers(history: HistoryManager):
    return [entry.current_time for entry in history.entries]


class TestPush:
    def test_push_advances_cursor(self):
        history = HistoryManager(max_entries=5)
        history.reset(_snap(0))
        history.push(_snap(1))
        assert history.cursor == 1
        assert history.current.current_time == 1
        assert len(history) == 2

    def test_push_discards_redo_tail(self):
        history = HistoryManager(max_entries=5)
        history.reset(_snap(0))
        history.push(_snap(1))
        history.push(_snap(2))
        history.undo()
        history.undo()
        history.push(_snap(3))
        assert _markers(history) == [0, 3]
        assert not history.can_redo()

    def test_overflow_drops_oldest_and_shifts_cursor(self):
        history = HistoryManager(max_entries=3)
        history.reset(_snap(0))
        for marker in (1, 2, 3, 4):
            history.push(_snap(marker))
        assert _markers(history) == [2, 3, 4]
        assert history.cursor == 2
        assert history.current.current_time == 4

    def test_default_cap(self):
        history = HistoryManager()
        history.reset(_snap(0))
        for marker in range(1, MAX_HISTORY + 2):
            history.push(_snap(marker))
        assert len(history) == MAX_HISTORY
        assert history.entries[0].current_time == 2

    def test_invalid_cap(self):
        with pytest.raises(ValueError, match="max_entries"):
            HistoryManager(max_entries=0)


class TestUndoRedo:
    def test_bounds(self):
        history = HistoryManager(max_entries=5)
        history.reset(_snap(0))
        assert not history.can_undo()
        assert not history.can_redo()
        assert history.undo() is None
        assert history.redo() is None

    def test_undo_then_redo_round_trip(self):
        history = HistoryManager(max_entries=10)
        history.reset(_snap(0))
        for marker in (1, 2, 3):
            history.push(_snap(marker))

        undone = [history.undo().current_time for _ in range(3)]
        assert undone == [2, 1, 0]
        assert not history.can_undo()

        redone = [history.redo().current_time for _ in range(3)]
        assert redone == [1, 2, 3]
        assert not history.can_redo()

    def test_undo_is_limited_by_cap(self):
        history = HistoryManager(max_entries=3)
        history.reset(_snap(0))
        for marker in range(1, 10):
            history.push(_snap(marker))
        steps = 0
        while history.undo() is not None:
            steps += 1
        assert steps == 2
        assert history.current.current_time == 7


class TestReplaceCurrent:
    def test_overwrites_without_new_entry(self):
        history = HistoryManager(max_entries=5)
        history.reset(_snap(0))
        history.push(_snap(1))
        history.replace_current(_snap(1.5))
        assert _markers(history) == [0, 1.5]
        assert history.cursor == 1

    def test_on_empty_history_starts_one(self):
        history = HistoryManager(max_entries=5)
        assert history.current is None
        history.replace_current(_snap(9))
        assert _markers(history) == [9]
        assert history.cursor == 0
