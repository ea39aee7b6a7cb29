"""Bounded linear undo/redo over full editor snapshots.

HOW: ``entries`` is a list of HistorySnapshot objects and ``cursor``
points at the one that matches the live state. Snapshots are immutable,
so storing the reference is storing a copy.

RULES:
- push truncates the redo tail, appends, and trims the oldest entries
  beyond ``max_entries`` (cursor shifts down with them)
- undo/redo return the snapshot to restore, or None at the bounds
- replace_current overwrites the entry under the cursor (selection-only
  changes) without creating an undo step
"""

from __future__ import annotations

from typing import List, Optional

from transcript_editor.config import MAX_HISTORY
from transcript_editor.core.ir import HistorySnapshot


class HistoryManager:
    """Owns the snapshot list and cursor for one editor instance."""

    def __init__(self, max_entries: int = MAX_HISTORY) -> None:
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1, got {}".format(max_entries))
        self.max_entries = max_entries
        self._entries: List[HistorySnapshot] = []
        self._cursor = -1

    @property
    def entries(self) -> List[HistorySnapshot]:
        return list(self._entries)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def current(self) -> Optional[HistorySnapshot]:
        if self._cursor < 0:
            return None
        return self._entries[self._cursor]

    def reset(self, snapshot: HistorySnapshot) -> None:
        """Start a fresh history containing only ``snapshot``."""
        self._entries = [snapshot]
        self._cursor = 0

    def push(self, snapshot: HistorySnapshot) -> None:
        del self._entries[self._cursor + 1:]
        self._entries.append(snapshot)
        self._cursor = len(self._entries) - 1

        overflow = len(self._entries) - self.max_entries
        if overflow > 0:
            del self._entries[:overflow]
            self._cursor -= overflow

    def replace_current(self, snapshot: HistorySnapshot) -> None:
        if self._cursor < 0:
            self.reset(snapshot)
            return
        self._entries[self._cursor] = snapshot

    def can_undo(self) -> bool:
        return self._cursor > 0

    def can_redo(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def undo(self) -> Optional[HistorySnapshot]:
        if not self.can_undo():
            return None
        self._cursor -= 1
        return self._entries[self._cursor]

    def redo(self) -> Optional[HistorySnapshot]:
        if not self.can_redo():
            return None
        self._cursor += 1
        return self._entries[self._cursor]

    def __len__(self) -> int:
        return len(self._entries)
