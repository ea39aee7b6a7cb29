"""Externally produced edit suggestions and their lifecycle.

WHY: AI collaborators (speaker labelling, merge detection, chapter
detection, text revision) propose edits keyed by segment ids. Those ids
can disappear while the user keeps editing, and a suggestion pointing at
a deleted segment must not be applied later. The board tracks every
suggestion's status so the editor can prune stale ones and report them.

HOW: Four small mutable dataclasses, one per kind, share a status field
and a ``referenced_ids()`` method. SuggestionBoard keeps them in insertion
order keyed by suggestion id. The board never touches transcript state;
accepting goes through TranscriptEditor, which calls the normal
mutation entry points.

RULES:
- pending -> accepted | rejected | invalid; only pending ones can change
- invalidate(removed_ids) marks pending suggestions that reference any
  removed segment id as INVALID and returns them
- discard_pending(kind) drops pending suggestions of a kind (a cancelled
  or restarted batch); resolved ones stay for the record
- ``error`` holds the last conflict message from accepting chapters
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import ClassVar, Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

from transcript_editor.core.ir import generate_id

logger = logging.getLogger(__name__)

# MergeSuggestion.confidence is "low", "medium" or "high"; only high is bulk-accepted
MEDIUM_CONFIDENCE = "medium"
HIGH_CONFIDENCE = "high"


class SuggestionStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    INVALID = "invalid"


class SuggestionKind(str, enum.Enum):
    SPEAKER = "speaker"
    MERGE = "merge"
    CHAPTER = "chapter"
    REVISION = "revision"


@dataclass
class SpeakerSuggestion:
    """Reassign one segment to a (possibly new) speaker, by speaker name."""

    kind: ClassVar[SuggestionKind] = SuggestionKind.SPEAKER

    segment_id: str
    suggested_speaker: str
    current_speaker: Optional[str] = None
    confidence: Optional[float] = None
    reason: Optional[str] = None
    id: str = field(default_factory=generate_id)
    status: SuggestionStatus = SuggestionStatus.PENDING

    def referenced_ids(self) -> Tuple[str, ...]:
        return (self.segment_id,)


@dataclass
class MergeSuggestion:
    """Merge two adjacent segments, optionally replacing the joined text.

    ``smoothed_text`` is applied after the merge when it differs from
    ``merged_text``.
    """

    kind: ClassVar[SuggestionKind] = SuggestionKind.MERGE

    first_segment_id: str
    second_segment_id: str
    merged_text: str = ""
    smoothed_text: Optional[str] = None
    confidence: str = MEDIUM_CONFIDENCE
    reason: Optional[str] = None
    id: str = field(default_factory=generate_id)
    status: SuggestionStatus = SuggestionStatus.PENDING

    def referenced_ids(self) -> Tuple[str, ...]:
        return (self.first_segment_id, self.second_segment_id)


@dataclass
class ChapterSuggestion:
    kind: ClassVar[SuggestionKind] = SuggestionKind.CHAPTER

    title: str
    start_segment_id: str
    end_segment_id: str
    summary: Optional[str] = None
    notes: Optional[str] = None
    tag_ids: Tuple[str, ...] = ()
    id: str = field(default_factory=generate_id)
    status: SuggestionStatus = SuggestionStatus.PENDING

    def referenced_ids(self) -> Tuple[str, ...]:
        return (self.start_segment_id, self.end_segment_id)


@dataclass
class RevisionSuggestion:
    kind: ClassVar[SuggestionKind] = SuggestionKind.REVISION

    segment_id: str
    original_text: str
    revised_text: str
    change_summary: Optional[str] = None
    reasoning: Optional[str] = None
    id: str = field(default_factory=generate_id)
    status: SuggestionStatus = SuggestionStatus.PENDING

    def referenced_ids(self) -> Tuple[str, ...]:
        return (self.segment_id,)


Suggestion = Union[SpeakerSuggestion, MergeSuggestion, ChapterSuggestion, RevisionSuggestion]


class SuggestionBoard:
    """Insertion-ordered collection of suggestions for one editor."""

    def __init__(self) -> None:
        self._items: Dict[str, Suggestion] = {}
        self.error: Optional[str] = None

    def __len__(self) -> int:
        return len(self._items)

    def add(self, suggestion: Suggestion) -> str:
        self._items[suggestion.id] = suggestion
        return suggestion.id

    def extend(self, suggestions: Iterable[Suggestion]) -> List[str]:
        return [self.add(s) for s in suggestions]

    def get(self, suggestion_id: str) -> Optional[Suggestion]:
        return self._items.get(suggestion_id)

    def all(self, kind: Optional[SuggestionKind] = None) -> List[Suggestion]:
        return [s for s in self._items.values() if kind is None or s.kind == kind]

    def pending(self, kind: Optional[SuggestionKind] = None) -> List[Suggestion]:
        return [s for s in self.all(kind) if s.status == SuggestionStatus.PENDING]

    def set_status(self, suggestion_id: str, status: SuggestionStatus) -> bool:
        suggestion = self._items.get(suggestion_id)
        if suggestion is None:
            return False
        suggestion.status = status
        return True

    def reject(self, suggestion_id: str) -> bool:
        """Reject a pending suggestion. Returns False if it is unknown or resolved."""
        suggestion = self._items.get(suggestion_id)
        if suggestion is None or suggestion.status != SuggestionStatus.PENDING:
            return False
        suggestion.status = SuggestionStatus.REJECTED
        return True

    def reject_all(self, kind: Optional[SuggestionKind] = None) -> int:
        pending = self.pending(kind)
        for suggestion in pending:
            suggestion.status = SuggestionStatus.REJECTED
        return len(pending)

    def discard_pending(self, kind: Optional[SuggestionKind] = None) -> int:
        pending_ids = [s.id for s in self.pending(kind)]
        for suggestion_id in pending_ids:
            del self._items[suggestion_id]
        if pending_ids:
            logger.debug("Discarded %d pending suggestions", len(pending_ids))
        return len(pending_ids)

    def clear(self, kind: Optional[SuggestionKind] = None) -> None:
        if kind is None:
            self._items.clear()
        else:
            self._items = {k: s for k, s in self._items.items() if s.kind != kind}
        self.error = None

    def invalidate(self, removed_ids: Iterable[str]) -> List[Suggestion]:
        """Mark pending suggestions that reference any of ``removed_ids`` as INVALID.

        Returns the suggestions that changed status, in insertion order.
        """
        removed: FrozenSet[str] = frozenset(removed_ids)
        if not removed:
            return []
        invalidated = []
        for suggestion in self._items.values():
            if suggestion.status != SuggestionStatus.PENDING:
                continue
            if removed.intersection(suggestion.referenced_ids()):
                suggestion.status = SuggestionStatus.INVALID
                invalidated.append(suggestion)
        if invalidated:
            logger.info("Invalidated %d suggestions after segment removal", len(invalidated))
        return invalidated
