"""Immutable records for the editable transcript state.

WHY: Every edit produces a new state and the history keeps old states
around for undo. If records could be mutated in place, an edit would
silently rewrite the snapshots it was supposed to be reversible against.

HOW: Frozen dataclasses with tuple collections. Edits build new records
with ``dataclasses.replace``; unchanged records are shared between
snapshots. Each record has ``from_dict`` (import side) and ``to_dict``
(persistence side) so the outer layers never touch field names directly.

RULES:
- Word: one token with timing; belongs to exactly one Segment
- Segment: contiguous speaker turn; ``words`` tile [start_time, end_time]
- Speaker/Tag: session-level labels referenced by id from segments
- Chapter: named range of segments anchored by segment *ids*
- HistorySnapshot: everything undo/redo restores
- StartOnly / EndOnly / Rename: how a chapter anchor follows a segment
  that was split, merged or deleted
- All times are float seconds; Chapter.created_at is epoch milliseconds
- from_dict accepts camelCase, snake_case and WhisperX keys
  (``word``, ``start``, ``end``, ``score``, ``speaker``, ``tags``)
"""

from __future__ import annotations

import enum
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union


def generate_id() -> str:
    """Return a fresh UUID4 string for segments, chapters, speakers and tags."""
    return str(uuid.uuid4())


def now_ms() -> int:
    return int(time.time() * 1000)


def _pick(data: Mapping[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first present, non-None value among ``keys``."""
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return default


def _optional_float(value: Any) -> Optional[float]:
    return float(value) if value is not None else None


@dataclass(frozen=True)
class Word:
    """A single timed token inside a segment.

    RULES:
    - start_time <= end_time
    - speaker_id mirrors the owning segment unless diarization said otherwise
    - confidence_score is 1.0 for human-authored or confirmed words
    """

    text: str
    start_time: float
    end_time: float
    speaker_id: Optional[str] = None
    confidence_score: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Word:
        start = float(_pick(data, "start_time", "startTime", "start", default=0.0))
        end = float(_pick(data, "end_time", "endTime", "end", default=start))
        return cls(
            text=str(_pick(data, "text", "word", default="")).strip(),
            start_time=start,
            end_time=end,
            speaker_id=_pick(data, "speaker_id", "speakerId", "speaker"),
            confidence_score=_optional_float(
                _pick(data, "confidence_score", "confidenceScore", "score")
            ),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "text": self.text,
            "startTime": self.start_time,
            "endTime": self.end_time,
        }
        if self.speaker_id is not None:
            payload["speakerId"] = self.speaker_id
        if self.confidence_score is not None:
            payload["confidenceScore"] = self.confidence_score
        return payload


@dataclass(frozen=True)
class Segment:
    """A contiguous transcript span with one speaker and per-word timing.

    RULES:
    - words partition [start_time, end_time] into non-decreasing intervals
    - text is the whitespace-joined form of words[].text
    - tag_ids keep insertion order and never repeat
    - id may be empty only between import and load_transcript
    """

    id: str
    speaker_id: str
    start_time: float
    end_time: float
    text: str
    words: Tuple[Word, ...] = ()
    tag_ids: Tuple[str, ...] = ()
    confirmed: bool = False
    bookmarked: bool = False

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Segment:
        words = tuple(Word.from_dict(w) for w in data.get("words") or ())
        start = float(_pick(data, "start_time", "startTime", "start", default=0.0))
        end = float(_pick(data, "end_time", "endTime", "end", default=start))
        text = _pick(data, "text", default=None)
        if text is None:
            text = " ".join(w.text for w in words)
        tags = _pick(data, "tag_ids", "tagIds", "tags", default=())
        return cls(
            id=str(_pick(data, "id", default="")),
            speaker_id=str(_pick(data, "speaker_id", "speakerId", "speaker", default="")),
            start_time=start,
            end_time=end,
            text=str(text).strip(),
            words=words,
            tag_ids=tuple(str(t) for t in tags),
            confirmed=bool(data.get("confirmed", False)),
            bookmarked=bool(data.get("bookmarked", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "speakerId": self.speaker_id,
            "tagIds": list(self.tag_ids),
            "startTime": self.start_time,
            "endTime": self.end_time,
            "text": self.text,
            "words": [w.to_dict() for w in self.words],
            "confirmed": self.confirmed,
            "bookmarked": self.bookmarked,
        }


@dataclass(frozen=True)
class Speaker:
    id: str
    name: str
    color: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Speaker:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            color=str(data.get("color", "")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color}


@dataclass(frozen=True)
class Tag:
    id: str
    name: str
    color: str

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Tag:
        return cls(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            color=str(data.get("color", "")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name, "color": self.color}


class ChapterSource(str, enum.Enum):
    """Where a chapter came from. Inherits from str so it serializes as-is."""

    MANUAL = "manual"
    AI = "ai"


@dataclass(frozen=True)
class Chapter:
    """A named, non-overlapping range of consecutive segments.

    RULES:
    - start_segment_id / end_segment_id are segment ids, never indices
    - segment_count is derived from the anchors and recomputed on every
      chapter change; nothing reads it as the source of truth
    - title is stored trimmed and is never empty
    """

    id: str
    title: str
    start_segment_id: str
    end_segment_id: str
    segment_count: int = 0
    created_at: int = field(default_factory=now_ms)
    source: ChapterSource = ChapterSource.MANUAL
    summary: Optional[str] = None
    notes: Optional[str] = None
    tag_ids: Tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Chapter:
        tags = _pick(data, "tag_ids", "tagIds", "tags", default=())
        created_at = _pick(data, "created_at", "createdAt")
        return cls(
            id=str(_pick(data, "id", default="")) or generate_id(),
            title=str(data.get("title", "")).strip(),
            start_segment_id=str(_pick(data, "start_segment_id", "startSegmentId", default="")),
            end_segment_id=str(_pick(data, "end_segment_id", "endSegmentId", default="")),
            segment_count=int(_pick(data, "segment_count", "segmentCount", default=0)),
            created_at=int(created_at) if created_at is not None else now_ms(),
            source=ChapterSource(data.get("source", ChapterSource.MANUAL.value)),
            summary=data.get("summary"),
            notes=data.get("notes"),
            tag_ids=tuple(str(t) for t in tags),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "tagIds": list(self.tag_ids),
            "startSegmentId": self.start_segment_id,
            "endSegmentId": self.end_segment_id,
            "segmentCount": self.segment_count,
            "createdAt": self.created_at,
            "source": self.source.value,
        }
        if self.summary is not None:
            payload["summary"] = self.summary
        if self.notes is not None:
            payload["notes"] = self.notes
        return payload


@dataclass(frozen=True)
class HistorySnapshot:
    """One fully materialized editor state.

    Everything in here is immutable, so holding a reference is as good as
    holding a deep copy.
    """

    segments: Tuple[Segment, ...] = ()
    speakers: Tuple[Speaker, ...] = ()
    tags: Tuple[Tag, ...] = ()
    chapters: Tuple[Chapter, ...] = ()
    selected_segment_id: Optional[str] = None
    selected_chapter_id: Optional[str] = None
    current_time: float = 0.0
    confidence_version: int = 0


# ---------------------------------------------------------------------------
# Chapter anchor replacements
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class StartOnly:
    """The old segment id is replaced by ``new_id`` where it is a chapter start."""

    new_id: str


@dataclass(frozen=True)
class EndOnly:
    """The old segment id is replaced by ``new_id`` where it is a chapter end."""

    new_id: str


@dataclass(frozen=True)
class Rename:
    """The old segment id is replaced by ``new_id`` in both anchor roles."""

    new_id: str


AnchorReplacement = Union[StartOnly, EndOnly, Rename]

# old segment id -> replacements to apply for that id
Replacements = Dict[str, Tuple[AnchorReplacement, ...]]
