"""Segment list operations: text, speaker, flags, split, merge, timing, delete.

WHY: Every segment edit has to produce a new segment tuple and, for the
structural edits, tell the chapter layer how anchors should follow the
segments that disappeared. Keeping these as pure functions lets the
editor facade decide about history, selection and suggestion pruning
in one place.

HOW: Each function takes the current segment tuple and returns a
SegmentEdit, or None when the call is a no-op (unknown id, unchanged
value, invalid split index, non-adjacent merge). Nothing is mutated.

RULES:
- Segments are never re-sorted; order is the caller's timeline order
- split: 0 < word_index < len(words); two fresh ids inherit speaker and tags
- merge: ids must be index-adjacent; result ordered by position, not args
- delete: start anchors move to the segment now at the deleted index,
  end anchors to the one before it
- removed_ids lists every id that no longer exists after the edit
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, FrozenSet, Iterable, Optional, Sequence, Tuple

from transcript_editor.core.aligner import HUMAN_CONFIDENCE, retime_segment
from transcript_editor.core.ir import (
    AnchorReplacement,
    EndOnly,
    Rename,
    Replacements,
    Segment,
    StartOnly,
    generate_id,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SegmentEdit:
    """Result of a segment operation that changed something.

    Attributes:
        segments: The full new segment tuple.
        replacements: Anchor replacements for chapters, keyed by old id.
        removed_ids: Ids present before the edit and gone after it.
        created_ids: Fresh ids in timeline order (split halves, merged id).
    """

    segments: Tuple[Segment, ...]
    replacements: Replacements = field(default_factory=dict)
    removed_ids: FrozenSet[str] = frozenset()
    created_ids: Tuple[str, ...] = ()


def index_of(segments: Sequence[Segment], segment_id: str) -> int:
    """Return the position of ``segment_id`` or -1."""
    for index, segment in enumerate(segments):
        if segment.id == segment_id:
            return index
    return -1


def _replace_at(segments: Sequence[Segment], index: int, segment: Segment) -> Tuple[Segment, ...]:
    updated = list(segments)
    updated[index] = segment
    return tuple(updated)


def join_words(segment_words: Iterable) -> str:
    return " ".join(w.text for w in segment_words)


def update_texts(
    segments: Sequence[Segment],
    updates: Iterable[Tuple[str, str]],
) -> Optional[SegmentEdit]:
    """Apply ``(segment_id, text)`` pairs, re-timing each changed segment.

    Later updates for the same id see the result of earlier ones.
    """
    current = list(segments)
    positions: Dict[str, int] = {s.id: i for i, s in enumerate(current)}
    changed = False

    for segment_id, text in updates:
        index = positions.get(segment_id)
        if index is None:
            logger.debug("Text update skipped: unknown segment %s", segment_id)
            continue
        segment = current[index]
        if segment.text == text:
            continue
        updated = retime_segment(segment, text)
        if updated is None:
            continue
        current[index] = updated
        changed = True

    if not changed:
        return None
    return SegmentEdit(segments=tuple(current))


def update_speaker(
    segments: Sequence[Segment],
    segment_id: str,
    speaker_id: str,
) -> Optional[SegmentEdit]:
    index = index_of(segments, segment_id)
    if index == -1 or segments[index].speaker_id == speaker_id:
        return None
    segment = segments[index]
    return SegmentEdit(segments=_replace_at(segments, index, replace(segment, speaker_id=speaker_id)))


def confirm(segments: Sequence[Segment], segment_id: str) -> Optional[SegmentEdit]:
    """Mark a segment as human-checked: every word becomes fully confident."""
    index = index_of(segments, segment_id)
    if index == -1:
        return None
    segment = segments[index]
    words = tuple(replace(w, confidence_score=HUMAN_CONFIDENCE) for w in segment.words)
    return SegmentEdit(
        segments=_replace_at(segments, index, replace(segment, words=words, confirmed=True)),
    )


def toggle_bookmark(segments: Sequence[Segment], segment_id: str) -> Optional[SegmentEdit]:
    index = index_of(segments, segment_id)
    if index == -1:
        return None
    segment = segments[index]
    return SegmentEdit(
        segments=_replace_at(segments, index, replace(segment, bookmarked=not segment.bookmarked)),
    )


def split(segments: Sequence[Segment], segment_id: str, word_index: int) -> Optional[SegmentEdit]:
    """Split a segment before ``words[word_index]``.

    The first half keeps the original start and ends where its last word
    ends; the second half starts where its first word starts and keeps the
    original end. Confirmed/bookmarked flags are not carried over.
    """
    index = index_of(segments, segment_id)
    if index == -1:
        return None
    segment = segments[index]
    if word_index <= 0 or word_index >= len(segment.words):
        logger.debug(
            "Split rejected for %s: index %d outside (0, %d)",
            segment_id, word_index, len(segment.words),
        )
        return None

    first_words = segment.words[:word_index]
    second_words = segment.words[word_index:]
    first = Segment(
        id=generate_id(),
        speaker_id=segment.speaker_id,
        tag_ids=segment.tag_ids,
        start_time=segment.start_time,
        end_time=first_words[-1].end_time,
        text=join_words(first_words),
        words=first_words,
    )
    second = Segment(
        id=generate_id(),
        speaker_id=segment.speaker_id,
        tag_ids=segment.tag_ids,
        start_time=second_words[0].start_time,
        end_time=segment.end_time,
        text=join_words(second_words),
        words=second_words,
    )

    new_segments = tuple(segments[:index]) + (first, second) + tuple(segments[index + 1:])
    return SegmentEdit(
        segments=new_segments,
        replacements={segment_id: (StartOnly(first.id), EndOnly(second.id))},
        removed_ids=frozenset({segment_id}),
        created_ids=(first.id, second.id),
    )


def _union_tags(first: Tuple[str, ...], second: Tuple[str, ...]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(first + second))


def merge(segments: Sequence[Segment], id1: str, id2: str) -> Optional[SegmentEdit]:
    """Merge two index-adjacent segments into one with a fresh id."""
    index1 = index_of(segments, id1)
    index2 = index_of(segments, id2)
    if index1 == -1 or index2 == -1:
        return None
    if abs(index1 - index2) != 1:
        logger.debug("Merge rejected: %s and %s are not adjacent", id1, id2)
        return None

    low, high = min(index1, index2), max(index1, index2)
    first, second = segments[low], segments[high]
    merged = Segment(
        id=generate_id(),
        speaker_id=first.speaker_id,
        tag_ids=_union_tags(first.tag_ids, second.tag_ids),
        start_time=first.start_time,
        end_time=second.end_time,
        text="{} {}".format(first.text, second.text),
        words=first.words + second.words,
    )

    rename: Tuple[AnchorReplacement, ...] = (Rename(merged.id),)
    return SegmentEdit(
        segments=tuple(segments[:low]) + (merged,) + tuple(segments[high + 1:]),
        replacements={first.id: rename, second.id: rename},
        removed_ids=frozenset({first.id, second.id}),
        created_ids=(merged.id,),
    )


def update_timing(
    segments: Sequence[Segment],
    segment_id: str,
    start_time: float,
    end_time: float,
) -> Optional[SegmentEdit]:
    index = index_of(segments, segment_id)
    if index == -1:
        return None
    segment = segments[index]
    if segment.start_time == start_time and segment.end_time == end_time:
        return None
    return SegmentEdit(
        segments=_replace_at(
            segments, index, replace(segment, start_time=start_time, end_time=end_time),
        ),
    )


def delete(segments: Sequence[Segment], segment_id: str) -> Optional[SegmentEdit]:
    index = index_of(segments, segment_id)
    if index == -1:
        return None

    remaining = tuple(segments[:index]) + tuple(segments[index + 1:])
    roles = []
    if index < len(remaining):
        roles.append(StartOnly(remaining[index].id))
    if index > 0:
        roles.append(EndOnly(remaining[index - 1].id))

    return SegmentEdit(
        segments=remaining,
        replacements={segment_id: tuple(roles)},
        removed_ids=frozenset({segment_id}),
    )


def are_adjacent(segments: Sequence[Segment], id1: str, id2: str) -> bool:
    """True when both ids exist and sit next to each other."""
    index1 = index_of(segments, id1)
    index2 = index_of(segments, id2)
    return index1 != -1 and index2 != -1 and abs(index1 - index2) == 1
