"""Chapter ranges anchored by segment ids.

WHY: Chapters must survive edits to the segment list. Storing indices
would go stale after every split, merge or delete, so chapters hold the
*ids* of their first and last segment and every range question is
answered against a freshly built id -> index map.

HOW: All functions are pure and take the chapter tuple plus the segment
tuple (or a prebuilt index map). Operations return a new chapter tuple,
or None when the request is rejected; callers treat None as "nothing
happened".

End resolution:
    The stored end_segment_id is kept in sync by the operations, but the
    canonical range is *dynamic*: a chapter runs from its start to the
    segment before the next chapter's start, or to the last segment when
    it is the last chapter. ``dynamic_chapter_range`` implements this and
    every selector uses it. ``chapter_range_indices`` reads the stored
    anchors and is only used for validation and segment_count.

RULES:
- Chapters never overlap when resolved against the current segments
- segment_count is recomputed on every change, never trusted on input
- Titles are stored trimmed; an empty trimmed title is rejected
- Chapters whose anchors no longer resolve after a remap are dropped
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from transcript_editor.core.ir import (
    Chapter,
    ChapterSource,
    EndOnly,
    Rename,
    Replacements,
    Segment,
    StartOnly,
    generate_id,
    now_ms,
)

logger = logging.getLogger(__name__)

IndexMap = Dict[str, int]

# Fields update_chapter accepts; anything else is ignored.
EDITABLE_FIELDS = (
    "title",
    "summary",
    "notes",
    "tag_ids",
    "start_segment_id",
    "end_segment_id",
    "source",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def build_segment_index_map(segments: Sequence[Segment]) -> IndexMap:
    return {segment.id: index for index, segment in enumerate(segments)}


def chapter_range_indices(chapter: Chapter, index_by_id: IndexMap) -> Optional[Tuple[int, int]]:
    """Resolve the stored anchors to ``(start_index, end_index)``.

    Returns None when either anchor is unknown or the range is inverted.
    """
    start = index_by_id.get(chapter.start_segment_id)
    end = index_by_id.get(chapter.end_segment_id)
    if start is None or end is None or start > end:
        return None
    return start, end


def sort_chapters_by_start(
    chapters: Sequence[Chapter],
    index_by_id: IndexMap,
) -> Tuple[Chapter, ...]:
    """Order chapters by start index; unresolvable starts go last, in input order."""
    unresolved = len(index_by_id) + 1

    def key(chapter: Chapter) -> int:
        return index_by_id.get(chapter.start_segment_id, unresolved)

    return tuple(sorted(chapters, key=key))


def has_overlapping_chapters(chapters: Sequence[Chapter], index_by_id: IndexMap) -> bool:
    """True when any stored range is invalid or overlaps the previous one."""
    last_end = -1
    for chapter in sort_chapters_by_start(chapters, index_by_id):
        resolved = chapter_range_indices(chapter, index_by_id)
        if resolved is None:
            return True
        start, end = resolved
        if start <= last_end:
            return True
        last_end = end
    return False


def normalize_chapter_counts(
    chapters: Sequence[Chapter],
    index_by_id: IndexMap,
) -> Tuple[Chapter, ...]:
    normalized = []
    for chapter in chapters:
        resolved = chapter_range_indices(chapter, index_by_id)
        count = resolved[1] - resolved[0] + 1 if resolved else 0
        normalized.append(chapter if chapter.segment_count == count else replace(chapter, segment_count=count))
    return tuple(normalized)


def recompute_chapter_ranges_from_starts(
    chapters: Sequence[Chapter],
    segments: Sequence[Segment],
    index_by_id: IndexMap,
) -> Tuple[Chapter, ...]:
    """Rewrite every stored end from the start ordering (dynamic policy).

    Returns the chapters ordered by start. A chapter with an unknown start,
    or whose successor starts at or before it, gets segment_count 0 and
    keeps its stored end.
    """
    ordered = sort_chapters_by_start(chapters, index_by_id)
    result = []
    for position, chapter in enumerate(ordered):
        start = index_by_id.get(chapter.start_segment_id)
        if start is None:
            result.append(replace(chapter, segment_count=0))
            continue
        following = ordered[position + 1] if position + 1 < len(ordered) else None
        next_start = index_by_id.get(following.start_segment_id) if following else None
        if next_start is not None and next_start <= start:
            result.append(replace(chapter, segment_count=0))
            continue
        if next_start is not None:
            end = max(start, next_start - 1)
        else:
            end = max(start, len(segments) - 1)
        end_id = segments[end].id if end < len(segments) else chapter.end_segment_id
        result.append(replace(chapter, end_segment_id=end_id, segment_count=end - start + 1))
    return tuple(result)


def dynamic_chapter_range(
    chapter_id: str,
    chapters: Sequence[Chapter],
    index_by_id: IndexMap,
    segment_count: int,
) -> Optional[Tuple[int, int]]:
    """Resolve a chapter to ``(start_index, end_index)`` using the dynamic policy.

    Args:
        chapter_id: Chapter to resolve.
        chapters: All chapters, in any order.
        index_by_id: Segment id -> index map for the current segments.
        segment_count: Number of segments.

    Returns:
        The inclusive index range, or None when the chapter is unknown,
        its start does not resolve, or the next chapter does not start
        strictly after it.
    """
    ordered = sort_chapters_by_start(chapters, index_by_id)
    for position, chapter in enumerate(ordered):
        if chapter.id != chapter_id:
            continue
        start = index_by_id.get(chapter.start_segment_id)
        if start is None or segment_count == 0:
            return None
        following = ordered[position + 1] if position + 1 < len(ordered) else None
        next_start = index_by_id.get(following.start_segment_id) if following else None
        if next_start is not None:
            if next_start <= start:
                return None
            return start, next_start - 1
        return start, max(start, segment_count - 1)
    return None


def chapter_for_segment(
    chapters: Sequence[Chapter],
    segments: Sequence[Segment],
    segment_id: str,
) -> Optional[Chapter]:
    index_by_id = build_segment_index_map(segments)
    segment_index = index_by_id.get(segment_id)
    if segment_index is None:
        return None
    for chapter in sort_chapters_by_start(chapters, index_by_id):
        resolved = dynamic_chapter_range(chapter.id, chapters, index_by_id, len(segments))
        if resolved and resolved[0] <= segment_index <= resolved[1]:
            return chapter
    return None


def segments_in_chapter(
    chapters: Sequence[Chapter],
    segments: Sequence[Segment],
    chapter_id: str,
) -> Tuple[Segment, ...]:
    index_by_id = build_segment_index_map(segments)
    resolved = dynamic_chapter_range(chapter_id, chapters, index_by_id, len(segments))
    if resolved is None:
        return ()
    return tuple(segments[resolved[0]:resolved[1] + 1])


def find_chapter(chapters: Sequence[Chapter], chapter_id: str) -> Optional[Chapter]:
    for chapter in chapters:
        if chapter.id == chapter_id:
            return chapter
    return None


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------


def start_chapter(
    chapters: Sequence[Chapter],
    segments: Sequence[Segment],
    title: str,
    start_segment_id: str,
    tag_ids: Sequence[str] = (),
    source: ChapterSource = ChapterSource.MANUAL,
    summary: Optional[str] = None,
    notes: Optional[str] = None,
) -> Optional[Tuple[Tuple[Chapter, ...], str]]:
    """Open a chapter at ``start_segment_id``.

    Returns ``(chapters, chapter_id)``. When a chapter already starts at
    that segment the input chapters come back unchanged together with the
    existing id. Returns None for no segments, an unknown start, an empty
    title, or a result that would overlap.
    """
    if not segments:
        return None
    index_by_id = build_segment_index_map(segments)
    start = index_by_id.get(start_segment_id)
    if start is None:
        logger.debug("start_chapter rejected: unknown segment %s", start_segment_id)
        return None

    for chapter in chapters:
        if chapter.start_segment_id == start_segment_id:
            return tuple(chapters), chapter.id

    trimmed = title.strip()
    if not trimmed:
        logger.debug("start_chapter rejected: empty title")
        return None

    previous: Optional[Chapter] = None
    following: Optional[Chapter] = None
    for chapter in sort_chapters_by_start(chapters, index_by_id):
        chapter_start = index_by_id.get(chapter.start_segment_id)
        if chapter_start is None:
            continue
        if chapter_start > start:
            following = chapter
            break
        previous = chapter

    next_start = index_by_id.get(following.start_segment_id) if following else None
    if next_start is not None:
        end = max(start, next_start - 1)
    else:
        end = max(start, len(segments) - 1)

    created = Chapter(
        id=generate_id(),
        title=trimmed,
        start_segment_id=start_segment_id,
        end_segment_id=segments[end].id,
        segment_count=end - start + 1,
        created_at=now_ms(),
        source=source,
        summary=summary,
        notes=notes,
        tag_ids=tuple(tag_ids),
    )

    updated: List[Chapter] = []
    for chapter in chapters:
        if previous is not None and chapter.id == previous.id and start > 0:
            chapter = replace(chapter, end_segment_id=segments[start - 1].id)
        updated.append(chapter)
    updated.append(created)

    normalized = normalize_chapter_counts(updated, index_by_id)
    if has_overlapping_chapters(normalized, index_by_id):
        logger.debug("start_chapter rejected: overlap at %s", start_segment_id)
        return None
    return sort_chapters_by_start(normalized, index_by_id), created.id


def update_chapter(
    chapters: Sequence[Chapter],
    segments: Sequence[Segment],
    chapter_id: str,
    changes: Mapping[str, Any],
) -> Optional[Tuple[Chapter, ...]]:
    """Apply field ``changes`` to one chapter and re-validate non-overlap.

    ``changes`` uses Chapter field names (see EDITABLE_FIELDS). Returns None
    for an unknown chapter, an empty title, an overlap, or no effective change.
    """
    existing = find_chapter(chapters, chapter_id)
    if existing is None:
        return None

    fields: Dict[str, Any] = {}
    for key, value in changes.items():
        if key not in EDITABLE_FIELDS:
            logger.debug("update_chapter ignoring field %s", key)
            continue
        if key == "title":
            value = str(value).strip()
            if not value:
                logger.debug("update_chapter rejected: empty title")
                return None
        elif key == "tag_ids":
            if value is None or isinstance(value, str):
                logger.debug("update_chapter rejected: tag_ids must be a list of ids")
                return None
            try:
                value = tuple(str(t) for t in value)
            except TypeError:
                logger.debug("update_chapter rejected: tag_ids must be a list of ids")
                return None
        elif key == "source":
            try:
                value = ChapterSource(value)
            except ValueError:
                logger.debug("update_chapter rejected: unknown source %r", value)
                return None
        fields[key] = value

    updated_chapter = replace(existing, **fields)
    if updated_chapter == existing:
        return None

    index_by_id = build_segment_index_map(segments)
    updated = [updated_chapter if c.id == chapter_id else c for c in chapters]
    normalized = normalize_chapter_counts(updated, index_by_id)
    if has_overlapping_chapters(normalized, index_by_id):
        logger.debug("update_chapter rejected: overlap for %s", chapter_id)
        return None
    return sort_chapters_by_start(normalized, index_by_id)


def move_chapter_start(
    chapters: Sequence[Chapter],
    segments: Sequence[Segment],
    chapter_id: str,
    new_start_segment_id: str,
) -> Optional[Tuple[Chapter, ...]]:
    """Move a chapter's start anchor between its neighbours' starts."""
    existing = find_chapter(chapters, chapter_id)
    if existing is None or existing.start_segment_id == new_start_segment_id:
        return None

    index_by_id = build_segment_index_map(segments)
    target = index_by_id.get(new_start_segment_id)
    if target is None:
        return None

    ordered = sort_chapters_by_start(chapters, index_by_id)
    position = next(i for i, c in enumerate(ordered) if c.id == chapter_id)
    previous = ordered[position - 1] if position > 0 else None
    following = ordered[position + 1] if position + 1 < len(ordered) else None
    previous_start = index_by_id.get(previous.start_segment_id) if previous else None
    next_start = index_by_id.get(following.start_segment_id) if following else None

    if previous_start is not None and target <= previous_start:
        logger.debug("move_chapter_start rejected: crosses previous chapter")
        return None
    if next_start is not None and target >= next_start:
        logger.debug("move_chapter_start rejected: crosses next chapter")
        return None
    if any(c.id != chapter_id and c.start_segment_id == new_start_segment_id for c in chapters):
        return None

    moved = [
        replace(c, start_segment_id=new_start_segment_id) if c.id == chapter_id else c
        for c in chapters
    ]
    recomputed = recompute_chapter_ranges_from_starts(moved, segments, index_by_id)
    if has_overlapping_chapters(recomputed, index_by_id):
        return None
    return recomputed


def delete_chapter(
    chapters: Sequence[Chapter],
    segments: Sequence[Segment],
    chapter_id: str,
) -> Optional[Tuple[Chapter, ...]]:
    """Remove one chapter; its neighbours keep their stored anchors."""
    if find_chapter(chapters, chapter_id) is None:
        return None
    index_by_id = build_segment_index_map(segments)
    remaining = [c for c in chapters if c.id != chapter_id]
    return sort_chapters_by_start(normalize_chapter_counts(remaining, index_by_id), index_by_id)


# ---------------------------------------------------------------------------
# Keeping chapters valid after segment edits
# ---------------------------------------------------------------------------


def drop_chapters_inside(chapters: Sequence[Chapter], segment_id: str) -> Tuple[Chapter, ...]:
    """Drop chapters that start and end on ``segment_id``."""
    return tuple(
        c for c in chapters
        if not (c.start_segment_id == segment_id and c.end_segment_id == segment_id)
    )


def remap_and_filter_chapters(
    chapters: Sequence[Chapter],
    replacements: Replacements,
    segments: Sequence[Segment],
) -> Tuple[Chapter, ...]:
    """Move anchors that point at replaced segments, then drop dangling chapters.

    A StartOnly replacement only rewrites a start anchor, EndOnly only an
    end anchor, Rename both. An anchor whose old id has no applicable
    replacement keeps the old id and the chapter is dropped because that
    id no longer exists in ``segments``.
    """
    valid_ids = {segment.id for segment in segments}
    result = []
    for chapter in chapters:
        start_id = chapter.start_segment_id
        end_id = chapter.end_segment_id
        for replacement in replacements.get(chapter.start_segment_id, ()):
            if isinstance(replacement, (StartOnly, Rename)):
                start_id = replacement.new_id
        for replacement in replacements.get(chapter.end_segment_id, ()):
            if isinstance(replacement, (EndOnly, Rename)):
                end_id = replacement.new_id
        if start_id not in valid_ids or end_id not in valid_ids:
            logger.debug("Dropping chapter %s: anchors no longer resolve", chapter.id)
            continue
        if start_id != chapter.start_segment_id or end_id != chapter.end_segment_id:
            chapter = replace(chapter, start_segment_id=start_id, end_segment_id=end_id)
        result.append(chapter)
    return tuple(result)


def reconcile_chapters(
    chapters: Sequence[Chapter],
    segments: Sequence[Segment],
) -> Tuple[Chapter, ...]:
    """Restore non-overlap and counts after a remap.

    Merging the last segment of one chapter with the first of the next
    renames both anchors to the merged id, so two chapters can end up
    sharing a segment. Chapters with an inverted or unresolvable range, or
    that now start at or before the previous chapter's start, are dropped;
    a stored end that reaches into the next chapter is pulled back to the
    dynamic end.
    """
    index_by_id = build_segment_index_map(segments)
    ordered = sort_chapters_by_start(chapters, index_by_id)

    kept: List[Tuple[Chapter, int, int]] = []
    last_start = -1
    for chapter in ordered:
        resolved = chapter_range_indices(chapter, index_by_id)
        if resolved is None or resolved[0] <= last_start:
            logger.debug("Dropping chapter %s: range invalid after edit", chapter.id)
            continue
        kept.append((chapter, resolved[0], resolved[1]))
        last_start = resolved[0]

    result = []
    for position, (chapter, start, end) in enumerate(kept):
        if position + 1 < len(kept):
            next_start = kept[position + 1][1]
            if end >= next_start:
                end = next_start - 1
        end_id = segments[end].id
        if end_id != chapter.end_segment_id:
            chapter = replace(chapter, end_segment_id=end_id)
        result.append(chapter)
    return normalize_chapter_counts(result, index_by_id)
