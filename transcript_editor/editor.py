"""TranscriptEditor: the single entry point for editing a transcript.

WHY: Segment edits, chapter bookkeeping, selection, undo history and
suggestion pruning all have to agree after every call. Putting every
mutation behind one object means each call reads one snapshot, computes
the next one with the pure core functions, and records it exactly once.

HOW: The live state is a frozen HistorySnapshot. A mutating call builds
the next snapshot with ``dataclasses.replace`` and hands it to
``_commit``, which pushes it onto the HistoryManager. Structural segment
edits (split, merge, delete) carry anchor replacements that are applied
to the chapters in the same commit, followed by a reconcile pass.

RULES:
- Every state-changing call pushes exactly one history entry
- Rejected calls return False/None and leave ``state`` identical
- select_segment / select_chapter overwrite the current history entry
- set_current_time changes live state only
- Calls that remove segment ids invalidate pending suggestions that
  reference them; the result is kept in ``last_invalidated`` and passed
  to ``on_suggestions_invalidated`` when set
- Not thread-safe; the HTTP layer holds a per-session lock
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from transcript_editor.config import MAX_HISTORY, SPEAKER_COLORS
from transcript_editor.core import chapters as chapter_ops
from transcript_editor.core import segments as segment_ops
from transcript_editor.core.history import HistoryManager
from transcript_editor.core.ir import (
    Chapter,
    ChapterSource,
    HistorySnapshot,
    Segment,
    Speaker,
    Tag,
    generate_id,
    now_ms,
)
from transcript_editor.core.segments import SegmentEdit
from transcript_editor.core.suggestions import (
    HIGH_CONFIDENCE,
    ChapterSuggestion,
    MergeSuggestion,
    RevisionSuggestion,
    SpeakerSuggestion,
    Suggestion,
    SuggestionBoard,
    SuggestionKind,
    SuggestionStatus,
)

logger = logging.getLogger(__name__)

SegmentInput = Union[Segment, Mapping[str, Any]]
TextUpdates = Union[Mapping[str, str], Iterable[Tuple[str, str]]]
InvalidationCallback = Callable[[List[Suggestion]], None]

CHAPTER_CONFLICT_MESSAGE = (
    "Detected chapters would overlap existing chapters. "
    "Reject conflicting suggestions or clear chapters before accepting."
)


def _palette_color(index: int) -> str:
    return SPEAKER_COLORS[index % len(SPEAKER_COLORS)]


class TranscriptEditor:
    """Editable transcript with chapters, selection and undo/redo.

    Args:
        max_history: Maximum number of snapshots kept for undo.
        on_suggestions_invalidated: Called with the suggestions that became
            INVALID after an edit removed the segments they reference.
    """

    def __init__(
        self,
        max_history: int = MAX_HISTORY,
        on_suggestions_invalidated: Optional[InvalidationCallback] = None,
    ) -> None:
        self.history = HistoryManager(max_history)
        self.suggestions = SuggestionBoard()
        self.on_suggestions_invalidated = on_suggestions_invalidated
        self.last_invalidated: List[Suggestion] = []
        self._state = HistorySnapshot()
        self.history.reset(self._state)

    # ------------------------------------------------------------------
    # State access
    # ------------------------------------------------------------------

    @property
    def state(self) -> HistorySnapshot:
        return self._state

    @property
    def segments(self) -> Tuple[Segment, ...]:
        return self._state.segments

    @property
    def speakers(self) -> Tuple[Speaker, ...]:
        return self._state.speakers

    @property
    def tags(self) -> Tuple[Tag, ...]:
        return self._state.tags

    @property
    def chapters(self) -> Tuple[Chapter, ...]:
        return self._state.chapters

    @property
    def selected_segment_id(self) -> Optional[str]:
        return self._state.selected_segment_id

    @property
    def selected_chapter_id(self) -> Optional[str]:
        return self._state.selected_chapter_id

    @property
    def current_time(self) -> float:
        return self._state.current_time

    @property
    def confidence_version(self) -> int:
        return self._state.confidence_version

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _commit(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)
        self.history.push(self._state)

    def _restore(self, snapshot: HistorySnapshot) -> None:
        before = {s.id for s in self._state.segments}
        self._state = snapshot
        self._prune(before - {s.id for s in snapshot.segments})

    def _prune(self, removed_ids: Iterable[str]) -> None:
        removed = frozenset(removed_ids)
        self.last_invalidated = self.suggestions.invalidate(removed) if removed else []
        if self.last_invalidated and self.on_suggestions_invalidated is not None:
            self.on_suggestions_invalidated(list(self.last_invalidated))

    def _apply_segment_edit(
        self,
        edit: SegmentEdit,
        bump_confidence: bool = False,
        chapters: Optional[Sequence[Chapter]] = None,
        **changes: Any,
    ) -> None:
        """Commit ``edit`` together with the chapter remap it implies."""
        current_chapters = tuple(chapters) if chapters is not None else self._state.chapters
        if edit.replacements or chapters is not None:
            current_chapters = chapter_ops.remap_and_filter_chapters(
                current_chapters, edit.replacements, edit.segments,
            )
            current_chapters = chapter_ops.reconcile_chapters(current_chapters, edit.segments)

        selected_chapter_id = changes.pop("selected_chapter_id", self._state.selected_chapter_id)
        if chapter_ops.find_chapter(current_chapters, selected_chapter_id or "") is None:
            selected_chapter_id = None

        version = self._state.confidence_version + (1 if bump_confidence else 0)
        self._commit(
            segments=edit.segments,
            chapters=current_chapters,
            selected_chapter_id=selected_chapter_id,
            confidence_version=version,
            **changes,
        )
        self._prune(edit.removed_ids)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_transcript(
        self,
        segments: Iterable[SegmentInput],
        speakers: Optional[Iterable[Union[Speaker, Mapping[str, Any]]]] = None,
        chapters: Optional[Iterable[Union[Chapter, Mapping[str, Any]]]] = None,
        tags: Optional[Iterable[Union[Tag, Mapping[str, Any]]]] = None,
    ) -> None:
        """Replace the whole state with an imported transcript.

        Segments may be Segment objects or dicts in camelCase, snake_case
        or WhisperX shape. Missing or duplicate segment ids are replaced
        with fresh ones. Segment ``speaker_id`` values that match neither a
        given speaker id nor name become new speakers; tag entries that are
        not known tag ids are treated as tag names and become session tags.
        Chapters whose anchors do not resolve are dropped.

        History is reset to a single entry and all suggestions are cleared.
        """
        parsed = [s if isinstance(s, Segment) else Segment.from_dict(s) for s in segments]

        speaker_list = [
            s if isinstance(s, Speaker) else Speaker.from_dict(s) for s in speakers or ()
        ]
        speaker_lookup: Dict[str, str] = {}
        for speaker in speaker_list:
            speaker_lookup.setdefault(speaker.name, speaker.id)
        for speaker in speaker_list:
            speaker_lookup[speaker.id] = speaker.id

        tag_list = [t if isinstance(t, Tag) else Tag.from_dict(t) for t in tags or ()]
        tag_lookup: Dict[str, str] = {}
        for tag in tag_list:
            tag_lookup.setdefault(tag.name, tag.id)
        for tag in tag_list:
            tag_lookup[tag.id] = tag.id

        seen_ids = set()
        loaded = []
        for segment in parsed:
            segment_id = segment.id
            if not segment_id or segment_id in seen_ids:
                segment_id = generate_id()
            seen_ids.add(segment_id)

            label = segment.speaker_id
            if label not in speaker_lookup:
                speaker = Speaker(
                    id=generate_id(),
                    name=label,
                    color=_palette_color(len(speaker_list)),
                )
                speaker_list.append(speaker)
                speaker_lookup[label] = speaker.id
            speaker_id = speaker_lookup[label]

            tag_ids = []
            for raw in segment.tag_ids:
                name = raw.strip()
                if not name:
                    continue
                if name not in tag_lookup:
                    tag = Tag(id=generate_id(), name=name, color=_palette_color(len(tag_list)))
                    tag_list.append(tag)
                    tag_lookup[name] = tag.id
                if tag_lookup[name] not in tag_ids:
                    tag_ids.append(tag_lookup[name])

            words = tuple(
                replace(w, speaker_id=speaker_lookup.get(w.speaker_id, speaker_id))
                if w.speaker_id is not None else w
                for w in segment.words
            )
            loaded.append(replace(
                segment,
                id=segment_id,
                speaker_id=speaker_id,
                tag_ids=tuple(tag_ids),
                words=words,
            ))

        loaded_segments = tuple(loaded)
        chapter_list = [
            c if isinstance(c, Chapter) else Chapter.from_dict(c) for c in chapters or ()
        ]
        loaded_chapters = chapter_ops.reconcile_chapters(chapter_list, loaded_segments)
        if len(loaded_chapters) != len(chapter_list):
            logger.warning(
                "Dropped %d chapters with unresolved or overlapping anchors on load",
                len(chapter_list) - len(loaded_chapters),
            )

        self._state = HistorySnapshot(
            segments=loaded_segments,
            speakers=tuple(speaker_list),
            tags=tuple(tag_list),
            chapters=loaded_chapters,
            selected_segment_id=loaded_segments[0].id if loaded_segments else None,
            selected_chapter_id=None,
            current_time=0.0,
            confidence_version=self._state.confidence_version + 1,
        )
        self.history.reset(self._state)
        self.suggestions.clear()
        self.last_invalidated = []
        logger.info(
            "Loaded transcript: %d segments, %d speakers, %d chapters",
            len(loaded_segments), len(speaker_list), len(loaded_chapters),
        )

    # ------------------------------------------------------------------
    # Segment edits
    # ------------------------------------------------------------------

    def update_segment_text(self, segment_id: str, text: str) -> bool:
        return self.update_segments_texts_batch([(segment_id, text)])

    def update_segments_texts_batch(self, updates: TextUpdates) -> bool:
        """Re-time and replace the text of several segments in one undo step."""
        pairs = list(updates.items()) if isinstance(updates, Mapping) else list(updates)
        edit = segment_ops.update_texts(self._state.segments, pairs)
        if edit is None:
            return False
        self._apply_segment_edit(edit, bump_confidence=True)
        return True

    def update_segment_speaker(self, segment_id: str, speaker_id: str) -> bool:
        if self.speaker_by_id(speaker_id) is None:
            return False
        edit = segment_ops.update_speaker(self._state.segments, segment_id, speaker_id)
        if edit is None:
            return False
        self._apply_segment_edit(edit)
        return True

    def confirm_segment(self, segment_id: str) -> bool:
        edit = segment_ops.confirm(self._state.segments, segment_id)
        if edit is None:
            return False
        self._apply_segment_edit(edit, bump_confidence=True)
        return True

    def toggle_segment_bookmark(self, segment_id: str) -> bool:
        edit = segment_ops.toggle_bookmark(self._state.segments, segment_id)
        if edit is None:
            return False
        self._apply_segment_edit(edit)
        return True

    def split_segment(self, segment_id: str, word_index: int) -> Optional[Tuple[str, str]]:
        """Split before ``word_index``; selects and seeks to the second half.

        Returns the ids of the two new segments, or None.
        """
        edit = segment_ops.split(self._state.segments, segment_id, word_index)
        if edit is None:
            return None
        first_id, second_id = edit.created_ids
        second = edit.segments[segment_ops.index_of(edit.segments, second_id)]
        self._apply_segment_edit(
            edit,
            selected_segment_id=second_id,
            current_time=second.start_time,
        )
        logger.debug("Split %s into %s and %s", segment_id, first_id, second_id)
        return first_id, second_id

    def merge_segments(self, id1: str, id2: str) -> Optional[str]:
        """Merge two adjacent segments and select the result. Returns its id."""
        edit = segment_ops.merge(self._state.segments, id1, id2)
        if edit is None:
            return None
        merged_id = edit.created_ids[0]
        self._apply_segment_edit(edit, selected_segment_id=merged_id)
        logger.debug("Merged %s and %s into %s", id1, id2, merged_id)
        return merged_id

    def update_segment_timing(self, segment_id: str, start_time: float, end_time: float) -> bool:
        if end_time < start_time:
            return False
        edit = segment_ops.update_timing(self._state.segments, segment_id, start_time, end_time)
        if edit is None:
            return False
        self._apply_segment_edit(edit)
        return True

    def delete_segment(self, segment_id: str) -> bool:
        edit = segment_ops.delete(self._state.segments, segment_id)
        if edit is None:
            return False

        selected = self._state.selected_segment_id
        if selected == segment_id:
            selected = None
            for segment in edit.segments:
                if segment.start_time > self._state.current_time:
                    selected = segment.id
                    break
            if selected is None and edit.segments:
                selected = edit.segments[-1].id

        self._apply_segment_edit(
            edit,
            bump_confidence=True,
            chapters=chapter_ops.drop_chapters_inside(self._state.chapters, segment_id),
            selected_segment_id=selected,
        )
        return True

    # ------------------------------------------------------------------
    # Chapters
    # ------------------------------------------------------------------

    def start_chapter(
        self,
        title: str,
        start_segment_id: str,
        tag_ids: Sequence[str] = (),
    ) -> Optional[str]:
        """Open a chapter at a segment and select it. Returns the chapter id.

        If a chapter already starts there it is selected and its id returned.
        """
        result = chapter_ops.start_chapter(
            self._state.chapters, self._state.segments, title, start_segment_id, tag_ids,
        )
        if result is None:
            return None
        updated, chapter_id = result
        if chapter_ops.find_chapter(self._state.chapters, chapter_id) is not None:
            self.select_chapter(chapter_id)
            return chapter_id
        self._commit(chapters=updated, selected_chapter_id=chapter_id)
        return chapter_id

    def update_chapter(self, chapter_id: str, **changes: Any) -> bool:
        """Change chapter fields (title, summary, notes, tag_ids, anchors, source)."""
        updated = chapter_ops.update_chapter(
            self._state.chapters, self._state.segments, chapter_id, changes,
        )
        if updated is None:
            return False
        self._commit(chapters=updated)
        return True

    def move_chapter_start(self, chapter_id: str, new_start_segment_id: str) -> bool:
        updated = chapter_ops.move_chapter_start(
            self._state.chapters, self._state.segments, chapter_id, new_start_segment_id,
        )
        if updated is None:
            return False
        self._commit(chapters=updated)
        return True

    def delete_chapter(self, chapter_id: str) -> bool:
        updated = chapter_ops.delete_chapter(self._state.chapters, self._state.segments, chapter_id)
        if updated is None:
            return False
        selected = self._state.selected_chapter_id
        self._commit(
            chapters=updated,
            selected_chapter_id=None if selected == chapter_id else selected,
        )
        return True

    def clear_chapters(self) -> bool:
        if not self._state.chapters and self._state.selected_chapter_id is None:
            return False
        self._commit(chapters=(), selected_chapter_id=None)
        return True

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        snapshot = self.history.undo()
        if snapshot is None:
            return False
        self._restore(snapshot)
        return True

    def redo(self) -> bool:
        snapshot = self.history.redo()
        if snapshot is None:
            return False
        self._restore(snapshot)
        return True

    def can_undo(self) -> bool:
        return self.history.can_undo()

    def can_redo(self) -> bool:
        return self.history.can_redo()

    # ------------------------------------------------------------------
    # Selection and playback
    # ------------------------------------------------------------------

    def select_segment(self, segment_id: Optional[str]) -> bool:
        if segment_id is not None and self.segment_by_id(segment_id) is None:
            return False
        self._state = replace(self._state, selected_segment_id=segment_id)
        self.history.replace_current(self._state)
        return True

    def select_chapter(self, chapter_id: Optional[str]) -> bool:
        if chapter_id is not None and self.chapter_by_id(chapter_id) is None:
            return False
        self._state = replace(self._state, selected_chapter_id=chapter_id)
        self.history.replace_current(self._state)
        return True

    def set_current_time(self, seconds: float) -> None:
        self._state = replace(self._state, current_time=max(0.0, float(seconds)))

    # ------------------------------------------------------------------
    # Selectors
    # ------------------------------------------------------------------

    def segment_by_id(self, segment_id: str) -> Optional[Segment]:
        index = segment_ops.index_of(self._state.segments, segment_id)
        return self._state.segments[index] if index != -1 else None

    def speaker_by_id(self, speaker_id: str) -> Optional[Speaker]:
        return next((s for s in self._state.speakers if s.id == speaker_id), None)

    def tag_by_id(self, tag_id: str) -> Optional[Tag]:
        return next((t for t in self._state.tags if t.id == tag_id), None)

    def chapter_by_id(self, chapter_id: str) -> Optional[Chapter]:
        return chapter_ops.find_chapter(self._state.chapters, chapter_id)

    def are_adjacent(self, id1: str, id2: str) -> bool:
        return segment_ops.are_adjacent(self._state.segments, id1, id2)

    def chapter_for_segment(self, segment_id: str) -> Optional[Chapter]:
        return chapter_ops.chapter_for_segment(self._state.chapters, self._state.segments, segment_id)

    def segments_in_chapter(self, chapter_id: str) -> Tuple[Segment, ...]:
        return chapter_ops.segments_in_chapter(self._state.chapters, self._state.segments, chapter_id)

    def segments_by_tag(self, tag_id: str) -> Tuple[Segment, ...]:
        return tuple(s for s in self._state.segments if tag_id in s.tag_ids)

    # ------------------------------------------------------------------
    # Speakers
    # ------------------------------------------------------------------

    def add_speaker(self, name: str, color: Optional[str] = None) -> Optional[str]:
        name = name.strip()
        if not name or any(s.name == name for s in self._state.speakers):
            return None
        speaker = Speaker(
            id=generate_id(),
            name=name,
            color=color or _palette_color(len(self._state.speakers)),
        )
        self._commit(speakers=self._state.speakers + (speaker,))
        return speaker.id

    def rename_speaker(self, speaker_id: str, name: str) -> bool:
        name = name.strip()
        speaker = self.speaker_by_id(speaker_id)
        if speaker is None or not name or speaker.name == name:
            return False
        if any(s.name == name and s.id != speaker_id for s in self._state.speakers):
            return False
        self._commit(speakers=tuple(
            replace(s, name=name) if s.id == speaker_id else s for s in self._state.speakers
        ))
        return True

    def merge_speakers(self, from_id: str, to_id: str) -> bool:
        """Move every segment and word of ``from_id`` to ``to_id`` and drop ``from_id``."""
        if from_id == to_id or self.speaker_by_id(from_id) is None or self.speaker_by_id(to_id) is None:
            return False
        segments = []
        for segment in self._state.segments:
            words = tuple(
                replace(w, speaker_id=to_id) if w.speaker_id == from_id else w
                for w in segment.words
            )
            if segment.speaker_id == from_id:
                segment = replace(segment, speaker_id=to_id, words=words)
            elif words != segment.words:
                segment = replace(segment, words=words)
            segments.append(segment)
        self._commit(
            segments=tuple(segments),
            speakers=tuple(s for s in self._state.speakers if s.id != from_id),
        )
        return True

    # ------------------------------------------------------------------
    # Tags
    # ------------------------------------------------------------------

    def add_tag(self, name: str, color: Optional[str] = None) -> Optional[str]:
        name = name.strip()
        if not name or any(t.name == name for t in self._state.tags):
            return None
        tag = Tag(id=generate_id(), name=name, color=color or _palette_color(len(self._state.tags)))
        self._commit(tags=self._state.tags + (tag,))
        return tag.id

    def remove_tag(self, tag_id: str) -> bool:
        """Delete a tag and strip it from every segment and chapter."""
        if self.tag_by_id(tag_id) is None:
            return False
        segments = tuple(
            replace(s, tag_ids=tuple(t for t in s.tag_ids if t != tag_id)) if tag_id in s.tag_ids else s
            for s in self._state.segments
        )
        chapters = tuple(
            replace(c, tag_ids=tuple(t for t in c.tag_ids if t != tag_id)) if tag_id in c.tag_ids else c
            for c in self._state.chapters
        )
        self._commit(
            segments=segments,
            chapters=chapters,
            tags=tuple(t for t in self._state.tags if t.id != tag_id),
        )
        return True

    def rename_tag(self, tag_id: str, name: str) -> bool:
        name = name.strip()
        tag = self.tag_by_id(tag_id)
        if tag is None or not name or tag.name == name:
            return False
        if any(t.name == name and t.id != tag_id for t in self._state.tags):
            return False
        self._commit(tags=tuple(replace(t, name=name) if t.id == tag_id else t for t in self._state.tags))
        return True

    def update_tag_color(self, tag_id: str, color: str) -> bool:
        tag = self.tag_by_id(tag_id)
        if tag is None or tag.color == color:
            return False
        self._commit(tags=tuple(replace(t, color=color) if t.id == tag_id else t for t in self._state.tags))
        return True

    def _set_segment_tags(self, segment_id: str, tag_ids: Tuple[str, ...]) -> None:
        self._commit(segments=tuple(
            replace(s, tag_ids=tag_ids) if s.id == segment_id else s for s in self._state.segments
        ))

    def assign_tag_to_segment(self, segment_id: str, tag_id: str) -> bool:
        segment = self.segment_by_id(segment_id)
        if segment is None or self.tag_by_id(tag_id) is None or tag_id in segment.tag_ids:
            return False
        self._set_segment_tags(segment_id, segment.tag_ids + (tag_id,))
        return True

    def remove_tag_from_segment(self, segment_id: str, tag_id: str) -> bool:
        segment = self.segment_by_id(segment_id)
        if segment is None or tag_id not in segment.tag_ids:
            return False
        self._set_segment_tags(segment_id, tuple(t for t in segment.tag_ids if t != tag_id))
        return True

    def toggle_tag_on_segment(self, segment_id: str, tag_id: str) -> bool:
        segment = self.segment_by_id(segment_id)
        if segment is None:
            return False
        if tag_id in segment.tag_ids:
            return self.remove_tag_from_segment(segment_id, tag_id)
        return self.assign_tag_to_segment(segment_id, tag_id)

    # ------------------------------------------------------------------
    # Suggestions
    # ------------------------------------------------------------------

    def _pending(self, suggestion_id: str, kind: SuggestionKind) -> Optional[Suggestion]:
        suggestion = self.suggestions.get(suggestion_id)
        if suggestion is None or suggestion.kind != kind:
            return None
        if suggestion.status != SuggestionStatus.PENDING:
            return None
        return suggestion

    def reject_suggestion(self, suggestion_id: str) -> bool:
        return self.suggestions.reject(suggestion_id)

    def _accept_speakers(self, suggestions: Sequence[SpeakerSuggestion]) -> List[str]:
        """Apply speaker suggestions in order as a single history entry.

        Suggested names match existing speakers case-insensitively; unknown
        names become new speakers. Suggestions whose segment is gone or whose
        name is empty are marked INVALID. Returns the accepted ids.
        """
        speakers = list(self._state.speakers)
        segments = list(self._state.segments)
        index_by_id = {s.id: i for i, s in enumerate(segments)}
        accepted: List[str] = []
        changed = False

        for suggestion in suggestions:
            index = index_by_id.get(suggestion.segment_id)
            name = suggestion.suggested_speaker.strip()
            if index is None or not name:
                suggestion.status = SuggestionStatus.INVALID
                continue
            key = name.casefold()
            speaker = next((s for s in speakers if s.name.casefold() == key), None)
            if speaker is None:
                speaker = Speaker(id=generate_id(), name=name, color=_palette_color(len(speakers)))
                speakers.append(speaker)
            if segments[index].speaker_id != speaker.id:
                segments[index] = replace(segments[index], speaker_id=speaker.id)
                changed = True
            suggestion.status = SuggestionStatus.ACCEPTED
            accepted.append(suggestion.id)

        if changed:
            self._commit(segments=tuple(segments), speakers=tuple(speakers))
        return accepted

    def accept_speaker_suggestion(self, suggestion_id: str) -> bool:
        """Assign the suggested speaker, creating it when the name is new.

        Speaker creation and reassignment are one undo step.
        """
        suggestion = self._pending(suggestion_id, SuggestionKind.SPEAKER)
        if not isinstance(suggestion, SpeakerSuggestion):
            return False
        return bool(self._accept_speakers([suggestion]))

    def accept_speaker_suggestions(self, suggestion_ids: Iterable[str]) -> List[str]:
        """Accept several speaker suggestions as one undo step.

        Unknown, resolved or non-speaker ids are skipped. Returns the ids
        that were accepted, in the order given.
        """
        selected: List[SpeakerSuggestion] = []
        for suggestion_id in dict.fromkeys(suggestion_ids):
            suggestion = self._pending(suggestion_id, SuggestionKind.SPEAKER)
            if isinstance(suggestion, SpeakerSuggestion):
                selected.append(suggestion)
        if not selected:
            return []
        return self._accept_speakers(selected)

    def accept_merge_suggestion(self, suggestion_id: str) -> Optional[str]:
        """Merge the suggested pair, then apply the smoothed text if it differs.

        Returns the merged segment id. The suggestion stays pending when the
        segments can no longer be merged.
        """
        suggestion = self._pending(suggestion_id, SuggestionKind.MERGE)
        if suggestion is None:
            return None

        suggestion.status = SuggestionStatus.ACCEPTED
        merged_id = self.merge_segments(suggestion.first_segment_id, suggestion.second_segment_id)
        if merged_id is None:
            suggestion.status = SuggestionStatus.PENDING
            return None
        smoothed = suggestion.smoothed_text
        if smoothed and smoothed != suggestion.merged_text:
            self.update_segment_text(merged_id, smoothed)
        return merged_id

    def accept_revision_suggestion(self, suggestion_id: str) -> bool:
        suggestion = self._pending(suggestion_id, SuggestionKind.REVISION)
        if suggestion is None:
            return False
        if self.segment_by_id(suggestion.segment_id) is None:
            suggestion.status = SuggestionStatus.INVALID
            return False
        self.update_segment_text(suggestion.segment_id, suggestion.revised_text)
        suggestion.status = SuggestionStatus.ACCEPTED
        return True

    def accept_all_revision_suggestions(self) -> List[str]:
        """Apply every pending revision through one batched text update.

        Revisions whose segment is gone are marked INVALID. Returns the
        accepted ids.
        """
        accepted: List[RevisionSuggestion] = []
        for suggestion in self.suggestions.pending(SuggestionKind.REVISION):
            if not isinstance(suggestion, RevisionSuggestion):
                continue
            if self.segment_by_id(suggestion.segment_id) is None:
                suggestion.status = SuggestionStatus.INVALID
                continue
            accepted.append(suggestion)
        if not accepted:
            return []
        self.update_segments_texts_batch([(s.segment_id, s.revised_text) for s in accepted])
        for suggestion in accepted:
            suggestion.status = SuggestionStatus.ACCEPTED
        return [s.id for s in accepted]

    def accept_all_high_confidence_merges(self) -> List[str]:
        """Accept pending ``high`` confidence merge suggestions in board order.

        Each merge is its own undo step. Before each one both segments are
        looked up again; a suggestion whose segments are gone is rejected.
        Suggestions invalidated by an earlier merge in the run are skipped.
        Returns the merged segment ids.
        """
        candidates = [
            s for s in self.suggestions.pending(SuggestionKind.MERGE)
            if isinstance(s, MergeSuggestion) and s.confidence == HIGH_CONFIDENCE
        ]
        merged_ids: List[str] = []
        for suggestion in candidates:
            if suggestion.status != SuggestionStatus.PENDING:
                continue
            if any(self.segment_by_id(i) is None for i in suggestion.referenced_ids()):
                suggestion.status = SuggestionStatus.REJECTED
                continue
            merged_id = self.accept_merge_suggestion(suggestion.id)
            if merged_id is not None:
                merged_ids.append(merged_id)
        if merged_ids:
            logger.info("Accepted %d high-confidence merges", len(merged_ids))
        return merged_ids

    def _chapter_from_suggestion(self, suggestion: ChapterSuggestion) -> Chapter:
        return Chapter(
            id=suggestion.id,
            title=suggestion.title.strip(),
            start_segment_id=suggestion.start_segment_id,
            end_segment_id=suggestion.end_segment_id,
            created_at=now_ms(),
            source=ChapterSource.AI,
            summary=suggestion.summary,
            notes=suggestion.notes,
            tag_ids=tuple(suggestion.tag_ids),
        )

    def _accept_chapters(self, accepted: Sequence[ChapterSuggestion]) -> bool:
        index_by_id = chapter_ops.build_segment_index_map(self._state.segments)
        incoming = [self._chapter_from_suggestion(s) for s in accepted]
        if any(not c.title for c in incoming):
            self.suggestions.error = "Chapter suggestions need a non-empty title."
            return False
        combined = chapter_ops.normalize_chapter_counts(
            list(self._state.chapters) + incoming, index_by_id,
        )
        if chapter_ops.has_overlapping_chapters(combined, index_by_id):
            self.suggestions.error = CHAPTER_CONFLICT_MESSAGE
            logger.info("Rejected %d chapter suggestions: overlap", len(incoming))
            return False

        self.suggestions.error = None
        self._commit(chapters=chapter_ops.sort_chapters_by_start(combined, index_by_id))
        for suggestion in accepted:
            suggestion.status = SuggestionStatus.ACCEPTED
        return True

    def accept_chapter_suggestion(self, suggestion_id: str) -> Optional[str]:
        suggestion = self._pending(suggestion_id, SuggestionKind.CHAPTER)
        if suggestion is None:
            return None
        if not self._accept_chapters([suggestion]):
            return None
        return suggestion.id

    def accept_all_chapter_suggestions(self) -> List[str]:
        """Accept every pending chapter suggestion as one undo step, or none of them."""
        pending = self.suggestions.pending(SuggestionKind.CHAPTER)
        if not pending:
            return []
        accepted = [s for s in pending if isinstance(s, ChapterSuggestion)]
        if not self._accept_chapters(accepted):
            return []
        return [s.id for s in accepted]
