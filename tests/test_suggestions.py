"""Tests for the suggestion board and accepting suggestions via the editor.

WHY: Suggestions are keyed by segment ids that can vanish while the
user keeps editing. A stale suggestion applied later would edit the
wrong text, so invalidation and the accept paths are checked together.

HOW: TestSuggestionBoard exercises the board on its own. The remaining
classes use the ``editor`` fixture (s1..s5, speakers spk-a/spk-b) and
accept suggestions through TranscriptEditor.

RULES:
- Only pending suggestions change status
- Accepting goes through the normal editor calls (one undo step each)
"""

from unittest.mock import MagicMock

from transcript_editor.core.ir import ChapterSource
from transcript_editor.core.suggestions import (
    ChapterSuggestion,
    MergeSuggestion,
    RevisionSuggestion,
    SpeakerSuggestion,
    SuggestionBoard,
    SuggestionKind,
    SuggestionStatus,
)
from transcript_editor.editor import CHAPTER_CONFLICT_MESSAGE, TranscriptEditor

from conftest import SPEAKER_A, SPEAKER_B, sample_segments


class TestSuggestionBoard:
    def test_add_keeps_insertion_order(self):
        board = SuggestionBoard()
        first = SpeakerSuggestion(segment_id="s1", suggested_speaker="Anna")
        second = MergeSuggestion(first_segment_id="s1", second_segment_id="s2")
        board.extend([first, second])
        assert [s.id for s in board.all()] == [first.id, second.id]
        assert board.all(SuggestionKind.MERGE) == [second]
        assert len(board) == 2

    def test_reject_only_pending(self):
        board = SuggestionBoard()
        suggestion = SpeakerSuggestion(segment_id="s1", suggested_speaker="Anna")
        board.add(suggestion)
        assert board.reject(suggestion.id)
        assert suggestion.status == SuggestionStatus.REJECTED
        assert not board.reject(suggestion.id)
        assert not board.reject("unknown")

    def test_invalidate_marks_referencing_pending(self):
        board = SuggestionBoard()
        hit = MergeSuggestion(first_segment_id="s1", second_segment_id="s2")
        miss = RevisionSuggestion(segment_id="s4", original_text="a", revised_text="b")
        resolved = SpeakerSuggestion(segment_id="s2", suggested_speaker="Bo")
        resolved.status = SuggestionStatus.ACCEPTED
        board.extend([hit, miss, resolved])

        invalidated = board.invalidate({"s2"})

        assert invalidated == [hit]
        assert hit.status == SuggestionStatus.INVALID
        assert miss.status == SuggestionStatus.PENDING
        assert resolved.status == SuggestionStatus.ACCEPTED

    def test_invalidate_nothing_removed(self):
        board = SuggestionBoard()
        board.add(SpeakerSuggestion(segment_id="s1", suggested_speaker="Anna"))
        assert board.invalidate([]) == []

    def test_discard_pending_keeps_resolved(self):
        board = SuggestionBoard()
        pending = ChapterSuggestion(title="A", start_segment_id="s1", end_segment_id="s2")
        done = ChapterSuggestion(title="B", start_segment_id="s3", end_segment_id="s5")
        board.extend([pending, done])
        board.set_status(done.id, SuggestionStatus.ACCEPTED)
        assert board.discard_pending(SuggestionKind.CHAPTER) == 1
        assert board.all() == [done]

    def test_reject_all_and_clear(self):
        board = SuggestionBoard()
        board.extend([
            SpeakerSuggestion(segment_id="s1", suggested_speaker="Anna"),
            SpeakerSuggestion(segment_id="s2", suggested_speaker="Bo"),
        ])
        board.error = "boom"
        assert board.reject_all(SuggestionKind.SPEAKER) == 2
        assert board.pending() == []
        board.clear()
        assert len(board) == 0
        assert board.error is None


class TestInvalidationOnEdit:
    """Edits that remove segment ids invalidate suggestions pointing at them."""

    def test_split_invalidates_and_calls_back(self):
        callback = MagicMock()
        editor = TranscriptEditor(on_suggestions_invalidated=callback)
        editor.load_transcript(sample_segments(), speakers=[SPEAKER_A, SPEAKER_B])
        stale = RevisionSuggestion(segment_id="s2", original_text="how are you", revised_text="hi")
        editor.suggestions.add(stale)

        editor.split_segment("s2", 1)

        assert stale.status == SuggestionStatus.INVALID
        callback.assert_called_once_with([stale])
        assert editor.last_invalidated == [stale]

    def test_edit_without_removal_does_not_call_back(self):
        callback = MagicMock()
        editor = TranscriptEditor(on_suggestions_invalidated=callback)
        editor.load_transcript(sample_segments(), speakers=[SPEAKER_A, SPEAKER_B])
        editor.suggestions.add(RevisionSuggestion(segment_id="s2", original_text="", revised_text="x"))
        editor.update_segment_text("s2", "how are they")
        callback.assert_not_called()

    def test_undo_of_merge_invalidates_suggestions_on_merged_id(self, editor):
        merged_id = editor.merge_segments("s1", "s2")
        revision = RevisionSuggestion(segment_id=merged_id, original_text="", revised_text="x")
        editor.suggestions.add(revision)
        editor.undo()
        assert revision.status == SuggestionStatus.INVALID

    def test_load_clears_suggestions(self, editor):
        editor.suggestions.add(SpeakerSuggestion(segment_id="s1", suggested_speaker="X"))
        editor.load_transcript(sample_segments(), speakers=[SPEAKER_A, SPEAKER_B])
        assert len(editor.suggestions) == 0


class TestAcceptSpeaker:
    def test_existing_speaker(self, editor):
        suggestion = SpeakerSuggestion(segment_id="s1", suggested_speaker="Bo")
        editor.suggestions.add(suggestion)
        assert editor.accept_speaker_suggestion(suggestion.id)
        assert editor.segment_by_id("s1").speaker_id == "spk-b"
        assert suggestion.status == SuggestionStatus.ACCEPTED

    def test_new_speaker_is_created_in_same_step(self, editor):
        suggestion = SpeakerSuggestion(segment_id="s1", suggested_speaker="Cleo")
        editor.suggestions.add(suggestion)
        entries_before = len(editor.history)

        assert editor.accept_speaker_suggestion(suggestion.id)

        cleo = next(s for s in editor.speakers if s.name == "Cleo")
        assert editor.segment_by_id("s1").speaker_id == cleo.id
        assert len(editor.history) == entries_before + 1
        editor.undo()
        assert all(s.name != "Cleo" for s in editor.speakers)

    def test_missing_segment_marks_invalid(self, editor):
        suggestion = SpeakerSuggestion(segment_id="gone", suggested_speaker="Bo")
        editor.suggestions.add(suggestion)
        assert not editor.accept_speaker_suggestion(suggestion.id)
        assert suggestion.status == SuggestionStatus.INVALID

    def test_wrong_kind_or_resolved(self, editor):
        suggestion = SpeakerSuggestion(segment_id="s1", suggested_speaker="Bo")
        editor.suggestions.add(suggestion)
        assert editor.accept_revision_suggestion(suggestion.id) is False
        editor.reject_suggestion(suggestion.id)
        assert not editor.accept_speaker_suggestion(suggestion.id)

    def test_name_match_ignores_case(self, editor):
        suggestion = SpeakerSuggestion(segment_id="s1", suggested_speaker="bo")
        editor.suggestions.add(suggestion)
        assert editor.accept_speaker_suggestion(suggestion.id)
        assert editor.segment_by_id("s1").speaker_id == "spk-b"
        assert [s.name for s in editor.speakers] == ["Anna", "Bo"]


class TestAcceptManySpeakers:
    def test_one_undo_step_with_shared_new_speaker(self, editor):
        first = SpeakerSuggestion(segment_id="s1", suggested_speaker="Cleo")
        second = SpeakerSuggestion(segment_id="s3", suggested_speaker="cleo")
        third = SpeakerSuggestion(segment_id="s2", suggested_speaker="Anna")
        editor.suggestions.extend([first, second, third])
        entries_before = len(editor.history)

        accepted = editor.accept_speaker_suggestions([first.id, second.id, third.id])

        assert accepted == [first.id, second.id, third.id]
        assert [s.name for s in editor.speakers] == ["Anna", "Bo", "Cleo"]
        cleo = editor.speakers[2]
        assert editor.segment_by_id("s1").speaker_id == cleo.id
        assert editor.segment_by_id("s3").speaker_id == cleo.id
        assert editor.segment_by_id("s2").speaker_id == "spk-a"
        assert len(editor.history) == entries_before + 1

        editor.undo()
        assert [s.name for s in editor.speakers] == ["Anna", "Bo"]
        assert editor.segment_by_id("s1").speaker_id == "spk-a"
        assert editor.segment_by_id("s2").speaker_id == "spk-b"

    def test_skips_resolved_unknown_and_stale(self, editor):
        good = SpeakerSuggestion(segment_id="s1", suggested_speaker="Bo")
        rejected = SpeakerSuggestion(segment_id="s3", suggested_speaker="Bo")
        stale = SpeakerSuggestion(segment_id="gone", suggested_speaker="Bo")
        other_kind = RevisionSuggestion(segment_id="s5", original_text="bye", revised_text="bye now")
        editor.suggestions.extend([good, rejected, stale, other_kind])
        editor.reject_suggestion(rejected.id)

        accepted = editor.accept_speaker_suggestions(
            [good.id, rejected.id, stale.id, other_kind.id, "unknown", good.id],
        )

        assert accepted == [good.id]
        assert stale.status == SuggestionStatus.INVALID
        assert rejected.status == SuggestionStatus.REJECTED
        assert other_kind.status == SuggestionStatus.PENDING
        assert editor.segment_by_id("s3").speaker_id == "spk-a"

    def test_nothing_to_accept_keeps_state(self, editor):
        before = editor.state
        assert editor.accept_speaker_suggestions(["unknown"]) == []
        assert editor.state is before


class TestAcceptMerge:
    def test_merge_without_smoothing(self, editor):
        suggestion = MergeSuggestion(
            first_segment_id="s1", second_segment_id="s2",
            merged_text="hello there how are you",
        )
        editor.suggestions.add(suggestion)
        merged_id = editor.accept_merge_suggestion(suggestion.id)
        assert merged_id is not None
        assert editor.segment_by_id(merged_id).text == "hello there how are you"
        assert suggestion.status == SuggestionStatus.ACCEPTED

    def test_smoothed_text_is_applied(self, editor):
        suggestion = MergeSuggestion(
            first_segment_id="s1", second_segment_id="s2",
            merged_text="hello there how are you",
            smoothed_text="hello there, how are you",
        )
        editor.suggestions.add(suggestion)
        merged_id = editor.accept_merge_suggestion(suggestion.id)
        assert editor.segment_by_id(merged_id).text == "hello there, how are you"
        # the merge itself invalidated nothing it was accepting
        assert suggestion.status == SuggestionStatus.ACCEPTED

    def test_other_suggestions_on_merged_pair_are_invalidated(self, editor):
        accepted = MergeSuggestion(first_segment_id="s1", second_segment_id="s2")
        competing = MergeSuggestion(first_segment_id="s2", second_segment_id="s3")
        editor.suggestions.extend([accepted, competing])
        editor.accept_merge_suggestion(accepted.id)
        assert competing.status == SuggestionStatus.INVALID
        assert editor.accept_merge_suggestion(competing.id) is None

    def test_non_adjacent_stays_pending(self, editor):
        suggestion = MergeSuggestion(first_segment_id="s1", second_segment_id="s3")
        editor.suggestions.add(suggestion)
        assert editor.accept_merge_suggestion(suggestion.id) is None
        assert suggestion.status == SuggestionStatus.PENDING


class TestAcceptRevision:
    def test_applies_text(self, editor):
        suggestion = RevisionSuggestion(
            segment_id="s3", original_text="fine thanks", revised_text="fine, thanks",
        )
        editor.suggestions.add(suggestion)
        assert editor.accept_revision_suggestion(suggestion.id)
        assert editor.segment_by_id("s3").text == "fine, thanks"
        assert suggestion.status == SuggestionStatus.ACCEPTED

    def test_deleted_segment_marks_invalid(self, editor):
        suggestion = RevisionSuggestion(segment_id="s3", original_text="", revised_text="x")
        editor.suggestions.add(suggestion)
        editor.delete_segment("s3")
        assert suggestion.status == SuggestionStatus.INVALID
        assert not editor.accept_revision_suggestion(suggestion.id)


class TestAcceptAllRevisions:
    def test_batch_is_one_undo_step(self, editor):
        first = RevisionSuggestion(segment_id="s1", original_text="hello there", revised_text="hello, there")
        second = RevisionSuggestion(segment_id="s3", original_text="fine thanks", revised_text="fine, thanks")
        editor.suggestions.extend([first, second])
        entries_before = len(editor.history)

        assert editor.accept_all_revision_suggestions() == [first.id, second.id]

        assert editor.segment_by_id("s1").text == "hello, there"
        assert editor.segment_by_id("s3").text == "fine, thanks"
        assert first.status == second.status == SuggestionStatus.ACCEPTED
        assert len(editor.history) == entries_before + 1
        editor.undo()
        assert editor.segment_by_id("s1").text == "hello there"
        assert editor.segment_by_id("s3").text == "fine thanks"

    def test_stale_and_resolved_are_left_out(self, editor):
        live = RevisionSuggestion(segment_id="s5", original_text="bye", revised_text="bye now")
        stale = RevisionSuggestion(segment_id="gone", original_text="", revised_text="x")
        rejected = RevisionSuggestion(segment_id="s1", original_text="", revised_text="hi")
        editor.suggestions.extend([live, stale, rejected])
        editor.reject_suggestion(rejected.id)

        assert editor.accept_all_revision_suggestions() == [live.id]

        assert stale.status == SuggestionStatus.INVALID
        assert rejected.status == SuggestionStatus.REJECTED
        assert editor.segment_by_id("s1").text == "hello there"

    def test_nothing_pending(self, editor):
        before = editor.state
        assert editor.accept_all_revision_suggestions() == []
        assert editor.state is before


class TestAcceptHighConfidenceMerges:
    def test_merges_in_order_and_skips_invalidated(self, editor):
        first = MergeSuggestion(first_segment_id="s1", second_segment_id="s2", confidence="high")
        medium = MergeSuggestion(first_segment_id="s3", second_segment_id="s4")
        overlapping = MergeSuggestion(first_segment_id="s2", second_segment_id="s3", confidence="high")
        last = MergeSuggestion(first_segment_id="s4", second_segment_id="s5", confidence="high")
        editor.suggestions.extend([first, medium, overlapping, last])
        entries_before = len(editor.history)

        merged_ids = editor.accept_all_high_confidence_merges()

        assert len(merged_ids) == 2
        assert [s.id for s in editor.segments] == [merged_ids[0], "s3", merged_ids[1]]
        assert first.status == last.status == SuggestionStatus.ACCEPTED
        assert overlapping.status == SuggestionStatus.INVALID
        assert medium.status == SuggestionStatus.INVALID
        assert len(editor.history) == entries_before + 2

    def test_medium_confidence_is_left_pending(self, editor):
        medium = MergeSuggestion(first_segment_id="s1", second_segment_id="s2")
        editor.suggestions.add(medium)
        assert editor.accept_all_high_confidence_merges() == []
        assert medium.status == SuggestionStatus.PENDING
        assert len(editor.segments) == 5

    def test_missing_segment_is_rejected(self, editor):
        stale = MergeSuggestion(first_segment_id="s1", second_segment_id="gone", confidence="high")
        editor.suggestions.add(stale)
        before = editor.state
        assert editor.accept_all_high_confidence_merges() == []
        assert stale.status == SuggestionStatus.REJECTED
        assert editor.state is before


class TestAcceptChapters:
    def test_accept_single(self, editor):
        suggestion = ChapterSuggestion(title=" Intro ", start_segment_id="s1", end_segment_id="s2")
        editor.suggestions.add(suggestion)
        chapter_id = editor.accept_chapter_suggestion(suggestion.id)
        chapter = editor.chapter_by_id(chapter_id)
        assert chapter.title == "Intro"
        assert chapter.source == ChapterSource.AI
        assert chapter.segment_count == 2
        assert suggestion.status == SuggestionStatus.ACCEPTED

    def test_conflict_sets_error_and_keeps_state(self, editor):
        editor.start_chapter("Manual", "s1")
        before = editor.state
        suggestion = ChapterSuggestion(title="AI", start_segment_id="s2", end_segment_id="s3")
        editor.suggestions.add(suggestion)

        assert editor.accept_chapter_suggestion(suggestion.id) is None

        assert editor.suggestions.error == CHAPTER_CONFLICT_MESSAGE
        assert suggestion.status == SuggestionStatus.PENDING
        assert editor.state is before

    def test_accept_all_is_one_undo_step(self, editor):
        suggestions = [
            ChapterSuggestion(title="One", start_segment_id="s1", end_segment_id="s2"),
            ChapterSuggestion(title="Two", start_segment_id="s3", end_segment_id="s5"),
        ]
        editor.suggestions.extend(suggestions)

        accepted = editor.accept_all_chapter_suggestions()

        assert accepted == [s.id for s in suggestions]
        assert [c.title for c in editor.chapters] == ["One", "Two"]
        editor.undo()
        assert editor.chapters == ()

    def test_accept_all_conflicting_accepts_none(self, editor):
        editor.suggestions.extend([
            ChapterSuggestion(title="One", start_segment_id="s1", end_segment_id="s3"),
            ChapterSuggestion(title="Two", start_segment_id="s3", end_segment_id="s5"),
        ])
        assert editor.accept_all_chapter_suggestions() == []
        assert editor.chapters == ()
        assert editor.suggestions.error == CHAPTER_CONFLICT_MESSAGE

    def test_success_clears_previous_error(self, editor):
        editor.suggestions.error = CHAPTER_CONFLICT_MESSAGE
        suggestion = ChapterSuggestion(title="One", start_segment_id="s1", end_segment_id="s5")
        editor.suggestions.add(suggestion)
        editor.accept_chapter_suggestion(suggestion.id)
        assert editor.suggestions.error is None

    def test_nothing_pending(self, editor):
        assert editor.accept_all_chapter_suggestions() == []
