"""Unit tests for the transcript records' dict conversion.

WHY: Transcripts arrive from several producers with different key
conventions. A key that is silently ignored turns into a zero timestamp
or a lost speaker label.

HOW: One test per accepted key convention, plus the camelCase shape
to_dict() writes for session documents.
"""

import pytest

from transcript_editor.core.ir import Chapter, ChapterSource, Segment, Word


class TestWordFromDict:
    def test_camel_case(self):
        word = Word.from_dict({"text": "hi", "startTime": 1, "endTime": 2, "confidenceScore": 0.5})
        assert (word.text, word.start_time, word.end_time) == ("hi", 1.0, 2.0)
        assert word.confidence_score == pytest.approx(0.5)

    def test_whisperx(self):
        word = Word.from_dict({"word": " hi ", "start": 1.5, "end": 2.0, "score": 0.9, "speaker": "S0"})
        assert word.text == "hi"
        assert word.speaker_id == "S0"
        assert word.confidence_score == pytest.approx(0.9)

    def test_missing_end_defaults_to_start(self):
        word = Word.from_dict({"text": "hi", "start_time": 3.0})
        assert word.end_time == 3.0
        assert word.confidence_score is None

    def test_to_dict_omits_unknowns(self):
        assert Word("hi", 0.0, 1.0).to_dict() == {"text": "hi", "startTime": 0.0, "endTime": 1.0}


class TestSegmentFromDict:
    def test_text_falls_back_to_words(self):
        segment = Segment.from_dict({
            "id": "s1",
            "speakerId": "spk",
            "startTime": 0,
            "endTime": 1,
            "words": [{"text": "a", "startTime": 0, "endTime": 0.5}, {"text": "b", "startTime": 0.5, "endTime": 1}],
        })
        assert segment.text == "a b"
        assert segment.speaker_id == "spk"

    def test_flags_and_tags(self):
        segment = Segment.from_dict({
            "start": 0, "end": 1, "text": "x", "tags": ["t1"], "confirmed": True, "bookmarked": True,
        })
        assert segment.id == ""
        assert segment.tag_ids == ("t1",)
        assert segment.confirmed and segment.bookmarked

    def test_round_trip_shape(self):
        data = {
            "id": "s1",
            "speakerId": "spk",
            "tagIds": ["t1"],
            "startTime": 0.0,
            "endTime": 1.0,
            "text": "a",
            "words": [{"text": "a", "startTime": 0.0, "endTime": 1.0}],
            "confirmed": False,
            "bookmarked": True,
        }
        assert Segment.from_dict(data).to_dict() == data


class TestChapterFromDict:
    def test_generates_id_and_trims_title(self):
        chapter = Chapter.from_dict({"title": " Intro ", "startSegmentId": "s1", "endSegmentId": "s2"})
        assert chapter.id
        assert chapter.title == "Intro"
        assert chapter.source == ChapterSource.MANUAL

    def test_snake_case_and_ai_source(self):
        chapter = Chapter.from_dict({
            "id": "c1",
            "title": "T",
            "start_segment_id": "s1",
            "end_segment_id": "s3",
            "created_at": 42,
            "source": "ai",
            "tag_ids": ["t1"],
        })
        assert (chapter.start_segment_id, chapter.end_segment_id) == ("s1", "s3")
        assert chapter.created_at == 42
        assert chapter.source == ChapterSource.AI
        assert chapter.tag_ids == ("t1",)

    def test_unknown_source_raises(self):
        with pytest.raises(ValueError):
            Chapter.from_dict({"title": "T", "startSegmentId": "s1", "endSegmentId": "s1", "source": "robot"})

    def test_to_dict_includes_optional_text_only_when_set(self):
        chapter = Chapter(id="c1", title="T", start_segment_id="s1", end_segment_id="s1", created_at=1)
        payload = chapter.to_dict()
        assert payload["source"] == "manual"
        assert "summary" not in payload
