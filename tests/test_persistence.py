"""Tests for session documents (dump, validate, save, load).

WHY: A session document is the only thing that survives a restart. A
document that loads with a shifted chapter anchor or a lost speaker is
worse than one that fails loudly, so both paths are tested.

HOW: Documents are produced by dump_session from the ``editor`` fixture
and written under tmp_path. Invalid documents are built by editing the
dumped dict.

RULES:
- All file I/O uses tmp_path
- Validation failures surface as SessionDocumentError
"""

import json

import pytest

from transcript_editor.config import SESSION_FORMAT_VERSION
from transcript_editor.persistence import (
    SessionDocumentError,
    dump_session,
    load_session,
    parse_session,
    save_session,
)


class TestDumpSession:
    def test_document_shape(self, editor):
        document = dump_session(editor)
        assert document["version"] == SESSION_FORMAT_VERSION
        assert [s["id"] for s in document["segments"]] == ["s1", "s2", "s3", "s4", "s5"]
        assert document["segments"][0]["speakerId"] == "spk-a"
        assert document["segments"][0]["words"][0] == {
            "text": "hello",
            "startTime": 0.0,
            "endTime": 0.5,
            "speakerId": "spk-a",
            "confidenceScore": 0.8,
        }
        assert document["selectedSegmentId"] == "s1"
        assert document["chapters"] == []

    def test_chapter_fields(self, editor):
        chapter_id = editor.start_chapter("Intro", "s1")
        editor.update_chapter(chapter_id, summary="hi")
        chapter = dump_session(editor)["chapters"][0]
        assert chapter["startSegmentId"] == "s1"
        assert chapter["endSegmentId"] == "s5"
        assert chapter["segmentCount"] == 5
        assert chapter["source"] == "manual"
        assert chapter["summary"] == "hi"
        assert "notes" not in chapter

    def test_document_is_json_serializable(self, editor):
        editor.start_chapter("Intro", "s1")
        json.dumps(dump_session(editor))


class TestParseSession:
    def test_restores_state(self, editor):
        chapter_id = editor.start_chapter("Intro", "s2")
        editor.split_segment("s4", 1)
        editor.set_current_time(3.5)
        document = dump_session(editor)

        restored = parse_session(document)

        assert [s.id for s in restored.segments] == [s.id for s in editor.segments]
        assert restored.speakers == editor.speakers
        assert restored.chapters == editor.chapters
        assert restored.selected_segment_id == editor.selected_segment_id
        assert restored.selected_chapter_id == chapter_id
        assert restored.current_time == pytest.approx(3.5)
        assert not restored.can_undo()

    def test_missing_required_field(self, editor):
        document = dump_session(editor)
        del document["segments"][1]["words"]
        with pytest.raises(SessionDocumentError, match="segments/1"):
            parse_session(document)

    def test_empty_chapter_title_rejected(self, editor):
        editor.start_chapter("Intro", "s1")
        document = dump_session(editor)
        document["chapters"][0]["title"] = ""
        with pytest.raises(SessionDocumentError):
            parse_session(document)

    def test_newer_version_rejected(self, editor):
        document = dump_session(editor)
        document["version"] = SESSION_FORMAT_VERSION + 1
        with pytest.raises(SessionDocumentError, match="newer"):
            parse_session(document)

    def test_stale_selection_is_ignored(self, editor):
        document = dump_session(editor)
        document["selectedSegmentId"] = "gone"
        restored = parse_session(document)
        assert restored.selected_segment_id == "s1"

    def test_is_a_value_error(self):
        with pytest.raises(ValueError):
            parse_session({"segments": []})


class TestSaveAndLoad:
    def test_round_trip_through_file(self, editor, tmp_path):
        editor.start_chapter("Intro", "s1")
        path = save_session(tmp_path / "nested" / "session.json", editor)
        assert path.is_file()
        assert not path.with_suffix(".json.tmp").exists()

        restored = load_session(path)
        assert restored.chapters == editor.chapters
        assert [s.text for s in restored.segments] == [s.text for s in editor.segments]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(SessionDocumentError, match="not valid JSON"):
            load_session(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_session(tmp_path / "absent.json")
