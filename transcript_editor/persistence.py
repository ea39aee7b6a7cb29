"""Session documents: save and restore an editor as versioned JSON.

WHY: An editing session (segments, speakers, tags, chapters and the
selection) has to survive a restart of the CLI or API process. The
document is the only thing written to disk, so it is validated on the
way in before any of it reaches the editor.

HOW: dump_session() turns the live state into camelCase dicts via the
records' to_dict(). parse_session() validates a dict against
session_schema.json with jsonschema, then feeds it through
TranscriptEditor.load_transcript() so imported documents get the same
normalization as any other transcript. Files are written to a sibling
``.tmp`` file and moved into place.

RULES:
- Documents carry ``version``; newer versions than this code writes are rejected
- Invalid JSON or schema violations raise SessionDocumentError
- The restored editor has a single history entry (undo does not cross a reload)
- Saved selection and playback position are restored when they still resolve
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import jsonschema

from transcript_editor.config import MAX_HISTORY, SESSION_FORMAT_VERSION
from transcript_editor.editor import TranscriptEditor

logger = logging.getLogger(__name__)

_SCHEMA_PATH = Path(__file__).resolve().parent / "session_schema.json"

_CACHED_SCHEMA: Optional[Dict[str, Any]] = None


def _get_schema() -> Dict[str, Any]:
    global _CACHED_SCHEMA
    if _CACHED_SCHEMA is None:
        with open(_SCHEMA_PATH, encoding="utf-8") as f:
            _CACHED_SCHEMA = json.load(f)
    return _CACHED_SCHEMA


class SessionDocumentError(ValueError):
    """A session document could not be read or failed validation."""


def dump_session(editor: TranscriptEditor) -> Dict[str, Any]:
    state = editor.state
    return {
        "version": SESSION_FORMAT_VERSION,
        "segments": [s.to_dict() for s in state.segments],
        "speakers": [s.to_dict() for s in state.speakers],
        "tags": [t.to_dict() for t in state.tags],
        "chapters": [c.to_dict() for c in state.chapters],
        "selectedSegmentId": state.selected_segment_id,
        "selectedChapterId": state.selected_chapter_id,
        "currentTime": state.current_time,
    }


def parse_session(
    document: Mapping[str, Any],
    max_history: int = MAX_HISTORY,
) -> TranscriptEditor:
    """Validate ``document`` and build an editor from it.

    Raises:
        SessionDocumentError: If the document does not match the schema or
            was written by a newer format version.
    """
    try:
        jsonschema.validate(instance=document, schema=_get_schema())
    except jsonschema.ValidationError as e:
        location = "/".join(str(p) for p in e.absolute_path) or "<root>"
        raise SessionDocumentError(
            "Invalid session document at {}: {}".format(location, e.message)
        ) from e

    version = document["version"]
    if version > SESSION_FORMAT_VERSION:
        raise SessionDocumentError(
            "Session document version {} is newer than supported version {}".format(
                version, SESSION_FORMAT_VERSION,
            )
        )

    editor = TranscriptEditor(max_history=max_history)
    editor.load_transcript(
        document["segments"],
        speakers=document.get("speakers"),
        chapters=document.get("chapters"),
        tags=document.get("tags"),
    )

    editor.set_current_time(document.get("currentTime", 0.0))
    selected_segment = document.get("selectedSegmentId")
    if selected_segment is not None:
        editor.select_segment(selected_segment)
    selected_chapter = document.get("selectedChapterId")
    if selected_chapter is not None:
        editor.select_chapter(selected_chapter)
    return editor


def save_session(path: Union[str, Path], editor: TranscriptEditor) -> Path:
    """Write the editor's state to ``path`` atomically and return the path."""
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_suffix(target.suffix + ".tmp")
    tmp.write_text(
        json.dumps(dump_session(editor), ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
    tmp.replace(target)
    logger.info("Saved session to %s (%d segments)", target, len(editor.segments))
    return target


def load_session(path: Union[str, Path], max_history: int = MAX_HISTORY) -> TranscriptEditor:
    """Read and validate a session document from ``path``.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        SessionDocumentError: If the file is not valid JSON or fails validation.
    """
    source = Path(path)
    try:
        document = json.loads(source.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise SessionDocumentError("{} is not valid JSON: {}".format(source, e)) from e
    editor = parse_session(document, max_history=max_history)
    logger.info("Loaded session from %s", source)
    return editor
