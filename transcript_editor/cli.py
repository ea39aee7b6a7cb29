"""Command-line interface for the transcript editor.

WHY: Batch jobs (and AI producers without an HTTP client) need to run a
list of edits against a transcript and get a session document back
without starting the API. The same entry point also starts the API.

HOW: argparse with two subcommands:
  apply INPUT EDITS -o OUT   load a transcript or session document, run
                             a JSON list of edit operations through
                             TranscriptEditor, save a session document
  serve                      run the FastAPI app with uvicorn

Edit files are JSON arrays of objects with an ``op`` key naming an
editor method (see OPERATIONS) and that method's keyword arguments.
Integer values for segment-id arguments are taken as segment indices in
the current state, and the string "$last" refers to the id returned by
the previous operation (e.g. a new chapter or merged segment).

RULES:
- Status output goes to stderr (not stdout)
- Rejected edits are reported and skipped; --strict turns them into exit 1
- Unreadable input or edit files print an error and exit 1
- --verbose enables DEBUG logging for the editor modules
"""

from __future__ import annotations

import argparse
import inspect
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from transcript_editor import __version__
from transcript_editor.config import API_HOST, API_PORT, MAX_HISTORY
from transcript_editor.editor import TranscriptEditor
from transcript_editor.persistence import SessionDocumentError, parse_session, save_session

# op name -> TranscriptEditor method
OPERATIONS: Dict[str, str] = {
    "update_text": "update_segment_text",
    "update_texts": "update_segments_texts_batch",
    "update_speaker": "update_segment_speaker",
    "confirm": "confirm_segment",
    "toggle_bookmark": "toggle_segment_bookmark",
    "split": "split_segment",
    "merge": "merge_segments",
    "update_timing": "update_segment_timing",
    "delete": "delete_segment",
    "start_chapter": "start_chapter",
    "update_chapter": "update_chapter",
    "move_chapter_start": "move_chapter_start",
    "delete_chapter": "delete_chapter",
    "clear_chapters": "clear_chapters",
    "undo": "undo",
    "redo": "redo",
    "add_speaker": "add_speaker",
    "rename_speaker": "rename_speaker",
    "merge_speakers": "merge_speakers",
    "add_tag": "add_tag",
    "remove_tag": "remove_tag",
    "assign_tag": "assign_tag_to_segment",
    "remove_tag_from_segment": "remove_tag_from_segment",
}

SEGMENT_ARGUMENTS = ("segment_id", "id1", "id2", "start_segment_id", "new_start_segment_id")

LAST_RESULT = "$last"


def _status(msg: str) -> None:
    """Print a status message to stderr."""
    print(msg, file=sys.stderr, flush=True)


class EditScriptError(ValueError):
    """An edit operation is malformed (unknown op, bad arguments)."""


def _require_objects(path: Path, where: str, entries: Any) -> None:
    if entries is None:
        return
    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        raise SessionDocumentError("{}: '{}' must be a list of objects".format(path, where))


def load_editor(path: Path, max_history: int = MAX_HISTORY) -> TranscriptEditor:
    """Build an editor from a session document or a plain transcript file.

    A document with a ``version`` key is treated as a session document.
    Otherwise the file must be a list of segments or an object with a
    ``segments`` list (optionally ``speakers``, ``chapters``, ``tags``).
    Segments, their words and the label lists must be JSON objects.

    Raises:
        SessionDocumentError: If the file has neither shape or an entry is
            not an object.
    """
    data = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(data, dict) and "version" in data:
        return parse_session(data, max_history=max_history)

    if isinstance(data, list):
        segments, extras = data, {}
    elif isinstance(data, dict) and isinstance(data.get("segments"), list):
        segments = data["segments"]
        extras = {key: data.get(key) for key in ("speakers", "chapters", "tags")}
    else:
        raise SessionDocumentError(
            "{} must contain a list of segments or an object with 'segments'".format(path)
        )

    _require_objects(path, "segments", segments)
    for index, segment in enumerate(segments):
        _require_objects(path, "segments/{}/words".format(index), segment.get("words"))
    for key, entries in extras.items():
        _require_objects(path, key, entries)

    editor = TranscriptEditor(max_history=max_history)
    editor.load_transcript(segments, **extras)
    return editor


def _resolve_arguments(
    editor: TranscriptEditor,
    arguments: Dict[str, Any],
    last_result: Optional[str],
) -> Dict[str, Any]:
    resolved = {}
    for key, value in arguments.items():
        if value == LAST_RESULT:
            if last_result is None:
                raise EditScriptError("'$last' used before any operation returned an id")
            value = last_result
        elif key in SEGMENT_ARGUMENTS and isinstance(value, int) and not isinstance(value, bool):
            segments = editor.segments
            if not -len(segments) <= value < len(segments):
                raise EditScriptError("Segment index {} out of range".format(value))
            value = segments[value].id
        resolved[key] = value
    return resolved


def apply_edits(editor: TranscriptEditor, edits: List[Dict[str, Any]]) -> List[int]:
    """Run ``edits`` in order. Returns the positions of rejected edits.

    Raises:
        EditScriptError: For an unknown op or arguments the method does not take.
    """
    rejected: List[int] = []
    last_result: Optional[str] = None

    for position, edit in enumerate(edits):
        if not isinstance(edit, dict) or "op" not in edit:
            raise EditScriptError("Edit #{} is not an object with an 'op' key".format(position))
        arguments = dict(edit)
        op = arguments.pop("op")
        method_name = OPERATIONS.get(op)
        if method_name is None:
            raise EditScriptError(
                "Edit #{}: unknown op '{}'. Known ops: {}".format(
                    position, op, ", ".join(sorted(OPERATIONS)),
                )
            )
        arguments = _resolve_arguments(editor, arguments, last_result)
        if op == "update_texts":
            updates = arguments.get("updates", [])
            if not isinstance(updates, list) or not all(
                isinstance(item, list) and len(item) == 2 for item in updates
            ):
                raise EditScriptError(
                    "Edit #{} (update_texts): 'updates' must be a list of [segment, text] pairs".format(position)
                )
            arguments = {"updates": [
                (_resolve_arguments(editor, {"segment_id": item[0]}, last_result)["segment_id"], item[1])
                for item in updates
            ]}

        method = getattr(editor, method_name)
        try:
            inspect.signature(method).bind(**arguments)
        except TypeError as e:
            raise EditScriptError("Edit #{} ({}): {}".format(position, op, e)) from e
        result = method(**arguments)

        if not result:
            rejected.append(position)
            _status("  Edit #{} ({}) rejected".format(position, op))
            continue
        if isinstance(result, str):
            last_result = result
        elif isinstance(result, tuple):
            last_result = result[-1]
    return rejected


def _run_apply(args: argparse.Namespace) -> int:
    input_path = Path(args.input)
    edits_path = Path(args.edits)
    for path in (input_path, edits_path):
        if not path.is_file():
            print("Error: File not found: {}".format(path), file=sys.stderr)
            return 1

    try:
        editor = load_editor(input_path, max_history=args.max_history)
        edits = json.loads(edits_path.read_text(encoding="utf-8"))
        if not isinstance(edits, list):
            raise EditScriptError("{} must contain a JSON array of edits".format(edits_path))
        _status("Loaded {} segments from {}".format(len(editor.segments), input_path.name))
        rejected = apply_edits(editor, edits)
    except (KeyError, ValueError) as e:
        print("Error: {}".format(e), file=sys.stderr)
        return 1

    output = save_session(args.output, editor)
    _status("Applied {} of {} edits; saved {} segments and {} chapters to {}".format(
        len(edits) - len(rejected), len(edits), len(editor.segments), len(editor.chapters), output,
    ))
    if rejected and args.strict:
        return 1
    return 0


def _run_serve(args: argparse.Namespace) -> int:
    from transcript_editor.server.app import run_api
    run_api(host=args.host, port=args.port)
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the CLI.

    RULES:
    - Subcommands: apply, serve
    - Global: --verbose, --version
    """
    parser = argparse.ArgumentParser(
        prog="transcript-editor",
        description="Edit time-aligned transcripts: apply edit scripts or serve the editing API.",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging.",
    )
    parser.add_argument("--version", action="version", version="%(prog)s " + __version__)

    subparsers = parser.add_subparsers(dest="command", required=True)

    apply_parser = subparsers.add_parser(
        "apply",
        help="Run a JSON edit script against a transcript and save a session document.",
    )
    apply_parser.add_argument("input", help="Transcript JSON or session document.")
    apply_parser.add_argument("edits", help="JSON array of edit operations.")
    apply_parser.add_argument(
        "--output", "-o",
        required=True,
        help="Path of the session document to write.",
    )
    apply_parser.add_argument(
        "--max-history",
        type=int,
        default=MAX_HISTORY,
        help="Undo depth while applying edits (default: %(default)s).",
    )
    apply_parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 if any edit was rejected.",
    )
    apply_parser.set_defaults(handler=_run_apply)

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP editing API.")
    serve_parser.add_argument("--host", default=API_HOST, help="Bind address (default: %(default)s).")
    serve_parser.add_argument("--port", type=int, default=API_PORT, help="Port (default: %(default)s).")
    serve_parser.set_defaults(handler=_run_serve)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Entry point for the CLI.

    RULES:
    - argv=None means use sys.argv (normal CLI invocation)
    - Explicit argv is for testing
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    exit_code = args.handler(args)
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
