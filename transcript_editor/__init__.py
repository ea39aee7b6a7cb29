"""Transcript Editor: segment and chapter editing engine for timed transcripts.

WHY: A transcript from speech recognition is a list of speaker turns made
of timed words. Editors need to retype, split, merge and delete those
turns and group them into chapters without losing word timing or
leaving chapter boundaries pointing at segments that no longer exist.

HOW: Three layers. ``core`` holds immutable records and pure functions
(word re-timing, segment operations, chapter ranges, undo history).
``editor.TranscriptEditor`` is the single mutable facade over them.
``persistence``, ``server`` and ``cli`` are outer surfaces that load,
save and drive an editor.

RULES:
- All edits go through TranscriptEditor; core functions never mutate
- Rejected edits are silent no-ops in the core and editor
- Outer layers raise or return HTTP errors for bad input
"""

__version__ = "0.1.0"
