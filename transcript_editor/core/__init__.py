"""Editing core: immutable records, word alignment, segment and chapter operations.

WHY: The core holds the pieces that must stay correct under every edit:
word timing after retyping, chapter anchors after split/merge/delete,
and the snapshot history. Nothing here does I/O.

HOW: ir.py defines the frozen records, aligner.py re-times edited text,
segments.py and chapters.py are pure functions over tuples, history.py
is the bounded undo stack, suggestions.py tracks AI proposals.

RULES:
- Core functions never raise for bad ids or indices; they return None
- Records are frozen; every change builds a new tuple
- No locks here; callers serialize access
"""
