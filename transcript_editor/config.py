"""Configuration constants, palette, and .env loading.

WHY: Centralizes the configurable values (history depth, session limits,
server bind address, speaker palette) so they are easy to find, update,
and override without touching editing logic.

HOW: python-dotenv loads the .env file on import. Constants are plain
module-level values read from the environment with defaults.
load_int_setting() gives a clear error for malformed integers.

RULES:
- MAX_HISTORY bounds the undo stack (default 100 snapshots)
- SESSION_TTL_SECONDS / MAX_SESSIONS bound the HTTP session store
- SPEAKER_COLORS is cycled when speakers/tags are created without a color
- All defaults can be overridden via TRANSCRIPT_EDITOR_* environment variables
"""

from __future__ import annotations

import os

from dotenv import load_dotenv

# Load .env from the working directory
load_dotenv()


def load_int_setting(name: str, default: int) -> int:
    """Read an integer environment variable.

    RULES:
    - Missing or blank values return ``default``
    - Raises ValueError naming the variable if the value is not an integer
    """
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(
            "{} must be an integer, got {!r}. "
            "Fix the value in the environment or the .env file.".format(name, raw)
        ) from None


# ---------------------------------------------------------------------------
# Editing
# ---------------------------------------------------------------------------

MAX_HISTORY = load_int_setting("TRANSCRIPT_EDITOR_MAX_HISTORY", 100)

SPEAKER_COLORS: list[str] = [
    "hsl(0, 90%, 50%)",
    "hsl(30, 90%, 50%)",
    "hsl(60, 90%, 45%)",
    "hsl(120, 70%, 40%)",
    "hsl(180, 80%, 42%)",
    "hsl(210, 90%, 48%)",
    "hsl(270, 85%, 50%)",
    "hsl(300, 80%, 48%)",
    "hsl(330, 80%, 50%)",
    "hsl(15, 90%, 48%)",
]
"""Palette cycled for auto-created speakers and imported tags."""

# ---------------------------------------------------------------------------
# HTTP sessions
# ---------------------------------------------------------------------------

SESSION_TTL_SECONDS = load_int_setting("TRANSCRIPT_EDITOR_SESSION_TTL", 3600)
MAX_SESSIONS = load_int_setting("TRANSCRIPT_EDITOR_MAX_SESSIONS", 50)
API_HOST = os.getenv("TRANSCRIPT_EDITOR_HOST", "127.0.0.1")
API_PORT = load_int_setting("TRANSCRIPT_EDITOR_PORT", 8000)

# ---------------------------------------------------------------------------
# Session documents
# ---------------------------------------------------------------------------

SESSION_FORMAT_VERSION = 1
