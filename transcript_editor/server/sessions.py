"""In-memory editing session store with TTL cleanup.

WHY: The HTTP API keeps one TranscriptEditor per client session so undo
history lives on the server between requests. An in-memory store is
enough for a single-team tool; sessions are saved to disk explicitly
through the persistence layer when needed.

HOW: Two components work together:
  EditingSession: dataclass holding the editor, its own lock, and timing
  SessionStore: thread-safe dict-based store with create/get/list/delete
    and idle-TTL cleanup

RULES:
- Store mutations are protected by the store's threading.Lock
- Each session carries its own lock; request handlers hold it while they
  read or mutate the editor, because the editor itself is not thread-safe
- get_session() refreshes last_access; TTL is measured from last_access
- create_session() raises ValueError when max_sessions is reached
- Session IDs are UUID4 hex strings generated at creation time
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from transcript_editor.config import MAX_SESSIONS, SESSION_TTL_SECONDS
from transcript_editor.editor import TranscriptEditor

logger = logging.getLogger(__name__)


@dataclass
class EditingSession:
    """One client's editor and bookkeeping.

    RULES:
    - id: UUID4 hex string, immutable after creation
    - name: free-form label supplied by the client (e.g. file name)
    - created_at / last_access: epoch seconds
    """

    id: str
    name: str
    editor: TranscriptEditor
    created_at: float
    last_access: float
    lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)


class SessionStore:
    """Thread-safe in-memory store for editing sessions."""

    def __init__(
        self,
        ttl_seconds: int = SESSION_TTL_SECONDS,
        max_sessions: int = MAX_SESSIONS,
    ) -> None:
        self._sessions: Dict[str, EditingSession] = {}
        self._lock = threading.Lock()
        self._ttl_seconds = ttl_seconds
        self.max_sessions = max_sessions

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def create_session(self, editor: TranscriptEditor, name: str = "") -> EditingSession:
        """Register ``editor`` under a fresh session id.

        Raises:
            ValueError: If the store already holds ``max_sessions`` sessions.
        """
        with self._lock:
            if len(self._sessions) >= self.max_sessions:
                raise ValueError(
                    "Maximum number of editing sessions ({}) reached".format(self.max_sessions)
                )
            now = time.time()
            session = EditingSession(
                id=uuid.uuid4().hex,
                name=name,
                editor=editor,
                created_at=now,
                last_access=now,
            )
            self._sessions[session.id] = session

        logger.info("Created session %s (%s)", session.id, name or "unnamed")
        return session

    def get_session(self, session_id: str) -> Optional[EditingSession]:
        """Return the live session or None. Refreshes its last_access."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.last_access = time.time()
            return session

    def list_sessions(self) -> List[EditingSession]:
        with self._lock:
            return sorted(self._sessions.values(), key=lambda s: s.created_at)

    def delete_session(self, session_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        logger.info("Deleted session %s", session_id)
        return True

    def cleanup_expired(self, now: Optional[float] = None) -> int:
        """Remove sessions idle for longer than the TTL. Returns the count removed."""
        now = time.time() if now is None else now
        with self._lock:
            expired = [
                session_id for session_id, session in self._sessions.items()
                if now - session.last_access > self._ttl_seconds
            ]
            for session_id in expired:
                del self._sessions[session_id]

        for session_id in expired:
            logger.info("Expired session %s", session_id)
        return len(expired)
