"""FastAPI application exposing transcript editing sessions over HTTP.

WHY: Browser front-ends and automation (AI suggestion producers, batch
scripts) need to drive the editor remotely while undo history stays on
the server. FastAPI gives request validation and OpenAPI docs for free.

HOW: POST /sessions loads a transcript into a new TranscriptEditor held
by the SessionStore. Every editing endpoint looks up the session, takes
its lock, calls one editor entry point and returns the full state.
Endpoints are plain ``def`` functions so FastAPI runs them in its thread
pool; the per-session lock keeps the editor single-threaded.

RULES:
- Error responses use a consistent ErrorResponse schema
- 404: unknown session, segment lookup on GET, or suggestion
- 409: the editor rejected the edit (no-op), state is unchanged
- 422: request body invalid or transcript could not be parsed
- 429: session store is full
- Idle sessions are removed by a periodic cleanup task
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, List

from fastapi import FastAPI, HTTPException
from fastapi.responses import Response

from transcript_editor import __version__
from transcript_editor.config import API_HOST, API_PORT
from transcript_editor.core.ir import Chapter, Segment
from transcript_editor.core.suggestions import (
    MEDIUM_CONFIDENCE,
    ChapterSuggestion,
    MergeSuggestion,
    RevisionSuggestion,
    SpeakerSuggestion,
    Suggestion,
    SuggestionKind,
)
from transcript_editor.editor import TranscriptEditor
from transcript_editor.persistence import dump_session
from transcript_editor.server.models import (
    AcceptSuggestionsRequest,
    BatchTextUpdateRequest,
    ChapterModel,
    ChapterSelectionRequest,
    CreateSessionRequest,
    CurrentTimeRequest,
    ErrorResponse,
    HealthResponse,
    LabelModel,
    LabelRequest,
    MergeRequest,
    MergeSpeakersRequest,
    MoveChapterStartRequest,
    RenameRequest,
    SegmentModel,
    SelectionRequest,
    SessionStateResponse,
    SessionSummary,
    SpeakerAssignmentRequest,
    SplitRequest,
    StartChapterRequest,
    SuggestionListResponse,
    SuggestionModel,
    SuggestionRequest,
    TextUpdateRequest,
    TimingRequest,
    UpdateChapterRequest,
    WordModel,
)
from transcript_editor.server.sessions import EditingSession, SessionStore

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App and store setup
# ---------------------------------------------------------------------------

session_store = SessionStore()


async def _periodic_cleanup() -> None:
    """Drop idle sessions every 5 minutes."""
    while True:
        await asyncio.sleep(300)
        session_store.cleanup_expired()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start periodic cleanup on startup, cancel on shutdown."""
    task = asyncio.create_task(_periodic_cleanup())
    yield
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


app = FastAPI(
    lifespan=lifespan,
    title="Transcript Editor API",
    description=(
        "Server-side editing sessions for time-aligned transcripts: retype "
        "segment text with automatic word re-timing, split, merge and delete "
        "segments, manage chapters, speakers and tags, apply AI suggestions, "
        "and undo/redo every change."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

NOT_FOUND = {404: {"model": ErrorResponse, "description": "Session not found"}}
EDIT_RESPONSES = {
    404: {"model": ErrorResponse, "description": "Session not found"},
    409: {"model": ErrorResponse, "description": "Edit rejected; state unchanged"},
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _segment_to_model(segment: Segment) -> SegmentModel:
    return SegmentModel(
        id=segment.id,
        speaker_id=segment.speaker_id,
        start_time=segment.start_time,
        end_time=segment.end_time,
        text=segment.text,
        words=[
            WordModel(
                text=w.text,
                start_time=w.start_time,
                end_time=w.end_time,
                speaker_id=w.speaker_id,
                confidence_score=w.confidence_score,
            )
            for w in segment.words
        ],
        tag_ids=list(segment.tag_ids),
        confirmed=segment.confirmed,
        bookmarked=segment.bookmarked,
    )


def _chapter_to_model(chapter: Chapter) -> ChapterModel:
    return ChapterModel(
        id=chapter.id,
        title=chapter.title,
        start_segment_id=chapter.start_segment_id,
        end_segment_id=chapter.end_segment_id,
        segment_count=chapter.segment_count,
        created_at=chapter.created_at,
        source=chapter.source.value,
        summary=chapter.summary,
        notes=chapter.notes,
        tag_ids=list(chapter.tag_ids),
    )


def _state_response(session: EditingSession) -> SessionStateResponse:
    editor = session.editor
    state = editor.state
    return SessionStateResponse(
        id=session.id,
        name=session.name,
        segments=[_segment_to_model(s) for s in state.segments],
        speakers=[LabelModel(id=s.id, name=s.name, color=s.color) for s in state.speakers],
        tags=[LabelModel(id=t.id, name=t.name, color=t.color) for t in state.tags],
        chapters=[_chapter_to_model(c) for c in state.chapters],
        selected_segment_id=state.selected_segment_id,
        selected_chapter_id=state.selected_chapter_id,
        current_time=state.current_time,
        confidence_version=state.confidence_version,
        can_undo=editor.can_undo(),
        can_redo=editor.can_redo(),
    )


def _suggestion_to_model(suggestion: Suggestion) -> SuggestionModel:
    payload: Dict[str, Any] = {
        key: value for key, value in vars(suggestion).items()
        if key not in ("id", "status")
    }
    if "tag_ids" in payload:
        payload["tag_ids"] = list(payload["tag_ids"])
    return SuggestionModel(
        id=suggestion.id,
        kind=suggestion.kind.value,
        status=suggestion.status.value,
        segment_ids=list(suggestion.referenced_ids()),
        payload=payload,
    )


def _get_session(session_id: str) -> EditingSession:
    session = session_store.get_session(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found: {}".format(session_id))
    return session


def _edit(
    session_id: str,
    action: Callable[[TranscriptEditor], Any],
    rejected: str,
) -> SessionStateResponse:
    """Run ``action`` under the session lock; falsy results become a 409."""
    session = _get_session(session_id)
    with session.lock:
        result = action(session.editor)
        if not result:
            raise HTTPException(status_code=409, detail=rejected)
        return _state_response(session)


def _build_suggestion(request: SuggestionRequest) -> Suggestion:
    def require(*names: str) -> None:
        missing = [n for n in names if getattr(request, n) is None]
        if missing:
            raise HTTPException(
                status_code=422,
                detail="{} suggestion requires: {}".format(request.kind.value, ", ".join(missing)),
            )

    if request.kind == SuggestionKind.SPEAKER:
        require("segment_id", "suggested_speaker")
        return SpeakerSuggestion(
            segment_id=request.segment_id,
            suggested_speaker=request.suggested_speaker,
            reason=request.reason,
        )
    if request.kind == SuggestionKind.MERGE:
        require("first_segment_id", "second_segment_id")
        return MergeSuggestion(
            first_segment_id=request.first_segment_id,
            second_segment_id=request.second_segment_id,
            merged_text=request.merged_text or "",
            smoothed_text=request.smoothed_text,
            confidence=request.confidence or MEDIUM_CONFIDENCE,
            reason=request.reason,
        )
    if request.kind == SuggestionKind.CHAPTER:
        require("title", "start_segment_id", "end_segment_id")
        return ChapterSuggestion(
            title=request.title,
            start_segment_id=request.start_segment_id,
            end_segment_id=request.end_segment_id,
            summary=request.summary,
        )
    require("segment_id", "revised_text")
    return RevisionSuggestion(
        segment_id=request.segment_id,
        original_text="",
        revised_text=request.revised_text,
        reasoning=request.reason,
    )


# ---------------------------------------------------------------------------
# Endpoints: Sessions
# ---------------------------------------------------------------------------


@app.post(
    "/sessions",
    response_model=SessionStateResponse,
    status_code=201,
    tags=["sessions"],
    summary="Open an editing session",
    description=(
        "Load a transcript into a new server-side editor. Missing segment ids "
        "are generated and speakers are created from segment labels."
    ),
    responses={
        422: {"model": ErrorResponse, "description": "Transcript could not be parsed"},
        429: {"model": ErrorResponse, "description": "Too many open sessions"},
    },
)
def create_session(request: CreateSessionRequest) -> SessionStateResponse:
    editor = TranscriptEditor()
    try:
        editor.load_transcript(
            request.segments,
            speakers=request.speakers,
            chapters=request.chapters,
            tags=request.tags,
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise HTTPException(status_code=422, detail="Invalid transcript: {}".format(exc))

    try:
        session = session_store.create_session(editor, name=request.name)
    except ValueError as exc:
        raise HTTPException(status_code=429, detail=str(exc))
    return _state_response(session)


@app.get(
    "/sessions",
    response_model=List[SessionSummary],
    tags=["sessions"],
    summary="List open sessions",
)
def list_sessions() -> List[SessionSummary]:
    return [
        SessionSummary(
            id=s.id,
            name=s.name,
            segment_count=len(s.editor.segments),
            created_at=s.created_at,
            last_access=s.last_access,
        )
        for s in session_store.list_sessions()
    ]


@app.get(
    "/sessions/{session_id}",
    response_model=SessionStateResponse,
    tags=["sessions"],
    summary="Get session state",
    responses=NOT_FOUND,
)
def get_session(session_id: str) -> SessionStateResponse:
    session = _get_session(session_id)
    with session.lock:
        return _state_response(session)


@app.get(
    "/sessions/{session_id}/document",
    tags=["sessions"],
    summary="Export the session document",
    description="Versioned JSON document accepted by the CLI and persistence layer.",
    responses=NOT_FOUND,
)
def export_session(session_id: str) -> Dict[str, Any]:
    session = _get_session(session_id)
    with session.lock:
        return dump_session(session.editor)


@app.delete(
    "/sessions/{session_id}",
    status_code=204,
    tags=["sessions"],
    summary="Close a session",
    responses=NOT_FOUND,
)
def delete_session(session_id: str) -> Response:
    if not session_store.delete_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found: {}".format(session_id))
    return Response(status_code=204)


# ---------------------------------------------------------------------------
# Endpoints: Segments
# ---------------------------------------------------------------------------


@app.put(
    "/sessions/{session_id}/segments/{segment_id}/text",
    response_model=SessionStateResponse,
    tags=["segments"],
    summary="Retype a segment",
    description="Replaces the text; unchanged words keep their timestamps.",
    responses=EDIT_RESPONSES,
)
def update_segment_text(
    session_id: str,
    segment_id: str,
    request: TextUpdateRequest,
) -> SessionStateResponse:
    return _edit(
        session_id,
        lambda e: e.update_segment_text(segment_id, request.text),
        "Text unchanged or segment not found",
    )


@app.post(
    "/sessions/{session_id}/segments/text-batch",
    response_model=SessionStateResponse,
    tags=["segments"],
    summary="Retype several segments as one undo step",
    responses=EDIT_RESPONSES,
)
def update_segments_texts(session_id: str, request: BatchTextUpdateRequest) -> SessionStateResponse:
    pairs = [(item.segment_id, item.text) for item in request.updates]
    return _edit(
        session_id,
        lambda e: e.update_segments_texts_batch(pairs),
        "No segment text changed",
    )


@app.put(
    "/sessions/{session_id}/segments/{segment_id}/speaker",
    response_model=SessionStateResponse,
    tags=["segments"],
    summary="Reassign a segment's speaker",
    responses=EDIT_RESPONSES,
)
def update_segment_speaker(
    session_id: str,
    segment_id: str,
    request: SpeakerAssignmentRequest,
) -> SessionStateResponse:
    return _edit(
        session_id,
        lambda e: e.update_segment_speaker(segment_id, request.speaker_id),
        "Unknown segment or speaker, or speaker unchanged",
    )


@app.post(
    "/sessions/{session_id}/segments/{segment_id}/confirm",
    response_model=SessionStateResponse,
    tags=["segments"],
    summary="Confirm a segment",
    responses=EDIT_RESPONSES,
)
def confirm_segment(session_id: str, segment_id: str) -> SessionStateResponse:
    return _edit(session_id, lambda e: e.confirm_segment(segment_id), "Segment not found")


@app.post(
    "/sessions/{session_id}/segments/{segment_id}/bookmark",
    response_model=SessionStateResponse,
    tags=["segments"],
    summary="Toggle a segment bookmark",
    responses=EDIT_RESPONSES,
)
def toggle_segment_bookmark(session_id: str, segment_id: str) -> SessionStateResponse:
    return _edit(session_id, lambda e: e.toggle_segment_bookmark(segment_id), "Segment not found")


@app.post(
    "/sessions/{session_id}/segments/{segment_id}/split",
    response_model=SessionStateResponse,
    tags=["segments"],
    summary="Split a segment before a word",
    responses=EDIT_RESPONSES,
)
def split_segment(session_id: str, segment_id: str, request: SplitRequest) -> SessionStateResponse:
    return _edit(
        session_id,
        lambda e: e.split_segment(segment_id, request.word_index),
        "Segment not found or word index outside the segment",
    )


@app.post(
    "/sessions/{session_id}/segments/merge",
    response_model=SessionStateResponse,
    tags=["segments"],
    summary="Merge two adjacent segments",
    responses=EDIT_RESPONSES,
)
def merge_segments(session_id: str, request: MergeRequest) -> SessionStateResponse:
    return _edit(
        session_id,
        lambda e: e.merge_segments(request.first_segment_id, request.second_segment_id),
        "Segments not found or not adjacent",
    )


@app.put(
    "/sessions/{session_id}/segments/{segment_id}/timing",
    response_model=SessionStateResponse,
    tags=["segments"],
    summary="Change a segment's start and end",
    responses=EDIT_RESPONSES,
)
def update_segment_timing(
    session_id: str,
    segment_id: str,
    request: TimingRequest,
) -> SessionStateResponse:
    return _edit(
        session_id,
        lambda e: e.update_segment_timing(segment_id, request.start_time, request.end_time),
        "Segment not found, timing unchanged, or end before start",
    )


@app.delete(
    "/sessions/{session_id}/segments/{segment_id}",
    response_model=SessionStateResponse,
    tags=["segments"],
    summary="Delete a segment",
    responses=EDIT_RESPONSES,
)
def delete_segment(session_id: str, segment_id: str) -> SessionStateResponse:
    return _edit(session_id, lambda e: e.delete_segment(segment_id), "Segment not found")


# ---------------------------------------------------------------------------
# Endpoints: Chapters
# ---------------------------------------------------------------------------


@app.post(
    "/sessions/{session_id}/chapters",
    response_model=SessionStateResponse,
    tags=["chapters"],
    summary="Start a chapter at a segment",
    responses=EDIT_RESPONSES,
)
def start_chapter(session_id: str, request: StartChapterRequest) -> SessionStateResponse:
    return _edit(
        session_id,
        lambda e: e.start_chapter(request.title, request.start_segment_id, request.tag_ids),
        "Unknown start segment, empty title, or overlapping chapters",
    )


@app.patch(
    "/sessions/{session_id}/chapters/{chapter_id}",
    response_model=SessionStateResponse,
    tags=["chapters"],
    summary="Update chapter fields",
    responses=EDIT_RESPONSES,
)
def update_chapter(
    session_id: str,
    chapter_id: str,
    request: UpdateChapterRequest,
) -> SessionStateResponse:
    # null clears summary/notes; a null title or tag list means "leave as is"
    changes = {
        key: value for key, value in request.model_dump(exclude_unset=True).items()
        if value is not None or key in ("summary", "notes")
    }
    return _edit(
        session_id,
        lambda e: e.update_chapter(chapter_id, **changes),
        "Unknown chapter, empty title, overlap, or nothing changed",
    )


@app.put(
    "/sessions/{session_id}/chapters/{chapter_id}/start",
    response_model=SessionStateResponse,
    tags=["chapters"],
    summary="Move a chapter's start segment",
    responses=EDIT_RESPONSES,
)
def move_chapter_start(
    session_id: str,
    chapter_id: str,
    request: MoveChapterStartRequest,
) -> SessionStateResponse:
    return _edit(
        session_id,
        lambda e: e.move_chapter_start(chapter_id, request.start_segment_id),
        "Unknown chapter or segment, or start would cross a neighbouring chapter",
    )


@app.delete(
    "/sessions/{session_id}/chapters/{chapter_id}",
    response_model=SessionStateResponse,
    tags=["chapters"],
    summary="Delete a chapter",
    responses=EDIT_RESPONSES,
)
def delete_chapter(session_id: str, chapter_id: str) -> SessionStateResponse:
    return _edit(session_id, lambda e: e.delete_chapter(chapter_id), "Chapter not found")


@app.delete(
    "/sessions/{session_id}/chapters",
    response_model=SessionStateResponse,
    tags=["chapters"],
    summary="Remove all chapters",
    responses=EDIT_RESPONSES,
)
def clear_chapters(session_id: str) -> SessionStateResponse:
    return _edit(session_id, lambda e: e.clear_chapters(), "No chapters to clear")


# ---------------------------------------------------------------------------
# Endpoints: History and selection
# ---------------------------------------------------------------------------


@app.post(
    "/sessions/{session_id}/undo",
    response_model=SessionStateResponse,
    tags=["history"],
    summary="Undo the last change",
    responses=EDIT_RESPONSES,
)
def undo(session_id: str) -> SessionStateResponse:
    return _edit(session_id, lambda e: e.undo(), "Nothing to undo")


@app.post(
    "/sessions/{session_id}/redo",
    response_model=SessionStateResponse,
    tags=["history"],
    summary="Redo the last undone change",
    responses=EDIT_RESPONSES,
)
def redo(session_id: str) -> SessionStateResponse:
    return _edit(session_id, lambda e: e.redo(), "Nothing to redo")


@app.put(
    "/sessions/{session_id}/selection",
    response_model=SessionStateResponse,
    tags=["history"],
    summary="Select a segment (not an undo step)",
    responses=EDIT_RESPONSES,
)
def select_segment(session_id: str, request: SelectionRequest) -> SessionStateResponse:
    return _edit(session_id, lambda e: e.select_segment(request.segment_id), "Segment not found")


@app.put(
    "/sessions/{session_id}/chapter-selection",
    response_model=SessionStateResponse,
    tags=["history"],
    summary="Select a chapter (not an undo step)",
    responses=EDIT_RESPONSES,
)
def select_chapter(session_id: str, request: ChapterSelectionRequest) -> SessionStateResponse:
    return _edit(session_id, lambda e: e.select_chapter(request.chapter_id), "Chapter not found")


@app.put(
    "/sessions/{session_id}/current-time",
    response_model=SessionStateResponse,
    tags=["history"],
    summary="Set the playback position",
    responses=NOT_FOUND,
)
def set_current_time(session_id: str, request: CurrentTimeRequest) -> SessionStateResponse:
    session = _get_session(session_id)
    with session.lock:
        session.editor.set_current_time(request.seconds)
        return _state_response(session)


# ---------------------------------------------------------------------------
# Endpoints: Speakers and tags
# ---------------------------------------------------------------------------


@app.post(
    "/sessions/{session_id}/speakers",
    response_model=SessionStateResponse,
    tags=["speakers"],
    summary="Add a speaker",
    responses=EDIT_RESPONSES,
)
def add_speaker(session_id: str, request: LabelRequest) -> SessionStateResponse:
    return _edit(
        session_id,
        lambda e: e.add_speaker(request.name, request.color),
        "Empty or duplicate speaker name",
    )


@app.put(
    "/sessions/{session_id}/speakers/{speaker_id}/name",
    response_model=SessionStateResponse,
    tags=["speakers"],
    summary="Rename a speaker",
    responses=EDIT_RESPONSES,
)
def rename_speaker(session_id: str, speaker_id: str, request: RenameRequest) -> SessionStateResponse:
    return _edit(
        session_id,
        lambda e: e.rename_speaker(speaker_id, request.name),
        "Unknown speaker, or name empty, unchanged or taken",
    )


@app.post(
    "/sessions/{session_id}/speakers/merge",
    response_model=SessionStateResponse,
    tags=["speakers"],
    summary="Fold one speaker into another",
    responses=EDIT_RESPONSES,
)
def merge_speakers(session_id: str, request: MergeSpeakersRequest) -> SessionStateResponse:
    return _edit(
        session_id,
        lambda e: e.merge_speakers(request.from_speaker_id, request.to_speaker_id),
        "Unknown speakers or same speaker twice",
    )


@app.post(
    "/sessions/{session_id}/tags",
    response_model=SessionStateResponse,
    tags=["tags"],
    summary="Add a tag",
    responses=EDIT_RESPONSES,
)
def add_tag(session_id: str, request: LabelRequest) -> SessionStateResponse:
    return _edit(
        session_id,
        lambda e: e.add_tag(request.name, request.color),
        "Empty or duplicate tag name",
    )


@app.delete(
    "/sessions/{session_id}/tags/{tag_id}",
    response_model=SessionStateResponse,
    tags=["tags"],
    summary="Remove a tag everywhere",
    responses=EDIT_RESPONSES,
)
def remove_tag(session_id: str, tag_id: str) -> SessionStateResponse:
    return _edit(session_id, lambda e: e.remove_tag(tag_id), "Tag not found")


@app.post(
    "/sessions/{session_id}/segments/{segment_id}/tags/{tag_id}/toggle",
    response_model=SessionStateResponse,
    tags=["tags"],
    summary="Toggle a tag on a segment",
    responses=EDIT_RESPONSES,
)
def toggle_segment_tag(session_id: str, segment_id: str, tag_id: str) -> SessionStateResponse:
    return _edit(
        session_id,
        lambda e: e.toggle_tag_on_segment(segment_id, tag_id),
        "Segment or tag not found",
    )


# ---------------------------------------------------------------------------
# Endpoints: Suggestions
# ---------------------------------------------------------------------------


def _suggestion_list(editor: TranscriptEditor) -> SuggestionListResponse:
    return SuggestionListResponse(
        suggestions=[_suggestion_to_model(s) for s in editor.suggestions.all()],
        error=editor.suggestions.error,
    )


@app.get(
    "/sessions/{session_id}/suggestions",
    response_model=SuggestionListResponse,
    tags=["suggestions"],
    summary="List suggestions",
    responses=NOT_FOUND,
)
def list_suggestions(session_id: str) -> SuggestionListResponse:
    session = _get_session(session_id)
    with session.lock:
        return _suggestion_list(session.editor)


@app.post(
    "/sessions/{session_id}/suggestions",
    response_model=SuggestionModel,
    status_code=201,
    tags=["suggestions"],
    summary="Submit a suggestion",
    responses={
        404: {"model": ErrorResponse, "description": "Session not found"},
        422: {"model": ErrorResponse, "description": "Missing fields for the kind"},
    },
)
def add_suggestion(session_id: str, request: SuggestionRequest) -> SuggestionModel:
    session = _get_session(session_id)
    suggestion = _build_suggestion(request)
    with session.lock:
        if request.kind == SuggestionKind.REVISION:
            segment = session.editor.segment_by_id(suggestion.segment_id)
            if segment is not None:
                suggestion.original_text = segment.text
        session.editor.suggestions.add(suggestion)
        return _suggestion_to_model(suggestion)


@app.post(
    "/sessions/{session_id}/suggestions/accept-speakers",
    response_model=SessionStateResponse,
    tags=["suggestions"],
    summary="Accept several speaker suggestions as one undo step",
    responses=EDIT_RESPONSES,
)
def accept_speaker_suggestions(
    session_id: str, request: AcceptSuggestionsRequest,
) -> SessionStateResponse:
    return _edit(
        session_id,
        lambda editor: editor.accept_speaker_suggestions(request.suggestion_ids),
        "No pending speaker suggestion could be accepted",
    )


@app.post(
    "/sessions/{session_id}/suggestions/accept-revisions",
    response_model=SessionStateResponse,
    tags=["suggestions"],
    summary="Accept every pending revision as one undo step",
    responses=EDIT_RESPONSES,
)
def accept_all_revisions(session_id: str) -> SessionStateResponse:
    return _edit(
        session_id,
        lambda editor: editor.accept_all_revision_suggestions(),
        "No pending revision could be accepted",
    )


@app.post(
    "/sessions/{session_id}/suggestions/accept-high-confidence-merges",
    response_model=SessionStateResponse,
    tags=["suggestions"],
    summary="Accept pending high-confidence merge suggestions in order",
    responses=EDIT_RESPONSES,
)
def accept_high_confidence_merges(session_id: str) -> SessionStateResponse:
    return _edit(
        session_id,
        lambda editor: editor.accept_all_high_confidence_merges(),
        "No pending high-confidence merge could be applied",
    )


@app.post(
    "/sessions/{session_id}/suggestions/accept-chapters",
    response_model=SessionStateResponse,
    tags=["suggestions"],
    summary="Accept every pending chapter suggestion as one undo step",
    responses=EDIT_RESPONSES,
)
def accept_all_chapters(session_id: str) -> SessionStateResponse:
    return _edit(
        session_id,
        lambda editor: editor.accept_all_chapter_suggestions(),
        "Chapter suggestions are missing or conflict with existing chapters",
    )


@app.post(
    "/sessions/{session_id}/suggestions/{suggestion_id}/accept",
    response_model=SessionStateResponse,
    tags=["suggestions"],
    summary="Accept a pending suggestion",
    responses=EDIT_RESPONSES,
)
def accept_suggestion(session_id: str, suggestion_id: str) -> SessionStateResponse:
    def accept(editor: TranscriptEditor) -> Any:
        suggestion = editor.suggestions.get(suggestion_id)
        if suggestion is None:
            raise HTTPException(
                status_code=404, detail="Suggestion not found: {}".format(suggestion_id),
            )
        handlers = {
            SuggestionKind.SPEAKER: editor.accept_speaker_suggestion,
            SuggestionKind.MERGE: editor.accept_merge_suggestion,
            SuggestionKind.CHAPTER: editor.accept_chapter_suggestion,
            SuggestionKind.REVISION: editor.accept_revision_suggestion,
        }
        return handlers[suggestion.kind](suggestion_id)

    return _edit(session_id, accept, "Suggestion is not pending or no longer applies")


@app.post(
    "/sessions/{session_id}/suggestions/{suggestion_id}/reject",
    response_model=SuggestionListResponse,
    tags=["suggestions"],
    summary="Reject a pending suggestion",
    responses=EDIT_RESPONSES,
)
def reject_suggestion(session_id: str, suggestion_id: str) -> SuggestionListResponse:
    session = _get_session(session_id)
    with session.lock:
        if not session.editor.reject_suggestion(suggestion_id):
            raise HTTPException(status_code=409, detail="Suggestion is not pending")
        return _suggestion_list(session.editor)


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
    description="Liveness and readiness check for load balancers and orchestrators.",
)
def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__, sessions=len(session_store))


def run_api(host: str = API_HOST, port: int = API_PORT) -> None:
    """Entry point for the transcript-editor-api console script."""
    import uvicorn
    uvicorn.run(app, host=host, port=port)
