"""Pydantic request/response models for the HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and automatic OpenAPI documentation. Pydantic
models enforce field types at runtime and generate JSON Schema that
appears in the /docs UI.

HOW: Each editing endpoint has a small request model; every editing
endpoint answers with the full SessionStateResponse so clients never
need a second round trip after a change. Imported transcripts are taken
as raw dicts because they arrive in several shapes (camelCase,
snake_case, WhisperX) and the core parser handles all of them.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- Field names are snake_case; times are float seconds
- Python 3.9+ compatible (no PEP 604 unions, use Optional from typing)
- SuggestionKind/SuggestionStatus come from core.suggestions
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from transcript_editor.core.suggestions import SuggestionKind


# ---------------------------------------------------------------------------
# State models
# ---------------------------------------------------------------------------


class WordModel(BaseModel):
    text: str = Field(description="Word text as displayed.")
    start_time: float = Field(description="Word start in seconds.")
    end_time: float = Field(description="Word end in seconds.")
    speaker_id: Optional[str] = Field(default=None, description="Speaker id, if known.")
    confidence_score: Optional[float] = Field(
        default=None,
        description="Recognition confidence; 1.0 for typed or confirmed words.",
    )


class SegmentModel(BaseModel):
    id: str = Field(description="Segment id.")
    speaker_id: str = Field(description="Id of the segment's speaker.")
    start_time: float = Field(description="Segment start in seconds.")
    end_time: float = Field(description="Segment end in seconds.")
    text: str = Field(description="Segment text.")
    words: List[WordModel] = Field(description="Timed words tiling the segment.")
    tag_ids: List[str] = Field(description="Ids of tags assigned to the segment.")
    confirmed: bool = Field(description="True once a human confirmed the text.")
    bookmarked: bool = Field(description="Bookmark flag.")


class LabelModel(BaseModel):
    """A speaker or a tag."""

    id: str = Field(description="Speaker or tag id.")
    name: str = Field(description="Display name.")
    color: str = Field(description="CSS color used in the editor.")


class ChapterModel(BaseModel):
    id: str = Field(description="Chapter id.")
    title: str = Field(description="Chapter title.")
    start_segment_id: str = Field(description="Id of the first segment.")
    end_segment_id: str = Field(description="Id of the last segment (stored anchor).")
    segment_count: int = Field(description="Number of segments between the stored anchors.")
    created_at: int = Field(description="Creation time (epoch milliseconds).")
    source: str = Field(description="'manual' or 'ai'.")
    summary: Optional[str] = Field(default=None, description="Optional summary.")
    notes: Optional[str] = Field(default=None, description="Optional notes.")
    tag_ids: List[str] = Field(description="Ids of tags assigned to the chapter.")


class SessionStateResponse(BaseModel):
    """Full editor state for one session.

    WHY: Every edit can touch segments, chapters and selection at once,
    so endpoints return the whole state rather than a diff.
    """

    id: str = Field(description="Session id.")
    name: str = Field(description="Session label.")
    segments: List[SegmentModel] = Field(description="Segments in timeline order.")
    speakers: List[LabelModel] = Field(description="Session speakers.")
    tags: List[LabelModel] = Field(description="Session tags.")
    chapters: List[ChapterModel] = Field(description="Chapters ordered by start segment.")
    selected_segment_id: Optional[str] = Field(default=None, description="Selected segment.")
    selected_chapter_id: Optional[str] = Field(default=None, description="Selected chapter.")
    current_time: float = Field(description="Playback position in seconds.")
    confidence_version: int = Field(description="Bumped whenever word confidences may have changed.")
    can_undo: bool = Field(description="Whether undo is available.")
    can_redo: bool = Field(description="Whether redo is available.")


class SessionSummary(BaseModel):
    id: str = Field(description="Session id.")
    name: str = Field(description="Session label.")
    segment_count: int = Field(description="Number of segments.")
    created_at: float = Field(description="Creation timestamp (Unix epoch seconds).")
    last_access: float = Field(description="Last access timestamp (Unix epoch seconds).")


class SuggestionModel(BaseModel):
    id: str = Field(description="Suggestion id.")
    kind: str = Field(description="speaker, merge, chapter or revision.")
    status: str = Field(description="pending, accepted, rejected or invalid.")
    segment_ids: List[str] = Field(description="Segment ids the suggestion refers to.")
    payload: Dict[str, Any] = Field(description="Kind-specific fields.")


class SuggestionListResponse(BaseModel):
    suggestions: List[SuggestionModel] = Field(description="Suggestions in insertion order.")
    error: Optional[str] = Field(default=None, description="Last chapter conflict message.")


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class CreateSessionRequest(BaseModel):
    """Transcript to open in a new editing session."""

    name: str = Field(default="", description="Free-form session label.")
    segments: List[Dict[str, Any]] = Field(
        description="Segments in timeline order (camelCase, snake_case or WhisperX keys).",
    )
    speakers: Optional[List[Dict[str, Any]]] = Field(
        default=None,
        description="Known speakers; created from segment labels when omitted.",
    )
    chapters: Optional[List[Dict[str, Any]]] = Field(default=None, description="Existing chapters.")
    tags: Optional[List[Dict[str, Any]]] = Field(default=None, description="Existing tags.")

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "name": "interview.mp3",
                "segments": [
                    {
                        "speaker": "SPEAKER_00",
                        "start": 0.0,
                        "end": 1.2,
                        "text": "Hello there",
                        "words": [
                            {"word": "Hello", "start": 0.0, "end": 0.5, "score": 0.93},
                            {"word": "there", "start": 0.5, "end": 1.2, "score": 0.88},
                        ],
                    }
                ],
            }
        ]
    }}


class TextUpdateRequest(BaseModel):
    text: str = Field(description="New segment text; words are re-timed.")


class TextUpdateItem(BaseModel):
    segment_id: str = Field(description="Segment to update.")
    text: str = Field(description="New segment text.")


class BatchTextUpdateRequest(BaseModel):
    updates: List[TextUpdateItem] = Field(description="Text updates applied as one undo step.")


class SpeakerAssignmentRequest(BaseModel):
    speaker_id: str = Field(description="Id of an existing speaker.")


class SplitRequest(BaseModel):
    word_index: int = Field(description="Index of the first word of the second half.")


class MergeRequest(BaseModel):
    first_segment_id: str = Field(description="One of two adjacent segments.")
    second_segment_id: str = Field(description="The other adjacent segment.")


class TimingRequest(BaseModel):
    start_time: float = Field(description="New segment start in seconds.")
    end_time: float = Field(description="New segment end in seconds.")


class StartChapterRequest(BaseModel):
    title: str = Field(description="Chapter title (trimmed, must not be empty).")
    start_segment_id: str = Field(description="Segment the chapter starts at.")
    tag_ids: List[str] = Field(default_factory=list, description="Tags for the chapter.")


class UpdateChapterRequest(BaseModel):
    """Only fields that are sent are changed."""

    title: Optional[str] = Field(default=None, description="New title.")
    summary: Optional[str] = Field(default=None, description="New summary.")
    notes: Optional[str] = Field(default=None, description="New notes.")
    tag_ids: Optional[List[str]] = Field(default=None, description="Replacement tag list.")


class MoveChapterStartRequest(BaseModel):
    start_segment_id: str = Field(description="New start segment for the chapter.")


class SelectionRequest(BaseModel):
    segment_id: Optional[str] = Field(default=None, description="Segment to select, or null.")


class ChapterSelectionRequest(BaseModel):
    chapter_id: Optional[str] = Field(default=None, description="Chapter to select, or null.")


class CurrentTimeRequest(BaseModel):
    seconds: float = Field(ge=0, description="Playback position in seconds.")


class LabelRequest(BaseModel):
    name: str = Field(description="Display name.")
    color: Optional[str] = Field(default=None, description="CSS color; palette color when omitted.")


class RenameRequest(BaseModel):
    name: str = Field(description="New display name.")


class MergeSpeakersRequest(BaseModel):
    from_speaker_id: str = Field(description="Speaker to fold into the target and remove.")
    to_speaker_id: str = Field(description="Speaker that receives the segments.")


class SuggestionRequest(BaseModel):
    """A suggestion from an external producer.

    Required fields per kind:
    - speaker: segment_id, suggested_speaker
    - merge: first_segment_id, second_segment_id (merged_text, smoothed_text,
      confidence optional)
    - chapter: title, start_segment_id, end_segment_id
    - revision: segment_id, revised_text
    """

    kind: SuggestionKind = Field(description="Suggestion kind.")
    segment_id: Optional[str] = Field(default=None, description="Target segment.")
    suggested_speaker: Optional[str] = Field(default=None, description="Speaker name to assign.")
    first_segment_id: Optional[str] = Field(default=None, description="First segment to merge.")
    second_segment_id: Optional[str] = Field(default=None, description="Second segment to merge.")
    merged_text: Optional[str] = Field(default=None, description="Plain joined text.")
    smoothed_text: Optional[str] = Field(default=None, description="Cleaned-up merged text.")
    confidence: Optional[Literal["low", "medium", "high"]] = Field(
        default=None, description="Merge confidence; only high is accepted in bulk.",
    )
    title: Optional[str] = Field(default=None, description="Chapter title.")
    start_segment_id: Optional[str] = Field(default=None, description="Chapter start segment.")
    end_segment_id: Optional[str] = Field(default=None, description="Chapter end segment.")
    summary: Optional[str] = Field(default=None, description="Chapter summary.")
    revised_text: Optional[str] = Field(default=None, description="Revised segment text.")
    reason: Optional[str] = Field(default=None, description="Producer's explanation.")


class AcceptSuggestionsRequest(BaseModel):
    suggestion_ids: List[str] = Field(description="Suggestions to accept together, in order.")


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------


class ErrorResponse(BaseModel):
    """Standard error response body.

    RULES:
    - detail is always a human-readable error message
    """

    detail: str = Field(description="Human-readable error description.")


class HealthResponse(BaseModel):
    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
    sessions: int = Field(description="Number of open editing sessions.")
