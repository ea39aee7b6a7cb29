"""Shared test fixtures for the transcript_editor test suite.

WHY: Most test modules need small, hand-checkable transcripts with
deterministic segment ids so assertions can name segments directly.

HOW: ``make_segment`` builds a Segment from ``(text, start, end)`` word
tuples; the fixtures assemble a five-segment, two-speaker transcript
(s1..s5) and an editor loaded with it.

RULES:
- Segment ids are s1..s5, speaker ids spk-a / spk-b
- Words tile each segment exactly; segments are one second apart
- ASR confidences are below 1.0 so confirm/retime effects are visible
"""

from typing import Any, Dict, List, Sequence, Tuple

import pytest

from transcript_editor.core.ir import Chapter, Segment, Speaker, Word
from transcript_editor.editor import TranscriptEditor

SPEAKER_A = Speaker(id="spk-a", name="Anna", color="hsl(0, 90%, 50%)")
SPEAKER_B = Speaker(id="spk-b", name="Bo", color="hsl(30, 90%, 50%)")


def make_segment(
    segment_id: str,
    words: Sequence[Tuple[str, float, float]],
    speaker_id: str = "spk-a",
    confidence: float = 0.8,
    tag_ids: Tuple[str, ...] = (),
) -> Segment:
    """Build a segment whose span is its first word's start to its last word's end."""
    built = tuple(
        Word(text=t, start_time=s, end_time=e, speaker_id=speaker_id, confidence_score=confidence)
        for t, s, e in words
    )
    return Segment(
        id=segment_id,
        speaker_id=speaker_id,
        start_time=built[0].start_time if built else 0.0,
        end_time=built[-1].end_time if built else 0.0,
        text=" ".join(w.text for w in built),
        words=built,
        tag_ids=tag_ids,
    )


def make_chapter(chapter_id: str, start: str, end: str, title: str = "") -> Chapter:
    return Chapter(
        id=chapter_id,
        title=title or chapter_id.upper(),
        start_segment_id=start,
        end_segment_id=end,
        created_at=0,
    )


def sample_segments() -> Tuple[Segment, ...]:
    return (
        make_segment("s1", [("hello", 0.0, 0.5), ("there", 0.5, 1.0)]),
        make_segment("s2", [("how", 1.0, 1.3), ("are", 1.3, 1.6), ("you", 1.6, 2.0)], "spk-b"),
        make_segment("s3", [("fine", 2.0, 2.5), ("thanks", 2.5, 3.0)]),
        make_segment("s4", [("good", 3.0, 3.4), ("to", 3.4, 3.6), ("hear", 3.6, 4.0)], "spk-b"),
        make_segment("s5", [("bye", 4.0, 5.0)]),
    )


def segment_dicts() -> List[Dict[str, Any]]:
    """The sample transcript in WhisperX import shape (no ids)."""
    return [
        {
            "speaker": "SPEAKER_00",
            "start": 0.0,
            "end": 1.0,
            "text": "hello there",
            "words": [
                {"word": "hello", "start": 0.0, "end": 0.5, "score": 0.9},
                {"word": "there", "start": 0.5, "end": 1.0, "score": 0.7},
            ],
        },
        {
            "speaker": "SPEAKER_01",
            "start": 1.0,
            "end": 2.0,
            "text": "how are you",
            "words": [
                {"word": "how", "start": 1.0, "end": 1.3, "score": 0.8},
                {"word": "are", "start": 1.3, "end": 1.6, "score": 0.8},
                {"word": "you", "start": 1.6, "end": 2.0, "score": 0.6},
            ],
        },
    ]


@pytest.fixture
def segments():
    """Five segments s1..s5 alternating speakers spk-a / spk-b."""
    return sample_segments()


@pytest.fixture
def editor():
    """A TranscriptEditor loaded with the sample segments and both speakers."""
    ed = TranscriptEditor(max_history=100)
    ed.load_transcript(sample_segments(), speakers=[SPEAKER_A, SPEAKER_B])
    return ed
