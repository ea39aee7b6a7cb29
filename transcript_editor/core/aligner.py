"""Word re-timing for hand-edited segment text.

WHY: When a user retypes a segment, the audio is not re-analysed, yet
every word still needs a start and end time for playback highlighting
and exports. Words the user did not touch should keep their real
timestamps; only new or changed words need synthetic ones.

HOW: Tokenize the new text on whitespace and compute the Longest Common
Subsequence against the old word texts with a bottom-up DP table. Walk
the table forward from (0, 0) to recover the matched pairs. Matched
words keep their timing and adopt the new token's text. Every run of
unmatched new tokens between two matches is spread evenly over the time
the corresponding old run occupied, or over the gap between its
neighbouring matched words when nothing was replaced.

RULES:
- No-op (None) when new_text.strip() equals the current text
- No old words or no new tokens -> equal slots over the segment
- Tie-break on equal DP neighbours: advance the OLD index first
- Synthesized words get confidence_score = 1.0 and the segment speaker
- Interval bounds where end < start collapse to end = start
- Time freed by deleted words goes to the neighbouring emitted word, so
  the result tiles [segment.start_time, segment.end_time]
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from transcript_editor.core.ir import Segment, Word

logger = logging.getLogger(__name__)

HUMAN_CONFIDENCE = 1.0


def tokenize(text: str) -> List[str]:
    return text.split()


def lcs_matches(old_tokens: Sequence[str], new_tokens: Sequence[str]) -> List[Tuple[int, int]]:
    """Return matched ``(old_index, new_index)`` pairs of an LCS alignment.

    The table is filled from the end so that ``table[i][j]`` is the LCS
    length of ``old_tokens[i:]`` and ``new_tokens[j:]``; the forward walk
    then prefers skipping an old token whenever that loses nothing.
    """
    rows = len(old_tokens) + 1
    cols = len(new_tokens) + 1
    table = [[0] * cols for _ in range(rows)]
    for i in range(len(old_tokens) - 1, -1, -1):
        for j in range(len(new_tokens) - 1, -1, -1):
            if old_tokens[i] == new_tokens[j]:
                table[i][j] = table[i + 1][j + 1] + 1
            else:
                table[i][j] = max(table[i + 1][j], table[i][j + 1])

    matches: List[Tuple[int, int]] = []
    i = j = 0
    while i < len(old_tokens) and j < len(new_tokens):
        if old_tokens[i] == new_tokens[j]:
            matches.append((i, j))
            i += 1
            j += 1
        elif table[i + 1][j] >= table[i][j + 1]:
            i += 1
        else:
            j += 1
    return matches


def _even_words(
    tokens: Sequence[str],
    start: float,
    end: float,
    speaker_id: Optional[str],
) -> List[Word]:
    if end < start:
        end = start
    step = (end - start) / len(tokens) if tokens else 0.0
    words = []
    for index, token in enumerate(tokens):
        word_start = start + index * step
        word_end = start + (index + 1) * step
        words.append(Word(
            text=token,
            start_time=word_start,
            end_time=word_end if word_end >= word_start else word_start,
            speaker_id=speaker_id,
            confidence_score=HUMAN_CONFIDENCE,
        ))
    return words


class _Aligner:
    """Accumulates the output word list while regions are emitted in order."""

    def __init__(self, segment: Segment, new_tokens: List[str]) -> None:
        self.segment = segment
        self.old_words = segment.words
        self.new_tokens = new_tokens
        self.output: List[Word] = []
        # start of a deleted leading run, handed to the first emitted word
        self.pending_start: Optional[float] = None

    def emit(self, word: Word) -> None:
        if self.pending_start is not None:
            word = replace(word, start_time=min(self.pending_start, word.start_time))
            self.pending_start = None
        self.output.append(word)

    def region(self, old_start: int, old_end: int, new_start: int, new_end: int) -> None:
        tokens = self.new_tokens[new_start:new_end]
        old_run = self.old_words[old_start:old_end]

        if not tokens:
            if old_run:
                self._absorb(old_run[0].start_time, old_run[-1].end_time)
            return

        if old_run:
            region_start = old_run[0].start_time
            region_end = old_run[-1].end_time
        else:
            previous = self.old_words[old_start - 1] if old_start > 0 else None
            following = self.old_words[old_end] if old_end < len(self.old_words) else None
            region_start = previous.end_time if previous else self.segment.start_time
            region_end = following.start_time if following else self.segment.end_time

        for word in _even_words(tokens, region_start, region_end, self.segment.speaker_id):
            self.emit(word)

    def _absorb(self, freed_start: float, freed_end: float) -> None:
        if self.output:
            last = self.output[-1]
            if freed_end > last.end_time:
                self.output[-1] = replace(last, end_time=freed_end)
        elif self.pending_start is None or freed_start < self.pending_start:
            self.pending_start = freed_start

    def run(self) -> List[Word]:
        old_tokens = [w.text for w in self.old_words]
        old_index = new_index = 0
        for matched_old, matched_new in lcs_matches(old_tokens, self.new_tokens):
            self.region(old_index, matched_old, new_index, matched_new)
            self.emit(replace(self.old_words[matched_old], text=self.new_tokens[matched_new]))
            old_index = matched_old + 1
            new_index = matched_new + 1
        self.region(old_index, len(self.old_words), new_index, len(self.new_tokens))
        return self.output


def align_words(segment: Segment, new_tokens: List[str]) -> List[Word]:
    """Compute the word list for ``segment`` re-tokenized as ``new_tokens``."""
    if not segment.words or not new_tokens:
        return _even_words(new_tokens, segment.start_time, segment.end_time, segment.speaker_id)
    return _Aligner(segment, new_tokens).run()


def retime_segment(segment: Segment, new_text: str) -> Optional[Segment]:
    """Return ``segment`` with ``new_text`` and re-timed words, or None if unchanged.

    Args:
        segment: The segment being edited.
        new_text: Raw text from the editor; surrounding whitespace is ignored.

    Returns:
        A new Segment whose words tile the original time span, or None when
        the trimmed text equals the current text.
    """
    normalized = new_text.strip()
    if normalized == segment.text:
        return None

    new_tokens = tokenize(normalized)
    words = align_words(segment, new_tokens)
    logger.debug(
        "Re-timed segment %s: %d -> %d words",
        segment.id, len(segment.words), len(words),
    )
    return replace(segment, text=normalized, words=tuple(words))
