"""Align clean, untimed lyric text to noisy speech-recognition timings.

The matcher walks the clean words in order with a cursor into the flattened
transcription. Each clean word may only look a bounded number of words ahead
of the cursor, and the cursor only moves forward. Repeated choruses therefore
anchor to the next occurrence instead of snapping back to an earlier one.
Clean words that find no anchor are given evenly paced timing between their
neighbouring anchors, so every output word ends up with a usable timestamp.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..config import ALIGNMENT_LOOKAHEAD, ALIGNMENT_TAIL_PAD
from ..exceptions import AlignmentError
from ..utils.logging import get_logger
from .models import UNRESOLVED, LyricSegment, WordTimestamp
from .text_utils import clean_lines, is_fuzzy_match, normalize_word, split_words

logger = get_logger(__name__)


@dataclass(frozen=True)
class NoisyWord:
    """A transcribed word in normalized form with its timing."""

    text: str
    start: float
    end: float


@dataclass
class AlignmentResult:
    """Aligned segments plus anchor statistics."""

    segments: List[LyricSegment]
    matched_words: int = 0
    total_words: int = 0
    # Flattened noisy index anchored by each clean word, or None
    matched_indices: List[Optional[int]] = field(default_factory=list)

    @property
    def score(self) -> float:
        """Percentage of clean words that found an anchor."""
        if self.total_words == 0:
            return 0.0
        return self.matched_words / self.total_words * 100.0


def flatten_noisy_words(segments: Sequence[LyricSegment]) -> List[NoisyWord]:
    """Flatten transcribed segments into one timeline of normalized words.

    Word-level timestamps are used when a segment has them. Otherwise the
    segment duration is shared between its words in proportion to their
    character length, starting at the segment start.
    """
    noisy: List[NoisyWord] = []
    for seg in segments:
        if seg.words:
            for w in seg.words:
                noisy.append(NoisyWord(normalize_word(w.word), w.start, w.end))
            continue

        tokens = split_words(seg.text)
        total_chars = sum(len(t) for t in tokens)
        if total_chars == 0:
            continue
        char_duration = (seg.end - seg.start) / total_chars
        cursor = seg.start
        for token in tokens:
            duration = len(token) * char_duration
            noisy.append(NoisyWord(normalize_word(token), cursor, cursor + duration))
            cursor += duration
    return noisy


def match_words(
    clean_words: Sequence[str],
    noisy_words: Sequence[NoisyWord],
    lookahead: int = ALIGNMENT_LOOKAHEAD,
) -> List[Optional[int]]:
    """Greedy forward scan from normalized clean words to noisy indices.

    Returns one entry per clean word: the index of the anchoring noisy word,
    or None. Matched indices are strictly increasing.
    """
    matches: List[Optional[int]] = []
    cursor = 0
    for clean in clean_words:
        found: Optional[int] = None
        limit = min(cursor + lookahead, len(noisy_words))
        for idx in range(cursor, limit):
            if is_fuzzy_match(clean, noisy_words[idx].text):
                found = idx
                break
        matches.append(found)
        if found is not None:
            cursor = found + 1
    return matches


def interpolate_timings(
    timings: Sequence[Tuple[float, float]],
    lead_in: float,
    tail_end: float,
) -> List[Tuple[float, float]]:
    """Fill unresolved ``(start, end)`` pairs between anchors.

    Each run of unresolved entries shares the gap between the previous
    word's end (``lead_in`` for a leading run) and the next anchor's start
    (``tail_end`` for a trailing run) evenly, chained end to start.
    """
    result = list(timings)
    n = len(result)
    i = 0
    while i < n:
        if result[i][0] != UNRESOLVED:
            i += 1
            continue

        run_end = i
        while run_end < n and result[run_end][0] == UNRESOLVED:
            run_end += 1

        prev_end = result[i - 1][1] if i > 0 else lead_in
        next_start = result[run_end][0] if run_end < n else tail_end
        gap = max(next_start - prev_end, 0.0)
        step = gap / (run_end - i)

        cursor = prev_end
        for k in range(i, run_end):
            result[k] = (cursor, cursor + step)
            cursor += step
        i = run_end
    return result


def align_lyrics_with_stats(
    noisy_segments: Sequence[LyricSegment],
    clean_text: str,
    *,
    lookahead: int = ALIGNMENT_LOOKAHEAD,
    tail_pad: float = ALIGNMENT_TAIL_PAD,
) -> AlignmentResult:
    """Align clean lyric lines to noisy timed segments.

    Args:
        noisy_segments: Transcribed segments in time order (non-empty)
        clean_text: Lyric text, one line per newline
        lookahead: How many noisy words past the cursor a clean word may match
        tail_pad: Seconds added after the last noisy word for trailing words

    Returns:
        AlignmentResult with one segment per non-blank clean line

    Raises:
        AlignmentError: If there are no noisy segments to take timing from
    """
    if not noisy_segments:
        raise AlignmentError("Cannot align lyrics without timed segments")

    lines = clean_lines(clean_text)
    if not lines:
        return AlignmentResult(segments=[])

    noisy_words = flatten_noisy_words(noisy_segments)

    # Arena of clean words; line_spans maps each line to its slice
    clean_tokens: List[str] = []
    line_spans: List[Tuple[str, int, int]] = []
    for line in lines:
        tokens = split_words(line)
        if not tokens:
            continue
        begin = len(clean_tokens)
        clean_tokens.extend(tokens)
        line_spans.append((line.strip(), begin, len(clean_tokens)))

    matches = match_words(
        [normalize_word(t) for t in clean_tokens], noisy_words, lookahead
    )
    timings = [
        (noisy_words[m].start, noisy_words[m].end)
        if m is not None
        else (UNRESOLVED, UNRESOLVED)
        for m in matches
    ]

    lead_in = noisy_segments[0].start
    if noisy_words:
        tail_end = noisy_words[-1].end + tail_pad
    else:
        tail_end = noisy_segments[-1].end + tail_pad
    timings = interpolate_timings(timings, lead_in, tail_end)

    segments: List[LyricSegment] = []
    for text, begin, end in line_spans:
        words = [
            WordTimestamp(word=clean_tokens[k], start=timings[k][0], end=timings[k][1])
            for k in range(begin, end)
        ]
        segments.append(
            LyricSegment(
                text=text, start=words[0].start, end=words[-1].end, words=tuple(words)
            )
        )

    matched = sum(1 for m in matches if m is not None)
    logger.debug(
        f"Aligned {len(segments)} lines: {matched}/{len(clean_tokens)} words anchored"
    )
    return AlignmentResult(
        segments=segments,
        matched_words=matched,
        total_words=len(clean_tokens),
        matched_indices=matches,
    )


def align_lyrics(
    noisy_segments: Sequence[LyricSegment],
    clean_text: str,
    *,
    lookahead: int = ALIGNMENT_LOOKAHEAD,
    tail_pad: float = ALIGNMENT_TAIL_PAD,
) -> List[LyricSegment]:
    """Align clean lyric lines to noisy timed segments; see align_lyrics_with_stats."""
    return align_lyrics_with_stats(
        noisy_segments, clean_text, lookahead=lookahead, tail_pad=tail_pad
    ).segments
