"""Playback highlight resolution.

Everything here is a pure function of ``(segments, current_time)`` so the
display can be re-evaluated on every clock tick, including after a seek,
without remembering earlier ticks.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

from ..config import LOOK_AHEAD, LOOK_BEHIND
from .models import LyricSegment, WordTimestamp
from .text_utils import is_instrumental_line


class WordState(str, Enum):
    SUNG = "sung"
    SINGING = "singing"
    UPCOMING = "upcoming"


@dataclass(frozen=True)
class LineHighlight:
    """Presentation state for one visible lyric line."""

    index: int
    text: str
    is_active: bool
    is_past: bool
    fill_percent: float
    word_states: Optional[Tuple[WordState, ...]] = None
    is_instrumental: bool = False


@dataclass(frozen=True)
class HighlightFrame:
    """Presentation state for a whole tick."""

    current_time: float
    active_index: int
    window: Tuple[int, int]  # half-open [start, end)
    lines: Tuple[LineHighlight, ...]


def active_segment_index(segments: Sequence[LyricSegment], current_time: float) -> int:
    """Index of the line being sung at ``current_time``.

    The first segment whose ``[start, end)`` contains the time wins. At or
    past the end of the last segment the last index is returned; any other
    miss (before the first line, or in a gap) yields 0.
    """
    for i, seg in enumerate(segments):
        if seg.start <= current_time < seg.end:
            return i
    if segments and current_time >= segments[-1].end:
        return len(segments) - 1
    return 0


def visible_window(
    active_index: int,
    count: int,
    look_behind: int = LOOK_BEHIND,
    look_ahead: int = LOOK_AHEAD,
) -> Tuple[int, int]:
    """Half-open range of line indices to render around the active line."""
    start = max(0, active_index - look_behind)
    end = min(count, active_index + look_ahead + 1)
    return start, end


def word_state(word: WordTimestamp, current_time: float) -> WordState:
    if current_time >= word.end:
        return WordState.SUNG
    if current_time >= word.start:
        return WordState.SINGING
    return WordState.UPCOMING


def word_states(segment: LyricSegment, current_time: float) -> Optional[Tuple[WordState, ...]]:
    """Per-word states, or None when the segment has no word timing."""
    if not segment.words:
        return None
    return tuple(word_state(w, current_time) for w in segment.words)


def fill_percent(start: float, end: float, current_time: float) -> float:
    """Continuous sweep (0-100) across a line without word timing."""
    if current_time >= end:
        return 100.0
    if current_time <= start or end <= start:
        return 0.0
    ratio = (current_time - start) / (end - start)
    return min(max(ratio, 0.0), 1.0) * 100.0


def resolve_highlight(
    segments: Sequence[LyricSegment],
    current_time: float,
    look_behind: int = LOOK_BEHIND,
    look_ahead: int = LOOK_AHEAD,
) -> HighlightFrame:
    """Resolve the full presentation state for one clock tick."""
    active = active_segment_index(segments, current_time)
    start, end = visible_window(active, len(segments), look_behind, look_ahead)

    lines: List[LineHighlight] = []
    for idx in range(start, end):
        seg = segments[idx]
        lines.append(
            LineHighlight(
                index=idx,
                text=seg.text,
                is_active=idx == active,
                is_past=idx < active,
                fill_percent=fill_percent(seg.start, seg.end, current_time),
                word_states=word_states(seg, current_time),
                is_instrumental=is_instrumental_line(seg.text),
            )
        )

    return HighlightFrame(
        current_time=current_time,
        active_index=active,
        window=(start, end),
        lines=tuple(lines),
    )
