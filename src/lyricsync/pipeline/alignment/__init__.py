"""Alignment subsystem facade.

Public entrypoints for aligning clean lyric text to transcribed timings.
"""

from ...core.alignment import (
    AlignmentResult,
    align_lyrics,
    align_lyrics_with_stats,
    flatten_noisy_words,
    interpolate_timings,
    match_words,
)

__all__ = [
    "AlignmentResult",
    "align_lyrics",
    "align_lyrics_with_stats",
    "flatten_noisy_words",
    "interpolate_timings",
    "match_words",
]
