"""Lyric recall and polishing providers."""

from .groq_chat import GroqChatClient
from .polish import (
    GroqLyricPolisher,
    LyricPolisher,
    apply_polish,
    check_segment_integrity,
)
from .recall import (
    FallbackLyricRecall,
    GroqLyricRecall,
    LrclibLyricRecall,
    LyricRecallProvider,
    default_recall,
    strip_lrc_timestamps,
)

__all__ = [
    "GroqChatClient",
    "GroqLyricPolisher",
    "LyricPolisher",
    "apply_polish",
    "check_segment_integrity",
    "FallbackLyricRecall",
    "GroqLyricRecall",
    "LrclibLyricRecall",
    "LyricRecallProvider",
    "default_recall",
    "strip_lrc_timestamps",
]
