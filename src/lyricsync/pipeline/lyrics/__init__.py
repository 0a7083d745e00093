"""Lyrics subsystem facade: recall, polishing and serialization."""

from ...core.components.lyrics import (
    FallbackLyricRecall,
    GroqLyricPolisher,
    GroqLyricRecall,
    LrclibLyricRecall,
    apply_polish,
    default_recall,
)
from ...core.serialization import load_segments_from_json, save_segments_to_json

__all__ = [
    "FallbackLyricRecall",
    "GroqLyricPolisher",
    "GroqLyricRecall",
    "LrclibLyricRecall",
    "apply_polish",
    "default_recall",
    "load_segments_from_json",
    "save_segments_to_json",
]
