"""Playback subsystem facade: clock polling and highlight resolution."""

from ...core.highlight import HighlightFrame, resolve_highlight
from ...core.playback import ManualClock, PlaybackSync, wall_clock

__all__ = [
    "HighlightFrame",
    "resolve_highlight",
    "ManualClock",
    "PlaybackSync",
    "wall_clock",
]
