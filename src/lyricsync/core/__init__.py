"""Core functionality modules.

Only the data models are imported eagerly; provider modules import their
heavier dependencies lazily so alignment and highlight code stays light.
"""

from .models import (
    LyricSegment,
    LyricSource,
    PerformanceMetrics,
    PipelineOptions,
    PipelineStage,
    SongMetadata,
    TranscriptionQuality,
    WordTimestamp,
)

__all__ = [
    "LyricSegment",
    "LyricSource",
    "PerformanceMetrics",
    "PipelineOptions",
    "PipelineStage",
    "SongMetadata",
    "TranscriptionQuality",
    "WordTimestamp",
]
