"""Data models for timed lyrics and pipeline progress."""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Sequence, Tuple

UNRESOLVED = -1.0


@dataclass(frozen=True)
class WordTimestamp:
    """A single word with timing information (seconds)."""

    word: str
    start: float
    end: float

    @property
    def is_resolved(self) -> bool:
        return self.start != UNRESOLVED and self.end != UNRESOLVED

    def validate(self) -> None:
        if self.end < self.start:
            raise ValueError("Word end must be >= start")


@dataclass(frozen=True)
class LyricSegment:
    """A contiguous timed lyric line, optionally with word-level timing."""

    text: str
    start: float
    end: float
    words: Optional[Tuple[WordTimestamp, ...]] = None

    def __post_init__(self):
        # Accept any sequence of words but store an immutable tuple
        if self.words is not None and not isinstance(self.words, tuple):
            object.__setattr__(self, "words", tuple(self.words))

    @property
    def has_word_timing(self) -> bool:
        return bool(self.words)

    @property
    def duration(self) -> float:
        return self.end - self.start

    @property
    def word_count(self) -> int:
        return len(self.words) if self.words else 0

    def with_words(self, words: Sequence[WordTimestamp]) -> "LyricSegment":
        """Return a copy whose bounds follow the first/last word."""
        words = tuple(words)
        if not words:
            return replace(self, words=None)
        return replace(self, start=words[0].start, end=words[-1].end, words=words)

    def validate(self) -> None:
        if self.end < self.start:
            raise ValueError("Segment end must be >= start")
        if self.words:
            for w in self.words:
                w.validate()
            if self.start != self.words[0].start or self.end != self.words[-1].end:
                raise ValueError("Segment bounds must match first/last word")


class PipelineStage(str, Enum):
    """Global progress of a transcription run."""

    IDLE = "idle"
    QUEUED = "queued"
    SEPARATING = "separating"
    MODEL_DOWNLOAD = "model-download"
    TRANSCRIBING = "transcribing"
    POLISHING = "polishing"
    READY = "ready"
    ERROR = "error"

    @property
    def is_loading(self) -> bool:
        return self in _LOADING_STAGES


_LOADING_STAGES = frozenset(
    {
        PipelineStage.QUEUED,
        PipelineStage.SEPARATING,
        PipelineStage.MODEL_DOWNLOAD,
        PipelineStage.TRANSCRIBING,
        PipelineStage.POLISHING,
    }
)

# Forward order used to reject backwards transitions within a run
STAGE_ORDER = (
    PipelineStage.IDLE,
    PipelineStage.QUEUED,
    PipelineStage.SEPARATING,
    PipelineStage.MODEL_DOWNLOAD,
    PipelineStage.TRANSCRIBING,
    PipelineStage.POLISHING,
    PipelineStage.READY,
)


class LyricSource(str, Enum):
    """Where clean lyric text comes from, if anywhere."""

    AUTO = "auto"
    AI_RECALL = "ai-recall"
    PASTE = "paste"


class TranscriptionQuality(str, Enum):
    FAST = "fast"
    ACCURATE = "accurate"


@dataclass(frozen=True)
class ModelProgress:
    """Bytes downloaded for a transcription model."""

    loaded: int
    total: int

    @property
    def fraction(self) -> float:
        return self.loaded / self.total if self.total > 0 else 0.0


@dataclass(frozen=True)
class SongMetadata:
    """Title/artist hints supplied with an upload."""

    title: str = ""
    artist: str = ""

    @property
    def has_title(self) -> bool:
        return bool(self.title.strip())


@dataclass(frozen=True)
class PerformanceMetrics:
    """Stage durations in milliseconds, plus the alignment anchor rate."""

    separation_time: Optional[float] = None
    transcription_time: Optional[float] = None
    polishing_time: Optional[float] = None
    alignment_score: Optional[float] = None  # 0-100% of clean words anchored
    total_time: Optional[float] = None

    def merged(self, **updates: float) -> "PerformanceMetrics":
        """Return metrics with the given fields added to existing values."""
        values = {}
        for name, value in updates.items():
            if not hasattr(self, name):
                raise AttributeError(f"Unknown metric: {name}")
            if name == "alignment_score":
                values[name] = value
                continue
            current = getattr(self, name)
            values[name] = value if current is None else current + value
        return replace(self, **values)

    def as_dict(self) -> dict:
        return {
            name: getattr(self, name)
            for name in (
                "separation_time",
                "transcription_time",
                "polishing_time",
                "alignment_score",
                "total_time",
            )
            if getattr(self, name) is not None
        }


@dataclass(frozen=True)
class PipelineOptions:
    """Per-run options chosen by the user before upload."""

    language: str = ""  # ISO 639-1 code, '' = auto-detect
    quality: TranscriptionQuality = TranscriptionQuality.ACCURATE
    lyric_source: LyricSource = LyricSource.AUTO
    pasted_lyrics: str = ""
    metadata: SongMetadata = field(default_factory=SongMetadata)
    polish: bool = False
    duration: Optional[float] = None  # seconds, when already known
    local_inference: Optional[bool] = None  # None = use LYRICSYNC_ENABLE_LOCAL_WHISPER
