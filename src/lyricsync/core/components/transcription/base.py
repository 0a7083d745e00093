"""Transcription strategy interface.

Strategies are tried in priority order by the pipeline. Each exposes
``is_available()`` for cheap capability checks and ``attempt()``, which
never raises for provider failures and instead returns a
``StrategyResult`` carrying either segments or the error.
"""

from dataclasses import dataclass
from typing import List, Optional

from ....exceptions import StaleRunError, TranscriptionError
from ....utils.logging import get_logger
from ...models import LyricSegment, PipelineStage, TranscriptionQuality

logger = get_logger(__name__)


@dataclass(frozen=True)
class TranscriptionRequest:
    """Audio plus hints for one transcription attempt."""

    audio: bytes
    language: str = ""
    quality: TranscriptionQuality = TranscriptionQuality.ACCURATE
    duration: Optional[float] = None


class TranscriptionEvents:
    """Notification channel from a strategy back to the pipeline.

    The default implementation ignores everything; the pipeline passes a
    run-bound subclass that forwards events into the session store.
    """

    def stage(self, stage: PipelineStage) -> None:
        pass

    def model_progress(self, loaded: int, total: int) -> None:
        pass

    def message(self, text: str) -> None:
        pass


@dataclass
class StrategyResult:
    """Outcome of ``TranscriptionStrategy.attempt``."""

    strategy: str
    segments: Optional[List[LyricSegment]] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None and bool(self.segments)


class TranscriptionStrategy:
    """Base class for a transcription path."""

    name = "base"
    # Strategies that only run when the user opts in to local inference
    requires_opt_in = False

    def is_available(self) -> bool:
        return True

    def transcribe(
        self, request: TranscriptionRequest, events: TranscriptionEvents
    ) -> List[LyricSegment]:
        raise NotImplementedError

    def attempt(
        self,
        request: TranscriptionRequest,
        events: TranscriptionEvents,
    ) -> StrategyResult:
        """Run ``transcribe`` and fold any provider failure into the result."""
        try:
            segments = self.transcribe(request, events)
        except StaleRunError:
            raise
        except Exception as e:
            logger.warning(f"{self.name} transcription failed: {e}")
            return StrategyResult(strategy=self.name, error=e)

        if not segments:
            error = TranscriptionError(f"{self.name} returned no segments")
            logger.warning(str(error))
            return StrategyResult(strategy=self.name, error=error)

        logger.info(f"✅ {self.name} returned {len(segments)} segments")
        return StrategyResult(strategy=self.name, segments=list(segments))
