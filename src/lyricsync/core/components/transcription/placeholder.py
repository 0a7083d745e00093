"""Deterministic placeholder transcription.

Last strategy in the chain: it needs no credentials or hardware and always
produces lyric lines, so a run can reach ``ready`` whatever else fails.
"""

import time
from typing import Callable, List

from ....config import (
    DEFAULT_AUDIO_DURATION,
    PLACEHOLDER_DOWNLOAD_BYTES,
    PLACEHOLDER_DOWNLOAD_STEPS,
    PLACEHOLDER_STEP_DELAY,
    PLACEHOLDER_TRANSCRIBE_DELAY,
)
from ...models import LyricSegment, PipelineStage
from .base import TranscriptionEvents, TranscriptionRequest, TranscriptionStrategy

PLACEHOLDER_LYRICS = (
    "When the stars align tonight",
    "I'll be dancing in the moonlight",
    "Every heartbeat sings your name",
    "Nothing's ever gonna be the same",
    "♪ ♫ ♪ (Instrumental)",
    "Take my hand and hold on tight",
    "We'll chase the shadows through the night",
    "Like a river flowing free",
    "You and I were meant to be",
    "♪ ♫ ♪ (Instrumental)",
    "Every moment feels so right",
    "With you here by my side",
    "Let the music carry us away",
    "Into a brand new day",
)


def placeholder_segments(duration: float) -> List[LyricSegment]:
    """Spread the placeholder lines evenly across ``duration`` seconds."""
    if duration <= 0:
        duration = DEFAULT_AUDIO_DURATION
    step = duration / len(PLACEHOLDER_LYRICS)
    return [
        LyricSegment(text=text, start=i * step, end=(i + 1) * step)
        for i, text in enumerate(PLACEHOLDER_LYRICS)
    ]


class PlaceholderTranscription(TranscriptionStrategy):
    """Simulates a model download, then returns evenly spaced placeholder lines."""

    name = "placeholder"

    def __init__(
        self,
        sleep_fn: Callable[[float], None] = time.sleep,
        steps: int = PLACEHOLDER_DOWNLOAD_STEPS,
        total_bytes: int = PLACEHOLDER_DOWNLOAD_BYTES,
        step_delay: float = PLACEHOLDER_STEP_DELAY,
        transcribe_delay: float = PLACEHOLDER_TRANSCRIBE_DELAY,
    ):
        self.sleep_fn = sleep_fn
        self.steps = steps
        self.total_bytes = total_bytes
        self.step_delay = step_delay
        self.transcribe_delay = transcribe_delay

    def transcribe(
        self, request: TranscriptionRequest, events: TranscriptionEvents
    ) -> List[LyricSegment]:
        events.stage(PipelineStage.MODEL_DOWNLOAD)
        for i in range(1, self.steps + 1):
            self.sleep_fn(self.step_delay)
            events.model_progress(round(i / self.steps * self.total_bytes), self.total_bytes)

        events.stage(PipelineStage.TRANSCRIBING)
        self.sleep_fn(self.transcribe_delay)
        return placeholder_segments(request.duration or DEFAULT_AUDIO_DURATION)
