"""Transcription strategies, in the order the pipeline tries them."""

from .base import (
    StrategyResult,
    TranscriptionEvents,
    TranscriptionRequest,
    TranscriptionStrategy,
)
from .groq import GroqTranscriptionStrategy, GroqWhisperClient, parse_transcription_response
from .local_whisper import LocalWhisperStrategy
from .placeholder import PLACEHOLDER_LYRICS, PlaceholderTranscription, placeholder_segments


def default_strategies(settings=None):
    """Groq, then local Whisper, then the placeholder."""
    return [
        GroqTranscriptionStrategy(settings=settings),
        LocalWhisperStrategy(settings=settings),
        PlaceholderTranscription(),
    ]


__all__ = [
    "StrategyResult",
    "TranscriptionEvents",
    "TranscriptionRequest",
    "TranscriptionStrategy",
    "GroqTranscriptionStrategy",
    "GroqWhisperClient",
    "parse_transcription_response",
    "LocalWhisperStrategy",
    "PLACEHOLDER_LYRICS",
    "PlaceholderTranscription",
    "placeholder_segments",
    "default_strategies",
]
