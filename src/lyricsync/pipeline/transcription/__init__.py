"""Transcription subsystem facade.

Exposes the strategy chain and the orchestrating pipeline.
"""

from ...core.components.transcription import (
    GroqTranscriptionStrategy,
    LocalWhisperStrategy,
    PlaceholderTranscription,
    default_strategies,
)
from ...core.karaoke import KaraokePipeline
from ...core.state import SessionState, SessionStore

__all__ = [
    "GroqTranscriptionStrategy",
    "LocalWhisperStrategy",
    "PlaceholderTranscription",
    "default_strategies",
    "KaraokePipeline",
    "SessionState",
    "SessionStore",
]
