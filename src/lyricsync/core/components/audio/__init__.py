"""Audio helpers and vocal separation."""

from .audio_utils import compress_to_wav, guess_extension, mime_type_for, probe_duration
from .separator import (
    DemucsSeparator,
    PassthroughSeparator,
    SeparatedStems,
    SeparationProvider,
    default_separator,
    no_wait,
)

__all__ = [
    "compress_to_wav",
    "guess_extension",
    "mime_type_for",
    "probe_duration",
    "DemucsSeparator",
    "PassthroughSeparator",
    "SeparatedStems",
    "SeparationProvider",
    "default_separator",
    "no_wait",
]
