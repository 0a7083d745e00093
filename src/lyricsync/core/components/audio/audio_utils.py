"""Audio byte helpers: format sniffing, duration probing and compression."""

import io
from typing import Optional

from ....config import COMPRESSED_SAMPLE_RATE
from ....utils.logging import get_logger
from ....utils.performance import timing_decorator

logger = get_logger(__name__)


def guess_extension(audio: bytes) -> str:
    """Best-effort container detection from magic bytes (defaults to mp3)."""
    head = audio[:16]
    if head.startswith(b"RIFF") and audio[8:12] == b"WAVE":
        return "wav"
    if head.startswith(b"OggS"):
        return "ogg"
    if head.startswith(b"fLaC"):
        return "flac"
    if head.startswith(b"\x1a\x45\xdf\xa3"):
        return "webm"
    if audio[4:8] == b"ftyp":
        return "m4a"
    return "mp3"


def mime_type_for(extension: str) -> str:
    return {
        "wav": "audio/wav",
        "ogg": "audio/ogg",
        "flac": "audio/flac",
        "webm": "audio/webm",
        "m4a": "audio/mp4",
    }.get(extension, "audio/mpeg")


def probe_duration(audio: bytes) -> Optional[float]:
    """Duration of encoded audio in seconds, or None if it cannot be decoded."""
    if not audio:
        return None
    try:
        from pydub import AudioSegment

        segment = AudioSegment.from_file(io.BytesIO(audio), format=guess_extension(audio))
        return len(segment) / 1000.0
    except Exception as e:
        logger.debug(f"Could not probe audio duration: {e}")
        return None


@timing_decorator
def compress_to_wav(audio: bytes, sample_rate: int = COMPRESSED_SAMPLE_RATE) -> bytes:
    """Downmix to mono and resample to 16 kHz 16-bit PCM WAV.

    Whisper resamples to 16 kHz internally, so this loses nothing the
    recogniser would have used.
    """
    from pydub import AudioSegment

    segment = AudioSegment.from_file(io.BytesIO(audio), format=guess_extension(audio))
    segment = segment.set_channels(1).set_frame_rate(sample_rate).set_sample_width(2)
    buffer = io.BytesIO()
    segment.export(buffer, format="wav")
    return buffer.getvalue()
