"""Remote transcription through Groq's hosted Whisper models."""

import time
from typing import Any, Callable, Dict, List, Optional

import requests

from ....config import (
    GROQ_MAX_FILE_SIZE,
    GROQ_TRANSCRIBE_PATH,
    TEXT_ONLY_SEGMENT_DURATION,
    WORD_SEGMENT_TOLERANCE,
    ProviderSettings,
    groq_model_for,
)
from ....exceptions import ProviderUnavailableError, TranscriptionError
from ....utils.logging import get_logger
from ...models import LyricSegment, PipelineStage, TranscriptionQuality, WordTimestamp
from ...text_utils import split_sentences
from ..audio.audio_utils import compress_to_wav, guess_extension, mime_type_for
from ..groq_api import GroqAPI
from .base import TranscriptionEvents, TranscriptionRequest, TranscriptionStrategy

logger = get_logger(__name__)

# The remote call has no download phase; progress jumps straight to complete
REMOTE_PROGRESS_TOTAL = 100


def _size_mb(data: bytes) -> str:
    return f"{len(data) / (1024 * 1024):.1f}MB"


def parse_transcription_response(data: Dict[str, Any]) -> List[LyricSegment]:
    """Convert a ``verbose_json`` response into lyric segments.

    Words are attached to the segment whose range contains them, with a
    small tolerance. Responses with text but no segments are split into
    sentence lines of fixed duration.
    """
    segments = data.get("segments") or []
    if segments:
        all_words = data.get("words") or []
        result = []
        for seg in segments:
            text = (seg.get("text") or "").strip()
            if not text:
                continue
            start = float(seg["start"])
            end = float(seg["end"])
            words = [
                WordTimestamp(word=w["word"].strip(), start=float(w["start"]), end=float(w["end"]))
                for w in all_words
                if w["start"] >= start - WORD_SEGMENT_TOLERANCE
                and w["end"] <= end + WORD_SEGMENT_TOLERANCE
            ]
            result.append(LyricSegment(text=text, start=start, end=end, words=words or None))
        logger.debug(f"Parsed {len(result)} segments with {len(all_words)} word timestamps")
        return result

    text = (data.get("text") or "").strip()
    if text:
        logger.warning("Groq returned no segments, splitting text into lines")
        return [
            LyricSegment(
                text=line,
                start=i * TEXT_ONLY_SEGMENT_DURATION,
                end=(i + 1) * TEXT_ONLY_SEGMENT_DURATION,
            )
            for i, line in enumerate(split_sentences(text))
        ]

    raise TranscriptionError("No transcription returned from Groq")


class GroqWhisperClient(GroqAPI):
    """Uploads audio to the Groq transcription endpoint."""

    def __init__(
        self,
        api_key: str,
        session: Optional[requests.Session] = None,
        compress_fn: Callable[[bytes], bytes] = compress_to_wav,
        **kwargs: Any,
    ):
        super().__init__(api_key, session=session, **kwargs)
        self.compress_fn = compress_fn

    def prepare_upload(
        self, audio: bytes, on_progress: Optional[Callable[[str], None]] = None
    ) -> tuple:
        """Return ``(payload, filename, mime_type)`` within the upload limit.

        Oversized or uncompressed WAV input is downsampled first; if that
        fails the original bytes are sent as-is.
        """
        extension = guess_extension(audio)
        payload = audio
        filename = f"audio.{extension}"
        mime_type = mime_type_for(extension)

        if len(audio) > GROQ_MAX_FILE_SIZE or extension == "wav":
            if on_progress:
                on_progress(f"Audio is {_size_mb(audio)}, compressing to 16kHz WAV...")
            try:
                payload = self.compress_fn(audio)
                filename, mime_type = "audio.wav", "audio/wav"
                logger.info(f"Compressed: {_size_mb(audio)} -> {_size_mb(payload)}")
            except Exception as e:
                logger.warning(f"Compression failed, using original: {e}")
                payload = audio

        if len(payload) > GROQ_MAX_FILE_SIZE:
            raise TranscriptionError(
                f"Audio file too large ({_size_mb(payload)}). Groq limit is 25MB."
            )
        return payload, filename, mime_type

    def transcribe(
        self,
        audio: bytes,
        language: str = "",
        quality: TranscriptionQuality = TranscriptionQuality.ACCURATE,
        on_progress: Optional[Callable[[str], None]] = None,
    ) -> List[LyricSegment]:
        payload, filename, mime_type = self.prepare_upload(audio, on_progress)

        model = groq_model_for(quality.value)
        form = [
            ("model", model),
            ("response_format", "verbose_json"),
            ("timestamp_granularities[]", "segment"),
            ("timestamp_granularities[]", "word"),
        ]
        if language:
            form.append(("language", language))

        if on_progress:
            on_progress("Sending to Groq Whisper API...")
        logger.info(f"Uploading {_size_mb(payload)} as {filename} (model {model})")

        data = self.post(
            GROQ_TRANSCRIBE_PATH,
            error_cls=TranscriptionError,
            data=form,
            files={"file": (filename, payload, mime_type)},
        )

        if on_progress:
            on_progress("Processing transcription...")
        return parse_transcription_response(data)


class GroqTranscriptionStrategy(TranscriptionStrategy):
    """First choice in the chain whenever an API key is configured."""

    name = "groq"

    def __init__(
        self,
        settings: Optional[ProviderSettings] = None,
        client: Optional[GroqWhisperClient] = None,
    ):
        self.settings = settings or ProviderSettings.from_env()
        self._client = client

    def is_available(self) -> bool:
        return self._client is not None or self.settings.groq_configured

    @property
    def client(self) -> GroqWhisperClient:
        if self._client is None:
            if not self.settings.groq_configured:
                raise ProviderUnavailableError("GROQ_API_KEY is not configured")
            self._client = GroqWhisperClient(self.settings.groq_api_key)
        return self._client

    def transcribe(
        self, request: TranscriptionRequest, events: TranscriptionEvents
    ) -> List[LyricSegment]:
        events.stage(PipelineStage.MODEL_DOWNLOAD)
        events.model_progress(REMOTE_PROGRESS_TOTAL, REMOTE_PROGRESS_TOTAL)
        events.stage(PipelineStage.TRANSCRIBING)

        started = time.perf_counter()
        segments = self.client.transcribe(
            request.audio,
            language=request.language,
            quality=request.quality,
            on_progress=events.message,
        )
        logger.info(f"Groq transcription took {time.perf_counter() - started:.1f}s")
        return segments
