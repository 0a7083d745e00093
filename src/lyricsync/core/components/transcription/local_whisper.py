"""On-device transcription with faster-whisper."""

import io
import threading
from typing import Any, Callable, Dict, List, Optional

from ....config import ProviderSettings, get_cache_dir
from ....exceptions import ProviderUnavailableError, TranscriptionError
from ....utils.logging import get_logger
from ...models import LyricSegment, PipelineStage, WordTimestamp
from .base import TranscriptionEvents, TranscriptionRequest, TranscriptionStrategy

logger = get_logger(__name__)

ProgressCallback = Callable[[int, int], None]

# Files faster-whisper needs from a CTranslate2 model repo
WHISPER_MODEL_FILES = [
    "config.json",
    "preprocessor_config.json",
    "model.bin",
    "tokenizer.json",
    "vocabulary.*",
]

# Loaded models are reused across runs, keyed by (model, device)
_MODEL_CACHE: Dict[tuple, Any] = {}
_MODEL_LOCK = threading.Lock()


def faster_whisper_installed() -> bool:
    try:
        import faster_whisper  # noqa: F401
    except ImportError:
        return False
    return True


def cuda_device_count() -> int:
    try:
        import ctranslate2  # type: ignore

        return int(ctranslate2.get_cuda_device_count())
    except Exception as e:
        logger.debug(f"CUDA probe failed: {e}")
        return 0


def whisper_repo_id(model_size: str) -> str:
    """Hugging Face repo for a faster-whisper size name, or the id itself."""
    if "/" in model_size:
        return model_size
    from faster_whisper.utils import _MODELS  # type: ignore

    if model_size not in _MODELS:
        raise TranscriptionError(
            f"Unknown Whisper model '{model_size}' (choose from {', '.join(_MODELS)})"
        )
    return _MODELS[model_size]


def progress_tqdm(on_progress: ProgressCallback):
    """A silent tqdm class that reports ``(loaded, total)`` to ``on_progress``.

    The hub counts files or bytes depending on its version; either way
    ``loaded`` only grows and ``total`` is whatever the bar was given.
    """
    from huggingface_hub.utils import tqdm as hf_tqdm

    class ProgressTqdm(hf_tqdm):
        def __init__(self, *args, **kwargs):
            kwargs["disable"] = True
            super().__init__(*args, **kwargs)
            self._loaded = kwargs.get("initial") or 0

        def _report(self, n) -> None:
            self._loaded += n or 0
            if self.total:
                on_progress(int(min(self._loaded, self.total)), int(self.total))

        def update(self, n=1):
            self._report(n)
            return super().update(n)

        def __iter__(self):
            for item in super().__iter__():
                self._report(1)
                yield item

    return ProgressTqdm


def download_whisper_model(
    model_size: str, on_progress: Optional[ProgressCallback] = None
) -> str:
    """Fetch (or reuse) the model files and return their local directory."""
    from huggingface_hub import snapshot_download

    kwargs = {}
    if on_progress is not None:
        kwargs["tqdm_class"] = progress_tqdm(on_progress)
    return snapshot_download(
        whisper_repo_id(model_size),
        allow_patterns=WHISPER_MODEL_FILES,
        cache_dir=str(get_cache_dir() / "whisper"),
        **kwargs,
    )


def _load_model(
    model_size: str, device: str, on_progress: Optional[ProgressCallback] = None
) -> Any:
    from faster_whisper import WhisperModel  # type: ignore

    key = (model_size, device)
    with _MODEL_LOCK:
        if key not in _MODEL_CACHE:
            logger.info(f"Loading Whisper model ({model_size}) on {device}...")
            model_path = download_whisper_model(model_size, on_progress)
            compute_type = "float16" if device == "cuda" else "int8"
            _MODEL_CACHE[key] = WhisperModel(model_path, device=device, compute_type=compute_type)
        return _MODEL_CACHE[key]


def segments_from_whisper(whisper_segments) -> List[LyricSegment]:
    """Convert faster-whisper segments into lyric segments, dropping blanks."""
    result = []
    for seg in whisper_segments:
        text = seg.text.strip()
        if not text:
            continue
        words = [
            WordTimestamp(word=w.word.strip(), start=float(w.start), end=float(w.end))
            for w in (seg.words or [])
            if w.word.strip()
        ]
        result.append(
            LyricSegment(text=text, start=float(seg.start), end=float(seg.end), words=words or None)
        )
    return result


class LocalWhisperStrategy(TranscriptionStrategy):
    """Runs Whisper locally when explicitly enabled and hardware allows."""

    name = "local-whisper"
    requires_opt_in = True

    def __init__(
        self,
        settings: Optional[ProviderSettings] = None,
        model_loader: Callable[[str, str, Optional[ProgressCallback]], Any] = _load_model,
        cuda_probe: Callable[[], int] = cuda_device_count,
        installed_probe: Callable[[], bool] = faster_whisper_installed,
    ):
        self.settings = settings or ProviderSettings.from_env()
        self.model_loader = model_loader
        self.cuda_probe = cuda_probe
        self.installed_probe = installed_probe

    @property
    def device(self) -> str:
        return "cuda" if self.cuda_probe() > 0 else "cpu"

    def is_available(self) -> bool:
        """Capability check only; the opt-in is decided per run by the pipeline."""
        if not self.installed_probe():
            return False
        return self.settings.allow_cpu_whisper or self.cuda_probe() > 0

    def transcribe(
        self, request: TranscriptionRequest, events: TranscriptionEvents
    ) -> List[LyricSegment]:
        if not self.is_available():
            raise ProviderUnavailableError("Local Whisper is not supported on this machine")

        events.stage(PipelineStage.MODEL_DOWNLOAD)
        model = self.model_loader(
            self.settings.local_whisper_model, self.device, events.model_progress
        )

        events.stage(PipelineStage.TRANSCRIBING)
        try:
            whisper_segments, info = model.transcribe(
                io.BytesIO(request.audio),
                language=request.language or None,
                word_timestamps=True,
                vad_filter=True,
            )
            segments = segments_from_whisper(whisper_segments)
        except Exception as e:
            raise TranscriptionError(f"Local Whisper failed: {e}") from e

        logger.info(
            f"Transcribed {len(segments)} segments locally "
            f"(language: {getattr(info, 'language', '?')})"
        )
        return segments
