"""Configuration settings for LyricSync."""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .exceptions import ConfigError

# Directories
DEFAULT_CACHE_DIR = Path.home() / ".cache" / "lyricsync"

# Alignment (can be overridden via environment variables)
ALIGNMENT_LOOKAHEAD = int(os.getenv("LYRICSYNC_ALIGNMENT_LOOKAHEAD", "15"))
ALIGNMENT_TAIL_PAD = float(os.getenv("LYRICSYNC_ALIGNMENT_TAIL_PAD", "5.0"))
FUZZY_MIN_LENGTH = 3  # substring matches only for words longer than this

# Playback highlight window
LOOK_BEHIND = 1
LOOK_AHEAD = 2
PLAYBACK_TICK_INTERVAL = 1.0 / 60.0

# Remote transcription (Groq Whisper API)
GROQ_API_BASE = os.getenv("LYRICSYNC_GROQ_API_BASE", "https://api.groq.com")
GROQ_TRANSCRIBE_PATH = "/openai/v1/audio/transcriptions"
GROQ_CHAT_PATH = "/openai/v1/chat/completions"
GROQ_MODELS = {
    "fast": "whisper-large-v3-turbo",
    "accurate": "whisper-large-v3",
}
GROQ_CHAT_MODEL = os.getenv("LYRICSYNC_GROQ_CHAT_MODEL", "llama-3.3-70b-versatile")
GROQ_MAX_FILE_SIZE = 25 * 1024 * 1024  # free tier upload limit
GROQ_TIMEOUT = int(os.getenv("LYRICSYNC_GROQ_TIMEOUT", "120"))
WORD_SEGMENT_TOLERANCE = 0.05  # seconds of slack when attaching words to segments
TEXT_ONLY_SEGMENT_DURATION = 5.0
COMPRESSED_SAMPLE_RATE = 16000

# Local transcription (faster-whisper)
LOCAL_WHISPER_MODEL = os.getenv("LYRICSYNC_LOCAL_WHISPER_MODEL", "small")

# Lyric recall
LRCLIB_BASE_URL = os.getenv("LYRICSYNC_LRCLIB_BASE_URL", "https://lrclib.net")
HTTP_TIMEOUT = 15

# Placeholder transcription
DEFAULT_AUDIO_DURATION = 60.0
PLACEHOLDER_DOWNLOAD_STEPS = 10
PLACEHOLDER_DOWNLOAD_BYTES = 50_000_000
PLACEHOLDER_STEP_DELAY = 0.2
PLACEHOLDER_TRANSCRIBE_DELAY = 1.0


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def validate_config() -> None:
    """Validate configuration values."""
    if ALIGNMENT_LOOKAHEAD <= 0:
        raise ConfigError("Alignment lookahead must be positive")

    if ALIGNMENT_TAIL_PAD < 0:
        raise ConfigError("Alignment tail pad must be non-negative")

    if LOOK_BEHIND < 0 or LOOK_AHEAD < 0:
        raise ConfigError("Invalid highlight window")

    if PLAYBACK_TICK_INTERVAL <= 0:
        raise ConfigError("Invalid playback tick interval")


def get_cache_dir() -> Path:
    """Get cache directory from environment or default."""
    cache_dir = os.getenv("LYRICSYNC_CACHE_DIR")
    if cache_dir:
        return Path(cache_dir)
    return DEFAULT_CACHE_DIR


# Validate config on import
validate_config()


@dataclass(frozen=True)
class ProviderSettings:
    """Credentials and toggles for external providers."""

    groq_api_key: str = ""
    enable_local_whisper: bool = False
    allow_cpu_whisper: bool = False
    local_whisper_model: str = LOCAL_WHISPER_MODEL

    @property
    def groq_configured(self) -> bool:
        return len(self.groq_api_key.strip()) > 0

    @classmethod
    def from_env(cls) -> "ProviderSettings":
        """Snapshot provider settings from the environment."""
        return cls(
            groq_api_key=os.getenv("GROQ_API_KEY", ""),
            enable_local_whisper=_env_flag("LYRICSYNC_ENABLE_LOCAL_WHISPER"),
            allow_cpu_whisper=_env_flag("LYRICSYNC_ALLOW_CPU_WHISPER"),
            local_whisper_model=os.getenv(
                "LYRICSYNC_LOCAL_WHISPER_MODEL", LOCAL_WHISPER_MODEL
            ),
        )


def groq_model_for(quality: Optional[str]) -> str:
    """Map a transcription quality hint to a Groq Whisper model."""
    return GROQ_MODELS.get(quality or "accurate", GROQ_MODELS["accurate"])
