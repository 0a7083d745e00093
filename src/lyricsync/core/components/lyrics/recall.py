"""Lyric recall providers: fetch known clean lyrics by title and artist.

Each provider implements ``recall(artist, title, duration=None) -> str`` and
raises ``RecallError`` when it has nothing usable. ``duration`` is the track
length in seconds, a matching hint for providers that use one.
``FallbackLyricRecall`` tries providers in order.
"""

import re
from typing import List, Optional, Sequence

import requests

from ....config import HTTP_TIMEOUT, LRCLIB_BASE_URL, ProviderSettings
from ....exceptions import ProviderUnavailableError, RecallError
from ....utils.logging import get_logger
from ....utils.retry import retry_request
from ...text_utils import clean_lines
from .groq_chat import GroqChatClient

logger = get_logger(__name__)

_LRC_TS_RE = re.compile(r"^\s*(\[\d+:\d{2}(?:[.:]\d{1,3})?\])+")
_LRC_TAG_RE = re.compile(r"^\s*\[[a-zA-Z]+:.*\]\s*$")

UNKNOWN_MARKER = "UNKNOWN"


def strip_lrc_timestamps(lrc_text: str) -> str:
    """Plain text from LRC: timestamps and ``[ar:...]`` style tags removed."""
    lines = []
    for line in lrc_text.splitlines():
        if _LRC_TAG_RE.match(line):
            continue
        text = _LRC_TS_RE.sub("", line).strip()
        if text:
            lines.append(text)
    return "\n".join(lines)


class LyricRecallProvider:
    name = "recall"

    def is_available(self) -> bool:
        return True

    def recall(self, artist: str, title: str, duration: Optional[float] = None) -> str:
        raise NotImplementedError


class LrclibLyricRecall(LyricRecallProvider):
    """Looks lyrics up on lrclib.net by exact metadata."""

    name = "lrclib"

    def __init__(
        self,
        base_url: str = LRCLIB_BASE_URL,
        session: Optional[requests.Session] = None,
        duration: Optional[float] = None,
        user_agent: str = "lyricsync/0.1",
    ):
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})
        self.duration = duration

    def recall(self, artist: str, title: str, duration: Optional[float] = None) -> str:
        params = {"track_name": title, "artist_name": artist}
        duration = duration or self.duration
        if duration and duration > 0:
            params["duration"] = int(round(duration))

        try:
            r = retry_request(
                self.session.get,
                f"{self.base_url}/api/get",
                params=params,
                timeout=HTTP_TIMEOUT,
                max_retries=2,
                exceptions=(requests.ConnectionError, requests.Timeout),
            )
        except requests.RequestException as e:
            raise RecallError(f"LRCLib request failed: {e}") from e

        if r.status_code == 404:
            raise RecallError(f"LRCLib has no lyrics for {artist} - {title}")
        if r.status_code != 200:
            raise RecallError(f"LRCLib error ({r.status_code})")

        try:
            data = r.json()
        except ValueError as e:
            raise RecallError(f"LRCLib returned invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise RecallError(f"LRCLib returned unexpected payload: {type(data).__name__}")
        if data.get("instrumental"):
            raise RecallError(f"{title} is listed as instrumental")

        plain = (data.get("plainLyrics") or "").strip()
        if not plain:
            plain = strip_lrc_timestamps(data.get("syncedLyrics") or "").strip()
        if not plain:
            raise RecallError(f"LRCLib returned empty lyrics for {artist} - {title}")

        logger.info(f"Recalled {len(clean_lines(plain))} lines from LRCLib")
        return plain


RECALL_SYSTEM_PROMPT = (
    "You are a lyrics database. Reply with the complete original lyrics of the "
    "requested song, one line per lyric line, with no commentary, headings or "
    f"section labels. If you do not know the song, reply with exactly {UNKNOWN_MARKER}."
)


class GroqLyricRecall(LyricRecallProvider):
    """Asks the Groq chat model to recall lyrics from memory."""

    name = "groq-recall"

    def __init__(
        self,
        settings: Optional[ProviderSettings] = None,
        client: Optional[GroqChatClient] = None,
    ):
        self.settings = settings or ProviderSettings.from_env()
        self._client = client

    def is_available(self) -> bool:
        return self._client is not None or self.settings.groq_configured

    @property
    def client(self) -> GroqChatClient:
        if self._client is None:
            if not self.settings.groq_configured:
                raise ProviderUnavailableError("GROQ_API_KEY is not configured")
            self._client = GroqChatClient(self.settings.groq_api_key)
        return self._client

    def recall(self, artist: str, title: str, duration: Optional[float] = None) -> str:
        song = f'"{title}" by {artist}' if artist else f'"{title}"'
        content = self.client.complete(
            [
                {"role": "system", "content": RECALL_SYSTEM_PROMPT},
                {"role": "user", "content": f"Lyrics of {song}"},
            ],
            error_cls=RecallError,
        ).strip()

        if not content or content.upper().startswith(UNKNOWN_MARKER):
            raise RecallError(f"Model does not know {song}")
        return content


class FallbackLyricRecall(LyricRecallProvider):
    """First provider that returns lyrics wins."""

    name = "fallback"

    def __init__(self, providers: Sequence[LyricRecallProvider]):
        self.providers: List[LyricRecallProvider] = list(providers)

    def is_available(self) -> bool:
        return any(p.is_available() for p in self.providers)

    def recall(self, artist: str, title: str, duration: Optional[float] = None) -> str:
        errors = []
        for provider in self.providers:
            if not provider.is_available():
                continue
            try:
                return provider.recall(artist, title, duration=duration)
            except (RecallError, ProviderUnavailableError) as e:
                logger.debug(f"{provider.name} recall failed: {e}")
                errors.append(f"{provider.name}: {e}")
        raise RecallError("; ".join(errors) or "No recall provider available")


def default_recall(
    settings: Optional[ProviderSettings] = None, duration: Optional[float] = None
) -> FallbackLyricRecall:
    """LRCLib first, then Groq recall when a key is configured."""
    return FallbackLyricRecall(
        [LrclibLyricRecall(duration=duration), GroqLyricRecall(settings=settings)]
    )
