"""LLM lyric polishing with a word-count integrity check.

The model only ever sees strings. Timestamps are reattached by position
afterwards, and any segment whose timed-word count changed is reverted to
its original form.
"""

import json
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from ....config import ProviderSettings
from ....exceptions import PolishError, PolishIntegrityError, ProviderUnavailableError
from ....utils.logging import get_logger
from ...models import UNRESOLVED, LyricSegment, WordTimestamp
from .groq_chat import GroqChatClient

logger = get_logger(__name__)

POLISH_SYSTEM_PROMPT = (
    "You correct speech-recognition transcripts of song lyrics. You receive JSON "
    '{"segments": [{"text": str, "words": [str, ...]}]}. Fix spelling, '
    "capitalisation and punctuation only. Return JSON of exactly the same shape "
    "with the same number of segments and, for every segment, exactly the same "
    "number of words. Never merge, split, add or drop words."
)


class LyricPolisher:
    name = "polisher"

    def is_available(self) -> bool:
        return True

    def polish(self, segments: Sequence[LyricSegment]) -> List[LyricSegment]:
        raise NotImplementedError


def polish_payload(segments: Sequence[LyricSegment]) -> Dict[str, Any]:
    return {
        "segments": [
            {"text": seg.text, "words": [w.word for w in seg.words or ()]}
            for seg in segments
        ]
    }


def rebuild_segment(original: LyricSegment, item: Dict[str, Any]) -> LyricSegment:
    """Combine polished strings with the original segment's timings.

    A word list of a different length keeps the polished strings but with
    unresolved timings, which the integrity check then rejects.
    """
    text = str(item.get("text") or original.text).strip()
    if not original.words:
        return replace(original, text=text)

    polished_words = [str(w).strip() for w in item.get("words") or []]
    if len(polished_words) != len(original.words):
        words = [WordTimestamp(word=w, start=UNRESOLVED, end=UNRESOLVED) for w in polished_words]
    else:
        words = [
            WordTimestamp(word=new, start=old.start, end=old.end)
            for new, old in zip(polished_words, original.words)
        ]
    return LyricSegment(text=text, start=original.start, end=original.end, words=words)


class GroqLyricPolisher(LyricPolisher):
    """Polishes segment text with a Groq chat model in JSON mode."""

    name = "groq-polish"

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

    def polish(self, segments: Sequence[LyricSegment]) -> List[LyricSegment]:
        data = self.client.complete_json(
            [
                {"role": "system", "content": POLISH_SYSTEM_PROMPT},
                {"role": "user", "content": json.dumps(polish_payload(segments))},
            ],
            error_cls=PolishError,
        )
        items = data.get("segments") if isinstance(data, dict) else None
        if not isinstance(items, list):
            raise PolishError("Polish response has no segment list")
        if len(items) != len(segments):
            raise PolishError(
                f"Polish returned {len(items)} segments for {len(segments)} inputs"
            )
        return [
            rebuild_segment(original, item if isinstance(item, dict) else {})
            for original, item in zip(segments, items)
        ]


def check_segment_integrity(original: LyricSegment, polished: LyricSegment) -> LyricSegment:
    """Return the accepted form of one polished segment.

    Raises PolishIntegrityError when the timed-word count changed.
    """
    if not original.words:
        return replace(original, text=polished.text)

    if polished.word_count != original.word_count:
        raise PolishIntegrityError(
            f"word count changed from {original.word_count} to {polished.word_count}"
        )
    words = tuple(
        WordTimestamp(word=new.word, start=old.start, end=old.end)
        for new, old in zip(polished.words, original.words)
    )
    return LyricSegment(text=polished.text, start=original.start, end=original.end, words=words)


def apply_polish(
    original: Sequence[LyricSegment], polished: Sequence[LyricSegment]
) -> Tuple[List[LyricSegment], List[int]]:
    """Merge polished output into ``original``.

    Returns the merged segments and the indices that were reverted.
    Timestamps always come from ``original``.
    """
    if len(polished) != len(original):
        logger.warning(
            f"Polish returned {len(polished)} segments for {len(original)}; keeping originals"
        )
        return list(original), list(range(len(original)))

    merged: List[LyricSegment] = []
    reverted: List[int] = []
    for i, (before, after) in enumerate(zip(original, polished)):
        try:
            merged.append(check_segment_integrity(before, after))
        except PolishIntegrityError as e:
            logger.debug(f"Reverting polished segment {i}: {e}")
            merged.append(before)
            reverted.append(i)

    if reverted:
        logger.info(f"Reverted {len(reverted)} polished segment(s) with changed word counts")
    return merged, reverted
