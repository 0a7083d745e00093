"""
Text helpers for lyric matching and display.

Normalization here is for comparison only; callers keep the original
text for output.
"""

import math
import re
from typing import List

from ..config import FUZZY_MIN_LENGTH

_PUNCT_RE = re.compile(r"[^\w\s]|_")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?\n]+")


def normalize_word(word: str) -> str:
    """Lower-case a word and strip punctuation and underscores."""
    return _PUNCT_RE.sub("", word.lower())


def split_words(text: str) -> List[str]:
    """Split text on whitespace, dropping empty tokens."""
    return text.split()


def clean_lines(text: str) -> List[str]:
    """Return the non-blank lines of a lyric block, in order."""
    return [line for line in text.split("\n") if line.strip()]


def is_fuzzy_match(a: str, b: str, min_length: int = FUZZY_MIN_LENGTH) -> bool:
    """Compare two normalized words.

    Identical forms match. Words longer than ``min_length`` also match
    when one contains the other ("runnin" / "running"). Empty forms
    never match.
    """
    if not a or not b:
        return False
    if a == b:
        return True
    if len(a) > min_length and len(b) > min_length and (a in b or b in a):
        return True
    return False


def split_sentences(text: str) -> List[str]:
    """Split untimed transcript text into sentence-like lines."""
    return [s.strip() for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]


def is_instrumental_line(text: str) -> bool:
    return "♪" in text or "instrumental" in text.lower()


def format_time(seconds: float) -> str:
    """Format seconds as m:ss for clock display."""
    if not math.isfinite(seconds) or seconds < 0:
        seconds = 0.0
    minutes = int(seconds // 60)
    secs = int(seconds % 60)
    return f"{minutes}:{secs:02d}"
