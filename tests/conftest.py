"""Test configuration and fixtures.

Provides reusable fixtures for:
- Timed lyric segments (with and without word timing)
- Fake HTTP sessions for Groq and LRCLib responses
- A session store and instant (no-sleep) providers for pipeline tests
"""

import os
import pytest
import tempfile
from pathlib import Path
from unittest.mock import MagicMock

from lyricsync.core.models import LyricSegment, WordTimestamp


def pytest_addoption(parser):
    parser.addoption(
        "--run-network",
        action="store_true",
        default=False,
        help="Run tests that require network access",
    )


def pytest_collection_modifyitems(config, items):
    run_network = config.getoption("--run-network") or os.getenv(
        "RUN_INTEGRATION_TESTS"
    ) == "1"
    if run_network:
        return

    skip_network = pytest.mark.skip(
        reason="requires network access (use --run-network or RUN_INTEGRATION_TESTS=1)"
    )
    for item in items:
        if "network" in item.keywords or "integration" in item.keywords:
            item.add_marker(skip_network)


# =============================================================================
# Basic Fixtures
# =============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


class SleepRecorder:
    """Sleep replacement that records requested delays instead of waiting."""

    def __init__(self):
        self.delays = []

    def __call__(self, seconds):
        self.delays.append(seconds)


@pytest.fixture
def no_sleep():
    return SleepRecorder()


# =============================================================================
# Segment Fixtures
# =============================================================================


def make_segment(text, start, end, words=None):
    """Build a segment; ``words`` is a list of (word, start, end) tuples."""
    timed = None
    if words is not None:
        timed = [WordTimestamp(word=w, start=s, end=e) for w, s, e in words]
    return LyricSegment(text=text, start=start, end=end, words=timed)


@pytest.fixture
def segment_factory():
    """The ``make_segment`` builder, for tests that need custom segments."""
    return make_segment


@pytest.fixture
def hello_world_segments():
    """Single noisy segment with word timing."""
    return [make_segment("hello world", 0.0, 2.0, [("hello", 0.0, 1.0), ("world", 1.0, 2.0)])]


@pytest.fixture
def chorus_segments():
    """Noisy transcription of a verse followed by a repeated chorus."""
    return [
        make_segment(
            "we will rock you",
            0.0,
            2.0,
            [("we", 0.0, 0.5), ("will", 0.5, 1.0), ("rock", 1.0, 1.5), ("you", 1.5, 2.0)],
        ),
        make_segment(
            "buddy you're a boy",
            3.0,
            5.0,
            [("buddy", 3.0, 3.5), ("you're", 3.5, 4.0), ("a", 4.0, 4.5), ("boy", 4.5, 5.0)],
        ),
        make_segment(
            "we will rock you",
            6.0,
            8.0,
            [("we", 6.0, 6.5), ("will", 6.5, 7.0), ("rock", 7.0, 7.5), ("you", 7.5, 8.0)],
        ),
    ]


@pytest.fixture
def display_segments():
    """Three lines for highlight tests; the middle one has word timing."""
    return [
        make_segment("First line", 0.0, 2.0),
        make_segment("Second line here", 2.0, 4.0, [("Second", 2.0, 2.5), ("line", 2.5, 3.0), ("here", 3.0, 4.0)]),
        make_segment("♪ ♫ ♪ (Instrumental)", 5.0, 8.0),
        make_segment("Last line", 8.0, 10.0),
    ]


# =============================================================================
# HTTP Fixtures
# =============================================================================


def make_response(status_code=200, json_data=None, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    if isinstance(json_data, Exception):
        response.json.side_effect = json_data
    else:
        response.json.return_value = json_data
    return response


@pytest.fixture
def response_factory():
    return make_response


@pytest.fixture
def fake_session():
    """requests.Session stand-in whose responses are set per test."""
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def groq_verbose_response():
    """Groq verbose_json transcription with segment and word granularity."""
    return {
        "text": " Hello world. Goodbye moon.",
        "segments": [
            {"id": 0, "text": " Hello world.", "start": 0.0, "end": 2.0},
            {"id": 1, "text": "   ", "start": 2.0, "end": 2.5},
            {"id": 2, "text": " Goodbye moon.", "start": 3.0, "end": 5.0},
        ],
        "words": [
            {"word": " Hello", "start": 0.0, "end": 0.9},
            {"word": " world", "start": 1.0, "end": 2.04},
            {"word": " Goodbye", "start": 3.0, "end": 4.0},
            {"word": " moon", "start": 4.0, "end": 5.0},
        ],
    }


@pytest.fixture
def lrc_synced_lyrics():
    """Synced LRC lyrics with metadata tags."""
    return """[ar:Queen]
[ti:Bohemian Rhapsody]

[00:00.00]Is this the real life?
[00:04.00]Is this just fantasy?
[00:08.00]Caught in a landslide
[00:11.50]No escape from reality
"""
