"""The pipeline facades re-export the core implementations unchanged."""

import pytest

from lyricsync import pipeline
from lyricsync.config import ProviderSettings
from lyricsync.core import alignment, highlight, karaoke, playback, serialization, state
from lyricsync.core.components import audio, lyrics, transcription


@pytest.mark.parametrize(
    "facade,name,impl",
    [
        (pipeline.alignment, "align_lyrics", alignment.align_lyrics),
        (pipeline.alignment, "align_lyrics_with_stats", alignment.align_lyrics_with_stats),
        (pipeline.audio, "PassthroughSeparator", audio.PassthroughSeparator),
        (pipeline.audio, "probe_duration", audio.probe_duration),
        (pipeline.lyrics, "apply_polish", lyrics.apply_polish),
        (pipeline.lyrics, "save_segments_to_json", serialization.save_segments_to_json),
        (pipeline.playback, "resolve_highlight", highlight.resolve_highlight),
        (pipeline.playback, "PlaybackSync", playback.PlaybackSync),
        (pipeline.transcription, "KaraokePipeline", karaoke.KaraokePipeline),
        (pipeline.transcription, "SessionStore", state.SessionStore),
        (pipeline.transcription, "default_strategies", transcription.default_strategies),
    ],
)
def test_facade_exports_core_objects(facade, name, impl):
    assert getattr(facade, name) is impl
    assert name in facade.__all__


def test_default_strategy_order():
    strategies = transcription.default_strategies(ProviderSettings())

    assert [s.name for s in strategies] == ["groq", "local-whisper", "placeholder"]
    assert [s.requires_opt_in for s in strategies] == [False, True, False]
