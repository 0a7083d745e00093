"""Tests for the click command-line interface."""

import json

import pytest
from click.testing import CliRunner

import lyricsync.cli as cli_module
from lyricsync.cli import cli
from lyricsync.core.components.lyrics import LyricPolisher, LyricRecallProvider
from lyricsync.core.components.transcription import TranscriptionStrategy
from lyricsync.core.karaoke import KaraokePipeline
from lyricsync.core.serialization import save_segments_to_json
from lyricsync.exceptions import RecallError, TranscriptionError


class CannedStrategy(TranscriptionStrategy):
    name = "canned"

    def __init__(self, segments=None, error=None):
        self.segments = segments
        self.error = error
        self.requests = []

    def transcribe(self, request, events):
        self.requests.append(request)
        if self.error:
            raise self.error
        return self.segments


class NoRecall(LyricRecallProvider):
    def recall(self, artist, title, duration=None):
        raise RecallError("offline")


class NoPolish(LyricPolisher):
    def is_available(self):
        return False


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def segments_file(temp_dir, hello_world_segments):
    path = temp_dir / "segments.json"
    save_segments_to_json(str(path), hello_world_segments)
    return path


@pytest.fixture
def audio_file(temp_dir):
    path = temp_dir / "song.mp3"
    path.write_bytes(b"ID3" + b"\x00" * 128)
    return path


@pytest.fixture
def install_pipeline(monkeypatch):
    """Make ``run`` build its pipeline around the given strategy."""

    def install(strategy):
        def build(**kwargs):
            return KaraokePipeline(
                strategies=[strategy],
                recall=NoRecall(),
                polisher=NoPolish(),
                duration_probe=lambda audio: None,
                **kwargs,
            )

        monkeypatch.setattr(cli_module, "KaraokePipeline", build)
        return strategy

    return install


class TestAlignCommand:
    def test_writes_aligned_segments(self, runner, temp_dir, segments_file):
        lyrics = temp_dir / "lyrics.txt"
        lyrics.write_text("Hello World\n", encoding="utf-8")
        output = temp_dir / "aligned.json"

        result = runner.invoke(
            cli, ["align", str(segments_file), str(lyrics), "-o", str(output)], obj={}
        )

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["segments"][0]["text"] == "Hello World"
        assert [w["word"] for w in data["segments"][0]["words"]] == ["Hello", "World"]

    def test_empty_segments_fail(self, runner, temp_dir):
        empty = temp_dir / "empty.json"
        empty.write_text("[]", encoding="utf-8")
        lyrics = temp_dir / "lyrics.txt"
        lyrics.write_text("anything", encoding="utf-8")

        result = runner.invoke(cli, ["align", str(empty), str(lyrics)], obj={})

        assert result.exit_code == 1

    def test_rejects_zero_lookahead(self, runner, temp_dir, segments_file):
        lyrics = temp_dir / "lyrics.txt"
        lyrics.write_text("hello", encoding="utf-8")

        result = runner.invoke(
            cli, ["align", str(segments_file), str(lyrics), "--lookahead", "0"], obj={}
        )

        assert result.exit_code == 2


class TestRunCommand:
    def test_transcribes_to_file(
        self, runner, temp_dir, audio_file, install_pipeline, hello_world_segments
    ):
        strategy = install_pipeline(CannedStrategy(segments=hello_world_segments))
        output = temp_dir / "out.json"

        result = runner.invoke(
            cli,
            [
                "run", str(audio_file), "-o", str(output), "--no-separation",
                "--language", "en", "--quality", "fast", "--title", "Greeting",
            ],
            obj={},
        )

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["segments"][0]["text"] == "hello world"
        assert data["metadata"] == {"title": "Greeting", "artist": ""}
        assert "total_time" in data["metrics"]
        request = strategy.requests[0]
        assert request.language == "en"
        assert request.quality.value == "fast"

    def test_lyrics_file_is_aligned(
        self, runner, temp_dir, audio_file, install_pipeline, hello_world_segments
    ):
        install_pipeline(CannedStrategy(segments=hello_world_segments))
        lyrics = temp_dir / "lyrics.txt"
        lyrics.write_text("Hello World", encoding="utf-8")
        output = temp_dir / "out.json"

        result = runner.invoke(
            cli,
            ["run", str(audio_file), "-o", str(output), "--no-separation", "--lyrics-file", str(lyrics)],
            obj={},
        )

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["segments"][0]["text"] == "Hello World"
        assert data["metrics"]["alignment_score"] == 100.0

    def test_failed_transcription_still_writes_placeholder(
        self, runner, temp_dir, audio_file, install_pipeline
    ):
        install_pipeline(CannedStrategy(error=TranscriptionError("quota exceeded")))
        output = temp_dir / "out.json"

        result = runner.invoke(
            cli,
            ["run", str(audio_file), "-o", str(output), "--no-separation", "--duration", "14"],
            obj={},
        )

        assert result.exit_code == 0, result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert len(data["segments"]) == 14
        assert data["segments"][1]["start"] == 1.0

    def test_empty_audio_fails(self, runner, temp_dir, install_pipeline, hello_world_segments):
        install_pipeline(CannedStrategy(segments=hello_world_segments))
        empty = temp_dir / "empty.mp3"
        empty.write_bytes(b"")

        result = runner.invoke(cli, ["run", str(empty), "--no-separation"], obj={})

        assert result.exit_code == 1


class TestHighlightCommand:
    def test_marks_active_word(self, runner, temp_dir, display_segments):
        path = temp_dir / "display.json"
        save_segments_to_json(str(path), display_segments)

        result = runner.invoke(cli, ["highlight", str(path), "--at", "2.7"], obj={})

        assert result.exit_code == 0, result.output
        assert "active line 1" in result.output
        assert "Second [line] here" in result.output

    def test_missing_time_option(self, runner, segments_file):
        result = runner.invoke(cli, ["highlight", str(segments_file)], obj={})
        assert result.exit_code == 2


def test_version(runner):
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output
