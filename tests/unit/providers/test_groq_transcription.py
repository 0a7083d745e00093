"""Tests for the Groq Whisper client, response parsing and strategy."""

from unittest.mock import MagicMock

import pytest
import requests

from lyricsync.config import GROQ_MAX_FILE_SIZE, ProviderSettings
from lyricsync.core.components.groq_api import GroqAPI
from lyricsync.core.components.transcription import (
    GroqTranscriptionStrategy,
    GroqWhisperClient,
    TranscriptionRequest,
    parse_transcription_response,
)
from lyricsync.core.models import PipelineStage, TranscriptionQuality
from lyricsync.exceptions import ProviderError, ProviderUnavailableError, TranscriptionError

MP3_BYTES = b"ID3" + b"\x00" * 64
WAV_BYTES = b"RIFF\x00\x00\x00\x00WAVEfmt " + b"\x00" * 64


class RecordingEvents:
    def __init__(self):
        self.calls = []

    def stage(self, stage):
        self.calls.append(("stage", stage))

    def model_progress(self, loaded, total):
        self.calls.append(("progress", loaded, total))

    def message(self, text):
        self.calls.append(("message", text))


class TestParseTranscriptionResponse:
    def test_segments_with_words(self, groq_verbose_response):
        segments = parse_transcription_response(groq_verbose_response)

        assert [s.text for s in segments] == ["Hello world.", "Goodbye moon."]
        assert [w.word for w in segments[0].words] == ["Hello", "world"]
        # 2.04 is inside the segment end tolerance
        assert segments[0].words[1].end == pytest.approx(2.04)
        assert [w.word for w in segments[1].words] == ["Goodbye", "moon"]

    def test_segments_without_words(self):
        data = {"segments": [{"text": "la la", "start": 1.0, "end": 2.0}]}

        segments = parse_transcription_response(data)

        assert segments[0].words is None
        assert (segments[0].start, segments[0].end) == (1.0, 2.0)

    def test_text_only_response_split_into_sentences(self):
        data = {"text": "Hello there. How are you? Fine!"}

        segments = parse_transcription_response(data)

        assert [s.text for s in segments] == ["Hello there", "How are you", "Fine"]
        assert [(s.start, s.end) for s in segments] == [(0.0, 5.0), (5.0, 10.0), (10.0, 15.0)]

    def test_empty_response_raises(self):
        with pytest.raises(TranscriptionError):
            parse_transcription_response({"text": "  ", "segments": []})


class TestGroqAPI:
    def test_blank_key_is_unavailable(self):
        with pytest.raises(ProviderUnavailableError):
            GroqAPI("   ")

    def test_post_sends_bearer_token(self, fake_session, response_factory):
        fake_session.post.return_value = response_factory(200, {"ok": True})
        api = GroqAPI("secret", session=fake_session, base_url="https://groq.test/")

        assert api.post("/path", json={"a": 1}) == {"ok": True}

        url = fake_session.post.call_args.args[0]
        kwargs = fake_session.post.call_args.kwargs
        assert url == "https://groq.test/path"
        assert kwargs["headers"]["Authorization"] == "Bearer secret"
        assert kwargs["json"] == {"a": 1}

    def test_http_error_includes_status_and_body(self, fake_session, response_factory):
        fake_session.post.return_value = response_factory(429, text="rate limit reached")
        api = GroqAPI("secret", session=fake_session)

        with pytest.raises(TranscriptionError, match=r"429.*rate limit"):
            api.post("/path", error_cls=TranscriptionError)

    def test_transport_errors_are_retried(self, fake_session, response_factory, no_sleep):
        fake_session.post.side_effect = [
            requests.ConnectionError("reset"),
            response_factory(200, {"ok": True}),
        ]
        api = GroqAPI("secret", session=fake_session, sleep_fn=no_sleep)

        assert api.post("/path") == {"ok": True}
        assert fake_session.post.call_count == 2
        assert len(no_sleep.delays) == 1

    def test_exhausted_retries_wrap_error(self, fake_session, no_sleep):
        fake_session.post.side_effect = requests.Timeout("slow")
        api = GroqAPI("secret", session=fake_session, max_retries=1, sleep_fn=no_sleep)

        with pytest.raises(ProviderError, match="slow"):
            api.post("/path")
        assert fake_session.post.call_count == 2

    def test_invalid_json(self, fake_session, response_factory):
        fake_session.post.return_value = response_factory(200, ValueError("bad json"))
        api = GroqAPI("secret", session=fake_session)

        with pytest.raises(ProviderError, match="invalid JSON"):
            api.post("/path")


class TestGroqWhisperClient:
    def test_upload_form(self, fake_session, response_factory, groq_verbose_response):
        fake_session.post.return_value = response_factory(200, groq_verbose_response)
        client = GroqWhisperClient("secret", session=fake_session)
        messages = []

        segments = client.transcribe(
            MP3_BYTES,
            language="en",
            quality=TranscriptionQuality.FAST,
            on_progress=messages.append,
        )

        assert len(segments) == 2
        kwargs = fake_session.post.call_args.kwargs
        form = kwargs["data"]
        assert ("model", "whisper-large-v3-turbo") in form
        assert ("response_format", "verbose_json") in form
        assert [v for k, v in form if k == "timestamp_granularities[]"] == ["segment", "word"]
        assert ("language", "en") in form
        assert kwargs["files"]["file"] == ("audio.mp3", MP3_BYTES, "audio/mpeg")
        assert "Sending to Groq Whisper API..." in messages

    def test_auto_language_omits_field(self, fake_session, response_factory, groq_verbose_response):
        fake_session.post.return_value = response_factory(200, groq_verbose_response)
        client = GroqWhisperClient("secret", session=fake_session)

        client.transcribe(MP3_BYTES)

        form = fake_session.post.call_args.kwargs["data"]
        assert all(key != "language" for key, _ in form)
        assert ("model", "whisper-large-v3") in form

    def test_api_error_is_transcription_error(self, fake_session, response_factory):
        fake_session.post.return_value = response_factory(401, text="invalid api key")
        client = GroqWhisperClient("secret", session=fake_session)

        with pytest.raises(TranscriptionError, match="401"):
            client.transcribe(MP3_BYTES)

    def test_wav_is_compressed_before_upload(self):
        compress = MagicMock(return_value=b"small")
        client = GroqWhisperClient("secret", session=MagicMock(), compress_fn=compress)

        payload, filename, mime = client.prepare_upload(WAV_BYTES)

        compress.assert_called_once_with(WAV_BYTES)
        assert (payload, filename, mime) == (b"small", "audio.wav", "audio/wav")

    def test_small_compressed_audio_sent_as_is(self):
        compress = MagicMock()
        client = GroqWhisperClient("secret", session=MagicMock(), compress_fn=compress)

        payload, filename, _ = client.prepare_upload(MP3_BYTES)

        compress.assert_not_called()
        assert payload == MP3_BYTES
        assert filename == "audio.mp3"

    def test_compression_failure_falls_back_to_original(self):
        compress = MagicMock(side_effect=RuntimeError("ffmpeg missing"))
        client = GroqWhisperClient("secret", session=MagicMock(), compress_fn=compress)

        payload, filename, _ = client.prepare_upload(WAV_BYTES)

        assert payload == WAV_BYTES
        assert filename == "audio.wav"

    def test_too_large_after_compression(self):
        huge = MP3_BYTES + b"\x00" * GROQ_MAX_FILE_SIZE
        client = GroqWhisperClient(
            "secret", session=MagicMock(), compress_fn=lambda audio: audio
        )

        with pytest.raises(TranscriptionError, match="too large"):
            client.prepare_upload(huge)


class TestGroqTranscriptionStrategy:
    def test_unavailable_without_key(self):
        strategy = GroqTranscriptionStrategy(settings=ProviderSettings())

        assert not strategy.is_available()
        with pytest.raises(ProviderUnavailableError):
            strategy.client

    def test_available_with_key(self):
        assert GroqTranscriptionStrategy(
            settings=ProviderSettings(groq_api_key="k")
        ).is_available()

    def test_transcribe_reports_stages(self, hello_world_segments):
        client = MagicMock()
        client.transcribe.return_value = hello_world_segments
        strategy = GroqTranscriptionStrategy(settings=ProviderSettings(), client=client)
        events = RecordingEvents()
        request = TranscriptionRequest(audio=b"audio", language="fr")

        segments = strategy.transcribe(request, events)

        assert segments == hello_world_segments
        assert events.calls == [
            ("stage", PipelineStage.MODEL_DOWNLOAD),
            ("progress", 100, 100),
            ("stage", PipelineStage.TRANSCRIBING),
        ]
        assert client.transcribe.call_args.kwargs["language"] == "fr"
        assert client.transcribe.call_args.kwargs["on_progress"] == events.message

    def test_attempt_folds_failure_into_result(self):
        client = MagicMock()
        client.transcribe.side_effect = TranscriptionError("quota")
        strategy = GroqTranscriptionStrategy(settings=ProviderSettings(), client=client)

        result = strategy.attempt(TranscriptionRequest(audio=b"audio"), RecordingEvents())

        assert not result.ok
        assert result.strategy == "groq"
        assert isinstance(result.error, TranscriptionError)

    def test_attempt_treats_empty_result_as_failure(self):
        client = MagicMock()
        client.transcribe.return_value = []
        strategy = GroqTranscriptionStrategy(settings=ProviderSettings(), client=client)

        result = strategy.attempt(TranscriptionRequest(audio=b"audio"), RecordingEvents())

        assert not result.ok
        assert "no segments" in str(result.error)
