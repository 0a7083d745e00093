"""Karaoke pipeline orchestrating separation, transcription and post-processing."""

import threading
import time
from typing import Callable, List, Optional, Sequence, Tuple

from ..config import DEFAULT_AUDIO_DURATION, ProviderSettings
from ..exceptions import AlignmentError, StaleRunError
from ..utils.logging import get_logger
from .alignment import align_lyrics_with_stats
from .components.audio import SeparatedStems, SeparationProvider, default_separator, probe_duration
from .components.lyrics import GroqLyricPolisher, LyricPolisher, LyricRecallProvider, apply_polish
from .components.lyrics.recall import default_recall
from .components.transcription import (
    PlaceholderTranscription,
    StrategyResult,
    TranscriptionEvents,
    TranscriptionRequest,
    TranscriptionStrategy,
    default_strategies,
    placeholder_segments,
)
from .metrics import MetricsRecorder
from .models import LyricSegment, LyricSource, PipelineOptions, PipelineStage
from .playback import PlaybackSync
from .state import (
    SessionState,
    SessionStore,
    advance_stage,
    fail_run,
    merge_metrics,
    set_error,
    set_model_progress,
    set_phase,
    set_queue_position,
    set_segments,
    set_stems,
)

logger = get_logger(__name__)


class RunEvents(TranscriptionEvents):
    """Store writes bound to one run's generation.

    Every write from a superseded run raises StaleRunError so the run
    unwinds without touching the new session.
    """

    def __init__(self, store: SessionStore, generation: int):
        self.store = store
        self.generation = generation

    def dispatch(self, reducer, *args) -> None:
        if not self.store.dispatch(self.generation, reducer, *args):
            raise StaleRunError(f"Run {self.generation} was superseded")

    def stage(self, stage: PipelineStage) -> None:
        self.dispatch(advance_stage, stage)

    def model_progress(self, loaded: int, total: int) -> None:
        self.dispatch(set_model_progress, loaded, total)

    def message(self, text: str) -> None:
        self.dispatch(set_phase, text)


class KaraokePipeline:
    """Runs one upload from raw audio to playback-ready segments.

    Collaborators are injected; by default the pipeline builds the Groq,
    local Whisper and placeholder strategies, Demucs (or passthrough)
    separation, LRCLib/Groq recall and Groq polishing from the
    environment.
    """

    def __init__(
        self,
        store: Optional[SessionStore] = None,
        separator: Optional[SeparationProvider] = None,
        strategies: Optional[Sequence[TranscriptionStrategy]] = None,
        recall: Optional[LyricRecallProvider] = None,
        polisher: Optional[LyricPolisher] = None,
        settings: Optional[ProviderSettings] = None,
        duration_probe: Callable[[bytes], Optional[float]] = probe_duration,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.settings = settings or ProviderSettings.from_env()
        self.store = store or SessionStore()
        self.separator = separator or default_separator()
        self.strategies: List[TranscriptionStrategy] = list(
            strategies if strategies is not None else default_strategies(self.settings)
        )
        self.recall = recall if recall is not None else default_recall(self.settings)
        self.polisher = polisher if polisher is not None else GroqLyricPolisher(self.settings)
        self.duration_probe = duration_probe
        self.clock = clock

    @property
    def state(self) -> SessionState:
        return self.store.state

    # ----------------------
    # Public API
    # ----------------------
    def run(self, audio: bytes, options: Optional[PipelineOptions] = None) -> SessionState:
        """Process ``audio`` synchronously and return the final state.

        If the run is reset or superseded midway it stops at its next store
        write and the returned state belongs to whichever run is current.
        """
        options = options or PipelineOptions()
        generation = self.store.begin_run()
        events = RunEvents(self.store, generation)
        metrics = MetricsRecorder(
            sink=lambda updates: events.dispatch(merge_metrics, updates), clock=self.clock
        )

        try:
            self._run(audio, options, events, metrics)
        except StaleRunError:
            logger.info(f"Run {generation} discarded after reset")
        return self.store.state

    def start(self, audio: bytes, options: Optional[PipelineOptions] = None) -> threading.Thread:
        """Run in a daemon thread; observe progress through the store."""
        thread = threading.Thread(
            target=self.run, args=(audio, options), name="lyricsync-pipeline", daemon=True
        )
        thread.start()
        return thread

    def reset(self) -> None:
        """Back to idle immediately; any in-flight run's results are dropped."""
        self.store.reset()

    def attach_playback(self, sync: PlaybackSync) -> PlaybackSync:
        """Stop and release ``sync`` whenever this pipeline is reset."""
        sync.bind(self.store)
        return sync

    # ----------------------
    # Stages
    # ----------------------
    def _run(
        self,
        audio: bytes,
        options: PipelineOptions,
        events: RunEvents,
        metrics: MetricsRecorder,
    ) -> None:
        if not audio:
            events.dispatch(fail_run, "No audio provided")
            return

        metrics.start_run()
        stems = self._separate(audio, events, metrics)
        duration = self._duration(audio, options)
        segments, provider, error = self._transcribe(
            stems.vocals, duration, options, events, metrics
        )
        events.dispatch(set_segments, segments, provider)

        segments = self._post_process(segments, options, duration, events, metrics)
        events.dispatch(set_segments, segments)

        if error:
            events.dispatch(set_error, error)
        metrics.finish_run()
        events.stage(PipelineStage.READY)
        logger.info(f"✅ {len(segments)} lyric segments ready ({provider})")

    def _separate(
        self, audio: bytes, events: RunEvents, metrics: MetricsRecorder
    ) -> SeparatedStems:
        def on_queue_position(position: int) -> None:
            events.dispatch(set_queue_position, position)

        def on_progress(message: str) -> None:
            events.message(message)
            if not message.startswith("Waiting"):
                events.stage(PipelineStage.SEPARATING)

        with metrics.stage("separation"):
            try:
                stems = self.separator.separate(audio, on_queue_position, on_progress)
            except StaleRunError:
                raise
            except Exception as e:
                logger.warning(f"Separation failed, using original audio: {e}")
                stems = SeparatedStems(vocals=audio, instrumental=audio)

        events.stage(PipelineStage.SEPARATING)
        events.dispatch(set_stems, stems.vocals, stems.instrumental)
        return stems

    def _duration(self, audio: bytes, options: PipelineOptions) -> Optional[float]:
        """Known track length from options or the audio itself, else None."""
        if options.duration and options.duration > 0:
            return options.duration
        return self.duration_probe(audio)

    def _local_opt_in(self, options: PipelineOptions) -> bool:
        if options.local_inference is not None:
            return options.local_inference
        return self.settings.enable_local_whisper

    def _transcribe(
        self,
        vocals: bytes,
        duration: Optional[float],
        options: PipelineOptions,
        events: RunEvents,
        metrics: MetricsRecorder,
    ) -> Tuple[List[LyricSegment], str, Optional[str]]:
        """Try strategies in order; returns ``(segments, provider, error)``.

        ``error`` is set only when real strategies failed and the run fell
        back to placeholder lyrics.
        """
        request = TranscriptionRequest(
            audio=vocals,
            language=options.language,
            quality=options.quality,
            duration=duration or DEFAULT_AUDIO_DURATION,
        )
        opt_in = self._local_opt_in(options)
        failures: List[StrategyResult] = []

        with metrics.stage("transcription"):
            for strategy in self.strategies:
                if strategy.requires_opt_in and not opt_in:
                    continue
                if not strategy.is_available():
                    logger.debug(f"Skipping unavailable strategy {strategy.name}")
                    continue
                result = strategy.attempt(request, events)
                is_placeholder = isinstance(strategy, PlaceholderTranscription)
                if result.ok:
                    error = _failure_message(failures) if is_placeholder else None
                    return result.segments, result.strategy, error
                if not is_placeholder:
                    failures.append(result)

            logger.error("All transcription strategies failed, using placeholder lyrics")
            message = _failure_message(failures) or "Transcription failed"
            return placeholder_segments(request.duration), "placeholder", message

    def _post_process(
        self,
        segments: List[LyricSegment],
        options: PipelineOptions,
        duration: Optional[float],
        events: RunEvents,
        metrics: MetricsRecorder,
    ) -> List[LyricSegment]:
        source = options.lyric_source
        if source == LyricSource.PASTE and options.pasted_lyrics.strip():
            aligned = self._align_to(segments, options.pasted_lyrics, events, metrics)
            if aligned:
                return aligned
        elif source == LyricSource.AI_RECALL or (
            source == LyricSource.AUTO and options.metadata.has_title
        ):
            aligned = self._recall_and_align(segments, options, duration, events, metrics)
            if aligned:
                return aligned

        if options.polish and self.polisher.is_available():
            return self._polish(segments, events, metrics)
        return segments

    def _align_to(
        self,
        segments: List[LyricSegment],
        clean_text: str,
        events: RunEvents,
        metrics: MetricsRecorder,
    ) -> Optional[List[LyricSegment]]:
        events.stage(PipelineStage.POLISHING)
        events.message("Aligning lyrics...")
        with metrics.stage("polishing"):
            return self._align(segments, clean_text, metrics)

    def _align(
        self, segments: List[LyricSegment], clean_text: str, metrics: MetricsRecorder
    ) -> Optional[List[LyricSegment]]:
        try:
            result = align_lyrics_with_stats(segments, clean_text)
        except AlignmentError as e:
            logger.warning(f"Alignment skipped: {e}")
            return None
        if not result.segments:
            return None
        metrics.record_alignment_score(result.score)
        logger.info(f"Alignment anchored {result.score:.0f}% of lyric words")
        return result.segments

    def _recall_and_align(
        self,
        segments: List[LyricSegment],
        options: PipelineOptions,
        duration: Optional[float],
        events: RunEvents,
        metrics: MetricsRecorder,
    ) -> Optional[List[LyricSegment]]:
        metadata = options.metadata
        if not metadata.has_title or not self.recall.is_available():
            logger.info("Lyric recall skipped: no title or no recall provider")
            return None

        events.stage(PipelineStage.POLISHING)
        events.message(f"Recalling lyrics for {metadata.title}...")
        with metrics.stage("polishing"):
            try:
                clean_text = self.recall.recall(
                    metadata.artist, metadata.title, duration=duration
                )
            except StaleRunError:
                raise
            except Exception as e:
                logger.warning(f"Lyric recall failed: {e}")
                return None
            return self._align(segments, clean_text, metrics)

    def _polish(
        self, segments: List[LyricSegment], events: RunEvents, metrics: MetricsRecorder
    ) -> List[LyricSegment]:
        events.stage(PipelineStage.POLISHING)
        events.message("Polishing lyrics...")
        with metrics.stage("polishing"):
            try:
                polished = self.polisher.polish(segments)
            except StaleRunError:
                raise
            except Exception as e:
                logger.warning(f"Polishing failed, keeping transcription: {e}")
                return segments
        merged, _ = apply_polish(segments, polished)
        return merged


def _failure_message(failures: Sequence[StrategyResult]) -> Optional[str]:
    if not failures:
        return None
    details = "; ".join(f"{f.strategy}: {f.error}" for f in failures)
    return f"Transcription failed ({details}). Showing placeholder lyrics."
