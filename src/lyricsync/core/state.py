"""Session state for one karaoke session.

State is an immutable snapshot replaced by pure reducer functions. The
``SessionStore`` owns the current snapshot and tags every pipeline write
with the generation of the run that produced it; writes from a run that
has been reset or superseded are dropped.
"""

import threading
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, List, Optional, Sequence, Tuple

from ..utils.logging import get_logger
from .models import (
    STAGE_ORDER,
    LyricSegment,
    ModelProgress,
    PerformanceMetrics,
    PipelineStage,
)

logger = get_logger(__name__)

Listener = Callable[["SessionState", "SessionState"], None]


@dataclass(frozen=True)
class SessionState:
    """Snapshot of pipeline progress and its derived data."""

    stage: PipelineStage = PipelineStage.IDLE
    error: Optional[str] = None
    generation: int = 0
    queue_position: Optional[int] = None
    phase: str = ""
    model_progress: Optional[ModelProgress] = None
    vocals: Optional[bytes] = None
    instrumental: Optional[bytes] = None
    segments: Tuple[LyricSegment, ...] = ()
    metrics: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    provider: str = ""

    @property
    def is_loading(self) -> bool:
        return self.stage.is_loading

    @property
    def is_ready(self) -> bool:
        return self.stage == PipelineStage.READY


# ----------------------
# Reducers
# ----------------------
def begin_run(state: SessionState) -> SessionState:
    """Start a new run: fresh data, next generation, stage ``queued``."""
    return SessionState(stage=PipelineStage.QUEUED, generation=state.generation + 1)


def reset_state(state: SessionState) -> SessionState:
    """Drop all derived data and return to ``idle``.

    The generation still advances so in-flight results become stale.
    """
    return SessionState(generation=state.generation + 1)


def advance_stage(state: SessionState, stage: PipelineStage) -> SessionState:
    """Move forward to ``stage``; stages never move backwards within a run."""
    if state.stage == PipelineStage.ERROR or stage == state.stage:
        return state
    if stage == PipelineStage.ERROR:
        return replace(state, stage=stage)
    if STAGE_ORDER.index(stage) < STAGE_ORDER.index(state.stage):
        logger.debug(f"Ignoring backwards transition {state.stage.value} -> {stage.value}")
        return state
    updates: Dict[str, object] = {"stage": stage}
    if stage != PipelineStage.QUEUED:
        updates["queue_position"] = None
    if stage != PipelineStage.MODEL_DOWNLOAD:
        updates["model_progress"] = None
    return replace(state, **updates)


def set_queue_position(state: SessionState, position: Optional[int]) -> SessionState:
    return replace(state, queue_position=position)


def set_phase(state: SessionState, phase: str) -> SessionState:
    return replace(state, phase=phase)


def set_model_progress(state: SessionState, loaded: int, total: int) -> SessionState:
    """Record download progress; ignored outside the model-download stage."""
    if state.stage != PipelineStage.MODEL_DOWNLOAD:
        return state
    return replace(state, model_progress=ModelProgress(loaded=loaded, total=total))


def set_stems(state: SessionState, vocals: bytes, instrumental: bytes) -> SessionState:
    return replace(state, vocals=vocals, instrumental=instrumental)


def set_segments(
    state: SessionState, segments: Sequence[LyricSegment], provider: Optional[str] = None
) -> SessionState:
    updates: Dict[str, object] = {"segments": tuple(segments)}
    if provider is not None:
        updates["provider"] = provider
    return replace(state, **updates)


def set_error(state: SessionState, message: Optional[str]) -> SessionState:
    return replace(state, error=message)


def fail_run(state: SessionState, message: str) -> SessionState:
    """Terminal failure: stage ``error`` with a visible message."""
    return replace(state, stage=PipelineStage.ERROR, error=message, model_progress=None)


def merge_metrics(state: SessionState, updates: Dict[str, float]) -> SessionState:
    return replace(state, metrics=state.metrics.merged(**updates))


# ----------------------
# Store
# ----------------------
class SessionStore:
    """Thread-safe owner of the current ``SessionState``.

    Listeners receive ``(previous, current)`` after every accepted change.
    Reset hooks run synchronously inside ``reset`` to release playback
    loops and media held by the presentation layer.
    """

    def __init__(self, initial: Optional[SessionState] = None):
        self._state = initial or SessionState()
        self._lock = threading.RLock()
        self._listeners: List[Listener] = []
        self._reset_hooks: List[Callable[[], None]] = []

    @property
    def state(self) -> SessionState:
        with self._lock:
            return self._state

    @property
    def generation(self) -> int:
        return self.state.generation

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def on_reset(self, hook: Callable[[], None]) -> Callable[[], None]:
        """Register cleanup to run on every reset; returns an unregister function."""
        with self._lock:
            self._reset_hooks.append(hook)

        def unregister() -> None:
            with self._lock:
                if hook in self._reset_hooks:
                    self._reset_hooks.remove(hook)

        return unregister

    def is_current(self, generation: int) -> bool:
        return self.state.generation == generation

    def begin_run(self) -> int:
        """Start a run and return its generation tag."""
        with self._lock:
            self._apply(begin_run)
            return self._state.generation

    def dispatch(
        self, generation: int, reducer: Callable[..., SessionState], *args, **kwargs
    ) -> bool:
        """Apply ``reducer`` if ``generation`` is still current.

        Returns False, leaving state untouched, for stale writes.
        """
        with self._lock:
            if self._state.generation != generation:
                logger.debug(
                    f"Discarding stale {reducer.__name__} from run {generation} "
                    f"(current run {self._state.generation})"
                )
                return False
            self._apply(reducer, *args, **kwargs)
            return True

    def reset(self) -> None:
        """Return to ``idle`` immediately and invalidate in-flight runs."""
        with self._lock:
            hooks = list(self._reset_hooks)
            self._apply(reset_state)
        for hook in hooks:
            try:
                hook()
            except Exception as e:
                logger.warning(f"Reset hook {hook!r} failed: {e}")

    def _apply(self, reducer: Callable[..., SessionState], *args, **kwargs) -> None:
        previous = self._state
        self._state = reducer(previous, *args, **kwargs)
        if self._state is previous:
            return
        for listener in list(self._listeners):
            try:
                listener(previous, self._state)
            except Exception as e:
                logger.warning(f"State listener {listener!r} failed: {e}")
