"""Playback clock polling.

``PlaybackSync`` reads the current time from an audio clock about once per
frame while playing and hands it to ``on_tick``. Highlight state is derived
from that time by ``highlight.resolve_highlight``.
"""

import threading
import time
from typing import Callable, Optional

from ..config import PLAYBACK_TICK_INTERVAL
from ..utils.logging import get_logger

logger = get_logger(__name__)

TickCallback = Callable[[float], None]


class AudioClock:
    """Interface of the media element the loop polls."""

    current_time: float = 0.0
    duration: float = 0.0

    @property
    def paused(self) -> bool:
        raise NotImplementedError

    @property
    def ended(self) -> bool:
        raise NotImplementedError

    def play(self) -> None:
        raise NotImplementedError

    def pause(self) -> None:
        raise NotImplementedError

    def seek(self, seconds: float) -> None:
        raise NotImplementedError


class ManualClock(AudioClock):
    """In-memory clock for tests and headless playback.

    Without ``time_fn`` time only moves through ``advance`` and ``seek``.
    With ``time_fn`` (e.g. ``time.monotonic``) it also runs in real time
    while playing.
    """

    def __init__(self, duration: float = 0.0, time_fn: Optional[Callable[[], float]] = None):
        self.duration = duration
        self.time_fn = time_fn
        self._position = 0.0
        self._paused = True
        self._anchor: Optional[float] = None
        self._lock = threading.Lock()

    @property
    def current_time(self) -> float:
        with self._lock:
            position = self._position
            if self.time_fn is not None and not self._paused and self._anchor is not None:
                position += self.time_fn() - self._anchor
            if self.duration > 0:
                position = min(position, self.duration)
            return position

    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def ended(self) -> bool:
        return self.duration > 0 and self.current_time >= self.duration

    def play(self) -> None:
        with self._lock:
            if self._paused:
                self._paused = False
                self._anchor = self.time_fn() if self.time_fn else None

    def pause(self) -> None:
        position = self.current_time
        with self._lock:
            self._position = position
            self._paused = True
            self._anchor = None

    def seek(self, seconds: float) -> None:
        seconds = max(0.0, seconds)
        if self.duration > 0:
            seconds = min(seconds, self.duration)
        with self._lock:
            self._position = seconds
            if self.time_fn is not None and not self._paused:
                self._anchor = self.time_fn()

    def advance(self, seconds: float) -> None:
        self.seek(self.current_time + seconds)


class PlaybackSync:
    """Drives ``on_tick(current_time)`` from a background polling thread."""

    def __init__(
        self,
        clock: AudioClock,
        on_tick: TickCallback,
        interval: float = PLAYBACK_TICK_INTERVAL,
    ):
        if interval <= 0:
            raise ValueError("Tick interval must be positive")
        self.clock: Optional[AudioClock] = clock
        self.on_tick = on_tick
        self.interval = interval
        self._lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._stop: Optional[threading.Event] = None
        self._unbind: Optional[Callable[[], None]] = None

    @property
    def is_playing(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def play(self) -> None:
        if self.clock is None:
            raise RuntimeError("PlaybackSync is closed")
        self.clock.play()
        with self._lock:
            if self.is_playing:
                return
            stop = threading.Event()
            thread = threading.Thread(
                target=self._run_loop, args=(stop,), daemon=True, name="lyricsync-playback"
            )
            self._stop, self._thread = stop, thread
            thread.start()

    def pause(self) -> None:
        """Pause the clock and stop polling before returning."""
        if self.clock is not None:
            self.clock.pause()
        self._stop_loop()

    def toggle(self) -> None:
        if self.is_playing:
            self.pause()
        else:
            self.play()

    def seek(self, seconds: float) -> None:
        if self.clock is None:
            return
        self.clock.seek(seconds)
        self._tick()

    def bind(self, store) -> None:
        """Close this loop whenever ``store`` is reset.

        ``store`` is anything with ``on_reset(hook) -> unregister``, normally
        the session store of the pipeline whose segments are being played.
        """
        if self._unbind is not None:
            self._unbind()
        self._unbind = store.on_reset(self.close)

    def close(self) -> None:
        """Stop polling and release the clock; safe to call repeatedly."""
        self._stop_loop()
        unbind, self._unbind = self._unbind, None
        if unbind is not None:
            unbind()
        if self.clock is not None:
            try:
                self.clock.pause()
            except Exception as e:
                logger.debug(f"Clock pause on close failed: {e}")
        self.clock = None

    def _stop_loop(self) -> None:
        with self._lock:
            stop, thread = self._stop, self._thread
            self._stop = self._thread = None
        if stop is not None:
            stop.set()
        # on_tick may call pause() from the loop thread itself
        if thread is not None and thread is not threading.current_thread():
            thread.join()

    def _tick(self) -> None:
        clock = self.clock
        if clock is None:
            return
        try:
            self.on_tick(clock.current_time)
        except Exception as e:
            logger.warning(f"Playback tick handler failed: {e}")

    def _run_loop(self, stop: threading.Event) -> None:
        while not stop.is_set():
            clock = self.clock
            if clock is None:
                break
            self._tick()
            if clock.ended:
                logger.debug("Playback reached end of track")
                break
            stop.wait(self.interval)


def wall_clock(duration: float = 0.0) -> ManualClock:
    """A ManualClock that advances in real time while playing."""
    return ManualClock(duration=duration, time_fn=time.monotonic)
