"""Stage timing for pipeline runs."""

import time
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, Optional

from ..utils.logging import get_logger
from ..utils.performance import PerformanceMonitor
from .models import PerformanceMetrics

logger = get_logger(__name__)

# Metric field recorded for each timed stage
STAGE_METRICS = {
    "separation": "separation_time",
    "transcription": "transcription_time",
    "polishing": "polishing_time",
}


class MetricsRecorder:
    """Accumulates stage durations for one run.

    Durations are recorded once a stage is known to have completed or
    failed; ``sink`` receives each update so the owning session can
    publish it.
    """

    def __init__(
        self,
        sink: Optional[Callable[[Dict[str, float]], None]] = None,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.sink = sink
        self.clock = clock
        self.metrics = PerformanceMetrics()
        self._run_started: Optional[float] = None

    def start_run(self) -> None:
        self.metrics = PerformanceMetrics()
        self._run_started = self.clock()

    def record(self, **updates: float) -> PerformanceMetrics:
        self.metrics = self.metrics.merged(**updates)
        if self.sink:
            self.sink(updates)
        return self.metrics

    @contextmanager
    def stage(self, name: str) -> Iterator[PerformanceMonitor]:
        """Time a block and record it under the stage's metric field."""
        field_name = STAGE_METRICS[name]
        monitor = PerformanceMonitor(name, clock=self.clock)
        try:
            with monitor:
                yield monitor
        finally:
            if monitor.elapsed_ms is not None:
                self.record(**{field_name: monitor.elapsed_ms})

    def record_alignment_score(self, score: float) -> None:
        self.record(alignment_score=score)

    def finish_run(self) -> Optional[float]:
        """Record total wall time since ``start_run``."""
        if self._run_started is None:
            return None
        total_ms = (self.clock() - self._run_started) * 1000.0
        self._run_started = None
        self.record(total_time=total_ms)
        logger.info(f"Pipeline finished in {total_ms / 1000.0:.2f}s")
        return total_ms
