"""Vocal separation providers.

``DemucsSeparator`` runs audio-separator (Demucs) locally on a temporary
copy of the upload. ``PassthroughSeparator`` returns the original audio as
both stems and is used when no separation backend is installed.
"""

import os
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from ....exceptions import ProviderUnavailableError, SeparationError
from ....utils.logging import get_logger
from .audio_utils import guess_extension

logger = get_logger(__name__)

QueueCallback = Callable[[int], None]
ProgressCallback = Callable[[str], None]

EXTRACTING_MESSAGE = "Extracting vocals and instruments..."


@dataclass(frozen=True)
class SeparatedStems:
    vocals: bytes
    instrumental: bytes


class SeparationProvider:
    """Interface: split audio into vocal and instrumental stems."""

    name = "separator"

    def is_available(self) -> bool:
        return True

    def separate(
        self,
        audio: bytes,
        on_queue_position: Optional[QueueCallback] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SeparatedStems:
        raise NotImplementedError


def mix_stems(stem_files: List[str], output_path: str) -> str:
    """Mix multiple audio stems into a single file using pydub."""
    from pydub import AudioSegment

    if not stem_files:
        raise SeparationError("No stem files to mix")

    mixed = None  # type: Optional[AudioSegment]
    for stem_file in stem_files:
        stem = AudioSegment.from_file(stem_file)
        mixed = stem if mixed is None else mixed.overlay(stem)

    if mixed is not None:
        mixed.export(output_path, format="wav")
    return output_path


def pick_stems(output_files: List[str], work_dir: str) -> tuple:
    """Find vocal and instrumental paths among separator outputs.

    When the model only emits vocals/drums/bass/other, the non-vocal stems
    are mixed into an instrumental track.
    """
    vocals_path = None
    instrumental_path = None
    for f in output_files:
        lower = os.path.basename(f).lower()
        if "no_vocals" in lower or "instrumental" in lower:
            instrumental_path = f
        elif "vocals" in lower:
            vocals_path = f

    if instrumental_path is None and vocals_path:
        non_vocal = [f for f in output_files if "vocals" not in os.path.basename(f).lower()]
        if non_vocal:
            instrumental_path = os.path.join(work_dir, "mixed_instrumental.wav")
            logger.debug(f"Mixing {len(non_vocal)} stems into instrumental track...")
            mix_stems(non_vocal, instrumental_path)

    if not vocals_path or not instrumental_path:
        raise SeparationError(f"Failed to separate tracks. Output files: {output_files}")
    return vocals_path, instrumental_path


class DemucsSeparator(SeparationProvider):
    """Local Demucs separation through the audio-separator package."""

    name = "demucs"

    def __init__(self, model_filename: str = "htdemucs_ft.yaml", shifts: int = 2):
        self.model_filename = model_filename
        self.shifts = shifts

    def is_available(self) -> bool:
        try:
            import audio_separator.separator  # noqa: F401
        except ImportError:
            return False
        return True

    def separate(
        self,
        audio: bytes,
        on_queue_position: Optional[QueueCallback] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SeparatedStems:
        if not audio:
            raise SeparationError("No audio to separate")
        if not self.is_available():
            raise ProviderUnavailableError("audio-separator is not installed")

        from audio_separator.separator import Separator

        if on_queue_position:
            on_queue_position(0)
        if on_progress:
            on_progress(EXTRACTING_MESSAGE)

        with tempfile.TemporaryDirectory(prefix="lyricsync_sep_") as work_dir:
            input_path = os.path.join(work_dir, f"upload.{guess_extension(audio)}")
            Path(input_path).write_bytes(audio)

            try:
                separator = Separator(
                    output_dir=work_dir,
                    output_format="wav",
                    demucs_params={
                        "segment_size": "Default",
                        "shifts": self.shifts,
                        "overlap": 0.25,
                        "segments_enabled": True,
                    },
                )
                separator.load_model(model_filename=self.model_filename)
                output_files = separator.separate(input_path)
            except Exception as e:
                raise SeparationError(f"Vocal separation failed: {e}") from e

            output_files = [
                f if os.path.isabs(f) else os.path.join(work_dir, f) for f in output_files
            ]
            vocals_path, instrumental_path = pick_stems(output_files, work_dir)
            logger.debug(f"Vocals: {vocals_path}")
            logger.debug(f"Instrumental: {instrumental_path}")

            return SeparatedStems(
                vocals=Path(vocals_path).read_bytes(),
                instrumental=Path(instrumental_path).read_bytes(),
            )


class PassthroughSeparator(SeparationProvider):
    """Development stand-in: walks the queue and returns the audio unchanged."""

    name = "passthrough"

    def __init__(self, sleep_fn: Callable[[float], None] = time.sleep):
        self.sleep_fn = sleep_fn

    def separate(
        self,
        audio: bytes,
        on_queue_position: Optional[QueueCallback] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> SeparatedStems:
        for position, delay in ((2, 0.8), (1, 0.6)):
            if on_queue_position:
                on_queue_position(position)
            if on_progress:
                on_progress(f"Waiting in Queue: Position {position}")
            self.sleep_fn(delay)

        if on_queue_position:
            on_queue_position(0)
        if on_progress:
            on_progress(EXTRACTING_MESSAGE)
        self.sleep_fn(1.5)
        return SeparatedStems(vocals=audio, instrumental=audio)


def no_wait(seconds: float) -> None:
    """Sleep stand-in that returns immediately."""


def default_separator(sleep_fn: Callable[[float], None] = no_wait) -> SeparationProvider:
    """Demucs when installed, otherwise the passthrough stand-in.

    The passthrough walks its queue without waiting unless a real
    ``sleep_fn`` is given (demos that want the simulated queue timing).
    """
    demucs = DemucsSeparator()
    if demucs.is_available():
        return demucs
    logger.warning(
        "audio-separator not installed (pip install lyricsync[separation]); "
        "vocals will not be isolated"
    )
    return PassthroughSeparator(sleep_fn=sleep_fn)
