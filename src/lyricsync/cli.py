"""Command-line interface using Click."""

import json
import sys
from pathlib import Path

import click

from . import __version__
from .config import ALIGNMENT_LOOKAHEAD, ProviderSettings
from .exceptions import LyricSyncError
from .core.alignment import align_lyrics_with_stats
from .core.highlight import WordState, resolve_highlight
from .core.karaoke import KaraokePipeline
from .core.models import (
    LyricSource,
    PipelineOptions,
    SongMetadata,
    TranscriptionQuality,
)
from .core.serialization import (
    load_segments_from_json,
    save_segments_to_json,
    segments_to_json,
)
from .core.components.audio import PassthroughSeparator, no_wait
from .core.text_utils import format_time
from .utils.logging import setup_logging


def _fail(ctx, e: Exception) -> None:
    logger = ctx.obj['logger']
    if isinstance(e, LyricSyncError):
        logger.error(f"❌ {e}")
    else:
        logger.error(f"❌ Unexpected error: {e}")
        if ctx.obj.get('verbose'):
            import traceback
            traceback.print_exc()
    sys.exit(1)


def _emit_segments(segments, output, metadata=None, metrics=None) -> None:
    if output:
        save_segments_to_json(output, segments, metadata=metadata, metrics=metrics)
    else:
        click.echo(json.dumps(segments_to_json(segments), indent=2, ensure_ascii=False))


@click.group()
@click.version_option(version=__version__)
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.option('--log-file', type=click.Path(), help='Log to file')
@click.pass_context
def cli(ctx, verbose, log_file):
    """LyricSync - Time-synchronized karaoke lyrics from audio."""
    ctx.ensure_object(dict)
    logger = setup_logging(
        level="DEBUG" if verbose else "INFO",
        log_file=Path(log_file) if log_file else None,
        verbose=verbose
    )
    ctx.obj['logger'] = logger
    ctx.obj['verbose'] = verbose


@cli.command()
@click.argument('segments_file', type=click.Path(exists=True, dir_okay=False))
@click.argument('lyrics_file', type=click.Path(exists=True, dir_okay=False))
@click.option('-o', '--output', type=click.Path(), help='Write aligned segments to this JSON file')
@click.option('--lookahead', type=click.IntRange(min=1), default=ALIGNMENT_LOOKAHEAD,
              show_default=True, help='Noisy words searched past the cursor per clean word')
@click.pass_context
def align(ctx, segments_file, lyrics_file, output, lookahead):
    """Align clean LYRICS_FILE text to timed SEGMENTS_FILE JSON."""
    logger = ctx.obj['logger']
    try:
        noisy, metadata = load_segments_from_json(segments_file)
        clean_text = Path(lyrics_file).read_text(encoding="utf-8")
        result = align_lyrics_with_stats(noisy, clean_text, lookahead=lookahead)
        logger.info(
            f"Anchored {result.matched_words}/{result.total_words} words "
            f"({result.score:.0f}%)"
        )
        _emit_segments(result.segments, output, metadata=metadata)
    except Exception as e:
        _fail(ctx, e)


@cli.command()
@click.argument('audio_file', type=click.Path(exists=True, dir_okay=False))
@click.option('-o', '--output', type=click.Path(), help='Write segments to this JSON file')
@click.option('--language', default='', help='ISO 639-1 language hint (default: auto-detect)')
@click.option('--quality', type=click.Choice([q.value for q in TranscriptionQuality]),
              default=TranscriptionQuality.ACCURATE.value, show_default=True)
@click.option('--lyrics-source', type=click.Choice([s.value for s in LyricSource]),
              default=LyricSource.AUTO.value, show_default=True)
@click.option('--lyrics-file', type=click.Path(exists=True, dir_okay=False),
              help='Clean lyrics to align (implies --lyrics-source paste)')
@click.option('--title', default='', help='Song title for lyric recall')
@click.option('--artist', default='', help='Artist for lyric recall')
@click.option('--polish', is_flag=True, help='Correct transcription text with an LLM')
@click.option('--local/--no-local', 'local_inference', default=None,
              help='Allow on-device Whisper (default: LYRICSYNC_ENABLE_LOCAL_WHISPER)')
@click.option('--duration', type=float, default=None, help='Known audio duration in seconds')
@click.option('--no-separation', is_flag=True, help='Skip vocal separation')
@click.pass_context
def run(ctx, audio_file, output, language, quality, lyrics_source, lyrics_file, title,
        artist, polish, local_inference, duration, no_separation):
    """Transcribe AUDIO_FILE into timed lyric segments."""
    logger = ctx.obj['logger']
    try:
        pasted = ''
        if lyrics_file:
            pasted = Path(lyrics_file).read_text(encoding="utf-8")
            lyrics_source = LyricSource.PASTE.value

        metadata = SongMetadata(title=title, artist=artist)
        options = PipelineOptions(
            language=language,
            quality=TranscriptionQuality(quality),
            lyric_source=LyricSource(lyrics_source),
            pasted_lyrics=pasted,
            metadata=metadata,
            polish=polish,
            duration=duration,
            local_inference=local_inference,
        )
        pipeline = KaraokePipeline(
            separator=PassthroughSeparator(sleep_fn=no_wait) if no_separation else None,
            settings=ProviderSettings.from_env(),
        )

        def report(previous, current):
            if current.stage != previous.stage:
                logger.info(f"Stage: {current.stage.value}")

        pipeline.store.subscribe(report)
        state = pipeline.run(Path(audio_file).read_bytes(), options)

        if state.error:
            logger.warning(f"⚠️  {state.error}")
        if not state.is_ready:
            raise LyricSyncError(state.error or f"Pipeline stopped at {state.stage.value}")

        logger.info(f"✅ {len(state.segments)} segments via {state.provider}")
        _emit_segments(list(state.segments), output, metadata=metadata, metrics=state.metrics)
    except Exception as e:
        _fail(ctx, e)


@cli.command()
@click.argument('segments_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--at', 'current_time', type=float, required=True, help='Playback time in seconds')
@click.pass_context
def highlight(ctx, segments_file, current_time):
    """Show which lines and words of SEGMENTS_FILE are active at a time."""
    try:
        segments, _ = load_segments_from_json(segments_file)
        frame = resolve_highlight(segments, current_time)
        click.echo(f"[{format_time(current_time)}] active line {frame.active_index}")
        for line in frame.lines:
            marker = '>' if line.is_active else ' '
            if line.word_states:
                words = segments[line.index].words
                text = ' '.join(
                    f"[{w.word}]" if state == WordState.SINGING else w.word
                    for w, state in zip(words, line.word_states)
                )
            else:
                text = line.text
            click.echo(f"{marker} {line.index:3d} {line.fill_percent:5.1f}% {text}")
    except Exception as e:
        _fail(ctx, e)


def main():
    cli(obj={})


if __name__ == '__main__':
    main()
