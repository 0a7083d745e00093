"""JSON serialization for timed lyric segments."""

import json
from typing import Any, Dict, List, Optional, Tuple

from ..exceptions import ValidationError
from .models import LyricSegment, PerformanceMetrics, SongMetadata, WordTimestamp


def segments_to_json(segments: List[LyricSegment]) -> List[dict]:
    """Convert segments into JSON-serializable dicts (``words`` omitted when absent)."""
    data: List[dict] = []
    for seg in segments:
        item: Dict[str, Any] = {"text": seg.text, "start": seg.start, "end": seg.end}
        if seg.words:
            item["words"] = [
                {"word": w.word, "start": w.start, "end": w.end} for w in seg.words
            ]
        data.append(item)
    return data


def segments_from_json(data: List[dict]) -> List[LyricSegment]:
    """Convert JSON data back into LyricSegment objects."""
    segments: List[LyricSegment] = []
    try:
        for item in data:
            words = [
                WordTimestamp(word=str(w["word"]), start=float(w["start"]), end=float(w["end"]))
                for w in item.get("words") or []
            ]
            segments.append(
                LyricSegment(
                    text=str(item["text"]),
                    start=float(item["start"]),
                    end=float(item["end"]),
                    words=words or None,
                )
            )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise ValidationError(f"Invalid segment data: {e}") from e
    return segments


def metrics_to_json(metrics: Optional[PerformanceMetrics]) -> Optional[dict]:
    if not metrics:
        return None
    return metrics.as_dict()


def metadata_to_json(metadata: Optional[SongMetadata]) -> Optional[dict]:
    if not metadata or not metadata.has_title:
        return None
    return {"title": metadata.title, "artist": metadata.artist}


def metadata_from_json(data: Optional[dict]) -> Optional[SongMetadata]:
    if not data:
        return None
    return SongMetadata(title=data.get("title") or "", artist=data.get("artist") or "")


def save_segments_to_json(
    filepath: str,
    segments: List[LyricSegment],
    metadata: Optional[SongMetadata] = None,
    metrics: Optional[PerformanceMetrics] = None,
) -> None:
    """Save segments (plus optional metadata and metrics) to a JSON file."""
    data = {
        "segments": segments_to_json(segments),
        "metadata": metadata_to_json(metadata),
        "metrics": metrics_to_json(metrics),
    }
    with open(filepath, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def load_segments_from_json(filepath: str) -> Tuple[List[LyricSegment], Optional[SongMetadata]]:
    """Load segments and metadata from a JSON file.

    Accepts either the saved object form or a bare list of segments.
    """
    with open(filepath, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, list):
        return segments_from_json(data), None
    if not isinstance(data, dict) or "segments" not in data:
        raise ValidationError(f"{filepath} does not contain lyric segments")
    return segments_from_json(data["segments"]), metadata_from_json(data.get("metadata"))
