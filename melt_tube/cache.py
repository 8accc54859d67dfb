"""On-disk cache of fetched transcripts and merged summaries."""

import hashlib
import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class CachedTranscript:
    """Cached transcript data."""

    text: str
    source: str  # video id or file path
    title: str
    lang: str
    method: str  # "manual" | "asr" | "file"
    cached_at: str


@dataclass
class CachedSummary:
    """Cached merged summary."""

    markdown: str
    model: str
    chunk_count: int
    cached_at: str


def get_cache_key_youtube(video_id: str, lang: str) -> str:
    """Generate cache key for YouTube video."""
    return f"{video_id}_{lang}"


def get_cache_key_file(file_path: Path) -> str:
    """Generate cache key for local file based on content hash."""
    content = file_path.read_bytes()
    return hashlib.sha256(content).hexdigest()[:16]


def get_cache_dir() -> Path:
    """Get the cache directory path."""
    cache_dir = Path.home() / ".cache" / "melt-tube"
    cache_dir.mkdir(parents=True, exist_ok=True)
    return cache_dir


def _get_cache_path(cache_key: str, cache_type: str) -> Path:
    return get_cache_dir() / f"{cache_key}_{cache_type}.json"


def load_cached(cache_key: str, cache_type: str) -> dict[str, Any] | None:
    """Load cached data if it exists and is readable."""
    cache_file = _get_cache_path(cache_key, cache_type)
    if not cache_file.exists():
        return None
    try:
        return json.loads(cache_file.read_text())
    except json.JSONDecodeError:
        logger.warning("Ignoring corrupt cache file %s", cache_file)
        return None


def save_to_cache(cache_key: str, cache_type: str, data: dict[str, Any]) -> None:
    cache_file = _get_cache_path(cache_key, cache_type)
    cache_file.write_text(json.dumps(data, indent=2, ensure_ascii=False))


def load_transcript(cache_key: str) -> CachedTranscript | None:
    data = load_cached(cache_key, "transcript")
    if not data:
        return None
    try:
        return CachedTranscript(**data)
    except TypeError:
        logger.warning("Ignoring transcript cache entry with unexpected fields: %s", cache_key)
        return None


def load_summary(cache_key: str, model: str) -> CachedSummary | None:
    """
    Load a cached summary.

    Returns:
        CachedSummary if one exists for this key and was produced by ``model``
    """
    data = load_cached(cache_key, "summary")
    if not data:
        return None
    try:
        summary = CachedSummary(**data)
    except TypeError:
        return None
    if summary.model != model or not summary.markdown:
        return None
    return summary


def create_transcript_cache(
    cache_key: str,
    text: str,
    source: str,
    title: str,
    lang: str,
    method: str,
) -> CachedTranscript:
    """Create and save a transcript cache entry."""
    transcript = CachedTranscript(
        text=text,
        source=source,
        title=title,
        lang=lang,
        method=method,
        cached_at=datetime.now().isoformat(),
    )
    save_to_cache(cache_key, "transcript", asdict(transcript))
    return transcript


def create_summary_cache(cache_key: str, markdown: str, model: str, chunk_count: int) -> CachedSummary:
    """Create and save a summary cache entry."""
    summary = CachedSummary(
        markdown=markdown,
        model=model,
        chunk_count=chunk_count,
        cached_at=datetime.now().isoformat(),
    )
    save_to_cache(cache_key, "summary", asdict(summary))
    return summary


def clear_cache(cache_key: str | None = None) -> int:
    """
    Clear cache entries.

    Args:
        cache_key: If provided, clear only entries for this key.
                   If None, clear all cache.

    Returns:
        Number of files deleted
    """
    cache_dir = get_cache_dir()
    count = 0

    if cache_key:
        for suffix in ["transcript", "summary"]:
            cache_file = _get_cache_path(cache_key, suffix)
            if cache_file.exists():
                cache_file.unlink()
                count += 1
    else:
        for cache_file in cache_dir.glob("*.json"):
            cache_file.unlink()
            count += 1

    return count


def list_cached() -> list[dict[str, Any]]:
    """List all cached transcripts."""
    entries = []

    for cache_file in sorted(get_cache_dir().glob("*_transcript.json")):
        cache_key = cache_file.stem.removesuffix("_transcript")
        try:
            data = json.loads(cache_file.read_text())
        except json.JSONDecodeError:
            continue
        entries.append(
            {
                "cache_key": cache_key,
                "title": data.get("title", "Unknown"),
                "source": data.get("source", ""),
                "method": data.get("method", ""),
                "cached_at": data.get("cached_at", ""),
                "has_summary": _get_cache_path(cache_key, "summary").exists(),
            }
        )

    return entries


def get_cache_stats() -> dict[str, Any]:
    """Get cache statistics."""
    cache_dir = get_cache_dir()
    files = list(cache_dir.glob("*.json"))

    return {
        "cache_dir": str(cache_dir),
        "transcript_count": sum(1 for f in files if f.stem.endswith("_transcript")),
        "summary_count": sum(1 for f in files if f.stem.endswith("_summary")),
        "total_size_kb": sum(f.stat().st_size for f in files) / 1024,
    }
