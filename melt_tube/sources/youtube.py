"""YouTube caption transcript fetching."""

import logging
import re
from dataclasses import dataclass

from youtube_transcript_api import YouTubeTranscriptApi
from youtube_transcript_api._errors import TranscriptsDisabled

logger = logging.getLogger(__name__)

DEFAULT_LANG = "en"


@dataclass
class TranscriptResult:
    """Result of transcript fetch."""

    text: str
    video_id: str
    lang: str
    method: str  # "manual" | "asr"


class TranscriptUnavailable(Exception):
    """Raised when no transcript can be obtained."""

    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


def extract_video_id(url: str) -> str | None:
    """Extract video ID from various YouTube URL formats."""
    patterns = [
        r"(?:youtube\.com/watch\?(?:.*&)?v=|youtu\.be/|youtube\.com/embed/|youtube\.com/shorts/)([a-zA-Z0-9_-]{11})",
        r"^([a-zA-Z0-9_-]{11})$",  # bare video ID
    ]
    for pattern in patterns:
        match = re.search(pattern, url)
        if match:
            return match.group(1)
    return None


def _snippets_to_text(snippets: list) -> str:
    """Convert transcript snippets to plain text."""
    return " ".join(s.text.strip() for s in snippets if s.text and s.text.strip())


def select_track(transcripts: list, lang: str = DEFAULT_LANG):
    """
    Pick a caption track: manual in ``lang`` first, then auto-generated.

    Returns:
        The chosen transcript, or None
    """
    candidates = [t for t in transcripts if t.language_code == lang]
    for t in candidates:
        if not t.is_generated:
            return t
    for t in candidates:
        if t.is_generated:
            return t
    return None


def fetch_transcript(source: str, lang: str = DEFAULT_LANG) -> TranscriptResult:
    """
    Fetch the caption transcript of a YouTube video.

    Args:
        source: YouTube URL or bare video ID
        lang: Caption language code

    Returns:
        TranscriptResult with the joined caption text

    Raises:
        TranscriptUnavailable: No video id, no captions, no matching track or an empty track
    """
    video_id = extract_video_id(source)
    if not video_id:
        raise TranscriptUnavailable("No video ID found in the URL.")

    api = YouTubeTranscriptApi()

    try:
        transcript_list = api.list(video_id)
    except TranscriptsDisabled as e:
        raise TranscriptUnavailable(f"No captions metadata found for video {video_id}.") from e
    except Exception as e:
        raise TranscriptUnavailable(f"Failed to list captions for video {video_id}: {e}") from e

    track = select_track(list(transcript_list), lang)
    if track is None:
        raise TranscriptUnavailable("No suitable caption track found (manual or auto-generated).")

    method = "asr" if track.is_generated else "manual"
    logger.debug("Using %s caption track (%s) for %s", method, track.language_code, video_id)

    try:
        fetched = track.fetch()
    except Exception as e:
        raise TranscriptUnavailable(f"Failed to fetch the transcript: {e}") from e

    text = _snippets_to_text(fetched.snippets)
    if not text:
        raise TranscriptUnavailable("No transcript available.")

    return TranscriptResult(text=text, video_id=video_id, lang=track.language_code, method=method)
