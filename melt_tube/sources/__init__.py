"""Source modules for fetching transcripts."""

from .local_file import LocalTranscriptResult, load_local_transcript
from .youtube import (
    TranscriptResult,
    TranscriptUnavailable,
    extract_video_id,
    fetch_transcript,
    select_track,
)

__all__ = [
    "LocalTranscriptResult",
    "TranscriptResult",
    "TranscriptUnavailable",
    "extract_video_id",
    "fetch_transcript",
    "load_local_transcript",
    "select_track",
]
