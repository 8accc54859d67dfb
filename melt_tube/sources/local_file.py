"""Local file transcript loading."""

from dataclasses import dataclass
from pathlib import Path

from .youtube import TranscriptUnavailable


@dataclass
class LocalTranscriptResult:
    """Result of local file load."""

    text: str
    file_path: Path
    title: str


def load_local_transcript(file_path: Path, title: str | None = None) -> LocalTranscriptResult:
    """
    Load transcript from local text file.

    Raises:
        TranscriptUnavailable: Missing file, wrong extension or empty content
    """
    if not file_path.exists():
        raise TranscriptUnavailable(f"File not found: {file_path}")

    if file_path.suffix != ".txt":
        raise TranscriptUnavailable(f"Expected .txt file, got: {file_path.suffix}")

    text = file_path.read_text(encoding="utf-8")
    if not text.strip():
        raise TranscriptUnavailable(f"Transcript file is empty: {file_path}")

    return LocalTranscriptResult(
        text=text,
        file_path=file_path,
        title=title or file_path.stem,
    )
