"""Data types shared by the chunked summarization pipeline."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class Chunk:
    """A bounded-size slice of transcript text, ordered by position."""

    index: int
    text: str


@dataclass(frozen=True)
class ChunkContext:
    """Position of a chunk within its run, as shown to the model."""

    chunk_number: int  # 1-based
    total_chunks: int

    @property
    def is_first(self) -> bool:
        return self.chunk_number == 1


@dataclass(frozen=True)
class ChunkResult:
    """Outcome of summarizing one chunk."""

    index: int
    summary: str | None = None
    error: Exception | None = None

    @property
    def failed(self) -> bool:
        return self.error is not None

    @classmethod
    def success(cls, index: int, summary: str) -> "ChunkResult":
        return cls(index=index, summary=summary)

    @classmethod
    def failure(cls, index: int, error: Exception) -> "ChunkResult":
        return cls(index=index, error=error)


class ProgressMark(str, Enum):
    """Per-chunk progress state, rendered as a box glyph."""

    PENDING = "pending"
    DONE = "done"
    FAILED = "failed"

    @property
    def glyph(self) -> str:
        return PROGRESS_GLYPHS[self]


PROGRESS_GLYPHS = {
    ProgressMark.PENDING: "▯",
    ProgressMark.DONE: "▮",
    ProgressMark.FAILED: "✕",
}
