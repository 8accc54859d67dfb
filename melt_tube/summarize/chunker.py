"""Sentence-preserving transcript chunking under an estimated token budget."""

import logging
import math
import re

from .schema import Chunk

logger = logging.getLogger(__name__)

# A run of non-terminators closed by one or more of .!? , or the unterminated tail
SENTENCE_PATTERN = re.compile(r"[^.!?]+[.!?]+|[^.!?]+$")

# Rough estimate: 1 token ~ 4 characters
CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Approximate token count as ceil(len / 4)."""
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def split_sentences(text: str) -> list[str]:
    """
    Split text into sentence-like units.

    Text made only of terminators (e.g. "...") yields a single unit so nothing
    is dropped.
    """
    units = SENTENCE_PATTERN.findall(text)
    if not units and text:
        return [text]
    return units


def chunk_text(text: str, max_tokens: int) -> list[Chunk]:
    """
    Split text into chunks of at most ~max_tokens estimated tokens.

    Sentences are never split. A sentence larger than the budget is placed
    alone in its own chunk. Blank chunks are never produced.

    Args:
        text: Raw transcript text
        max_tokens: Estimated token budget per chunk (required, >= 1)

    Returns:
        Chunks in original order, indexed from 0
    """
    if max_tokens < 1:
        raise ValueError(f"max_tokens must be >= 1, got {max_tokens}")

    pieces: list[str] = []
    current = ""
    current_tokens = 0

    for sentence in split_sentences(text):
        sentence_tokens = estimate_tokens(sentence)

        if current_tokens + sentence_tokens > max_tokens and current.strip():
            pieces.append(current.strip())
            current = ""
            current_tokens = 0

        current += sentence + " "
        current_tokens += sentence_tokens

    if current.strip():
        pieces.append(current.strip())

    chunks = [Chunk(index=i, text=piece) for i, piece in enumerate(pieces)]
    logger.debug("Split %d chars into %d chunks (budget %d tokens)", len(text), len(chunks), max_tokens)
    return chunks
