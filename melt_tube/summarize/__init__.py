"""Summarization modules."""

from .chunker import chunk_text, estimate_tokens, split_sentences
from .client import CHUNK_MAX_TOKENS, MERGE_MAX_TOKENS, HttpClient, HttpResponse, HttpxClient, SummaryClient
from .errors import (
    ApiError,
    ChunkSummaryFailed,
    EmptyTranscript,
    InvalidResponse,
    JobCancelled,
    MergeFailed,
    SummarizationError,
)
from .job import CancellationToken, JobHandle, JobState, JobStatus, SummarizationJob
from .limiter import run_bounded
from .providers import ProviderShape
from .schema import Chunk, ChunkContext, ChunkResult, ProgressMark

__all__ = [
    "CHUNK_MAX_TOKENS",
    "MERGE_MAX_TOKENS",
    "ApiError",
    "CancellationToken",
    "Chunk",
    "ChunkContext",
    "ChunkResult",
    "ChunkSummaryFailed",
    "EmptyTranscript",
    "HttpClient",
    "HttpResponse",
    "HttpxClient",
    "InvalidResponse",
    "JobCancelled",
    "JobHandle",
    "JobState",
    "JobStatus",
    "MergeFailed",
    "ProgressMark",
    "ProviderShape",
    "SummarizationError",
    "SummarizationJob",
    "SummaryClient",
    "chunk_text",
    "estimate_tokens",
    "run_bounded",
    "split_sentences",
]
