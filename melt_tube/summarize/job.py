"""One end-to-end chunked summarization run."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from ..messaging import Event
from .chunker import chunk_text
from .client import SummaryClient
from .errors import ChunkSummaryFailed, EmptyTranscript, JobCancelled, MergeFailed
from .limiter import run_bounded
from .schema import Chunk, ChunkContext, ChunkResult, ProgressMark

if TYPE_CHECKING:
    from ..settings import Settings

logger = logging.getLogger(__name__)

PROGRESS_STARTING = "Getting summary..."
PROGRESS_CHUNKS = "Getting chunk summaries: {boxes}"
PROGRESS_MERGING = "Getting complete summary..."

Emit = Callable[[Event], Awaitable[None]]


class JobStatus(str, Enum):
    """Lifecycle of a job."""

    IDLE = "idle"
    CHUNKING = "chunking"
    SUMMARIZING = "summarizing"
    MERGING = "merging"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    FAILED = "failed"

    @property
    def terminal(self) -> bool:
        return self in (JobStatus.COMPLETE, JobStatus.CANCELLED, JobStatus.FAILED)


class CancellationToken:
    """Cooperative cancellation flag, polled at checkpoints."""

    def __init__(self) -> None:
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise JobCancelled()


@dataclass
class JobState:
    """Mutable state of one job, passed explicitly through the pipeline."""

    job_id: int
    token: CancellationToken = field(default_factory=CancellationToken)
    progress: list[ProgressMark] = field(default_factory=list)
    status: JobStatus = JobStatus.IDLE

    @property
    def cancelled(self) -> bool:
        return self.token.cancelled

    def progress_line(self) -> str:
        return "|".join(mark.glyph for mark in self.progress)


@dataclass
class JobHandle:
    """Opaque handle returned when a job is started."""

    state: JobState
    task: "asyncio.Task[str | None]"

    @property
    def job_id(self) -> int:
        return self.state.job_id

    @property
    def status(self) -> JobStatus:
        return self.state.status

    def cancel(self) -> None:
        """Request cancellation; the job stops at its next checkpoint."""
        self.state.token.cancel()

    async def wait(self) -> str | None:
        """Wait for the job; returns the merged summary, or None if it did not complete."""
        return await self.task


def require_transcript(transcript: str) -> None:
    if not transcript or not transcript.strip():
        raise EmptyTranscript()


class SummarizationJob:
    """
    Chunk, summarize in parallel, reorder and merge.

    Only PROGRESS events are emitted from here; the caller reports the final
    COMPLETE or ERROR event. Every emission is suppressed once the job's token
    is cancelled.
    """

    def __init__(self, state: JobState, settings: "Settings", client: SummaryClient, emit: Emit) -> None:
        self.state = state
        self.settings = settings
        self.client = client
        self._emit_event = emit

    async def _emit_progress(self, detail: str) -> None:
        if not self.state.cancelled:
            await self._emit_event(Event.progress(self.state.job_id, detail))

    async def _emit_boxes(self) -> None:
        await self._emit_progress(PROGRESS_CHUNKS.format(boxes=self.state.progress_line()))

    def _enter(self, status: JobStatus) -> None:
        self.state.token.raise_if_cancelled()
        logger.debug("Job %d: %s -> %s", self.state.job_id, self.state.status.value, status.value)
        self.state.status = status

    def _chunk_task(self, chunk: Chunk, ctx: ChunkContext) -> Callable[[], Awaitable[ChunkResult]]:
        token = self.state.token

        async def task() -> ChunkResult:
            token.raise_if_cancelled()
            try:
                result = await self.client.summarize_chunk(chunk, ctx, self.settings)
            except Exception as e:
                token.raise_if_cancelled()
                logger.warning("Job %d: chunk %d/%d failed: %s", self.state.job_id, ctx.chunk_number, ctx.total_chunks, e)
                self.state.progress[chunk.index] = ProgressMark.FAILED
                await self._emit_boxes()
                raise ChunkSummaryFailed(ChunkResult.failure(chunk.index, e)) from e

            token.raise_if_cancelled()
            self.state.progress[chunk.index] = ProgressMark.DONE
            await self._emit_boxes()
            return result

        return task

    async def run(self, transcript: str) -> str:
        """
        Run the pipeline to completion.

        Returns:
            The merged summary text

        Raises:
            EmptyTranscript: Transcript is blank
            ChunkSummaryFailed: Any chunk failed (the whole job is aborted)
            MergeFailed: The merge call failed
            JobCancelled: Cancellation was requested
        """
        try:
            require_transcript(transcript)
            await self._emit_progress(PROGRESS_STARTING)

            self._enter(JobStatus.CHUNKING)
            chunks = chunk_text(transcript, self.settings.chunk_size)
            self.state.progress = [ProgressMark.PENDING] * len(chunks)
            logger.info("Job %d: summarizing %d chunks", self.state.job_id, len(chunks))
            await self._emit_boxes()

            self._enter(JobStatus.SUMMARIZING)
            tasks = [
                self._chunk_task(chunk, ChunkContext(chunk.index + 1, len(chunks)))
                for chunk in chunks
            ]
            results = await run_bounded(tasks, self.settings.concurrency_limit)
            ordered = [result.summary or "" for result in sorted(results, key=lambda r: r.index)]

            self._enter(JobStatus.MERGING)
            await self._emit_progress(PROGRESS_MERGING)
            try:
                summary = await self.client.merge_summaries(ordered, self.settings)
            except Exception as e:
                self.state.token.raise_if_cancelled()
                raise MergeFailed(str(e)) from e

            self._enter(JobStatus.COMPLETE)
            logger.info("Job %d: complete (%d chars)", self.state.job_id, len(summary))
            return summary

        except JobCancelled:
            self.state.status = JobStatus.CANCELLED
            logger.info("Job %d: cancelled", self.state.job_id)
            raise
        except Exception as e:
            if self.state.cancelled:
                self.state.status = JobStatus.CANCELLED
                raise JobCancelled() from e
            self.state.status = JobStatus.FAILED
            raise
