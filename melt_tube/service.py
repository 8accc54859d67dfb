"""Wires START_SUMMARY / CANCEL commands to summarization jobs."""

import asyncio
import itertools
import logging
from collections.abc import Awaitable, Callable

from .messaging import Command, CommandType, Event, MessageBus
from .settings import ConfigError, Settings, load_settings
from .sources.youtube import TranscriptUnavailable
from .summarize.client import SummaryClient
from .summarize.errors import JobCancelled, SummarizationError
from .summarize.job import JobHandle, JobState, JobStatus, SummarizationJob, require_transcript

logger = logging.getLogger(__name__)

PROGRESS_RETRIEVING = "Retrieving transcript..."

TranscriptFetcher = Callable[[str], Awaitable[str]]


class SummaryService:
    """
    Starts and cancels jobs in response to bus commands.

    Each job runs in its own asyncio task with a single top-level catch that
    turns failures into an ERROR event. Cancelled jobs emit nothing further.
    Jobs are independent; the service only tracks live handles so CANCEL
    commands can reach them.
    """

    def __init__(
        self,
        bus: MessageBus,
        client: SummaryClient,
        fetch_transcript: TranscriptFetcher | None = None,
        settings_loader: Callable[[], Settings] = load_settings,
    ) -> None:
        self.bus = bus
        self.client = client
        self._fetch_transcript = fetch_transcript
        self._load_settings = settings_loader
        self._ids = itertools.count(1)
        self._jobs: dict[int, JobHandle] = {}

        bus.register(CommandType.START_SUMMARY, self._on_start)
        bus.register(CommandType.CANCEL, self._on_cancel)

    async def _on_start(self, command: Command) -> JobHandle:
        if not command.source:
            raise ValueError("START_SUMMARY requires a source")
        return self.start_from_source(command.source)

    async def _on_cancel(self, command: Command) -> bool:
        if command.job_id is None:
            raise ValueError("CANCEL requires a job_id")
        return self.cancel(command.job_id)

    def start(self, transcript: str, settings: Settings) -> JobHandle:
        """
        Start summarizing an already fetched transcript.

        Must be called from a running event loop.

        Raises:
            EmptyTranscript: Transcript is blank
        """
        require_transcript(transcript)
        state = JobState(job_id=next(self._ids))
        return self._launch(state, lambda: self._summarize(state, transcript, settings))

    def start_from_source(self, source: str) -> JobHandle:
        """Load settings, fetch the transcript for ``source`` and summarize it."""
        if self._fetch_transcript is None:
            raise ValueError("No transcript source configured")
        fetch = self._fetch_transcript
        state = JobState(job_id=next(self._ids))

        async def pipeline() -> str:
            settings = self._load_settings()
            await self._emit(state, Event.progress(state.job_id, PROGRESS_RETRIEVING))
            transcript = await fetch(source)
            state.token.raise_if_cancelled()
            return await self._summarize(state, transcript, settings)

        return self._launch(state, pipeline)

    def cancel(self, job_id: int) -> bool:
        """Cancel a live job. Returns False if no such job is running."""
        handle = self._jobs.get(job_id)
        if handle is None:
            return False
        logger.info("Cancelling job %d", job_id)
        handle.cancel()
        return True

    def get(self, job_id: int) -> JobHandle | None:
        return self._jobs.get(job_id)

    async def _emit(self, state: JobState, event: Event) -> None:
        if not state.cancelled:
            await self.bus.emit(event)

    async def _summarize(self, state: JobState, transcript: str, settings: Settings) -> str:
        async def emit(event: Event) -> None:
            await self._emit(state, event)

        job = SummarizationJob(state, settings, self.client, emit)
        return await job.run(transcript)

    def _launch(self, state: JobState, pipeline: Callable[[], Awaitable[str]]) -> JobHandle:
        job_id = state.job_id

        async def guarded() -> str | None:
            try:
                summary = await pipeline()
            except JobCancelled:
                state.status = JobStatus.CANCELLED
                return None
            except (ConfigError, TranscriptUnavailable, SummarizationError) as e:
                logger.warning("Job %d failed: %s", job_id, e)
                return await self._fail(state, str(e))
            except Exception as e:
                logger.exception("Job %d failed unexpectedly", job_id)
                return await self._fail(state, str(e) or type(e).__name__)
            finally:
                self._jobs.pop(job_id, None)

            if state.cancelled:
                state.status = JobStatus.CANCELLED
                return None
            await self._emit(state, Event.complete(job_id, summary))
            return summary

        handle = JobHandle(state=state, task=asyncio.create_task(guarded()))
        self._jobs[job_id] = handle
        logger.info("Started job %d", job_id)
        return handle

    async def _fail(self, state: JobState, message: str) -> None:
        if state.cancelled:
            state.status = JobStatus.CANCELLED
            return None
        state.status = JobStatus.FAILED
        await self._emit(state, Event.error(state.job_id, message))
        return None
