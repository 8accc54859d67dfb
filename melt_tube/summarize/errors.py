"""Exceptions raised by the summarization pipeline."""

from .schema import ChunkResult


class SummarizationError(Exception):
    """Raised when summarization fails."""


class EmptyTranscript(SummarizationError):
    """Raised when a job is started with a blank transcript."""

    def __init__(self) -> None:
        super().__init__("Transcript is empty; nothing to summarize.")


class ApiError(SummarizationError):
    """Non-success HTTP status from the completion endpoint."""

    def __init__(self, status: int, body: str, message: str | None = None) -> None:
        self.status = status
        self.body = body
        super().__init__(message or f"API error: {status} - {body}")


class InvalidResponse(SummarizationError):
    """Completion response lacked the expected payload field."""


class ChunkSummaryFailed(SummarizationError):
    """A chunk could not be summarized; aborts the whole job."""

    def __init__(self, result: ChunkResult) -> None:
        self.result = result
        super().__init__(str(result.error))


class MergeFailed(SummarizationError):
    """The final merge call failed."""


class JobCancelled(Exception):
    """
    Raised inside a job once cancellation has been requested.

    Not a SummarizationError: cancellation is silent and never reported as an
    error event.
    """
