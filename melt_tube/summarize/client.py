"""Chat-completion client for chunk summaries and the final merge."""

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

import httpx

from .errors import ApiError, InvalidResponse, SummarizationError
from .prompts import (
    CHUNK_PROMPT,
    CHUNK_SYSTEM,
    FIRST_CHUNK_PROMPT,
    MERGE_PROMPT,
    MERGE_SYSTEM,
    PART_TEMPLATE,
)
from .schema import Chunk, ChunkContext, ChunkResult

if TYPE_CHECKING:
    from ..settings import Settings

logger = logging.getLogger(__name__)

# Output ceilings per call
CHUNK_MAX_TOKENS = 1000
MERGE_MAX_TOKENS = 2000

DEFAULT_TIMEOUT = 120.0


@dataclass
class HttpResponse:
    """Status and raw body of an HTTP response."""

    status: int
    body: str

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def json(self) -> Any:
        return json.loads(self.body)

    def text(self) -> str:
        return self.body


class HttpClient(Protocol):
    """Minimal HTTP capability the summary client depends on."""

    async def post(self, url: str, headers: dict[str, str], json_body: dict[str, Any]) -> HttpResponse:
        ...


class HttpxClient:
    """HttpClient backed by httpx.AsyncClient."""

    def __init__(self, client: httpx.AsyncClient | None = None, timeout: float = DEFAULT_TIMEOUT) -> None:
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def post(self, url: str, headers: dict[str, str], json_body: dict[str, Any]) -> HttpResponse:
        try:
            response = await self._client.post(url, headers=headers, json=json_body)
        except httpx.HTTPError as e:
            raise SummarizationError(f"Request to {url} failed: {e}") from e
        return HttpResponse(status=response.status_code, body=response.text)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpxClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class SummaryClient:
    """
    Stateless request builder/parser over an injected HttpClient.

    Every call selects the provider shape from the settings snapshot it is
    given, so one client can serve jobs with different endpoints.
    """

    def __init__(self, http: HttpClient) -> None:
        self._http = http

    async def _complete(
        self,
        settings: "Settings",
        system: str,
        user: str,
        max_tokens: int,
        api_error: str,
        invalid_error: str,
    ) -> str:
        shape = settings.provider
        request = shape.build_request(
            api_key=settings.api_key,
            model=settings.model,
            system=system,
            user=user,
            max_tokens=max_tokens,
        )
        logger.debug("POST %s (%s shape, max_tokens=%d)", settings.api_url, shape.value, max_tokens)

        response = await self._http.post(settings.api_url, request.headers, request.body)
        if not response.ok:
            body = response.text()
            raise ApiError(response.status, body, api_error.format(status=response.status, body=body))

        try:
            data = response.json()
        except ValueError as e:
            raise InvalidResponse(invalid_error) from e

        try:
            return shape.parse_response(data)
        except InvalidResponse as e:
            raise InvalidResponse(invalid_error) from e

    async def summarize_chunk(self, chunk: Chunk, ctx: ChunkContext, settings: "Settings") -> ChunkResult:
        """
        Summarize a single chunk.

        Raises:
            ApiError: Non-success HTTP status
            InvalidResponse: Response lacked the completion text
        """
        template = FIRST_CHUNK_PROMPT if ctx.is_first else CHUNK_PROMPT
        fields = {"chunk_number": ctx.chunk_number, "total_chunks": ctx.total_chunks}

        summary = await self._complete(
            settings,
            system=CHUNK_SYSTEM.format(**fields),
            user=template.format(chunk=chunk.text, **fields),
            max_tokens=CHUNK_MAX_TOKENS,
            api_error=f"API error for chunk {ctx.chunk_number}: {{status}} - {{body}}",
            invalid_error=f"Invalid API response for chunk {ctx.chunk_number}",
        )
        return ChunkResult.success(chunk.index, summary)

    async def merge_summaries(self, ordered_summaries: list[str], settings: "Settings") -> str:
        """Combine chunk summaries, already in presentation order, into one document."""
        parts = "\n\n".join(
            PART_TEMPLATE.format(number=i + 1, summary=summary)
            for i, summary in enumerate(ordered_summaries)
        )
        return await self._complete(
            settings,
            system=MERGE_SYSTEM,
            user=MERGE_PROMPT.format(parts=parts),
            max_tokens=MERGE_MAX_TOKENS,
            api_error="API error in combining summaries: {status}",
            invalid_error="Invalid API response when combining summaries",
        )
