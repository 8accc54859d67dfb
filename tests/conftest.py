"""Shared fixtures and fakes."""

import inspect
import json
import re
from collections.abc import Callable
from typing import Any

import pytest

from melt_tube.settings import Settings
from melt_tube.summarize.client import MERGE_MAX_TOKENS, HttpResponse

OPENAI_URL = "https://api.openai.com/v1/chat/completions"
ANTHROPIC_URL = "https://api.anthropic.com/v1/messages"

CHUNK_NUMBER = re.compile(r"Sentence number (\d+)")


def openai_reply(text: str, status: int = 200) -> HttpResponse:
    return HttpResponse(status=status, body=json.dumps({"choices": [{"message": {"content": text}}]}))


def anthropic_reply(text: str, status: int = 200) -> HttpResponse:
    return HttpResponse(status=status, body=json.dumps({"content": [{"type": "text", "text": text}]}))


def make_transcript(n: int) -> str:
    """n sentences; with chunk_size=1 each becomes its own chunk."""
    return " ".join(f"Sentence number {i} goes here." for i in range(n))


def is_merge_call(body: dict[str, Any]) -> bool:
    return body["max_tokens"] == MERGE_MAX_TOKENS


def sentence_index(body: dict[str, Any]) -> int:
    match = CHUNK_NUMBER.search(body["messages"][-1]["content"])
    assert match is not None
    return int(match.group(1))


class FakeHttp:
    """HttpClient double that records calls and delegates to a responder."""

    def __init__(self, responder: Callable[..., Any]) -> None:
        self.responder = responder
        self.calls: list[tuple[str, dict[str, str], dict[str, Any]]] = []

    async def post(self, url: str, headers: dict[str, str], json_body: dict[str, Any]) -> HttpResponse:
        self.calls.append((url, headers, json_body))
        result = self.responder(url, headers, json_body)
        if inspect.isawaitable(result):
            result = await result
        return result

    @property
    def merge_calls(self) -> list[dict[str, Any]]:
        return [body for _, _, body in self.calls if is_merge_call(body)]


def echo_responder(url: str, headers: dict[str, str], body: dict[str, Any]) -> HttpResponse:
    """Summaries name their sentence; the merge returns a fixed document."""
    if is_merge_call(body):
        return openai_reply("# Summary\n\n- merged")
    return openai_reply(f"summary-{sentence_index(body)}")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_url=OPENAI_URL,
        api_key="sk-test",
        model="gpt-4o",
        chunk_size=1,
        concurrency_limit=3,
    )
