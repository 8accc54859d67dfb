"""Request/response wire shapes for the supported chat-completion providers."""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import InvalidResponse

ANTHROPIC_HOST = "api.anthropic.com"
ANTHROPIC_VERSION = "2023-06-01"


@dataclass(frozen=True)
class CompletionRequest:
    """A provider-specific POST body and headers."""

    headers: dict[str, str]
    body: dict[str, Any]


class ProviderShape(str, Enum):
    """Closed set of supported wire formats."""

    OPENAI = "openai"
    ANTHROPIC = "anthropic"

    @classmethod
    def from_url(cls, api_url: str) -> "ProviderShape":
        """Select the shape for an endpoint URL."""
        if ANTHROPIC_HOST in api_url:
            return cls.ANTHROPIC
        return cls.OPENAI

    def build_request(
        self,
        *,
        api_key: str,
        model: str,
        system: str,
        user: str,
        max_tokens: int,
    ) -> CompletionRequest:
        """
        Build headers and JSON body for one completion call.

        The Anthropic shape folds the system instruction into a single user
        message; the OpenAI shape sends separate system and user messages.
        """
        if self is ProviderShape.ANTHROPIC:
            return CompletionRequest(
                headers={
                    "Content-Type": "application/json",
                    "x-api-key": api_key,
                    "anthropic-version": ANTHROPIC_VERSION,
                },
                body={
                    "model": model,
                    "messages": [{"role": "user", "content": f"{system}\n\n{user}"}],
                    "max_tokens": max_tokens,
                },
            )

        return CompletionRequest(
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
            body={
                "model": model,
                "messages": [
                    {"role": "system", "content": system},
                    {"role": "user", "content": user},
                ],
                "max_tokens": max_tokens,
            },
        )

    def parse_response(self, data: Any) -> str:
        """
        Extract the completion text from a decoded JSON response.

        Raises:
            InvalidResponse: If the expected field is missing
        """
        try:
            if self is ProviderShape.ANTHROPIC:
                text = data["content"][0]["text"]
            else:
                text = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise InvalidResponse(f"Missing completion text in {self.value} response") from e

        if not isinstance(text, str):
            raise InvalidResponse(f"Completion text in {self.value} response is not a string")
        return text
