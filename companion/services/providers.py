"""Completion provider implementations.

Each provider owns its request shape and maps its response schema onto
``ProviderReply``:
- OpenAICompatibleProvider: ``choices[0].message.content`` (grok, openai)
- AnthropicProvider: ``content[0].text``
- OfflineProvider: deterministic pick from a bundled response corpus
"""

import hashlib
import json
import logging
from abc import abstractmethod
from pathlib import Path
from typing import Any

import httpx

from companion.core.config import ProviderConfig
from companion.core.exceptions import ProviderFailedError
from companion.models.schemas import OFFLINE_PROVIDER, ProviderReply
from companion.services.base import BaseCompletionProvider

logger = logging.getLogger(__name__)


DEFAULT_CORPUS_PATH = Path(__file__).resolve().parent.parent / "data" / "mock_responses.json"

# Used when the corpus file is missing or unreadable
BUILTIN_RESPONSES: list[str] = [
    "Nya~ I'm all ears, tell me everything!",
    "Hehe, you always make me smile.",
]


class HttpCompletionProvider(BaseCompletionProvider):
    """Shared httpx plumbing for remote chat-completion APIs."""

    def __init__(
        self,
        name: str,
        url: str,
        api_key: str | None,
        model: str,
        max_tokens: int = 200,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.name = name
        self.url = url
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def is_available(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    @abstractmethod
    def _headers(self) -> dict[str, str]:
        ...

    @abstractmethod
    def _extract_text(self, data: Any) -> str:
        ...

    def _payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_tokens,
        }

    async def complete(self, prompt: str) -> ProviderReply:
        if not self.is_available:
            raise ProviderFailedError("Provider has no API key configured", provider=self.name)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    self.url,
                    headers=self._headers(),
                    json=self._payload(prompt),
                )
                response.raise_for_status()
                data = response.json()
        except httpx.TimeoutException as e:
            raise ProviderFailedError(f"Request timed out: {e}", provider=self.name) from e
        except httpx.HTTPStatusError as e:
            error_detail = e.response.text[:200]
            raise ProviderFailedError(
                f"API error: {error_detail}",
                provider=self.name,
                status_code=e.response.status_code,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise ProviderFailedError(f"Request failed: {e}", provider=self.name) from e

        try:
            text = self._extract_text(data)
        except (KeyError, IndexError, TypeError) as e:
            raise ProviderFailedError(f"Unexpected response format: {e}", provider=self.name) from e

        if not isinstance(text, str) or not text.strip():
            raise ProviderFailedError("Provider returned empty text", provider=self.name)

        return ProviderReply(text=text.strip(), provider=self.name)


class OpenAICompatibleProvider(HttpCompletionProvider):
    """Bearer-authenticated ``/chat/completions`` API (grok, openai)."""

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _extract_text(self, data: Any) -> str:
        return data["choices"][0]["message"]["content"]


class AnthropicProvider(HttpCompletionProvider):
    """Anthropic messages API."""

    def __init__(self, *args, api_version: str = "2023-06-01", **kwargs):
        super().__init__(*args, **kwargs)
        self.api_version = api_version

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.api_key or "",
            "anthropic-version": self.api_version,
            "Content-Type": "application/json",
        }

    def _extract_text(self, data: Any) -> str:
        return data["content"][0]["text"]


class OfflineProvider(BaseCompletionProvider):
    """Always-available provider that answers from a local corpus.

    The pick is a hash of the prompt modulo corpus size, so the same
    prompt always gets the same reply.
    """

    name = OFFLINE_PROVIDER

    def __init__(self, corpus_path: Path | str | None = None, responses: list[str] | None = None):
        self.corpus_path = Path(corpus_path) if corpus_path else DEFAULT_CORPUS_PATH
        self._responses = [r for r in responses if r and r.strip()] if responses else None

    @property
    def is_available(self) -> bool:
        return True

    @property
    def responses(self) -> list[str]:
        if self._responses is None:
            self._responses = self._load_corpus()
        return self._responses

    def _load_corpus(self) -> list[str]:
        try:
            with open(self.corpus_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Offline corpus unavailable at {self.corpus_path}: {e}")
            return list(BUILTIN_RESPONSES)

        responses = [r for r in data if isinstance(r, str) and r.strip()] if isinstance(data, list) else []
        if not responses:
            logger.warning(f"Offline corpus at {self.corpus_path} is empty, using built-in lines")
            return list(BUILTIN_RESPONSES)
        return responses

    async def complete(self, prompt: str) -> ProviderReply:
        responses = self.responses
        digest = hashlib.sha256(prompt.encode("utf-8")).hexdigest()
        index = int(digest, 16) % len(responses)
        return ProviderReply(text=responses[index], provider=self.name)


def build_remote_providers(
    config: ProviderConfig,
    transport: httpx.AsyncBaseTransport | None = None,
) -> list[HttpCompletionProvider]:
    """Build the remote providers named in ``config.priority``, in that order.

    Unknown names are skipped with a warning. Providers without credentials
    are still built; the gateway filters on ``is_available``.
    """
    common = {
        "max_tokens": config.max_tokens,
        "timeout_seconds": config.timeout_seconds,
        "transport": transport,
    }
    factories = {
        "grok": lambda: OpenAICompatibleProvider(
            "grok", config.grok_url, config.grok_api_key, config.grok_model, **common
        ),
        "openai": lambda: OpenAICompatibleProvider(
            "openai", config.openai_url, config.openai_api_key, config.openai_model, **common
        ),
        "anthropic": lambda: AnthropicProvider(
            "anthropic",
            config.anthropic_url,
            config.anthropic_api_key,
            config.anthropic_model,
            api_version=config.anthropic_version,
            **common,
        ),
    }

    providers: list[HttpCompletionProvider] = []
    for name in config.priority:
        factory = factories.get(name.lower())
        if factory is None:
            logger.warning(f"Unknown provider '{name}' in priority list, skipping")
            continue
        providers.append(factory())
    return providers
