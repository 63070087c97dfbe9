"""Provider gateway with sequential fallback.

Providers are tried strictly in order. The first success wins and no
later provider is contacted. If every provider fails the gateway raises
``AllProvidersFailedError`` after exactly one attempt per provider.
"""

import asyncio
import logging
from collections.abc import Sequence

from companion.core.exceptions import AllProvidersFailedError, ProviderFailedError
from companion.models.schemas import ProviderReply
from companion.services.base import BaseCompletionProvider
from companion.services.providers import OfflineProvider

logger = logging.getLogger(__name__)


class ProviderGateway:
    """Routes a prompt through an ordered list of completion providers."""

    def __init__(
        self,
        providers: Sequence[BaseCompletionProvider] = (),
        offline_provider: BaseCompletionProvider | None = None,
        timeout_seconds: float = 30.0,
    ):
        """
        Args:
            providers: Candidate providers in priority order.
            offline_provider: Sole member of the chain when no provider has
                credentials. Defaults to ``OfflineProvider``.
            timeout_seconds: Bound applied to each attempt.
        """
        self.providers = list(providers)
        self.offline_provider = offline_provider or OfflineProvider()
        self.timeout_seconds = timeout_seconds

    def chain(self) -> list[BaseCompletionProvider]:
        """Providers with credentials, in order, or the offline provider alone."""
        configured = [p for p in self.providers if p.is_available]
        return configured or [self.offline_provider]

    @property
    def primary(self) -> str:
        return self.chain()[0].name

    async def complete(
        self,
        prompt: str,
        providers: Sequence[BaseCompletionProvider] | None = None,
    ) -> ProviderReply:
        """Return the first successful completion.

        Args:
            prompt: Prompt text sent unchanged to every attempted provider.
            providers: Explicit chain overriding ``chain()``. An empty
                sequence fails immediately.

        Raises:
            AllProvidersFailedError: If no provider produced usable text.
        """
        chain = self.chain() if providers is None else list(providers)
        if not chain:
            raise AllProvidersFailedError("No providers to attempt", attempted=[])

        attempted: list[str] = []
        last_error: str | None = None

        for provider in chain:
            attempted.append(provider.name)
            try:
                reply = await asyncio.wait_for(
                    provider.complete(prompt),
                    timeout=self.timeout_seconds,
                )
            except asyncio.TimeoutError:
                last_error = f"{provider.name}: timed out after {self.timeout_seconds}s"
                logger.warning(f"Provider {provider.name} timed out, trying next")
                continue
            except ProviderFailedError as e:
                last_error = f"{provider.name}: {e.message}"
                logger.warning(f"Provider {provider.name} failed: {e.message}")
                continue
            except Exception as e:
                last_error = f"{provider.name}: {e}"
                logger.warning(f"Provider {provider.name} raised unexpectedly: {e}")
                continue

            if not reply.text.strip():
                last_error = f"{provider.name}: empty text"
                logger.warning(f"Provider {provider.name} returned empty text")
                continue

            logger.info(
                f"Completion served by {reply.provider} after {len(attempted)} attempt(s)",
                extra={"provider": reply.provider, "attempts": len(attempted)},
            )
            return reply

        raise AllProvidersFailedError(attempted=attempted, last_error=last_error)
