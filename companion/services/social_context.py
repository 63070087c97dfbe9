"""Recent X posts used as prompt context."""

import logging

import httpx

from companion.services.base import BaseSocialContextProvider
from companion.services.fallback import FallbackStrategy

logger = logging.getLogger(__name__)


class XSocialContextProvider(BaseSocialContextProvider):
    def __init__(
        self,
        api_key: str | None,
        search_url: str = "https://api.x.com/2/tweets/search/recent",
        query: str = "from:user OR #anime",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key
        self.search_url = search_url
        self.query = query
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def is_available(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    async def get_context(self) -> str:
        if not self.is_available:
            return FallbackStrategy.SOCIAL_UNAVAILABLE

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.get(
                    self.search_url,
                    params={"query": self.query},
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                response.raise_for_status()
                data = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Social context lookup failed: {e}")
            return FallbackStrategy.SOCIAL_DOWN

        posts = data.get("data") if isinstance(data, dict) else None
        if not posts or not isinstance(posts[0], dict):
            return FallbackStrategy.SOCIAL_QUIET
        return posts[0].get("text") or FallbackStrategy.SOCIAL_QUIET
