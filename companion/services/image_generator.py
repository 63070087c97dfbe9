"""Character image generation via the Replicate predictions API.

A prediction is created, then polled at a fixed interval for a bounded
number of rounds. Anything other than a successful prediction yields the
base image.
"""

import asyncio
import logging
from typing import Any

import httpx

from companion.services.base import BaseImageGenerator

logger = logging.getLogger(__name__)


class ReplicateImageGenerator(BaseImageGenerator):
    def __init__(
        self,
        api_token: str | None,
        base_url: str = "https://api.replicate.com/v1/predictions",
        model_version: str = "fofr/anime-pastel-dream",
        base_image: str = "/static/base-bella.png",
        poll_interval_seconds: float = 2.0,
        max_polls: int = 30,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.model_version = model_version
        self.base_image = base_image
        self.poll_interval_seconds = poll_interval_seconds
        self.max_polls = max_polls
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def is_available(self) -> bool:
        return bool(self.api_token and self.api_token.strip())

    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Token {self.api_token}"}

    async def generate(self, prompt: str) -> str:
        if not self.is_available:
            return self.base_image

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds,
                transport=self._transport,
            ) as client:
                prediction = await self._create_prediction(client, prompt)
                url = await self._poll(client, prediction["id"])
        except (httpx.HTTPError, KeyError, ValueError) as e:
            logger.warning(f"Image generation failed, using base image: {e}")
            return self.base_image

        if url is None:
            return self.base_image
        logger.info("Character image generated")
        return url

    async def _create_prediction(self, client: httpx.AsyncClient, prompt: str) -> dict[str, Any]:
        response = await client.post(
            self.base_url,
            headers=self._headers(),
            json={
                "version": self.model_version,
                "input": {
                    "prompt": f"Anime girlfriend: {prompt}, kawaii, vibrant",
                    "num_outputs": 1,
                    "width": 512,
                    "height": 512,
                },
            },
        )
        response.raise_for_status()
        return response.json()

    async def _poll(self, client: httpx.AsyncClient, prediction_id: str) -> str | None:
        for _ in range(self.max_polls):
            await asyncio.sleep(self.poll_interval_seconds)
            response = await client.get(f"{self.base_url}/{prediction_id}", headers=self._headers())
            response.raise_for_status()
            data = response.json()
            status = data.get("status")
            if status == "succeeded":
                output = data.get("output") or []
                return output[0] if output else None
            if status in ("failed", "canceled"):
                logger.warning(f"Prediction {prediction_id} ended with status {status}")
                return None

        logger.warning(f"Prediction {prediction_id} did not finish after {self.max_polls} polls")
        return None
