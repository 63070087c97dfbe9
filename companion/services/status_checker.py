"""Status checker for provider, capability and asset health.

Builds the health payload from configuration and in-memory state only;
nothing here mutates state or contacts a remote API.
"""

import logging
import time
from pathlib import Path

from companion.core.config import AppConfig
from companion.services.base import (
    BaseImageGenerator,
    BaseSocialContextProvider,
    BaseVoiceSynthesizer,
)
from companion.services.provider_gateway import ProviderGateway
from companion.services.providers import OfflineProvider
from companion.services.session import SessionRegistry

logger = logging.getLogger(__name__)


class StatusChecker:
    """Aggregates service health for ``/health``."""

    def __init__(
        self,
        config: AppConfig,
        provider_gateway: ProviderGateway,
        session_registry: SessionRegistry,
        voice_synthesizer: BaseVoiceSynthesizer,
        image_generator: BaseImageGenerator,
        social_context_provider: BaseSocialContextProvider,
        offline_provider: OfflineProvider | None = None,
    ):
        self.config = config
        self.provider_gateway = provider_gateway
        self.session_registry = session_registry
        self.voice_synthesizer = voice_synthesizer
        self.image_generator = image_generator
        self.social_context_provider = social_context_provider
        self.offline_provider = offline_provider
        self.started_at = time.monotonic()

    def api_status(self) -> dict[str, bool]:
        status = {p.name: p.is_available for p in self.provider_gateway.providers}
        status["replicate"] = self.image_generator.is_available
        status["elevenlabs"] = self.voice_synthesizer.is_available
        status["x"] = self.social_context_provider.is_available
        return status

    def asset_status(self) -> dict[str, bool]:
        static_dir = Path(self.config.static_dir)
        assets = {
            "image": self._static_exists(static_dir, self.config.image.base_image),
            "voice": self._static_exists(static_dir, self.config.voice.fallback_reference),
        }
        if self.offline_provider is not None:
            assets["mock"] = self.offline_provider.corpus_path.is_file()
        return assets

    @staticmethod
    def _static_exists(static_dir: Path, reference: str) -> bool:
        # References look like "/static/<file>"; anything else is remote
        prefix = "/static/"
        if not reference.startswith(prefix):
            return True
        return (static_dir / reference[len(prefix):]).is_file()

    def quests_active(self) -> int:
        session = self.session_registry.get(self.config.default_session_id)
        return len(session.quests.active()) if session is not None else 0

    def uptime(self) -> float:
        return round(time.monotonic() - self.started_at, 3)

    def get_health_status(self) -> dict:
        assets = self.asset_status()
        missing = [name for name, present in assets.items() if not present]
        if missing:
            logger.warning(f"Missing static assets: {missing}")

        return {
            "status": "ok",
            "version": self.config.app_version,
            "apiStatus": self.api_status(),
            "primaryAi": self.provider_gateway.primary,
            "assets": assets,
            "uptime": self.uptime(),
            "questsActive": self.quests_active(),
        }
