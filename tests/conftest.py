"""Shared fixtures and fakes for the companion test suite.

Environment overrides run before any ``companion`` import so the global
settings, engine and container pick them up.
"""

import os
import tempfile

_TEST_DIR = tempfile.mkdtemp(prefix="companion-tests-")
os.environ["DB_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/companion_test.db"
os.environ["SERVICE_MODE"] = "mock"
os.environ["TRACE_ENABLED"] = "false"
os.environ["LOG_ENABLE_REQUEST_LOGGING"] = "false"
for _key in (
    "GROK_API_KEY",
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "ELEVENLABS_API_KEY",
    "REPLICATE_API_TOKEN",
    "X_API_KEY",
    "OPENWEATHER_API_KEY",
):
    os.environ.pop(_key, None)

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from companion.core.exceptions import ProviderFailedError
from companion.db.session import init_db
from companion.models.schemas import ProviderReply
from companion.services.base import BaseCompletionProvider, BaseSentimentScorer
from companion.services.events import EventBroadcaster
from companion.services.mocks import (
    IdentityTranslator,
    MockLanguageDetector,
    MockVoiceSynthesizer,
)
from companion.services.orchestrator import Orchestrator
from companion.services.persistence import PersistenceService
from companion.services.provider_gateway import ProviderGateway
from companion.services.sentiment import AfinnSentimentScorer


class FakeProvider(BaseCompletionProvider):
    """Scripted provider that records every attempt in a shared log."""

    def __init__(
        self,
        name: str,
        reply: str | None = None,
        available: bool = True,
        attempts: list[str] | None = None,
    ):
        self.name = name
        self.reply = reply
        self.available = available
        self.attempts = attempts if attempts is not None else []
        self.prompts: list[str] = []

    @property
    def is_available(self) -> bool:
        return self.available

    async def complete(self, prompt: str) -> ProviderReply:
        self.attempts.append(self.name)
        self.prompts.append(prompt)
        if self.reply is None:
            raise ProviderFailedError("scripted failure", provider=self.name, status_code=503)
        return ProviderReply(text=self.reply, provider=self.name)


class RecordingSentimentScorer(BaseSentimentScorer):
    """Scores with AFINN and remembers the texts it saw."""

    def __init__(self):
        self.inner = AfinnSentimentScorer()
        self.seen: list[str] = []

    def score(self, text: str) -> float:
        self.seen.append(text)
        return self.inner.score(text)


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """A fresh, seeded SQLite store per test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/store.db")
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await init_db(bind=engine, factory=factory)
    yield factory
    await engine.dispose()


@pytest_asyncio.fixture
async def persistence(session_factory) -> PersistenceService:
    return PersistenceService(session_factory)


@pytest.fixture
def broadcaster() -> EventBroadcaster:
    return EventBroadcaster()


@pytest.fixture
def make_orchestrator(broadcaster):
    """Build an orchestrator with offline-only defaults; override any component."""

    def _make(**overrides) -> Orchestrator:
        components = {
            "language_detector": MockLanguageDetector("eng"),
            "translator": IdentityTranslator(),
            "sentiment_scorer": AfinnSentimentScorer(),
            "provider_gateway": ProviderGateway(providers=[]),
            "voice_synthesizer": MockVoiceSynthesizer(),
            "event_broadcaster": broadcaster,
        }
        components.update(overrides)
        return Orchestrator(**components)

    return _make
