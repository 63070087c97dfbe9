"""Per-session companion state and the registry that owns it.

A ``CompanionSession`` carries everything a turn reads and writes:
affect, quests, history, personality, reminders and character assets.
Turns on one session are serialized through ``session.lock``; different
sessions proceed independently.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from companion.core.exceptions import PersistenceFailedError
from companion.db.session import SEED_QUESTS
from companion.models.schemas import (
    AffectState,
    HistoryEntry,
    PersonalityProfile,
    Quest,
    QuestCompletion,
    Reminder,
    VoiceSettings,
)
from companion.services.affect import QuestBook
from companion.services.persistence import PersistenceService

logger = logging.getLogger(__name__)


def default_quests() -> list[Quest]:
    return [Quest(**data) for data in SEED_QUESTS]


@dataclass
class CompanionSession:
    session_id: str
    affect: AffectState = field(default_factory=AffectState)
    personality: PersonalityProfile = field(default_factory=PersonalityProfile)
    voice_settings: VoiceSettings = field(default_factory=VoiceSettings)
    quests: QuestBook = field(default_factory=lambda: QuestBook(default_quests()))
    history: list[HistoryEntry] = field(default_factory=list)
    reminders: list[Reminder] = field(default_factory=list)
    character_prompt: str | None = None
    image_url: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False, compare=False)

    def recent_history(self, window: int) -> list[HistoryEntry]:
        """The last ``window`` entries, oldest first."""
        if window <= 0:
            return []
        return self.history[-window:]

    def append_history(self, entry: HistoryEntry) -> None:
        self.history.append(entry)

    def commit_turn_outcome(
        self,
        affect: AffectState,
        completion: QuestCompletion | None = None,
    ) -> None:
        """Apply a precomputed affect and quest outcome in one step.

        Raises:
            ValueError: If ``affect`` would lower affinity.
        """
        if affect.affinity < self.affect.affinity:
            raise ValueError(
                f"Affinity cannot decrease ({self.affect.affinity} -> {affect.affinity})"
            )
        self.affect = affect
        if completion is not None:
            self.quests.complete(completion.quest_id)

    def add_reminder(self, reminder: Reminder) -> None:
        self.reminders.append(reminder)
        self.reminders.sort(key=lambda r: r.due_at)

    def pop_due_reminders(self, now: datetime | None = None) -> list[Reminder]:
        """Remove and return reminders due at or before ``now``."""
        now = now or datetime.now(timezone.utc)
        due = [r for r in self.reminders if r.due_at <= now]
        if due:
            self.reminders = [r for r in self.reminders if r.due_at > now]
        return due


class SessionRegistry:
    """Creates, caches and ends companion sessions.

    New sessions are hydrated from the store when one is available:
    quest flags, character customization and undelivered reminders.
    """

    def __init__(self, persistence: PersistenceService | None = None):
        self._persistence = persistence
        self._sessions: dict[str, CompanionSession] = {}
        self._lock = asyncio.Lock()

    async def get_or_create(self, session_id: str) -> CompanionSession:
        async with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = await self._load(session_id)
                self._sessions[session_id] = session
                logger.info(f"Session started: {session_id}")
            return session

    def get(self, session_id: str) -> CompanionSession | None:
        return self._sessions.get(session_id)

    async def end(self, session_id: str) -> bool:
        """Drop a session's in-memory state. Returns False if it did not exist."""
        async with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        logger.info(f"Session ended: {session_id} after {len(session.history)} turn(s)")
        return True

    def session_ids(self) -> list[str]:
        return list(self._sessions)

    def __len__(self) -> int:
        return len(self._sessions)

    async def _load(self, session_id: str) -> CompanionSession:
        session = CompanionSession(session_id=session_id)
        if self._persistence is None:
            return session

        try:
            quests = await self._persistence.list_quests()
            if quests:
                session.quests = QuestBook(quests)

            state = await self._persistence.get_character_state(session_id)
            if state is not None:
                session.character_prompt = state.prompt
                session.image_url = state.image_url
                if state.personality:
                    session.personality = PersonalityProfile(**state.personality)
                if state.voice_settings:
                    session.voice_settings = VoiceSettings(**state.voice_settings)

            for reminder in await self._persistence.list_pending_reminders(session_id):
                session.add_reminder(reminder)
        except PersistenceFailedError as e:
            logger.warning(f"Could not hydrate session {session_id}, using defaults: {e.message}")

        return session
