"""Tests for the persistence service against a temporary SQLite store."""

from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from companion.core.exceptions import PersistenceFailedError
from companion.models.schemas import PersonalityProfile, Reminder, TurnRecord, VoiceSettings
from companion.services.persistence import PersistenceService


def _record(session_id: str, text: str, created_at: datetime) -> TurnRecord:
    return TurnRecord(
        session_id=session_id,
        user_input=text,
        reply=f"reply to {text}",
        sentiment=1.0,
        user_emotion="neutral",
        language="eng",
        provider="mock",
        created_at=created_at,
    )


class TestConversationLog:
    @pytest.mark.asyncio
    async def test_save_and_list_newest_first(self, persistence):
        base = datetime(2024, 10, 17, 12, 0, tzinfo=timezone.utc)
        for i in range(3):
            await persistence.save_turn(_record("s1", f"msg {i}", base + timedelta(minutes=i)))
        await persistence.save_turn(_record("other", "elsewhere", base))

        rows = await persistence.list_recent_turns("s1")

        assert [row.user_input for row in rows] == ["msg 2", "msg 1", "msg 0"]
        assert rows[0].reply == "reply to msg 2"
        assert rows[0].lang == "eng"

    @pytest.mark.asyncio
    async def test_list_respects_limit(self, persistence):
        base = datetime(2024, 10, 17, tzinfo=timezone.utc)
        for i in range(5):
            await persistence.save_turn(_record("s1", f"msg {i}", base + timedelta(seconds=i)))

        rows = await persistence.list_recent_turns("s1", limit=2)

        assert [row.user_input for row in rows] == ["msg 4", "msg 3"]


class TestQuests:
    @pytest.mark.asyncio
    async def test_seeded_quest_and_completion(self, persistence):
        quests = await persistence.list_quests()
        assert [(q.id, q.name, q.completed) for q in quests] == [(1, "First Bond", False)]

        await persistence.mark_quest_completed(1)

        assert (await persistence.list_quests())[0].completed is True


class TestReminders:
    @pytest.mark.asyncio
    async def test_pending_and_delivered(self, persistence):
        now = datetime.now(timezone.utc)
        await persistence.save_reminder("s1", Reminder(task="later", due_at=now + timedelta(days=1)))
        await persistence.save_reminder("s1", Reminder(task="now", due_at=now - timedelta(minutes=1)))

        pending = await persistence.list_pending_reminders("s1")
        assert [r.task for r in pending] == ["now", "later"]
        assert pending[0].due_at.tzinfo is not None

        updated = await persistence.mark_reminders_delivered("s1", now)

        assert updated == 1
        assert [r.task for r in await persistence.list_pending_reminders("s1")] == ["later"]


class TestCharacterState:
    @pytest.mark.asyncio
    async def test_upsert(self, persistence):
        assert await persistence.get_character_state("s1") is None

        await persistence.save_character_state(
            "s1", "sweet idol", "/img/1.png", PersonalityProfile(flirty=0.8), VoiceSettings(),
        )
        await persistence.save_character_state(
            "s1", "sassy", "/img/2.png", PersonalityProfile(tsundere=0.8), VoiceSettings(pitch=1.2),
        )

        state = await persistence.get_character_state("s1")
        assert state.prompt == "sassy"
        assert state.image_url == "/img/2.png"
        assert state.personality["tsundere"] == 0.8
        assert state.voice_settings["pitch"] == 1.2


class TestFailures:
    @pytest.mark.asyncio
    async def test_unreachable_store_raises_persistence_error(self, tmp_path):
        engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/missing/dir/store.db")
        factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        service = PersistenceService(factory)

        with pytest.raises(PersistenceFailedError) as exc_info:
            await service.list_quests()

        assert exc_info.value.operation == "list_quests"
        await engine.dispose()
