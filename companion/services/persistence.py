"""Persistence service for turns, quests, reminders and character state.

Each write runs in its own session and commits before returning, so a
failure never leaves a half-written turn behind. Database errors are
wrapped in ``PersistenceFailedError``; callers treat durability as best
effort and keep serving the turn.
"""

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone
from typing import TypeVar

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from companion.core.exceptions import PersistenceFailedError
from companion.db.models import (
    CharacterStateModel,
    ConversationLog,
    QuestModel,
    ReminderModel,
)
from companion.models.schemas import (
    PersonalityProfile,
    Quest,
    Reminder,
    TurnRecord,
    VoiceSettings,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class PersistenceService:
    """Async store access over an ``async_sessionmaker``."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def _run(self, operation: str, work: Callable[[AsyncSession], Awaitable[T]]) -> T:
        try:
            async with self._session_factory() as session:
                result = await work(session)
                await session.commit()
                return result
        except SQLAlchemyError as e:
            logger.error(f"Persistence operation '{operation}' failed: {e}")
            raise PersistenceFailedError(
                f"Failed to {operation.replace('_', ' ')}",
                operation=operation,
                original_error=e,
            ) from e

    # ------------------------------------------------------------------
    # Conversation log
    # ------------------------------------------------------------------

    async def save_turn(self, record: TurnRecord) -> int:
        """Append one turn to the conversation log.

        Returns:
            The new row id.
        """

        async def work(session: AsyncSession) -> int:
            row = ConversationLog(
                session_id=record.session_id,
                user_input=record.user_input,
                reply=record.reply,
                sentiment=record.sentiment,
                user_emotion=record.user_emotion,
                lang=record.language,
                provider=record.provider,
                created_at=record.created_at or _utcnow(),
            )
            session.add(row)
            await session.flush()
            return row.id

        return await self._run("save_turn", work)

    async def list_recent_turns(self, session_id: str, limit: int = 50) -> list[ConversationLog]:
        """Newest-first conversation rows for a session."""

        async def work(session: AsyncSession) -> list[ConversationLog]:
            result = await session.execute(
                select(ConversationLog)
                .where(ConversationLog.session_id == session_id)
                .order_by(ConversationLog.created_at.desc(), ConversationLog.id.desc())
                .limit(limit)
            )
            return list(result.scalars().all())

        return await self._run("list_recent_turns", work)

    # ------------------------------------------------------------------
    # Quests
    # ------------------------------------------------------------------

    async def list_quests(self) -> list[Quest]:
        async def work(session: AsyncSession) -> list[Quest]:
            result = await session.execute(select(QuestModel).order_by(QuestModel.id))
            return [
                Quest(
                    id=row.id,
                    name=row.name,
                    description=row.description,
                    reward=row.reward,
                    pattern=row.pattern,
                    completed=row.completed,
                )
                for row in result.scalars().all()
            ]

        return await self._run("list_quests", work)

    async def mark_quest_completed(self, quest_id: int) -> None:
        async def work(session: AsyncSession) -> None:
            await session.execute(
                update(QuestModel).where(QuestModel.id == quest_id).values(completed=True)
            )

        await self._run("mark_quest_completed", work)

    # ------------------------------------------------------------------
    # Reminders
    # ------------------------------------------------------------------

    async def save_reminder(self, session_id: str, reminder: Reminder) -> int:
        async def work(session: AsyncSession) -> int:
            row = ReminderModel(
                session_id=session_id,
                task=reminder.task,
                due_at=reminder.due_at,
            )
            session.add(row)
            await session.flush()
            return row.id

        return await self._run("save_reminder", work)

    async def list_pending_reminders(self, session_id: str) -> list[Reminder]:
        """Undelivered reminders for a session, earliest first."""

        async def work(session: AsyncSession) -> list[Reminder]:
            result = await session.execute(
                select(ReminderModel)
                .where(
                    ReminderModel.session_id == session_id,
                    ReminderModel.delivered.is_(False),
                )
                .order_by(ReminderModel.due_at)
            )
            return [
                Reminder(task=row.task, due_at=_as_utc(row.due_at))
                for row in result.scalars().all()
            ]

        return await self._run("list_pending_reminders", work)

    async def mark_reminders_delivered(self, session_id: str, due_before: datetime) -> int:
        """Flag reminders due at or before ``due_before`` as delivered.

        Returns:
            Number of rows updated.
        """

        async def work(session: AsyncSession) -> int:
            result = await session.execute(
                update(ReminderModel)
                .where(
                    ReminderModel.session_id == session_id,
                    ReminderModel.delivered.is_(False),
                    ReminderModel.due_at <= due_before,
                )
                .values(delivered=True)
            )
            return result.rowcount or 0

        return await self._run("mark_reminders_delivered", work)

    # ------------------------------------------------------------------
    # Character state
    # ------------------------------------------------------------------

    async def save_character_state(
        self,
        session_id: str,
        prompt: str,
        image_url: str | None,
        personality: PersonalityProfile,
        voice_settings: VoiceSettings,
    ) -> None:
        """Insert or replace the character customization for a session."""

        async def work(session: AsyncSession) -> None:
            result = await session.execute(
                select(CharacterStateModel).where(CharacterStateModel.session_id == session_id)
            )
            row = result.scalar_one_or_none()
            if row is None:
                row = CharacterStateModel(session_id=session_id)
                session.add(row)
            row.prompt = prompt
            row.image_url = image_url
            row.personality = personality.model_dump()
            row.voice_settings = voice_settings.model_dump()
            row.updated_at = _utcnow()

        await self._run("save_character_state", work)

    async def get_character_state(self, session_id: str) -> CharacterStateModel | None:
        async def work(session: AsyncSession) -> CharacterStateModel | None:
            result = await session.execute(
                select(CharacterStateModel).where(CharacterStateModel.session_id == session_id)
            )
            return result.scalar_one_or_none()

        return await self._run("get_character_state", work)
