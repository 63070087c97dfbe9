# Database Layer

from companion.db.models import (
    Base,
    CharacterStateModel,
    ConversationLog,
    QuestModel,
    ReminderModel,
)
from companion.db.session import (
    async_session_factory,
    close_db,
    engine,
    init_db,
)

__all__ = [
    "Base",
    "CharacterStateModel",
    "ConversationLog",
    "QuestModel",
    "ReminderModel",
    "async_session_factory",
    "close_db",
    "engine",
    "init_db",
]
