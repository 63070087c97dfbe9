"""Affect and quest state transitions.

The companion emotion is a small state machine driven by a transition
table: the first row whose guard matches the turn's
(sentiment, user emotion) pair names the next emotion. The last row is
unconditional, so every turn resolves to exactly one emotion.
"""

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from companion.models.schemas import (
    AffectState,
    CompanionEmotion,
    Quest,
    QuestCompletion,
)

logger = logging.getLogger(__name__)


NEGATIVE_SENTIMENT_THRESHOLD = -2.0


@dataclass(frozen=True)
class EmotionTransition:
    trigger: str
    next_emotion: CompanionEmotion
    guard: Callable[[float, str], bool]


EMOTION_TRANSITIONS: tuple[EmotionTransition, ...] = (
    EmotionTransition(
        trigger="sad_or_negative",
        next_emotion="caring",
        guard=lambda sentiment, user_emotion: user_emotion == "sad"
        or sentiment < NEGATIVE_SENTIMENT_THRESHOLD,
    ),
    EmotionTransition(
        trigger="excited",
        next_emotion="playful",
        guard=lambda sentiment, user_emotion: user_emotion == "excited",
    ),
    EmotionTransition(
        trigger="default",
        next_emotion="happy",
        guard=lambda sentiment, user_emotion: True,
    ),
)


class AffectStateMachine:
    """Computes the next AffectState for a finished turn.

    Nothing here mutates session state. The orchestrator commits the
    returned state together with any quest completion.
    """

    def __init__(
        self,
        transitions: Sequence[EmotionTransition] = EMOTION_TRANSITIONS,
        min_increment: float = 1.0,
        happy_bonus: float = 2.0,
        engagement_bonus: float = 5.0,
    ):
        self.transitions = tuple(transitions)
        self.min_increment = min_increment
        self.happy_bonus = happy_bonus
        self.engagement_bonus = engagement_bonus

    def affinity_increment(
        self,
        sentiment: float,
        user_emotion: str,
        mode: str,
        quest_active: bool,
    ) -> float:
        """Affinity gained by one turn. Always at least ``min_increment``.

        Args:
            sentiment: Valence of the pivot-language input.
            user_emotion: Emotion the user reported.
            mode: "chat" or "date".
            quest_active: Whether the turn referenced an active quest.
        """
        bonus = self.happy_bonus if user_emotion == "happy" else 0.0
        increment = max(self.min_increment, sentiment / 10 + bonus)
        if mode == "date" or quest_active:
            increment += self.engagement_bonus
        return increment

    def transition_for(self, sentiment: float, user_emotion: str) -> EmotionTransition:
        for transition in self.transitions:
            if transition.guard(sentiment, user_emotion):
                return transition
        # Tables without an unconditional row keep the default emotion
        return EMOTION_TRANSITIONS[-1]

    def next_emotion(self, sentiment: float, user_emotion: str) -> CompanionEmotion:
        return self.transition_for(sentiment, user_emotion).next_emotion

    def apply_turn_outcome(
        self,
        state: AffectState,
        sentiment: float,
        user_emotion: str,
        mode: str,
        quest_active: bool,
    ) -> AffectState:
        """Return the affect after one turn: increment first, then transition."""
        affinity = state.affinity + self.affinity_increment(
            sentiment, user_emotion, mode, quest_active
        )
        transition = self.transition_for(sentiment, user_emotion)
        logger.debug(
            f"Affect transition via '{transition.trigger}': "
            f"{state.emotion} -> {transition.next_emotion}, affinity {state.affinity:.1f} -> {affinity:.1f}"
        )
        return AffectState(affinity=affinity, emotion=transition.next_emotion)


def quest_matches(quest: Quest, text: str) -> bool:
    """Whether ``text`` satisfies the quest's completion pattern (case-insensitive)."""
    try:
        return re.search(quest.pattern, text or "", re.IGNORECASE) is not None
    except re.error as e:
        logger.warning(f"Quest {quest.id} has an invalid pattern '{quest.pattern}': {e}")
        return False


class QuestBook:
    """Active and completed quests of one session.

    Completed quests are never reconsidered, so each quest completes at
    most once.
    """

    def __init__(self, quests: Iterable[Quest] = ()):
        self._active: dict[int, Quest] = {}
        self._completed: dict[int, Quest] = {}
        for quest in quests:
            self.add(quest)

    def add(self, quest: Quest) -> None:
        if quest.completed:
            self._active.pop(quest.id, None)
            self._completed[quest.id] = quest
        elif quest.id not in self._completed:
            self._active[quest.id] = quest

    def active(self) -> list[Quest]:
        return list(self._active.values())

    def completed(self) -> list[Quest]:
        return list(self._completed.values())

    def all(self) -> list[Quest]:
        return self.active() + self.completed()

    def get_active(self, quest_id: int | None) -> Quest | None:
        if quest_id is None:
            return None
        return self._active.get(quest_id)

    def check_completion(self, quest_id: int | None, text: str) -> QuestCompletion | None:
        """Return a completion notice if the active quest matches ``text``.

        Does not modify the book. Call ``complete`` to commit.
        """
        quest = self.get_active(quest_id)
        if quest is None or not quest_matches(quest, text):
            return None
        return QuestCompletion(quest_id=quest.id, name=quest.name, reward=quest.reward)

    def complete(self, quest_id: int) -> Quest | None:
        """Move an active quest to the completed set. No-op if not active."""
        quest = self._active.pop(quest_id, None)
        if quest is None:
            return None
        done = quest.model_copy(update={"completed": True})
        self._completed[quest_id] = done
        return done

    def __len__(self) -> int:
        return len(self._active) + len(self._completed)
