"""Tests for affect transitions and quest bookkeeping."""

import pytest

from companion.models.schemas import AffectState, Quest, QuestCompletion
from companion.services.affect import AffectStateMachine, QuestBook, quest_matches
from companion.services.session import CompanionSession


@pytest.fixture
def machine():
    return AffectStateMachine()


@pytest.fixture
def first_bond():
    return Quest(id=1, name="First Bond", description="Say 3 things you love.", reward="New pose")


class TestAffinityIncrement:
    def test_minimum_increment_is_one(self, machine):
        assert machine.affinity_increment(-30.0, "neutral", "chat", False) == 1.0

    def test_happy_bonus(self, machine):
        assert machine.affinity_increment(3.0, "happy", "chat", False) == pytest.approx(2.3)

    def test_date_mode_bonus(self, machine):
        assert machine.affinity_increment(0.0, "neutral", "date", False) == 6.0

    def test_quest_bonus(self, machine):
        assert machine.affinity_increment(0.0, "neutral", "chat", True) == 6.0

    def test_large_sentiment_scales(self, machine):
        assert machine.affinity_increment(20.0, "neutral", "chat", False) == 2.0


class TestEmotionTransitions:
    @pytest.mark.parametrize(
        "sentiment,user_emotion,expected",
        [
            (0.0, "sad", "caring"),
            (5.0, "sad", "caring"),
            (-3.0, "neutral", "caring"),
            (-3.0, "excited", "caring"),
            (-2.0, "neutral", "happy"),
            (1.0, "excited", "playful"),
            (1.0, "happy", "happy"),
            (0.0, "neutral", "happy"),
        ],
    )
    def test_transition_table(self, machine, sentiment, user_emotion, expected):
        assert machine.next_emotion(sentiment, user_emotion) == expected

    def test_apply_returns_new_state(self, machine):
        before = AffectState(affinity=10.0, emotion="happy")

        after = machine.apply_turn_outcome(before, -5.0, "neutral", "chat", False)

        assert after.affinity == 11.0
        assert after.emotion == "caring"
        assert before.affinity == 10.0


class TestQuestBook:
    def test_match_is_case_insensitive(self, first_bond):
        assert quest_matches(first_bond, "I LOVE you")
        assert quest_matches(first_bond, "I like it here")
        assert not quest_matches(first_bond, "hello there")

    def test_invalid_pattern_never_matches(self):
        quest = Quest(id=2, name="Broken", description="", reward="", pattern="(unclosed")
        assert quest_matches(quest, "(unclosed") is False

    def test_completion_fires_once(self, first_bond):
        book = QuestBook([first_bond])

        notice = book.check_completion(1, "I love chatting with you")
        assert notice == QuestCompletion(quest_id=1, name="First Bond", reward="New pose")

        book.complete(1)
        assert book.active() == []
        assert [q.id for q in book.completed()] == [1]
        assert book.check_completion(1, "I love it again") is None
        assert book.complete(1) is None

    def test_check_does_not_mutate(self, first_bond):
        book = QuestBook([first_bond])
        book.check_completion(1, "love")
        assert [q.id for q in book.active()] == [1]

    def test_completed_quest_is_never_reactivated(self, first_bond):
        book = QuestBook([first_bond.model_copy(update={"completed": True})])
        book.add(first_bond)

        assert book.active() == []
        assert len(book) == 1

    def test_unknown_quest_id(self, first_bond):
        book = QuestBook([first_bond])
        assert book.check_completion(99, "love") is None
        assert book.check_completion(None, "love") is None


class TestCommitTurnOutcome:
    def test_commit_applies_affect_and_completion(self, first_bond):
        session = CompanionSession(session_id="s1")
        session.quests = QuestBook([first_bond])

        session.commit_turn_outcome(
            AffectState(affinity=7.0, emotion="playful"),
            QuestCompletion(quest_id=1, name="First Bond", reward="New pose"),
        )

        assert session.affect.affinity == 7.0
        assert session.affect.emotion == "playful"
        assert session.quests.active() == []

    def test_commit_rejects_lower_affinity(self):
        session = CompanionSession(session_id="s1", affect=AffectState(affinity=5.0))

        with pytest.raises(ValueError):
            session.commit_turn_outcome(AffectState(affinity=4.0))

        assert session.affect.affinity == 5.0
