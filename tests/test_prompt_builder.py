"""Tests for prompt construction and canned fallback lines."""

from datetime import datetime, timezone

from companion.models.schemas import HistoryEntry, PersonalityProfile, Quest, Reminder
from companion.services.fallback import FallbackStrategy
from companion.services.prompt_builder import build_prompt, format_traits


def test_fresh_prompt():
    prompt = build_prompt(
        user_input="Hello!",
        history=[],
        sentiment=0.0,
        user_emotion="neutral",
        personality=PersonalityProfile(),
    )

    assert prompt.startswith("You are Bella")
    assert "Fresh start!" in prompt
    assert "User: Hello!" in prompt
    assert prompt.endswith("Bella (150 words):")


def test_quest_and_social_context():
    quest = Quest(id=1, name="First Bond", description="Say 3 things you love.", reward="New pose")

    prompt = build_prompt(
        user_input="hi",
        history=[HistoryEntry(input="yo", reply="hey", language="eng")],
        sentiment=2.0,
        user_emotion="happy",
        personality=PersonalityProfile(),
        quest=quest,
        social_context="New season announced",
        persona="Mika",
        reply_words=50,
    )

    assert "User: yo\nMika: hey" in prompt
    assert 'Quest: "First Bond"' in prompt
    assert "X trends: New season announced." in prompt
    assert "(input sentiment +2.0)" in prompt
    assert prompt.endswith("Mika (50 words, end with a question):")


def test_format_traits():
    assert format_traits(PersonalityProfile(flirty=0.8, tsundere=0.0, supportive=1.0)) == (
        "Flirty: 80%, Tsundere: 0%, Supportive: 100%."
    )


class TestProactiveMessage:
    def test_default(self):
        assert FallbackStrategy.get_proactive_message([], []) == FallbackStrategy.PROACTIVE_DEFAULT

    def test_reminder_wins_over_quest(self):
        reminder = Reminder(task="stretch", due_at=datetime(2024, 10, 18, tzinfo=timezone.utc))
        quest = Quest(id=1, name="First Bond", description="Say 3 things you love.", reward="New pose")

        assert FallbackStrategy.get_proactive_message([reminder], [quest]) == "Psst, reminder: stretch!"
