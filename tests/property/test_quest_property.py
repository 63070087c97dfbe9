"""Property-based tests for quest completion and translation round trips."""

import asyncio

from hypothesis import given, settings, strategies as st

from companion.models.schemas import Quest
from companion.services.affect import QuestBook
from companion.services.mocks import IdentityTranslator


class TestQuestCompletesOnce:
    @settings(max_examples=100)
    @given(messages=st.lists(st.text(max_size=40), max_size=15))
    def test_at_most_one_completion(self, messages):
        book = QuestBook([Quest(id=1, name="First Bond", description="", reward="New pose")])
        notices = 0

        for text in messages:
            completion = book.check_completion(1, text)
            if completion is not None:
                notices += 1
                book.complete(1)

        assert notices <= 1
        assert notices == len(book.completed())


class TestIdentityRoundTrip:
    @settings(max_examples=100)
    @given(
        text=st.text(min_size=1, max_size=80),
        language=st.sampled_from(["fra", "deu", "jpn", "spa"]),
    )
    def test_round_trip_returns_original(self, text, language):
        translator = IdentityTranslator()

        async def round_trip():
            forward = await translator.translate(text, "eng")
            return await translator.translate(forward.text, language)

        assert asyncio.run(round_trip()).text == text
