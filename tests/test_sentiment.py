"""Tests for AFINN sentiment scoring."""

from companion.services.sentiment import AfinnSentimentScorer


def test_positive_text_scores_positive():
    scorer = AfinnSentimentScorer()
    assert scorer.score("I love chatting with you") > 0


def test_negative_text_scores_below_caring_threshold():
    scorer = AfinnSentimentScorer()
    assert scorer.score("I hate this terrible awful day") < -2


def test_neutral_and_empty_text():
    scorer = AfinnSentimentScorer()
    assert scorer.score("") == 0.0
    assert scorer.score("the table is in the room") == 0.0


def test_scoring_is_deterministic():
    scorer = AfinnSentimentScorer()
    text = "What a wonderful, happy surprise"
    assert scorer.score(text) == scorer.score(text)
    assert isinstance(scorer.score(text), float)
