"""Lexicon sentiment scoring with AFINN."""

from afinn import Afinn

from companion.services.base import BaseSentimentScorer


class AfinnSentimentScorer(BaseSentimentScorer):
    """Sums AFINN word valences. Positive is favorable, 0 is neutral."""

    def __init__(self, language: str = "en"):
        self._afinn = Afinn(language=language)

    def score(self, text: str) -> float:
        if not text:
            return 0.0
        return float(self._afinn.score(text))
