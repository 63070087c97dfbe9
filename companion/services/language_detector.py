"""Language detection backed by lingua.

Detection never raises. Short text, low confidence and detector errors
all degrade to the pivot language.
"""

import logging

from lingua import IsoCode639_3, Language, LanguageDetector as LinguaDetector, LanguageDetectorBuilder

from companion.services.base import BaseLanguageDetector

logger = logging.getLogger(__name__)


# ISO-639-1 codes the translation backend spells differently
_BACKEND_CODE_OVERRIDES: dict[str, str] = {
    "zh": "zh-CN",
    "he": "iw",
}


def to_iso_639_1(code: str) -> str:
    """Map an ISO-639-3 code to the two-letter code used by translation backends.

    Unknown codes fall back to their first two letters.
    """
    normalized = code.strip().lower()
    try:
        iso = getattr(IsoCode639_3, normalized.upper())
        short = Language.from_iso_code_639_3(iso).iso_code_639_1.name.lower()
    except (AttributeError, ValueError):
        logger.debug(f"No ISO-639-1 mapping for '{code}', using prefix")
        short = normalized[:2]
    return _BACKEND_CODE_OVERRIDES.get(short, short)


class LanguageDetector(BaseLanguageDetector):
    """Lingua-based detector returning ISO-639-3 codes."""

    def __init__(
        self,
        pivot_language: str = "eng",
        min_length: int = 3,
        min_confidence: float = 0.5,
        detector: LinguaDetector | None = None,
    ):
        self.pivot_language = pivot_language
        self.min_length = min_length
        self.min_confidence = min_confidence
        self._detector = detector

    def warm_up(self) -> None:
        self._get_detector()

    def _get_detector(self) -> LinguaDetector:
        # Building the full model set is slow; warm_up runs it at startup
        if self._detector is None:
            self._detector = LanguageDetectorBuilder.from_all_languages().build()
        return self._detector

    def detect(self, text: str) -> str:
        stripped = (text or "").strip()
        if len(stripped) < self.min_length:
            return self.pivot_language

        try:
            confidences = self._get_detector().compute_language_confidence_values(stripped)
        except Exception as e:
            logger.warning(f"Language detection failed, using pivot: {e}")
            return self.pivot_language

        if not confidences:
            return self.pivot_language

        best = confidences[0]
        if best.value < self.min_confidence:
            logger.debug(
                f"Low detection confidence {best.value:.2f} for {best.language.name}, using pivot"
            )
            return self.pivot_language

        return best.language.iso_code_639_3.name.lower()
