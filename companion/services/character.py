"""Keyword-driven personality parsing for character re-personalization."""

import re

from companion.models.schemas import PersonalityProfile


# (pattern, trait, weight). Traits not matched by the prompt reset to 0.
TRAIT_RULES: tuple[tuple[re.Pattern[str], str, float], ...] = (
    (re.compile(r"sassy|tsundere|cyberpunk", re.IGNORECASE), "tsundere", 0.8),
    (re.compile(r"sweet|flirty|idol", re.IGNORECASE), "flirty", 0.8),
    (re.compile(r"caring|supportive|gentle", re.IGNORECASE), "supportive", 1.0),
)


def parse_traits(prompt: str, current: PersonalityProfile) -> PersonalityProfile:
    traits = {trait: 0.0 for _, trait, _ in TRAIT_RULES}
    for pattern, trait, weight in TRAIT_RULES:
        if pattern.search(prompt):
            traits[trait] = weight
    return current.model_copy(update=traits)
