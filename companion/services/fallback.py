"""
Fallback strategy service for degraded paths.

This module holds the canned lines used when a stage cannot produce its
normal output: exhausted provider chains, failed back-translation,
missing optional integrations and the proactive nudge.
"""

from companion.models.schemas import Quest, Reminder


class FallbackStrategy:
    """Provides canned responses for degraded paths.

    Used when:
    - Every completion provider failed
    - The reply could not be translated back to the user's language
    - Social, weather or character integrations are unavailable
    - No reminder or quest is pending for a proactive message
    """

    APOLOGY_REPLY = (
        "Nya~ All my AI friends are taking a nap right now! "
        "Check the provider setup and let's chat again soon?"
    )

    TRANSLATION_NOTE = "(Translation glitch, but I love chatting in English too!)"

    # Social context
    SOCIAL_UNAVAILABLE = "No X connection, tell me your vibe!"
    SOCIAL_DOWN = "X API down, let's make our own trends!"
    SOCIAL_QUIET = "No hot trends today."

    # Tools
    WEATHER_UNAVAILABLE = "No weather data, imagine a sunny day!"
    WEATHER_DOWN = "Weather API offline, let's dream of stars!"

    # Character
    CHARACTER_NEEDS_PROMPT = "Need a vibe, love!"

    # Proactive
    PROACTIVE_DEFAULT = "Thinking of you~ What's up, darling?"

    @classmethod
    def with_translation_note(cls, text: str) -> str:
        """Append the degraded-translation note to a pivot-language reply."""
        return f"{text} {cls.TRANSLATION_NOTE}"

    @classmethod
    def get_proactive_message(
        cls,
        reminders: list[Reminder],
        quests: list[Quest],
    ) -> str:
        """Pick a nudge: first reminder, else first active quest, else default.

        Args:
            reminders: Pending reminders, earliest first.
            quests: Active quests.

        Returns:
            A short proactive message.
        """
        if reminders:
            return f"Psst, reminder: {reminders[0].task}!"
        if quests:
            return f"Quest time! {quests[0].description} Ready?"
        return cls.PROACTIVE_DEFAULT

    @classmethod
    def get_character_message(cls, prompt: str) -> str:
        return f"I'm your {prompt} now~"

    @classmethod
    def get_weather_line(cls, description: str) -> str:
        return f"It's {description} out there, cozy date?"
