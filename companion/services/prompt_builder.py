"""Prompt construction for completion providers.

The prompt is plain text in the pivot language. It combines persona,
personality weights, recent history, optional quest and social context,
and the normalized user input.
"""

from companion.models.schemas import HistoryEntry, PersonalityProfile, Quest


PERSONA_TEMPLATE = """You are {persona}, a witty, kawaii anime companion.
{traits}
Mood: match the user's {user_emotion} mood (input sentiment {sentiment:+.1f}).
History:
{history}
{context}
User: {user_input}
{persona} ({reply_words} words{question_hint}):"""


def format_traits(personality: PersonalityProfile) -> str:
    return (
        f"Flirty: {personality.flirty * 100:.0f}%, "
        f"Tsundere: {personality.tsundere * 100:.0f}%, "
        f"Supportive: {personality.supportive * 100:.0f}%."
    )


def format_history(history: list[HistoryEntry], persona: str) -> str:
    if not history:
        return "Fresh start!"
    return "\n".join(f"User: {entry.input}\n{persona}: {entry.reply}" for entry in history)


def build_prompt(
    user_input: str,
    history: list[HistoryEntry],
    sentiment: float,
    user_emotion: str,
    personality: PersonalityProfile,
    mode: str = "chat",
    quest: Quest | None = None,
    social_context: str | None = None,
    persona: str = "Bella",
    reply_words: int = 150,
) -> str:
    """Build the completion prompt for one turn.

    Args:
        user_input: Pivot-language user input.
        history: Already-windowed history, oldest first.
        sentiment: Sentiment score of ``user_input``.
        user_emotion: Emotion the user reported.
        personality: Current trait weights.
        mode: "chat" or "date".
        quest: Active quest targeted by this turn, if any.
        social_context: Optional social trend text.
        persona: Companion name.
        reply_words: Target reply length.

    Returns:
        The prompt text.
    """
    context_lines = []
    if social_context:
        context_lines.append(f"X trends: {social_context}.")
    if quest is not None:
        context_lines.append(f'Quest: "{quest.name}". Encourage: "{quest.description}".')

    question_hint = ", end with a question" if mode == "date" or quest is not None else ""

    return PERSONA_TEMPLATE.format(
        persona=persona,
        traits=format_traits(personality),
        user_emotion=user_emotion,
        sentiment=sentiment,
        history=format_history(history, persona),
        context=" ".join(context_lines),
        user_input=user_input,
        reply_words=reply_words,
        question_hint=question_hint,
    )
