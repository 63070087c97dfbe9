"""Orchestrator service for the per-turn response pipeline.

This module implements the central orchestration logic that:
- Runs detection, translation, scoring, completion and localization in order
- Substitutes the apology reply when every provider fails
- Commits the affect and quest outcome of a turn in one step
- Synthesizes voice, publishes side-channel events and persists the turn

Optional stages (detection, translation, scoring, social context, voice,
image) never abort a turn; their failures degrade to defaults.
"""

import asyncio
import inspect
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Literal

from companion.core.config import ExportConfig, PromptConfig
from companion.core.exceptions import (
    AllProvidersFailedError,
    PersistenceFailedError,
    ServiceUnavailableError,
    log_exception,
)
from companion.models.api import ChatRequest, ChatResponse, CharacterUpdateResponse
from companion.models.schemas import (
    OFFLINE_PROVIDER,
    AffectState,
    HistoryEntry,
    Quest,
    QuestCompletion,
    Reminder,
    Reply,
    TranslationResult,
    Turn,
    TurnRecord,
)
from companion.observability.trace_logger import trace_logger
from companion.services.affect import AffectStateMachine
from companion.services.base import (
    BaseImageGenerator,
    BaseLanguageDetector,
    BaseSentimentScorer,
    BaseSocialContextProvider,
    BaseTranslator,
    BaseVoiceSynthesizer,
)
from companion.services.character import parse_traits
from companion.services.events import EventBroadcaster
from companion.services.exporter import ChatExporter
from companion.services.fallback import FallbackStrategy
from companion.services.persistence import PersistenceService
from companion.services.prompt_builder import build_prompt
from companion.services.provider_gateway import ProviderGateway
from companion.services.session import CompanionSession
from companion.services.tools import ToolService
from companion.services.voice import voice_settings_for

logger = logging.getLogger(__name__)


@dataclass
class StepExecutionLog:
    """Log entry for a single pipeline step."""
    step_name: str
    status: Literal["success", "degraded"]
    duration_ms: int
    error: str | None = None


@dataclass
class TurnContext:
    """Tracks one turn while it moves through the pipeline."""
    session_id: str
    step_logs: list[StepExecutionLog] = field(default_factory=list)
    translation_degraded: bool = False
    started_at: float = field(default_factory=time.time)


class Orchestrator:
    """Central orchestration service for companion turns.

    Coordinates the flow: Detector → Translator (to pivot) → Sentiment →
    Provider Gateway → Translator (back) → Affect & Quest update → Voice.
    """

    def __init__(
        self,
        language_detector: BaseLanguageDetector,
        translator: BaseTranslator,
        sentiment_scorer: BaseSentimentScorer,
        provider_gateway: ProviderGateway,
        voice_synthesizer: BaseVoiceSynthesizer,
        affect_machine: AffectStateMachine | None = None,
        social_context_provider: BaseSocialContextProvider | None = None,
        image_generator: BaseImageGenerator | None = None,
        tool_service: ToolService | None = None,
        persistence_service: PersistenceService | None = None,
        event_broadcaster: EventBroadcaster | None = None,
        exporter: ChatExporter | None = None,
        prompt_config: PromptConfig | None = None,
        export_config: ExportConfig | None = None,
        pivot_language: str = "eng",
        base_image: str = "/static/base-bella.png",
        voice_fallback_reference: str = "/static/fallback-voice.mp3",
    ):
        """Initialize the orchestrator with its component services.

        Args:
            language_detector: Classifies the input language.
            translator: Translates to and from the pivot language.
            sentiment_scorer: Scores the pivot-language input.
            provider_gateway: Ordered completion providers with fallback.
            voice_synthesizer: Produces the audio reference for a reply.
            affect_machine: Affinity and emotion rules.
            social_context_provider: Optional social trends for the prompt.
            image_generator: Optional character image generation.
            tool_service: Reminder and weather tools.
            persistence_service: Optional store; writes are best effort.
            event_broadcaster: Optional real-time side channel.
            exporter: History export renderer.
            prompt_config: Persona, history window and reply length.
            export_config: Export record limit and title.
            pivot_language: ISO-639-3 code the providers are prompted in.
            base_image: Image used when no generated image is available.
            voice_fallback_reference: Static audio used when synthesis fails.
        """
        self.language_detector = language_detector
        self.translator = translator
        self.sentiment_scorer = sentiment_scorer
        self.provider_gateway = provider_gateway
        self.voice_synthesizer = voice_synthesizer
        self.affect_machine = affect_machine or AffectStateMachine()
        self.social_context_provider = social_context_provider
        self.image_generator = image_generator
        self.tool_service = tool_service or ToolService(persistence=persistence_service)
        self.persistence_service = persistence_service
        self.event_broadcaster = event_broadcaster
        self.prompt_config = prompt_config or PromptConfig()
        self.export_config = export_config or ExportConfig()
        self.exporter = exporter or ChatExporter(
            title=self.export_config.pdf_title,
            persona=self.prompt_config.persona_name,
        )
        self.pivot_language = pivot_language
        self.base_image = base_image
        self.voice_fallback_reference = voice_fallback_reference

    # ------------------------------------------------------------------
    # Turn pipeline
    # ------------------------------------------------------------------

    async def run_turn(self, session: CompanionSession, request: ChatRequest) -> ChatResponse:
        """Produce the reply for one user utterance.

        Turns on the same session are serialized by ``session.lock``.

        Args:
            session: Session whose state the turn reads and updates.
            request: Chat request from the client.

        Returns:
            ChatResponse with the localized reply and updated state.
        """
        async with session.lock:
            return await self._run_turn(session, request)

    async def _run_turn(self, session: CompanionSession, request: ChatRequest) -> ChatResponse:
        ctx = TurnContext(session_id=session.session_id)

        detected = await self._optional_step(
            ctx, "detect_language", self.language_detector.detect, request.input,
            default=self.pivot_language,
        )
        turn = Turn(
            user_input=request.input,
            detected_language=detected,
            user_emotion=request.user_emotion,
            mode=request.mode,
            quest_id=request.quest_id,
        )
        is_pivot = turn.detected_language == self.pivot_language

        # Normalize to the pivot language
        pivot_input = turn.user_input
        if not is_pivot:
            normalized = await self._translate(ctx, "translate_input", turn.user_input, self.pivot_language)
            pivot_input = normalized.text

        sentiment = await self._optional_step(
            ctx, "score_sentiment", self.sentiment_scorer.score, pivot_input, default=0.0,
        )
        quest = session.quests.get_active(turn.quest_id)
        social_context = await self._social_context(ctx)

        prompt = build_prompt(
            user_input=pivot_input,
            history=session.recent_history(self.prompt_config.history_window),
            sentiment=sentiment,
            user_emotion=turn.user_emotion,
            personality=session.personality,
            mode=turn.mode,
            quest=quest,
            social_context=social_context,
            persona=self.prompt_config.persona_name,
            reply_words=self.prompt_config.reply_words,
        )
        trace_logger.log_stage(ctx.session_id, "prompt_built", level="debug", prompt=prompt)

        reply_text, provider, used_fallback = await self._complete(ctx, prompt)

        # Localize back to the user's language
        final_text = reply_text
        translated_back_to = self.pivot_language
        if not is_pivot:
            localized = await self._translate(ctx, "translate_reply", reply_text, turn.detected_language)
            if localized.degraded:
                if not used_fallback:
                    final_text = FallbackStrategy.with_translation_note(reply_text)
            else:
                final_text = localized.text
                translated_back_to = turn.detected_language

        # Compute the whole state change first, then commit it in one step
        new_affect = self.affect_machine.apply_turn_outcome(
            session.affect,
            sentiment=sentiment,
            user_emotion=turn.user_emotion,
            mode=turn.mode,
            quest_active=quest is not None,
        )
        completion = session.quests.check_completion(turn.quest_id, pivot_input)

        # State and history are committed together; the tail only reads them
        session.commit_turn_outcome(new_affect, completion)
        session.voice_settings = voice_settings_for(new_affect.emotion)
        session.append_history(
            HistoryEntry(input=turn.user_input, reply=final_text, language=turn.detected_language)
        )
        due_reminders = session.pop_due_reminders()
        active_quests = session.quests.active()

        # Runs to completion even if the request is cancelled
        return await asyncio.shield(self._finish_turn(
            ctx, session, turn,
            text=final_text,
            provider=provider,
            translated_back_to=translated_back_to,
            used_fallback=used_fallback,
            sentiment=sentiment,
            affect=new_affect,
            completion=completion,
            due_reminders=due_reminders,
            active_quests=active_quests,
        ))

    async def _finish_turn(
        self,
        ctx: TurnContext,
        session: CompanionSession,
        turn: Turn,
        *,
        text: str,
        provider: str,
        translated_back_to: str,
        used_fallback: bool,
        sentiment: float,
        affect: AffectState,
        completion: QuestCompletion | None,
        due_reminders: list[Reminder],
        active_quests: list[Quest],
    ) -> ChatResponse:
        """Voice, events and persistence for a committed turn."""
        voice_reference = await self._optional_step(
            ctx, "synthesize_voice", self.voice_synthesizer.synthesize, text, affect.emotion,
            default=self.voice_fallback_reference,
        )
        reply = Reply(
            text=text,
            source_provider=provider,
            translated_back_to=translated_back_to,
            voice_reference=voice_reference,
            translation_degraded=ctx.translation_degraded,
        )

        self._publish(session.session_id, "update", {
            "affinity": affect.affinity,
            "emotion": affect.emotion,
            "quests": [q.model_dump() for q in active_quests],
        })
        if completion is not None:
            self._publish(session.session_id, "quest-complete", completion.model_dump())

        await self._persist_turn(session, turn, reply, sentiment, completion, bool(due_reminders))

        duration_ms = int((time.time() - ctx.started_at) * 1000)
        logger.info(
            f"Turn completed for session {session.session_id} via {provider} in {duration_ms}ms",
            extra={
                "session_id": session.session_id,
                "provider": provider,
                "detected_language": turn.detected_language,
                "fallback": used_fallback,
                "translation_degraded": ctx.translation_degraded,
            },
        )
        trace_logger.log_stage(
            ctx.session_id, "turn_complete",
            reply=reply, affect=affect, duration_ms=duration_ms,
            steps=[log.__dict__ for log in ctx.step_logs],
        )

        return ChatResponse(
            reply=reply.text,
            provider=reply.source_provider,
            detected_lang=turn.detected_language,
            affinity=affect.affinity,
            emotion=affect.emotion,
            voice_url=reply.voice_reference,
            quests=active_quests,
            quest_completed=completion,
            reminders=[r.task for r in due_reminders] or None,
            translation_degraded=reply.translation_degraded,
        )

    async def _complete(self, ctx: TurnContext, prompt: str) -> tuple[str, str, bool]:
        """Return (text, provider, used_fallback)."""
        try:
            completion = await self.provider_gateway.complete(prompt)
        except AllProvidersFailedError as e:
            log_exception(e, f"Provider chain exhausted for session {ctx.session_id}")
            trace_logger.log_stage(
                ctx.session_id, "providers_exhausted", level="error", attempted=e.attempted,
            )
            return FallbackStrategy.APOLOGY_REPLY, OFFLINE_PROVIDER, True

        trace_logger.log_stage(ctx.session_id, "completion", provider=completion.provider)
        return completion.text, completion.provider, False

    async def _translate(
        self,
        ctx: TurnContext,
        step_name: str,
        text: str,
        target_language: str,
    ) -> TranslationResult:
        result = await self._optional_step(
            ctx, step_name, self.translator.translate, text, target_language,
            default=TranslationResult(
                text=text, source_text=text, target_language=target_language, degraded=True,
            ),
        )
        if result.degraded:
            ctx.translation_degraded = True
        return result

    async def _social_context(self, ctx: TurnContext) -> str | None:
        if self.social_context_provider is None:
            return None
        return await self._optional_step(
            ctx, "social_context", self.social_context_provider.get_context, default=None,
        )

    async def _optional_step(
        self,
        ctx: TurnContext,
        step_name: str,
        step_func: Callable[..., Any],
        *args: Any,
        default: Any,
    ) -> Any:
        """Run a non-fatal step; any exception yields ``default``."""
        start_time = time.time()
        try:
            result = step_func(*args)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            duration_ms = int((time.time() - start_time) * 1000)
            logger.warning(f"Step {step_name} failed for session {ctx.session_id}, using default: {e}")
            ctx.step_logs.append(StepExecutionLog(step_name, "degraded", duration_ms, str(e)))
            trace_logger.log_stage(ctx.session_id, step_name, level="error", error=str(e))
            return default

        duration_ms = int((time.time() - start_time) * 1000)
        ctx.step_logs.append(StepExecutionLog(step_name, "success", duration_ms))
        return result

    async def _persist_turn(
        self,
        session: CompanionSession,
        turn: Turn,
        reply: Reply,
        sentiment: float,
        completion: QuestCompletion | None,
        reminders_delivered: bool,
    ) -> None:
        if self.persistence_service is None:
            return

        # Each write is attempted independently
        try:
            await self.persistence_service.save_turn(
                TurnRecord(
                    session_id=session.session_id,
                    user_input=turn.user_input,
                    reply=reply.text,
                    sentiment=sentiment,
                    user_emotion=turn.user_emotion,
                    language=turn.detected_language,
                    provider=reply.source_provider,
                )
            )
        except PersistenceFailedError as e:
            log_exception(e, f"Turn for session {session.session_id} not persisted")

        if completion is not None:
            try:
                await self.persistence_service.mark_quest_completed(completion.quest_id)
            except PersistenceFailedError as e:
                log_exception(e, f"Quest {completion.quest_id} completion not persisted")

        if reminders_delivered:
            try:
                await self.persistence_service.mark_reminders_delivered(
                    session.session_id, datetime.now(timezone.utc)
                )
            except PersistenceFailedError as e:
                log_exception(e, f"Reminder delivery for session {session.session_id} not persisted")

    def _publish(self, session_id: str, event_type: str, data: dict[str, Any]) -> None:
        if self.event_broadcaster is not None:
            self.event_broadcaster.publish(session_id, event_type, data)

    # ------------------------------------------------------------------
    # Character, tools, proactive, quests, export
    # ------------------------------------------------------------------

    async def update_character(self, session: CompanionSession, prompt: str) -> CharacterUpdateResponse:
        """Re-personalize the companion from a free-text vibe."""
        prompt = (prompt or "").strip()
        if not prompt:
            return CharacterUpdateResponse(message=FallbackStrategy.CHARACTER_NEEDS_PROMPT)

        async with session.lock:
            ctx = TurnContext(session_id=session.session_id)
            personality = parse_traits(prompt, session.personality)
            fallback_image = session.image_url or self.base_image
            image_url = fallback_image
            if self.image_generator is not None:
                image_url = await self._optional_step(
                    ctx, "generate_image", self.image_generator.generate, prompt,
                    default=fallback_image,
                )

            session.personality = personality
            session.character_prompt = prompt
            session.image_url = image_url

            if self.persistence_service is not None:
                try:
                    await self.persistence_service.save_character_state(
                        session.session_id, prompt, image_url, personality, session.voice_settings,
                    )
                except PersistenceFailedError as e:
                    log_exception(e, f"Character state for session {session.session_id} not persisted")

            self._publish(session.session_id, "character-update", {
                "imageUrl": image_url,
                "personality": personality.model_dump(),
            })
            logger.info(f"Character updated for session {session.session_id}")

        return CharacterUpdateResponse(
            image_url=image_url,
            updated_personality=personality,
            message=FallbackStrategy.get_character_message(prompt),
        )

    async def use_tool(self, session: CompanionSession, query: str) -> str:
        async with session.lock:
            return await self.tool_service.use_tool(session, query)

    def get_proactive(self, session: CompanionSession) -> str:
        return FallbackStrategy.get_proactive_message(session.reminders, session.quests.active())

    def list_quests(self, session: CompanionSession) -> list[Quest]:
        return session.quests.active()

    def start_quest(self, session: CompanionSession, quest_id: int) -> Quest | None:
        return session.quests.get_active(quest_id)

    async def export_history(self, session: CompanionSession, format: Literal["json", "pdf"] = "json") -> str:
        """Export the session's most recent persisted turns.

        Raises:
            ServiceUnavailableError: If the history store cannot be read.
        """
        rows = []
        if self.persistence_service is not None:
            try:
                rows = await self.persistence_service.list_recent_turns(
                    session.session_id, limit=self.export_config.max_records,
                )
            except PersistenceFailedError as e:
                log_exception(e, "History export failed")
                raise ServiceUnavailableError("History store unavailable", service_name="persistence") from e

        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self.exporter.export, rows, format)
