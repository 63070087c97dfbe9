"""WebSocket side channel.

The server forwards ``update``, ``quest-complete`` and ``character-update``
events for the connection's session. Clients may send
``{"type": "start-quest", "questId": n}`` and get a ``quest-update`` back.
"""

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from companion.core.config import settings
from companion.core.container import get_container
from companion.services.events import CompanionEvent
from companion.services.orchestrator import Orchestrator
from companion.services.session import CompanionSession


logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


async def _forward_events(websocket: WebSocket, queue: asyncio.Queue[CompanionEvent]) -> None:
    while True:
        event = await queue.get()
        await websocket.send_json(event.to_message())


async def _handle_message(
    websocket: WebSocket,
    message: Any,
    session: CompanionSession,
    orchestrator: Orchestrator,
) -> None:
    if not isinstance(message, dict) or message.get("type") != "start-quest":
        await websocket.send_json({"type": "error", "data": {"message": "Unsupported message"}})
        return

    try:
        quest_id = int(message.get("questId"))
    except (TypeError, ValueError):
        await websocket.send_json({"type": "error", "data": {"message": "questId must be an integer"}})
        return

    quest = orchestrator.start_quest(session, quest_id)
    await websocket.send_json({
        "type": "quest-update",
        "data": quest.model_dump() if quest is not None else None,
    })


@router.websocket("/ws")
async def companion_socket(websocket: WebSocket) -> None:
    session_id = (
        websocket.query_params.get("session_id")
        or websocket.headers.get("X-Session-ID")
        or settings.default_session_id
    )
    container = get_container()
    registry = container.get_session_registry()
    broadcaster = container.get_event_broadcaster()
    orchestrator = container.get_orchestrator()

    await websocket.accept()
    session = await registry.get_or_create(session_id)
    queue = broadcaster.subscribe(session_id)
    forwarder = asyncio.create_task(_forward_events(websocket, queue))
    logger.info(f"WebSocket connected for session {session_id}")

    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                await websocket.send_json({"type": "error", "data": {"message": "Message must be JSON"}})
                continue
            await _handle_message(websocket, message, session, orchestrator)
    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected for session {session_id}")
    finally:
        if forwarder.done() and not forwarder.cancelled() and forwarder.exception() is not None:
            logger.warning(
                f"Event forwarding failed for session {session_id}: {forwarder.exception()}"
            )
        forwarder.cancel()
        broadcaster.unsubscribe(session_id, queue)
