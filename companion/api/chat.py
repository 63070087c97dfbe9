"""API routes for conversation turns.

This module implements:
- POST /chat: run one turn on the caller's session
- POST /tools: reminder and weather tools
- GET /proactive: a nudge based on pending reminders and quests
"""

import logging

from fastapi import APIRouter

from companion.core.dependencies import CompanionSessionDep, OrchestratorDep
from companion.models.api import (
    ChatRequest,
    ChatResponse,
    ErrorResponse,
    ProactiveResponse,
    ToolRequest,
    ToolResponse,
)


logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


@router.post(
    "/chat",
    response_model=ChatResponse,
    responses={
        422: {"description": "Invalid request body"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
    summary="Send a message to the companion",
)
async def chat(
    request: ChatRequest,
    session: CompanionSessionDep,
    orchestrator: OrchestratorDep,
) -> ChatResponse:
    """Run one conversational turn.

    Provider, translation and voice failures degrade the reply instead of
    failing the request; the response always carries the updated affect.
    """
    return await orchestrator.run_turn(session, request)


@router.post("/tools", response_model=ToolResponse, summary="Invoke a tool")
async def use_tool(
    request: ToolRequest,
    session: CompanionSessionDep,
    orchestrator: OrchestratorDep,
) -> ToolResponse:
    result = await orchestrator.use_tool(session, request.query)
    return ToolResponse(result=result)


@router.get("/proactive", response_model=ProactiveResponse, summary="Get a proactive message")
async def proactive(
    session: CompanionSessionDep,
    orchestrator: OrchestratorDep,
) -> ProactiveResponse:
    return ProactiveResponse(message=orchestrator.get_proactive(session))
