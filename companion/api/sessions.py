"""API routes for quests and session lifecycle."""

import logging

from fastapi import APIRouter, HTTPException, status

from companion.core.dependencies import CompanionSessionDep, OrchestratorDep, SessionRegistryDep
from companion.models.api import QuestListResponse


logger = logging.getLogger(__name__)

router = APIRouter(tags=["sessions"])


@router.get("/quests", response_model=QuestListResponse, summary="List active quests")
async def list_quests(
    session: CompanionSessionDep,
    orchestrator: OrchestratorDep,
) -> QuestListResponse:
    return QuestListResponse(quests=orchestrator.list_quests(session))


@router.delete(
    "/sessions/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="End a session and discard its in-memory state",
)
async def end_session(session_id: str, registry: SessionRegistryDep) -> None:
    if not await registry.end(session_id):
        raise HTTPException(status_code=404, detail=f"Session '{session_id}' not found")
