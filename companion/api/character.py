"""API routes for character re-personalization and history export."""

import logging

from fastapi import APIRouter

from companion.core.dependencies import CompanionSessionDep, OrchestratorDep
from companion.models.api import (
    CharacterUpdateRequest,
    CharacterUpdateResponse,
    ErrorResponse,
    ExportRequest,
    ExportResponse,
)


logger = logging.getLogger(__name__)

router = APIRouter(tags=["character"])


@router.post(
    "/character",
    response_model=CharacterUpdateResponse,
    response_model_exclude_none=True,
    summary="Re-personalize the companion",
)
async def update_character(
    request: CharacterUpdateRequest,
    session: CompanionSessionDep,
    orchestrator: OrchestratorDep,
) -> CharacterUpdateResponse:
    return await orchestrator.update_character(session, request.prompt)


@router.post(
    "/export",
    response_model=ExportResponse,
    responses={
        503: {"model": ErrorResponse, "description": "History store unavailable"},
    },
    summary="Export recent conversation history",
)
async def export_history(
    request: ExportRequest,
    session: CompanionSessionDep,
    orchestrator: OrchestratorDep,
) -> ExportResponse:
    """Export the most recent turns as base64 JSON or PDF."""
    data = await orchestrator.export_history(session, request.format)
    return ExportResponse(data=data, format=request.format)
