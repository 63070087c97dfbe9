"""Health check endpoint.

Reports configured providers, the primary provider, optional capability
and asset availability, uptime and the active quest count. Reading it
never changes state.
"""

from fastapi import APIRouter

from companion.core.dependencies import StatusCheckerDep
from companion.models.api import HealthResponse


router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse, summary="Service health")
async def health_check(status_checker: StatusCheckerDep) -> HealthResponse:
    return HealthResponse(**status_checker.get_health_status())
