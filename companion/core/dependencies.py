"""FastAPI dependency injection configuration.

This module provides FastAPI Depends functions for injecting services
into route handlers.
"""

from typing import Annotated

from fastapi import Depends, Header

from companion.core.config import settings
from companion.core.container import ServiceContainer, get_container
from companion.services.orchestrator import Orchestrator
from companion.services.session import CompanionSession, SessionRegistry
from companion.services.status_checker import StatusChecker


def get_service_container() -> ServiceContainer:
    """Get the service container dependency."""
    return get_container()


def get_orchestrator(
    container: Annotated[ServiceContainer, Depends(get_service_container)],
) -> Orchestrator:
    return container.get_orchestrator()


def get_session_registry(
    container: Annotated[ServiceContainer, Depends(get_service_container)],
) -> SessionRegistry:
    return container.get_session_registry()


def get_status_checker(
    container: Annotated[ServiceContainer, Depends(get_service_container)],
) -> StatusChecker:
    return container.get_status_checker()


def get_session_id(
    x_session_id: Annotated[str | None, Header(alias="X-Session-ID")] = None,
) -> str:
    """Session selected by the ``X-Session-ID`` header."""
    if x_session_id and x_session_id.strip():
        return x_session_id.strip()
    return settings.default_session_id


async def get_companion_session(
    session_id: Annotated[str, Depends(get_session_id)],
    registry: Annotated[SessionRegistry, Depends(get_session_registry)],
) -> CompanionSession:
    """Get (or start) the companion session for this request."""
    return await registry.get_or_create(session_id)


# Type aliases for cleaner route signatures
OrchestratorDep = Annotated[Orchestrator, Depends(get_orchestrator)]
SessionRegistryDep = Annotated[SessionRegistry, Depends(get_session_registry)]
StatusCheckerDep = Annotated[StatusChecker, Depends(get_status_checker)]
CompanionSessionDep = Annotated[CompanionSession, Depends(get_companion_session)]
