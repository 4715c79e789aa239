"""
Health and Status Endpoints.

This module provides basic system status endpoints used for monitoring and
deployment verification, plus the A2A platform status (registered agents,
agent cache and execution statistics).
"""

from fastapi import APIRouter

from empire_ai.agent_core.factory import get_a2a_status
from empire_ai.server.schemas import A2AStatus
from empire_ai.server.services.deps import PlatformDep

router = APIRouter()


@router.get(
    "/health",
    summary="Health Check",
    description="Check the operational status of the API server.",
    response_description="Status object.",
)
async def health_check():
    """
    Health check endpoint.

    Returns a simple status indicator to confirm the server is running and reachable.
    """
    return {"status": "ok"}


@router.get(
    "/api/a2a/status",
    response_model=A2AStatus,
    summary="A2A Status",
    description="Registered agents, agent cache and execution statistics.",
    response_description="Status object.",
)
async def a2a_status(platform: PlatformDep):
    return A2AStatus(**get_a2a_status(platform))
