"""Dev-only endpoints for managing the storyteller agent."""

import logging

from fastapi import APIRouter

from storyrelay.api.dependencies import ApiKeyDep, OrchestratorDep
from storyrelay.api.v1.schemas import AgentResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dev", tags=["dev"])


@router.delete("/agent", response_model=AgentResponse)
async def forget_agent(
    orchestrator: OrchestratorDep,
    _auth: ApiKeyDep,
) -> AgentResponse:
    """Forget the stored agent ID. The next request creates a new agent."""
    await orchestrator.forget_agent()
    logger.info("Stored agent ID cleared via dev endpoint")
    return AgentResponse(agent_id=None, message="Agent ID cleared")


@router.post("/agent/recreate", response_model=AgentResponse)
async def recreate_agent(
    orchestrator: OrchestratorDep,
    _auth: ApiKeyDep,
) -> AgentResponse:
    """Create a fresh agent seeded with the latest summary."""
    agent_id = await orchestrator.recreate_agent()
    return AgentResponse(agent_id=agent_id, message="Agent recreated")
