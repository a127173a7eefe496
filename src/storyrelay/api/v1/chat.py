"""Chat and story submission endpoints."""

import logging

from fastapi import APIRouter

from storyrelay.api.dependencies import OrchestratorDep
from storyrelay.api.v1.schemas import (
    ChatRequest,
    ChatResponse,
    NewStoryRequest,
    NewStoryResponse,
)
from storyrelay.errors import ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["chat"])


def _require(value: str | None, message: str) -> str:
    """Reject missing or blank fields before any upstream call."""
    if value is None or not value.strip():
        raise ValidationError(message)
    return value


@router.post("/chat", response_model=ChatResponse)
async def chat(
    orchestrator: OrchestratorDep, request: ChatRequest | None = None
) -> ChatResponse:
    """Relay a user message to the storyteller agent."""
    message = _require(request.message if request else None, "Message is required")
    response = await orchestrator.chat(message)
    return ChatResponse(response=response)


@router.post("/new-story", response_model=NewStoryResponse)
async def new_story(
    orchestrator: OrchestratorDep, request: NewStoryRequest | None = None
) -> NewStoryResponse:
    """Summarize and store a story, then teach it to the agent."""
    story = _require(request.story if request else None, "Story is required")
    summary_id = await orchestrator.add_story(story)
    return NewStoryResponse(summary_id=summary_id)
