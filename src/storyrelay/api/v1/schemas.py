"""Pydantic schemas for API request/response models."""

from pydantic import BaseModel, ConfigDict, Field


class ChatRequest(BaseModel):
    """Request schema for a chat message."""

    message: str | None = None


class ChatResponse(BaseModel):
    """Response schema for an agent reply."""

    response: str


class NewStoryRequest(BaseModel):
    """Request schema for a story submission."""

    story: str | None = None


class NewStoryResponse(BaseModel):
    """Response schema for a stored story summary."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    summary_id: str = Field(alias="summaryId")


class AgentResponse(BaseModel):
    """Response schema for agent administration."""

    agent_id: str | None
    message: str
