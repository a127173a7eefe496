"""FastAPI dependency injection providers."""

import secrets
from typing import Annotated

from fastapi import Depends, HTTPException, Security
from fastapi.security import APIKeyHeader

from storyrelay.agents.orchestrator import StoryOrchestrator, get_orchestrator
from storyrelay.config import get_settings

# --- API Key Authentication ---

_api_key_header = APIKeyHeader(name="X-API-Key", auto_error=False)


async def require_api_key(
    api_key: str | None = Security(_api_key_header),
) -> str:
    """Verify API key for agent administration endpoints.

    If API_KEY is not configured (empty), auth is skipped (dev mode).
    """
    settings = get_settings()
    if not settings.api_key:
        return "anonymous"
    if not api_key or not secrets.compare_digest(api_key, settings.api_key):
        raise HTTPException(status_code=403, detail="Invalid or missing API key")
    return api_key


ApiKeyDep = Annotated[str, Depends(require_api_key)]


def get_story_orchestrator() -> StoryOrchestrator:
    """Provide StoryOrchestrator instance."""
    return get_orchestrator()


OrchestratorDep = Annotated[StoryOrchestrator, Depends(get_story_orchestrator)]
