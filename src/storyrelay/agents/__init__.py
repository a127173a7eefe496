"""Workflow orchestration for chat and story ingestion."""

from storyrelay.agents.orchestrator import (
    AddStoryRun,
    StoryOrchestrator,
    build_orchestrator,
    get_orchestrator,
    shutdown_orchestrator,
)

__all__ = [
    "AddStoryRun",
    "StoryOrchestrator",
    "build_orchestrator",
    "get_orchestrator",
    "shutdown_orchestrator",
]
