"""Orchestrator for the chat and add-story workflows."""

import asyncio
import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from dataclasses import dataclass, field

from storyrelay.config import Settings, get_settings
from storyrelay.errors import NoAgentAvailable, StoryPipelineError
from storyrelay.infrastructure.agent_client import AgentClient
from storyrelay.infrastructure.identity_store import (
    AgentIdentityStore,
    FileAgentIdentityStore,
)
from storyrelay.repositories.summary_repo import SummaryStore, build_summary_store
from storyrelay.services.summarizer import SummarizerService

logger = logging.getLogger(__name__)


@dataclass
class AddStoryRun:
    """State carried between the steps of one add-story run."""

    story: str
    summary: str = ""
    summary_id: str = ""
    agent_id: str | None = None
    created_agent: bool = False
    completed_steps: list[str] = field(default_factory=list)


class StoryOrchestrator:
    """Coordinates summarization, storage and agent memory.

    Add-story steps:
    - 'summarize': reduce the story to a summary
    - 'store_summary': append the summary to the summary store
    - 'propagate_to_agent': append to the current agent's memory, or create
      an agent seeded with the summary if none exists

    Steps are not rolled back: a failure in a later step leaves the stored
    summary in place.
    """

    def __init__(
        self,
        summarizer: SummarizerService,
        summary_store: SummaryStore,
        agent_client: AgentClient,
        identity_store: AgentIdentityStore,
        serialize_agent_creation: bool = True,
    ) -> None:
        """Initialize orchestrator.

        Args:
            summarizer: Story summarization client
            summary_store: Where summaries are appended
            agent_client: Agent server client
            identity_store: Single-slot store for the current agent ID
            serialize_agent_creation: Guard agent lookup-and-create with a
                lock so concurrent requests create at most one agent
        """
        self.summarizer = summarizer
        self.summary_store = summary_store
        self.agent_client = agent_client
        self.identity_store = identity_store
        self._agent_lock = asyncio.Lock() if serialize_agent_creation else None
        self._steps: list[tuple[str, Callable[[AddStoryRun], Awaitable[None]]]] = [
            ("summarize", self._summarize),
            ("store_summary", self._store_summary),
            ("propagate_to_agent", self._propagate_to_agent),
        ]

    async def start(self) -> None:
        """Prepare backing stores."""
        await self.summary_store.initialize()

    async def close(self) -> None:
        """Close outbound connections."""
        await self.agent_client.close()
        await self.summary_store.close()

    @asynccontextmanager
    async def _agent_resolution(self) -> AsyncIterator[None]:
        if self._agent_lock is None:
            yield
            return
        async with self._agent_lock:
            yield

    async def resolve_agent(self) -> str:
        """Return the current agent ID, creating one from the latest summary.

        Raises:
            NoAgentAvailable: If no agent exists and no summary is stored
        """
        async with self._agent_resolution():
            agent_id = await self.identity_store.load()
            if agent_id:
                return agent_id

            latest = await self.summary_store.latest()
            if latest is None:
                logger.info("No summary available. Please create a summary first.")
                raise NoAgentAvailable()
            return await self.agent_client.create_agent(latest.text)

    async def chat(self, message: str) -> str:
        """Send a user message to the current agent and return its reply."""
        agent_id = await self.resolve_agent()
        reply = await self.agent_client.converse(agent_id, message)
        logger.info(f"Agent {agent_id} replied: {reply}")
        return reply

    async def add_story(self, story: str) -> str:
        """Summarize a story, store it and propagate it to the agent.

        Returns:
            Key of the stored summary

        Raises:
            StoryPipelineError: Naming the step that failed
        """
        run = AddStoryRun(story=story)
        for name, step in self._steps:
            logger.info(f"Add story step: {name}")
            try:
                await step(run)
            except Exception as e:
                logger.error(f"Add story failed at step '{name}': {e}", exc_info=True)
                raise StoryPipelineError(
                    step=name,
                    cause=e,
                    completed_steps=list(run.completed_steps),
                    summary_id=run.summary_id or None,
                ) from e
            run.completed_steps.append(name)

        logger.info(
            f"Add story complete: summary_id={run.summary_id}, "
            f"agent_id={run.agent_id}, created_agent={run.created_agent}"
        )
        return run.summary_id

    async def _summarize(self, run: AddStoryRun) -> None:
        run.summary = await self.summarizer.summarize(run.story)

    async def _store_summary(self, run: AddStoryRun) -> None:
        run.summary_id = await self.summary_store.append(run.summary)

    async def _propagate_to_agent(self, run: AddStoryRun) -> None:
        async with self._agent_resolution():
            agent_id = await self.identity_store.load()
            if agent_id is None:
                logger.info("No agent found. Creating a new one...")
                run.agent_id = await self.agent_client.create_agent(run.summary)
                run.created_agent = True
                return

        run.agent_id = agent_id
        await self.agent_client.append_memory(agent_id, run.summary)

    async def forget_agent(self) -> None:
        """Drop the stored agent ID without touching the remote agent."""
        async with self._agent_resolution():
            await self.identity_store.clear()

    async def recreate_agent(self) -> str:
        """Replace the current agent with a fresh one seeded from the latest summary.

        Raises:
            NoAgentAvailable: If no summary is stored
        """
        async with self._agent_resolution():
            latest = await self.summary_store.latest()
            if latest is None:
                raise NoAgentAvailable()
            return await self.agent_client.create_agent(latest.text)


def build_orchestrator(
    settings: Settings,
    summary_store: SummaryStore,
    identity_store: AgentIdentityStore | None = None,
) -> StoryOrchestrator:
    """Wire an orchestrator from settings."""
    identity_store = identity_store or FileAgentIdentityStore(settings.agent_id_file)
    return StoryOrchestrator(
        summarizer=SummarizerService(
            api_key=settings.openai_api_key,
            model=settings.summarization_model,
        ),
        summary_store=summary_store,
        agent_client=AgentClient(
            base_url=settings.agent_server_url,
            password=settings.agent_server_password,
            identity_store=identity_store,
            agent_name=settings.agent_name,
            model=settings.agent_model,
            max_tokens=settings.agent_max_tokens,
            temperature=settings.agent_temperature,
            timeout_seconds=settings.http_timeout_seconds,
        ),
        identity_store=identity_store,
        serialize_agent_creation=settings.serialize_agent_creation,
    )


# Singleton instance
_orchestrator: StoryOrchestrator | None = None


def get_orchestrator() -> StoryOrchestrator:
    """Get or create the orchestrator singleton."""
    global _orchestrator
    if _orchestrator is None:
        settings = get_settings()
        _orchestrator = build_orchestrator(settings, build_summary_store(settings))
    return _orchestrator


async def shutdown_orchestrator() -> None:
    """Close the singleton's connections and drop it."""
    global _orchestrator
    if _orchestrator is not None:
        await _orchestrator.close()
        _orchestrator = None
