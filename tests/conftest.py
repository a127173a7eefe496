"""Pytest configuration and fixtures."""

import asyncio
import itertools
from collections.abc import AsyncGenerator
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from storyrelay.agents.orchestrator import StoryOrchestrator
from storyrelay.api.dependencies import get_story_orchestrator
from storyrelay.domain.summary import StorySummary
from storyrelay.infrastructure.identity_store import InMemoryAgentIdentityStore
from storyrelay.main import app


class FakeSummaryStore:
    """In-memory summary log with Firebase-like generated keys."""

    def __init__(self) -> None:
        self.entries: list[StorySummary] = []
        self._ids = itertools.count(1)

    async def initialize(self) -> None:
        pass

    async def close(self) -> None:
        pass

    async def append(self, text: str) -> str:
        key = f"-Nsummary{next(self._ids)}"
        self.entries.append(StorySummary(id=key, text=text, created_at=datetime.now(UTC)))
        return key

    async def latest(self) -> StorySummary | None:
        return self.entries[-1] if self.entries else None


@pytest.fixture
def identity_store() -> InMemoryAgentIdentityStore:
    """Empty identity store (first run)."""
    return InMemoryAgentIdentityStore()


@pytest.fixture
def summary_store() -> FakeSummaryStore:
    return FakeSummaryStore()


@pytest.fixture
def summarizer() -> MagicMock:
    """Summarizer stub returning a fixed summary."""
    service = MagicMock()
    service.summarize = AsyncMock(return_value="A short tale.")
    return service


@pytest.fixture
def agent_client(identity_store: InMemoryAgentIdentityStore) -> MagicMock:
    """Agent client stub.

    create_agent yields to the event loop before persisting the new ID, the
    way a real network round trip would.
    """
    ids = itertools.count(1)
    client = MagicMock()

    async def create_agent(seed_summary: str) -> str:
        agent_id = f"agent-{next(ids)}"
        await asyncio.sleep(0.01)
        await identity_store.save(agent_id)
        return agent_id

    client.create_agent = AsyncMock(side_effect=create_agent)
    client.append_memory = AsyncMock(return_value=None)
    client.converse = AsyncMock(return_value="Hello from the storyteller")
    client.close = AsyncMock()
    return client


@pytest.fixture
def orchestrator(
    summarizer: MagicMock,
    summary_store: FakeSummaryStore,
    agent_client: MagicMock,
    identity_store: InMemoryAgentIdentityStore,
) -> StoryOrchestrator:
    return StoryOrchestrator(
        summarizer=summarizer,
        summary_store=summary_store,
        agent_client=agent_client,
        identity_store=identity_store,
    )


@pytest.fixture
async def client(orchestrator: StoryOrchestrator) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client wired to the stubbed orchestrator."""
    app.dependency_overrides[get_story_orchestrator] = lambda: orchestrator
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        yield client
    app.dependency_overrides.clear()
