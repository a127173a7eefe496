"""Client for the remote stateful conversational-agent server."""

import json
import logging
from dataclasses import asdict
from typing import Any

import aiohttp
from aiohttp import ClientTimeout

from storyrelay.domain.agent_reply import decode_reply, extract_send_message
from storyrelay.domain.message import ChatMessage
from storyrelay.errors import ProviderError, ResponseShapeError
from storyrelay.infrastructure.identity_store import AgentIdentityStore

logger = logging.getLogger(__name__)

SEED_PROMPT = (
    "You are a storyteller AI with knowledge of the following story summary: {summary}"
)
APPEND_PROMPT = (
    "Add this new story summary to your knowledge base, "
    "while retaining all previous story information: {summary}"
)


class AgentClient:
    """Async JSON client for the agent server's create/message endpoints."""

    def __init__(
        self,
        base_url: str,
        password: str,
        identity_store: AgentIdentityStore,
        agent_name: str = "StorytellerAgent",
        model: str = "gpt-4o",
        max_tokens: int = 1000,
        temperature: float = 0.7,
        timeout_seconds: int = 60,
    ) -> None:
        """Initialize agent client.

        Args:
            base_url: Agent server root URL
            password: Bearer credential for the server
            identity_store: Where newly created agent IDs are persisted
            agent_name: Name given to created agents
            model: LLM model configured on created agents
            max_tokens: Max tokens configured on created agents
            temperature: Sampling temperature configured on created agents
            timeout_seconds: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.password = password
        self.identity_store = identity_store
        self.agent_name = agent_name
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = ClientTimeout(total=timeout_seconds)
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.password}",
            "Content-Type": "application/json",
        }

    async def _post(self, path: str, payload: dict[str, Any]) -> Any:
        """POST JSON and return the decoded body.

        Raises:
            ProviderError: On transport failure or a non-2xx status
        """
        session = await self._get_session()
        url = f"{self.base_url}{path}"
        try:
            async with session.post(url, json=payload, headers=self.headers) as response:
                if not 200 <= response.status < 300:
                    body = await response.text()
                    logger.error(f"HTTP {response.status} for {url}: {body}")
                    raise ProviderError(
                        "agent", f"HTTP {response.status} for POST {path}", body
                    )
                body = await response.text()
                try:
                    return json.loads(body) if body else None
                except ValueError as e:
                    logger.error(f"Malformed JSON from {url}: {body}")
                    raise ResponseShapeError("agent", "Malformed JSON response", body) from e
        except TimeoutError as e:
            logger.error(f"Timeout posting to {url}")
            raise ProviderError("agent", f"Timeout on POST {path}") from e
        except aiohttp.ClientError as e:
            logger.error(f"Client error posting to {url}: {e}")
            raise ProviderError("agent", f"Request to {path} failed", str(e)) from e

    def _agent_config(self) -> dict[str, Any]:
        return {
            "name": self.agent_name,
            "preset": "memgpt_chat",
            "human": "user",
            "persona": "assistant",
            "llm_config": {
                "model": self.model,
                "max_tokens": self.max_tokens,
                "temperature": self.temperature,
            },
        }

    async def create_agent(self, seed_summary: str) -> str:
        """Create an agent preloaded with a story summary.

        The new agent ID is persisted to the identity store before returning.

        Args:
            seed_summary: Summary placed in the agent's seed system message

        Returns:
            The new agent ID
        """
        logger.info("Creating new agent with story memory...")
        seed = ChatMessage(role="system", content=SEED_PROMPT.format(summary=seed_summary))
        data = await self._post(
            "/api/agents",
            {"config": self._agent_config(), "messages": [asdict(seed)]},
        )

        agent_state = data.get("agent_state") if isinstance(data, dict) else None
        agent_id = agent_state.get("id") if isinstance(agent_state, dict) else None
        if not isinstance(agent_id, str) or not agent_id.strip():
            raise ResponseShapeError(
                "agent", "Create response carried no agent ID", str(data)
            )

        agent_id = agent_id.strip()
        await self.identity_store.save(agent_id)
        logger.info(f"New agent created with ID: {agent_id}")
        return agent_id

    async def append_memory(self, agent_id: str, summary: str) -> None:
        """Ask an agent to add a new summary to what it already knows.

        Success only means the call did not error; the agent's memory is not
        inspected afterwards.
        """
        logger.info(f"Updating agent {agent_id} with new summary...")
        await self._post(
            f"/api/agents/{agent_id}/messages",
            {
                "agent_id": agent_id,
                "message": APPEND_PROMPT.format(summary=summary),
                "role": "system",
            },
        )
        logger.info("Agent memory updated successfully with new story")

    async def converse(self, agent_id: str, message: str) -> str:
        """Send a user message and return the agent's reply text.

        Raises:
            ResponseShapeError: If the reply has no usable send_message call
        """
        logger.info(f'Sending message to agent {agent_id}: "{message}"')
        data = await self._post(
            f"/api/agents/{agent_id}/messages",
            {
                "agent_id": agent_id,
                "message": message,
                "stream": False,
                "role": "user",
            },
        )
        return extract_send_message(decode_reply(data))
