"""Single-slot storage for the active agent identifier."""

import asyncio
import logging
from pathlib import Path
from typing import Protocol

from storyrelay.errors import ProviderError

logger = logging.getLogger(__name__)


class AgentIdentityStore(Protocol):
    """Holds zero or one agent identifier."""

    async def load(self) -> str | None:
        """Return the stored identifier, or None if there is none yet."""
        ...

    async def save(self, agent_id: str) -> None:
        """Replace the stored identifier."""
        ...

    async def clear(self) -> None:
        """Forget the stored identifier."""
        ...


class FileAgentIdentityStore:
    """Identity store backed by a plain text file.

    A missing or empty file is the normal "no agent yet" state.
    """

    def __init__(self, filepath: str | Path) -> None:
        """Initialize store.

        Args:
            filepath: Path of the text file holding the identifier
        """
        self.filepath = Path(filepath)

    def _read(self) -> str | None:
        try:
            agent_id = self.filepath.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise ProviderError(
                "identity-store", "Failed to read agent ID file", str(e)
            ) from e
        return agent_id or None

    def _write(self, agent_id: str) -> None:
        try:
            self.filepath.parent.mkdir(parents=True, exist_ok=True)
            self.filepath.write_text(agent_id, encoding="utf-8")
        except OSError as e:
            raise ProviderError(
                "identity-store", "Failed to write agent ID file", str(e)
            ) from e

    def _delete(self) -> None:
        try:
            self.filepath.unlink(missing_ok=True)
        except OSError as e:
            raise ProviderError(
                "identity-store", "Failed to remove agent ID file", str(e)
            ) from e

    async def load(self) -> str | None:
        agent_id = await asyncio.to_thread(self._read)
        if agent_id:
            logger.info(f"Using existing agent ID: {agent_id}")
        return agent_id

    async def save(self, agent_id: str) -> None:
        await asyncio.to_thread(self._write, agent_id.strip())
        logger.info(f"Stored agent ID {agent_id} in {self.filepath}")

    async def clear(self) -> None:
        await asyncio.to_thread(self._delete)
        logger.info(f"Cleared agent ID file {self.filepath}")


class InMemoryAgentIdentityStore:
    """Identity store kept in process memory."""

    def __init__(self, agent_id: str | None = None) -> None:
        self.agent_id = agent_id

    async def load(self) -> str | None:
        return self.agent_id

    async def save(self, agent_id: str) -> None:
        self.agent_id = agent_id.strip()

    async def clear(self) -> None:
        self.agent_id = None
