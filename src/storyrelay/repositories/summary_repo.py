"""Story summary stores."""

import logging
import uuid
from datetime import UTC
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine

from storyrelay.config import Settings
from storyrelay.domain.summary import StorySummary
from storyrelay.errors import ProviderError
from storyrelay.infrastructure.database import (
    create_engine,
    create_session_factory,
    create_tables,
)
from storyrelay.infrastructure.firebase_client import SERVER_TIMESTAMP, FirebaseClient
from storyrelay.infrastructure.models import StorySummaryModel

logger = logging.getLogger(__name__)

SUMMARIES_PATH = "story_summaries"


class SummaryStore(Protocol):
    """Append-only, time-ordered log of story summaries."""

    async def append(self, text: str) -> str:
        """Store a summary and return its generated key."""
        ...

    async def latest(self) -> StorySummary | None:
        """Return the most recent summary, or None if the log is empty."""
        ...

    async def initialize(self) -> None:
        """Prepare the backend at application startup."""
        ...

    async def close(self) -> None:
        """Release connections at application shutdown."""
        ...


class FirebaseSummaryStore:
    """Summary log kept under ``story_summaries`` in the Realtime Database.

    Entries are stamped with the server timestamp. When two entries share a
    timestamp, ``latest`` returns whichever one the database picks.

    Database rules should declare ``".indexOn": "timestamp"`` on
    ``story_summaries``; without it ``latest`` downloads the whole node.
    """

    def __init__(self, client: FirebaseClient, path: str = SUMMARIES_PATH) -> None:
        self.client = client
        self.path = path

    async def initialize(self) -> None:
        pass

    async def close(self) -> None:
        await self.client.close()

    async def append(self, text: str) -> str:
        key = await self.client.push(
            self.path, {"summary": text, "timestamp": SERVER_TIMESTAMP}
        )
        logger.info(f"Summary stored with ID: {key}")
        return key

    async def latest(self) -> StorySummary | None:
        children = await self.client.query_last(self.path, order_by="timestamp")
        if not children:
            logger.info("No summaries found.")
            return None

        key, data = next(iter(children.items()))
        if not isinstance(data, dict):
            raise ProviderError("firebase", "Malformed summary entry", str(data))
        return StorySummary.from_firebase(key, data)


class SqlSummaryStore:
    """Summary log kept in a SQL table.

    Ties on ``created_at`` are broken by insertion order.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self.session_factory = create_session_factory(engine)

    async def initialize(self) -> None:
        await create_tables(self.engine)

    async def close(self) -> None:
        await self.engine.dispose()

    async def append(self, text: str) -> str:
        key = uuid.uuid4().hex
        try:
            async with self.session_factory() as session:
                session.add(StorySummaryModel(key=key, text=text))
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"Error storing summary in database: {e}")
            raise ProviderError(
                "database", "Failed to store summary in database", str(e)
            ) from e

        logger.info(f"Summary stored with ID: {key}")
        return key

    async def latest(self) -> StorySummary | None:
        stmt = (
            select(StorySummaryModel)
            .order_by(StorySummaryModel.created_at.desc(), StorySummaryModel.id.desc())
            .limit(1)
        )
        try:
            async with self.session_factory() as session:
                result = await session.execute(stmt)
                row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error(f"Error fetching latest summary: {e}")
            raise ProviderError(
                "database", "Failed to fetch latest summary", str(e)
            ) from e

        if row is None:
            logger.info("No summaries found.")
            return None
        created_at = row.created_at
        if created_at.tzinfo is None:
            # SQLite drops the offset; values are stored in UTC
            created_at = created_at.replace(tzinfo=UTC)
        return StorySummary(id=row.key, text=row.text, created_at=created_at)


def build_summary_store(settings: Settings) -> SummaryStore:
    """Create the summary store selected by ``summary_backend``."""
    if settings.summary_backend == "sql":
        return SqlSummaryStore(
            create_engine(settings.database_url, echo=not settings.is_production)
        )
    return FirebaseSummaryStore(
        FirebaseClient(
            database_url=settings.firebase_database_url,
            auth_token=settings.firebase_auth_token,
            timeout_seconds=settings.http_timeout_seconds,
        )
    )
