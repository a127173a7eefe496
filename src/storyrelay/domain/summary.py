"""Story summary domain entity."""

from dataclasses import dataclass
from datetime import UTC, datetime


@dataclass(frozen=True)
class StorySummary:
    """Represents a stored, model-produced story summary."""

    id: str | None
    text: str
    created_at: datetime | None = None

    @classmethod
    def from_firebase(cls, key: str, data: dict) -> "StorySummary":
        """Create StorySummary from a Realtime Database child node."""
        timestamp = data.get("timestamp")
        created_at = (
            datetime.fromtimestamp(timestamp / 1000, tz=UTC)
            if isinstance(timestamp, int | float)
            else None
        )
        return cls(id=key, text=data.get("summary", ""), created_at=created_at)
