"""StoryRelay configuration using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Environment
    environment: str = "development"
    port: int = 3001
    cors_origins: list[str] = ["*"]

    # Dev routes (empty disables the check)
    api_key: str = ""

    # OpenAI
    openai_api_key: str = ""
    summarization_model: str = "gpt-4o"

    # Agent server
    agent_server_url: str = "http://localhost:8083"
    agent_server_password: str = ""
    agent_name: str = "StorytellerAgent"
    agent_model: str = "gpt-4o"
    agent_max_tokens: int = 1000
    agent_temperature: float = 0.7
    agent_id_file: str = "perpetual_agent_id.txt"
    serialize_agent_creation: bool = True

    # Summary store
    summary_backend: Literal["firebase", "sql"] = "firebase"
    firebase_database_url: str = ""
    firebase_auth_token: str = ""
    database_url: str = "sqlite+aiosqlite:///./storyrelay.db"

    # Outbound HTTP
    http_timeout_seconds: int = 60

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
