"""Tests for API key protection of the dev agent routes."""

from unittest.mock import MagicMock, patch

import pytest
from fastapi import HTTPException

from storyrelay.api.dependencies import require_api_key


class TestApiKeyAuth:
    """Tests for API key authentication dependency."""

    @pytest.mark.asyncio
    async def test_no_api_key_configured_allows_anonymous(self):
        """When API_KEY is empty, auth is skipped."""
        with patch("storyrelay.api.dependencies.get_settings") as mock_settings:
            mock_settings.return_value = MagicMock(api_key="")
            result = await require_api_key(api_key=None)
            assert result == "anonymous"

    @pytest.mark.asyncio
    async def test_valid_api_key_passes(self):
        with patch("storyrelay.api.dependencies.get_settings") as mock_settings:
            mock_settings.return_value = MagicMock(api_key="secret-key-123")
            result = await require_api_key(api_key="secret-key-123")
            assert result == "secret-key-123"

    @pytest.mark.asyncio
    async def test_wrong_api_key_rejected(self):
        with patch("storyrelay.api.dependencies.get_settings") as mock_settings:
            mock_settings.return_value = MagicMock(api_key="secret-key-123")
            with pytest.raises(HTTPException) as exc_info:
                await require_api_key(api_key="wrong-key")
            assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_missing_api_key_rejected(self):
        with patch("storyrelay.api.dependencies.get_settings") as mock_settings:
            mock_settings.return_value = MagicMock(api_key="secret-key-123")
            with pytest.raises(HTTPException) as exc_info:
                await require_api_key(api_key=None)
            assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_dev_route_requires_key(self, client):
        with patch("storyrelay.api.dependencies.get_settings") as mock_settings:
            mock_settings.return_value = MagicMock(api_key="secret-key-123")
            response = await client.delete("/dev/agent")
            assert response.status_code == 403

            response = await client.delete(
                "/dev/agent", headers={"X-API-Key": "secret-key-123"}
            )
            assert response.status_code == 200
