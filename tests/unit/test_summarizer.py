"""Edge case tests for SummarizerService: OpenAI failures, empty completions."""

import logging
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from storyrelay.errors import ProviderError
from storyrelay.services.summarizer import SYSTEM_PROMPT, SummarizerService


def _make_completion(content):
    """Create a mock chat completion with a single choice."""
    completion = MagicMock()
    choice = MagicMock()
    choice.message.content = content
    completion.choices = [choice]
    return completion


def _make_service(create: AsyncMock) -> SummarizerService:
    service = SummarizerService(api_key="test-key", model="gpt-4o")
    service.client = MagicMock()
    service.client.chat.completions.create = create
    return service


class TestSummarize:
    """Tests for summarize."""

    @pytest.mark.asyncio
    async def test_returns_stripped_summary(self):
        create = AsyncMock(return_value=_make_completion("  A short tale.\n"))
        service = _make_service(create)

        summary = await service.summarize("Once upon a time...")

        assert summary == "A short tale."
        kwargs = create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert kwargs["messages"][1]["role"] == "user"
        assert kwargs["messages"][1]["content"].endswith("Once upon a time...")

    @pytest.mark.asyncio
    async def test_no_api_key(self, caplog):
        service = SummarizerService(api_key="")

        with caplog.at_level(logging.WARNING), pytest.raises(ProviderError):
            await service.summarize("A story")

        assert "API key not configured" in caplog.text

    @pytest.mark.asyncio
    async def test_openai_error(self, caplog):
        request = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")
        create = AsyncMock(side_effect=openai.APIConnectionError(request=request))
        service = _make_service(create)

        with caplog.at_level(logging.ERROR), pytest.raises(ProviderError) as exc_info:
            await service.summarize("A story")

        assert exc_info.value.provider == "openai"
        assert exc_info.value.message == "Failed to summarize story"
        assert "Error summarizing story" in caplog.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("content", [None, "", "   "])
    async def test_empty_content(self, content):
        service = _make_service(AsyncMock(return_value=_make_completion(content)))

        with pytest.raises(ProviderError, match="Empty completion"):
            await service.summarize("A story")

    @pytest.mark.asyncio
    async def test_no_choices(self):
        completion = MagicMock()
        completion.choices = []
        service = _make_service(AsyncMock(return_value=completion))

        with pytest.raises(ProviderError):
            await service.summarize("A story")

    @pytest.mark.asyncio
    async def test_long_story_sent_untruncated(self):
        create = AsyncMock(return_value=_make_completion("Long."))
        service = _make_service(create)
        story = "word " * 20000

        await service.summarize(story)

        assert story in create.call_args.kwargs["messages"][1]["content"]
