"""OpenAI-powered story summarization service."""

import logging

from openai import AsyncOpenAI, OpenAIError

from storyrelay.errors import ProviderError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = "You are a helpful assistant that summarizes stories concisely."

SUMMARIZATION_PROMPT = "Please summarize the following story:\n\n{story}"


class SummarizerService:
    """Service for reducing a story to a short summary."""

    def __init__(self, api_key: str, model: str = "gpt-4o") -> None:
        """Initialize the summarizer."""
        self.client = AsyncOpenAI(api_key=api_key) if api_key else None
        self.model = model

    async def summarize(self, story: str) -> str:
        """Summarize a story.

        Raises:
            ProviderError: If the API key is missing, the completion call
                fails, or the model returns no content
        """
        if self.client is None:
            logger.warning("OpenAI API key not configured")
            raise ProviderError("openai", "OpenAI API key not configured")

        try:
            completion = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_PROMPT},
                    {"role": "user", "content": SUMMARIZATION_PROMPT.format(story=story)},
                ],
            )
        except OpenAIError as e:
            logger.error(f"Error summarizing story: {e}")
            raise ProviderError("openai", "Failed to summarize story", str(e)) from e

        content = completion.choices[0].message.content if completion.choices else None
        if not content or not content.strip():
            logger.error("Summarization returned empty content")
            raise ProviderError("openai", "Failed to summarize story", "Empty completion")

        summary = content.strip()
        logger.info(f"Generated summary: {summary}")
        return summary
