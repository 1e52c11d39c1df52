"""OpenAI chat-completions adapter for the narrative summarizer."""

import os
from typing import Any

from openai import AsyncOpenAI, OpenAIError, RateLimitError

from carebridge.errors import SummarizationError
from carebridge.utils.config import SummarizerConfig
from carebridge.utils.logger import get_logger

from .base import Narrative
from .prompts import SYSTEM_PROMPT, build_user_prompt

logger = get_logger(__name__)


class OpenAISummarizer:
    """Summarizes document text with an OpenAI chat model.

    The API key comes from the configuration, falling back to the
    ``OPENAI_API_KEY`` environment variable.

    Args:
        config: Model, sampling and credential settings.
        client: Pre-built ``AsyncOpenAI`` client, mainly for tests.
    """

    def __init__(
        self, config: SummarizerConfig, client: AsyncOpenAI | None = None
    ) -> None:
        self.model = config.model
        self.temperature = config.temperature
        self.max_tokens = config.max_tokens
        self.system_prompt = config.system_prompt or SYSTEM_PROMPT

        if client is None:
            api_key = config.api_key or os.environ.get("OPENAI_API_KEY")
            if not api_key:
                raise ValueError(
                    "OpenAI API key missing: set summarizer.api_key "
                    "or the OPENAI_API_KEY environment variable"
                )
            client = AsyncOpenAI(api_key=api_key, base_url=config.base_url)
        self._client = client

    async def summarize(self, text: str) -> Narrative:
        if not text.strip():
            raise SummarizationError("Nothing to summarize: document text is empty")

        kwargs: dict[str, Any] = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": build_user_prompt(text)},
            ],
            "temperature": self.temperature,
        }
        if self.max_tokens is not None:
            kwargs["max_tokens"] = self.max_tokens

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except RateLimitError as exc:
            logger.error("Summarization rate limited: %s", exc)
            raise SummarizationError(f"Summarization rate limited: {exc}") from exc
        except OpenAIError as exc:
            logger.error("Summarization request failed: %s", exc)
            raise SummarizationError(f"Summarization failed: {exc}") from exc

        choice = response.choices[0] if response.choices else None
        content = choice.message.content if choice and choice.message else None
        if not content or not content.strip():
            finish = choice.finish_reason if choice else None
            raise SummarizationError(
                f"Summarization returned no content (finish reason: {finish})"
            )

        logger.info(
            "Generated %d character narrative with %s", len(content), self.model
        )
        return Narrative(text=content.strip(), model=response.model or self.model)
