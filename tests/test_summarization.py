"""Tests for the OpenAI narrative summarizer."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai import APIConnectionError, RateLimitError

from carebridge.errors import SummarizationError
from carebridge.summarization.openai_summarizer import OpenAISummarizer
from carebridge.summarization.prompts import SYSTEM_PROMPT, build_user_prompt
from carebridge.utils.config import SummarizerConfig

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _response(content: str | None, finish_reason: str = "stop") -> MagicMock:
    choice = MagicMock()
    choice.message.content = content
    choice.finish_reason = finish_reason
    response = MagicMock()
    response.choices = [choice]
    response.model = "gpt-4o-mini-2024-07-18"
    return response


def _client(response: MagicMock | None = None, error: Exception | None = None):
    client = MagicMock()
    client.chat.completions.create = AsyncMock(return_value=response, side_effect=error)
    return client


class TestPrompts:
    """Tests for prompt construction."""

    def test_user_prompt_contains_text(self) -> None:
        prompt = build_user_prompt("  Glucose 180 mg/dL \n")
        assert "Glucose 180 mg/dL" in prompt
        assert prompt.endswith("Please explain this document.")

    def test_system_prompt_mentions_professional(self) -> None:
        assert "healthcare professional" in SYSTEM_PROMPT


class TestOpenAISummarizer:
    """Tests for the OpenAISummarizer class (mocked client)."""

    def test_summarize(self) -> None:
        client = _client(_response("  This is a lab report.  "))
        summarizer = OpenAISummarizer(SummarizerConfig(), client=client)

        narrative = asyncio.run(summarizer.summarize("Glucose 180"))

        assert narrative.text == "This is a lab report."
        assert narrative.model == "gpt-4o-mini-2024-07-18"
        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["temperature"] == 0.2
        assert kwargs["max_tokens"] == 800
        assert kwargs["messages"][0] == {"role": "system", "content": SYSTEM_PROMPT}
        assert "Glucose 180" in kwargs["messages"][1]["content"]

    def test_no_max_tokens(self) -> None:
        client = _client(_response("ok"))
        summarizer = OpenAISummarizer(SummarizerConfig(max_tokens=None), client=client)

        asyncio.run(summarizer.summarize("text"))

        assert "max_tokens" not in client.chat.completions.create.call_args.kwargs

    def test_custom_system_prompt(self) -> None:
        client = _client(_response("ok"))
        config = SummarizerConfig(system_prompt="Be brief.")

        asyncio.run(OpenAISummarizer(config, client=client).summarize("text"))

        messages = client.chat.completions.create.call_args.kwargs["messages"]
        assert messages[0]["content"] == "Be brief."

    def test_blank_text_rejected(self) -> None:
        client = _client(_response("ok"))
        summarizer = OpenAISummarizer(SummarizerConfig(), client=client)

        with pytest.raises(SummarizationError, match="empty"):
            asyncio.run(summarizer.summarize("   "))
        client.chat.completions.create.assert_not_called()

    def test_empty_generation(self) -> None:
        summarizer = OpenAISummarizer(
            SummarizerConfig(), client=_client(_response("", "content_filter"))
        )

        with pytest.raises(SummarizationError, match="content_filter"):
            asyncio.run(summarizer.summarize("text"))

    def test_no_choices(self) -> None:
        response = _response("ok")
        response.choices = []
        summarizer = OpenAISummarizer(SummarizerConfig(), client=_client(response))

        with pytest.raises(SummarizationError, match="no content"):
            asyncio.run(summarizer.summarize("text"))

    def test_rate_limited(self) -> None:
        error = RateLimitError(
            "Rate limit reached",
            response=httpx.Response(429, request=_REQUEST),
            body=None,
        )
        summarizer = OpenAISummarizer(SummarizerConfig(), client=_client(error=error))

        with pytest.raises(SummarizationError, match="rate limited"):
            asyncio.run(summarizer.summarize("text"))

    def test_service_unavailable(self) -> None:
        error = APIConnectionError(request=_REQUEST)
        summarizer = OpenAISummarizer(SummarizerConfig(), client=_client(error=error))

        with pytest.raises(SummarizationError):
            asyncio.run(summarizer.summarize("text"))

    def test_missing_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        with pytest.raises(ValueError, match="API key"):
            OpenAISummarizer(SummarizerConfig())

    def test_api_key_from_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
        summarizer = OpenAISummarizer(SummarizerConfig(model="gpt-4o"))
        assert summarizer.model == "gpt-4o"
