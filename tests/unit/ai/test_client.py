"""Tests for focuslog/ai/client.py

The Anthropic adapter is exercised against a stub client so no network
call is ever made.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock

import anthropic
import httpx
import pytest

from focuslog.ai.client import (
    JSON_SYSTEM_PROMPT,
    AIProviderError,
    AIRateLimitError,
    AnthropicTextGenerator,
    TextGenerator,
)
from focuslog.config_models import AIConfig


REQUEST = httpx.Request("POST", "https://api.anthropic.com/v1/messages")


def stub_client(create: AsyncMock) -> SimpleNamespace:
    return SimpleNamespace(messages=SimpleNamespace(create=create))


def text_response(*parts: str) -> SimpleNamespace:
    return SimpleNamespace(content=[SimpleNamespace(type="text", text=p) for p in parts])


class TestFromConfig:
    """Tests for building the adapter from configuration."""

    def test_disabled(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "sk-test")

        assert AnthropicTextGenerator.from_config(AIConfig(enabled=False)) is None

    def test_missing_key(self, monkeypatch):
        monkeypatch.delenv("FOCUSLOG_TEST_KEY", raising=False)

        assert AnthropicTextGenerator.from_config(AIConfig(api_key_env="FOCUSLOG_TEST_KEY")) is None

    def test_builds_adapter(self, monkeypatch):
        monkeypatch.setenv("FOCUSLOG_TEST_KEY", "sk-test")

        generator = AnthropicTextGenerator.from_config(
            AIConfig(api_key_env="FOCUSLOG_TEST_KEY", model="claude-test", max_tokens=50)
        )

        assert isinstance(generator, AnthropicTextGenerator)
        assert isinstance(generator, TextGenerator)
        assert generator.model == "claude-test"
        assert generator.max_tokens == 50


class TestGenerate:
    """Tests for the generate call."""

    @pytest.mark.asyncio
    async def test_joins_text_blocks(self):
        create = AsyncMock(return_value=text_response('{"a":', " 1}"))
        generator = AnthropicTextGenerator(stub_client(create), model="claude-test")

        text = await generator.generate("hello")

        assert text == '{"a": 1}'
        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "claude-test"
        assert kwargs["system"] == JSON_SYSTEM_PROMPT
        assert kwargs["messages"] == [{"role": "user", "content": "hello"}]

    @pytest.mark.asyncio
    async def test_plain_mode_has_no_system_prompt(self):
        create = AsyncMock(return_value=text_response("plain"))
        generator = AnthropicTextGenerator(stub_client(create), model="claude-test")

        await generator.generate("hello", json_mode=False)

        assert "system" not in create.await_args.kwargs

    @pytest.mark.asyncio
    async def test_empty_response_is_none(self):
        create = AsyncMock(return_value=SimpleNamespace(content=[]))
        generator = AnthropicTextGenerator(stub_client(create), model="claude-test")

        assert await generator.generate("hello") is None

    @pytest.mark.asyncio
    async def test_rate_limit_is_translated(self):
        error = anthropic.RateLimitError(
            "rate limited", response=httpx.Response(429, request=REQUEST), body=None
        )
        generator = AnthropicTextGenerator(stub_client(AsyncMock(side_effect=error)), model="claude-test")

        with pytest.raises(AIRateLimitError):
            await generator.generate("hello")

    @pytest.mark.asyncio
    async def test_connection_error_is_provider_error(self):
        error = anthropic.APIConnectionError(request=REQUEST)
        generator = AnthropicTextGenerator(stub_client(AsyncMock(side_effect=error)), model="claude-test")

        with pytest.raises(AIProviderError):
            await generator.generate("hello")
