"""
Text generation client.

The rest of the package talks to a ``TextGenerator``: anything with an
async ``generate(prompt, json_mode)`` returning text or None. The Anthropic
adapter below is the production implementation; tests pass a fake.

The adapter is built once per process (at app startup) and reused.
"""

from __future__ import annotations

import logging
import os
from typing import Protocol, runtime_checkable

import anthropic

from focuslog.config_models import AIConfig


logger = logging.getLogger(__name__)


JSON_SYSTEM_PROMPT = (
    "You are a productivity coach. Respond with a single valid JSON object "
    "and nothing else. Do not wrap it in markdown."
)


class AIError(Exception):
    """Base error for the text generation collaborator."""


class AIRateLimitError(AIError):
    """The provider refused the call for quota or rate reasons (HTTP 429)."""


class AIProviderError(AIError):
    """Any other provider failure: network, timeout, 5xx, bad request."""


@runtime_checkable
class TextGenerator(Protocol):
    async def generate(self, prompt: str, json_mode: bool = True) -> str | None:
        """Return generated text, or None when the provider produced nothing."""
        ...


class AnthropicTextGenerator:
    """``TextGenerator`` backed by one ``anthropic.AsyncAnthropic`` client."""

    def __init__(
        self,
        client: anthropic.AsyncAnthropic,
        model: str,
        max_tokens: int = 1000,
        temperature: float = 0.3,
    ):
        self.client = client
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature

    @classmethod
    def from_config(cls, config: AIConfig) -> AnthropicTextGenerator | None:
        """
        Build the adapter, or None when AI is disabled or no key is set.

        A None generator is a supported configuration: every use case
        falls back to its deterministic output.
        """
        if not config.enabled:
            logger.info("AI enrichment disabled by config")
            return None

        api_key = os.environ.get(config.api_key_env)
        if not api_key:
            logger.warning(f"{config.api_key_env} not set, AI enrichment unavailable")
            return None

        client = anthropic.AsyncAnthropic(api_key=api_key, timeout=config.timeout_seconds)
        return cls(
            client=client,
            model=config.model,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )

    async def generate(self, prompt: str, json_mode: bool = True) -> str | None:
        kwargs = {}
        if json_mode:
            kwargs["system"] = JSON_SYSTEM_PROMPT

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
                messages=[{"role": "user", "content": prompt}],
                **kwargs,
            )
        except anthropic.RateLimitError as e:
            raise AIRateLimitError(str(e)) from e
        except anthropic.APIError as e:
            raise AIProviderError(str(e)) from e

        text = "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )
        return text or None
