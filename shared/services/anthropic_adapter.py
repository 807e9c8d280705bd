"""
Anthropic (Claude) Adapter

Maps the plain-text prompt interface used by LLMService onto the Anthropic
Messages API and returns the concatenated text of the reply.
"""

import logging
from typing import Any

import anthropic

logger = logging.getLogger(__name__)

DEFAULT_CLAUDE_MODEL = "claude-haiku-4-5-20251001"
DEFAULT_MAX_TOKENS = 4096


class AnthropicAdapter:
    """Adapter that sends a single user prompt to Anthropic's Messages API."""

    def __init__(self, api_key: str, timeout: int = 60, max_tokens: int = DEFAULT_MAX_TOKENS):
        self.max_tokens = max_tokens
        self.client = anthropic.Anthropic(api_key=api_key, timeout=timeout, max_retries=0)

    @staticmethod
    def _parse_response(response: Any) -> str:
        """Join all text blocks of a Messages API response."""
        parts = [block.text for block in response.content if getattr(block, "type", None) == "text"]
        return "".join(parts)

    def call_sync(self, prompt: str, model: str = DEFAULT_CLAUDE_MODEL) -> str:
        """Sync call to Claude, returning the generated text."""
        response = self.client.messages.create(
            model=model,
            max_tokens=self.max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        return self._parse_response(response)
