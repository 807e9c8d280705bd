"""
LLM Service: the AI text-generation provider used by chatbot activities.

The active provider is chosen once at startup from configuration (`AI_PROVIDER`)
and is one of an enumerated set: OpenAI (Chat Completions) or Anthropic.
Channels are named routing destinations mapped to model ids (`AI_CHANNELS`).

The entry point is `generate()`, which never raises for provider errors: it
returns a GenerationResult with `success=False` and the error message instead.
"""

import json
import time
from typing import Any, Callable, Dict, Optional

import anthropic
from openai import OpenAI, OpenAIError, RateLimitError, APITimeoutError
import logging

from config import Settings, get_settings
from shared.models.domain import GenerationResult
from shared.services.anthropic_adapter import AnthropicAdapter

logger = logging.getLogger(__name__)

PROVIDER_OPENAI = "openai"
PROVIDER_ANTHROPIC = "anthropic"

_RETRYABLE_ERRORS = (
    RateLimitError,
    APITimeoutError,
    anthropic.RateLimitError,
    anthropic.APITimeoutError,
)
_PROVIDER_ERRORS = (OpenAIError, anthropic.AnthropicError)


class LLMServiceError(Exception):
    """Custom exception for LLM service errors"""

    def __init__(self, message: str, provider_message: Optional[str] = None):
        super().__init__(message)
        # The provider's own wording, surfaced to callers unchanged
        self.provider_message = provider_message if provider_message is not None else message


class LLMService:
    """
    Service for making provider calls with timeout, retry logic and error handling.

    `provider` must be one of PROVIDER_OPENAI / PROVIDER_ANTHROPIC.
    """

    def __init__(
        self,
        api_key: str,
        *,
        provider: str,
        channels: Dict[str, str],
        max_retries: int = 1,
        initial_retry_delay: float = 1.0,
        timeout: int = 60,
    ):
        if not channels:
            raise LLMServiceError("At least one channel must be configured")

        self.provider = provider
        self.channels = dict(channels)
        self.default_channel = next(iter(self.channels))
        self.max_retries = max(1, max_retries)
        self.initial_retry_delay = initial_retry_delay
        self.timeout = timeout

        self.client = None
        self.anthropic_adapter = None
        if provider == PROVIDER_OPENAI:
            self.client = OpenAI(api_key=api_key, timeout=timeout, max_retries=0)
        elif provider == PROVIDER_ANTHROPIC:
            self.anthropic_adapter = AnthropicAdapter(api_key=api_key, timeout=timeout)
        else:
            raise LLMServiceError(f"Unsupported AI provider: {provider}")

    # ─── Primary entry point ───────────────────────────────────────────

    def generate(
        self,
        context_id: Optional[int],
        user_id: int,
        prompt_text: str,
        channel: Optional[str] = None,
    ) -> GenerationResult:
        """
        Generate a reply for prompt_text on the given channel.

        Always returns a GenerationResult; provider failures (including
        timeouts) come back as success=False with the error message.
        """
        model = self.resolve_model(channel)
        logger.info(json.dumps({
            "step": "GENERATE",
            "status": "starting",
            "provider": self.provider,
            "channel": channel or self.default_channel,
            "context_id": context_id,
            "user_id": user_id,
            "prompt_length": len(prompt_text),
        }))
        try:
            content = self.call(prompt_text, model)
        except LLMServiceError as e:
            logger.error(f"Generation failed: {str(e)}")
            return GenerationResult(success=False, error_message=e.provider_message)
        return GenerationResult(success=True, content=content or "")

    def resolve_model(self, channel: Optional[str]) -> str:
        """Map a channel identifier to a model id, falling back to the default channel."""
        if channel and channel in self.channels:
            return self.channels[channel]
        if channel:
            logger.warning(f"Unknown channel '{channel}', using '{self.default_channel}'")
        return self.channels[self.default_channel]

    def call(self, prompt: str, model: str) -> str:
        """Route a plain-text prompt to the configured provider. Returns raw text."""
        if self.provider == PROVIDER_ANTHROPIC:
            return self._call_anthropic(prompt, model)
        return self._call_chat_completions(prompt, model)

    # ─── OpenAI Chat Completions API ──────────────────────────────────

    def _call_chat_completions(
        self,
        prompt: str,
        model: str,
        max_tokens: int = 2048,
        temperature: float = 0.7,
    ) -> str:
        """Call OpenAI Chat Completions. Returns raw text."""
        logger.info(json.dumps({
            "step": "LLM_CALL",
            "status": "starting",
            "model": model,
            "params": {"temperature": temperature}
        }))

        def _api_call():
            response = self.client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                max_completion_tokens=max_tokens,
                temperature=temperature,
                timeout=self.timeout,
            )
            return response.choices[0].message.content

        return self._execute_with_retry(_api_call, model)

    # ─── Anthropic ────────────────────────────────────────────────────

    def _call_anthropic(self, prompt: str, model: str) -> str:
        """Call Anthropic Claude via the adapter."""
        if not self.anthropic_adapter:
            raise LLMServiceError("Anthropic adapter not configured (missing API key)")

        logger.info(json.dumps({
            "step": "LLM_CALL",
            "status": "starting",
            "model": model,
        }))

        return self._execute_with_retry(
            lambda: self.anthropic_adapter.call_sync(prompt=prompt, model=model),
            model,
        )

    # ─── Helpers ──────────────────────────────────────────────────────

    def _execute_with_retry(self, api_call_fn: Callable[[], Any], model_name: str) -> Any:
        """Execute API call with exponential backoff retry logic."""
        last_error = None
        delay = self.initial_retry_delay
        start_time = time.time()

        for attempt in range(self.max_retries):
            try:
                result = api_call_fn()
                duration_ms = int((time.time() - start_time) * 1000)

                logger.info(json.dumps({
                    "step": "LLM_CALL",
                    "status": "complete",
                    "model": model_name,
                    "output": {"response_length": len(str(result)) if result else 0},
                    "duration_ms": duration_ms,
                    "attempts": attempt + 1
                }))

                if attempt > 0:
                    logger.info(f"{model_name} call succeeded on attempt {attempt + 1}")
                return result

            except _RETRYABLE_ERRORS as e:
                last_error = e
                if attempt + 1 < self.max_retries:
                    logger.warning(
                        f"{model_name} {type(e).__name__} (attempt {attempt + 1}/{self.max_retries}). "
                        f"Retrying in {delay}s..."
                    )
                    time.sleep(delay)
                    delay *= 2

            except _PROVIDER_ERRORS as e:
                logger.error(f"{model_name} API error: {str(e)}")
                raise LLMServiceError(f"{model_name} API error: {str(e)}", provider_message=str(e)) from e

            except Exception as e:
                logger.error(f"{model_name} unexpected error: {str(e)}")
                raise LLMServiceError(f"{model_name} unexpected error: {str(e)}", provider_message=str(e)) from e

        duration_ms = int((time.time() - start_time) * 1000)
        logger.info(json.dumps({
            "step": "LLM_CALL",
            "status": "failed",
            "model": model_name,
            "error": str(last_error),
            "duration_ms": duration_ms,
            "attempts": self.max_retries
        }))
        raise LLMServiceError(
            f"{model_name} failed after {self.max_retries} attempts. Last error: {str(last_error)}",
            provider_message=str(last_error),
        ) from last_error


def build_llm_service(settings: Optional[Settings] = None) -> LLMService:
    """Create the provider selected in configuration."""
    settings = settings or get_settings()
    api_key = (
        settings.anthropic_api_key
        if settings.ai_provider == PROVIDER_ANTHROPIC
        else settings.openai_api_key
    )
    return LLMService(
        api_key=api_key,
        provider=settings.ai_provider,
        channels=settings.get_channels(),
        max_retries=settings.ai_max_retries,
        timeout=settings.ai_timeout,
    )


# Process-wide provider, chosen once from configuration
_llm_service: Optional[LLMService] = None


def get_llm_service() -> LLMService:
    """FastAPI dependency returning the configured provider."""
    global _llm_service
    if _llm_service is None:
        _llm_service = build_llm_service()
    return _llm_service


def reset_llm_service():
    """Drop the cached provider (useful for testing)."""
    global _llm_service
    _llm_service = None
