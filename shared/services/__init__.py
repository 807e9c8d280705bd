"""Shared services."""
from .llm_service import LLMService, LLMServiceError, build_llm_service, get_llm_service

__all__ = [
    "LLMService",
    "LLMServiceError",
    "build_llm_service",
    "get_llm_service",
]
