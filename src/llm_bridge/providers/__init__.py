"""LLM providers: pluggable vendor backends for the orchestrator."""

from .base import LLMProvider
from .gemini_provider import GeminiProvider
from .openai_provider import OpenAIProvider

__all__ = [
    "LLMProvider",
    "OpenAIProvider",
    "GeminiProvider",
]
