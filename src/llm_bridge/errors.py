"""Error types raised by providers, history adapters and the provider factory."""

from __future__ import annotations

from typing import Any


class LLMError(Exception):
    """Base error type for all LLM bridge failures."""


class LLMConfigurationError(LLMError):
    """Misconfiguration of providers, models, API keys or session wiring."""


class UnknownProviderError(LLMConfigurationError):
    """Provider identity that has no provider or history adapter."""

    def __init__(self, provider: Any) -> None:
        self.provider = provider
        super().__init__(f"Unknown LLM provider: {provider!r}. Supported: gemini, openai")


class LLMProviderError(LLMError):
    """Transport, authorization or API failure from a vendor call.

    ``raw_error`` keeps the vendor's own error text even when ``message`` was
    enriched with a hint about the likely cause.
    """

    def __init__(self, provider: str, message: str, raw_error: str | None = None) -> None:
        self.provider = provider
        self.raw_error = raw_error if raw_error is not None else message
        super().__init__(message)


class ToolArgumentsError(LLMError):
    """The vendor sent tool arguments that cannot be parsed into a mapping."""

    def __init__(self, tool_name: str, raw_arguments: Any, reason: str) -> None:
        self.tool_name = tool_name
        self.raw_arguments = raw_arguments
        super().__init__(f"Malformed arguments for tool '{tool_name}': {reason}")


class HistoryProviderMismatchError(LLMError):
    """A native history was handed to the adapter of a different vendor."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"Native history belongs to provider '{actual}', expected '{expected}'")


__all__ = [
    "LLMError",
    "LLMConfigurationError",
    "UnknownProviderError",
    "LLMProviderError",
    "ToolArgumentsError",
    "HistoryProviderMismatchError",
]
