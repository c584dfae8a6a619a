"""History adapters and their selection by vendor tag."""

from __future__ import annotations

from ..errors import UnknownProviderError
from ..models import ProviderName
from .base import HistoryAdapter
from .gemini_history import GeminiHistoryAdapter
from .openai_history import OpenAIHistoryAdapter

_ADAPTERS: dict[ProviderName, HistoryAdapter] = {
    ProviderName.OPENAI: OpenAIHistoryAdapter(),
    ProviderName.GEMINI: GeminiHistoryAdapter(),
}


def get_history_adapter(provider: ProviderName | str) -> HistoryAdapter:
    """Return the history adapter for ``provider``; unknown vendors are a configuration error."""
    try:
        name = ProviderName(provider)
    except ValueError as exc:
        raise UnknownProviderError(provider) from exc
    return _ADAPTERS[name]


__all__ = [
    "HistoryAdapter",
    "OpenAIHistoryAdapter",
    "GeminiHistoryAdapter",
    "get_history_adapter",
]
