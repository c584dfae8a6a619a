"""Abstract LLM provider interface for the orchestrator."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from ..config import LLMConfig
from ..errors import HistoryProviderMismatchError
from ..models import LLMResponse, Message, NativeHistory, ProviderName, ToolDefinition


class LLMProvider(ABC):
    """
    Abstract LLM provider. Implement this to plug in another vendor.

    The orchestrator only depends on this interface. Implementations must
    normalize every reply the same way: ``text`` is None when the vendor sent no
    text, ``tool_calls`` is an empty list when it requested none, missing token
    counts are 0 and ``raw_response`` is the untouched vendor payload.
    """

    provider_name: ClassVar[ProviderName]

    def __init__(self, config: LLMConfig) -> None:
        self.config = config

    @abstractmethod
    async def generate_response(
        self,
        messages: list[Message],
        system_prompt: str | None = None,
        tools: list[ToolDefinition] | None = None,
    ) -> LLMResponse:
        """Stateless call from agnostic messages."""
        ...

    @abstractmethod
    async def generate_with_native_history(
        self,
        history: NativeHistory,
        system_prompt: str | None = None,
        tools: list[ToolDefinition] | None = None,
    ) -> LLMResponse:
        """
        Call with a vendor-shaped transcript built by the matching history adapter.

        The system prompt is injected once as the vendor's leading instruction;
        ``history`` itself is left untouched.
        """
        ...

    def get_provider_name(self) -> ProviderName:
        """Vendor tag used to pick the matching history adapter."""
        return self.provider_name

    def update_config(self, **overrides: Any) -> None:
        """Merge a partial override into the held configuration."""
        self.config = self.config.merged(**overrides)

    def get_config(self) -> LLMConfig:
        return self.config.model_copy(deep=True)

    def _check_history(self, history: NativeHistory) -> None:
        if history.provider != self.provider_name:
            raise HistoryProviderMismatchError(self.provider_name.value, history.provider.value)
