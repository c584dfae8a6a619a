"""Provider-agnostic LLM layer: message model, vendor providers and history adapters."""

from .config import DEFAULT_LLM_CONFIG, LLMConfig
from .core import create_provider, get_configured_providers, is_provider_configured, parse_model_string
from .errors import (
    HistoryProviderMismatchError,
    LLMConfigurationError,
    LLMError,
    LLMProviderError,
    ToolArgumentsError,
    UnknownProviderError,
)
from .history import GeminiHistoryAdapter, HistoryAdapter, OpenAIHistoryAdapter, get_history_adapter
from .models import (
    LLMResponse,
    Message,
    NativeHistory,
    ProviderName,
    ToolCall,
    ToolDefinition,
    ToolExecutionResult,
    ToolResultPayload,
    Usage,
)
from .providers import GeminiProvider, LLMProvider, OpenAIProvider

__all__ = [
    "LLMConfig",
    "DEFAULT_LLM_CONFIG",
    "create_provider",
    "get_configured_providers",
    "is_provider_configured",
    "parse_model_string",
    "LLMError",
    "LLMConfigurationError",
    "UnknownProviderError",
    "LLMProviderError",
    "ToolArgumentsError",
    "HistoryProviderMismatchError",
    "HistoryAdapter",
    "OpenAIHistoryAdapter",
    "GeminiHistoryAdapter",
    "get_history_adapter",
    "LLMResponse",
    "Message",
    "NativeHistory",
    "ProviderName",
    "ToolCall",
    "ToolDefinition",
    "ToolExecutionResult",
    "ToolResultPayload",
    "Usage",
    "LLMProvider",
    "OpenAIProvider",
    "GeminiProvider",
]
