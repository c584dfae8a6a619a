"""Chat orchestrator: bounded model/tool loop over per-session native transcripts."""

from .banking_tools import get_banking_tools, register_banking_tools
from .config import OrchestratorSettings
from .loop import ChatResult, ConversationOrchestrator, LoopOptions
from .service_client import (
    ServiceClient,
    ServiceConfigurationError,
    ServiceError,
    ServiceRequestError,
    UserHeaders,
)
from .session_store import Session, SessionStore
from .system_prompt_loader import get_default_system_prompt
from .tools import BaseTool, ToolCallValidation, ToolContext, ToolHandler, ToolRegistry

__all__ = [
    "ConversationOrchestrator",
    "LoopOptions",
    "ChatResult",
    "OrchestratorSettings",
    "Session",
    "SessionStore",
    "ToolRegistry",
    "ToolContext",
    "ToolHandler",
    "ToolCallValidation",
    "BaseTool",
    "ServiceClient",
    "ServiceError",
    "ServiceConfigurationError",
    "ServiceRequestError",
    "UserHeaders",
    "get_banking_tools",
    "register_banking_tools",
    "get_default_system_prompt",
]
