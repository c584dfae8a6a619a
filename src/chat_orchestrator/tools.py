"""Tool protocol, registry and executor."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from src.llm_bridge import ToolCall, ToolDefinition, ToolExecutionResult

logger = logging.getLogger(__name__)


@dataclass
class ToolContext:
    """Request-scoped context handed to every tool handler."""

    session_id: str
    user_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


ToolHandler = Callable[[ToolCall, ToolContext], Awaitable[ToolExecutionResult]]


class BaseTool(ABC):
    """Base class for class-based tools; ``ToolRegistry.register`` accepts instances."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        """JSON Schema for parameters."""
        ...

    @abstractmethod
    async def execute(self, call: ToolCall, context: ToolContext) -> ToolExecutionResult:
        ...

    def to_def(self) -> ToolDefinition:
        return ToolDefinition(name=self.name, description=self.description, parameters=self.parameters)


@dataclass
class ToolCallValidation:
    valid: bool
    errors: list[str] = field(default_factory=list)


@dataclass
class _RegisteredTool:
    definition: ToolDefinition
    handler: ToolHandler


class ToolRegistry:
    """
    Name-keyed registry of tool schemas and async handlers.

    Registration is first-wins: registering a name twice keeps the original
    handler. ``execute_tool`` never raises; unknown tools and handler faults
    come back as failed results so the model can react to them.
    """

    def __init__(self) -> None:
        self._tools: dict[str, _RegisteredTool] = {}

    def register_tool(self, definition: ToolDefinition, handler: ToolHandler) -> bool:
        """Register ``handler`` under ``definition.name``. Returns False if the name was taken."""
        if definition.name in self._tools:
            return False
        self._tools[definition.name] = _RegisteredTool(definition=definition, handler=handler)
        logger.info("Registered tool: %s", definition.name)
        return True

    def register(self, tool: BaseTool) -> bool:
        return self.register_tool(tool.to_def(), tool.execute)

    def unregister_tool(self, name: str) -> bool:
        removed = self._tools.pop(name, None) is not None
        if removed:
            logger.info("Unregistered tool: %s", name)
        return removed

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    def get_registered_tools(self) -> list[ToolDefinition]:
        """Tool schemas to advertise to the model, in registration order."""
        return [t.definition for t in self._tools.values()]

    async def execute_tool(self, call: ToolCall, context: ToolContext) -> ToolExecutionResult:
        logger.info("Executing tool: %s", call.name)
        logger.debug("Tool args: %s", json.dumps(call.args, default=str))

        registered = self._tools.get(call.name)
        if registered is None:
            message = f"Unknown tool: {call.name}. Available tools: {', '.join(self.tool_names)}"
            logger.error(message)
            return ToolExecutionResult(success=False, message=message)

        try:
            result = await registered.handler(call, context)
        except Exception as exc:
            logger.exception("Tool %s raised during execution", call.name)
            return ToolExecutionResult(success=False, message=f"Tool execution failed: {exc}")

        if result.success:
            logger.info("Tool %s executed successfully", call.name)
        else:
            logger.warning("Tool %s failed: %s", call.name, result.message)
        return result

    def validate_tool_call(self, call: ToolCall) -> ToolCallValidation:
        """A call is valid when it names a registered tool and carries an argument mapping."""
        errors: list[str] = []
        if not call.name:
            errors.append("Tool name is required")
        if call.args is None:
            errors.append("Tool arguments are required")
        if call.name and not self.has_tool(call.name):
            errors.append(f"Tool '{call.name}' is not registered")
        return ToolCallValidation(valid=not errors, errors=errors)
