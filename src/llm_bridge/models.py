"""Provider-agnostic data models for messages, tools and model responses."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class ProviderName(str, Enum):
    """Vendor tags. ``openai`` uses a tool role keyed by call id, ``gemini`` a user role keyed by tool name."""

    OPENAI = "openai"
    GEMINI = "gemini"


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------

Role = Literal["user", "assistant", "tool"]


class ToolCall(BaseModel):
    """A tool invocation requested by the model."""

    id: str
    name: str
    args: dict[str, Any] = Field(default_factory=dict)


class ToolResultPayload(BaseModel):
    """Outcome of a tool call as carried by a tool-role message."""

    call_id: str
    result: Any = None


class Message(BaseModel):
    """A single agnostic conversation turn.

    System prompts are not messages; they are passed to providers separately.
    """

    role: Role
    content: str | None = None
    tool_calls: list[ToolCall] = Field(default_factory=list)
    tool_result: ToolResultPayload | None = None

    @model_validator(mode="after")
    def _check_shape(self) -> Message:
        if self.role == "tool" and self.tool_result is None:
            raise ValueError("tool messages require a tool_result")
        if self.role != "tool" and self.tool_result is not None:
            raise ValueError("only tool messages may carry a tool_result")
        if self.tool_calls and self.role != "assistant":
            raise ValueError("only assistant messages may carry tool_calls")
        if self.tool_calls and self.content is not None:
            raise ValueError("assistant messages with tool_calls must not carry content")
        return self

    @classmethod
    def user(cls, content: str) -> Message:
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> Message:
        return cls(role="assistant", content=content)

    @classmethod
    def assistant_tool_calls(cls, tool_calls: list[ToolCall]) -> Message:
        return cls(role="assistant", tool_calls=list(tool_calls))

    @classmethod
    def tool(cls, call_id: str, result: Any) -> Message:
        return cls(role="tool", tool_result=ToolResultPayload(call_id=call_id, result=result))


# ---------------------------------------------------------------------------
# Native history
# ---------------------------------------------------------------------------


class NativeHistory(BaseModel):
    """Vendor-shaped transcript tagged with the vendor it belongs to.

    ``entries`` is opaque outside the history adapters. Instances are treated
    as values: adapters return a new NativeHistory instead of mutating one.
    """

    model_config = ConfigDict(frozen=True)

    provider: ProviderName
    entries: list[dict[str, Any]] = Field(default_factory=list)

    def appended(self, *entries: dict[str, Any]) -> NativeHistory:
        return NativeHistory(provider=self.provider, entries=[*self.entries, *entries])

    def tail(self, n: int) -> NativeHistory:
        """Return a history holding only the most recent ``n`` entries."""
        if n <= 0:
            return NativeHistory(provider=self.provider, entries=[])
        return NativeHistory(provider=self.provider, entries=self.entries[-n:])

    def __len__(self) -> int:
        return len(self.entries)


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------


@dataclass
class ToolDefinition:
    """Tool schema advertised to the model."""

    name: str
    description: str
    parameters: dict[str, Any]  # JSON Schema

    def to_openai_tool(self) -> dict[str, Any]:
        """OpenAI function-calling schema."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def to_gemini_declaration(self) -> dict[str, Any]:
        """Keyword arguments for a google-genai FunctionDeclaration."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters_json_schema": self.parameters,
        }


@dataclass
class ToolExecutionResult:
    """Normalized outcome of a tool execution."""

    success: bool
    message: str
    data: Any = None

    def to_model_payload(self) -> Any:
        """Payload fed back to the model: the data when present, else success and message."""
        if self.data is not None:
            return self.data
        return {"success": self.success, "message": self.message}


# ---------------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------------


@dataclass
class Usage:
    """Token counts; vendors that omit a count report 0."""

    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0

    def __add__(self, other: Usage) -> Usage:
        return Usage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            total_tokens=self.total_tokens + other.total_tokens,
        )


@dataclass
class LLMResponse:
    """Standardized response of a single model call."""

    text: str | None = None
    tool_calls: list[ToolCall] = field(default_factory=list)
    usage: Usage = field(default_factory=Usage)
    raw_response: Any = None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)
