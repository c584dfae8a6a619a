"""OpenAI-specific chat history management."""

from __future__ import annotations

import json
from typing import Any

from ..arguments import parse_tool_arguments
from ..models import Message, ProviderName, ToolCall, ToolExecutionResult
from .base import HistoryAdapter, dump_vendor_object, field_of


def _tool_call_block(tc: ToolCall) -> dict[str, Any]:
    return {
        "id": tc.id,
        "type": "function",
        "function": {"name": tc.name, "arguments": json.dumps(tc.args)},
    }


def _decode_tool_content(content: Any) -> Any:
    """Tool contents written by this adapter are JSON; anything else is returned as sent."""
    if not isinstance(content, str):
        return content
    try:
        return json.loads(content)
    except json.JSONDecodeError:
        return content


class OpenAIHistoryAdapter(HistoryAdapter):
    """
    Chat history in OpenAI Chat Completions shape.

    - user: ``{"role": "user", "content": ...}``
    - assistant text: ``{"role": "assistant", "content": ...}``
    - assistant tool calls: ``{"role": "assistant", "content": None, "tool_calls": [...]}``
    - tool result: ``{"role": "tool", "tool_call_id": ..., "content": <json>}``

    Tool results must reference the call id, otherwise the API rejects the
    next request.
    """

    provider_name = ProviderName.OPENAI

    def _user_entry(self, content: str) -> dict[str, Any]:
        return {"role": "user", "content": content}

    def _assistant_entry(self, content: str) -> dict[str, Any]:
        return {"role": "assistant", "content": content}

    def _starts_user_turn(self, entry: dict[str, Any]) -> bool:
        return entry.get("role") == "user"

    def _tool_call_entry(self, tool_calls: list[ToolCall]) -> dict[str, Any]:
        return {
            "role": "assistant",
            "content": None,
            "tool_calls": [_tool_call_block(tc) for tc in tool_calls],
        }

    def _replay_tool_call_entry(self, raw_response: Any) -> dict[str, Any] | None:
        choices = field_of(raw_response, "choices") or []
        if not choices:
            return None
        message = field_of(choices[0], "message")
        raw_tool_calls = field_of(message, "tool_calls") or []
        if not raw_tool_calls:
            return None
        return {
            "role": "assistant",
            "content": field_of(message, "content"),
            "tool_calls": [dump_vendor_object(tc) for tc in raw_tool_calls],
        }

    def _tool_result_entry(self, tool_call: ToolCall, result: ToolExecutionResult) -> dict[str, Any]:
        return {
            "role": "tool",
            "tool_call_id": tool_call.id,
            "content": json.dumps(result.to_model_payload(), default=str),
        }

    def _to_entries(self, messages: list[Message]) -> list[dict[str, Any]]:
        entries: list[dict[str, Any]] = []
        for msg in messages:
            if msg.role == "user":
                entries.append(self._user_entry(msg.content or ""))
            elif msg.role == "assistant" and msg.tool_calls:
                entries.append(self._tool_call_entry(msg.tool_calls))
            elif msg.role == "assistant":
                entries.append(self._assistant_entry(msg.content or ""))
            else:
                assert msg.tool_result is not None
                entries.append(
                    {
                        "role": "tool",
                        "tool_call_id": msg.tool_result.call_id,
                        "content": json.dumps(msg.tool_result.result, default=str),
                    }
                )
        return entries

    def _from_entries(self, entries: list[dict[str, Any]]) -> list[Message]:
        messages: list[Message] = []
        for entry in entries:
            role = entry.get("role")
            if role == "user":
                messages.append(Message.user(entry.get("content") or ""))
            elif role == "assistant" and entry.get("tool_calls"):
                tool_calls = []
                for tc in entry["tool_calls"]:
                    fn = tc.get("function") or {}
                    name = fn.get("name", "")
                    tool_calls.append(
                        ToolCall(id=tc.get("id", ""), name=name, args=parse_tool_arguments(name, fn.get("arguments")))
                    )
                messages.append(Message.assistant_tool_calls(tool_calls))
            elif role == "assistant":
                messages.append(Message(role="assistant", content=entry.get("content")))
            elif role == "tool":
                messages.append(Message.tool(entry.get("tool_call_id", ""), _decode_tool_content(entry.get("content"))))
            # system entries are not part of the agnostic model
        return messages
