"""Gemini-specific chat history management."""

from __future__ import annotations

from typing import Any

from ..arguments import parse_tool_arguments
from ..models import Message, ProviderName, ToolCall, ToolExecutionResult
from .base import HistoryAdapter, dump_vendor_object, field_of


class GeminiHistoryAdapter(HistoryAdapter):
    """
    Chat history in Gemini ``Content`` shape (snake_case dicts accepted by google-genai).

    - user: ``{"role": "user", "parts": [{"text": ...}]}``
    - model text: ``{"role": "model", "parts": [{"text": ...}]}``
    - model tool calls: ``{"role": "model", "parts": [{"function_call": {"name", "args"}}]}``
    - tool result: ``{"role": "user", "parts": [{"function_response": {"name", "response": {"result"}}}]}``

    Tool results are USER turns keyed by the tool name, unlike OpenAI's tool
    role keyed by call id. When Gemini assigned a call id it is echoed back on
    the function_response as well.
    """

    provider_name = ProviderName.GEMINI

    def _user_entry(self, content: str) -> dict[str, Any]:
        return {"role": "user", "parts": [{"text": content}]}

    def _assistant_entry(self, content: str) -> dict[str, Any]:
        return {"role": "model", "parts": [{"text": content}]}

    def _starts_user_turn(self, entry: dict[str, Any]) -> bool:
        if entry.get("role") != "user":
            return False
        return not any(p.get("function_response") for p in entry.get("parts") or [])

    def _tool_call_entry(self, tool_calls: list[ToolCall]) -> dict[str, Any]:
        parts = []
        for tc in tool_calls:
            function_call: dict[str, Any] = {"name": tc.name, "args": tc.args}
            if tc.id != tc.name:
                function_call["id"] = tc.id
            parts.append({"function_call": function_call})
        return {"role": "model", "parts": parts}

    def _replay_tool_call_entry(self, raw_response: Any) -> dict[str, Any] | None:
        candidates = field_of(raw_response, "candidates") or []
        if not candidates:
            return None
        content = field_of(candidates[0], "content")
        if content is None or not field_of(content, "parts"):
            return None
        entry = dump_vendor_object(content)
        entry.setdefault("role", "model")
        return entry

    def _tool_result_entry(self, tool_call: ToolCall, result: ToolExecutionResult) -> dict[str, Any]:
        return self._function_response_entry(tool_call.id, tool_call.name, result.to_model_payload())

    @staticmethod
    def _function_response_entry(call_id: str, name: str, payload: Any) -> dict[str, Any]:
        function_response: dict[str, Any] = {"name": name, "response": {"result": payload}}
        if call_id != name:
            function_response["id"] = call_id
        return {"role": "user", "parts": [{"function_response": function_response}]}

    def _to_entries(self, messages: list[Message]) -> list[dict[str, Any]]:
        entries: list[dict[str, Any]] = []
        names_by_call_id: dict[str, str] = {}
        for msg in messages:
            if msg.role == "user":
                entries.append(self._user_entry(msg.content or ""))
            elif msg.role == "assistant" and msg.tool_calls:
                for tc in msg.tool_calls:
                    names_by_call_id[tc.id] = tc.name
                entries.append(self._tool_call_entry(msg.tool_calls))
            elif msg.role == "assistant":
                entries.append(self._assistant_entry(msg.content or ""))
            else:
                assert msg.tool_result is not None
                call_id = msg.tool_result.call_id
                entries.append(
                    self._function_response_entry(
                        call_id,
                        names_by_call_id.get(call_id, call_id),
                        msg.tool_result.result,
                    )
                )
        return entries

    def _from_entries(self, entries: list[dict[str, Any]]) -> list[Message]:
        messages: list[Message] = []
        for entry in entries:
            parts = entry.get("parts") or []

            function_calls = [p["function_call"] for p in parts if p.get("function_call")]
            if function_calls:
                tool_calls = []
                for fc in function_calls:
                    name = fc.get("name", "")
                    tool_calls.append(
                        ToolCall(id=fc.get("id") or name, name=name, args=parse_tool_arguments(name, fc.get("args")))
                    )
                messages.append(Message.assistant_tool_calls(tool_calls))
                continue

            function_responses = [p["function_response"] for p in parts if p.get("function_response")]
            if function_responses:
                for fr in function_responses:
                    response = fr.get("response") or {}
                    messages.append(Message.tool(fr.get("id") or fr.get("name", ""), response.get("result")))
                continue

            texts = [p["text"] for p in parts if p.get("text") is not None and not p.get("thought")]
            if texts:
                role = "assistant" if entry.get("role") == "model" else "user"
                messages.append(Message(role=role, content="".join(texts)))
        return messages
