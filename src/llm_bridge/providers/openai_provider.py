"""OpenAI LLM provider implementation for the orchestrator."""

from __future__ import annotations

import json
import logging
import os
from typing import Any

import openai
from openai import AsyncOpenAI

from ..arguments import parse_tool_arguments
from ..config import LLMConfig
from ..errors import LLMConfigurationError, LLMProviderError
from ..models import (
    LLMResponse,
    Message,
    NativeHistory,
    ProviderName,
    ToolCall,
    ToolDefinition,
    Usage,
)
from .base import LLMProvider

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI-backed LLM provider using the Chat Completions API."""

    provider_name = ProviderName.OPENAI

    def __init__(
        self,
        config: LLMConfig,
        api_key: str | None = None,
        base_url: str | None = None,
        client: Any | None = None,
    ) -> None:
        super().__init__(config)
        self.api_key = api_key or os.getenv("OPENAI_API_KEY") or ""
        self.base_url = base_url or os.getenv("OPENAI_BASE_URL")
        self._client: Any | None = client

    def _get_client(self) -> Any:
        if not self._client:
            if not self.api_key:
                raise LLMConfigurationError("OPENAI_API_KEY not configured. Check your .env file.")
            kwargs: dict[str, Any] = {"api_key": self.api_key}
            if self.base_url:
                kwargs["base_url"] = self.base_url
            self._client = AsyncOpenAI(**kwargs)
        return self._client

    @staticmethod
    def _to_openai_message(m: Message) -> dict[str, Any]:
        """Convert one agnostic Message into an OpenAI chat message dict."""
        if m.role == "tool":
            assert m.tool_result is not None
            return {
                "role": "tool",
                "tool_call_id": m.tool_result.call_id,
                "content": json.dumps(m.tool_result.result, default=str),
            }
        if m.tool_calls:
            return {
                "role": "assistant",
                "content": None,
                "tool_calls": [
                    {
                        "id": tc.id,
                        "type": "function",
                        "function": {"name": tc.name, "arguments": json.dumps(tc.args)},
                    }
                    for tc in m.tool_calls
                ],
            }
        return {"role": m.role, "content": m.content or ""}

    async def generate_response(
        self,
        messages: list[Message],
        system_prompt: str | None = None,
        tools: list[ToolDefinition] | None = None,
    ) -> LLMResponse:
        openai_messages: list[dict[str, Any]] = []
        if system_prompt:
            openai_messages.append({"role": "system", "content": system_prompt})
        openai_messages.extend(self._to_openai_message(m) for m in messages)
        return await self._execute(openai_messages, tools)

    async def generate_with_native_history(
        self,
        history: NativeHistory,
        system_prompt: str | None = None,
        tools: list[ToolDefinition] | None = None,
    ) -> LLMResponse:
        self._check_history(history)
        openai_messages = list(history.entries)
        if system_prompt and (not openai_messages or openai_messages[0].get("role") != "system"):
            openai_messages.insert(0, {"role": "system", "content": system_prompt})
        return await self._execute(openai_messages, tools)

    def _request_params(
        self,
        messages: list[dict[str, Any]],
        tools: list[ToolDefinition] | None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "model": self.config.model,
            "messages": messages,
        }
        if tools:
            params["tools"] = [t.to_openai_tool() for t in tools]
        if self.config.temperature is not None:
            params["temperature"] = self.config.temperature
        if self.config.max_tokens is not None:
            params["max_completion_tokens"] = self.config.max_tokens
        if self.config.top_p is not None:
            params["top_p"] = self.config.top_p
        if self.config.stop_sequences:
            params["stop"] = self.config.stop_sequences
        return params

    async def _execute(
        self,
        messages: list[dict[str, Any]],
        tools: list[ToolDefinition] | None,
    ) -> LLMResponse:
        client = self._get_client()
        params = self._request_params(messages, tools)
        logger.debug(
            "Sending %d messages and %d tools to OpenAI model %s",
            len(messages),
            len(tools or []),
            self.config.model,
        )
        try:
            resp = await client.chat.completions.create(**params)
        except openai.APIConnectionError as exc:
            raise LLMProviderError(
                self.provider_name.value,
                "Failed to connect to OpenAI API. Check network, proxy settings and "
                f"OPENAI_BASE_URL. Original error: {exc}",
                str(exc),
            ) from exc
        except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
            raise LLMProviderError(
                self.provider_name.value,
                f"OpenAI rejected the request credentials. Check OPENAI_API_KEY. Original error: {exc}",
                str(exc),
            ) from exc
        except openai.OpenAIError as exc:
            raise LLMProviderError(self.provider_name.value, f"OpenAI request failed: {exc}", str(exc)) from exc
        return self._parse_response(resp)

    @staticmethod
    def _parse_tool_calls(choice_message: Any) -> list[ToolCall]:
        """Map OpenAI tool_calls into agnostic ToolCall objects."""
        tool_calls: list[ToolCall] = []
        for tc in getattr(choice_message, "tool_calls", None) or []:
            fn = getattr(tc, "function", None)
            if fn is None:
                continue
            name = getattr(fn, "name", "") or ""
            args = parse_tool_arguments(name, getattr(fn, "arguments", None))
            tool_calls.append(ToolCall(id=getattr(tc, "id", "") or "", name=name, args=args))
        return tool_calls

    def _parse_response(self, resp: Any) -> LLMResponse:
        usage = getattr(resp, "usage", None)
        normalized_usage = Usage(
            input_tokens=getattr(usage, "prompt_tokens", 0) or 0,
            output_tokens=getattr(usage, "completion_tokens", 0) or 0,
            total_tokens=getattr(usage, "total_tokens", 0) or 0,
        )
        if not resp.choices:
            logger.warning("OpenAI returned no choices for model %s", self.config.model)
            return LLMResponse(text=None, tool_calls=[], usage=normalized_usage, raw_response=resp)

        choice = resp.choices[0].message
        return LLMResponse(
            text=choice.content or None,
            tool_calls=self._parse_tool_calls(choice),
            usage=normalized_usage,
            raw_response=resp,
        )
