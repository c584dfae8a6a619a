"""Google Gemini LLM provider implementation for the orchestrator."""

from __future__ import annotations

import logging
import os
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from ..arguments import parse_tool_arguments
from ..config import LLMConfig
from ..errors import LLMConfigurationError, LLMProviderError
from ..history import GeminiHistoryAdapter
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

_AUTH_STATUS_CODES = {401, 403}
_HISTORY_ADAPTER = GeminiHistoryAdapter()


class GeminiProvider(LLMProvider):
    """Gemini provider using the google-genai SDK."""

    provider_name = ProviderName.GEMINI

    def __init__(
        self,
        config: LLMConfig,
        api_key: str | None = None,
        client: Any | None = None,
    ) -> None:
        super().__init__(config)
        self.api_key = api_key or os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY", "")
        self._client: Any | None = client

    def _get_client(self) -> Any:
        if not self._client:
            if not self.api_key:
                raise LLMConfigurationError("GEMINI_API_KEY not configured. Check your .env file.")
            self._client = genai.Client(
                api_key=self.api_key,
                http_options={"api_version": "v1beta"},
            )
        return self._client

    @staticmethod
    def _to_gemini_contents(messages: list[Message]) -> list[genai_types.Content]:
        """Convert agnostic messages into Gemini contents.

        Built from the history adapter's entries so stateless calls carry the
        same shape as native histories: ``model`` role, tool results as user
        turns named after the tool, vendor call ids echoed when present.
        """
        entries = _HISTORY_ADAPTER.to_provider_format(messages).entries
        return [genai_types.Content.model_validate(entry) for entry in entries]

    @staticmethod
    def _to_gemini_tools(tools: list[ToolDefinition] | None) -> list[genai_types.Tool] | None:
        """Convert tool definitions into Gemini Tool declarations."""
        if not tools:
            return None
        function_declarations = [
            genai_types.FunctionDeclaration(**t.to_gemini_declaration()) for t in tools
        ]
        return [genai_types.Tool(function_declarations=function_declarations)]

    def _build_config(
        self,
        system_prompt: str | None,
        tools: list[ToolDefinition] | None,
    ) -> genai_types.GenerateContentConfig:
        config_args: dict[str, Any] = {}
        gemini_tools = self._to_gemini_tools(tools)
        if gemini_tools:
            config_args["tools"] = gemini_tools
            # Without an explicit AUTO mode some models answer with empty parts.
            config_args["tool_config"] = genai_types.ToolConfig(
                function_calling_config=genai_types.FunctionCallingConfig(
                    mode=genai_types.FunctionCallingConfigMode.AUTO
                )
            )
        if system_prompt:
            config_args["system_instruction"] = system_prompt
        if self.config.temperature is not None:
            config_args["temperature"] = self.config.temperature
        if self.config.max_tokens is not None:
            config_args["max_output_tokens"] = self.config.max_tokens
        if self.config.top_p is not None:
            config_args["top_p"] = self.config.top_p
        if self.config.top_k is not None:
            config_args["top_k"] = self.config.top_k
        if self.config.stop_sequences:
            config_args["stop_sequences"] = self.config.stop_sequences
        return genai_types.GenerateContentConfig(**config_args)

    async def generate_response(
        self,
        messages: list[Message],
        system_prompt: str | None = None,
        tools: list[ToolDefinition] | None = None,
    ) -> LLMResponse:
        return await self._execute(self._to_gemini_contents(messages), system_prompt, tools)

    async def generate_with_native_history(
        self,
        history: NativeHistory,
        system_prompt: str | None = None,
        tools: list[ToolDefinition] | None = None,
    ) -> LLMResponse:
        self._check_history(history)
        if tools:
            logger.debug(
                "Sending %d tools to Gemini: %s",
                len(tools),
                ", ".join(t.name for t in tools),
            )
        return await self._execute(list(history.entries), system_prompt, tools)

    async def _execute(
        self,
        contents: list[Any],
        system_prompt: str | None,
        tools: list[ToolDefinition] | None,
    ) -> LLMResponse:
        client = self._get_client()
        config = self._build_config(system_prompt, tools)
        try:
            resp = await client.aio.models.generate_content(
                model=self.config.model,
                contents=contents,
                config=config,
            )
        except httpx.TransportError as exc:
            raise LLMProviderError(
                self.provider_name.value,
                "Failed to connect to Gemini API. Possible causes: network or firewall "
                f"blocking the request, proxy configuration needed. Original error: {exc}",
                str(exc),
            ) from exc
        except genai_errors.APIError as exc:
            if exc.code in _AUTH_STATUS_CODES:
                message = f"Gemini rejected the request credentials. Check GEMINI_API_KEY. Original error: {exc}"
            else:
                message = f"Gemini request failed: {exc}"
            raise LLMProviderError(self.provider_name.value, message, str(exc)) from exc
        return self._parse_response(resp)

    def _parse_response(self, resp: Any) -> LLMResponse:
        """Normalize a GenerateContentResponse; the raw response is kept for history replay."""
        usage_metadata = getattr(resp, "usage_metadata", None)
        usage = Usage(
            input_tokens=getattr(usage_metadata, "prompt_token_count", 0) or 0,
            output_tokens=getattr(usage_metadata, "candidates_token_count", 0) or 0,
            total_tokens=getattr(usage_metadata, "total_token_count", 0) or 0,
        )
        candidates = getattr(resp, "candidates", None) or []
        candidate = candidates[0] if candidates else None
        content = getattr(candidate, "content", None)
        parts = getattr(content, "parts", None) or []

        if not parts:
            logger.warning(
                "Empty response from Gemini (no parts); finish_reason=%s. The model may have been "
                "blocked by a safety filter, hit a quota, or failed to call a registered tool.",
                getattr(candidate, "finish_reason", None),
            )
            return LLMResponse(text=None, tool_calls=[], usage=usage, raw_response=resp)

        texts: list[str] = []
        tool_calls: list[ToolCall] = []
        for part in parts:
            if getattr(part, "text", None) is not None and not getattr(part, "thought", False):
                texts.append(part.text)
            fc = getattr(part, "function_call", None)
            if fc is None or not fc.name:
                continue
            tool_calls.append(
                ToolCall(
                    # Gemini only sometimes assigns call ids; the tool name stands in otherwise.
                    id=fc.id or fc.name,
                    name=fc.name,
                    args=parse_tool_arguments(fc.name, fc.args),
                )
            )

        logger.debug("Gemini returned %d text part(s) and %d tool call(s)", len(texts), len(tool_calls))
        return LLMResponse(
            text="".join(texts) if texts else None,
            tool_calls=tool_calls,
            usage=usage,
            raw_response=resp,
        )
