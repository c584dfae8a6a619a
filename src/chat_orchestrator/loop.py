"""Bounded model/tool loop over a session's native transcript."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from src.llm_bridge import (
    LLMConfigurationError,
    LLMProvider,
    Message,
    NativeHistory,
    ToolCall,
    Usage,
    get_history_adapter,
)

from .config import DEPTH_EXCEEDED_MESSAGE, MAX_TOOL_ROUNDS
from .session_store import Session, SessionStore
from .system_prompt_loader import get_default_system_prompt
from .tools import ToolContext, ToolRegistry

logger = logging.getLogger(__name__)

# How far back last_tool_result looks in the transcript.
_LAST_TOOL_RESULT_WINDOW = 10


@dataclass
class LoopOptions:
    """Options for the orchestration loop."""

    max_tool_rounds: int = MAX_TOOL_ROUNDS
    system_prompt: str | None = None
    depth_exceeded_message: str = DEPTH_EXCEEDED_MESSAGE


@dataclass
class ChatResult:
    """Outcome of one orchestrated turn."""

    session_id: str
    text: str
    usage: Usage = field(default_factory=Usage)
    rounds: int = 0
    tool_calls: list[ToolCall] = field(default_factory=list)
    last_tool_result: dict[str, Any] | None = None
    depth_exceeded: bool = False


def find_last_tool_result(messages: list[Message]) -> dict[str, Any] | None:
    """``{function_name, data}`` of the newest tool result in ``messages``, or None."""
    names = {call.id: call.name for m in messages for call in m.tool_calls}
    for message in reversed(messages):
        if message.role == "tool" and message.tool_result is not None:
            call_id = message.tool_result.call_id
            return {"function_name": names.get(call_id, call_id), "data": message.tool_result.result}
    return None


class ConversationOrchestrator:
    """
    Drives one user turn: model call, tool execution, repeat.

    Each round appends the model's tool-call turn and one result per call to
    the transcript, then persists it, so the stored history never ends with an
    unanswered call. The loop stops at the first text reply or after
    ``max_tool_rounds`` model calls, whichever comes first. Vendor and argument
    errors propagate to the caller; tool failures are fed back to the model.
    """

    def __init__(
        self,
        provider: LLMProvider,
        registry: ToolRegistry,
        sessions: SessionStore,
        options: LoopOptions | None = None,
    ) -> None:
        self.provider = provider
        self.registry = registry
        self.sessions = sessions
        self.options = options or LoopOptions()
        self.history_adapter = get_history_adapter(provider.get_provider_name())

    @property
    def system_prompt(self) -> str:
        return self.options.system_prompt or get_default_system_prompt()

    async def process_message(
        self,
        session_id: str,
        message: str,
        user_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ChatResult:
        """Run one user turn on ``session_id``. Turns on the same session run one at a time."""
        async with self.sessions.lock(session_id):
            return await self._run_turn(session_id, message, user_id, metadata or {})

    async def _run_turn(
        self,
        session_id: str,
        message: str,
        user_id: str | None,
        metadata: dict[str, Any],
    ) -> ChatResult:
        provider_name = self.provider.get_provider_name()
        session = self.sessions.get_or_create(session_id, provider_name)
        if session.provider != provider_name:
            raise LLMConfigurationError(
                f"Session {session_id} was started with provider '{session.provider.value}', "
                f"the active provider is '{provider_name.value}'"
            )
        if user_id:
            session.metadata["user_id"] = user_id

        context = ToolContext(session_id=session_id, user_id=user_id, metadata=dict(metadata))
        tools = self.registry.get_registered_tools() or None
        adapter = self.history_adapter
        stored = session.native_history
        history = adapter.sanitize(stored)
        if len(history) != len(stored):
            logger.info("Session %s: dropped %d orphaned leading entries", session_id, len(stored) - len(history))
        history = adapter.add_user_message(history, message)

        usage = Usage()
        executed: list[ToolCall] = []
        for round_number in range(1, self.options.max_tool_rounds + 1):
            logger.info("Session %s: round %d, %d history entries", session_id, round_number, len(history))
            response = await self.provider.generate_with_native_history(history, self.system_prompt, tools)
            usage = usage + response.usage

            if not response.has_tool_calls:
                text = response.text or ""
                if text:
                    history = adapter.add_assistant_message(history, text)
                self.sessions.update_history(session_id, history)
                logger.info("Session %s: reply after %d rounds", session_id, round_number)
                return ChatResult(
                    session_id=session_id,
                    text=text,
                    usage=usage,
                    rounds=round_number,
                    tool_calls=executed,
                    last_tool_result=self._last_tool_result(history),
                )

            history = adapter.add_assistant_tool_calls(history, response.tool_calls, response.raw_response)
            for call in response.tool_calls:
                result = await self.registry.execute_tool(call, context)
                history = adapter.add_tool_results(history, call, result)
                executed.append(call)
            self.sessions.update_history(session_id, history)

        logger.warning(
            "Session %s: tool round limit of %d reached without a text reply",
            session_id,
            self.options.max_tool_rounds,
        )
        return ChatResult(
            session_id=session_id,
            text=self.options.depth_exceeded_message,
            usage=usage,
            rounds=self.options.max_tool_rounds,
            tool_calls=executed,
            last_tool_result=self._last_tool_result(history),
            depth_exceeded=True,
        )

    def _last_tool_result(self, history: NativeHistory) -> dict[str, Any] | None:
        recent = self.history_adapter.to_agnostic_format(history.tail(_LAST_TOOL_RESULT_WINDOW))
        return find_last_tool_result(recent)

    def get_session(self, session_id: str) -> Session | None:
        return self.sessions.get(session_id)

    def get_history(self, session_id: str) -> list[Message] | None:
        """Agnostic view of a session's transcript, or None for an unknown session."""
        session = self.sessions.get(session_id)
        if session is None:
            return None
        return get_history_adapter(session.provider).to_agnostic_format(session.native_history)

    def delete_session(self, session_id: str) -> bool:
        return self.sessions.delete(session_id)
