"""Abstract history adapter: agnostic messages <-> vendor-native transcripts."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar

from ..errors import HistoryProviderMismatchError
from ..models import Message, NativeHistory, ProviderName, ToolCall, ToolExecutionResult


def field_of(obj: Any, name: str, default: Any = None) -> Any:
    """Read ``name`` from an SDK object or from its dict form."""
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def dump_vendor_object(obj: Any) -> dict[str, Any]:
    """Plain-dict copy of an SDK pydantic object (or of a mapping), without unset fields."""
    if hasattr(obj, "model_dump"):
        return obj.model_dump(exclude_none=True)
    return dict(obj)


class HistoryAdapter(ABC):
    """
    Builds and reads one vendor's transcript.

    Every ``add_*`` operation is pure: the given history is left unchanged and
    the caller must keep the returned NativeHistory. Bulk conversions are
    lossless for text, tool calls and tool results; vendor-only structure kept
    from raw responses does not survive ``to_agnostic_format``.
    """

    provider_name: ClassVar[ProviderName]

    def empty(self) -> NativeHistory:
        return NativeHistory(provider=self.provider_name)

    def _check(self, history: NativeHistory) -> None:
        if history.provider != self.provider_name:
            raise HistoryProviderMismatchError(self.provider_name.value, history.provider.value)

    def add_user_message(self, history: NativeHistory, content: str) -> NativeHistory:
        self._check(history)
        return history.appended(self._user_entry(content))

    def add_assistant_message(self, history: NativeHistory, content: str) -> NativeHistory:
        self._check(history)
        return history.appended(self._assistant_entry(content))

    def add_assistant_tool_calls(
        self,
        history: NativeHistory,
        tool_calls: list[ToolCall],
        raw_response: Any = None,
    ) -> NativeHistory:
        """Append the model's tool-call turn, replaying ``raw_response`` verbatim when it carries one."""
        self._check(history)
        entry = self._replay_tool_call_entry(raw_response) if raw_response is not None else None
        if entry is None:
            entry = self._tool_call_entry(tool_calls)
        return history.appended(entry)

    def add_tool_results(
        self,
        history: NativeHistory,
        tool_call: ToolCall,
        result: ToolExecutionResult,
    ) -> NativeHistory:
        self._check(history)
        return history.appended(self._tool_result_entry(tool_call, result))

    def sanitize(self, history: NativeHistory) -> NativeHistory:
        """
        Drop leading entries up to the first user turn.

        A length cap can cut a tool-call turn off from its results; vendors
        reject a transcript that opens with such an orphaned result.
        """
        self._check(history)
        for index, entry in enumerate(history.entries):
            if self._starts_user_turn(entry):
                break
        else:
            index = len(history)
        if index == 0:
            return history
        return NativeHistory(provider=history.provider, entries=history.entries[index:])

    def to_provider_format(self, messages: list[Message]) -> NativeHistory:
        return NativeHistory(provider=self.provider_name, entries=self._to_entries(messages))

    def to_agnostic_format(self, history: NativeHistory) -> list[Message]:
        self._check(history)
        return self._from_entries(history.entries)

    # -- vendor specific -----------------------------------------------------

    @abstractmethod
    def _user_entry(self, content: str) -> dict[str, Any]:
        ...

    @abstractmethod
    def _assistant_entry(self, content: str) -> dict[str, Any]:
        ...

    @abstractmethod
    def _starts_user_turn(self, entry: dict[str, Any]) -> bool:
        """True for a user-authored entry (not a tool result)."""
        ...

    @abstractmethod
    def _tool_call_entry(self, tool_calls: list[ToolCall]) -> dict[str, Any]:
        ...

    @abstractmethod
    def _replay_tool_call_entry(self, raw_response: Any) -> dict[str, Any] | None:
        """Vendor's own tool-call turn from a raw response, or None if it has none."""
        ...

    @abstractmethod
    def _tool_result_entry(self, tool_call: ToolCall, result: ToolExecutionResult) -> dict[str, Any]:
        ...

    @abstractmethod
    def _to_entries(self, messages: list[Message]) -> list[dict[str, Any]]:
        ...

    @abstractmethod
    def _from_entries(self, entries: list[dict[str, Any]]) -> list[Message]:
        ...
