"""Parsing of tool-call arguments sent by vendors."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from .errors import ToolArgumentsError


def parse_tool_arguments(tool_name: str, raw: Any) -> dict[str, Any]:
    """
    Turn vendor tool arguments into a mapping.

    Serialized arguments are decoded as JSON. Anything that does not decode to
    an object raises ToolArgumentsError; an empty payload means no arguments.
    """
    if raw is None:
        return {}
    if isinstance(raw, Mapping):
        return dict(raw)
    if isinstance(raw, (str, bytes)):
        if not raw.strip():
            return {}
        try:
            parsed = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ToolArgumentsError(tool_name, raw, str(exc)) from exc
        if not isinstance(parsed, dict):
            raise ToolArgumentsError(tool_name, raw, f"expected a JSON object, got {type(parsed).__name__}")
        return parsed
    raise ToolArgumentsError(tool_name, raw, f"unsupported argument type {type(raw).__name__}")
