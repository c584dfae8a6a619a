"""Unit tests for the tool registry and executor."""
from __future__ import annotations

import unittest
from typing import Any

from src.chat_orchestrator.tools import BaseTool, ToolContext, ToolRegistry
from src.llm_bridge import ToolCall, ToolDefinition, ToolExecutionResult


def _definition(name: str) -> ToolDefinition:
    return ToolDefinition(name=name, description=f"{name} tool", parameters={"type": "object", "properties": {}})


async def _ok(call: ToolCall, context: ToolContext) -> ToolExecutionResult:
    return ToolExecutionResult(success=True, message="ok", data={"echo": call.args, "session": context.session_id})


async def _other(call: ToolCall, context: ToolContext) -> ToolExecutionResult:
    return ToolExecutionResult(success=True, message="other")


async def _boom(call: ToolCall, context: ToolContext) -> ToolExecutionResult:
    raise RuntimeError("downstream exploded")


class EchoTool(BaseTool):
    @property
    def name(self) -> str:
        return "echo"

    @property
    def description(self) -> str:
        return "Echo the arguments"

    @property
    def parameters(self) -> dict[str, Any]:
        return {"type": "object", "properties": {"text": {"type": "string"}}}

    async def execute(self, call: ToolCall, context: ToolContext) -> ToolExecutionResult:
        return ToolExecutionResult(success=True, message=call.args.get("text", ""))


class TestToolRegistry(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.registry = ToolRegistry()
        self.context = ToolContext(session_id="s1", user_id="u1")

    async def test_registration_is_first_wins(self) -> None:
        self.assertTrue(self.registry.register_tool(_definition("get_user_accounts"), _ok))
        self.assertFalse(self.registry.register_tool(_definition("get_user_accounts"), _other))
        self.assertEqual(self.registry.tool_names, ["get_user_accounts"])

        result = await self.registry.execute_tool(ToolCall(id="c1", name="get_user_accounts"), self.context)
        self.assertEqual(result.message, "ok")

    def test_schemas_in_registration_order(self) -> None:
        self.registry.register_tool(_definition("b"), _ok)
        self.registry.register_tool(_definition("a"), _ok)
        self.assertEqual([d.name for d in self.registry.get_registered_tools()], ["b", "a"])

    def test_unregister(self) -> None:
        self.registry.register_tool(_definition("a"), _ok)
        self.assertTrue(self.registry.unregister_tool("a"))
        self.assertFalse(self.registry.unregister_tool("a"))
        self.assertFalse(self.registry.has_tool("a"))

    async def test_unknown_tool_lists_available(self) -> None:
        self.registry.register_tool(_definition("get_user_accounts"), _ok)
        self.registry.register_tool(_definition("transfer_money"), _ok)
        result = await self.registry.execute_tool(ToolCall(id="c1", name="hack_the_bank"), self.context)
        self.assertFalse(result.success)
        self.assertEqual(result.message, "Unknown tool: hack_the_bank. Available tools: get_user_accounts, transfer_money")

    async def test_handler_fault_becomes_failure(self) -> None:
        self.registry.register_tool(_definition("boom"), _boom)
        with self.assertLogs("src.chat_orchestrator.tools", level="ERROR"):
            result = await self.registry.execute_tool(ToolCall(id="c1", name="boom"), self.context)
        self.assertFalse(result.success)
        self.assertEqual(result.message, "Tool execution failed: downstream exploded")

    async def test_handler_receives_args_and_context(self) -> None:
        self.registry.register_tool(_definition("a"), _ok)
        result = await self.registry.execute_tool(ToolCall(id="c1", name="a", args={"x": 1}), self.context)
        self.assertEqual(result.data, {"echo": {"x": 1}, "session": "s1"})

    async def test_class_based_tool(self) -> None:
        self.assertTrue(self.registry.register(EchoTool()))
        self.assertEqual(self.registry.get_registered_tools()[0].parameters["properties"]["text"]["type"], "string")
        result = await self.registry.execute_tool(ToolCall(id="c1", name="echo", args={"text": "hi"}), self.context)
        self.assertEqual(result.message, "hi")

    def test_validate_tool_call(self) -> None:
        self.registry.register_tool(_definition("a"), _ok)
        self.assertTrue(self.registry.validate_tool_call(ToolCall(id="c1", name="a")).valid)
        validation = self.registry.validate_tool_call(ToolCall(id="c1", name="missing"))
        self.assertFalse(validation.valid)
        self.assertEqual(validation.errors, ["Tool 'missing' is not registered"])
        self.assertIn("Tool name is required", self.registry.validate_tool_call(ToolCall(id="c1", name="")).errors)


if __name__ == "__main__":
    unittest.main()
