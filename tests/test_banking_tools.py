"""Unit tests for the banking tools and the downstream service client."""
from __future__ import annotations

import json
import unittest
from unittest.mock import AsyncMock, MagicMock

import httpx

from src.chat_orchestrator.banking_tools import (
    BANKING_TOOL_CLASSES,
    AccountDetailTool,
    BankNameListTool,
    GenerateRouteToAtmTool,
    TransactionListTool,
    TransferMoneyTool,
    get_banking_tools,
    register_banking_tools,
)
from src.chat_orchestrator.service_client import (
    ServiceClient,
    ServiceConfigurationError,
    ServiceRequestError,
    UserHeaders,
)
from src.chat_orchestrator.tools import ToolContext, ToolRegistry
from src.llm_bridge import ToolCall

_EXPECTED_TOOLS = {
    "bank_name_list": [],
    "generate_qr_for_route_to_an_atm": [
        "userLongitude",
        "userLatitude",
        "selectedAtmLongitude",
        "selectedAtmLatitude",
        "selectedAtmId",
        "bankName",
    ],
    "get_nearest_atm": ["latitude", "longitude", "bankName"],
    "transaction_list": ["accountId"],
    "transfer_money": ["fromIBAN", "toIBAN", "amount", "isConfirmed"],
    "get_saved_accounts_for_transfer": [],
    "get_saved_accounts": [],
    "get_user_accounts": [],
    "get_account_detail": ["accountId"],
    "analyze_transactions": ["analyzeRange"],
}


def _client() -> MagicMock:
    client = MagicMock(spec=ServiceClient)
    client.post = AsyncMock(return_value={"ok": True})
    client.get = AsyncMock(return_value={"banks": ["Bank A"]})
    return client


class TestBankingToolSchemas(unittest.TestCase):
    def test_names_and_required_fields(self) -> None:
        tools = get_banking_tools(_client())
        self.assertEqual(len(tools), len(BANKING_TOOL_CLASSES))
        self.assertEqual({t.name: t.parameters["required"] for t in tools}, _EXPECTED_TOOLS)

    def test_enums(self) -> None:
        props = {t.name: t.parameters["properties"] for t in get_banking_tools(_client())}
        self.assertEqual(props["transaction_list"]["type"]["enum"], ["EXPENSE", "INCOME", "ALL"])
        self.assertEqual(props["transaction_list"]["dateRange"]["enum"], ["WEEK", "MONTH", "ALL"])
        self.assertEqual(props["analyze_transactions"]["analyzeRange"]["enum"], ["LAST_7_DAYS", "LAST_30_DAYS"])
        self.assertEqual(props["transfer_money"]["isConfirmed"]["type"], "boolean")

    def test_register_is_idempotent(self) -> None:
        registry = ToolRegistry()
        client = _client()
        self.assertEqual(register_banking_tools(registry, client), 10)
        self.assertEqual(register_banking_tools(registry, client), 0)
        self.assertEqual(len(registry.get_registered_tools()), 10)


class TestBankingToolHandlers(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.client = _client()
        self.context = ToolContext(session_id="s1", user_id="u-1", metadata={"email": "ayse@example.com"})
        self.user = UserHeaders(user_id="u-1", email="ayse@example.com")

    async def test_bank_name_list_uses_get(self) -> None:
        result = await BankNameListTool(self.client).execute(ToolCall(id="c1", name="bank_name_list"), self.context)
        self.assertTrue(result.success)
        self.assertEqual(result.data, {"banks": ["Bank A"]})
        self.client.get.assert_awaited_once_with("atmService", "/atm/get-statuses", {}, self.user)

    async def test_anonymous_user_when_context_is_empty(self) -> None:
        await BankNameListTool(self.client).execute(
            ToolCall(id="c1", name="bank_name_list"), ToolContext(session_id="s1")
        )
        self.assertEqual(self.client.get.await_args.args[3], UserHeaders(user_id="anonymous", email=""))

    async def test_transaction_list_defaults(self) -> None:
        call = ToolCall(id="c1", name="transaction_list", args={"accountId": "acc-1"})
        await TransactionListTool(self.client).execute(call, self.context)
        self.client.post.assert_awaited_once_with(
            "transactionService",
            "/transaction/transactionsv2",
            {"accountId": "acc-1", "page": 0, "size": 5, "type": "ALL", "dateRange": "MONTH"},
            self.user,
        )

    async def test_route_carries_user_identity(self) -> None:
        args = {
            "userLatitude": "41.0",
            "userLongitude": "29.0",
            "selectedAtmId": "atm-3",
            "selectedAtmLatitude": "41.1",
            "selectedAtmLongitude": "29.1",
            "bankName": "Bank A",
        }
        await GenerateRouteToAtmTool(self.client).execute(
            ToolCall(id="c1", name="generate_qr_for_route_to_an_atm", args=args), self.context
        )
        body = self.client.post.await_args.args[2]
        self.assertEqual(body["userId"], "u-1")
        self.assertEqual(body["userEmail"], "ayse@example.com")
        self.assertEqual(body["selectedAtmId"], "atm-3")

    async def test_account_detail_path(self) -> None:
        await AccountDetailTool(self.client).execute(
            ToolCall(id="c1", name="get_account_detail", args={"accountId": "77"}), self.context
        )
        self.client.post.assert_awaited_once_with("accountService", "/accounts/77", {}, self.user)

    async def test_downstream_failure_is_a_failed_result(self) -> None:
        self.client.post.side_effect = httpx.ConnectError("refused")
        result = await AccountDetailTool(self.client).execute(
            ToolCall(id="c1", name="get_account_detail", args={"accountId": "77"}), self.context
        )
        self.assertFalse(result.success)
        self.assertEqual(result.message, "Failed to retrieve account detail: refused")


class TestTransferMoneyTool(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.client = _client()
        self.tool = TransferMoneyTool(self.client)
        self.context = ToolContext(session_id="s1", user_id="u-1")
        self.args = {"fromIBAN": "TR01", "toIBAN": "TR02", "amount": 100}

    async def test_defaults_to_preview(self) -> None:
        self.client.post.return_value = {"status": "1", "fee": 0}
        result = await self.tool.execute(ToolCall(id="c1", name="transfer_money", args=self.args), self.context)
        self.assertTrue(result.success)
        self.assertEqual(result.message, "Transfer preview generated")
        self.assertIs(self.client.post.await_args.args[2]["isConfirmed"], False)

    async def test_confirmed_commit(self) -> None:
        self.client.post.return_value = {"status": "1"}
        call = ToolCall(id="c1", name="transfer_money", args={**self.args, "isConfirmed": True})
        result = await self.tool.execute(call, self.context)
        self.assertEqual(result.message, "Transfer completed")
        self.assertIs(self.client.post.await_args.args[2]["isConfirmed"], True)

    async def test_business_failure_status(self) -> None:
        self.client.post.return_value = {"status": "0", "processCode": "INSUFFICIENT", "processMessage": "Insufficient balance"}
        result = await self.tool.execute(ToolCall(id="c1", name="transfer_money", args=self.args), self.context)
        self.assertFalse(result.success)
        self.assertEqual(result.message, "Insufficient balance")
        self.assertEqual(result.data["processCode"], "INSUFFICIENT")

    async def test_error_body_with_process_message(self) -> None:
        self.client.post.side_effect = ServiceRequestError(
            "transactionService", 400, {"processMessage": "Recipient name does not match"}
        )
        result = await self.tool.execute(ToolCall(id="c1", name="transfer_money", args=self.args), self.context)
        self.assertFalse(result.success)
        self.assertEqual(result.message, "Recipient name does not match")
        self.assertEqual(result.data["status"], "FAILED")
        self.assertEqual(result.data["processCode"], "UNKNOWN")

    async def test_error_without_body(self) -> None:
        self.client.post.side_effect = ServiceRequestError("transactionService", 502, None)
        result = await self.tool.execute(ToolCall(id="c1", name="transfer_money", args=self.args), self.context)
        self.assertFalse(result.success)
        self.assertEqual(result.message, "Transfer failed: transactionService responded with HTTP 502")


class TestServiceClient(unittest.IsolatedAsyncioTestCase):
    async def test_post_sends_headers_and_json(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"accounts": []})

        http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        client = ServiceClient({"accountService": "http://accounts/api/v1/"}, client=http)
        data = await client.post("accountService", "/account/getv2", {}, UserHeaders("u-1", "a@b.c"))
        await client.aclose()

        self.assertEqual(data, {"accounts": []})
        self.assertEqual(str(seen[0].url), "http://accounts/api/v1/account/getv2")
        self.assertEqual(seen[0].headers["X-User-Id"], "u-1")
        self.assertEqual(seen[0].headers["X-User-Email"], "a@b.c")
        self.assertEqual(json.loads(seen[0].content), {})

    async def test_non_2xx_raises_with_body(self) -> None:
        http = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(400, json={"processMessage": "nope"}))
        )
        client = ServiceClient({"transactionService": "http://tx"}, client=http)
        with self.assertRaises(ServiceRequestError) as ctx:
            await client.post("transactionService", "/transaction/transfer", {}, UserHeaders())
        await client.aclose()
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertEqual(ctx.exception.data, {"processMessage": "nope"})

    async def test_unknown_service(self) -> None:
        client = ServiceClient({}, client=httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200))))
        with self.assertRaises(ServiceConfigurationError):
            await client.get("atmService", "/atm/get-statuses", {}, UserHeaders())
        await client.aclose()


if __name__ == "__main__":
    unittest.main()
