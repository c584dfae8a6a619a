"""Banking tools exposed to the model: schemas plus handlers backed by the downstream services."""

from __future__ import annotations

import logging
from abc import abstractmethod
from typing import Any, ClassVar

import httpx

from src.llm_bridge import ToolCall, ToolExecutionResult

from .service_client import ServiceClient, ServiceError, ServiceRequestError, UserHeaders
from .tools import BaseTool, ToolContext, ToolRegistry

logger = logging.getLogger(__name__)

_NO_PARAMETERS: dict[str, Any] = {
    "type": "object",
    "properties": {
        "_placeholder": {
            "type": "string",
            "description": "Not used - this tool takes no parameters",
        },
    },
    "required": [],
}

_SAVED_ACCOUNT_QUERY: dict[str, Any] = {
    "type": "object",
    "properties": {
        "query": {
            "type": "string",
            "description": "Optional name or nickname to filter saved recipients",
        },
    },
    "required": [],
}


def user_headers(context: ToolContext) -> UserHeaders:
    return UserHeaders(
        user_id=context.user_id or "anonymous",
        email=str(context.metadata.get("email") or ""),
    )


class ServiceTool(BaseTool):
    """
    A tool whose handler is one downstream request.

    Subclasses declare the schema as class attributes and implement
    ``_request``. Downstream failures become failed results prefixed with
    ``failure_prefix``.
    """

    tool_name: ClassVar[str]
    tool_description: ClassVar[str]
    tool_parameters: ClassVar[dict[str, Any]] = _NO_PARAMETERS
    success_message: ClassVar[str]
    failure_prefix: ClassVar[str]

    def __init__(self, client: ServiceClient) -> None:
        self._client = client

    @property
    def name(self) -> str:
        return self.tool_name

    @property
    def description(self) -> str:
        return self.tool_description

    @property
    def parameters(self) -> dict[str, Any]:
        return self.tool_parameters

    @abstractmethod
    async def _request(self, call: ToolCall, user: UserHeaders) -> Any:
        ...

    async def execute(self, call: ToolCall, context: ToolContext) -> ToolExecutionResult:
        try:
            data = await self._request(call, user_headers(context))
        except (ServiceError, httpx.HTTPError) as exc:
            return ToolExecutionResult(success=False, message=f"{self.failure_prefix}: {exc}")
        return ToolExecutionResult(success=True, message=self.success_message, data=data)


# ---------------------------------------------------------------------------
# ATM service
# ---------------------------------------------------------------------------


class BankNameListTool(ServiceTool):
    tool_name = "bank_name_list"
    tool_description = """Provides a list of supported bank names for ATM searches.
This tool can be used to inform users about which banks they can filter by when searching for nearby ATMs.

Example Usage:
- User says want to see all bank names
- Do not use otherwise

Response:
Returns a list of bank names: {"banks": ["Bank A", "Bank B", "Bank C"]}"""
    success_message = "ATM statuses and bank list retrieved successfully"
    failure_prefix = "Failed to retrieve ATM statuses"

    async def _request(self, call: ToolCall, user: UserHeaders) -> Any:
        return await self._client.get("atmService", "/atm/get-statuses", {}, user)


class GenerateRouteToAtmTool(ServiceTool):
    tool_name = "generate_qr_for_route_to_an_atm"
    tool_description = """Generates a QR or routing payload to navigate to a selected ATM.

IMPORTANT: This tool must never be invoked directly from raw user input. The correct flow is:
1) Call `get_nearest_atm` first to obtain nearby ATM results (the raw `nearestAtmResponse`).
2) From the `nearestAtmResponse`, select an ATM (assistant or user selection).
3) Call `generate_qr_for_route_to_an_atm` with the user's coordinates and the selected ATM's id,
   coordinates and bank name.

The tool returns a QR or routing payload (structure is backend-defined). Do not call this tool
without the coordinates and ids listed in the parameters."""
    tool_parameters = {
        "type": "object",
        "properties": {
            "userLatitude": {"type": "string", "description": "User latitude used for routing"},
            "userLongitude": {"type": "string", "description": "User longitude used for routing"},
            "selectedAtmId": {
                "type": "string",
                "description": "The id of the ATM selected from nearestAtmResponse",
            },
            "selectedAtmLongitude": {"type": "string", "description": "Longitude of the selected ATM"},
            "selectedAtmLatitude": {"type": "string", "description": "Latitude of the selected ATM"},
            "bankName": {"type": "string", "description": "Optional bank filter used when searching ATMs"},
            "requestId": {"type": "string", "description": "Optional idempotency / trace id from the client"},
        },
        "required": [
            "userLongitude",
            "userLatitude",
            "selectedAtmLongitude",
            "selectedAtmLatitude",
            "selectedAtmId",
            "bankName",
        ],
    }
    success_message = "Route to ATM generated"
    failure_prefix = "Failed to generate route"

    async def _request(self, call: ToolCall, user: UserHeaders) -> Any:
        body = {
            "userId": user.user_id,
            "userEmail": user.email,
            "selectedAtmId": call.args.get("selectedAtmId"),
            "bankName": call.args.get("bankName"),
            "selectedAtmLatitude": call.args.get("selectedAtmLatitude"),
            "selectedAtmLongitude": call.args.get("selectedAtmLongitude"),
            "userLatitude": call.args.get("userLatitude"),
            "userLongitude": call.args.get("userLongitude"),
        }
        return await self._client.post("atmService", "/atm/route", body, user)


class NearestAtmTool(ServiceTool):
    tool_name = "get_nearest_atm"
    tool_description = """Retrieves a list of nearby ATMs using the user's location (or provided coordinates).
Intended for user queries like "nearest ATM to me".

For each ATM item the response includes: id, name, latitude, longitude, district, city, address,
status, depositStatus, withdrawStatus and supportedBanks, plus the user's coordinates
(userLatitude, userLongitude)."""
    tool_parameters = {
        "type": "object",
        "properties": {
            "latitude": {"type": "string", "description": "Latitude coordinate of the search location"},
            "longitude": {"type": "string", "description": "Longitude coordinate of the search location"},
            "bankName": {"type": "string", "description": "Optional bank name to filter ATMs"},
        },
        "required": ["latitude", "longitude", "bankName"],
    }
    success_message = "Nearby ATMs retrieved successfully"
    failure_prefix = "Failed to retrieve ATMs"

    async def _request(self, call: ToolCall, user: UserHeaders) -> Any:
        return await self._client.post("atmService", "/atm/nearest", call.args, user)


# ---------------------------------------------------------------------------
# Transaction service
# ---------------------------------------------------------------------------


class TransactionListTool(ServiceTool):
    tool_name = "transaction_list"
    tool_description = """Retrieves a user's transaction history for a specific account.

IMPORTANT: accountId is REQUIRED. Before calling this tool you MUST:
1. Call `get_user_accounts` to retrieve the user's accounts
2. Show the accounts to the user and ASK which account they want to see transactions for
3. Only after the user selects an account, call this tool with that accountId

Parameters:
- accountId (string, REQUIRED): The account whose transactions will be listed.
- size (integer, default 5): Number of transactions to return (max 5).
- type (string, default "ALL"): "EXPENSE" (money out), "INCOME" (money in) or "ALL".
- dateRange (string, default "MONTH"): "WEEK", "MONTH" or "ALL".

Response: transactions, totalElements and totalPages."""
    tool_parameters = {
        "type": "object",
        "properties": {
            "accountId": {
                "type": "string",
                "description": "The account ID whose transactions will be listed. REQUIRED - must be obtained from user selection.",
            },
            "size": {"type": "integer", "description": "Number of transactions to return (max 5, default 5)"},
            "type": {
                "type": "string",
                "enum": ["EXPENSE", "INCOME", "ALL"],
                "description": "Transaction type filter (default: ALL)",
            },
            "dateRange": {
                "type": "string",
                "enum": ["WEEK", "MONTH", "ALL"],
                "description": "Date range filter (default: MONTH)",
            },
        },
        "required": ["accountId"],
    }
    success_message = "Transactions retrieved successfully"
    failure_prefix = "Failed to retrieve transactions"

    async def _request(self, call: ToolCall, user: UserHeaders) -> Any:
        body = {
            "accountId": call.args.get("accountId"),
            "page": 0,
            "size": call.args.get("size") or 5,
            "type": call.args.get("type") or "ALL",
            "dateRange": call.args.get("dateRange") or "MONTH",
        }
        return await self._client.post("transactionService", "/transaction/transactionsv2", body, user)


class TransferMoneyTool(ServiceTool):
    """Two-phase transfer: ``isConfirmed=false`` previews, ``isConfirmed=true`` commits."""

    tool_name = "transfer_money"
    tool_description = """IMPORTANT SECURITY PROTOCOL (TWO-PHASE COMMIT):
This function MUST be called in two steps:
Step 1: VALIDATION (Dry Run)
  - First, call this with `isConfirmed = false`.
  - The system checks balances, validates the recipient name and calculates fees.
  - Show the summary to the user and ASK for confirmation.
Step 2: EXECUTION (Final Commit)
  - ONLY after the user explicitly says "Yes" or "Confirm", call this function AGAIN.
  - Use the EXACT same parameters but set `isConfirmed = true`.

Initiates a money transfer from one account to another, e.g. "transfer 500 TL to Ahmet" or
"send $200 to IBAN TR12...".

Response: an immediate acknowledgment (BaseResponse). The final transfer result is delivered
asynchronously."""
    tool_parameters = {
        "type": "object",
        "properties": {
            "fromIBAN": {"type": "string", "description": "Sender's IBAN (source account)"},
            "toIBAN": {"type": "string", "description": "Recipient's IBAN (destination account)"},
            "amount": {"type": "number", "description": "The amount of money to transfer"},
            "description": {"type": "string", "description": "Optional note or transfer description"},
            "toFirstName": {"type": "string", "description": "Recipient's first name"},
            "toSecondName": {"type": "string", "description": "Recipient's middle name (if any)"},
            "toLastName": {"type": "string", "description": "Recipient's last name"},
            "isConfirmed": {
                "type": "boolean",
                "description": "Set to false for initial validation/preview. Set to true ONLY when user confirms the preview.",
            },
        },
        "required": ["fromIBAN", "toIBAN", "amount", "isConfirmed"],
    }
    success_message = "Transfer completed"
    failure_prefix = "Transfer failed"

    async def _request(self, call: ToolCall, user: UserHeaders) -> Any:
        body = {**call.args, "isConfirmed": self._is_confirmed(call)}
        return await self._client.post("transactionService", "/transaction/transfer", body, user)

    @staticmethod
    def _is_confirmed(call: ToolCall) -> bool:
        return call.args.get("isConfirmed") is True

    @staticmethod
    def _business_failure(payload: dict[str, Any], default_status: str | None = None) -> ToolExecutionResult:
        return ToolExecutionResult(
            success=False,
            message=payload.get("processMessage") or "Transfer failed",
            data={
                "status": payload.get("status") or default_status,
                "processCode": payload.get("processCode") or ("UNKNOWN" if default_status else None),
                "processMessage": payload.get("processMessage"),
            },
        )

    async def execute(self, call: ToolCall, context: ToolContext) -> ToolExecutionResult:
        is_confirmed = self._is_confirmed(call)
        try:
            data = await self._request(call, user_headers(context))
        except ServiceRequestError as exc:
            if isinstance(exc.data, dict) and exc.data.get("processMessage"):
                return self._business_failure(exc.data, default_status="FAILED")
            return ToolExecutionResult(success=False, message=f"{self.failure_prefix}: {exc}")
        except (ServiceError, httpx.HTTPError) as exc:
            return ToolExecutionResult(success=False, message=f"{self.failure_prefix}: {exc}")

        # status "1" is the only success code of the transaction service
        if isinstance(data, dict) and data.get("status") and data.get("status") != "1":
            return self._business_failure(data)
        message = "Transfer completed" if is_confirmed else "Transfer preview generated"
        logger.info("transfer_money %s for user %s", "committed" if is_confirmed else "previewed", context.user_id)
        return ToolExecutionResult(success=True, message=message, data=data)


class AnalyzeTransactionsTool(ServiceTool):
    tool_name = "analyze_transactions"
    tool_description = """Initiates transaction analysis for the user's account activity, e.g.
"analyze my transactions from the last week" or "generate a spending report for the last 30 days".

The analysis is asynchronous. The response contains invoiceRequestId, invoiceStatus,
estimatedCompletionDate and invoiceMessage. Tell the user the estimated completion date."""
    tool_parameters = {
        "type": "object",
        "properties": {
            "analyzeRange": {
                "type": "string",
                "enum": ["LAST_7_DAYS", "LAST_30_DAYS"],
                "description": "The time period to analyze: LAST_7_DAYS or LAST_30_DAYS",
            },
        },
        "required": ["analyzeRange"],
    }
    success_message = (
        "Transaction analysis request submitted successfully. "
        "The estimated completion date is included in the response."
    )
    failure_prefix = "Failed to submit transaction analysis request"

    async def _request(self, call: ToolCall, user: UserHeaders) -> Any:
        body = {"analyzeRange": call.args.get("analyzeRange")}
        return await self._client.post("analysisService", "/analysis/transactions", body, user)


# ---------------------------------------------------------------------------
# Account service
# ---------------------------------------------------------------------------


class SavedAccountsForTransferTool(ServiceTool):
    tool_name = "get_saved_accounts_for_transfer"
    tool_description = """Retrieves saved recipient accounts specifically for money transfer purposes.
Use it to resolve a recipient mentioned by name or nickname (e.g. "send 100 to Ali",
"send 50 to 'home'") into an IBAN or saved recipient entry before calling `transfer_money`.

Request:
- query (string, optional): Free-text name or nickname to filter saved recipients.

Response: savedAccounts, a list of {id, nickname, accountIBAN, firstName, secondName, lastName}."""
    tool_parameters = _SAVED_ACCOUNT_QUERY
    success_message = "Saved accounts retrieved for transfer"
    failure_prefix = "Failed to retrieve saved accounts"

    async def _request(self, call: ToolCall, user: UserHeaders) -> Any:
        return await self._client.post("accountService", "/user/saved-accounts/get", call.args, user)


class SavedAccountsTool(ServiceTool):
    tool_name = "get_saved_accounts"
    tool_description = """Retrieves the user's saved recipient accounts (not the user's own accounts).
No required parameters: user identity is taken from request headers.

Response: savedAccounts, a list of {id, nickname, accountIBAN, firstName, secondName, lastName}."""
    tool_parameters = _SAVED_ACCOUNT_QUERY
    success_message = "Saved accounts retrieved"
    failure_prefix = "Failed to retrieve saved accounts"

    async def _request(self, call: ToolCall, user: UserHeaders) -> Any:
        return await self._client.post("accountService", "/user/saved-accounts/get", call.args, user)


class UserAccountsTool(ServiceTool):
    tool_name = "get_user_accounts"
    tool_description = """Retrieves the list of accounts belonging to the authenticated user, e.g.
"show my accounts" or "display my balances". If you already have accountId or fromIBAN you do
not need to call this function.

Response: accounts (id, iban, name, balance, currency) and the owner's firstName, secondName
and lastName."""
    success_message = "User accounts retrieved successfully"
    failure_prefix = "Failed to retrieve user accounts"

    async def _request(self, call: ToolCall, user: UserHeaders) -> Any:
        return await self._client.post("accountService", "/account/getv2", {}, user)


class AccountDetailTool(ServiceTool):
    tool_name = "get_account_detail"
    tool_description = """Retrieves detailed information for a specific account by its ID, e.g.
"show details of my savings account". If the account is not known, ask the user to select one.

Response: account (id, iban, name, balance, currency)."""
    tool_parameters = {
        "type": "object",
        "properties": {
            "accountId": {
                "type": "string",
                "description": "The account ID for which detailed information is requested",
            },
        },
        "required": ["accountId"],
    }
    success_message = "Account details retrieved successfully"
    failure_prefix = "Failed to retrieve account detail"

    async def _request(self, call: ToolCall, user: UserHeaders) -> Any:
        return await self._client.post("accountService", f"/accounts/{call.args.get('accountId')}", {}, user)


BANKING_TOOL_CLASSES: tuple[type[ServiceTool], ...] = (
    BankNameListTool,
    GenerateRouteToAtmTool,
    NearestAtmTool,
    TransactionListTool,
    TransferMoneyTool,
    SavedAccountsForTransferTool,
    SavedAccountsTool,
    UserAccountsTool,
    AccountDetailTool,
    AnalyzeTransactionsTool,
)


def get_banking_tools(client: ServiceClient) -> list[BaseTool]:
    return [cls(client) for cls in BANKING_TOOL_CLASSES]


def register_banking_tools(registry: ToolRegistry, client: ServiceClient) -> int:
    """Register every banking tool; returns how many were newly registered."""
    registered = sum(1 for tool in get_banking_tools(client) if registry.register(tool))
    logger.info("Registered %d built-in banking tools", registered)
    return registered
