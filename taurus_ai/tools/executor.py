"""Validate, dispatch and normalize Hedera tool calls."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, List, Mapping, Optional

from taurus_ai.hedera_api import HederaApiError, HederaClient, default_client
from taurus_ai.tools.catalog import TOOL_CATALOG, ToolDefinition, list_tools
from taurus_ai.tools.params import build_params
from taurus_ai.tools.validators import ToolValidationError, validate_arguments

logger = logging.getLogger(__name__)


class UnknownToolError(LookupError):
    """Raised when a tool name is not present in the catalog."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Unknown tool: {name}")
        self.name = name


# Tool name -> HederaClient coroutine, called with the tool's params as keywords.
CLIENT_METHODS: Dict[str, str] = {
    "hedera_get_account_balance": "get_account_balance",
    "hedera_get_account_info": "get_account_info",
    "hedera_create_account": "create_account",
    "hedera_create_token": "create_token",
    "hedera_transfer_token": "transfer_token",
    "hedera_associate_token": "associate_token",
    "hedera_deploy_contract": "deploy_contract",
    "hedera_call_contract": "call_contract",
    "hedera_query_contract": "query_contract",
    "hedera_create_topic": "create_topic",
    "hedera_submit_message": "submit_message",
    "hedera_get_topic_messages": "get_topic_messages",
    "hedera_create_file": "create_file",
    "hedera_get_file_contents": "get_file_contents",
    "hedera_append_file": "append_file",
    "hedera_transfer_hbar": "transfer_hbar",
    "hedera_get_network_info": "get_network_info",
}


@dataclass(slots=True)
class ToolResult:
    success: bool
    data: Any = None
    error: Optional[str] = None
    transaction_id: Optional[str] = None

    @classmethod
    def failure(cls, message: str) -> "ToolResult":
        return cls(success=False, error=message)

    def to_content(self) -> Dict[str, Any]:
        """Render as protocol content blocks plus an error flag."""
        if not self.success:
            return {
                "content": [{"type": "text", "text": f"Error: {self.error}"}],
                "isError": True,
            }
        try:
            text = json.dumps(self.data, indent=2)
        except (TypeError, ValueError):
            text = str(self.data)
        wrapped: Dict[str, Any] = {
            "content": [{"type": "text", "text": text}],
            "isError": False,
            "structuredContent": self.data,
        }
        if self.transaction_id:
            wrapped["transactionId"] = self.transaction_id
        return wrapped


class HederaToolExecutor:
    """Bridge tool calls to ``HederaClient`` operations."""

    def __init__(self, client: HederaClient = default_client) -> None:
        self.client = client

    def list_tools(self) -> List[Dict[str, Any]]:
        return list_tools()

    def resolve(self, name: str) -> ToolDefinition:
        tool = TOOL_CATALOG.get(name)
        if tool is None or name not in CLIENT_METHODS:
            raise UnknownToolError(name)
        return tool

    async def run(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> ToolResult:
        """
        Execute one tool call and return a ``ToolResult``.

        Validation happens before the client is touched; client failures keep
        their original message. No exception escapes this method.
        """
        try:
            tool = self.resolve(name)
            validated = validate_arguments(tool, arguments)
            params = build_params(name, validated)
        except (UnknownToolError, ToolValidationError) as exc:
            return ToolResult.failure(str(exc))
        except (TypeError, ValueError, OverflowError) as exc:
            return ToolResult.failure(f"Invalid parameters: {exc}")

        method = getattr(self.client, CLIENT_METHODS[name])
        try:
            data = await method(**asdict(params))
        except HederaApiError as exc:
            logger.info("tool=%s outcome=error error=%s", name, exc, extra={"tool": name, "error": str(exc)})
            return ToolResult.failure(str(exc))
        except Exception as exc:
            logger.exception("Unexpected error running tool %s", name, extra={"tool": name})
            return ToolResult.failure(str(exc) or exc.__class__.__name__)

        transaction_id = None
        if tool.mutating and isinstance(data, dict):
            transaction_id = data.get("transactionId")
        return ToolResult(success=True, data=data, transaction_id=transaction_id)

    async def execute(self, name: str, arguments: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        result = await self.run(name, arguments)
        return result.to_content()
