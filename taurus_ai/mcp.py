"""
JSON-RPC dispatcher for the Hedera tool surface.

Transport-agnostic: the HTTP gateway hands it decoded request objects and the
stdio transport hands it raw lines. It holds no state beyond the tool catalog
and the bound executor.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Tuple

from taurus_ai import __version__
from taurus_ai.metrics import MetricsRecorder, default_metrics
from taurus_ai.tools import HederaToolExecutor, TOOL_CATALOG

logger = logging.getLogger(__name__)

MCP_SERVER_NAME = "hedera-mcp-server"
MCP_SERVER_VERSION = __version__
DEFAULT_PROTOCOL_VERSION = "2024-11-05"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
TOOL_NOT_FOUND = -32002

LIST_METHODS = ("tools/list", "list_tools")
CALL_METHODS = ("tools/call", "call_tool")


def jsonrpc_success_payload(rpc_id: Any, result: Any) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "result": result}


def jsonrpc_error_payload(rpc_id: Any, code: int, message: str) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": rpc_id, "error": {"code": code, "message": message}}


def is_notification(request: Dict[str, Any]) -> bool:
    method = request.get("method")
    if not isinstance(method, str):
        return False
    return method == "initialized" or method.startswith("notifications/")


def extract_tool_call(params: Dict[str, Any]) -> Tuple[Optional[str], Any]:
    """Return ``(name, arguments)`` accepting both ``name/arguments`` and ``tool/params``."""
    tool_name = params.get("name") or params.get("tool")
    arguments = params.get("arguments")
    if arguments is None:
        arguments = params.get("params")
    if arguments is None:
        arguments = {}
    return tool_name, arguments


class McpDispatcher:
    def __init__(
        self,
        executor: Optional[HederaToolExecutor] = None,
        *,
        metrics: MetricsRecorder = default_metrics,
    ) -> None:
        self.executor = executor or HederaToolExecutor()
        self.metrics = metrics

    async def handle_line(self, line: str) -> Optional[str]:
        """Decode one request line and return the encoded response, or None for notifications."""
        try:
            request = json.loads(line)
        except (ValueError, RecursionError):
            return json.dumps(jsonrpc_error_payload(None, PARSE_ERROR, "Parse error"))
        response = await self.handle_request(request)
        if response is None:
            return None
        return json.dumps(response)

    async def handle_request(self, request: Any) -> Optional[Dict[str, Any]]:
        """
        Dispatch one decoded request.

        Protocol faults become error payloads; tool failures are returned in-band
        as results with ``isError`` set.
        """
        if not isinstance(request, dict):
            return jsonrpc_error_payload(None, INVALID_REQUEST, "Invalid request")

        rpc_id = request.get("id")
        method = request.get("method")
        if not isinstance(method, str) or not method:
            return jsonrpc_error_payload(rpc_id, INVALID_REQUEST, "Invalid request")
        if is_notification(request):
            logger.debug("mcp notification received method=%s", method)
            return None

        raw_params = request.get("params")
        if raw_params is None:
            params: Dict[str, Any] = {}
        elif isinstance(raw_params, dict):
            params = raw_params
        else:
            return jsonrpc_error_payload(rpc_id, INVALID_PARAMS, "Invalid params")

        try:
            return await self._dispatch(rpc_id, method, params)
        except Exception:
            logger.exception("mcp internal error method=%s id=%s", method, rpc_id)
            return jsonrpc_error_payload(rpc_id, INTERNAL_ERROR, "Internal error")

    async def _dispatch(self, rpc_id: Any, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if method == "initialize":
            protocol_version = params.get("protocolVersion")
            if not isinstance(protocol_version, str) or not protocol_version:
                protocol_version = DEFAULT_PROTOCOL_VERSION
            result = {
                "protocolVersion": protocol_version,
                "serverInfo": {"name": MCP_SERVER_NAME, "version": MCP_SERVER_VERSION},
                "capabilities": {"tools": {"listChanged": False}},
            }
            return jsonrpc_success_payload(rpc_id, result)

        if method in LIST_METHODS:
            return jsonrpc_success_payload(rpc_id, {"tools": self.executor.list_tools()})

        if method in CALL_METHODS:
            tool_name, arguments = extract_tool_call(params)
            if not isinstance(tool_name, str) or not tool_name.strip():
                return jsonrpc_error_payload(rpc_id, INVALID_PARAMS, "Invalid params")
            if not isinstance(arguments, dict):
                return jsonrpc_error_payload(rpc_id, INVALID_PARAMS, "Invalid params")
            if tool_name not in TOOL_CATALOG:
                logger.warning("tool=%s outcome=not_found", tool_name, extra={"tool": tool_name})
                return jsonrpc_error_payload(rpc_id, TOOL_NOT_FOUND, f"Tool not found: {tool_name}")

            result = await self.executor.execute(tool_name, arguments)
            success = not result.get("isError")
            self.metrics.record_tool(tool_name, success=success)
            logger.info(
                "tool=%s outcome=%s",
                tool_name,
                "success" if success else "error",
                extra={"tool": tool_name},
            )
            return jsonrpc_success_payload(rpc_id, result)

        return jsonrpc_error_payload(rpc_id, METHOD_NOT_FOUND, f"Method not found: {method}")
