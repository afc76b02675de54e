"""
MCP (Model Context Protocol) JSON-RPC 2.0 message handling.

Transport-independent: both the HTTP endpoint and the stdio loop feed
decoded messages through MCPProtocolHandler.handle_message().
"""
import json
import logging
from typing import Any, Dict, List, Optional

from f1_gateway.tools import ToolRegistry

logger = logging.getLogger("mcp")

MCP_PROTOCOL_VERSION = "2024-11-05"

# Standard JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


def jsonrpc_response(id: Any, result: Any) -> Dict[str, Any]:
    """Build a JSON-RPC 2.0 success response."""
    return {"jsonrpc": "2.0", "id": id, "result": result}


def jsonrpc_error(id: Any, code: int, message: str, data: Any = None) -> Dict[str, Any]:
    """Build a JSON-RPC 2.0 error response."""
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": id, "error": error}


class InvalidParams(ValueError):
    """Raised for malformed method params."""


class MCPProtocolHandler:
    """Routes MCP methods to the tool registry."""

    def __init__(
        self,
        registry: ToolRegistry,
        server_name: str,
        server_version: str,
        instructions: Optional[str] = None,
    ):
        self._registry = registry
        self._server_name = server_name
        self._server_version = server_version
        self._instructions = instructions

    async def handle_message(self, message: Any) -> Optional[Dict[str, Any]]:
        """
        Handle one decoded JSON-RPC message.

        Returns:
            The response dict, or None for notifications
        """
        if not isinstance(message, dict):
            return jsonrpc_error(None, INVALID_REQUEST, "Invalid Request")

        msg_id = message.get("id")
        if message.get("jsonrpc") != "2.0":
            return jsonrpc_error(msg_id, INVALID_REQUEST, "Invalid JSON-RPC version")

        method = message.get("method")
        if not method:
            return jsonrpc_error(msg_id, INVALID_REQUEST, "Missing method")

        params = message.get("params") or {}
        is_notification = "id" not in message

        try:
            if method == "initialize":
                result = self.handle_initialize(params)
            elif method == "tools/list":
                result = self.handle_tools_list()
            elif method == "tools/call":
                result = await self.handle_tools_call(params)
            elif method in ("ping", "notifications/initialized"):
                result = {}
            else:
                if is_notification:
                    return None
                return jsonrpc_error(msg_id, METHOD_NOT_FOUND, f"Method not found: {method}")
        except InvalidParams as e:
            return jsonrpc_error(msg_id, INVALID_PARAMS, str(e))
        except Exception as e:
            logger.exception(f"Error handling MCP method {method}")
            return jsonrpc_error(msg_id, INTERNAL_ERROR, str(e))

        if is_notification:
            return None
        return jsonrpc_response(msg_id, result)

    async def handle_batch(self, messages: List[Any]) -> List[Dict[str, Any]]:
        responses = []
        for item in messages:
            response = await self.handle_message(item)
            if response is not None:
                responses.append(response)
        return responses

    def handle_initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Capability handshake."""
        client_info = params.get("clientInfo") if isinstance(params, dict) else None
        if client_info:
            logger.info(f"MCP client connected: {client_info}")
        result = {
            "protocolVersion": MCP_PROTOCOL_VERSION,
            "capabilities": {"tools": {"listChanged": False}},
            "serverInfo": {
                "name": self._server_name,
                "version": self._server_version,
            },
        }
        if self._instructions:
            result["instructions"] = self._instructions
        return result

    def handle_tools_list(self) -> Dict[str, Any]:
        return {"tools": [tool.to_dict() for tool in self._registry.list()]}

    async def handle_tools_call(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """Execute a tool and wrap its envelope as MCP text content."""
        if not isinstance(params, dict):
            raise InvalidParams("'params' must be an object")
        tool_name = params.get("name")
        if not tool_name:
            raise InvalidParams("Missing 'name' in tools/call params")
        arguments = params.get("arguments") or {}
        if not isinstance(arguments, dict):
            raise InvalidParams("'arguments' must be an object")

        result = await self._registry.call(tool_name, arguments)
        return {
            "content": [
                {
                    "type": "text",
                    "text": json.dumps(result.envelope, indent=2, default=str),
                }
            ],
            "isError": not result.success,
        }
