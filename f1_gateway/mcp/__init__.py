"""
MCP protocol handling and stdio transport.
"""
from .protocol import MCP_PROTOCOL_VERSION, MCPProtocolHandler, jsonrpc_error, jsonrpc_response
from .stdio import handle_line, serve_stdio

__all__ = [
    "MCP_PROTOCOL_VERSION",
    "MCPProtocolHandler",
    "jsonrpc_error",
    "jsonrpc_response",
    "handle_line",
    "serve_stdio",
]
