"""
Newline-delimited JSON-RPC transport over stdin/stdout.

stdout carries protocol messages only; logging must stay on stderr.
stdin is read through an asyncio pipe, so a pending read is cancellable.
"""
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional, TextIO, Tuple, Union

from .protocol import PARSE_ERROR, MCPProtocolHandler, jsonrpc_error

logger = logging.getLogger("mcp.stdio")

# Largest accepted request line, in bytes
LINE_LIMIT = 1024 * 1024


async def handle_line(
    handler: MCPProtocolHandler, line: str
) -> Optional[Union[Dict[str, Any], List[Dict[str, Any]]]]:
    """Decode one input line and return the response to write, if any."""
    try:
        message = json.loads(line)
    except ValueError:
        return jsonrpc_error(None, PARSE_ERROR, "Parse error")

    if isinstance(message, list):
        return await handler.handle_batch(message) or None
    return await handler.handle_message(message)


async def open_reader(pipe: Any) -> Tuple[asyncio.StreamReader, asyncio.ReadTransport]:
    """Attach an asyncio StreamReader to a pipe or terminal file object."""
    loop = asyncio.get_running_loop()
    reader = asyncio.StreamReader(limit=LINE_LIMIT)
    transport, _ = await loop.connect_read_pipe(
        lambda: asyncio.StreamReaderProtocol(reader), pipe
    )
    return reader, transport


async def serve_stdio(
    handler: MCPProtocolHandler,
    stdin: Any = None,
    stdout: TextIO = None,
) -> None:
    """
    Serve requests until stdin is closed or the task is cancelled.

    Args:
        handler: Protocol handler answering each message
        stdin: Readable pipe (defaults to sys.stdin)
        stdout: Text stream for responses (defaults to sys.stdout)
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    reader, transport = await open_reader(stdin)
    logger.info("MCP stdio transport ready")

    try:
        await _serve_lines(handler, reader, stdout)
    finally:
        transport.close()
    logger.info("MCP stdio transport closed")


async def _serve_lines(
    handler: MCPProtocolHandler, reader: asyncio.StreamReader, stdout: TextIO
) -> None:
    while True:
        try:
            raw = await reader.readline()
        except ValueError:
            logger.warning(f"Dropped request line longer than {LINE_LIMIT} bytes")
            response = jsonrpc_error(None, PARSE_ERROR, "Parse error")
        else:
            if not raw:
                break
            line = raw.decode("utf-8", errors="replace").strip()
            if not line:
                continue
            response = await handle_line(handler, line)

        if response is not None:
            stdout.write(json.dumps(response, default=str) + "\n")
            stdout.flush()

