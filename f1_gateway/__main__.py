"""
Entry point: python -m f1_gateway [--transport http|stdio]
"""
import argparse
import asyncio
import logging
import signal
import sys

from dotenv import load_dotenv

load_dotenv()

from config.settings import settings  # noqa: E402
from f1_gateway.main import build_gateway, build_protocol_handler, verify_upstream  # noqa: E402
from f1_gateway.mcp.stdio import serve_stdio  # noqa: E402
from f1_gateway.tools import ToolRegistry  # noqa: E402

logger = logging.getLogger("f1_mcp_server")


async def run_stdio() -> None:
    """Serve MCP over stdin/stdout until input ends or SIGINT/SIGTERM arrives."""
    gateway = build_gateway(settings)
    try:
        await verify_upstream(gateway, settings.strict_startup)
        protocol = build_protocol_handler(ToolRegistry(gateway), settings)

        serving = asyncio.ensure_future(serve_stdio(protocol))
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, serving.cancel)
            except NotImplementedError:  # Windows
                pass

        try:
            await serving
        except asyncio.CancelledError:
            logger.info("Received shutdown signal, shutting down gracefully")
    finally:
        await gateway.client.aclose()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="F1 MCP Server")
    parser.add_argument("--transport", choices=("http", "stdio"), default="http")
    parser.add_argument("--host", default=settings.mcp_host)
    parser.add_argument("--port", type=int, default=settings.mcp_port)
    args = parser.parse_args(argv)

    # stderr keeps stdout free for the stdio protocol stream
    logging.basicConfig(level=settings.log_level.upper(), stream=sys.stderr)

    if args.transport == "stdio":
        try:
            asyncio.run(run_stdio())
        except KeyboardInterrupt:
            logger.info("Received interrupt, shutting down gracefully")
        except RuntimeError as e:
            logger.error(f"Failed to start F1 MCP Server: {e}")
            return 1
        return 0

    import uvicorn

    uvicorn.run(
        "f1_gateway.main:app",
        host=args.host,
        port=args.port,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
