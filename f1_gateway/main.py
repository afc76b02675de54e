"""
F1 MCP Server - FastAPI Application
Exposes the F1 tool catalog over MCP JSON-RPC and plain HTTP
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Body, FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse, Response

from config.settings import Settings, settings as default_settings
from f1_gateway.cache import CacheStore, build_ttl_config
from f1_gateway.gateway import CachingGateway
from f1_gateway.mcp.protocol import PARSE_ERROR, MCPProtocolHandler, jsonrpc_error
from f1_gateway.tools import ToolRegistry
from f1_gateway.upstream_client import UpstreamClient

logger = logging.getLogger("f1_mcp_server")

INSTRUCTIONS = (
    "Formula 1 racing data (seasons, races, drivers, constructors, results, "
    "standings) from the Jolpica F1 API."
)


def build_gateway(config: Settings, client: Optional[UpstreamClient] = None) -> CachingGateway:
    """Wire an UpstreamClient and a fresh CacheStore from settings."""
    client = client or UpstreamClient(
        base_url=config.jolpica_api_url,
        timeout_ms=config.f1_api_timeout,
        user_agent=config.user_agent,
    )
    ttl_config = build_ttl_config(
        live=config.cache_ttl_live,
        periodic=config.cache_ttl_periodic,
        reference=config.cache_ttl_reference,
        default=config.cache_ttl_default,
    )
    return CachingGateway(client, store=CacheStore(), ttl_config=ttl_config)


def build_protocol_handler(registry: ToolRegistry, config: Settings) -> MCPProtocolHandler:
    return MCPProtocolHandler(
        registry,
        server_name=config.mcp_server_name,
        server_version=config.mcp_server_version,
        instructions=INSTRUCTIONS,
    )


async def verify_upstream(gateway: CachingGateway, strict: bool) -> bool:
    """
    Check the upstream at startup.

    A failed check is fatal in strict (development) mode; otherwise the
    server starts degraded and each tool call reports its own error.
    """
    healthy = await gateway.health_check()
    if healthy:
        logger.info(f"F1 API connection verified ({gateway.client.base_url})")
    elif strict:
        raise RuntimeError(f"F1 API health check failed: {gateway.client.base_url}")
    else:
        logger.warning("F1 API unavailable at startup, continuing in degraded mode")
    return healthy


async def sweep_periodically(store: CacheStore, interval: float) -> None:
    """Evict expired cache entries every `interval` seconds until cancelled."""
    while True:
        await asyncio.sleep(interval)
        store.sweep_expired()


def create_app(
    config: Optional[Settings] = None,
    gateway: Optional[CachingGateway] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Settings to use (defaults to environment settings)
        gateway: Pre-built gateway (tests inject one with a stub transport)
    """
    config = config or default_settings
    gateway = gateway or build_gateway(config)
    registry = ToolRegistry(gateway)
    protocol = build_protocol_handler(registry, config)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            app.state.upstream_healthy = await verify_upstream(gateway, config.strict_startup)
        except RuntimeError:
            await gateway.client.aclose()
            raise
        sweeper = asyncio.create_task(
            sweep_periodically(gateway.store, config.cache_check_period)
        )
        logger.info(
            f"F1 MCP Server started: {config.mcp_server_name} v{config.mcp_server_version}, "
            f"{len(registry.names())} tools"
        )
        try:
            yield
        finally:
            sweeper.cancel()
            await gateway.client.aclose()
            logger.info("F1 MCP Server shutting down")

    app = FastAPI(
        title=config.mcp_server_name,
        description="Formula 1 data tools over the Model Context Protocol",
        version=config.mcp_server_version,
        lifespan=lifespan,
    )
    app.state.gateway = gateway
    app.state.registry = registry
    app.state.upstream_healthy = None

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "ok",
            "server": config.mcp_server_name,
            "version": config.mcp_server_version,
            "tools_count": len(registry.names()),
            "upstream_healthy": app.state.upstream_healthy,
        }

    @app.get("/version")
    def version_info():
        """Version information endpoint."""
        return {
            "name": config.mcp_server_name,
            "version": config.mcp_server_version,
        }

    @app.get("/cache/stats")
    def cache_stats():
        """Get cache statistics."""
        return gateway.cache_stats()

    @app.post("/cache/clear")
    def cache_clear():
        """Drop every cached entry."""
        return {"cleared": gateway.clear_cache()}

    # =========================================================================
    # TOOLS
    # =========================================================================

    @app.get("/tools")
    def list_tools():
        return {"tools": [tool.to_dict() for tool in registry.list()]}

    @app.post("/tools/{tool_name}")
    async def call_tool(tool_name: str, arguments: Optional[Dict[str, Any]] = Body(default=None)):
        """Invoke a tool directly and return its envelope."""
        if registry.get(tool_name) is None:
            raise HTTPException(status_code=404, detail=f"Unknown tool: {tool_name}")
        result = await registry.call(tool_name, arguments or {})
        return result.envelope

    # =========================================================================
    # MCP
    # =========================================================================

    @app.post("/mcp")
    async def mcp_endpoint(request: Request):
        """JSON-RPC 2.0 endpoint for initialize, tools/list and tools/call."""
        try:
            body = await request.json()
        except ValueError:
            return JSONResponse(jsonrpc_error(None, PARSE_ERROR, "Parse error"))

        if isinstance(body, list):
            return JSONResponse(await protocol.handle_batch(body))

        result = await protocol.handle_message(body)
        if result is None:
            return Response(status_code=204)
        return JSONResponse(result)

    return app


app = create_app()
