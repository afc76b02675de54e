"""
F1 MCP Server: Formula 1 data tools backed by a tiered caching gateway.
"""
from f1_gateway.errors import GatewayError, NetworkError, RequestError, UpstreamError
from f1_gateway.gateway import CachingGateway, EndpointRequest
from f1_gateway.upstream_client import UpstreamClient

__all__ = [
    "CachingGateway",
    "EndpointRequest",
    "GatewayError",
    "NetworkError",
    "RequestError",
    "UpstreamClient",
    "UpstreamError",
]
