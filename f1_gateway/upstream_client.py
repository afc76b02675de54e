"""
Upstream client for the Jolpica F1 API (Ergast-compatible).

Issues single GET requests with a bounded timeout and converts every
transport or protocol failure into a normalized GatewayError.
"""
import logging
from typing import Any, Optional

import httpx

from f1_gateway.errors import NetworkError, RequestError, UpstreamError

logger = logging.getLogger("upstream_client")

DEFAULT_BASE_URL = "http://api.jolpi.ca/ergast/f1"
DEFAULT_TIMEOUT_MS = 10000
DEFAULT_USER_AGENT = "F1-MCP-Server/1.0.0"

GENERIC_FAILURE_MESSAGE = "F1 API request failed"
UNAVAILABLE_MESSAGE = "Jolpica F1 API service unavailable"

# Failures where the request left but no response came back
_NO_RESPONSE_ERRORS = (
    httpx.TimeoutException,
    httpx.NetworkError,
    httpx.RemoteProtocolError,
    httpx.ProxyError,
)


class UpstreamClient:
    """
    Thin async HTTP client for the upstream F1 data provider.

    One pooled httpx.AsyncClient is opened lazily and reused by every
    request until aclose(). Redirects are followed.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
        user_agent: str = DEFAULT_USER_AGENT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Upstream base address, paths are appended to it
            timeout_ms: Per-request timeout in milliseconds
            user_agent: Identifying User-Agent header value
            transport: Optional httpx transport (used to stub the upstream in tests)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout_ms / 1000.0
        self._headers = {
            "User-Agent": user_agent,
            "Accept": "application/json",
        }
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    def _client(self) -> httpx.AsyncClient:
        if self._http is None or self._http.is_closed:
            self._http = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                headers=self._headers,
                transport=self._transport,
                follow_redirects=True,
            )
        return self._http

    async def aclose(self) -> None:
        """Close the pooled connection client, a later request reopens it."""
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def fetch(self, path: str) -> Any:
        """
        GET a fully resolved resource path and return the decoded JSON body.

        Raises:
            UpstreamError: upstream returned a non-2xx status
            NetworkError: no response (timeout, connection refused, DNS)
            RequestError: the request could not be constructed or sent
        """
        logger.debug(f"F1 API request: GET {path}")
        try:
            response = await self._client().get(path)
        except _NO_RESPONSE_ERRORS as e:
            logger.error(f"F1 API unreachable: {path} - {e!r}")
            raise NetworkError(UNAVAILABLE_MESSAGE) from e
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(f"F1 API request error: {path} - {e}")
            raise RequestError(str(e)) from e

        if not response.is_success:
            error = _parse_error_body(response)
            logger.error(
                f"F1 API response error: {path} status={response.status_code} "
                f"code={error.upstream_code} message={error.message}"
            )
            raise error

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"F1 API returned invalid JSON: {path}")
            raise UpstreamError(
                "Invalid JSON in F1 API response",
                status_code=response.status_code,
            ) from e

        logger.debug(
            f"F1 API response: {path} status={response.status_code} "
            f"size={len(response.content)}"
        )
        return data

    async def health_check(self) -> bool:
        """
        Check the upstream with a minimal listing request.

        Returns:
            True if the upstream answered with a 2xx status, False otherwise
        """
        try:
            response = await self._client().get("/seasons.json", params={"limit": 1})
            return response.is_success
        except Exception as e:
            logger.warning(
                f"F1 API health check failed: {e!r} (base_url={self._base_url})"
            )
            return False


def _parse_error_body(response: httpx.Response) -> UpstreamError:
    """Build an UpstreamError from a non-2xx response, reading error.message/error.code if present."""
    message = GENERIC_FAILURE_MESSAGE
    upstream_code = None
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict) and isinstance(body.get("error"), dict):
        error = body["error"]
        if error.get("message"):
            message = str(error["message"])
        if error.get("code") is not None:
            upstream_code = str(error["code"])

    return UpstreamError(
        message,
        status_code=response.status_code,
        upstream_code=upstream_code,
    )
