"""
Normalized error taxonomy for upstream data access.

Every failed gateway call raises exactly one of:
- UpstreamError: the F1 API answered with a non-2xx status
- NetworkError: no response arrived (timeout, refused connection, DNS failure)
- RequestError: the request could not be built, or caller input was invalid
"""
from typing import Any, Dict, Optional


class GatewayError(Exception):
    """Base class for normalized gateway errors."""

    default_code: Optional[str] = None

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def kind(self) -> str:
        return type(self).__name__

    @property
    def code(self) -> Optional[str]:
        return self.default_code

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON responses."""
        return {
            "message": self.message,
            "kind": self.kind,
            "code": self.code,
        }


class UpstreamError(GatewayError):
    """The upstream responded, but with an error status."""

    default_code = "API_ERROR"

    def __init__(
        self,
        message: str,
        status_code: int,
        upstream_code: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.upstream_code = upstream_code

    @property
    def code(self) -> Optional[str]:
        return self.upstream_code or self.default_code

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result["status"] = self.status_code
        return result


class NetworkError(GatewayError):
    """The request was sent but no response arrived."""

    default_code = "NETWORK_ERROR"


class RequestError(GatewayError):
    """The request was malformed before any network call was made."""
