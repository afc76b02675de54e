"""
Shared fixtures: a stubbed Jolpica upstream and gateways wired to it.
"""
from typing import Any, Callable, Dict, List, Union

import httpx
import pytest

from f1_gateway.cache import CacheStore
from f1_gateway.gateway import CachingGateway
from f1_gateway.upstream_client import UpstreamClient

BASE_URL = "http://f1.test/ergast/f1"

Responder = Union[httpx.Response, Exception, Callable[[httpx.Request], httpx.Response]]


class FakeUpstream:
    """
    Records every request and answers from a path -> response table.

    Unknown paths get a 404 with an Ergast-style error body.
    """

    def __init__(self):
        self.routes: Dict[str, Responder] = {}
        self.requests: List[httpx.Request] = []

    def add(self, path: str, responder: Responder) -> None:
        self.routes[path] = responder

    def add_json(self, path: str, body: Any, status_code: int = 200) -> None:
        self.routes[path] = httpx.Response(status_code, json=body)

    def calls(self, path: str) -> int:
        return sum(1 for r in self.requests if r.url.path.endswith(path))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path[len("/ergast/f1"):]
        responder = self.routes.get(path)
        if responder is None:
            return httpx.Response(
                404, json={"error": {"message": f"No route {path}", "code": "NOT_FOUND"}}
            )
        if isinstance(responder, Exception):
            raise responder
        if callable(responder):
            return responder(request)
        return responder

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class FakeClock:
    """Manually advanced wall clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def races_body(season: str, races: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"MRData": {"total": str(len(races)), "RaceTable": {"season": season, "Races": races}}}


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client(upstream) -> UpstreamClient:
    return UpstreamClient(base_url=BASE_URL, timeout_ms=2000, transport=upstream.transport)


@pytest.fixture
def store(clock) -> CacheStore:
    return CacheStore(clock=clock)


@pytest.fixture
def gateway(client, store) -> CachingGateway:
    return CachingGateway(client, store=store)
