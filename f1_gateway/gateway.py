"""
Caching gateway over the F1 upstream client.

Each data operation resolves an EndpointRequest into an upstream path and a
cache key, serves fresh cache hits directly, and on a miss fetches upstream
and stores the raw body under a TTL classified from the path.
"""
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple, Union

from f1_gateway.cache import CacheStore, TTLClass, classify_path, get_ttl_for_class
from f1_gateway.errors import RequestError
from f1_gateway.upstream_client import UpstreamClient

logger = logging.getLogger("gateway")

DEFAULT_SEASON = "current"

_SEGMENT_RE = re.compile(r"^[A-Za-z0-9_-]+$")

# operation -> (upstream path template, cache key template)
ENDPOINTS: Dict[str, Tuple[str, str]] = {
    "seasons": ("/seasons.json", "seasons"),
    "current_season": ("/current.json", "seasons:current"),
    "races": ("/{season}.json", "races:{season}"),
    "race": ("/{season}/{round}.json", "races:{season}:{round}"),
    "current_race": ("/current/last.json", "races:current:last"),
    "next_race": ("/current/next.json", "races:current:next"),
    "drivers": ("/{season}/drivers.json", "drivers:{season}"),
    "driver": ("/{season}/drivers/{driver_id}.json", "drivers:{season}:{driver_id}"),
    "constructors": ("/{season}/constructors.json", "constructors:{season}"),
    "constructor": (
        "/{season}/constructors/{constructor_id}.json",
        "constructors:{season}:{constructor_id}",
    ),
    "race_results": ("/{season}/{round}/results.json", "results:{season}:{round}:race"),
    "qualifying_results": (
        "/{season}/{round}/qualifying.json",
        "results:{season}:{round}:qualifying",
    ),
    "driver_standings": ("/{season}/driverStandings.json", "standings:{season}:drivers"),
    "constructor_standings": (
        "/{season}/constructorStandings.json",
        "standings:{season}:constructors",
    ),
}


@dataclass(frozen=True)
class EndpointRequest:
    """One logical data-fetch intent: an operation plus ordered parameter values."""
    operation: str
    params: Tuple[Tuple[str, str], ...] = ()

    @classmethod
    def build(cls, operation: str, **params: Any) -> "EndpointRequest":
        if operation not in ENDPOINTS:
            raise RequestError(f"Unknown endpoint operation: {operation}")
        return cls(operation, tuple((k, str(v)) for k, v in params.items()))

    @property
    def path(self) -> str:
        """Upstream resource path with parameters substituted."""
        return ENDPOINTS[self.operation][0].format(**dict(self.params))

    @property
    def cache_key(self) -> str:
        return ENDPOINTS[self.operation][1].format(**dict(self.params))


# =============================================================================
# INPUT VALIDATION
# =============================================================================

def _season(season: Optional[Union[str, int]]) -> str:
    if season is None or season == "":
        return DEFAULT_SEASON
    value = str(season).strip()
    if not _SEGMENT_RE.match(value):
        raise RequestError(f"Invalid season: {season!r}")
    return value


def _round(round_number: Any) -> int:
    if round_number is None or round_number == "":
        raise RequestError("Round number is required")
    if isinstance(round_number, bool):
        raise RequestError(f"Invalid round number: {round_number!r}")
    if isinstance(round_number, float) and round_number.is_integer():
        round_number = int(round_number)
    if isinstance(round_number, str) and round_number.strip().isdigit():
        round_number = int(round_number.strip())
    if not isinstance(round_number, int) or round_number < 1:
        raise RequestError(f"Invalid round number: {round_number!r}")
    return round_number


def _identifier(value: Any, label: str) -> str:
    if value is None or str(value).strip() == "":
        raise RequestError(f"{label} is required")
    value = str(value).strip()
    if not _SEGMENT_RE.match(value):
        raise RequestError(f"Invalid {label.lower()}: {value!r}")
    return value


class CachingGateway:
    """
    Cache-aside access to every F1 data category.

    - Fresh hit: value returned with no upstream call
    - Miss or expired: exactly one upstream fetch, stored on success
    - Failure: error propagated unchanged, nothing cached
    """

    def __init__(
        self,
        client: UpstreamClient,
        store: Optional[CacheStore] = None,
        ttl_config: Optional[Dict[TTLClass, int]] = None,
    ):
        self._client = client
        self._store = store if store is not None else CacheStore()
        self._ttl_config = ttl_config

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def client(self) -> UpstreamClient:
        return self._client

    def ttl_for(self, path: str) -> Tuple[TTLClass, int]:
        """Classify a resolved path and look up its TTL."""
        ttl_class = classify_path(path)
        return ttl_class, get_ttl_for_class(ttl_class, self._ttl_config)

    async def request(self, endpoint: EndpointRequest) -> Any:
        """Serve an endpoint request from cache, fetching upstream on a miss."""
        path = endpoint.path
        cache_key = endpoint.cache_key

        entry = self._store.get(cache_key)
        if entry is not None:
            logger.debug(f"CACHE HIT: {cache_key}")
            return entry.value

        ttl_class, ttl = self.ttl_for(path)
        logger.info(f"CACHE MISS: {cache_key} -> GET {path} [{ttl_class.value}, ttl={ttl}s]")

        data = await self._client.fetch(path)
        self._store.set(cache_key, data, ttl)
        logger.debug(f"Data cached: {cache_key} [ttl={ttl}s]")
        return data

    # ==================== SEASONS ====================

    async def get_seasons(self) -> Any:
        """Get all available seasons."""
        return await self.request(EndpointRequest.build("seasons"))

    async def get_current_season(self) -> Any:
        """Get the current season schedule."""
        return await self.request(EndpointRequest.build("current_season"))

    # ==================== RACES ====================

    async def get_races(self, season: Optional[str] = None) -> Any:
        return await self.request(EndpointRequest.build("races", season=_season(season)))

    async def get_race(self, season: Optional[str] = None, round: Any = None) -> Any:
        return await self.request(
            EndpointRequest.build("race", season=_season(season), round=_round(round))
        )

    async def get_current_race(self) -> Any:
        """Most recent race of the current season."""
        return await self.request(EndpointRequest.build("current_race"))

    async def get_next_race(self) -> Any:
        """Next scheduled race of the current season."""
        return await self.request(EndpointRequest.build("next_race"))

    # ==================== DRIVERS ====================

    async def get_drivers(self, season: Optional[str] = None) -> Any:
        return await self.request(EndpointRequest.build("drivers", season=_season(season)))

    async def get_driver(self, driver_id: Any, season: Optional[str] = None) -> Any:
        return await self.request(
            EndpointRequest.build(
                "driver",
                season=_season(season),
                driver_id=_identifier(driver_id, "Driver ID"),
            )
        )

    # ==================== CONSTRUCTORS ====================

    async def get_constructors(self, season: Optional[str] = None) -> Any:
        return await self.request(
            EndpointRequest.build("constructors", season=_season(season))
        )

    async def get_constructor(self, constructor_id: Any, season: Optional[str] = None) -> Any:
        return await self.request(
            EndpointRequest.build(
                "constructor",
                season=_season(season),
                constructor_id=_identifier(constructor_id, "Constructor ID"),
            )
        )

    # ==================== RESULTS ====================

    async def get_race_results(self, season: Optional[str] = None, round: Any = None) -> Any:
        return await self.request(
            EndpointRequest.build("race_results", season=_season(season), round=_round(round))
        )

    async def get_qualifying_results(
        self, season: Optional[str] = None, round: Any = None
    ) -> Any:
        return await self.request(
            EndpointRequest.build(
                "qualifying_results", season=_season(season), round=_round(round)
            )
        )

    async def get_driver_standings(self, season: Optional[str] = None) -> Any:
        return await self.request(
            EndpointRequest.build("driver_standings", season=_season(season))
        )

    async def get_constructor_standings(self, season: Optional[str] = None) -> Any:
        return await self.request(
            EndpointRequest.build("constructor_standings", season=_season(season))
        )

    # ==================== MAINTENANCE ====================

    def clear_cache(self) -> int:
        """Drop every cached entry (forced refresh)."""
        return self._store.clear()

    def invalidate(self, cache_key: str) -> bool:
        """Drop a single cached entry."""
        removed = self._store.delete(cache_key)
        if removed:
            logger.info(f"Invalidated cache: {cache_key}")
        return removed

    def cache_stats(self) -> Dict[str, Any]:
        """Read-only snapshot of hit/miss/key counts."""
        return self._store.get_stats()

    async def health_check(self) -> bool:
        return await self._client.health_check()
