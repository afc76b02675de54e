"""
CachingGateway: key derivation, cache-aside flow and error propagation.
"""
import asyncio

import httpx
import pytest

from f1_gateway.cache import TTLClass, build_ttl_config
from f1_gateway.errors import NetworkError, RequestError, UpstreamError
from f1_gateway.gateway import ENDPOINTS, CachingGateway, EndpointRequest

from conftest import races_body


# =============================================================================
# Endpoint requests and cache keys
# =============================================================================

def test_identical_requests_share_a_key():
    """Test that identical requests derive the same cache key"""
    a = EndpointRequest.build("race", season="2024", round=5)
    b = EndpointRequest.build("race", season="2024", round=5)
    assert a == b
    assert a.cache_key == b.cache_key == "races:2024:5"
    assert a.path == "/2024/5.json"


def test_any_differing_parameter_changes_the_key():
    """Test that changing any parameter changes the cache key"""
    keys = {
        EndpointRequest.build("race", season="2024", round=5).cache_key,
        EndpointRequest.build("race", season="2024", round=6).cache_key,
        EndpointRequest.build("race", season="2023", round=5).cache_key,
        EndpointRequest.build("race_results", season="2024", round=5).cache_key,
        EndpointRequest.build("qualifying_results", season="2024", round=5).cache_key,
    }
    assert len(keys) == 5


def test_every_operation_has_a_distinct_key_template():
    """Test that no two operations share a key template"""
    templates = [key for _, key in ENDPOINTS.values()]
    assert len(templates) == len(set(templates))


def test_unknown_operation_is_request_error():
    """Test that an unknown operation raises RequestError"""
    with pytest.raises(RequestError):
        EndpointRequest.build("pit_stops", season="2024")


# =============================================================================
# Cache-aside behaviour
# =============================================================================

@pytest.mark.asyncio
async def test_races_for_season_miss_then_store(gateway, upstream, store, clock):
    """Test that a miss fetches once and stores with the default TTL"""
    body = races_body("2024", [{"round": "1", "raceName": "Bahrain Grand Prix"}])
    upstream.add_json("/2024.json", body)

    data = await gateway.get_races("2024")

    assert data == body
    assert upstream.calls("/2024.json") == 1
    entry = store.peek("races:2024")
    assert entry is not None
    assert entry.value == body
    assert entry.expires_at == clock() + 1800


@pytest.mark.asyncio
async def test_current_race_twice_hits_cache(gateway, upstream, clock):
    """Test that a second current-race call is served from cache"""
    body = races_body("2024", [{"raceName": "Monaco Grand Prix"}])
    upstream.add_json("/current/last.json", body)

    first = await gateway.get_current_race()
    clock.advance(30)
    second = await gateway.get_current_race()

    assert first == second == body
    assert upstream.calls("/current/last.json") == 1
    assert gateway.store.peek("races:current:last") is not None


@pytest.mark.asyncio
async def test_expired_entry_is_refetched_with_live_ttl(gateway, upstream, clock, store):
    """Test that an expired entry is refetched and stored again"""
    upstream.add_json("/current/next.json", races_body("2024", []))

    await gateway.get_next_race()
    clock.advance(60)
    await gateway.get_next_race()

    assert upstream.calls("/current/next.json") == 2
    assert store.peek("races:current:next").expires_at == clock() + 60


@pytest.mark.asyncio
async def test_standings_error_leaves_no_entry(gateway, upstream, store):
    """Test that an upstream 503 propagates and caches nothing"""
    upstream.add("/current/driverStandings.json", httpx.Response(503, json={}))

    with pytest.raises(UpstreamError) as exc_info:
        await gateway.get_driver_standings("current")

    assert exc_info.value.status_code == 503
    assert store.peek("standings:current:drivers") is None


@pytest.mark.asyncio
async def test_standings_timeout_is_network_error(gateway, upstream, store):
    """Test that an upstream timeout propagates as NetworkError"""
    upstream.add("/current/driverStandings.json", httpx.ReadTimeout("timed out"))

    with pytest.raises(NetworkError):
        await gateway.get_driver_standings()

    assert store.peek("standings:current:drivers") is None


@pytest.mark.asyncio
async def test_failed_fetch_is_retried_on_next_call(gateway, upstream):
    """Test that a failure is not cached so the next call retries"""
    upstream.add("/2024/drivers.json", httpx.ConnectError("refused"))
    with pytest.raises(NetworkError):
        await gateway.get_drivers("2024")

    upstream.add_json("/2024/drivers.json", {"MRData": {"DriverTable": {"Drivers": []}}})
    data = await gateway.get_drivers("2024")

    assert data == {"MRData": {"DriverTable": {"Drivers": []}}}
    assert upstream.calls("/2024/drivers.json") == 2


@pytest.mark.asyncio
async def test_failed_refresh_stores_nothing(gateway, upstream, store, clock):
    """Test that a failed refresh of an expired key leaves it absent"""
    upstream.add_json("/2024/constructors.json", {"v": 1})
    await gateway.get_constructors("2024")
    clock.advance(3600)

    upstream.add("/2024/constructors.json", httpx.Response(500))
    with pytest.raises(UpstreamError):
        await gateway.get_constructors("2024")

    # the expired entry was evicted by the lookup and nothing replaced it
    assert store.peek("constructors:2024") is None
    assert upstream.calls("/2024/constructors.json") == 2


@pytest.mark.asyncio
async def test_season_defaults_to_current(gateway, upstream, store):
    """Test that a missing season resolves to current"""
    upstream.add_json("/current/constructorStandings.json", {"ok": True})

    await gateway.get_constructor_standings()
    await gateway.get_constructor_standings("")

    assert upstream.calls("/current/constructorStandings.json") == 1
    assert store.peek("standings:current:constructors") is not None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "call, path, key, ttl",
    [
        (lambda gw: gw.get_seasons(), "/seasons.json", "seasons", 1800),
        (lambda gw: gw.get_current_season(), "/current.json", "seasons:current", 60),
        (lambda gw: gw.get_race("2023", 3), "/2023/3.json", "races:2023:3", 1800),
        (lambda gw: gw.get_driver("hamilton", "2023"), "/2023/drivers/hamilton.json",
         "drivers:2023:hamilton", 3600),
        (lambda gw: gw.get_constructor("red_bull", "2023"), "/2023/constructors/red_bull.json",
         "constructors:2023:red_bull", 3600),
        (lambda gw: gw.get_race_results("2023", "7"), "/2023/7/results.json",
         "results:2023:7:race", 300),
        (lambda gw: gw.get_qualifying_results("2023", 7), "/2023/7/qualifying.json",
         "results:2023:7:qualifying", 1800),
        (lambda gw: gw.get_driver_standings("2023"), "/2023/driverStandings.json",
         "standings:2023:drivers", 1800),
    ],
)
async def test_operation_paths_keys_and_ttls(gateway, upstream, store, clock, call, path, key, ttl):
    """Test the path, cache key and TTL of each operation"""
    upstream.add_json(path, {"path": path})

    assert await call(gateway) == {"path": path}
    assert upstream.calls(path) == 1
    assert store.peek(key).expires_at == clock() + ttl


@pytest.mark.asyncio
async def test_hit_never_touches_upstream(gateway, upstream, store):
    """Test that a cache hit makes no upstream request"""
    store.set("drivers:2024:alonso", {"cached": True}, ttl_seconds=3600)

    assert await gateway.get_driver("alonso", "2024") == {"cached": True}
    assert upstream.requests == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "call",
    [
        lambda gw: gw.get_race("2024", None),
        lambda gw: gw.get_race_results("2024", 0),
        lambda gw: gw.get_qualifying_results("2024", -1),
        lambda gw: gw.get_race("2024", "five"),
        lambda gw: gw.get_race("2024", True),
        lambda gw: gw.get_driver(None),
        lambda gw: gw.get_constructor("  "),
        lambda gw: gw.get_driver("../admin"),
        lambda gw: gw.get_races("2024:1"),
    ],
)
async def test_malformed_input_is_request_error_without_network(gateway, upstream, call):
    """Test that bad input raises RequestError before any request"""
    with pytest.raises(RequestError):
        await call(gateway)
    assert upstream.requests == []


@pytest.mark.asyncio
async def test_configured_ttls_are_applied(client, store, upstream, clock):
    """Test that configured TTL durations are used when storing"""
    gateway = CachingGateway(client, store=store, ttl_config=build_ttl_config(default=42))
    upstream.add_json("/2022.json", {})

    await gateway.get_races(2022)

    assert gateway.ttl_for("/2022.json") == (TTLClass.DEFAULT, 42)
    assert store.peek("races:2022").expires_at == clock() + 42


@pytest.mark.asyncio
async def test_concurrent_misses_are_safe(gateway, upstream, store):
    """Test that concurrent misses all succeed and leave one entry"""
    upstream.add_json("/2024/drivers.json", {"drivers": 20})

    results = await asyncio.gather(*(gateway.get_drivers("2024") for _ in range(5)))

    assert all(r == {"drivers": 20} for r in results)
    assert 1 <= upstream.calls("/2024/drivers.json") <= 5
    assert len(store) == 1


@pytest.mark.asyncio
async def test_clear_cache_and_stats(gateway, upstream):
    """Test that clearing the cache empties it and stats track usage"""
    upstream.add_json("/seasons.json", {})
    await gateway.get_seasons()
    await gateway.get_seasons()

    stats = gateway.cache_stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["keys"] == 1

    assert gateway.clear_cache() == 1
    await gateway.get_seasons()
    assert upstream.calls("/seasons.json") == 2


@pytest.mark.asyncio
async def test_invalidate_single_key(gateway, upstream):
    """Test that invalidating one key leaves the others cached"""
    upstream.add_json("/seasons.json", {})
    await gateway.get_seasons()

    assert gateway.invalidate("seasons") is True
    assert gateway.invalidate("seasons") is False
