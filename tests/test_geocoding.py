from types import SimpleNamespace

import httpx
import pytest

from app.services import geocoding

FEATURES = {
    "features": [
        {
            "id": "poi.1",
            "text": "東京タワー",
            "place_name": "東京タワー, 東京都港区",
            "center": [139.7454, 35.6586],
        },
        {"id": "broken", "text": "no center"},
        {"id": "poi.2", "text": "", "place_name": "", "center": [0, 0]},
    ]
}


@pytest.fixture(autouse=True)
def _clear_cache():
    geocoding._CACHE.clear()
    yield
    geocoding._CACHE.clear()


def test_shape_features_drops_unusable_entries():
    assert geocoding.shape_features(FEATURES) == [
        {
            "id": "poi.1",
            "name": "東京タワー",
            "place_name": "東京タワー, 東京都港区",
            "latitude": 35.6586,
            "longitude": 139.7454,
        }
    ]
    assert geocoding.shape_features({}) == []


@pytest.mark.anyio
async def test_search_places_caches_results(monkeypatch):
    calls = []

    async def fake_get(path, params):
        calls.append((path, params))
        return FEATURES

    monkeypatch.setattr(geocoding, "_get", fake_get)

    first = await geocoding.search_places("Tokyo Tower")
    second = await geocoding.search_places("  tokyo tower ")
    assert first == second
    assert len(calls) == 1
    assert calls[0] == ("/Tokyo%20Tower.json", {"limit": 5})

    assert await geocoding.search_places("   ") == []


@pytest.mark.anyio
async def test_reverse_geocode_takes_first_feature(monkeypatch):
    async def fake_get(path, params):
        assert path == "/139.7454,35.6586.json"
        assert "limit" not in params
        return FEATURES

    monkeypatch.setattr(geocoding, "_get", fake_get)
    place = await geocoding.reverse_geocode(35.6586, 139.7454)
    assert place["name"] == "東京タワー"


@pytest.mark.anyio
async def test_geocode_routes_map_upstream_errors(client, authed_user, monkeypatch):
    from app.api.routes import geocoding as geocoding_routes

    await authed_user(client)

    async def unavailable(q, *, limit):
        raise geocoding.GeocodingUnavailable("MAPBOX_TOKEN missing")

    monkeypatch.setattr(geocoding_routes, "search_places", unavailable)
    r = await client.get("/geocode/search", params={"q": "tokyo"})
    assert r.status_code == 503

    async def broken(lat, lon):
        raise httpx.ConnectError("boom")

    monkeypatch.setattr(geocoding_routes, "reverse_geocode", broken)
    r = await client.get("/geocode/reverse", params={"lat": 35.0, "lon": 139.0})
    assert r.status_code == 502


@pytest.mark.anyio
async def test_geocode_search_route(client, authed_user, monkeypatch):
    from app.api.routes import geocoding as geocoding_routes

    await authed_user(client)

    async def fake_search(q, *, limit):
        assert (q, limit) == ("tower", 3)
        return geocoding.shape_features(FEATURES)

    monkeypatch.setattr(geocoding_routes, "search_places", fake_search)
    r = await client.get("/geocode/search", params={"q": "tower", "limit": 3})
    assert r.status_code == 200
    assert [p["id"] for p in r.json()] == ["poi.1"]


def test_cache_purges_expired_and_caps_size(monkeypatch):
    monkeypatch.setattr(geocoding, "_CACHE_MAX_ENTRIES", 3)
    now = [1000.0]
    monkeypatch.setattr(geocoding, "time", SimpleNamespace(time=lambda: now[0]))

    geocoding._cache_set("a", 1)
    now[0] += geocoding._TTL_SECONDS + 1
    geocoding._cache_set("b", 2)
    # "a" expired and was dropped on write, even though nobody read it
    assert list(geocoding._CACHE) == ["b"]

    for key in ("c", "d", "e"):
        geocoding._cache_set(key, key)
    assert list(geocoding._CACHE) == ["c", "d", "e"]
    assert geocoding._cache_get("b") is None
    assert geocoding._cache_get("e") == "e"
