from __future__ import annotations

import time
from typing import Any
from urllib.parse import quote

import httpx

from app.core.config import settings

MAPBOX_BASE_URL = "https://api.mapbox.com/geocoding/v5/mapbox.places"
MAPBOX_TIMEOUT_SECONDS = 10

# Forward and reverse lookups share this in-memory cache.
_CACHE: dict[str, tuple[float, Any]] = {}
_TTL_SECONDS = 600
_CACHE_MAX_ENTRIES = 1024
_DEFAULT_LIMIT = 5


class GeocodingUnavailable(RuntimeError):
    pass


def _cache_get(key: str):
    hit = _CACHE.get(key)
    if not hit:
        return None
    expires_at, value = hit
    if time.time() > expires_at:
        _CACHE.pop(key, None)
        return None
    return value


def _cache_set(key: str, value):
    now = time.time()
    for stale in [k for k, (expires_at, _) in _CACHE.items() if expires_at < now]:
        del _CACHE[stale]
    # still full: drop the oldest insertions
    while len(_CACHE) >= _CACHE_MAX_ENTRIES:
        _CACHE.pop(next(iter(_CACHE)))
    _CACHE[key] = (now + _TTL_SECONDS, value)


def _shape_feature(feature: dict[str, Any]) -> dict[str, Any] | None:
    center = feature.get("center")
    if not isinstance(center, list) or len(center) != 2:
        return None
    lon, lat = center
    if not isinstance(lon, (int, float)) or not isinstance(lat, (int, float)):
        return None

    name = feature.get("text") or ""
    place_name = feature.get("place_name") or name
    if not place_name:
        return None

    return {
        "id": feature.get("id"),
        "name": name or place_name,
        "place_name": place_name,
        "latitude": float(lat),
        "longitude": float(lon),
    }


def shape_features(data: dict[str, Any]) -> list[dict[str, Any]]:
    out: list[dict[str, Any]] = []
    features = data.get("features")
    for feature in features if isinstance(features, list) else []:
        if not isinstance(feature, dict):
            continue
        shaped = _shape_feature(feature)
        if shaped is not None:
            out.append(shaped)
    return out


async def _get(path: str, params: dict[str, Any]) -> dict[str, Any]:
    if not settings.mapbox_token:
        raise GeocodingUnavailable("MAPBOX_TOKEN missing")

    query = {"access_token": settings.mapbox_token, "language": settings.mapbox_language, **params}
    async with httpx.AsyncClient(base_url=MAPBOX_BASE_URL, timeout=MAPBOX_TIMEOUT_SECONDS) as client:
        r = await client.get(path, params=query)
        r.raise_for_status()
        return r.json()


async def search_places(q: str, *, limit: int = _DEFAULT_LIMIT) -> list[dict[str, Any]]:
    q = q.strip()
    if not q:
        return []

    key = f"search:{q.lower()}:{limit}"
    cached = _cache_get(key)
    if cached is not None:
        return cached

    data = await _get(f"/{quote(q, safe='')}.json", {"limit": limit})
    out = shape_features(data)
    _cache_set(key, out)
    return out


async def reverse_geocode(latitude: float, longitude: float) -> dict[str, Any] | None:
    # ~1m precision is plenty for cache hits
    key = f"reverse:{latitude:.5f}:{longitude:.5f}"
    cached = _cache_get(key)
    if cached is not None:
        return cached or None

    # reverse lookups reject `limit` without a single `types` value; take the most specific feature
    data = await _get(f"/{longitude},{latitude}.json", {})
    shaped = shape_features(data)
    out = shaped[0] if shaped else None
    _cache_set(key, out or {})
    return out
