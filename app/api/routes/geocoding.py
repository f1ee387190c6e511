from __future__ import annotations

import logging

import httpx
from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_current_user
from app.models.user import User
from app.schemas.geocoding import Place
from app.services.geocoding import GeocodingUnavailable, reverse_geocode, search_places

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/geocode", tags=["geocode"])


def _upstream_error(exc: Exception) -> HTTPException:
    if isinstance(exc, GeocodingUnavailable):
        return HTTPException(status_code=503, detail="Geocoding is not configured")
    logger.warning("mapbox request failed: %s", exc)
    return HTTPException(status_code=502, detail="Geocoding provider error")


@router.get("/search", response_model=list[Place])
async def search(
    q: str = Query(min_length=1, max_length=200),
    limit: int = Query(default=5, ge=1, le=10),
    user: User = Depends(get_current_user),
):
    try:
        return await search_places(q, limit=limit)
    except (GeocodingUnavailable, httpx.HTTPError) as e:
        raise _upstream_error(e) from e


@router.get("/reverse", response_model=Place | None)
async def reverse(
    lat: float = Query(ge=-90, le=90),
    lon: float = Query(ge=-180, le=180),
    user: User = Depends(get_current_user),
):
    try:
        return await reverse_geocode(lat, lon)
    except (GeocodingUnavailable, httpx.HTTPError) as e:
        raise _upstream_error(e) from e
