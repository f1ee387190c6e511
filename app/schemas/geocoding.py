from __future__ import annotations

from pydantic import BaseModel


class Place(BaseModel):
    id: str | None = None
    name: str
    place_name: str
    latitude: float
    longitude: float
