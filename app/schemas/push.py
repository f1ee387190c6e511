from __future__ import annotations

from pydantic import BaseModel, Field


class SubscriptionKeys(BaseModel):
    p256dh: str = Field(min_length=1, max_length=200)
    auth: str = Field(min_length=1, max_length=100)


class SubscribeRequest(BaseModel):
    endpoint: str = Field(min_length=1, max_length=1000)
    keys: SubscriptionKeys


class EndpointRequest(BaseModel):
    endpoint: str = Field(min_length=1, max_length=1000)


class SubscribeResponse(BaseModel):
    ok: bool
    method: str  # add | update | remove


class CheckSubscriptionResponse(BaseModel):
    is_subscribed: bool


class VapidKeyResponse(BaseModel):
    public_key: str | None
