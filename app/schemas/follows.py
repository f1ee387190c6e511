from __future__ import annotations

from typing import Literal
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.users import PublicUser


class FollowTarget(BaseModel):
    handle: str = Field(min_length=1, max_length=50)


class FollowResponse(BaseModel):
    id: UUID
    user: PublicUser
    status: Literal["PENDING", "ACCEPTED", "REJECTED"]


class FollowRequestItem(BaseModel):
    id: UUID
    user: PublicUser


class FollowListResponse(BaseModel):
    users: list[PublicUser]


class OkResponse(BaseModel):
    ok: bool
