from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field
from uuid import UUID

from app.schemas.users import PublicUser

FriendStatus = Literal["PENDING", "ACCEPTED", "REJECTED"]


class FriendTarget(BaseModel):
    handle: str = Field(min_length=1, max_length=50)


class FriendRequestResponse(BaseModel):
    user: PublicUser
    status: FriendStatus


class FriendRequestItem(BaseModel):
    id: UUID
    user: PublicUser


class FriendsResponse(BaseModel):
    friends: list[PublicUser]
    requests: list[FriendRequestItem]


class FriendIdsResponse(BaseModel):
    friend_ids: list[UUID]


class UnfriendResponse(BaseModel):
    ok: bool
    removed: int
