from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, EmailStr, Field


class PublicUser(BaseModel):
    id: str
    handle: str
    display_name: str
    avatar_url: str | None = None


class MeResponse(PublicUser):
    email: EmailStr


class UpdateProfileRequest(BaseModel):
    display_name: str = Field(min_length=1, max_length=120)


class UserSettings(BaseModel):
    theme: str | None = None
    bar: Literal["left", "right", "bottom"] | None = None
    tutorial_completed: bool = False
    map_style: str | None = None


class UpdateSettingsRequest(BaseModel):
    theme: str | None = Field(default=None, max_length=20)
    bar: Literal["left", "right", "bottom"] | None = None
    tutorial_completed: bool | None = None
    map_style: str | None = Field(default=None, max_length=200)


class AvatarResponse(BaseModel):
    avatar_url: str


class GroupCountResponse(BaseModel):
    count: int
    create_limit: int
    membership_limit: int
