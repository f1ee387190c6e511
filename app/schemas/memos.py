from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from app.schemas.users import PublicUser


class MemoCreateRequest(BaseModel):
    title: str = Field(default="", max_length=200)
    content: str = Field(default="", max_length=10000)
    place: str | None = Field(default=None, max_length=300)
    color: str | None = Field(default=None, max_length=20)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)
    group_id: UUID | None = None


class MemoUpdateRequest(BaseModel):
    title: str | None = Field(default=None, max_length=200)
    content: str | None = Field(default=None, max_length=10000)
    place: str | None = Field(default=None, max_length=300)
    color: str | None = Field(default=None, max_length=20)
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)


class MemoResponse(BaseModel):
    id: UUID
    title: str
    content: str
    place: str | None
    color: str | None
    completed: bool
    latitude: float | None
    longitude: float | None
    created_by_id: UUID
    group_id: UUID | None
    created_at: datetime
    updated_at: datetime


class DeleteMemoResponse(BaseModel):
    ok: bool


class CommentCreateRequest(BaseModel):
    content: str = Field(min_length=1, max_length=2000)


class CommentUpdateRequest(BaseModel):
    content: str = Field(min_length=1, max_length=2000)


class CommentResponse(BaseModel):
    id: UUID
    memo_id: UUID
    content: str
    color: str
    created_at: datetime
    author: PublicUser


class DeleteCommentResponse(BaseModel):
    ok: bool
