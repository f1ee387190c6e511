from __future__ import annotations

import asyncio
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db, get_storage
from app.api.http_errors import DOMAIN_ERRORS, domain_error
from app.api.presenters.records import public_user
from app.core.config import settings
from app.models.user import User
from app.schemas.users import GroupCountResponse, PublicUser
from app.services.groups import count_user_groups
from app.services.storage import AvatarStorage
from app.services.users import require_user_by_handle, search_users_by_handle

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/search", response_model=list[PublicUser])
async def search_users(
    handle: str = Query(default="", max_length=50),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = await search_users_by_handle(db, handle)
    return [public_user(u) for u in rows if u.id != user.id]


@router.get("/{user_id}/group-count", response_model=GroupCountResponse)
async def group_count(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return GroupCountResponse(
        count=await count_user_groups(db, user_id),
        create_limit=settings.group_create_limit,
        membership_limit=settings.group_membership_limit,
    )


@router.get("/{handle}", response_model=PublicUser)
async def get_user(
    handle: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        target = await require_user_by_handle(db, handle)
    except DOMAIN_ERRORS as e:
        raise domain_error(e) from e
    return public_user(target)


@router.get("/{handle}/avatar")
async def get_avatar(
    handle: str,
    storage: AvatarStorage = Depends(get_storage),
):
    found = await asyncio.to_thread(storage.load_avatar, handle)
    if found is None:
        raise HTTPException(status_code=404, detail="Avatar not found")
    data, content_type = found
    return Response(content=data, media_type=content_type, headers={"Cache-Control": "public, max-age=300"})
