from __future__ import annotations

import asyncio

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db, get_storage
from app.api.http_errors import DOMAIN_ERRORS, domain_error
from app.api.presenters.records import avatar_path
from app.core.errors import LimitExceeded
from app.models.user import User
from app.schemas.users import (
    AvatarResponse,
    MeResponse,
    UpdateProfileRequest,
    UpdateSettingsRequest,
    UserSettings,
)
from app.services.storage import AvatarStorage, check_avatar_upload
from app.services.users import set_avatar, update_profile, update_settings

router = APIRouter(prefix="/me", tags=["me"])


def _me(user: User) -> MeResponse:
    return MeResponse(
        id=str(user.id),
        email=user.email,
        handle=user.handle,
        display_name=user.display_name,
        avatar_url=user.avatar_url,
    )


def _settings(user: User) -> UserSettings:
    return UserSettings(
        theme=user.theme,
        bar=user.bar,
        tutorial_completed=user.tutorial_completed,
        map_style=user.map_style,
    )


@router.get("", response_model=MeResponse)
async def me(user: User = Depends(get_current_user)):
    return _me(user)


@router.patch("", response_model=MeResponse)
async def update_me(
    payload: UpdateProfileRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        await update_profile(db, user, display_name=payload.display_name)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e
    return _me(user)


@router.get("/settings", response_model=UserSettings)
async def get_settings(user: User = Depends(get_current_user)):
    return _settings(user)


@router.patch("/settings", response_model=UserSettings)
async def patch_settings(
    payload: UpdateSettingsRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    changes = payload.model_dump(exclude_unset=True)
    try:
        await update_settings(db, user, **changes)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e
    return _settings(user)


@router.put("/avatar", response_model=AvatarResponse)
async def upload_avatar(
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    storage: AvatarStorage = Depends(get_storage),
):
    data = await file.read()
    try:
        content_type = check_avatar_upload(data, file.content_type)
    except LimitExceeded as e:
        raise HTTPException(status_code=413, detail=str(e)) from e
    except ValueError as e:
        raise domain_error(e) from e

    await asyncio.to_thread(storage.save_avatar, user.handle, data, content_type)
    await set_avatar(db, user, avatar_path(user.handle))
    await db.commit()
    return AvatarResponse(avatar_url=user.avatar_url)
