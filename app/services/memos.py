from __future__ import annotations

from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Forbidden, NotFound, Unauthorized, ValidationError
from app.models.comment import Comment
from app.models.memo import Memo
from app.services.groups import get_group, get_role
from app.services.permissions import (
    Role,
    can_complete_memo,
    can_create_memo,
    can_delete_memo,
    can_edit_memo,
)

UNSET = object()

_EDITABLE_FIELDS = ("title", "content", "place", "color", "latitude", "longitude")


def _check_coordinates(latitude: float | None, longitude: float | None) -> None:
    if latitude is not None and not -90 <= latitude <= 90:
        raise ValidationError("latitude must be between -90 and 90")
    if longitude is not None and not -180 <= longitude <= 180:
        raise ValidationError("longitude must be between -180 and 180")


async def _memo_role(db: AsyncSession, memo: Memo, user_id: UUID) -> Role | None:
    # personal memos belong to their creator alone
    if memo.group_id is None:
        return Role.OWNER if memo.created_by_id == user_id else None
    return await get_role(db, memo.group_id, user_id)


async def _load_for(db: AsyncSession, memo_id: UUID, user_id: UUID) -> tuple[Memo, Role]:
    memo = (await db.execute(sa.select(Memo).where(Memo.id == memo_id))).scalar_one_or_none()
    if memo is None:
        raise NotFound("Memo not found")

    role = await _memo_role(db, memo, user_id)
    if role is None:
        if memo.group_id is None:
            raise NotFound("Memo not found")
        raise Unauthorized("Not a member of this group")
    return memo, role


async def get_memo(db: AsyncSession, memo_id: UUID, user_id: UUID) -> Memo:
    memo, _ = await _load_for(db, memo_id, user_id)
    return memo


async def create_memo(
    db: AsyncSession,
    *,
    user_id: UUID,
    title: str,
    content: str,
    place: str | None = None,
    color: str | None = None,
    latitude: float | None = None,
    longitude: float | None = None,
    group_id: UUID | None = None,
) -> Memo:
    _check_coordinates(latitude, longitude)

    if group_id is not None:
        if await get_group(db, group_id) is None:
            raise NotFound("Group not found")
        role = await get_role(db, group_id, user_id)
        if role is None:
            raise Unauthorized("Not a member of this group")
        if not can_create_memo(role):
            raise Forbidden("Viewers cannot create memos")

    memo = Memo(
        title=title,
        content=content,
        place=place,
        color=color,
        latitude=latitude,
        longitude=longitude,
        created_by_id=user_id,
        group_id=group_id,
    )
    db.add(memo)
    await db.flush()
    await db.refresh(memo)
    return memo


async def list_personal_memos(db: AsyncSession, user_id: UUID) -> list[Memo]:
    q = (
        sa.select(Memo)
        .where(Memo.created_by_id == user_id, Memo.group_id.is_(None))
        .order_by(Memo.created_at.desc())
    )
    return list((await db.execute(q)).scalars().all())


async def list_group_memos(db: AsyncSession, group_id: UUID, user_id: UUID) -> list[Memo]:
    if await get_group(db, group_id) is None:
        raise NotFound("Group not found")
    if await get_role(db, group_id, user_id) is None:
        raise Unauthorized("Not a member of this group")

    q = sa.select(Memo).where(Memo.group_id == group_id).order_by(Memo.created_at.desc())
    return list((await db.execute(q)).scalars().all())


async def update_memo(db: AsyncSession, memo_id: UUID, user_id: UUID, **changes) -> Memo:
    memo, role = await _load_for(db, memo_id, user_id)
    if not can_edit_memo(role, is_creator=memo.created_by_id == user_id):
        raise Forbidden("You cannot edit this memo")

    unknown = set(changes) - set(_EDITABLE_FIELDS)
    if unknown:
        raise ValidationError(f"Unknown memo fields: {', '.join(sorted(unknown))}")

    latitude = changes.get("latitude", UNSET)
    longitude = changes.get("longitude", UNSET)
    _check_coordinates(
        None if latitude is UNSET else latitude,
        None if longitude is UNSET else longitude,
    )

    for field in _EDITABLE_FIELDS:
        value = changes.get(field, UNSET)
        if value is UNSET:
            continue
        if field in ("title", "content") and value is None:
            raise ValidationError(f"{field} cannot be null")
        setattr(memo, field, value)

    await db.flush()
    await db.refresh(memo)
    return memo


async def set_completed(db: AsyncSession, memo_id: UUID, user_id: UUID, completed: bool) -> Memo:
    memo, role = await _load_for(db, memo_id, user_id)
    if not can_complete_memo(role):
        raise Forbidden("Viewers cannot complete memos")

    if memo.completed != completed:
        memo.completed = completed
        await db.flush()
        await db.refresh(memo)
    return memo


async def toggle_completed(db: AsyncSession, memo_id: UUID, user_id: UUID) -> Memo:
    memo = await get_memo(db, memo_id, user_id)
    return await set_completed(db, memo_id, user_id, not memo.completed)


async def delete_memo(db: AsyncSession, memo_id: UUID, user_id: UUID) -> None:
    memo, role = await _load_for(db, memo_id, user_id)
    if not can_delete_memo(role, is_creator=memo.created_by_id == user_id):
        raise Forbidden("You cannot delete this memo")

    # comments are deleted with their memo rather than left orphaned (see DESIGN.md)
    await db.execute(sa.delete(Comment).where(Comment.memo_id == memo.id))
    await db.delete(memo)
    await db.flush()
