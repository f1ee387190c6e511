from __future__ import annotations

from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFound, ValidationError
from app.models.user import User

UNSET = object()

BAR_POSITIONS = {"left", "right", "bottom"}
_SEARCH_LIMIT = 5


async def get_user_by_id(db: AsyncSession, user_id: UUID) -> User | None:
    return (await db.execute(sa.select(User).where(User.id == user_id))).scalar_one_or_none()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    q = sa.select(User).where(User.email == email.strip().lower())
    return (await db.execute(q)).scalar_one_or_none()


async def get_user_by_handle(db: AsyncSession, handle: str) -> User | None:
    return (await db.execute(sa.select(User).where(User.handle == handle))).scalar_one_or_none()


async def require_user_by_handle(db: AsyncSession, handle: str) -> User:
    user = await get_user_by_handle(db, handle.strip())
    if user is None:
        raise NotFound("User not found")
    return user


async def search_users_by_handle(db: AsyncSession, query: str) -> list[User]:
    query = (query or "").strip()
    if not query:
        return []
    # escape LIKE wildcards so the query is matched literally
    escaped = query.lower().replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    q = (
        sa.select(User)
        .where(sa.func.lower(User.handle).like(f"%{escaped}%", escape="\\"))
        .order_by(User.handle.asc())
        .limit(_SEARCH_LIMIT)
    )
    return list((await db.execute(q)).scalars().all())


async def update_profile(db: AsyncSession, user: User, *, display_name: str) -> User:
    cleaned = (display_name or "").strip()
    if not cleaned:
        raise ValidationError("Display name is required")
    user.display_name = cleaned
    await db.flush()
    return user


async def update_settings(
    db: AsyncSession,
    user: User,
    *,
    theme=UNSET,
    bar=UNSET,
    tutorial_completed=UNSET,
    map_style=UNSET,
) -> User:
    if bar is not UNSET and bar is not None and bar not in BAR_POSITIONS:
        raise ValidationError("bar must be one of: left, right, bottom")
    if tutorial_completed is not UNSET and not isinstance(tutorial_completed, bool):
        raise ValidationError("tutorial_completed must be a boolean")

    if theme is not UNSET:
        user.theme = theme
    if bar is not UNSET:
        user.bar = bar
    if tutorial_completed is not UNSET:
        user.tutorial_completed = tutorial_completed
    if map_style is not UNSET:
        user.map_style = map_style

    await db.flush()
    return user


async def set_avatar(db: AsyncSession, user: User, avatar_url: str | None) -> User:
    user.avatar_url = avatar_url
    await db.flush()
    return user
