from __future__ import annotations

from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Forbidden, NotFound, ValidationError
from app.models.follow import Follow
from app.models.user import User

PENDING = "PENDING"
ACCEPTED = "ACCEPTED"
REJECTED = "REJECTED"


async def _get_follow(db: AsyncSession, follower_id: UUID, following_id: UUID) -> Follow | None:
    q = sa.select(Follow).where(Follow.follower_id == follower_id, Follow.following_id == following_id)
    return (await db.execute(q)).scalar_one_or_none()


async def send_follow_request(db: AsyncSession, follower_id: UUID, following_id: UUID) -> Follow:
    if follower_id == following_id:
        raise ValidationError("cannot_follow_self")
    if await _get_follow(db, follower_id, following_id) is not None:
        raise ValidationError("already_following")

    follow = Follow(follower_id=follower_id, following_id=following_id, status=PENDING)
    db.add(follow)
    await db.flush()
    return follow


async def _decide(db: AsyncSession, follow_id: UUID, actor_id: UUID, status: str) -> Follow:
    follow = (await db.execute(sa.select(Follow).where(Follow.id == follow_id))).scalar_one_or_none()
    if follow is None or follow.status != PENDING:
        raise NotFound("follow_request_not_found")
    if follow.following_id != actor_id:
        raise Forbidden("Only the followed user can answer this request")

    follow.status = status
    await db.flush()
    return follow


async def accept_follow_request(db: AsyncSession, follow_id: UUID, actor_id: UUID) -> Follow:
    return await _decide(db, follow_id, actor_id, ACCEPTED)


async def reject_follow_request(db: AsyncSession, follow_id: UUID, actor_id: UUID) -> Follow:
    return await _decide(db, follow_id, actor_id, REJECTED)


async def unfollow(db: AsyncSession, follower_id: UUID, following_id: UUID) -> None:
    follow = await _get_follow(db, follower_id, following_id)
    if follow is None:
        raise NotFound("フォローしていません")
    await db.delete(follow)
    await db.flush()


async def remove_follower(db: AsyncSession, following_id: UUID, follower_id: UUID) -> None:
    follow = await _get_follow(db, follower_id, following_id)
    if follow is None or follow.status != ACCEPTED:
        raise NotFound("フォローされていません")
    await db.delete(follow)
    await db.flush()


async def list_following(db: AsyncSession, user_id: UUID) -> list[User]:
    q = (
        sa.select(User)
        .join(Follow, Follow.following_id == User.id)
        .where(Follow.follower_id == user_id, Follow.status == ACCEPTED)
        .order_by(User.handle.asc())
    )
    return list((await db.execute(q)).scalars().all())


async def list_followers(db: AsyncSession, user_id: UUID) -> list[User]:
    q = (
        sa.select(User)
        .join(Follow, Follow.follower_id == User.id)
        .where(Follow.following_id == user_id, Follow.status == ACCEPTED)
        .order_by(User.handle.asc())
    )
    return list((await db.execute(q)).scalars().all())


async def list_pending_follow_requests(db: AsyncSession, user_id: UUID) -> list[tuple[Follow, User]]:
    q = (
        sa.select(Follow, User)
        .join(User, User.id == Follow.follower_id)
        .where(Follow.following_id == user_id, Follow.status == PENDING)
        .order_by(Follow.created_at.asc())
    )
    return [(follow, user) for follow, user in (await db.execute(q)).all()]
