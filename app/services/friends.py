from __future__ import annotations

from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFound, ValidationError
from app.models.friend import Friend
from app.models.user import User

PENDING = "PENDING"
ACCEPTED = "ACCEPTED"
REJECTED = "REJECTED"


async def _get_edge(db: AsyncSession, from_id: UUID, to_id: UUID) -> Friend | None:
    q = sa.select(Friend).where(Friend.from_id == from_id, Friend.to_id == to_id)
    return (await db.execute(q)).scalar_one_or_none()


async def send_request(db: AsyncSession, from_id: UUID, to_id: UUID) -> tuple[Friend, bool]:
    """
    Returns ``(edge, created)``. ``created`` is True only when a new pending
    request was issued, either as a fresh row or by reopening a rejected one.
    """
    if from_id == to_id:
        raise ValidationError("cannot_friend_self")

    # the other side already asked: collapse into an accept instead of a second request
    reverse = await _get_edge(db, to_id, from_id)
    if reverse is not None and reverse.status == PENDING:
        return await accept_request(db, to_id, from_id), False

    existing = await _get_edge(db, from_id, to_id)
    if existing is not None:
        if existing.status != REJECTED:
            return existing, False
        existing.status = PENDING
        await db.flush()
        return existing, True

    edge = Friend(from_id=from_id, to_id=to_id, status=PENDING)
    db.add(edge)
    await db.flush()
    return edge, True


async def accept_request(db: AsyncSession, from_id: UUID, to_id: UUID) -> Friend:
    """
    Accept the pending request ``from_id -> to_id``.

    Both directional rows are written in the caller's session, so a single
    commit makes the pair visible at once.
    """
    edge = await _get_edge(db, from_id, to_id)
    if edge is None or edge.status != PENDING:
        raise NotFound("friend_request_not_found")

    edge.status = ACCEPTED

    reverse = await _get_edge(db, to_id, from_id)
    if reverse is None:
        db.add(Friend(from_id=to_id, to_id=from_id, status=ACCEPTED))
    else:
        reverse.status = ACCEPTED

    await db.flush()
    return edge


async def reject_request(db: AsyncSession, from_id: UUID, to_id: UUID) -> Friend:
    edge = await _get_edge(db, from_id, to_id)
    if edge is None or edge.status != PENDING:
        raise NotFound("friend_request_not_found")

    edge.status = REJECTED
    await db.flush()
    return edge


async def remove_friend(db: AsyncSession, user_id: UUID, other_id: UUID) -> int:
    rows = await list_edges_between(db, user_id, other_id)
    if not rows:
        raise NotFound("フレンドが存在しません")

    for row in rows:
        await db.delete(row)
    await db.flush()
    return len(rows)


async def is_friend(db: AsyncSession, user_id: UUID, other_id: UUID) -> bool:
    q = sa.select(sa.literal(True)).select_from(Friend).where(
        Friend.status == ACCEPTED,
        sa.or_(
            sa.and_(Friend.from_id == user_id, Friend.to_id == other_id),
            sa.and_(Friend.from_id == other_id, Friend.to_id == user_id),
        ),
    ).limit(1)
    return (await db.execute(q)).scalar_one_or_none() is not None


async def list_friends(db: AsyncSession, user_id: UUID) -> list[User]:
    q = (
        sa.select(User)
        .join(Friend, Friend.to_id == User.id)
        .where(Friend.from_id == user_id, Friend.status == ACCEPTED)
        .order_by(User.handle.asc())
    )
    return list((await db.execute(q)).scalars().all())


async def list_friend_ids(db: AsyncSession, user_id: UUID) -> list[UUID]:
    q = sa.select(Friend.to_id).where(Friend.from_id == user_id, Friend.status == ACCEPTED)
    return list((await db.execute(q)).scalars().all())


async def list_incoming_requests(db: AsyncSession, user_id: UUID) -> list[tuple[Friend, User]]:
    q = (
        sa.select(Friend, User)
        .join(User, User.id == Friend.from_id)
        .where(Friend.to_id == user_id, Friend.status == PENDING)
        .order_by(Friend.created_at.asc())
    )
    return [(edge, user) for edge, user in (await db.execute(q)).all()]


async def list_edges_between(db: AsyncSession, user_id: UUID, other_id: UUID) -> list[Friend]:
    q = sa.select(Friend).where(
        sa.or_(
            sa.and_(Friend.from_id == user_id, Friend.to_id == other_id),
            sa.and_(Friend.from_id == other_id, Friend.to_id == user_id),
        )
    )
    return list((await db.execute(q)).scalars().all())
