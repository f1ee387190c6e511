from __future__ import annotations

from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import NotFound
from app.models.subscription import PushSubscription


async def get_subscription(db: AsyncSession, endpoint: str) -> PushSubscription | None:
    q = sa.select(PushSubscription).where(PushSubscription.endpoint == endpoint)
    return (await db.execute(q)).scalar_one_or_none()


async def add_subscription(
    db: AsyncSession,
    *,
    user_id: UUID,
    endpoint: str,
    p256dh: str,
    auth: str,
) -> PushSubscription:
    existing = await get_subscription(db, endpoint)
    if existing is not None:
        # endpoint is the natural key; only the keys are refreshed
        existing.p256dh = p256dh
        existing.auth = auth
        await db.flush()
        return existing

    sub = PushSubscription(endpoint=endpoint, p256dh=p256dh, auth=auth, user_id=user_id)
    db.add(sub)
    await db.flush()
    return sub


async def remove_subscription(db: AsyncSession, *, user_id: UUID, endpoint: str) -> None:
    sub = await get_subscription(db, endpoint)
    if sub is None or sub.user_id != user_id:
        raise NotFound("Subscription not found")
    await db.delete(sub)
    await db.flush()


async def is_subscribed(db: AsyncSession, endpoint: str) -> bool:
    return await get_subscription(db, endpoint) is not None


async def list_subscriptions_for_user(db: AsyncSession, user_id: UUID) -> list[PushSubscription]:
    q = sa.select(PushSubscription).where(PushSubscription.user_id == user_id)
    return list((await db.execute(q)).scalars().all())
