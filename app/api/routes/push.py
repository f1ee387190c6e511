from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.api.http_errors import DOMAIN_ERRORS, domain_error
from app.core.config import settings
from app.models.user import User
from app.schemas.push import (
    CheckSubscriptionResponse,
    EndpointRequest,
    SubscribeRequest,
    SubscribeResponse,
    VapidKeyResponse,
)
from app.services.subscriptions import (
    add_subscription,
    get_subscription,
    is_subscribed,
    remove_subscription,
)

router = APIRouter(prefix="/push", tags=["push"])


@router.get("/vapid-public-key", response_model=VapidKeyResponse)
async def vapid_public_key():
    return VapidKeyResponse(public_key=settings.vapid_public_key)


@router.post("/subscriptions", response_model=SubscribeResponse)
async def subscribe(
    payload: SubscribeRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    existed = await get_subscription(db, payload.endpoint) is not None
    await add_subscription(
        db,
        user_id=user.id,
        endpoint=payload.endpoint,
        p256dh=payload.keys.p256dh,
        auth=payload.keys.auth,
    )
    await db.commit()
    return SubscribeResponse(ok=True, method="update" if existed else "add")


@router.delete("/subscriptions", response_model=SubscribeResponse)
async def unsubscribe(
    payload: EndpointRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        await remove_subscription(db, user_id=user.id, endpoint=payload.endpoint)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e
    return SubscribeResponse(ok=True, method="remove")


@router.post("/subscriptions/check", response_model=CheckSubscriptionResponse)
async def check_subscription(
    payload: EndpointRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return CheckSubscriptionResponse(is_subscribed=await is_subscribed(db, payload.endpoint))
