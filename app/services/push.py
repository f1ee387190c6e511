from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Any
from uuid import UUID

from pywebpush import WebPushException, webpush
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.subscription import PushSubscription
from app.services.subscriptions import list_subscriptions_for_user

logger = logging.getLogger(__name__)

DEFAULT_ICON = "/favicon.ico"

Sender = Callable[[PushSubscription, str], Awaitable[None]]


def build_payload(title: str, body: str, *, icon: str = DEFAULT_ICON, url: str | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {"title": title, "body": body, "icon": icon}
    if url:
        payload["url"] = url
    return payload


def _subscription_info(sub: PushSubscription) -> dict[str, Any]:
    return {
        "endpoint": sub.endpoint,
        "keys": {"p256dh": sub.p256dh, "auth": sub.auth},
    }


async def send_webpush(sub: PushSubscription, data: str) -> None:
    # pywebpush is blocking (requests); keep it off the event loop
    await asyncio.to_thread(
        webpush,
        subscription_info=_subscription_info(sub),
        data=data,
        vapid_private_key=settings.vapid_private_key,
        vapid_claims={"sub": settings.vapid_subject},
    )


async def deliver(
    subscriptions: Iterable[PushSubscription],
    payload: dict[str, Any],
    *,
    send: Sender = send_webpush,
) -> int:
    """Send ``payload`` to every subscription concurrently; returns the number delivered."""
    data = json.dumps(payload, ensure_ascii=False)

    async def _one(sub: PushSubscription) -> bool:
        try:
            await send(sub, data)
            return True
        except WebPushException as exc:
            status = getattr(exc.response, "status_code", None)
            logger.warning("push delivery failed endpoint=%s status=%s", sub.endpoint, status, exc_info=exc)
        except Exception as exc:
            logger.warning("push delivery failed endpoint=%s", sub.endpoint, exc_info=exc)
        return False

    results = await asyncio.gather(*(_one(sub) for sub in subscriptions))
    return sum(1 for ok in results if ok)


async def notify_user(
    db: AsyncSession,
    user_id: UUID,
    payload: dict[str, Any],
    *,
    send: Sender | None = None,
) -> int:
    if send is None:
        if not settings.push_enabled():
            logger.debug("push disabled, skipping notification for user_id=%s", user_id)
            return 0
        send = send_webpush

    subscriptions = await list_subscriptions_for_user(db, user_id)
    if not subscriptions:
        return 0
    return await deliver(subscriptions, payload, send=send)


async def notify_users(
    db: AsyncSession,
    user_ids: Iterable[UUID],
    payload: dict[str, Any],
    *,
    send: Sender | None = None,
) -> int:
    delivered = 0
    for uid in user_ids:
        delivered += await notify_user(db, uid, payload, send=send)
    return delivered
