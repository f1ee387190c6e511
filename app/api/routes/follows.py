from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db, get_push_sender
from app.api.http_errors import DOMAIN_ERRORS, domain_error
from app.api.presenters.records import public_user
from app.models.user import User
from app.schemas.follows import (
    FollowListResponse,
    FollowRequestItem,
    FollowResponse,
    FollowTarget,
    OkResponse,
)
from app.services.follows import (
    accept_follow_request,
    list_followers,
    list_following,
    list_pending_follow_requests,
    reject_follow_request,
    remove_follower,
    send_follow_request,
    unfollow,
)
from app.services.push import Sender, build_payload, notify_user
from app.services.users import get_user_by_id, require_user_by_handle

router = APIRouter(prefix="/follows", tags=["follows"])

_FOLLOW_ERROR_DETAILS = {
    "cannot_follow_self": "You cannot follow yourself",
    "already_following": "Follow request already sent",
    "follow_request_not_found": "Follow request not found",
}


@router.post("", response_model=FollowResponse, status_code=201)
async def follow(
    payload: FollowTarget,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    sender: Sender | None = Depends(get_push_sender),
):
    try:
        target = await require_user_by_handle(db, payload.handle)
        f = await send_follow_request(db, user.id, target.id)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(
            e,
            detail_overrides=_FOLLOW_ERROR_DETAILS,
            code_statuses={"already_following": 409},
        ) from e

    await notify_user(
        db,
        target.id,
        build_payload("フォローリクエスト", f"{user.display_name}さんからフォローリクエストが届きました", url="/follows"),
        send=sender,
    )
    return FollowResponse(id=f.id, user=public_user(target), status=f.status)


@router.get("/following", response_model=FollowListResponse)
async def following(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return FollowListResponse(users=[public_user(u) for u in await list_following(db, user.id)])


@router.get("/followers", response_model=FollowListResponse)
async def followers(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return FollowListResponse(users=[public_user(u) for u in await list_followers(db, user.id)])


@router.get("/requests", response_model=list[FollowRequestItem])
async def pending_requests(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = await list_pending_follow_requests(db, user.id)
    return [FollowRequestItem(id=f.id, user=public_user(follower)) for f, follower in rows]


async def _answer(db: AsyncSession, follow_id: UUID, user: User, accept: bool) -> FollowResponse:
    decide = accept_follow_request if accept else reject_follow_request
    try:
        f = await decide(db, follow_id, user.id)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e, detail_overrides=_FOLLOW_ERROR_DETAILS) from e

    follower = await get_user_by_id(db, f.follower_id)
    return FollowResponse(id=f.id, user=public_user(follower), status=f.status)


@router.post("/requests/{follow_id}/accept", response_model=FollowResponse)
async def accept(
    follow_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await _answer(db, follow_id, user, accept=True)


@router.post("/requests/{follow_id}/reject", response_model=FollowResponse)
async def reject(
    follow_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return await _answer(db, follow_id, user, accept=False)


@router.post("/unfollow", response_model=OkResponse)
async def unfollow_route(
    payload: FollowTarget,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        target = await require_user_by_handle(db, payload.handle)
        await unfollow(db, user.id, target.id)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e
    return OkResponse(ok=True)


@router.post("/remove-follower", response_model=OkResponse)
async def remove_follower_route(
    payload: FollowTarget,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        follower = await require_user_by_handle(db, payload.handle)
        await remove_follower(db, user.id, follower.id)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e
    return OkResponse(ok=True)
