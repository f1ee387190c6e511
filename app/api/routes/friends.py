from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db, get_push_sender
from app.api.http_errors import DOMAIN_ERRORS, domain_error
from app.api.presenters.records import public_user
from app.models.user import User
from app.schemas.friends import (
    FriendIdsResponse,
    FriendRequestItem,
    FriendRequestResponse,
    FriendsResponse,
    FriendTarget,
    UnfriendResponse,
)
from app.services.friends import (
    accept_request,
    list_friend_ids,
    list_friends,
    list_incoming_requests,
    reject_request,
    remove_friend,
    send_request,
)
from app.services.push import Sender, build_payload, notify_user
from app.services.users import require_user_by_handle

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/friends", tags=["friends"])

_FRIEND_ERROR_DETAILS = {
    "cannot_friend_self": "You cannot send a friend request to yourself",
    "friend_request_not_found": "Friend request not found",
}


@router.get("", response_model=FriendsResponse)
async def get_friends(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    friends = await list_friends(db, user.id)
    requests = await list_incoming_requests(db, user.id)
    return FriendsResponse(
        friends=[public_user(f) for f in friends],
        requests=[FriendRequestItem(id=edge.id, user=public_user(sender)) for edge, sender in requests],
    )


@router.get("/ids", response_model=FriendIdsResponse)
async def get_friend_ids(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return FriendIdsResponse(friend_ids=await list_friend_ids(db, user.id))


@router.get("/requests", response_model=list[FriendRequestItem])
async def get_incoming_requests(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = await list_incoming_requests(db, user.id)
    return [FriendRequestItem(id=edge.id, user=public_user(sender)) for edge, sender in rows]


@router.post("/requests", response_model=FriendRequestResponse, status_code=201)
async def send_friend_request(
    payload: FriendTarget,
    response: Response,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    sender: Sender | None = Depends(get_push_sender),
):
    try:
        target = await require_user_by_handle(db, payload.handle)
        edge, created = await send_request(db, user.id, target.id)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e, detail_overrides=_FRIEND_ERROR_DETAILS) from e

    if not created:
        # repeat or auto-accept: nothing new to announce
        response.status_code = 200
        return FriendRequestResponse(user=public_user(target), status=edge.status)

    await notify_user(
        db,
        target.id,
        build_payload("フレンド申請", f"{user.display_name}さんからフレンド申請が届きました", url="/friends"),
        send=sender,
    )
    return FriendRequestResponse(user=public_user(target), status=edge.status)


@router.post("/requests/accept", response_model=FriendRequestResponse)
async def accept_friend_request(
    payload: FriendTarget,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        requester = await require_user_by_handle(db, payload.handle)
        edge = await accept_request(db, requester.id, user.id)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e, detail_overrides=_FRIEND_ERROR_DETAILS) from e

    logger.info("friend request accepted from_id=%s to_id=%s", requester.id, user.id)
    return FriendRequestResponse(user=public_user(requester), status=edge.status)


@router.post("/requests/reject", response_model=FriendRequestResponse)
async def reject_friend_request(
    payload: FriendTarget,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        requester = await require_user_by_handle(db, payload.handle)
        edge = await reject_request(db, requester.id, user.id)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e, detail_overrides=_FRIEND_ERROR_DETAILS) from e

    return FriendRequestResponse(user=public_user(requester), status=edge.status)


@router.post("/unfriend", response_model=UnfriendResponse)
async def unfriend(
    payload: FriendTarget,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        other = await require_user_by_handle(db, payload.handle)
        removed = await remove_friend(db, user.id, other.id)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e

    return UnfriendResponse(ok=True, removed=removed)
