from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db, get_push_sender
from app.api.http_errors import DOMAIN_ERRORS, domain_error
from app.api.presenters.records import comment_out, memo_out
from app.models.memo import Memo
from app.models.user import User
from app.schemas.memos import (
    CommentCreateRequest,
    CommentResponse,
    CommentUpdateRequest,
    DeleteCommentResponse,
    DeleteMemoResponse,
    MemoCreateRequest,
    MemoResponse,
    MemoUpdateRequest,
)
from app.services.comments import create_comment, delete_comment, list_comments, update_comment
from app.services.groups import get_group_detail
from app.services.memos import (
    create_memo,
    delete_memo,
    get_memo,
    list_personal_memos,
    toggle_completed,
    update_memo,
)
from app.services.push import Sender, build_payload, notify_users

logger = logging.getLogger(__name__)

router = APIRouter(tags=["memos"])


async def _notify_group(db: AsyncSession, memo: Memo, author: User, sender: Sender | None) -> None:
    detail = await get_group_detail(db, memo.group_id, author.id)
    recipients = [m.id for m, _ in detail["members"] if m.id != author.id]
    if not recipients:
        return
    payload = build_payload(
        detail["name"],
        f"{author.display_name}さんがメモを追加しました: {memo.title}",
        url=f"/memos/{memo.id}",
    )
    delivered = await notify_users(db, recipients, payload, send=sender)
    logger.info("memo push memo_id=%s recipients=%s delivered=%s", memo.id, len(recipients), delivered)


@router.post("/memos", response_model=MemoResponse, status_code=201)
async def create_memo_route(
    payload: MemoCreateRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
    sender: Sender | None = Depends(get_push_sender),
):
    try:
        memo = await create_memo(db, user_id=user.id, **payload.model_dump())
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e

    if memo.group_id is not None:
        await _notify_group(db, memo, user, sender)
    return memo_out(memo)


@router.get("/memos", response_model=list[MemoResponse])
async def list_memos_route(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return [memo_out(m) for m in await list_personal_memos(db, user.id)]


@router.get("/memos/{memo_id}", response_model=MemoResponse)
async def get_memo_route(
    memo_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        memo = await get_memo(db, memo_id, user.id)
    except DOMAIN_ERRORS as e:
        raise domain_error(e) from e
    return memo_out(memo)


@router.patch("/memos/{memo_id}", response_model=MemoResponse)
async def update_memo_route(
    memo_id: UUID,
    payload: MemoUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        memo = await update_memo(db, memo_id, user.id, **payload.model_dump(exclude_unset=True))
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e
    return memo_out(memo)


@router.post("/memos/{memo_id}/complete", response_model=MemoResponse)
async def complete_memo_route(
    memo_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        memo = await toggle_completed(db, memo_id, user.id)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e
    return memo_out(memo)


@router.delete("/memos/{memo_id}", response_model=DeleteMemoResponse)
async def delete_memo_route(
    memo_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        await delete_memo(db, memo_id, user.id)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e
    return DeleteMemoResponse(ok=True)


@router.get("/memos/{memo_id}/comments", response_model=list[CommentResponse])
async def list_comments_route(
    memo_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        comments = await list_comments(db, memo_id, user.id)
    except DOMAIN_ERRORS as e:
        raise domain_error(e) from e
    return [comment_out(c) for c in comments]


@router.post("/memos/{memo_id}/comments", response_model=CommentResponse, status_code=201)
async def create_comment_route(
    memo_id: UUID,
    payload: CommentCreateRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        comment = await create_comment(db, memo_id, user.id, payload.content)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e
    return comment_out(comment)


@router.patch("/comments/{comment_id}", response_model=CommentResponse)
async def update_comment_route(
    comment_id: UUID,
    payload: CommentUpdateRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        comment = await update_comment(db, comment_id, user.id, payload.content)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e
    return comment_out(comment)


@router.delete("/comments/{comment_id}", response_model=DeleteCommentResponse)
async def delete_comment_route(
    comment_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        await delete_comment(db, comment_id, user.id)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e
    return DeleteCommentResponse(ok=True)
