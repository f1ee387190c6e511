from __future__ import annotations

import random
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import Forbidden, NotFound, ValidationError
from app.models.comment import Comment
from app.services.memos import get_memo

COMMENT_COLORS = (
    "#ffffff",
    "#ffcccc",
    "#ffe8cc",
    "#ffffcc",
    "#ccffcc",
    "#ccffff",
    "#ccccff",
    "#f3f3f3",
)


def _clean_content(content: str | None) -> str:
    cleaned = (content or "").strip()
    if not cleaned:
        raise ValidationError("Comment content is required")
    return cleaned


async def create_comment(db: AsyncSession, memo_id: UUID, author_id: UUID, content: str) -> Comment:
    # anyone who can read the memo can comment on it, viewers included
    await get_memo(db, memo_id, author_id)

    comment = Comment(
        memo_id=memo_id,
        author_id=author_id,
        content=_clean_content(content),
        color=random.choice(COMMENT_COLORS),
    )
    db.add(comment)
    await db.flush()
    await db.refresh(comment, attribute_names=["author", "created_at"])
    return comment


async def list_comments(db: AsyncSession, memo_id: UUID, user_id: UUID) -> list[Comment]:
    await get_memo(db, memo_id, user_id)

    q = sa.select(Comment).where(Comment.memo_id == memo_id).order_by(Comment.created_at.asc())
    return list((await db.execute(q)).scalars().all())


async def _own_comment(db: AsyncSession, comment_id: UUID, user_id: UUID) -> Comment:
    comment = (await db.execute(sa.select(Comment).where(Comment.id == comment_id))).scalar_one_or_none()
    if comment is None:
        raise NotFound("Comment not found")
    if comment.author_id != user_id:
        raise Forbidden("Only the author can change this comment")
    return comment


async def update_comment(db: AsyncSession, comment_id: UUID, user_id: UUID, content: str) -> Comment:
    comment = await _own_comment(db, comment_id, user_id)
    comment.content = _clean_content(content)
    await db.flush()
    return comment


async def delete_comment(db: AsyncSession, comment_id: UUID, user_id: UUID) -> None:
    comment = await _own_comment(db, comment_id, user_id)
    await db.delete(comment)
    await db.flush()
