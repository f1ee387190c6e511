from __future__ import annotations

from app.models.comment import Comment
from app.models.memo import Memo
from app.models.user import User
from app.schemas.memos import CommentResponse, MemoResponse
from app.schemas.users import PublicUser


def public_user(user: User) -> PublicUser:
    return PublicUser(
        id=str(user.id),
        handle=user.handle,
        display_name=user.display_name,
        avatar_url=user.avatar_url,
    )


def avatar_path(handle: str) -> str:
    return f"/users/{handle}/avatar"


def memo_out(memo: Memo) -> MemoResponse:
    return MemoResponse(
        id=memo.id,
        title=memo.title,
        content=memo.content,
        place=memo.place,
        color=memo.color,
        completed=memo.completed,
        latitude=memo.latitude,
        longitude=memo.longitude,
        created_by_id=memo.created_by_id,
        group_id=memo.group_id,
        created_at=memo.created_at,
        updated_at=memo.updated_at,
    )


def comment_out(comment: Comment) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        memo_id=comment.memo_id,
        content=comment.content,
        color=comment.color,
        created_at=comment.created_at,
        author=public_user(comment.author),
    )
