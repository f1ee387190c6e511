from __future__ import annotations

from uuid import UUID

import sqlalchemy as sa
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from app.core.config import settings
from app.core.errors import Forbidden, LimitExceeded, NotFound, Unauthorized, ValidationError
from app.models.comment import Comment
from app.models.group import Group
from app.models.group_membership import GroupMembership
from app.models.memo import Memo
from app.models.user import User
from app.services.permissions import (
    Role,
    can_assign,
    can_change_role,
    can_manage_members,
    can_remove_member,
    parse_role,
)

_GROUP_NAME_MAX_LEN = 120


def _clean_group_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Group name is required")
    if len(cleaned) > _GROUP_NAME_MAX_LEN:
        raise ValidationError(f"Group name must be {_GROUP_NAME_MAX_LEN} characters or fewer")
    return cleaned


def _dedupe(user_ids: list[UUID], *, exclude: UUID) -> list[UUID]:
    out: list[UUID] = []
    seen: set[UUID] = set()
    for uid in user_ids:
        if uid == exclude or uid in seen:
            continue
        seen.add(uid)
        out.append(uid)
    return out


async def _get_membership(db: AsyncSession, group_id: UUID, user_id: UUID) -> GroupMembership | None:
    q = sa.select(GroupMembership).where(
        GroupMembership.group_id == group_id,
        GroupMembership.user_id == user_id,
    )
    return (await db.execute(q)).scalar_one_or_none()


async def _require_membership(db: AsyncSession, group_id: UUID, user_id: UUID) -> GroupMembership:
    membership = await _get_membership(db, group_id, user_id)
    if membership is None:
        raise Unauthorized("Not a member of this group")
    return membership


async def _ensure_users_exist(db: AsyncSession, user_ids: list[UUID]) -> None:
    if not user_ids:
        return
    rows = await db.execute(sa.select(User.id).where(User.id.in_(user_ids)))
    found = {row[0] for row in rows.all()}
    for uid in user_ids:
        if uid not in found:
            raise NotFound(f"User {uid} not found")


async def get_group(db: AsyncSession, group_id: UUID) -> Group | None:
    return (await db.execute(sa.select(Group).where(Group.id == group_id))).scalar_one_or_none()


async def get_role(db: AsyncSession, group_id: UUID, user_id: UUID) -> Role | None:
    q = sa.select(GroupMembership.role).where(
        GroupMembership.group_id == group_id,
        GroupMembership.user_id == user_id,
    )
    raw = (await db.execute(q)).scalar_one_or_none()
    return Role(raw) if raw is not None else None


async def count_user_groups(db: AsyncSession, user_id: UUID) -> int:
    q = sa.select(sa.func.count(GroupMembership.id)).where(GroupMembership.user_id == user_id)
    return int((await db.execute(q)).scalar_one())


async def _ensure_capacity(db: AsyncSession, user_id: UUID, limit: int) -> None:
    if await count_user_groups(db, user_id) >= limit:
        raise LimitExceeded(f"User {user_id} already belongs to {limit} groups", limit=limit)


async def create_group(db: AsyncSession, creator_id: UUID, name: str, member_user_ids: list[UUID]) -> Group:
    name = _clean_group_name(name)

    # de-dupe and remove creator if included, so the creator is only inserted once as OWNER
    members = _dedupe(member_user_ids, exclude=creator_id)
    await _ensure_users_exist(db, members)

    await _ensure_capacity(db, creator_id, settings.group_create_limit)
    for uid in members:
        await _ensure_capacity(db, uid, settings.group_membership_limit)

    group = Group(name=name, owner_id=creator_id)
    db.add(group)
    await db.flush()  # get group.id

    db.add(GroupMembership(group_id=group.id, user_id=creator_id, role=Role.OWNER.value))
    for uid in members:
        db.add(GroupMembership(group_id=group.id, user_id=uid, role=Role.VIEWER.value))

    await db.flush()
    await db.refresh(group)
    return group


async def add_member(db: AsyncSession, group_id: UUID, user_id: UUID) -> GroupMembership:
    if await get_group(db, group_id) is None:
        raise NotFound("Group not found")

    existing = await _get_membership(db, group_id, user_id)
    if existing is not None:
        return existing

    await _ensure_capacity(db, user_id, settings.group_membership_limit)

    membership = GroupMembership(group_id=group_id, user_id=user_id, role=Role.VIEWER.value)
    db.add(membership)
    await db.flush()
    return membership


async def add_group_members(
    db: AsyncSession,
    *,
    group_id: UUID,
    actor_id: UUID,
    member_user_ids: list[UUID],
) -> tuple[list[UUID], list[UUID]]:
    if await get_group(db, group_id) is None:
        raise NotFound("Group not found")
    actor = await _require_membership(db, group_id, actor_id)
    if not can_manage_members(actor.member_role):
        raise Forbidden("Only owners and admins can add members")

    candidates = _dedupe(member_user_ids, exclude=actor_id)
    await _ensure_users_exist(db, candidates)

    existing_rows = await db.execute(
        sa.select(GroupMembership.user_id).where(GroupMembership.group_id == group_id)
    )
    existing = {row[0] for row in existing_rows.all()}

    to_add = [uid for uid in candidates if uid not in existing]
    skipped = [uid for uid in candidates if uid in existing]

    for uid in to_add:
        await add_member(db, group_id, uid)

    return to_add, skipped


async def list_groups_for_user(db: AsyncSession, user_id: UUID) -> list[dict]:
    # return (group + member_count + caller's role)
    gm = aliased(GroupMembership)
    q = (
        sa.select(
            Group.id,
            Group.name,
            Group.owner_id,
            Group.created_at,
            GroupMembership.role,
            sa.func.count(gm.id).label("member_count"),
        )
        .join(GroupMembership, GroupMembership.group_id == Group.id)
        .join(gm, gm.group_id == Group.id)
        .where(GroupMembership.user_id == user_id)
        .group_by(Group.id, GroupMembership.role)
        .order_by(Group.created_at.desc())
    )
    rows = (await db.execute(q)).all()
    return [
        {
            "id": r.id,
            "name": r.name,
            "owner_id": r.owner_id,
            "created_at": r.created_at,
            "role": Role(r.role),
            "member_count": int(r.member_count),
        }
        for r in rows
    ]


async def get_group_detail(db: AsyncSession, group_id: UUID, user_id: UUID) -> dict:
    g = await get_group(db, group_id)
    if g is None:
        raise NotFound("Group not found")
    me = await _require_membership(db, group_id, user_id)

    q = (
        sa.select(User, GroupMembership.role)
        .join(GroupMembership, GroupMembership.user_id == User.id)
        .where(GroupMembership.group_id == group_id)
        .order_by(User.handle.asc())
    )
    members = [(user, Role(role)) for user, role in (await db.execute(q)).all()]

    return {
        "id": g.id,
        "name": g.name,
        "owner_id": g.owner_id,
        "created_at": g.created_at,
        "role": me.member_role,
        "members": members,
    }


async def rename_group(db: AsyncSession, group_id: UUID, actor_id: UUID, name: str) -> Group:
    g = await get_group(db, group_id)
    if g is None:
        raise NotFound("Group not found")
    actor = await _require_membership(db, group_id, actor_id)
    if not can_manage_members(actor.member_role):
        raise Forbidden("Only owners and admins can rename the group")

    g.name = _clean_group_name(name)
    await db.flush()
    return g


async def update_role(
    db: AsyncSession,
    group_id: UUID,
    actor_id: UUID,
    target_id: UUID,
    new_role: Role | str,
) -> GroupMembership:
    actor = await _get_membership(db, group_id, actor_id)
    if actor is None:
        raise Unauthorized("Not a member of this group")
    actor_role = actor.member_role
    if not can_manage_members(actor_role):
        raise Forbidden("Only owners and admins can change roles")

    target = await _get_membership(db, group_id, target_id)
    if target is None:
        raise NotFound("Target user is not a member of this group")

    try:
        role = parse_role(new_role)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    if actor_id == target_id:
        raise Forbidden("You cannot change your own role")
    if not can_change_role(actor_role, target.member_role, actor_id, target_id):
        raise Forbidden("You cannot change the role of a member at or above your level")
    if not can_assign(actor_role, role):
        raise Forbidden(f"{actor_role.value} cannot assign the {role.value} role")

    if target.role != role.value:
        target.role = role.value
        await db.flush()
    return target


async def _purge_group(db: AsyncSession, group_id: UUID) -> None:
    memo_ids = list((await db.execute(sa.select(Memo.id).where(Memo.group_id == group_id))).scalars())
    if memo_ids:
        await db.execute(sa.delete(Comment).where(Comment.memo_id.in_(memo_ids)))
    await db.execute(sa.delete(Memo).where(Memo.group_id == group_id))
    await db.execute(sa.delete(GroupMembership).where(GroupMembership.group_id == group_id))
    await db.execute(sa.delete(Group).where(Group.id == group_id))


async def remove_member(db: AsyncSession, group_id: UUID, actor_id: UUID, target_id: UUID) -> bool:
    """
    Remove ``target_id`` from the group on behalf of ``actor_id``.

    Returns True when the removed member was the owner and the whole group
    (memberships, memos and their comments) was deleted with them.
    """
    g = await get_group(db, group_id)
    if g is None:
        raise NotFound("Group not found")

    actor = await _require_membership(db, group_id, actor_id)
    if actor_id == target_id:
        target = actor
    else:
        target = await _get_membership(db, group_id, target_id)
        if target is None:
            raise NotFound("Target user is not a member of this group")

    if not can_remove_member(actor.member_role, target.member_role, actor_id, target_id):
        raise Forbidden("You cannot remove this member")

    if target.user_id == g.owner_id:
        await _purge_group(db, group_id)
        return True

    await db.delete(target)
    await db.flush()
    return False


async def leave_group(db: AsyncSession, group_id: UUID, user_id: UUID) -> bool:
    return await remove_member(db, group_id, user_id, user_id)


async def delete_group(db: AsyncSession, group_id: UUID, user_id: UUID) -> None:
    g = await get_group(db, group_id)
    if g is None:
        raise NotFound("Group not found")
    if g.owner_id != user_id:
        raise Forbidden("Only the group owner can delete the group")

    await _purge_group(db, group_id)
