from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from uuid import UUID

from app.api.deps import get_current_user, get_db
from app.api.http_errors import DOMAIN_ERRORS, domain_error
from app.api.presenters.records import memo_out
from app.models.user import User
from app.schemas.groups import (
    AddGroupMembersRequest,
    AddGroupMembersResponse,
    CreateGroupRequest,
    DeleteGroupResponse,
    GroupDetailResponse,
    GroupListItem,
    GroupMember,
    LeaveGroupResponse,
    MembershipResponse,
    RemoveMemberResponse,
    RenameGroupRequest,
    UpdateRoleRequest,
)
from app.schemas.memos import MemoResponse
from app.services.groups import (
    add_group_members,
    create_group,
    delete_group,
    get_group_detail,
    leave_group,
    list_groups_for_user,
    remove_member,
    rename_group,
    update_role,
)
from app.services.memos import list_group_memos
from app.services.permissions import Role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/groups", tags=["groups"])


@router.post("", response_model=GroupListItem, status_code=201)
async def create_group_route(
    payload: CreateGroupRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        g = await create_group(db, user.id, payload.name, payload.member_user_ids)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e

    logger.info("group created group_id=%s owner_id=%s", g.id, user.id)
    # return list-shape
    return GroupListItem(
        id=g.id,
        name=g.name,
        owner_id=g.owner_id,
        created_at=g.created_at,
        role=Role.OWNER,
        member_count=1 + len({uid for uid in payload.member_user_ids if uid != user.id}),
    )


@router.get("", response_model=list[GroupListItem])
async def list_groups_route(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    rows = await list_groups_for_user(db, user.id)
    return [GroupListItem(**r) for r in rows]


@router.get("/{group_id}", response_model=GroupDetailResponse)
async def group_detail_route(
    group_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        data = await get_group_detail(db, group_id, user.id)
    except DOMAIN_ERRORS as e:
        raise domain_error(e) from e

    return GroupDetailResponse(
        id=data["id"],
        name=data["name"],
        owner_id=data["owner_id"],
        created_at=data["created_at"],
        role=data["role"],
        members=[
            GroupMember(
                id=m.id,
                handle=m.handle,
                display_name=m.display_name,
                avatar_url=m.avatar_url,
                role=role,
            )
            for m, role in data["members"]
        ],
    )


@router.patch("/{group_id}", response_model=GroupListItem)
async def rename_group_route(
    group_id: UUID,
    payload: RenameGroupRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        await rename_group(db, group_id, user.id, payload.name)
        await db.commit()
        rows = await list_groups_for_user(db, user.id)
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e

    row = next(r for r in rows if r["id"] == group_id)
    return GroupListItem(**row)


@router.delete("/{group_id}", response_model=DeleteGroupResponse, status_code=200)
async def delete_group_route(
    group_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        await delete_group(db, group_id, user.id)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e

    logger.info("group deleted group_id=%s by user_id=%s", group_id, user.id)
    return DeleteGroupResponse(ok=True)


@router.post("/{group_id}/members", response_model=AddGroupMembersResponse, status_code=200)
async def add_group_members_route(
    group_id: UUID,
    payload: AddGroupMembersRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        added, skipped = await add_group_members(
            db,
            group_id=group_id,
            actor_id=user.id,
            member_user_ids=payload.member_user_ids,
        )
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e

    return AddGroupMembersResponse(ok=True, added_user_ids=added, skipped_user_ids=skipped)


@router.put("/{group_id}/members/{user_id}/role", response_model=MembershipResponse)
async def update_role_route(
    group_id: UUID,
    user_id: UUID,
    payload: UpdateRoleRequest,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        membership = await update_role(db, group_id, user.id, user_id, payload.role)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e

    return MembershipResponse(
        group_id=membership.group_id,
        user_id=membership.user_id,
        role=membership.member_role,
    )


@router.delete("/{group_id}/members/{user_id}", response_model=RemoveMemberResponse)
async def remove_member_route(
    group_id: UUID,
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        group_deleted = await remove_member(db, group_id, user.id, user_id)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e

    return RemoveMemberResponse(ok=True, group_deleted=group_deleted)


@router.post("/{group_id}/leave", response_model=LeaveGroupResponse, status_code=200)
async def leave_group_route(
    group_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        group_deleted = await leave_group(db, group_id, user.id)
        await db.commit()
    except DOMAIN_ERRORS as e:
        await db.rollback()
        raise domain_error(e) from e

    return LeaveGroupResponse(ok=True, group_deleted=group_deleted)


@router.get("/{group_id}/memos", response_model=list[MemoResponse])
async def list_group_memos_route(
    group_id: UUID,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        memos = await list_group_memos(db, group_id, user.id)
    except DOMAIN_ERRORS as e:
        raise domain_error(e) from e
    return [memo_out(m) for m in memos]
