from __future__ import annotations

from datetime import datetime
from pydantic import BaseModel, Field
from uuid import UUID
from typing import List

from app.services.permissions import Role


class CreateGroupRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    member_user_ids: List[UUID] = Field(default_factory=list)  # creator is dropped if listed


class RenameGroupRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)


class GroupListItem(BaseModel):
    id: UUID
    name: str
    owner_id: UUID
    created_at: datetime
    role: Role
    member_count: int


class GroupMember(BaseModel):
    id: UUID
    handle: str
    display_name: str
    avatar_url: str | None
    role: Role


class GroupDetailResponse(BaseModel):
    id: UUID
    name: str
    owner_id: UUID
    created_at: datetime
    role: Role
    members: List[GroupMember]


class AddGroupMembersRequest(BaseModel):
    member_user_ids: List[UUID] = Field(default_factory=list)


class AddGroupMembersResponse(BaseModel):
    ok: bool
    added_user_ids: List[UUID]
    skipped_user_ids: List[UUID]


class UpdateRoleRequest(BaseModel):
    role: Role


class MembershipResponse(BaseModel):
    group_id: UUID
    user_id: UUID
    role: Role


class RemoveMemberResponse(BaseModel):
    ok: bool
    group_deleted: bool


class LeaveGroupResponse(BaseModel):
    ok: bool
    group_deleted: bool


class DeleteGroupResponse(BaseModel):
    ok: bool
