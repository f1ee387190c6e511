"""
Role rules for group members.

Everything here is pure: callers look up the roles and pass them in, so
the same rules back the services, the routes and the tests.
"""
from __future__ import annotations

import enum
from uuid import UUID


class Role(str, enum.Enum):
    OWNER = "OWNER"
    ADMIN = "ADMIN"
    EDITOR = "EDITOR"
    VIEWER = "VIEWER"

    @property
    def rank(self) -> int:
        return _RANK[self]

    def outranks(self, other: "Role") -> bool:
        return self.rank > other.rank


_RANK = {
    Role.VIEWER: 0,
    Role.EDITOR: 1,
    Role.ADMIN: 2,
    Role.OWNER: 3,
}

_ASSIGNABLE = {
    Role.OWNER: frozenset({Role.ADMIN, Role.EDITOR, Role.VIEWER}),
    Role.ADMIN: frozenset({Role.EDITOR, Role.VIEWER}),
}

MANAGER_ROLES = frozenset({Role.OWNER, Role.ADMIN})


def parse_role(value: str | Role) -> Role:
    if isinstance(value, Role):
        return value
    try:
        return Role(str(value).strip().upper())
    except ValueError:
        raise ValueError(f"Unknown role: {value!r}") from None


def assignable_roles(actor_role: Role) -> frozenset[Role]:
    return _ASSIGNABLE.get(actor_role, frozenset())


def can_manage_members(role: Role | None) -> bool:
    return role in MANAGER_ROLES


def can_change_role(actor_role: Role, target_role: Role, actor_id: UUID, target_id: UUID) -> bool:
    if actor_id == target_id:
        return False
    if actor_role is Role.OWNER:
        return target_role is not Role.OWNER
    if actor_role is Role.ADMIN:
        return target_role not in MANAGER_ROLES
    return False


def can_assign(actor_role: Role, new_role: Role) -> bool:
    return new_role in assignable_roles(actor_role)


def can_remove_member(actor_role: Role, target_role: Role, actor_id: UUID, target_id: UUID) -> bool:
    # leaving is always allowed; the owner leaving takes the group with them
    if actor_id == target_id:
        return True
    if actor_role is Role.OWNER:
        return target_role is not Role.OWNER
    if actor_role is Role.ADMIN:
        return target_role not in MANAGER_ROLES
    return False


def can_create_memo(role: Role | None) -> bool:
    return role is not None and role is not Role.VIEWER


def can_complete_memo(role: Role | None) -> bool:
    return role is not None and role is not Role.VIEWER


def can_edit_memo(role: Role | None, *, is_creator: bool) -> bool:
    if role is None or role is Role.VIEWER:
        return False
    return is_creator or role in MANAGER_ROLES


def can_delete_memo(role: Role | None, *, is_creator: bool) -> bool:
    return can_edit_memo(role, is_creator=is_creator)
