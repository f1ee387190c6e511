import uuid

import pytest

from app.services.permissions import (
    Role,
    assignable_roles,
    can_assign,
    can_change_role,
    can_complete_memo,
    can_create_memo,
    can_delete_memo,
    can_edit_memo,
    can_manage_members,
    can_remove_member,
    parse_role,
)

ME = uuid.uuid4()
OTHER = uuid.uuid4()


def test_roles_are_totally_ordered():
    assert Role.OWNER.outranks(Role.ADMIN)
    assert Role.ADMIN.outranks(Role.EDITOR)
    assert Role.EDITOR.outranks(Role.VIEWER)
    assert not Role.VIEWER.outranks(Role.VIEWER)


def test_parse_role_normalizes_case_and_rejects_unknown():
    assert parse_role(" admin ") is Role.ADMIN
    assert parse_role(Role.EDITOR) is Role.EDITOR
    with pytest.raises(ValueError):
        parse_role("SUPERUSER")


def test_only_owner_and_admin_manage_members():
    assert can_manage_members(Role.OWNER)
    assert can_manage_members(Role.ADMIN)
    assert not can_manage_members(Role.EDITOR)
    assert not can_manage_members(Role.VIEWER)
    assert not can_manage_members(None)


def test_assignable_roles():
    assert assignable_roles(Role.OWNER) == {Role.ADMIN, Role.EDITOR, Role.VIEWER}
    assert assignable_roles(Role.ADMIN) == {Role.EDITOR, Role.VIEWER}
    assert assignable_roles(Role.EDITOR) == frozenset()
    # nobody hands out OWNER
    assert not any(can_assign(r, Role.OWNER) for r in Role)


@pytest.mark.parametrize(
    "actor, target, allowed",
    [
        (Role.OWNER, Role.ADMIN, True),
        (Role.OWNER, Role.VIEWER, True),
        (Role.OWNER, Role.OWNER, False),
        (Role.ADMIN, Role.EDITOR, True),
        (Role.ADMIN, Role.VIEWER, True),
        (Role.ADMIN, Role.ADMIN, False),
        (Role.ADMIN, Role.OWNER, False),
        (Role.EDITOR, Role.VIEWER, False),
        (Role.VIEWER, Role.VIEWER, False),
    ],
)
def test_can_change_role(actor, target, allowed):
    assert can_change_role(actor, target, ME, OTHER) is allowed


def test_nobody_changes_their_own_role():
    for role in Role:
        assert not can_change_role(role, role, ME, ME)


def test_remove_member_rules():
    assert can_remove_member(Role.VIEWER, Role.VIEWER, ME, ME)
    assert can_remove_member(Role.OWNER, Role.OWNER, ME, ME)
    assert can_remove_member(Role.OWNER, Role.ADMIN, ME, OTHER)
    assert can_remove_member(Role.ADMIN, Role.EDITOR, ME, OTHER)
    assert not can_remove_member(Role.ADMIN, Role.ADMIN, ME, OTHER)
    assert not can_remove_member(Role.EDITOR, Role.VIEWER, ME, OTHER)


def test_memo_rules():
    assert not can_create_memo(Role.VIEWER)
    assert can_create_memo(Role.EDITOR)
    assert not can_complete_memo(Role.VIEWER)
    assert can_complete_memo(Role.EDITOR)

    assert can_edit_memo(Role.EDITOR, is_creator=True)
    assert not can_edit_memo(Role.EDITOR, is_creator=False)
    assert can_edit_memo(Role.ADMIN, is_creator=False)
    assert not can_delete_memo(Role.VIEWER, is_creator=True)
    assert can_delete_memo(Role.OWNER, is_creator=False)
