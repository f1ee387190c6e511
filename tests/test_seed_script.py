import pytest

from app.services.friends import is_friend
from app.services.groups import count_user_groups
from app.services.memos import list_personal_memos
from app.services.users import get_user_by_handle
from scripts.seed_demo_data import DEMO_USERS, demo_email, run_seed

pytestmark = pytest.mark.anyio


def test_demo_email():
    assert demo_email("hana", "example.com") == "hana@example.com"


async def test_seed_apply_is_idempotent(db_session):
    stats = await run_seed(db_session, apply=True, domain="example.com")
    assert stats.users_created == len(DEMO_USERS)
    assert stats.friendships == len(DEMO_USERS) - 1
    assert stats.groups == 1
    assert stats.memos == 3

    hana = await get_user_by_handle(db_session, "hana")
    sora = await get_user_by_handle(db_session, "sora")
    assert await is_friend(db_session, hana.id, sora.id)
    assert await count_user_groups(db_session, sora.id) == 1
    # demo memos live in the group, not on the personal map
    assert await list_personal_memos(db_session, hana.id) == []

    again = await run_seed(db_session, apply=True, domain="example.com")
    assert again.users_created == 0
    assert again.users_existing == len(DEMO_USERS)
    assert again.friendships == 0
    assert again.groups == 0


async def test_seed_dry_run_writes_nothing(db_session):
    stats = await run_seed(db_session, apply=False, domain="example.com")
    assert stats.users_created == len(DEMO_USERS)
    assert await get_user_by_handle(db_session, "hana") is None
