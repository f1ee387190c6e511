import uuid

import pytest

from app.core.errors import Forbidden, NotFound, Unauthorized, ValidationError
from app.models.comment import Comment
from app.services import comments as comment_service
from app.services import memos as memo_service
from app.services.groups import create_group, update_role
from app.services.permissions import Role

pytestmark = pytest.mark.anyio


async def test_personal_memo_crud(client, authed_user):
    await authed_user(client)

    r = await client.post(
        "/memos",
        json={"title": "Ramen", "content": "try the miso", "place": "Sapporo", "latitude": 43.06, "longitude": 141.35},
    )
    assert r.status_code == 201, r.text
    memo = r.json()
    assert memo["completed"] is False
    assert memo["group_id"] is None

    r = await client.get("/memos")
    assert [m["id"] for m in r.json()] == [memo["id"]]

    r = await client.patch(f"/memos/{memo['id']}", json={"title": "Ramen!!", "color": "#ffcccc"})
    assert r.status_code == 200, r.text
    assert r.json()["title"] == "Ramen!!"
    assert r.json()["content"] == "try the miso"

    r = await client.post(f"/memos/{memo['id']}/complete")
    assert r.json()["completed"] is True
    r = await client.post(f"/memos/{memo['id']}/complete")
    assert r.json()["completed"] is False

    r = await client.delete(f"/memos/{memo['id']}")
    assert r.json() == {"ok": True}
    r = await client.get(f"/memos/{memo['id']}")
    assert r.status_code == 404


async def test_memo_coordinates_are_bounded(client, authed_user):
    await authed_user(client)
    r = await client.post("/memos", json={"title": "Nowhere", "latitude": 91, "longitude": 0})
    assert r.status_code == 422


async def test_personal_memo_is_private(client, authed_user, set_auth_cookie):
    a = await authed_user(client)
    b = await authed_user(client)

    set_auth_cookie(client, a["token"])
    r = await client.post("/memos", json={"title": "secret"})
    memo_id = r.json()["id"]

    set_auth_cookie(client, b["token"])
    r = await client.get(f"/memos/{memo_id}")
    assert r.status_code == 404
    r = await client.get("/memos")
    assert r.json() == []


async def test_viewer_cannot_create_group_memo(client, authed_user, set_auth_cookie, push_sender):
    viewer = await authed_user(client)
    owner = await authed_user(client, display_name="Owner")

    r = await client.post("/groups", json={"name": "Trip", "member_user_ids": [viewer["id"]]})
    group_id = r.json()["id"]

    set_auth_cookie(client, viewer["token"])
    await client.post(
        "/push/subscriptions",
        json={"endpoint": "https://push.example.com/viewer", "keys": {"p256dh": "k", "auth": "a"}},
    )
    r = await client.post("/memos", json={"title": "Nope", "group_id": group_id})
    assert r.status_code == 403

    set_auth_cookie(client, owner["token"])
    r = await client.post("/memos", json={"title": "Dinner", "group_id": group_id})
    assert r.status_code == 201, r.text
    memo_id = r.json()["id"]

    # the other group members are notified
    assert [endpoint for endpoint, _ in push_sender.sent] == ["https://push.example.com/viewer"]
    assert "Dinner" in push_sender.sent[0][1]

    set_auth_cookie(client, viewer["token"])
    r = await client.get(f"/groups/{group_id}/memos")
    assert [m["id"] for m in r.json()] == [memo_id]
    r = await client.post(f"/memos/{memo_id}/complete")
    assert r.status_code == 403


async def test_outsider_cannot_read_group_memos(client, authed_user, set_auth_cookie):
    outsider = await authed_user(client)
    await authed_user(client)

    r = await client.post("/groups", json={"name": "Closed", "member_user_ids": []})
    group_id = r.json()["id"]
    r = await client.post("/memos", json={"title": "Inside", "group_id": group_id})
    memo_id = r.json()["id"]

    set_auth_cookie(client, outsider["token"])
    assert (await client.get(f"/groups/{group_id}/memos")).status_code == 401
    assert (await client.get(f"/memos/{memo_id}")).status_code == 401


async def test_comments_flow(client, authed_user, set_auth_cookie):
    b = await authed_user(client)
    a = await authed_user(client)

    r = await client.post("/groups", json={"name": "Chat", "member_user_ids": [b["id"]]})
    group_id = r.json()["id"]
    r = await client.post("/memos", json={"title": "Picnic", "group_id": group_id})
    memo_id = r.json()["id"]

    # viewers may comment
    set_auth_cookie(client, b["token"])
    r = await client.post(f"/memos/{memo_id}/comments", json={"content": "count me in"})
    assert r.status_code == 201, r.text
    comment = r.json()
    assert comment["author"]["handle"] == b["handle"]
    assert comment["color"] in comment_service.COMMENT_COLORS

    r = await client.patch(f"/comments/{comment['id']}", json={"content": "count me in!"})
    assert r.status_code == 200
    assert r.json()["content"] == "count me in!"
    assert r.json()["color"] == comment["color"]

    set_auth_cookie(client, a["token"])
    r = await client.get(f"/memos/{memo_id}/comments")
    assert [c["id"] for c in r.json()] == [comment["id"]]
    r = await client.delete(f"/comments/{comment['id']}")
    assert r.status_code == 403

    set_auth_cookie(client, b["token"])
    r = await client.delete(f"/comments/{comment['id']}")
    assert r.json() == {"ok": True}


# --- service level ---


async def test_edit_and_delete_rights(db_session, make_user):
    owner, editor, viewer = await make_user(), await make_user(), await make_user()
    g = await create_group(db_session, owner.id, "G", [editor.id, viewer.id])
    await update_role(db_session, g.id, owner.id, editor.id, Role.EDITOR)

    mine = await memo_service.create_memo(db_session, user_id=editor.id, title="e", content="", group_id=g.id)
    theirs = await memo_service.create_memo(db_session, user_id=owner.id, title="o", content="", group_id=g.id)

    updated = await memo_service.update_memo(db_session, mine.id, editor.id, content="edited")
    assert updated.content == "edited"
    with pytest.raises(Forbidden):
        await memo_service.update_memo(db_session, theirs.id, editor.id, content="nope")
    with pytest.raises(Forbidden):
        await memo_service.delete_memo(db_session, mine.id, viewer.id)

    # owner may clean up anybody's memo
    await memo_service.delete_memo(db_session, mine.id, owner.id)
    with pytest.raises(NotFound):
        await memo_service.get_memo(db_session, mine.id, owner.id)


async def test_update_memo_validation(db_session, make_user):
    user = await make_user()
    memo = await memo_service.create_memo(db_session, user_id=user.id, title="t", content="c")

    with pytest.raises(ValidationError):
        await memo_service.update_memo(db_session, memo.id, user.id, title=None)
    with pytest.raises(ValidationError):
        await memo_service.update_memo(db_session, memo.id, user.id, latitude=120.0)
    with pytest.raises(ValidationError):
        await memo_service.update_memo(db_session, memo.id, user.id, created_by_id=uuid.uuid4())


async def test_group_memo_needs_membership(db_session, make_user):
    owner, outsider = await make_user(), await make_user()
    g = await create_group(db_session, owner.id, "G", [])

    with pytest.raises(Unauthorized):
        await memo_service.create_memo(db_session, user_id=outsider.id, title="x", content="", group_id=g.id)
    with pytest.raises(NotFound):
        await memo_service.create_memo(db_session, user_id=owner.id, title="x", content="", group_id=uuid.uuid4())


async def test_deleting_memo_deletes_comments(db_session, make_user):
    import sqlalchemy as sa

    user = await make_user()
    memo = await memo_service.create_memo(db_session, user_id=user.id, title="t", content="c")
    await comment_service.create_comment(db_session, memo.id, user.id, "one")
    await comment_service.create_comment(db_session, memo.id, user.id, "two")

    await memo_service.delete_memo(db_session, memo.id, user.id)

    left = (await db_session.execute(sa.select(sa.func.count(Comment.id)))).scalar_one()
    assert left == 0


async def test_blank_comment_is_rejected(db_session, make_user):
    user = await make_user()
    memo = await memo_service.create_memo(db_session, user_id=user.id, title="t", content="c")
    with pytest.raises(ValidationError):
        await comment_service.create_comment(db_session, memo.id, user.id, "   ")
