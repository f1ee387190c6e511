import uuid

import pytest

from app.core.errors import Forbidden, NotFound, ValidationError
from app.services import follows as follow_service

pytestmark = pytest.mark.anyio


async def test_follow_request_flow(client, authed_user, set_auth_cookie):
    b = await authed_user(client)
    a = await authed_user(client)

    r = await client.post("/follows", json={"handle": b["handle"]})
    assert r.status_code == 201, r.text
    assert r.json()["status"] == "PENDING"

    r = await client.post("/follows", json={"handle": b["handle"]})
    assert r.status_code == 409
    assert r.json()["detail"] == "Follow request already sent"

    set_auth_cookie(client, b["token"])
    r = await client.get("/follows/requests")
    [req] = r.json()
    assert req["user"]["handle"] == a["handle"]

    r = await client.post(f"/follows/requests/{req['id']}/accept")
    assert r.status_code == 200, r.text
    assert r.json()["status"] == "ACCEPTED"

    r = await client.get("/follows/followers")
    assert [u["handle"] for u in r.json()["users"]] == [a["handle"]]

    set_auth_cookie(client, a["token"])
    r = await client.get("/follows/following")
    assert [u["handle"] for u in r.json()["users"]] == [b["handle"]]

    r = await client.post("/follows/unfollow", json={"handle": b["handle"]})
    assert r.json() == {"ok": True}
    r = await client.post("/follows/unfollow", json={"handle": b["handle"]})
    assert r.status_code == 404


async def test_cannot_follow_self(client, authed_user):
    a = await authed_user(client)
    r = await client.post("/follows", json={"handle": a["handle"]})
    assert r.status_code == 400


async def test_only_target_answers_request(db_session, make_user):
    a, b, c = await make_user(), await make_user(), await make_user()
    f = await follow_service.send_follow_request(db_session, a.id, b.id)

    with pytest.raises(Forbidden):
        await follow_service.accept_follow_request(db_session, f.id, c.id)
    with pytest.raises(NotFound):
        await follow_service.accept_follow_request(db_session, uuid.uuid4(), b.id)

    rejected = await follow_service.reject_follow_request(db_session, f.id, b.id)
    assert rejected.status == follow_service.REJECTED
    # answered requests cannot be answered again
    with pytest.raises(NotFound):
        await follow_service.accept_follow_request(db_session, f.id, b.id)


async def test_remove_follower(db_session, make_user):
    a, b = await make_user(), await make_user()
    f = await follow_service.send_follow_request(db_session, a.id, b.id)

    # pending follows are not followers yet
    with pytest.raises(NotFound):
        await follow_service.remove_follower(db_session, b.id, a.id)

    await follow_service.accept_follow_request(db_session, f.id, b.id)
    await follow_service.remove_follower(db_session, b.id, a.id)
    assert await follow_service.list_followers(db_session, b.id) == []

    with pytest.raises(ValidationError):
        await follow_service.send_follow_request(db_session, a.id, a.id)
