import json

import pytest

from app.models.subscription import PushSubscription
from app.services import push as push_service
from app.services.subscriptions import add_subscription, list_subscriptions_for_user

pytestmark = pytest.mark.anyio

SUB = {"endpoint": "https://push.example.com/abc", "keys": {"p256dh": "key-1", "auth": "auth-1"}}


async def test_subscription_lifecycle(client, authed_user):
    await authed_user(client)

    r = await client.post("/push/subscriptions/check", json={"endpoint": SUB["endpoint"]})
    assert r.json() == {"is_subscribed": False}

    r = await client.post("/push/subscriptions", json=SUB)
    assert r.json() == {"ok": True, "method": "add"}

    r = await client.post("/push/subscriptions", json={**SUB, "keys": {"p256dh": "key-2", "auth": "auth-2"}})
    assert r.json() == {"ok": True, "method": "update"}

    r = await client.post("/push/subscriptions/check", json={"endpoint": SUB["endpoint"]})
    assert r.json() == {"is_subscribed": True}

    r = await client.request("DELETE", "/push/subscriptions", json={"endpoint": SUB["endpoint"]})
    assert r.json() == {"ok": True, "method": "remove"}

    r = await client.request("DELETE", "/push/subscriptions", json={"endpoint": SUB["endpoint"]})
    assert r.status_code == 404


async def test_vapid_public_key_is_public(client):
    r = await client.get("/push/vapid-public-key")
    assert r.status_code == 200
    assert "public_key" in r.json()


def test_build_payload():
    assert push_service.build_payload("t", "b") == {"title": "t", "body": "b", "icon": "/favicon.ico"}
    assert push_service.build_payload("t", "b", url="/memos/1")["url"] == "/memos/1"


async def test_deliver_survives_failing_endpoints():
    subs = [PushSubscription(endpoint=f"https://push.example.com/{i}", p256dh="k", auth="a") for i in range(3)]
    seen = []

    async def flaky(sub, data):
        seen.append(sub.endpoint)
        if sub.endpoint.endswith("/1"):
            raise RuntimeError("gone")

    delivered = await push_service.deliver(subs, {"title": "hi", "body": "こんにちは"}, send=flaky)

    assert delivered == 2
    assert sorted(seen) == [s.endpoint for s in subs]


async def test_notify_user_sends_json_to_each_subscription(db_session, make_user):
    user = await make_user()
    await add_subscription(db_session, user_id=user.id, endpoint="https://a", p256dh="k", auth="a")
    await add_subscription(db_session, user_id=user.id, endpoint="https://b", p256dh="k", auth="a")
    assert len(await list_subscriptions_for_user(db_session, user.id)) == 2

    sent = []

    async def record(sub, data):
        sent.append((sub.endpoint, json.loads(data)))

    delivered = await push_service.notify_user(db_session, user.id, {"title": "x", "body": "y"}, send=record)
    assert delivered == 2
    assert sorted(e for e, _ in sent) == ["https://a", "https://b"]
    assert all(body == {"title": "x", "body": "y"} for _, body in sent)


async def test_notify_user_without_vapid_is_noop(db_session, make_user, monkeypatch):
    from app.core.config import settings

    monkeypatch.setattr(settings, "vapid_private_key", None)
    user = await make_user()
    await add_subscription(db_session, user_id=user.id, endpoint="https://a", p256dh="k", auth="a")

    assert await push_service.notify_user(db_session, user.id, {"title": "x", "body": "y"}) == 0
