import os
import uuid
from contextlib import asynccontextmanager

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# IMPORTANT:
# Set env vars BEFORE importing app.main (pydantic settings load at import time)
os.environ["ENV"] = "test"
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("JWT_SECRET", "dev-test-secret")
os.environ.setdefault("CORS_ORIGINS", "http://localhost:5173")

from app.main import app as fastapi_app  # noqa: E402
from app.db.base_class import Base  # noqa: E402
import app.db.base  # noqa: F401,E402  (register models)
from app.db.session import get_db_session  # noqa: E402
from app.api.deps import get_db, get_push_sender, get_storage  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


class FakeS3:
    """Just enough of the boto3 S3 client for AvatarStorage."""

    def __init__(self):
        self.objects: dict[tuple[str, str], tuple[bytes, str]] = {}
        self.buckets: set[str] = set()

    def _missing(self, op: str):
        from botocore.exceptions import ClientError

        return ClientError({"Error": {"Code": "NoSuchKey", "Message": "missing"}}, op)

    def head_bucket(self, Bucket):
        if Bucket not in self.buckets:
            from botocore.exceptions import ClientError

            raise ClientError({"Error": {"Code": "404", "Message": "missing"}}, "HeadBucket")

    def create_bucket(self, Bucket):
        self.buckets.add(Bucket)

    def put_object(self, Bucket, Key, Body, ContentType):
        self.objects[(Bucket, Key)] = (Body, ContentType)

    def get_object(self, Bucket, Key):
        if (Bucket, Key) not in self.objects:
            raise self._missing("GetObject")
        body, content_type = self.objects[(Bucket, Key)]

        class _Body:
            def read(self_inner):
                return body

        return {"Body": _Body(), "ContentType": content_type}

    def delete_object(self, Bucket, Key):
        self.objects.pop((Bucket, Key), None)


class RecordingSender:
    def __init__(self):
        self.sent: list[tuple[str, str]] = []

    async def __call__(self, sub, data: str) -> None:
        self.sent.append((sub.endpoint, data))


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def db_session(engine):
    maker = async_sessionmaker(bind=engine, expire_on_commit=False, class_=AsyncSession)
    async with maker() as session:
        yield session


@pytest.fixture
def fake_s3():
    return FakeS3()


@pytest.fixture
def avatar_storage(fake_s3):
    from app.services.storage import AvatarStorage

    return AvatarStorage(client=fake_s3, bucket="test-avatars")


@pytest.fixture
def push_sender():
    return RecordingSender()


@pytest.fixture
async def client(db_session, avatar_storage, push_sender):
    """
    Overrides app.db.session.get_db_session and app.api.deps.get_db so every
    request shares the test session, plus the storage and push collaborators.
    """

    async def _override_get_db_session():
        yield db_session

    fastapi_app.dependency_overrides[get_db_session] = _override_get_db_session
    fastapi_app.dependency_overrides[get_db] = _override_get_db_session
    fastapi_app.dependency_overrides[get_storage] = lambda: avatar_storage
    fastapi_app.dependency_overrides[get_push_sender] = lambda: push_sender

    transport = ASGITransport(app=fastapi_app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c

    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def async_client(client):
    yield client

# --- Small helpers ---

def _unique(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:10]}"


@pytest.fixture
def unique_str():
    return _unique


@pytest.fixture
def client_factory():
    @asynccontextmanager
    async def _factory():
        transport = ASGITransport(app=fastapi_app)
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c

    return _factory


@pytest.fixture
def user_factory(unique_str):
    async def _create(
        client: AsyncClient,
        *,
        email: str | None = None,
        handle: str | None = None,
        display_name: str | None = None,
        password: str = "SuperSecret123",
    ):
        email = email or f"{unique_str('user')}@example.com"
        handle = handle or unique_str("user")
        display_name = display_name or handle
        r = await client.post(
            "/auth/register",
            json={
                "email": email,
                "handle": handle,
                "display_name": display_name,
                "password": password,
            },
        )
        assert r.status_code in (200, 201), r.text
        data = r.json()
        assert "id" in data
        return {
            "id": data["id"],
            "email": email,
            "handle": handle,
            "display_name": display_name,
            "password": password,
        }

    return _create


@pytest.fixture
def login_helper():
    async def _login(client: AsyncClient, *, email: str, password: str):
        client.cookies.clear()
        r = await client.post("/auth/login", json={"email": email, "password": password})
        assert r.status_code == 200, r.text
        token = client.cookies.get("access_token")
        assert token, "Login did not set access_token cookie"
        return token

    return _login


@pytest.fixture
def authed_user(user_factory, login_helper):
    async def _create(client: AsyncClient, **kwargs):
        user = await user_factory(client, **kwargs)
        token = await login_helper(client, email=user["email"], password=user["password"])
        user["token"] = token
        return user

    return _create


@pytest.fixture
def set_auth_cookie():
    def _set(client: AsyncClient, token: str | None):
        client.cookies.clear()
        if token:
            client.cookies.set("access_token", token)

    return _set


@pytest.fixture
def make_user(db_session, unique_str):
    """Insert a user directly, for service-level tests."""
    from app.models.user import User

    async def _make(handle: str | None = None) -> User:
        handle = handle or unique_str("u")
        user = User(
            email=f"{handle}@example.com",
            handle=handle,
            display_name=handle,
            password_hash="x",
        )
        db_session.add(user)
        await db_session.flush()
        return user

    return _make
