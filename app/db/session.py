import app.db.base  # noqa: F401

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from app.core.config import settings
from app.db.base_class import Base


def _engine_kwargs(url: str) -> dict[str, object]:
    kwargs: dict[str, object] = {
        "echo": settings.env == "local",
        "pool_pre_ping": True,
    }
    if url.startswith("sqlite"):
        # aiosqlite hands the connection to a worker thread
        kwargs["connect_args"] = {"check_same_thread": False}
    if settings.env == "test":
        kwargs["poolclass"] = NullPool
    return kwargs


engine = create_async_engine(
    settings.database_url,
    **_engine_kwargs(settings.database_url),
)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    class_=AsyncSession,
)


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


__all__ = ["AsyncSessionLocal", "Base", "engine", "get_db_session"]
