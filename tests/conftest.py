"""Shared test fixtures.

The app runs against a throwaway SQLite file (aiosqlite) whose schema is
built from the ORM metadata, and an in-memory stand-in for redis.
"""

from __future__ import annotations

import os
import time
from collections.abc import AsyncGenerator, Awaitable, Callable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

os.environ.setdefault("ASMR_JWT_SECRET_KEY", "test-secret-key-for-session-tokens")
os.environ.setdefault("ASMR_SERVER_AUTH_TOKEN", "test-server-token")
os.environ.setdefault("ASMR_LOG_LEVEL", "WARNING")

from asmr import redis_client  # noqa: E402
from asmr.config import get_settings  # noqa: E402
from asmr.database import close_db, get_engine, init_db  # noqa: E402
from asmr.db.base import Base  # noqa: E402
from asmr.db.models import (  # noqa: E402
    AsmrResource,
    MediaAsset,
    ResourceAudio,
    ResourceImage,
    ResourceSubtitle,
    User,
)
from asmr.main import create_app  # noqa: E402
from asmr.media.storage import reset_storage_client  # noqa: E402

SERVER_TOKEN = "test-server-token"
DEFAULT_PASSWORD = "password123"


class FakeRedis:
    """Just enough of ``redis.asyncio.Redis`` for rate limiting and login lockout."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}
        self.ttl: dict[str, float] = {}

    def _expired(self, key: str) -> bool:
        deadline = self.ttl.get(key)
        if deadline is not None and deadline <= time.monotonic():
            self.data.pop(key, None)
            self.ttl.pop(key, None)
            return True
        return False

    async def get(self, key: str) -> str | None:
        if self._expired(key):
            return None
        return self.data.get(key)

    async def set(self, key: str, value: Any, ex: int | None = None) -> bool:  # noqa: ANN401
        self.data[key] = str(value)
        if ex is not None:
            self.ttl[key] = time.monotonic() + ex
        return True

    async def incr(self, key: str) -> int:
        self._expired(key)
        value = int(self.data.get(key, "0")) + 1
        self.data[key] = str(value)
        return value

    async def expire(self, key: str, seconds: int) -> bool:
        if key not in self.data:
            return False
        self.ttl[key] = time.monotonic() + seconds
        return True

    async def delete(self, *keys: str) -> int:
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
            self.ttl.pop(key, None)
        return removed

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        self.data.clear()

    def pipeline(self) -> FakePipeline:
        return FakePipeline(self)


class FakePipeline:
    def __init__(self, redis: FakeRedis) -> None:
        self.redis = redis
        self.calls: list[tuple[str, tuple[Any, ...]]] = []

    def incr(self, key: str) -> FakePipeline:
        self.calls.append(("incr", (key,)))
        return self

    def expire(self, key: str, seconds: int) -> FakePipeline:
        self.calls.append(("expire", (key, seconds)))
        return self

    async def execute(self) -> list[Any]:
        results = [await getattr(self.redis, name)(*args) for name, args in self.calls]
        self.calls.clear()
        return results


@dataclass
class AuthedUser:
    """A registered account and the bearer headers to act as it."""

    id: int
    email: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


def session_token_from(response: Any) -> str:  # noqa: ANN401
    """The session token carried in a response's Set-Cookie header."""
    name = get_settings().session_cookie_name
    for header in response.headers.get_list("set-cookie"):
        cookie_name, _, rest = header.partition("=")
        if cookie_name.strip() == name:
            return rest.split(";", 1)[0]
    msg = f"no {name} cookie in response"
    raise AssertionError(msg)


@pytest.fixture
def test_settings(tmp_path, monkeypatch) -> Any:  # noqa: ANN401
    """Point the app at a fresh SQLite file; storage starts unconfigured."""
    monkeypatch.setenv("ASMR_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'asmr-test.db'}")
    for name in ("ENDPOINT", "ACCESS_KEY_ID", "SECRET_ACCESS_KEY", "BUCKET", "AUDIO_BUCKET"):
        monkeypatch.delenv(f"ASMR_STORAGE_{name}", raising=False)
    get_settings.cache_clear()
    reset_storage_client()
    yield get_settings()
    get_settings.cache_clear()
    reset_storage_client()


@pytest.fixture
def fake_redis(monkeypatch) -> FakeRedis:
    """Install an in-memory redis as the process-wide pool."""
    fake = FakeRedis()
    monkeypatch.setattr(redis_client, "_pool", fake)
    return fake


@pytest_asyncio.fixture
async def client(test_settings, fake_redis) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against a fresh app and database."""
    app = create_app()
    await init_db(test_settings.database_url)
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    await close_db()


@pytest_asyncio.fixture
async def db_factory(client: AsyncClient) -> async_sessionmaker[AsyncSession]:
    """Session factory for seeding and asserting; each use should be short-lived."""
    return async_sessionmaker(get_engine(), class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def register(client: AsyncClient, db_factory) -> Callable[..., Awaitable[AuthedUser]]:
    """
    Register an account through the API and return it.

    ``role`` and ``points`` are set directly in the database afterwards.
    The client's cookie jar is cleared so tests can act as several users.
    """

    async def _register(
        email: str = "listener@example.com",
        password: str = DEFAULT_PASSWORD,
        *,
        role: str | None = None,
        points: int | None = None,
    ) -> AuthedUser:
        response = await client.post("/auth/register", json={"email": email, "password": password})
        assert response.status_code == 201, response.text
        user_id = response.json()["data"]["user"]["id"]
        token = session_token_from(response)
        client.cookies.clear()

        values: dict[str, Any] = {}
        if role is not None:
            values["role"] = role
        if points is not None:
            values["points"] = points
        if values:
            async with db_factory() as db:
                await db.execute(update(User).where(User.id == user_id).values(**values))
                await db.commit()
        return AuthedUser(id=user_id, email=email, token=token)

    return _register


@pytest_asyncio.fixture
async def seed_resource(db_factory) -> Callable[..., Awaitable[int]]:
    """
    Insert a resource with one audio track per filename and return its id.

    Media filenames must be unique across a test.
    """

    async def _seed(
        title: str = "Rainy night",
        *,
        price: int = 100,
        public: bool = True,
        visibility: list[str] | None = None,
        audio_files: tuple[str, ...] = ("rain/track-01.mp3",),
        subtitle_files: tuple[str, ...] = (),
        image_files: tuple[str, ...] = (),
    ) -> int:
        now = datetime.now(timezone.utc)
        async with db_factory() as db:
            resource = AsmrResource(
                title=title,
                description=f"{title} description",
                price=price,
                public=public,
                visibility=list(visibility or []),
                created_at=now,
                updated_at=now,
            )
            for order, filename in enumerate(audio_files, start=1):
                media = MediaAsset(kind="audio", filename=filename, mime_type="audio/mpeg", created_at=now)
                resource.audios.append(
                    ResourceAudio(order=order, title=f"Track {order}", media=media, duration=600)
                )
            for filename in subtitle_files:
                media = MediaAsset(kind="subtitle", filename=filename, language="jp", created_at=now)
                resource.subtitles.append(ResourceSubtitle(language="jp", media=media))
            for filename in image_files:
                media = MediaAsset(kind="image", filename=filename, mime_type="image/png", created_at=now)
                resource.images.append(ResourceImage(media=media, caption=filename))
            db.add(resource)
            await db.commit()
            return resource.id

    return _seed


@pytest_asyncio.fixture
async def points_of(db_factory) -> Callable[[int], Awaitable[int]]:
    """Read a user's balance straight from the database."""

    async def _points(user_id: int) -> int:
        async with db_factory() as db:
            user = await db.get(User, user_id)
            assert user is not None
            return user.points

    return _points
