"""Shared fixtures: in-memory SQLite, fake Redis and email, an HTTP client"""

import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret"
os.environ["SMTP_USERNAME"] = ""
os.environ["SMTP_PASSWORD"] = ""

from datetime import datetime
from typing import Optional
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from swapmarket.core.database import Base, get_db, seed_roles
from swapmarket.core.redis import get_redis
from swapmarket.core.security import create_access_token
from swapmarket.main import app
from swapmarket.middleware.rate_limit import endpoint_limiter
from swapmarket.models import (
    Notification,
    Product,
    ProductStatus,
    RedemptionType,
    RoleName,
    Shoutout,
    Swap,
    SwapStatus,
    UserProfile,
)
from swapmarket.services.auth import AuthService
from swapmarket.services.email_service import get_email_service


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def session_maker(engine):
    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with maker() as session:
        await seed_roles(session)
    return maker


@pytest.fixture
async def db(session_maker):
    async with session_maker() as session:
        yield session


@pytest.fixture
def fake_redis():
    """Dict-backed stand-in for the redis.asyncio client"""
    store = {}

    async def setex(key, ttl, value):
        store[key] = str(value)
        return True

    async def get(key):
        return store.get(key)

    async def delete(*keys):
        return sum(1 for key in keys if store.pop(key, None) is not None)

    redis = AsyncMock()
    redis.setex.side_effect = setex
    redis.get.side_effect = get
    redis.delete.side_effect = delete
    redis.store = store
    return redis


@pytest.fixture
def fake_email():
    email = AsyncMock()
    email.send_email.return_value = True
    email.send_password_reset_email.return_value = True
    return email


@pytest.fixture
async def client(session_maker, fake_redis, fake_email):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    async def override_get_redis():
        return fake_redis

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis] = override_get_redis
    app.dependency_overrides[get_email_service] = lambda: fake_email
    endpoint_limiter.reset()

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


def auth_headers(user: UserProfile) -> dict:
    token, _ = create_access_token(str(user.id), user.email, user.role_name)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_user(session_maker):
    async def _make_user(
        email: str,
        password: str = "password123",
        role: RoleName = RoleName.USER,
        first_name: Optional[str] = None,
        last_name: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> UserProfile:
        async with session_maker() as session:
            user = await AuthService(session, redis=None).signup(
                email, password, first_name, last_name, role=role
            )
            if created_at is not None:
                user.created_at = created_at
                await session.commit()
            return user

    return _make_user


@pytest.fixture
def make_product(session_maker):
    async def _make_product(
        owner: UserProfile,
        name: str = "Vintage Camera",
        status: ProductStatus = ProductStatus.APPROVED,
        redemption_type: RedemptionType = RedemptionType.MANUAL,
        description: Optional[str] = None,
        tags: Optional[str] = None,
        created_at: Optional[datetime] = None,
    ) -> Product:
        async with session_maker() as session:
            product = Product(
                user_id=owner.id,
                name=name,
                description=description,
                tags=tags,
                redemption_type=redemption_type.value,
                status=status.value,
            )
            if created_at is not None:
                product.created_at = created_at
            session.add(product)
            await session.commit()
            return product

    return _make_product


@pytest.fixture
def make_swap(session_maker):
    async def _make_swap(
        sender: UserProfile,
        product: Product,
        status: SwapStatus = SwapStatus.PENDING,
        created_at: Optional[datetime] = None,
        responded_at: Optional[datetime] = None,
    ) -> Swap:
        async with session_maker() as session:
            swap = Swap(
                sender_id=sender.id,
                receiver_id=product.user_id,
                product_id=product.id,
                status=status.value,
                responded_at=responded_at,
            )
            if created_at is not None:
                swap.created_at = created_at
            session.add(swap)
            await session.commit()
            return swap

    return _make_swap


@pytest.fixture
def make_shoutout(session_maker):
    async def _make_shoutout(
        author: UserProfile,
        product: Product,
        content: str = "Great swap!",
        rating: int = 5,
        created_at: Optional[datetime] = None,
    ) -> Shoutout:
        async with session_maker() as session:
            shoutout = Shoutout(user_id=author.id, product_id=product.id, content=content, rating=rating)
            if created_at is not None:
                shoutout.created_at = created_at
            session.add(shoutout)
            await session.commit()
            return shoutout

    return _make_shoutout


@pytest.fixture
def notifications_for(session_maker):
    async def _notifications_for(user: UserProfile):
        async with session_maker() as session:
            result = await session.execute(
                select(Notification).where(Notification.user_id == user.id).order_by(Notification.created_at)
            )
            return list(result.scalars().all())

    return _notifications_for


@pytest.fixture
async def alice(make_user):
    return await make_user("alice@example.com", first_name="Alice", last_name="Smith")


@pytest.fixture
async def bob(make_user):
    return await make_user("bob@example.com", first_name="Bob")


@pytest.fixture
async def admin(make_user):
    return await make_user("admin@example.com", role=RoleName.ADMIN, first_name="Ada")


@pytest.fixture
def headers():
    return auth_headers
