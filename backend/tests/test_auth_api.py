from datetime import datetime, timedelta, timezone

import jwt

from swapmarket.core.config import get_settings
from swapmarket.models import SwapLimit, UserProfile
from swapmarket.services.auth import AuthService


async def test_signup_creates_user_with_credits(client):
    response = await client.post(
        "/api/auth/signup",
        json={"email": "New.User@Example.com", "password": "secret123", "first_name": "New"},
    )
    assert response.status_code == 201
    body = response.json()
    assert body["email"] == "new.user@example.com"
    assert body["role"] == "user"
    assert body["redirect_to"] == "/user"

    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["swap_credits"] == get_settings().default_swap_allowance
    assert me.json()["full_name"] == "New"


async def test_signup_duplicate_email_conflicts(client, alice):
    response = await client.post(
        "/api/auth/signup",
        json={"email": "alice@example.com", "password": "secret123"},
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "User already registered"


async def test_signup_rejects_short_password(client):
    response = await client.post("/api/auth/signup", json={"email": "x@example.com", "password": "123"})
    assert response.status_code == 422


async def test_login_success_returns_redirect(client, alice, admin):
    response = await client.post("/api/auth/login", json={"email": "alice@example.com", "password": "password123"})
    assert response.status_code == 200
    assert response.json()["redirect_to"] == "/user"

    response = await client.post("/api/auth/login", json={"email": "admin@example.com", "password": "password123"})
    assert response.status_code == 200
    body = response.json()
    assert body["role"] == "admin"
    assert body["redirect_to"] == "/admin"


async def test_login_wrong_password(client, alice):
    response = await client.post("/api/auth/login", json={"email": "alice@example.com", "password": "nope-nope"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid login credentials"


async def test_login_unknown_email(client):
    response = await client.post("/api/auth/login", json={"email": "ghost@example.com", "password": "password123"})
    assert response.status_code == 401


async def test_login_disabled_account(client, session_maker, alice):
    async with session_maker() as session:
        user = await session.get(UserProfile, alice.id)
        user.is_active = False
        await session.commit()

    response = await client.post("/api/auth/login", json={"email": "alice@example.com", "password": "password123"})
    assert response.status_code == 403


async def test_me_requires_token(client):
    response = await client.get("/api/auth/me")
    assert response.status_code == 401


async def test_expired_token_rejected(client, alice):
    settings = get_settings()
    payload = {
        "sub": str(alice.id),
        "email": alice.email,
        "role": "user",
        "exp": datetime.now(timezone.utc) - timedelta(minutes=1),
    }
    token = jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)
    response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["detail"] == "Token has expired"


async def test_redirect_endpoint(client, headers, alice, admin):
    response = await client.get("/api/auth/redirect", headers=headers(alice))
    assert response.json() == {"redirect_to": "/user"}
    response = await client.get("/api/auth/redirect", headers=headers(admin))
    assert response.json() == {"redirect_to": "/admin"}


async def test_password_reset_flow(client, alice, fake_redis, fake_email):
    response = await client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    assert response.status_code == 200

    fake_email.send_password_reset_email.assert_awaited_once()
    to_email, link = fake_email.send_password_reset_email.await_args.args
    assert to_email == "alice@example.com"
    assert "/auth/reset-password?token=" in link
    token = link.split("token=", 1)[1]
    assert f"swapmarket:password_reset:{token}" in fake_redis.store

    response = await client.post("/api/auth/reset-password", json={"token": token, "new_password": "brand-new-pass"})
    assert response.status_code == 200
    assert f"swapmarket:password_reset:{token}" not in fake_redis.store

    response = await client.post("/api/auth/login", json={"email": "alice@example.com", "password": "brand-new-pass"})
    assert response.status_code == 200

    # tokens are single use
    response = await client.post("/api/auth/reset-password", json={"token": token, "new_password": "another-pass"})
    assert response.status_code == 422


async def test_forgot_password_unknown_email_looks_the_same(client, alice, fake_email):
    known = await client.post("/api/auth/forgot-password", json={"email": "alice@example.com"})
    unknown = await client.post("/api/auth/forgot-password", json={"email": "nobody@example.com"})
    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()
    assert fake_email.send_password_reset_email.await_count == 1


async def test_reset_password_invalid_token(client):
    response = await client.post("/api/auth/reset-password", json={"token": "bogus", "new_password": "whatever1"})
    assert response.status_code == 422
    assert response.json()["detail"] == "Invalid or expired reset token"


async def test_login_is_rate_limited(client, alice):
    for _ in range(10):
        await client.post("/api/auth/login", json={"email": "alice@example.com", "password": "wrong-pass"})
    response = await client.post("/api/auth/login", json={"email": "alice@example.com", "password": "password123"})
    assert response.status_code == 429


async def test_signup_race_on_same_email_conflicts(client, alice, monkeypatch):
    # the other signup committed between our lookup and our insert
    async def not_found(self, email):
        return None

    monkeypatch.setattr(AuthService, "get_user_by_email", not_found)

    response = await client.post(
        "/api/auth/signup",
        json={"email": "alice@example.com", "password": "secret123"},
    )
    assert response.status_code == 409
    assert response.json()["detail"] == "User already registered"


async def test_me_without_credit_row_reports_default_and_writes_nothing(client, headers, session_maker, alice):
    async with session_maker() as session:
        await session.delete(await session.get(SwapLimit, alice.id))
        await session.commit()

    response = await client.get("/api/auth/me", headers=headers(alice))
    assert response.status_code == 200
    assert response.json()["swap_credits"] == 3

    async with session_maker() as session:
        assert await session.get(SwapLimit, alice.id) is None
