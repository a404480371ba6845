"""
Account registration with identity-provider tokens (external auth mode).

A valid token whose subject has no user record yet may create one; the record's
role is limited to customer/seller.
"""

from __future__ import annotations

import pytest

from parts_market.settings import Settings

EXTERNAL_SECRET = "idp-shared-secret-for-hs256-tokens-0123"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'external.db'}",
        jwt_secret=EXTERNAL_SECRET,
        auth_mode="external",
    )


@pytest.mark.asyncio
async def test_register_creates_user_for_unknown_subject(client, auth_headers):
    headers = auth_headers("idp|new-buyer", email="buyer@example.com")

    before = await client.get("/api/auth/me", headers=headers)
    assert before.status_code == 401
    assert before.json()["error"] == "unknown_identity"

    resp = await client.post("/api/auth/register", json={"name": "Bea Buyer"}, headers=headers)
    assert resp.status_code == 201
    body = resp.json()
    assert body["message"] == "User registered successfully"
    assert body["user"]["email"] == "buyer@example.com"
    assert body["user"]["role"] == "customer"

    me = await client.get("/api/auth/me", headers=headers)
    assert me.status_code == 200
    assert me.json()["id"] == body["user"]["id"]


@pytest.mark.asyncio
async def test_register_as_seller_with_body_email(client, auth_headers):
    resp = await client.post(
        "/api/auth/register",
        json={"name": "Sid Seller", "email": "sid@example.com", "role": "Seller"},
        headers=auth_headers("idp|sid"),
    )
    assert resp.status_code == 201
    assert resp.json()["user"]["role"] == "seller"
    assert resp.json()["user"]["email"] == "sid@example.com"


@pytest.mark.asyncio
async def test_register_never_grants_admin(client, auth_headers):
    headers = auth_headers("idp|climber", email="climber@example.com")

    resp = await client.post(
        "/api/auth/register", json={"name": "Climber", "role": "admin"}, headers=headers
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_role"

    me = await client.get("/api/auth/me", headers=headers)
    assert me.status_code == 401


@pytest.mark.asyncio
async def test_register_requires_an_email(client, auth_headers):
    resp = await client.post(
        "/api/auth/register", json={"name": "Nobody"}, headers=auth_headers("idp|no-email")
    )
    assert resp.status_code == 400
    assert resp.json()["error"] == "invalid_user"


@pytest.mark.asyncio
async def test_register_twice_for_same_subject_conflicts(client, auth_headers):
    headers = auth_headers("idp|repeat", email="repeat@example.com")

    first = await client.post("/api/auth/register", json={"name": "Rae"}, headers=headers)
    assert first.status_code == 201

    again = await client.post(
        "/api/auth/register",
        json={"name": "Rae", "email": "other@example.com"},
        headers=headers,
    )
    assert again.status_code == 409
    assert again.json()["error"] == "conflict"


@pytest.mark.asyncio
async def test_register_with_taken_email_conflicts(client, auth_headers):
    first = await client.post(
        "/api/auth/register",
        json={"name": "Ann"},
        headers=auth_headers("idp|ann", email="shared@example.com"),
    )
    assert first.status_code == 201

    resp = await client.post(
        "/api/auth/register",
        json={"name": "Impostor"},
        headers=auth_headers("idp|impostor", email="shared@example.com"),
    )
    assert resp.status_code == 409

    me = await client.get("/api/auth/me", headers=auth_headers("idp|impostor"))
    assert me.status_code == 401


@pytest.mark.asyncio
async def test_register_rejects_bad_token(client):
    resp = await client.post(
        "/api/auth/register", json={"name": "X"}, headers={"Authorization": "Bearer a.b.c"}
    )
    assert resp.status_code == 401
    assert resp.json()["error"] == "invalid_token"


@pytest.mark.asyncio
async def test_dev_token_hidden_in_external_mode(client):
    resp = await client.post("/api/dev/token", json={"userId": 1})
    assert resp.status_code == 404
