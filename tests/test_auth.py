"""
Tests for authentication endpoints (register and login).

These tests verify:
  - Successful registration creates a user and returns a JWT
  - Duplicate username or email is rejected (409 Conflict)
  - Successful login returns a valid JWT
  - Wrong password and unknown email get the same 401 (anti-enumeration)
  - Short passwords and invalid emails are rejected (422)
  - Protected endpoints reject missing or forged tokens
"""

import pytest


REGISTRATION = {
    "username": "newuser",
    "email": "newuser@example.com",
    "password": "StrongPass99!",
}


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

class TestRegister:
    """Tests for POST /auth/register."""

    async def test_register_success(self, client):
        response = await client.post("/auth/register", json=REGISTRATION)

        assert response.status_code == 201
        data = response.json()
        assert data["token"]
        assert data["token_type"] == "bearer"
        assert data["expires_at"]
        assert data["user"]["username"] == "newuser"
        assert data["user"]["email"] == "newuser@example.com"
        assert "hashed_password" not in data["user"]

    async def test_token_works_immediately(self, client):
        response = await client.post("/auth/register", json=REGISTRATION)
        token = response.json()["token"]

        me = await client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert me.status_code == 200
        assert me.json()["username"] == "newuser"

    @pytest.mark.parametrize(
        "override, field",
        [({"email": "other@example.com"}, "username"), ({"username": "other"}, "email")],
    )
    async def test_duplicate_rejected(self, client, override, field):
        await client.post("/auth/register", json=REGISTRATION)

        response = await client.post("/auth/register", json={**REGISTRATION, **override})

        assert response.status_code == 409
        assert response.json()["error_type"] == "duplicate_user"
        assert response.json()["field"] == field

    async def test_short_password_rejected(self, client):
        response = await client.post(
            "/auth/register", json={**REGISTRATION, "password": "12345"}
        )
        assert response.status_code == 422

    async def test_invalid_email_rejected(self, client):
        response = await client.post(
            "/auth/register", json={**REGISTRATION, "email": "not-an-email"}
        )
        assert response.status_code == 422

    async def test_empty_username_rejected(self, client):
        response = await client.post("/auth/register", json={**REGISTRATION, "username": ""})
        assert response.status_code == 422


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------

class TestLogin:
    """Tests for POST /auth/login."""

    async def test_login_success(self, client):
        await client.post("/auth/register", json=REGISTRATION)

        response = await client.post(
            "/auth/login",
            json={"email": REGISTRATION["email"], "password": REGISTRATION["password"]},
        )

        assert response.status_code == 200
        assert response.json()["token"]
        assert response.json()["user"]["username"] == "newuser"

    async def test_wrong_password(self, client):
        await client.post("/auth/register", json=REGISTRATION)

        response = await client.post(
            "/auth/login", json={"email": REGISTRATION["email"], "password": "wrong-pass"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"

    async def test_unknown_email_same_error(self, client):
        response = await client.post(
            "/auth/login", json={"email": "nobody@example.com", "password": "whatever"}
        )

        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid email or password"


class TestTokenValidation:

    async def test_missing_token(self, client):
        response = await client.get("/accounts")
        assert response.status_code == 401

    async def test_forged_token(self, client):
        response = await client.get(
            "/accounts", headers={"Authorization": "Bearer not.a.jwt"}
        )
        assert response.status_code == 401
