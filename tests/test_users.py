"""
Tests for the user profile endpoints.

These tests verify:
  - Users can read and update their own profile
  - Usernames and emails stay unique on update
  - Deleting a user soft-deletes the user and every account, and the
    token and login stop working
"""

from sqlalchemy import select

from wallet.models.account import Account
from wallet.models.user import User
from wallet.services import user_service


class TestProfile:

    async def test_get_me(self, authenticated_client):
        response = await authenticated_client.get("/users/me")
        assert response.status_code == 200
        assert response.json()["email"] == "testuser@example.com"

    async def test_update_username(self, authenticated_client):
        response = await authenticated_client.put("/users/me", json={"username": "renamed"})
        assert response.status_code == 200
        assert response.json()["username"] == "renamed"
        assert response.json()["email"] == "testuser@example.com"

    async def test_update_to_taken_email(
        self, authenticated_client, second_authenticated_client
    ):
        response = await second_authenticated_client.put(
            "/users/me", json={"email": "testuser@example.com"}
        )
        assert response.status_code == 409

    async def test_keeping_own_username_is_fine(self, authenticated_client):
        response = await authenticated_client.put("/users/me", json={"username": "testuser"})
        assert response.status_code == 200


class TestDeleteUser:

    async def test_delete_closes_everything(self, authenticated_client):
        await authenticated_client.post("/accounts", json={"core_details": {"name": "Extra"}})

        response = await authenticated_client.delete("/users/me")
        assert response.status_code == 204

        assert (await authenticated_client.get("/users/me")).status_code == 401
        login = await authenticated_client.post(
            "/auth/login",
            json={"email": "testuser@example.com", "password": "SecurePass123!"},
        )
        assert login.status_code == 401

    async def test_deletion_is_soft(self, db_session, user):
        account = Account(user_id=user.id, is_main=False)
        db_session.add(account)
        await db_session.flush()

        await user_service.delete_user(db_session, user.id)

        stored_user = (await db_session.execute(select(User))).scalar_one()
        stored_account = (await db_session.execute(select(Account))).scalar_one()
        assert stored_user.is_deleted
        assert stored_account.is_deleted
        assert stored_account.deleted_at == stored_user.deleted_at
