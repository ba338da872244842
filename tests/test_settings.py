"""
Tests for the per-user settings document.

These tests verify:
  - A user without settings reads an empty mapping and the defaults
  - Setting one key preserves every other key
  - A malformed stored document reads as empty and is overwritten on write
  - Reset clears everything; delete of a missing key is a no-op
  - Invalid keys and unserializable values are rejected
  - The HTTP endpoints scope everything to the caller
"""

import uuid

import pytest
from sqlalchemy import select

from wallet.exceptions import UserNotFoundError, ValidationError
from wallet.models.user_settings import UserSettings
from wallet.services import settings_service


async def _store_raw(db_session, user, raw):
    await settings_service.get_all_settings(db_session, user.id)
    result = await db_session.execute(
        select(UserSettings).where(UserSettings.user_id == user.id)
    )
    result.scalar_one().settings_json = raw
    await db_session.flush()


class TestSettingsService:

    async def test_new_user_has_empty_settings(self, db_session, user):
        assert await settings_service.get_all_settings(db_session, user.id) == {}

    async def test_missing_key_returns_default(self, db_session, user):
        value = await settings_service.get_setting(db_session, user.id, "theme", "light")
        assert value == "light"

    async def test_timezone_defaults_to_utc(self, db_session, user):
        assert await settings_service.get_timezone(db_session, user.id) == "UTC"

    async def test_set_preserves_other_keys(self, db_session, user):
        await settings_service.set_setting(db_session, user.id, "timezone", "Europe/Amsterdam")
        mapping = await settings_service.set_setting(db_session, user.id, "currency", "EUR")

        assert mapping == {"timezone": "Europe/Amsterdam", "currency": "EUR"}
        assert await settings_service.get_all_settings(db_session, user.id) == mapping

    async def test_values_keep_their_json_type(self, db_session, user):
        await settings_service.set_setting(db_session, user.id, "notify", True)
        await settings_service.set_setting(db_session, user.id, "limits", {"daily": [1, 2.5]})

        assert await settings_service.get_setting(db_session, user.id, "notify") is True
        assert await settings_service.get_setting(db_session, user.id, "limits") == {
            "daily": [1, 2.5]
        }

    async def test_update_replaces_the_document(self, db_session, user):
        await settings_service.set_setting(db_session, user.id, "a", 1)
        await settings_service.update_settings(db_session, user.id, {"b": 2})

        assert await settings_service.get_all_settings(db_session, user.id) == {"b": 2}

    async def test_delete_key(self, db_session, user):
        await settings_service.set_setting(db_session, user.id, "a", 1)
        await settings_service.set_setting(db_session, user.id, "b", 2)

        await settings_service.delete_setting(db_session, user.id, "a")

        assert await settings_service.get_all_settings(db_session, user.id) == {"b": 2}

    async def test_delete_missing_key_is_noop(self, db_session, user):
        await settings_service.set_setting(db_session, user.id, "a", 1)
        await settings_service.delete_setting(db_session, user.id, "nope")
        assert await settings_service.get_all_settings(db_session, user.id) == {"a": 1}

    async def test_reset_clears_everything(self, db_session, user):
        await settings_service.set_setting(db_session, user.id, "timezone", "Asia/Tokyo")

        assert await settings_service.reset_to_defaults(db_session, user.id) == {}
        assert await settings_service.get_timezone(db_session, user.id) == "UTC"

    async def test_malformed_document_reads_as_empty(self, db_session, user):
        await _store_raw(db_session, user, "{not json")

        assert await settings_service.get_all_settings(db_session, user.id) == {}
        assert await settings_service.get_timezone(db_session, user.id) == "UTC"

    async def test_non_object_document_reads_as_empty(self, db_session, user):
        await _store_raw(db_session, user, "[1, 2, 3]")
        assert await settings_service.get_all_settings(db_session, user.id) == {}

    async def test_write_over_malformed_document(self, db_session, user):
        await _store_raw(db_session, user, "{not json")

        mapping = await settings_service.set_setting(db_session, user.id, "currency", "EUR")

        assert mapping == {"currency": "EUR"}

    async def test_wrong_type_falls_back_to_default(self, db_session, user):
        await settings_service.set_setting(db_session, user.id, "timezone", 42)
        assert await settings_service.get_timezone(db_session, user.id) == "UTC"

    @pytest.mark.parametrize("key", ["", "   ", "k" * 101])
    async def test_invalid_key_rejected(self, db_session, user, key):
        with pytest.raises(ValidationError) as exc_info:
            await settings_service.set_setting(db_session, user.id, key, 1)
        assert exc_info.value.field == "key"

    async def test_unserializable_value_rejected(self, db_session, user):
        await settings_service.set_setting(db_session, user.id, "a", 1)

        with pytest.raises(ValidationError) as exc_info:
            await settings_service.set_setting(db_session, user.id, "b", float("nan"))

        assert exc_info.value.field == "value"
        assert await settings_service.get_all_settings(db_session, user.id) == {"a": 1}

    async def test_unknown_user(self, db_session):
        with pytest.raises(UserNotFoundError):
            await settings_service.get_all_settings(db_session, uuid.uuid4())


class TestSettingsEndpoints:

    async def test_get_settings_empty(self, authenticated_client):
        response = await authenticated_client.get("/settings")
        assert response.status_code == 200
        assert response.json() == {"settings": {}}

    async def test_set_and_get_one_setting(self, authenticated_client):
        response = await authenticated_client.put(
            "/settings/setting/currency", json={"value": "EUR"}
        )
        assert response.status_code == 200
        assert response.json()["settings"] == {"currency": "EUR"}

        response = await authenticated_client.get("/settings/setting/currency")
        assert response.json() == {"key": "currency", "value": "EUR"}

    async def test_missing_setting_is_404(self, authenticated_client):
        response = await authenticated_client.get("/settings/setting/currency")
        assert response.status_code == 404

    async def test_null_value_is_a_real_value(self, authenticated_client):
        await authenticated_client.put("/settings/setting/nickname", json={"value": None})

        response = await authenticated_client.get("/settings/setting/nickname")

        assert response.status_code == 200
        assert response.json()["value"] is None

    async def test_replace_delete_and_reset(self, authenticated_client):
        await authenticated_client.put("/settings", json={"settings": {"a": 1, "b": [True]}})

        response = await authenticated_client.delete("/settings/setting/a")
        assert response.status_code == 204
        assert (await authenticated_client.get("/settings")).json() == {"settings": {"b": [True]}}

        response = await authenticated_client.post("/settings/reset")
        assert response.json() == {"settings": {}}

    async def test_settings_are_per_user(
        self, authenticated_client, second_authenticated_client
    ):
        await authenticated_client.put("/settings/setting/currency", json={"value": "EUR"})

        response = await second_authenticated_client.get("/settings")

        assert response.json() == {"settings": {}}

    async def test_requires_authentication(self, client):
        response = await client.get("/settings")
        assert response.status_code == 401
