"""
Settings service — per-user key/value preferences stored as one JSON document.

Document model:
  Each user has at most one UserSettings row whose `settings_json` column
  holds a JSON object. Values are plain JSON values (strings, numbers,
  booleans, null, lists, objects). There is no fixed schema; callers read
  keys through typed accessors such as get_timezone().

Lazy creation:
  The row is created the first time a user's settings are read or written.
  The user itself must exist (UserNotFoundError otherwise).

Failure policy:
  - Reads never fail because of stored content. An unparseable document
    (invalid JSON, or JSON that isn't an object) reads as empty, and a
    missing key returns the caller's default.
  - A write on top of an unparseable document starts from an empty one.
  - Writes with an invalid key or a value that can't be serialized are
    rejected with ValidationError before anything is stored.

Atomicity:
  Every mutation serializes the complete updated mapping and replaces
  `settings_json` in a single flush; no caller can observe half an update.
"""

import json
import logging
import uuid
from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from wallet.config import settings as app_settings
from wallet.exceptions import UserNotFoundError, ValidationError
from wallet.models.user import User
from wallet.models.user_settings import EMPTY_DOCUMENT, UserSettings

logger = logging.getLogger(__name__)

TIMEZONE_KEY = "timezone"
MAX_KEY_LENGTH = 100

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Document helpers
# ---------------------------------------------------------------------------

def parse_document(raw: str | None, user_id: uuid.UUID | None = None) -> dict[str, Any]:
    """Decode a stored document, treating anything unusable as empty."""
    if not raw:
        return {}
    try:
        document = json.loads(raw)
    except ValueError:
        logger.warning("Discarding malformed settings document for user %s", user_id)
        return {}
    if not isinstance(document, dict):
        logger.warning("Settings document for user %s is not an object", user_id)
        return {}
    return document


def _serialize(document: dict[str, Any]) -> str:
    try:
        return json.dumps(document, separators=(",", ":"), allow_nan=False)
    except (TypeError, ValueError) as exc:
        raise ValidationError("value", f"Setting value is not JSON serializable: {exc}")


def _check_key(key: str) -> None:
    if not key or not key.strip():
        raise ValidationError("key", "Setting key must not be empty")
    if len(key) > MAX_KEY_LENGTH:
        raise ValidationError("key", f"Setting key must be at most {MAX_KEY_LENGTH} characters")


async def _get_document(db: AsyncSession, user_id: uuid.UUID) -> UserSettings:
    """Return the user's settings row, creating an empty one if needed."""
    result = await db.execute(
        select(UserSettings).where(UserSettings.user_id == user_id)
    )
    document = result.scalar_one_or_none()
    if document is not None:
        return document

    user_result = await db.execute(
        select(User.id).where(User.id == user_id).where(User.deleted_at.is_(None))
    )
    if user_result.scalar_one_or_none() is None:
        raise UserNotFoundError(user_id)

    document = UserSettings(user_id=user_id, settings_json=EMPTY_DOCUMENT)
    db.add(document)
    await db.flush()
    return document


async def _write(db: AsyncSession, document: UserSettings, mapping: dict[str, Any]) -> dict[str, Any]:
    document.settings_json = _serialize(mapping)
    await db.flush()
    return mapping


# ---------------------------------------------------------------------------
# Accessors
# ---------------------------------------------------------------------------

async def get_all_settings(db: AsyncSession, user_id: uuid.UUID) -> dict[str, Any]:
    """Return the whole settings mapping (empty if unset or malformed)."""
    document = await _get_document(db, user_id)
    return parse_document(document.settings_json, user_id)


async def get_setting(
    db: AsyncSession,
    user_id: uuid.UUID,
    key: str,
    default: Any = None,
) -> Any:
    """Return the value stored under `key`, or `default` if it isn't there."""
    return (await get_all_settings(db, user_id)).get(key, default)


async def get_typed_setting(
    db: AsyncSession,
    user_id: uuid.UUID,
    key: str,
    expected_type: type[T],
    default: T,
) -> T:
    """
    Like get_setting(), but a stored value of the wrong type also yields
    `default`. bool is not accepted where int is expected.
    """
    value = await get_setting(db, user_id, key, default)
    if isinstance(value, bool) and expected_type is not bool:
        return default
    if not isinstance(value, expected_type):
        return default
    return value


async def set_setting(
    db: AsyncSession,
    user_id: uuid.UUID,
    key: str,
    value: Any,
) -> dict[str, Any]:
    """
    Store `value` under `key`, keeping every other key.

    Returns:
        The full updated mapping.

    Raises:
        ValidationError: If the key is empty/too long or the value can't be
                         encoded as JSON.
        UserNotFoundError: If the user doesn't exist.
    """
    _check_key(key)
    document = await _get_document(db, user_id)
    mapping = parse_document(document.settings_json, user_id)
    mapping[key] = value
    return await _write(db, document, mapping)


async def update_settings(
    db: AsyncSession,
    user_id: uuid.UUID,
    new_settings: dict[str, Any],
) -> dict[str, Any]:
    """Replace the whole document with `new_settings`."""
    for key in new_settings:
        _check_key(key)
    document = await _get_document(db, user_id)
    return await _write(db, document, dict(new_settings))


async def delete_setting(db: AsyncSession, user_id: uuid.UUID, key: str) -> None:
    """Remove `key` from the document. Missing keys are ignored."""
    document = await _get_document(db, user_id)
    mapping = parse_document(document.settings_json, user_id)
    if key in mapping:
        del mapping[key]
        await _write(db, document, mapping)


async def reset_to_defaults(db: AsyncSession, user_id: uuid.UUID) -> dict[str, Any]:
    """Clear every setting for the user."""
    document = await _get_document(db, user_id)
    logger.info("Resetting settings for user %s", user_id)
    return await _write(db, document, {})


# ---------------------------------------------------------------------------
# Typed settings
# ---------------------------------------------------------------------------

async def get_timezone(db: AsyncSession, user_id: uuid.UUID) -> str:
    """Raw "timezone" setting; not validated (see timezone_service)."""
    return await get_typed_setting(
        db, user_id, TIMEZONE_KEY, str, app_settings.DEFAULT_TIMEZONE
    )


async def set_timezone(db: AsyncSession, user_id: uuid.UUID, tz_name: str) -> None:
    await set_setting(db, user_id, TIMEZONE_KEY, tz_name)
