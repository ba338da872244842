"""
Timezone service — resolves a user's display timezone and converts instants.

The zone name comes from the "timezone" key of the user's settings document
(default "UTC"). Names are IANA identifiers resolved with zoneinfo.

Resolution never fails: a stored name that is unknown, empty or
structurally invalid (e.g. "../etc/passwd") silently resolves to UTC.
Only set_user_timezone() validates, so a bad name can't be stored through
this service in the first place.

Conversions are pure offset arithmetic on aware datetimes:
  to_local: UTC instant  -> same instant expressed in the user's zone
  to_utc:   local instant -> same instant expressed in UTC
A naive value passed to to_local is taken as UTC; a naive value passed to
to_utc is taken as wall-clock time in the user's zone.
"""

import logging
import uuid
from datetime import datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.ext.asyncio import AsyncSession

from wallet.exceptions import ValidationError
from wallet.services import settings_service

logger = logging.getLogger(__name__)

UTC = ZoneInfo("UTC")


def resolve_timezone(name: str | None) -> ZoneInfo:
    """Resolve an IANA zone name, falling back to UTC on any problem."""
    if not name:
        return UTC
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError, OSError):
        logger.warning("Unknown timezone %r, falling back to UTC", name)
        return UTC


def is_valid_timezone(name: str) -> bool:
    if not name:
        return False
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, TypeError, OSError):
        return False
    return True


async def get_user_timezone(db: AsyncSession, user_id: uuid.UUID) -> str:
    """The stored zone name (or the default), exactly as configured."""
    return await settings_service.get_timezone(db, user_id)


async def get_timezone_info(db: AsyncSession, user_id: uuid.UUID) -> ZoneInfo:
    """The user's zone, resolved. Always succeeds."""
    return resolve_timezone(await get_user_timezone(db, user_id))


async def set_user_timezone(db: AsyncSession, user_id: uuid.UUID, tz_name: str) -> str:
    """
    Store a new display timezone.

    Raises:
        ValidationError: If `tz_name` isn't a known IANA zone.
    """
    if not is_valid_timezone(tz_name):
        raise ValidationError("timezone", f"Unknown timezone: {tz_name}")
    await settings_service.set_timezone(db, user_id, tz_name)
    return tz_name


def utc_to_zone(utc_instant: datetime, zone: ZoneInfo) -> datetime:
    if utc_instant.tzinfo is None:
        utc_instant = utc_instant.replace(tzinfo=timezone.utc)
    return utc_instant.astimezone(zone)


def zone_to_utc(local_instant: datetime, zone: ZoneInfo) -> datetime:
    if local_instant.tzinfo is None:
        local_instant = local_instant.replace(tzinfo=zone)
    return local_instant.astimezone(timezone.utc)


async def to_local(db: AsyncSession, user_id: uuid.UUID, utc_instant: datetime) -> datetime:
    """Express a UTC instant in the user's timezone."""
    return utc_to_zone(utc_instant, await get_timezone_info(db, user_id))


async def to_utc(db: AsyncSession, user_id: uuid.UUID, local_instant: datetime) -> datetime:
    """Convert a user-local instant back to UTC."""
    return zone_to_utc(local_instant, await get_timezone_info(db, user_id))
