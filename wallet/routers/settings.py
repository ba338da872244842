"""
Settings router — the authenticated user's preference document.

Endpoints:
  GET    /settings                  — All settings
  PUT    /settings                  — Replace all settings
  GET    /settings/setting/{key}    — One setting (404 if not set)
  PUT    /settings/setting/{key}    — Set one setting, keeping the rest
  DELETE /settings/setting/{key}    — Remove one setting
  POST   /settings/reset            — Clear every setting
  GET    /settings/timezone         — Configured and resolved timezone
  PUT    /settings/timezone         — Set the timezone (validated)
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from wallet.database import get_db
from wallet.dependencies import get_current_user
from wallet.exceptions import NotFoundError
from wallet.models.user import User
from wallet.schemas.settings import (
    SettingsResponse,
    SettingValueResponse,
    TimezoneRequest,
    TimezoneResponse,
    UpdateSettingRequest,
    UpdateSettingsRequest,
)
from wallet.services import settings_service, timezone_service

router = APIRouter()

_MISSING = object()


@router.get("", response_model=SettingsResponse, summary="Get all settings")
async def get_settings(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return SettingsResponse(settings=await settings_service.get_all_settings(db, user.id))


@router.put("", response_model=SettingsResponse, summary="Replace all settings")
async def update_settings(
    request: UpdateSettingsRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    mapping = await settings_service.update_settings(db, user.id, request.settings)
    return SettingsResponse(settings=mapping)


@router.get(
    "/setting/{key}",
    response_model=SettingValueResponse,
    summary="Get one setting",
)
async def get_setting(
    key: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    value = await settings_service.get_setting(db, user.id, key, _MISSING)
    if value is _MISSING:
        raise NotFoundError(f"Setting {key} is not set")
    return SettingValueResponse(key=key, value=value)


@router.put(
    "/setting/{key}",
    response_model=SettingsResponse,
    summary="Set one setting",
)
async def set_setting(
    key: str,
    request: UpdateSettingRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Store a value under `key`. Every other key is preserved."""
    mapping = await settings_service.set_setting(db, user.id, key, request.value)
    return SettingsResponse(settings=mapping)


@router.delete(
    "/setting/{key}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove one setting",
)
async def delete_setting(
    key: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await settings_service.delete_setting(db, user.id, key)


@router.post("/reset", response_model=SettingsResponse, summary="Reset to defaults")
async def reset_settings(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    mapping = await settings_service.reset_to_defaults(db, user.id)
    return SettingsResponse(settings=mapping)


@router.get("/timezone", response_model=TimezoneResponse, summary="Get your timezone")
async def get_timezone(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    `timezone` is what is stored; `resolved` is what conversions use. They
    differ only when the stored name is unusable, in which case UTC is used.
    """
    name = await timezone_service.get_user_timezone(db, user.id)
    return TimezoneResponse(timezone=name, resolved=timezone_service.resolve_timezone(name).key)


@router.put("/timezone", response_model=TimezoneResponse, summary="Set your timezone")
async def set_timezone(
    request: TimezoneRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Set an IANA timezone such as "Europe/Amsterdam". Unknown names get 422."""
    name = await timezone_service.set_user_timezone(db, user.id, request.timezone)
    return TimezoneResponse(timezone=name, resolved=name)
