"""
Pydantic schemas for the settings endpoints.

Setting values are arbitrary JSON values; pydantic's JsonValue rejects
anything that couldn't be stored in the JSON document.
"""

from pydantic import BaseModel, Field, JsonValue


class SettingsResponse(BaseModel):
    settings: dict[str, JsonValue]


class UpdateSettingsRequest(BaseModel):
    """Replaces the whole settings document."""
    settings: dict[str, JsonValue] = Field(default_factory=dict)


class UpdateSettingRequest(BaseModel):
    value: JsonValue


class SettingValueResponse(BaseModel):
    key: str
    value: JsonValue


class TimezoneRequest(BaseModel):
    timezone: str = Field(min_length=1, max_length=64)


class TimezoneResponse(BaseModel):
    """
    `timezone` is the stored name; `resolved` is the zone actually used
    (UTC when the stored name is unusable).
    """
    timezone: str
    resolved: str
