"""Cookie catalog Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.models.db.cookie import (
    DEFAULT_COOKIE_PATH,
    CookieCategory,
    SameSitePolicy,
    is_valid_expiry,
)


def _not_blank(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("can't be blank")
    return value


def _check_expiry(value: str | None) -> str | None:
    if value is None:
        return None
    if not is_valid_expiry(value):
        raise ValueError("is invalid")
    return value.strip() or None


class CookieCreate(BaseModel):
    """Schema for adding a cookie to a website's catalog."""

    name: str = Field(..., max_length=255, description="Cookie name")
    domain: str = Field(..., max_length=255, description="Cookie domain")
    category: CookieCategory = Field(..., description="Regulated category")
    description: str | None = Field(None, description="What the cookie is for")
    expiry: str | None = Field(
        None,
        max_length=64,
        description='"session", seconds, or a count with day/month/year unit',
    )
    path: str = Field(DEFAULT_COOKIE_PATH, max_length=255, description="Cookie path")
    secure: bool = Field(False, description="Secure flag")
    http_only: bool = Field(False, description="HttpOnly flag")
    same_site: SameSitePolicy | None = Field(None, description="SameSite policy")
    active: bool = Field(True, description="Whether the cookie is currently in use")

    @field_validator("name", "domain")
    @classmethod
    def must_not_be_blank(cls, value: str) -> str:
        return _not_blank(value)

    @field_validator("expiry")
    @classmethod
    def expiry_format(cls, value: str | None) -> str | None:
        return _check_expiry(value)


class CookieUpdate(BaseModel):
    """Schema for editing a catalog entry; omitted fields are unchanged."""

    name: str | None = Field(None, max_length=255)
    domain: str | None = Field(None, max_length=255)
    category: CookieCategory | None = None
    description: str | None = None
    expiry: str | None = Field(None, max_length=64)
    path: str | None = Field(None, max_length=255)
    secure: bool | None = None
    http_only: bool | None = None
    same_site: SameSitePolicy | None = None

    @field_validator("name", "domain")
    @classmethod
    def must_not_be_blank(cls, value: str | None) -> str | None:
        return None if value is None else _not_blank(value)

    @field_validator("expiry")
    @classmethod
    def expiry_format(cls, value: str | None) -> str | None:
        return _check_expiry(value)


class CookieRead(BaseModel):
    """Schema for reading a catalog entry with its classification."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    website_id: UUID
    name: str
    domain: str
    category: CookieCategory
    category_label: str = Field(..., description="French category label")
    description: str | None = None
    expiry: str | None = None
    path: str
    secure: bool
    http_only: bool
    same_site: SameSitePolicy | None = None
    active: bool
    requires_consent: bool
    is_persistent: bool
    summary: str
    created_at: datetime
    updated_at: datetime
