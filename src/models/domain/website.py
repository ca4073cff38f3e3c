"""Website Pydantic schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.models.db.website import VerificationMethod, extract_domain


def _check_url(value: str) -> str:
    value = value.strip()
    extract_domain(value)
    return value


class WebsiteCreate(BaseModel):
    """Schema for registering a website."""

    url: str = Field(..., max_length=2048, description="Site URL (http or https)")
    verification_method: VerificationMethod | None = Field(
        None, description="How ownership will be proven"
    )

    @field_validator("url")
    @classmethod
    def url_must_be_http(cls, value: str) -> str:
        return _check_url(value)


class WebsiteUpdate(BaseModel):
    """Schema for changing a website's URL."""

    url: str = Field(..., max_length=2048, description="New site URL")

    @field_validator("url")
    @classmethod
    def url_must_be_http(cls, value: str) -> str:
        return _check_url(value)


class ScanSchedule(BaseModel):
    """Schema for scheduling the next cookie scan."""

    interval_days: int | None = Field(
        None, gt=0, description="Days until next scan; one calendar month if omitted"
    )


class WebsiteRead(BaseModel):
    """Schema for reading website data."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Website unique identifier")
    account_id: UUID = Field(..., description="Owning account")
    url: str = Field(..., description="Site URL")
    domain: str = Field(..., description="Host derived from the URL")
    verified: bool = Field(..., description="Whether ownership is proven")
    verification_token: str | None = Field(
        None, description="Pending ownership challenge, cleared on verification"
    )
    verification_method: VerificationMethod | None = Field(
        None, description="Pending ownership challenge method"
    )
    api_key: str = Field(..., description="Public key for the consent banner")
    last_scan_at: datetime | None = Field(None, description="Last cookie scan")
    next_scan_at: datetime | None = Field(None, description="Next planned scan")
    created_at: datetime = Field(..., description="When the website was registered")
    updated_at: datetime = Field(..., description="When the website was last updated")


class WebsiteStats(BaseModel):
    """Aggregates shown on a website dashboard."""

    website_id: UUID = Field(..., description="Website unique identifier")
    active_cookies_count: int = Field(..., description="Active catalog entries")
    total_consents_count: int = Field(..., description="All recorded consents")
    recent_consents_count: int = Field(..., description="Consents in the last 30 days")
    needs_scan: bool = Field(..., description="Whether a cookie scan is due")
