"""Consent Pydantic schemas."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.models.db.consent import ConsentMethod


class ConsentCapture(BaseModel):
    """Schema for a visitor decision sent by a consent banner.

    The structure of consent_choices is checked by the consent service,
    which reports every missing or non-boolean category at once.
    """

    visitor_id: str = Field(
        ..., min_length=1, max_length=255, description="Opaque visitor identifier"
    )
    consent_choices: dict[str, Any] = Field(
        ..., description="Category name -> accepted flag"
    )
    consent_method: ConsentMethod = Field(..., description="Banner action taken")
    consent_version: int = Field(
        default=1, gt=0, strict=True, description="Consent text version shown"
    )
    consent_given_at: datetime | None = Field(
        None, description="When consent was given; defaults to now"
    )


class ConsentRead(BaseModel):
    """Schema for reading a consent record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Consent record unique identifier")
    account_id: UUID = Field(..., description="Owning account")
    website_id: UUID = Field(..., description="Website the consent was given on")
    visitor_id: str = Field(..., description="Opaque visitor identifier")
    consent_given_at: datetime = Field(..., description="When consent was given")
    ip_address_hash: str | None = Field(None, description="PBKDF2 hash of visitor IP")
    user_agent: str | None = Field(None, description="Visitor user agent")
    consent_choices: dict[str, Any] = Field(..., description="Category choices")
    consent_method: ConsentMethod = Field(..., description="Banner action taken")
    method_label: str = Field(..., description="French label of the method")
    consent_version: int = Field(..., description="Consent text version shown")
    withdrawn_at: datetime | None = Field(None, description="When consent was withdrawn")
    is_active: bool = Field(..., description="Whether consent is still in force")
    consent_rate: float = Field(..., description="Percent of categories accepted")
    summary: str = Field(..., description="Accepted categories")


class ConsentStats(BaseModel):
    """Consent counts for one website."""

    website_id: UUID
    total: int
    active: int
    withdrawn: int
    recent: int = Field(..., description="Given in the last 30 days")
    by_method: dict[ConsentMethod, int]


class PurgeResult(BaseModel):
    """Outcome of a retention purge."""

    deleted_count: int = Field(..., description="Consents permanently removed")
    cutoff: datetime = Field(..., description="Consents given before this were removed")
