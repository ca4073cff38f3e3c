"""Schemas for provisioning accounts and operator API keys."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class AccountCreated(BaseModel):
    """A new account with its first operator key.

    The plaintext key appears here once and is never stored.
    """

    account_id: UUID = Field(..., description="Account unique identifier")
    account_name: str = Field(..., min_length=1, max_length=255)
    key_id: UUID = Field(..., description="Operator API key identifier")
    key_name: str = Field(..., min_length=1, max_length=255)
    key: str = Field(..., description="Plaintext operator key for X-API-Key")
    created_at: datetime
