"""Operator API key database model."""

import uuid
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Boolean, DateTime, ForeignKey, String, true
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.timeutils import utcnow
from src.models.db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.db.account import Account


class ApiKey(Base, TimestampMixin):
    """Key an account's operators use to call the management API.

    Only the HMAC of the key is stored; the plaintext is shown once.
    Distinct from Website.api_key, which identifies a consent banner.
    """

    __tablename__ = "api_keys"

    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    key_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
        comment="HMAC of the operator key - never store plaintext",
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        server_default=true(),
        nullable=False,
    )
    last_used_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    revoked_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    account: Mapped["Account"] = relationship(
        back_populates="api_keys",
        lazy="selectin",
    )

    def revoke(self) -> None:
        """Disable this key permanently."""
        self.is_active = False
        self.revoked_at = utcnow()
