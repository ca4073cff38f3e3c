"""Consent database model."""

import enum
import uuid
from collections.abc import Callable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any, assert_never

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.timeutils import add_months, utcnow
from src.models.db.base import Base, TimestampMixin, pg_enum
from src.models.db.cookie import CookieCategory

if TYPE_CHECKING:
    from src.models.db.account import Account
    from src.models.db.website import Website

# 12 months of retention plus a 30 day grace period, counted as months
RETENTION_MONTHS = 13

# Trailing window used by "recent" queries
RECENT_WINDOW_DAYS = 30

REQUIRED_CATEGORIES: tuple[str, ...] = tuple(c.value for c in CookieCategory)


class ConsentMethod(enum.StrEnum):
    """How the visitor expressed their choice on the banner."""

    BANNER_ACCEPT_ALL = "banner_accept_all"
    BANNER_REJECT_ALL = "banner_reject_all"
    BANNER_CUSTOMIZE = "banner_customize"

    @property
    def label_fr(self) -> str:
        match self:
            case ConsentMethod.BANNER_ACCEPT_ALL:
                return "Accepter tout"
            case ConsentMethod.BANNER_REJECT_ALL:
                return "Refuser tout"
            case ConsentMethod.BANNER_CUSTOMIZE:
                return "Personnaliser"
            case _:
                assert_never(self)


def consent_choices_errors(choices: Mapping[str, Any]) -> list[str]:
    """Return the problems with a consent_choices mapping, empty if valid.

    All four categories must be present with boolean values. Extra keys
    are allowed but their values must be boolean too.
    """
    errors: list[str] = []
    missing = [key for key in REQUIRED_CATEGORIES if key not in choices]
    if missing:
        errors.append(f"must include all categories: {', '.join(missing)}")
    for key, value in choices.items():
        if not isinstance(value, bool):
            errors.append(f"{key} must be true or false")
    return errors


def retention_cutoff(now: datetime | None = None) -> datetime:
    """Consents given before this instant are past retention."""
    return add_months(now or utcnow(), -RETENTION_MONTHS)


class Consent(Base, TimestampMixin):
    """One visitor consent decision, kept as an audit record.

    Records are immutable once written except for withdrawal. The raw
    visitor IP never reaches this model; only its PBKDF2 hash does.
    """

    __tablename__ = "consents"

    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    website_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("websites.id", ondelete="CASCADE"),
        nullable=False,
    )
    visitor_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    consent_given_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
    )
    ip_address_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    consent_choices: Mapped[dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
    )
    consent_method: Mapped[ConsentMethod] = mapped_column(
        pg_enum(ConsentMethod, "consent_method"),
        nullable=False,
    )
    consent_version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        server_default="1",
    )
    withdrawn_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        index=True,
    )

    # Relationships
    account: Mapped["Account"] = relationship()
    website: Mapped["Website"] = relationship(back_populates="consents")

    __table_args__ = (
        Index("ix_consents_website_given_at", "website_id", "consent_given_at"),
        Index(
            "ix_consents_consent_choices",
            "consent_choices",
            postgresql_using="gin",
        ),
    )

    @classmethod
    def capture(
        cls,
        *,
        account_id: uuid.UUID,
        website_id: uuid.UUID,
        visitor_id: str,
        consent_choices: Mapping[str, Any],
        consent_method: ConsentMethod,
        ip_hasher: Callable[[str], str],
        raw_ip_address: str | None = None,
        ip_address_hash: str | None = None,
        user_agent: str | None = None,
        consent_given_at: datetime | None = None,
        consent_version: int = 1,
    ) -> "Consent":
        """Build a new consent record from an already validated capture.

        The IP hash is derived here, once: only when a raw address was
        supplied and no hash was provided. The raw address is not kept.
        """
        if ip_address_hash is None and raw_ip_address:
            ip_address_hash = ip_hasher(raw_ip_address)
        return cls(
            account_id=account_id,
            website_id=website_id,
            visitor_id=visitor_id,
            consent_choices=dict(consent_choices),
            consent_method=consent_method,
            ip_address_hash=ip_address_hash,
            user_agent=user_agent,
            consent_given_at=consent_given_at or utcnow(),
            consent_version=consent_version,
        )

    @property
    def is_active(self) -> bool:
        return self.withdrawn_at is None

    @property
    def is_withdrawn(self) -> bool:
        return self.withdrawn_at is not None

    def withdraw(self, now: datetime | None = None) -> None:
        """Mark the consent withdrawn; withdrawing again moves the timestamp."""
        self.withdrawn_at = now or utcnow()

    def accepted(self, category: str) -> bool:
        """Whether the visitor accepted a category (value exactly true)."""
        return self.consent_choices.get(str(category)) is True

    def rejected(self, category: str) -> bool:
        """Negation of accepted(): a key missing from the map counts as rejected."""
        return not self.accepted(category)

    @property
    def consent_rate(self) -> float:
        """Percentage of accepted categories among all recorded keys."""
        if not self.consent_choices:
            return 0.0
        accepted_count = sum(1 for v in self.consent_choices.values() if v is True)
        return round(accepted_count / len(self.consent_choices) * 100, 2)

    @property
    def accepted_all(self) -> bool:
        return all(v is True for v in self.consent_choices.values())

    @property
    def rejected_all(self) -> bool:
        return all(v is False for v in self.consent_choices.values())

    @property
    def summary(self) -> str:
        """Accepted categories joined by commas, or "None"."""
        accepted = [k for k, v in self.consent_choices.items() if v is True]
        return ", ".join(accepted) or "None"

    @property
    def method_label(self) -> str:
        return ConsentMethod(self.consent_method).label_fr
