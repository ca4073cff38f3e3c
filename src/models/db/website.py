"""Website database model."""

import enum
import uuid
from datetime import datetime, timedelta
from typing import TYPE_CHECKING
from urllib.parse import urlsplit

from sqlalchemy import Boolean, DateTime, ForeignKey, String, UniqueConstraint, false
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.core.timeutils import add_months, utcnow
from src.models.db.base import Base, TimestampMixin, pg_enum

if TYPE_CHECKING:
    from src.models.db.account import Account
    from src.models.db.consent import Consent
    from src.models.db.cookie import Cookie

ALLOWED_URL_SCHEMES = ("http", "https")


class VerificationMethod(enum.StrEnum):
    """How an operator proves ownership of a website."""

    META_TAG = "meta_tag"
    DNS_TXT = "dns_txt"


def extract_domain(url: str) -> str:
    """Return the host of an http(s) URL.

    Raises:
        ValueError: If the URL cannot be parsed, is not http(s) or has no host
    """
    if not url or any(ch.isspace() for ch in url):
        raise ValueError("must be a valid URL")
    try:
        parts = urlsplit(url)
        host = parts.hostname
        parts.port  # noqa: B018 - raises on a malformed port
    except ValueError as e:
        raise ValueError("is not a valid URL") from e
    if parts.scheme.lower() not in ALLOWED_URL_SCHEMES or not host:
        raise ValueError("must be a valid URL")
    return host


class Website(Base, TimestampMixin):
    """A customer website whose cookies and visitor consents are managed.

    The domain is always derived from the URL; assign URLs through
    change_url() so the two never drift apart.
    """

    __tablename__ = "websites"

    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    url: Mapped[str] = mapped_column(String(2048), nullable=False)
    domain: Mapped[str] = mapped_column(String(255), nullable=False)
    verified: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        server_default=false(),
        nullable=False,
    )
    verification_token: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        unique=True,
    )
    verification_method: Mapped[VerificationMethod | None] = mapped_column(
        pg_enum(VerificationMethod, "verification_method"),
        nullable=True,
    )
    api_key: Mapped[str] = mapped_column(
        String(128),
        nullable=False,
        unique=True,
        comment="Public key used by the consent banner; immutable",
    )
    last_scan_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    next_scan_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    # Relationships
    account: Mapped["Account"] = relationship(back_populates="websites")
    cookies: Mapped[list["Cookie"]] = relationship(
        back_populates="website",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    consents: Mapped[list["Consent"]] = relationship(
        back_populates="website",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        UniqueConstraint("account_id", "domain"),
    )

    def change_url(self, url: str) -> None:
        """Set the URL and re-derive the domain from it.

        Raises:
            ValueError: If the URL is not a valid http(s) URL
        """
        domain = extract_domain(url)
        self.url = url
        self.domain = domain

    def verify(self) -> None:
        """Mark ownership as proven and drop the pending challenge."""
        self.verified = True
        self.verification_token = None
        self.verification_method = None

    def schedule_next_scan(
        self,
        interval: timedelta | None = None,
        now: datetime | None = None,
    ) -> None:
        """Record a scan now and plan the next one.

        Args:
            interval: Time until the next scan (default: one calendar month)
            now: Reference time, defaults to the current UTC time
        """
        now = now or utcnow()
        self.last_scan_at = now
        self.next_scan_at = add_months(now, 1) if interval is None else now + interval

    def needs_scan(self, now: datetime | None = None) -> bool:
        """Whether no scan is planned or the planned scan is due."""
        if self.next_scan_at is None:
            return True
        return self.next_scan_at <= (now or utcnow())
