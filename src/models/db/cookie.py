"""Cookie catalog database model."""

import enum
import re
import uuid
from typing import TYPE_CHECKING, assert_never

from sqlalchemy import Boolean, ForeignKey, String, Text, UniqueConstraint, false, true
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.db.base import Base, TimestampMixin, pg_enum

if TYPE_CHECKING:
    from src.models.db.website import Website

# "session", a number of seconds, or a number followed by a unit
EXPIRY_PATTERN = re.compile(
    r"\A(session|\d+\s*(day|days|month|months|year|years)|\d+)\Z",
    re.IGNORECASE,
)

DEFAULT_COOKIE_PATH = "/"


class CookieCategory(enum.StrEnum):
    """Regulated cookie categories (Monaco Law 1.565, Article 6).

    Declaration order is the canonical display order.
    """

    NECESSARY = "necessary"
    PREFERENCES = "preferences"
    STATISTICS = "statistics"
    MARKETING = "marketing"

    @property
    def label_fr(self) -> str:
        """French label shown to operators and visitors."""
        match self:
            case CookieCategory.NECESSARY:
                return "Nécessaires"
            case CookieCategory.PREFERENCES:
                return "Préférences"
            case CookieCategory.STATISTICS:
                return "Statistiques"
            case CookieCategory.MARKETING:
                return "Marketing"
            case _:
                assert_never(self)

    @property
    def sort_index(self) -> int:
        """Position in declaration order."""
        return list(CookieCategory).index(self)


class SameSitePolicy(enum.StrEnum):
    """SameSite attribute values."""

    STRICT = "Strict"
    LAX = "Lax"
    NONE = "None"


def is_valid_expiry(expiry: str | None) -> bool:
    """Blank expiry is allowed; anything else must match EXPIRY_PATTERN."""
    if expiry is None or not expiry.strip():
        return True
    return EXPIRY_PATTERN.match(expiry) is not None


class Cookie(Base, TimestampMixin):
    """A cookie known to be placed by a website."""

    __tablename__ = "cookies"

    website_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("websites.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    domain: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[CookieCategory] = mapped_column(
        pg_enum(CookieCategory, "cookie_category"),
        nullable=False,
        index=True,
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    expiry: Mapped[str | None] = mapped_column(String(64), nullable=True)
    path: Mapped[str] = mapped_column(
        String(255),
        default=DEFAULT_COOKIE_PATH,
        server_default=DEFAULT_COOKIE_PATH,
        nullable=False,
    )
    secure: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False
    )
    http_only: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=false(), nullable=False
    )
    same_site: Mapped[SameSitePolicy | None] = mapped_column(
        pg_enum(SameSitePolicy, "same_site_policy"),
        nullable=True,
    )
    active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=true(), nullable=False
    )

    website: Mapped["Website"] = relationship(back_populates="cookies")

    __table_args__ = (
        UniqueConstraint("website_id", "name", "domain"),
    )

    @property
    def is_necessary(self) -> bool:
        return self.category == CookieCategory.NECESSARY

    @property
    def requires_consent(self) -> bool:
        """Every category except necessary needs visitor consent."""
        return not self.is_necessary

    @property
    def is_persistent(self) -> bool:
        """True when an expiry is set and it is not a session expiry."""
        return bool(self.expiry) and self.expiry.lower() != "session"

    @property
    def is_session_cookie(self) -> bool:
        return not self.is_persistent

    @property
    def category_label(self) -> str:
        return CookieCategory(self.category).label_fr

    @property
    def summary(self) -> str:
        """One-line description, e.g. "_ga (Statistiques) on .example.com"."""
        return f"{self.name} ({self.category_label}) on {self.domain}"

    def activate(self) -> None:
        self.active = True

    def deactivate(self) -> None:
        self.active = False

    @staticmethod
    def catalog_order(cookie: "Cookie") -> tuple[int, str]:
        """Sort key for the canonical listing: category order, then name."""
        return CookieCategory(cookie.category).sort_index, cookie.name
