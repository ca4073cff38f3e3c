"""Account database model."""

from typing import TYPE_CHECKING

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models.db.base import Base, TimestampMixin

if TYPE_CHECKING:
    from src.models.db.api_key import ApiKey
    from src.models.db.website import Website


class Account(Base, TimestampMixin):
    """Account model representing a customer (tenant) operating websites."""

    __tablename__ = "accounts"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Relationships
    websites: Mapped[list["Website"]] = relationship(
        back_populates="account",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    api_keys: Mapped[list["ApiKey"]] = relationship(
        back_populates="account",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
