"""Repository for consent operations."""

import uuid
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import ColumnElement, and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.pagination import decode_cursor
from src.core.timeutils import utcnow
from src.models.db.consent import RECENT_WINDOW_DAYS, Consent, ConsentMethod


def active_clause() -> ColumnElement[bool]:
    """Consents that have not been withdrawn."""
    return Consent.withdrawn_at.is_(None)


def withdrawn_clause() -> ColumnElement[bool]:
    return Consent.withdrawn_at.is_not(None)


def recent_clause(now: datetime | None = None) -> ColumnElement[bool]:
    """Consents given within the trailing 30 days."""
    since = (now or utcnow()) - timedelta(days=RECENT_WINDOW_DAYS)
    return Consent.consent_given_at >= since


def expired_clause(cutoff: datetime) -> ColumnElement[bool]:
    """Consents past the retention cutoff."""
    return Consent.consent_given_at < cutoff


class ConsentRepository:
    """Repository for consent database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, consent: Consent) -> Consent:
        """Persist a new consent record.

        Args:
            consent: The consent record to create

        Returns:
            The created consent record
        """
        self.session.add(consent)
        await self.session.flush()
        await self.session.refresh(consent)
        return consent

    async def save(self, consent: Consent) -> Consent:
        """Flush changes made to an existing record."""
        await self.session.flush()
        await self.session.refresh(consent)
        return consent

    async def get_by_id(
        self,
        consent_id: uuid.UUID,
        account_id: uuid.UUID | None = None,
    ) -> Consent | None:
        """Get a consent by ID, optionally scoped to an account.

        Args:
            consent_id: The consent ID
            account_id: Restrict the lookup to this account

        Returns:
            The consent if found, None otherwise
        """
        query = select(Consent).where(Consent.id == consent_id)
        if account_id is not None:
            query = query.where(Consent.account_id == account_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def list_for_website(
        self,
        website_id: uuid.UUID,
        active: bool | None = None,
        visitor_id: str | None = None,
        method: ConsentMethod | None = None,
        recent: bool = False,
        cursor: str | None = None,
        limit: int = 100,
    ) -> list[Consent]:
        """List a website's consents, newest first, with cursor pagination.

        Returns limit + 1 items so the caller can tell whether more exist.

        Args:
            website_id: The website ID
            active: True for active only, False for withdrawn only
            visitor_id: Filter by visitor
            method: Filter by consent method
            recent: Only consents from the trailing 30 days
            cursor: Pagination cursor from a previous page
            limit: Page size

        Returns:
            Matching consents ordered by consent_given_at desc, id desc
        """
        conditions: list[Any] = [Consent.website_id == website_id]

        if active is True:
            conditions.append(active_clause())
        elif active is False:
            conditions.append(withdrawn_clause())
        if visitor_id is not None:
            conditions.append(Consent.visitor_id == visitor_id)
        if method is not None:
            conditions.append(Consent.consent_method == method)
        if recent:
            conditions.append(recent_clause())

        if cursor:
            cursor_data = decode_cursor(cursor)
            cursor_date = datetime.fromisoformat(cursor_data.sort_value)
            cursor_id = uuid.UUID(cursor_data.id)
            conditions.append(
                or_(
                    Consent.consent_given_at < cursor_date,
                    and_(
                        Consent.consent_given_at == cursor_date,
                        Consent.id < cursor_id,
                    ),
                )
            )

        query = (
            select(Consent)
            .where(and_(*conditions))
            .order_by(Consent.consent_given_at.desc(), Consent.id.desc())
            .limit(limit + 1)
        )
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def list_for_visitor(
        self,
        website_id: uuid.UUID,
        visitor_id: str,
    ) -> list[Consent]:
        """Full consent history of one visitor on a website, newest first."""
        result = await self.session.execute(
            select(Consent)
            .where(
                Consent.website_id == website_id,
                Consent.visitor_id == visitor_id,
            )
            .order_by(Consent.consent_given_at.desc())
        )
        return list(result.scalars().all())

    async def count_for_website(
        self,
        website_id: uuid.UUID,
        *conditions: ColumnElement[bool],
    ) -> int:
        """Count a website's consents matching extra conditions."""
        result = await self.session.execute(
            select(func.count(Consent.id)).where(
                Consent.website_id == website_id, *conditions
            )
        )
        return result.scalar() or 0

    async def count_by_method(self, website_id: uuid.UUID) -> dict[ConsentMethod, int]:
        """Number of consents per method for a website."""
        result = await self.session.execute(
            select(Consent.consent_method, func.count(Consent.id))
            .where(Consent.website_id == website_id)
            .group_by(Consent.consent_method)
        )
        counts = {method: 0 for method in ConsentMethod}
        for method, count in result.all():
            counts[ConsentMethod(method)] = count
        return counts

    async def delete_expired_batch(self, cutoff: datetime, batch_size: int) -> int:
        """Delete up to batch_size consents given before the cutoff.

        Args:
            cutoff: Retention cutoff; older consents are deleted
            batch_size: Maximum rows removed by this statement

        Returns:
            Number of rows deleted
        """
        batch_ids = (
            select(Consent.id)
            .where(expired_clause(cutoff))
            .limit(batch_size)
            .scalar_subquery()
        )
        cursor_result = await self.session.execute(
            delete(Consent)
            .where(Consent.id.in_(batch_ids))
            .execution_options(synchronize_session=False)
        )
        rowcount = getattr(cursor_result, "rowcount", 0)
        return int(rowcount or 0)
