"""Repository for website operations."""

import uuid
from datetime import datetime

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.timeutils import utcnow
from src.models.db.cookie import Cookie
from src.models.db.website import Website


class WebsiteRepository:
    """Repository for website database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, website: Website) -> Website:
        """Persist a new website."""
        self.session.add(website)
        await self.session.flush()
        await self.session.refresh(website)
        return website

    async def save(self, website: Website) -> Website:
        """Flush changes made to an existing website."""
        await self.session.flush()
        await self.session.refresh(website)
        return website

    async def get_by_id(
        self,
        website_id: uuid.UUID,
        account_id: uuid.UUID | None = None,
    ) -> Website | None:
        """Get a website by ID, optionally scoped to an account."""
        query = select(Website).where(Website.id == website_id)
        if account_id is not None:
            query = query.where(Website.account_id == account_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_by_api_key(self, api_key: str) -> Website | None:
        """Find the website a consent banner key belongs to."""
        result = await self.session.execute(
            select(Website).where(Website.api_key == api_key)
        )
        return result.scalar_one_or_none()

    async def domain_taken(
        self,
        account_id: uuid.UUID,
        domain: str,
        exclude_id: uuid.UUID | None = None,
    ) -> bool:
        """Whether another website of the account already uses the domain."""
        query = select(func.count(Website.id)).where(
            Website.account_id == account_id,
            Website.domain == domain,
        )
        if exclude_id is not None:
            query = query.where(Website.id != exclude_id)
        result = await self.session.execute(query)
        return (result.scalar() or 0) > 0

    async def list_for_account(
        self,
        account_id: uuid.UUID,
        verified: bool | None = None,
    ) -> list[Website]:
        """List an account's websites ordered by domain."""
        query = select(Website).where(Website.account_id == account_id)
        if verified is not None:
            query = query.where(Website.verified == verified)
        result = await self.session.execute(query.order_by(Website.domain))
        return list(result.scalars().all())

    async def list_needing_scan(
        self,
        now: datetime | None = None,
        account_id: uuid.UUID | None = None,
    ) -> list[Website]:
        """Websites with no scan planned or a planned scan already due."""
        now = now or utcnow()
        query = select(Website).where(
            or_(Website.next_scan_at.is_(None), Website.next_scan_at <= now)
        )
        if account_id is not None:
            query = query.where(Website.account_id == account_id)
        result = await self.session.execute(
            query.order_by(Website.next_scan_at.asc().nulls_first())
        )
        return list(result.scalars().all())

    async def count_active_cookies(self, website_id: uuid.UUID) -> int:
        """Number of active catalog entries for a website."""
        result = await self.session.execute(
            select(func.count(Cookie.id)).where(
                Cookie.website_id == website_id,
                Cookie.active.is_(True),
            )
        )
        return result.scalar() or 0

    async def delete(self, website_id: uuid.UUID) -> bool:
        """Delete a website; cookies and consents go with it (FK cascade).

        Returns:
            True if a website was deleted, False if not found
        """
        cursor_result = await self.session.execute(
            delete(Website).where(Website.id == website_id)
        )
        rowcount = getattr(cursor_result, "rowcount", 0)
        return bool(rowcount and rowcount > 0)
