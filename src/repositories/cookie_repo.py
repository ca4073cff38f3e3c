"""Repository for cookie catalog operations."""

import uuid

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.db.cookie import Cookie, CookieCategory


class CookieRepository:
    """Repository for cookie database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, cookie: Cookie) -> Cookie:
        """Persist a new catalog entry."""
        self.session.add(cookie)
        await self.session.flush()
        await self.session.refresh(cookie)
        return cookie

    async def save(self, cookie: Cookie) -> Cookie:
        """Flush changes made to an existing entry."""
        await self.session.flush()
        await self.session.refresh(cookie)
        return cookie

    async def get_by_id(
        self,
        cookie_id: uuid.UUID,
        website_id: uuid.UUID | None = None,
    ) -> Cookie | None:
        """Get a cookie by ID, optionally scoped to a website."""
        query = select(Cookie).where(Cookie.id == cookie_id)
        if website_id is not None:
            query = query.where(Cookie.website_id == website_id)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def exists(
        self,
        website_id: uuid.UUID,
        name: str,
        domain: str,
        exclude_id: uuid.UUID | None = None,
    ) -> bool:
        """Whether the (website, name, domain) triple is already cataloged."""
        query = select(func.count(Cookie.id)).where(
            Cookie.website_id == website_id,
            Cookie.name == name,
            Cookie.domain == domain,
        )
        if exclude_id is not None:
            query = query.where(Cookie.id != exclude_id)
        result = await self.session.execute(query)
        return (result.scalar() or 0) > 0

    async def list_for_website(
        self,
        website_id: uuid.UUID,
        active: bool | None = None,
        category: CookieCategory | None = None,
    ) -> list[Cookie]:
        """Canonical listing: category in declaration order, then name.

        The cookie_category enum type sorts in declaration order.
        """
        query = select(Cookie).where(Cookie.website_id == website_id)
        if active is not None:
            query = query.where(Cookie.active.is_(active))
        if category is not None:
            query = query.where(Cookie.category == category)
        result = await self.session.execute(
            query.order_by(Cookie.category, Cookie.name)
        )
        return list(result.scalars().all())

    async def delete(self, cookie_id: uuid.UUID) -> bool:
        """Delete a catalog entry.

        Returns:
            True if deleted, False if not found
        """
        cursor_result = await self.session.execute(
            delete(Cookie).where(Cookie.id == cookie_id)
        )
        rowcount = getattr(cursor_result, "rowcount", 0)
        return bool(rowcount and rowcount > 0)
