"""Tenant isolation helpers."""

import uuid
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.exceptions import ForbiddenError, NotFoundError
from src.models.db.website import Website


@dataclass
class TenantContext:
    """Context for account-scoped operations."""

    account_id: uuid.UUID
    db_session: AsyncSession

    async def require_website(self, website_id: uuid.UUID) -> Website:
        """Load a website and check that it belongs to the tenant's account.

        Args:
            website_id: The website ID to validate

        Returns:
            The Website if valid

        Raises:
            NotFoundError: If the website does not exist
            ForbiddenError: If the website belongs to a different account
        """
        result = await self.db_session.execute(
            select(Website).where(Website.id == website_id)
        )
        website = result.scalar_one_or_none()

        if not website:
            raise NotFoundError(resource="Website", resource_id=str(website_id))

        if website.account_id != self.account_id:
            raise ForbiddenError(
                detail="Access denied: website belongs to a different account"
            )

        return website
