"""Repository for operator API key operations."""

import uuid

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.timeutils import utcnow
from src.models.db.account import Account
from src.models.db.api_key import ApiKey


class ApiKeyRepository:
    """Repository for account and API key database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create_account(self, name: str) -> Account:
        """Create a new account (tenant).

        Args:
            name: Display name of the account

        Returns:
            The created account
        """
        account = Account(name=name)
        self.session.add(account)
        await self.session.flush()
        await self.session.refresh(account)
        return account

    async def create(self, api_key: ApiKey) -> ApiKey:
        """Create a new API key.

        Args:
            api_key: The API key to create

        Returns:
            The created API key
        """
        self.session.add(api_key)
        await self.session.flush()
        await self.session.refresh(api_key)
        return api_key

    async def get_active_by_hash(self, key_hash: str) -> ApiKey | None:
        """Find an active key by the HMAC of its plaintext.

        Args:
            key_hash: HMAC of the presented key

        Returns:
            The matching active key, None otherwise
        """
        result = await self.session.execute(
            select(ApiKey).where(
                ApiKey.key_hash == key_hash,
                ApiKey.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()

    async def update_last_used(self, api_key_id: uuid.UUID) -> None:
        """Update the last_used_at timestamp for an API key."""
        await self.session.execute(
            update(ApiKey)
            .where(ApiKey.id == api_key_id)
            .values(last_used_at=utcnow())
        )
