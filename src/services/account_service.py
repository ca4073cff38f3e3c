"""Service for accounts and their operator API keys."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.security import create_api_key
from src.models.db.api_key import ApiKey
from src.models.domain.api_key import AccountCreated
from src.repositories.api_key_repo import ApiKeyRepository

logger = logging.getLogger(__name__)


class AccountService:
    """Service for provisioning accounts."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = ApiKeyRepository(session)

    async def create_account(
        self,
        name: str,
        key_name: str = "default",
    ) -> AccountCreated:
        """Create an account together with its first operator API key.

        Args:
            name: Display name of the account
            key_name: Label for the generated key

        Returns:
            The key, including its plaintext (shown only once)
        """
        account = await self.repo.create_account(name)
        plain_key, key_hash = create_api_key()
        api_key = await self.repo.create(
            ApiKey(account_id=account.id, key_hash=key_hash, name=key_name)
        )
        logger.info("Account created", extra={"account_id": str(account.id)})
        return AccountCreated(
            account_id=account.id,
            account_name=account.name,
            key_id=api_key.id,
            key_name=api_key.name,
            key=plain_key,
            created_at=api_key.created_at,
        )
