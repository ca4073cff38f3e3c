"""FastAPI dependencies for API v1."""

import uuid
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import get_db_session
from src.core.exceptions import UnauthorizedError
from src.core.security import hash_api_key, is_valid_api_key_format
from src.core.tenant import TenantContext
from src.models.db.website import Website
from src.repositories.api_key_repo import ApiKeyRepository
from src.repositories.website_repo import WebsiteRepository


@dataclass
class AuthContext:
    """Authentication context containing validated API key info."""

    api_key_id: uuid.UUID
    account_id: uuid.UUID
    api_key_name: str


async def get_api_key_auth(
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
    session: AsyncSession = Depends(get_db_session),
) -> AuthContext:
    """Validate an operator API key and return authentication context.

    Args:
        x_api_key: The API key from X-API-Key header
        session: Database session

    Returns:
        AuthContext with validated API key information

    Raises:
        UnauthorizedError: If API key is missing, invalid, or inactive
    """
    if not x_api_key:
        raise UnauthorizedError("API key required. Provide X-API-Key header.")

    if not is_valid_api_key_format(x_api_key):
        raise UnauthorizedError("Invalid API key format.")

    # Keys are stored as deterministic HMACs, so look the hash up directly
    repo = ApiKeyRepository(session)
    api_key = await repo.get_active_by_hash(hash_api_key(x_api_key))
    if api_key is None:
        raise UnauthorizedError("Invalid API key.")

    await repo.update_last_used(api_key.id)
    return AuthContext(
        api_key_id=api_key.id,
        account_id=api_key.account_id,
        api_key_name=api_key.name,
    )


# Type alias for dependency injection
Auth = Annotated[AuthContext, Depends(get_api_key_auth)]


async def get_website_key_auth(
    x_website_key: Annotated[str | None, Header(alias="X-Website-Key")] = None,
    session: AsyncSession = Depends(get_db_session),
) -> Website:
    """Resolve the website a consent banner key belongs to.

    Raises:
        UnauthorizedError: If the key is missing or unknown
    """
    if not x_website_key:
        raise UnauthorizedError("Website key required. Provide X-Website-Key header.")

    website = await WebsiteRepository(session).get_by_api_key(x_website_key)
    if website is None:
        raise UnauthorizedError("Invalid website key.")
    return website


BannerWebsite = Annotated[Website, Depends(get_website_key_auth)]


def get_tenant(
    auth: Auth,
    session: AsyncSession = Depends(get_db_session),
) -> TenantContext:
    """Account-scoped context for operator endpoints."""
    return TenantContext(account_id=auth.account_id, db_session=session)


Tenant = Annotated[TenantContext, Depends(get_tenant)]


async def get_owned_website(website_id: uuid.UUID, tenant: Tenant) -> Website:
    """Load the website named in the path if the caller's account owns it."""
    return await tenant.require_website(website_id)


OwnedWebsite = Annotated[Website, Depends(get_owned_website)]
