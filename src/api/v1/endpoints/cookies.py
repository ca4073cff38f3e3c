"""Cookie catalog API endpoints."""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response

from src.api.v1.dependencies import OwnedWebsite
from src.core.database import DbSession
from src.models.db.cookie import CookieCategory
from src.models.domain.cookie import CookieCreate, CookieRead, CookieUpdate
from src.services.cookie_service import CookieService

router = APIRouter()


def get_cookie_service(session: DbSession) -> CookieService:
    """Get cookie service instance."""
    return CookieService(session)


CookieSvc = Annotated[CookieService, Depends(get_cookie_service)]


@router.post("", response_model=CookieRead, status_code=201)
async def register_cookie(
    data: CookieCreate,
    website: OwnedWebsite,
    service: CookieSvc,
) -> CookieRead:
    """Add a cookie to the website's catalog.

    Returns 422 if the expiry is malformed or the (name, domain) pair is
    already cataloged for the website.
    """
    return await service.register_cookie(website, data)


@router.get("", response_model=list[CookieRead])
async def list_cookies(
    website: OwnedWebsite,
    service: CookieSvc,
    active: Annotated[
        bool | None, Query(description="Only active (true) or inactive (false)")
    ] = None,
    category: Annotated[
        CookieCategory | None, Query(description="Only this category")
    ] = None,
) -> list[CookieRead]:
    """List the catalog, ordered by category then name."""
    return await service.list_cookies(website, active=active, category=category)


@router.get("/{cookie_id}", response_model=CookieRead)
async def get_cookie(
    cookie_id: uuid.UUID,
    website: OwnedWebsite,
    service: CookieSvc,
) -> CookieRead:
    """Get one catalog entry."""
    return CookieRead.model_validate(await service.get_cookie(website, cookie_id))


@router.patch("/{cookie_id}", response_model=CookieRead)
async def update_cookie(
    cookie_id: uuid.UUID,
    data: CookieUpdate,
    website: OwnedWebsite,
    service: CookieSvc,
) -> CookieRead:
    """Edit a catalog entry."""
    return await service.update_cookie(website, cookie_id, data)


@router.post("/{cookie_id}/activate", response_model=CookieRead)
async def activate_cookie(
    cookie_id: uuid.UUID,
    website: OwnedWebsite,
    service: CookieSvc,
) -> CookieRead:
    """Mark a cookie as in use."""
    return await service.set_active(website, cookie_id, active=True)


@router.post("/{cookie_id}/deactivate", response_model=CookieRead)
async def deactivate_cookie(
    cookie_id: uuid.UUID,
    website: OwnedWebsite,
    service: CookieSvc,
) -> CookieRead:
    """Mark a cookie as no longer in use."""
    return await service.set_active(website, cookie_id, active=False)


@router.delete("/{cookie_id}", status_code=204)
async def delete_cookie(
    cookie_id: uuid.UUID,
    website: OwnedWebsite,
    service: CookieSvc,
) -> Response:
    """Remove a cookie from the catalog."""
    await service.delete_cookie(website, cookie_id)
    return Response(status_code=204)
