"""Website registry API endpoints."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response

from src.api.v1.dependencies import Auth, OwnedWebsite
from src.core.database import DbSession
from src.models.domain.website import (
    ScanSchedule,
    WebsiteCreate,
    WebsiteRead,
    WebsiteStats,
    WebsiteUpdate,
)
from src.services.website_service import WebsiteService

router = APIRouter()


def get_website_service(session: DbSession) -> WebsiteService:
    """Get website service instance."""
    return WebsiteService(session)


WebsiteSvc = Annotated[WebsiteService, Depends(get_website_service)]


@router.post("", response_model=WebsiteRead, status_code=201)
async def register_website(
    data: WebsiteCreate,
    auth: Auth,
    service: WebsiteSvc,
) -> WebsiteRead:
    """Register a website for the caller's account.

    Returns 422 if the URL is not http(s) or the domain is already
    registered by the account.
    """
    return await service.register_website(auth.account_id, data)


@router.get("", response_model=list[WebsiteRead])
async def list_websites(
    auth: Auth,
    service: WebsiteSvc,
    verified: Annotated[
        bool | None, Query(description="Only verified (true) or unverified (false)")
    ] = None,
    needs_scan: Annotated[
        bool, Query(description="Only websites whose cookie scan is due")
    ] = False,
) -> list[WebsiteRead]:
    """List the account's websites."""
    if needs_scan:
        websites = await service.list_needing_scan(account_id=auth.account_id)
        if verified is not None:
            websites = [w for w in websites if w.verified == verified]
        return websites
    return await service.list_websites(auth.account_id, verified=verified)


@router.get("/{website_id}", response_model=WebsiteRead)
async def get_website(website: OwnedWebsite) -> WebsiteRead:
    """Get one website."""
    return WebsiteRead.model_validate(website)


@router.patch("/{website_id}", response_model=WebsiteRead)
async def change_website_url(
    data: WebsiteUpdate,
    website: OwnedWebsite,
    service: WebsiteSvc,
) -> WebsiteRead:
    """Change a website's URL; the domain follows."""
    return await service.change_url(website, data)


@router.post("/{website_id}/verify", response_model=WebsiteRead)
async def verify_website(website: OwnedWebsite, service: WebsiteSvc) -> WebsiteRead:
    """Mark website ownership as proven."""
    return await service.verify(website)


@router.post("/{website_id}/scan", response_model=WebsiteRead)
async def schedule_next_scan(
    website: OwnedWebsite,
    service: WebsiteSvc,
    schedule: ScanSchedule | None = None,
) -> WebsiteRead:
    """Record a cookie scan now and plan the next one."""
    return await service.schedule_next_scan(website, schedule)


@router.get("/{website_id}/stats", response_model=WebsiteStats)
async def get_website_stats(website: OwnedWebsite, service: WebsiteSvc) -> WebsiteStats:
    """Cookie and consent aggregates for a website."""
    return await service.get_stats(website)


@router.delete("/{website_id}", status_code=204)
async def delete_website(website: OwnedWebsite, service: WebsiteSvc) -> Response:
    """Delete a website with its cookie catalog and consent log."""
    await service.delete_website(website)
    return Response(status_code=204)
