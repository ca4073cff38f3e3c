"""Consent log API endpoints.

`router` carries the banner capture endpoint and per-record operations;
`website_router` carries the per-website listings.
"""

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request

from src.api.v1.dependencies import Auth, BannerWebsite, OwnedWebsite
from src.core.database import DbSession
from src.core.exceptions import RateLimitError
from src.core.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, CursorPage
from src.models.db.consent import ConsentMethod
from src.models.domain.consent import ConsentCapture, ConsentRead, ConsentStats
from src.services.consent_service import ConsentService
from src.services.rate_limiter import CaptureRateLimiter, RateLimitExceeded

router = APIRouter()
website_router = APIRouter()


def get_consent_service(session: DbSession) -> ConsentService:
    """Get consent service instance."""
    return ConsentService(session)


def get_capture_rate_limiter() -> CaptureRateLimiter:
    """Get capture rate limiter instance."""
    return CaptureRateLimiter()


ConsentSvc = Annotated[ConsentService, Depends(get_consent_service)]
RateLimiterDep = Annotated[CaptureRateLimiter, Depends(get_capture_rate_limiter)]


def get_client_info(request: Request) -> tuple[str | None, str | None]:
    """Extract IP address and user agent from request."""
    ip_address = request.client.host if request.client else None
    user_agent = request.headers.get("user-agent")
    return ip_address, user_agent


@router.post("", response_model=ConsentRead, status_code=201)
async def capture_consent(
    capture: ConsentCapture,
    request: Request,
    website: BannerWebsite,
    service: ConsentSvc,
    rate_limiter: RateLimiterDep,
) -> ConsentRead:
    """Record a visitor decision sent by a consent banner.

    Authenticated with the website's X-Website-Key. The visitor IP is
    taken from the connection and only its hash is stored.
    """
    try:
        await rate_limiter.check_and_consume(website.id)
    except RateLimitExceeded as e:
        raise RateLimitError(detail=str(e), retry_after=e.reset_time) from e

    ip_address, user_agent = get_client_info(request)
    return await service.record_consent(
        website,
        capture,
        raw_ip_address=ip_address,
        user_agent=user_agent,
    )


@router.get("/{consent_id}", response_model=ConsentRead)
async def get_consent(
    consent_id: uuid.UUID,
    auth: Auth,
    service: ConsentSvc,
) -> ConsentRead:
    """Get one consent record of the caller's account."""
    consent = await service.get_consent(consent_id, auth.account_id)
    return ConsentRead.model_validate(consent)


@router.post("/{consent_id}/withdraw", response_model=ConsentRead)
async def withdraw_consent(
    consent_id: uuid.UUID,
    auth: Auth,
    service: ConsentSvc,
) -> ConsentRead:
    """Withdraw a consent. Withdrawing again moves the timestamp."""
    return await service.withdraw_consent(consent_id, auth.account_id)


@website_router.get("", response_model=CursorPage[ConsentRead])
async def list_consents(
    website: OwnedWebsite,
    service: ConsentSvc,
    active: Annotated[
        bool | None, Query(description="Only active (true) or withdrawn (false)")
    ] = None,
    visitor_id: Annotated[str | None, Query(description="Only this visitor")] = None,
    method: Annotated[
        ConsentMethod | None, Query(description="Only this banner action")
    ] = None,
    recent: Annotated[bool, Query(description="Only the last 30 days")] = False,
    cursor: Annotated[str | None, Query(description="Pagination cursor")] = None,
    limit: Annotated[
        int, Query(ge=1, le=MAX_PAGE_SIZE, description="Page size")
    ] = DEFAULT_PAGE_SIZE,
) -> CursorPage[ConsentRead]:
    """List the website's consents, newest first."""
    return await service.list_consents(
        website,
        active=active,
        visitor_id=visitor_id,
        method=method,
        recent=recent,
        cursor=cursor,
        limit=limit,
    )


@website_router.get("/stats", response_model=ConsentStats)
async def get_consent_stats(website: OwnedWebsite, service: ConsentSvc) -> ConsentStats:
    """Consent counts for the website."""
    return await service.get_stats(website)


@website_router.get("/visitors/{visitor_id}", response_model=list[ConsentRead])
async def get_visitor_history(
    visitor_id: str,
    website: OwnedWebsite,
    service: ConsentSvc,
) -> list[ConsentRead]:
    """Every decision a visitor made on the website, newest first."""
    return await service.visitor_history(website, visitor_id)
