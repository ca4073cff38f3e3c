"""API v1 router configuration."""

from fastapi import APIRouter

from src.api.v1.endpoints import consents, cookies, websites

router = APIRouter(prefix="/api/v1")

router.include_router(websites.router, prefix="/websites", tags=["websites"])
router.include_router(
    cookies.router, prefix="/websites/{website_id}/cookies", tags=["cookies"]
)
router.include_router(
    consents.website_router,
    prefix="/websites/{website_id}/consents",
    tags=["consents"],
)
router.include_router(consents.router, prefix="/consents", tags=["consents"])
