"""Service for the website registry."""

import logging
import uuid
from datetime import datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import unique_violation_guard
from src.core.exceptions import NotFoundError, ValidationError
from src.core.security import generate_verification_token, generate_website_api_key
from src.core.timeutils import utcnow
from src.models.db.website import Website, extract_domain
from src.models.domain.website import (
    ScanSchedule,
    WebsiteCreate,
    WebsiteRead,
    WebsiteStats,
    WebsiteUpdate,
)
from src.repositories.consent_repo import ConsentRepository, recent_clause
from src.repositories.website_repo import WebsiteRepository

logger = logging.getLogger(__name__)

WEBSITE_UNIQUE_FIELDS = {
    "uq_websites_account_id_domain": "domain",
    "uq_websites_api_key": "api_key",
    "uq_websites_verification_token": "verification_token",
}


class WebsiteService:
    """Service for registering websites and tracking their scans."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = WebsiteRepository(session)
        self.consent_repo = ConsentRepository(session)

    async def register_website(
        self,
        account_id: uuid.UUID,
        data: WebsiteCreate,
    ) -> WebsiteRead:
        """Register a website for an account.

        The domain is derived from the URL. A public banner key and an
        ownership verification token are generated.

        Args:
            account_id: The owning account
            data: URL and optional verification method

        Returns:
            The registered website

        Raises:
            ValidationError: If the URL is invalid or the domain is already
                registered by this account
        """
        website = Website(
            account_id=account_id,
            verified=False,
            verification_method=data.verification_method,
            verification_token=generate_verification_token(),
            api_key=generate_website_api_key(),
        )
        try:
            website.change_url(data.url)
        except ValueError as e:
            raise ValidationError.single("url", str(e)) from e

        if await self.repo.domain_taken(account_id, website.domain):
            raise ValidationError.single("domain", "has already been taken")

        async with unique_violation_guard(self.session, WEBSITE_UNIQUE_FIELDS):
            created = await self.repo.create(website)

        logger.info(
            "Website registered",
            extra={"website_id": str(created.id), "domain": created.domain},
        )
        return WebsiteRead.model_validate(created)

    async def get_website(
        self,
        website_id: uuid.UUID,
        account_id: uuid.UUID | None = None,
    ) -> Website:
        """Load a website, optionally scoped to an account.

        Raises:
            NotFoundError: If no such website exists for the account
        """
        website = await self.repo.get_by_id(website_id, account_id=account_id)
        if website is None:
            raise NotFoundError(resource="Website", resource_id=str(website_id))
        return website

    async def get_by_api_key(self, api_key: str) -> Website | None:
        """Find the website a consent banner key belongs to."""
        return await self.repo.get_by_api_key(api_key)

    async def list_websites(
        self,
        account_id: uuid.UUID,
        verified: bool | None = None,
    ) -> list[WebsiteRead]:
        """List an account's websites, optionally only (un)verified ones."""
        websites = await self.repo.list_for_account(account_id, verified=verified)
        return [WebsiteRead.model_validate(w) for w in websites]

    async def list_needing_scan(
        self,
        now: datetime | None = None,
        account_id: uuid.UUID | None = None,
    ) -> list[WebsiteRead]:
        """Websites whose cookie scan is due, across all accounts by default."""
        websites = await self.repo.list_needing_scan(now, account_id=account_id)
        return [WebsiteRead.model_validate(w) for w in websites]

    async def change_url(
        self,
        website: Website,
        data: WebsiteUpdate,
    ) -> WebsiteRead:
        """Point a website at a new URL, re-deriving its domain.

        Raises:
            ValidationError: If the URL is invalid or the new domain is already
                registered by the same account
        """
        try:
            domain = extract_domain(data.url)
        except ValueError as e:
            raise ValidationError.single("url", str(e)) from e

        if await self.repo.domain_taken(
            website.account_id, domain, exclude_id=website.id
        ):
            raise ValidationError.single("domain", "has already been taken")

        website.change_url(data.url)
        async with unique_violation_guard(self.session, WEBSITE_UNIQUE_FIELDS):
            updated = await self.repo.save(website)
        return WebsiteRead.model_validate(updated)

    async def verify(self, website: Website) -> WebsiteRead:
        """Mark a website verified. Verifying twice is a no-op."""
        if not website.verified:
            website.verify()
            website = await self.repo.save(website)
            logger.info("Website verified", extra={"website_id": str(website.id)})
        return WebsiteRead.model_validate(website)

    async def schedule_next_scan(
        self,
        website: Website,
        schedule: ScanSchedule | None = None,
        now: datetime | None = None,
    ) -> WebsiteRead:
        """Record a scan now and plan the next one.

        Args:
            website: The scanned website
            schedule: Interval override; one calendar month when omitted
            now: Reference time, defaults to the current UTC time
        """
        interval = None
        if schedule is not None and schedule.interval_days is not None:
            interval = timedelta(days=schedule.interval_days)
        website.schedule_next_scan(interval=interval, now=now)
        updated = await self.repo.save(website)
        return WebsiteRead.model_validate(updated)

    async def get_stats(
        self,
        website: Website,
        now: datetime | None = None,
    ) -> WebsiteStats:
        """Dashboard aggregates for a website."""
        now = now or utcnow()
        return WebsiteStats(
            website_id=website.id,
            active_cookies_count=await self.repo.count_active_cookies(website.id),
            total_consents_count=await self.consent_repo.count_for_website(website.id),
            recent_consents_count=await self.consent_repo.count_for_website(
                website.id, recent_clause(now)
            ),
            needs_scan=website.needs_scan(now),
        )

    async def delete_website(self, website: Website) -> None:
        """Delete a website together with its cookies and consents."""
        deleted = await self.repo.delete(website.id)
        if not deleted:
            raise NotFoundError(resource="Website", resource_id=str(website.id))
        logger.info("Website deleted", extra={"website_id": str(website.id)})
