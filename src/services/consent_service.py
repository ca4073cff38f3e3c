"""Service for the consent log."""

import logging
import uuid
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.config import Settings, get_settings
from src.core.exceptions import NotFoundError, ValidationError
from src.core.pagination import DEFAULT_PAGE_SIZE, CursorPage, create_cursor_page
from src.core.security import hash_ip_address
from src.core.timeutils import utcnow
from src.models.db.consent import (
    Consent,
    ConsentMethod,
    consent_choices_errors,
    retention_cutoff,
)
from src.models.db.website import Website
from src.models.domain.consent import (
    ConsentCapture,
    ConsentRead,
    ConsentStats,
    PurgeResult,
)
from src.repositories.consent_repo import (
    ConsentRepository,
    active_clause,
    recent_clause,
    withdrawn_clause,
)

logger = logging.getLogger(__name__)


class ConsentService:
    """Service for recording, withdrawing and purging visitor consents."""

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
    ) -> None:
        self.session = session
        self.settings = settings or get_settings()
        self.repo = ConsentRepository(session)

    def _hash_ip(self, raw_ip_address: str) -> str:
        return hash_ip_address(raw_ip_address, self.settings)

    async def record_consent(
        self,
        website: Website,
        capture: ConsentCapture,
        raw_ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> ConsentRead:
        """Record a visitor's consent decision for a website.

        The raw IP address is hashed here and then dropped; it is never
        stored or logged.

        Args:
            website: The website the banner is shown on
            capture: The visitor decision
            raw_ip_address: Visitor IP taken from the request, if known
            user_agent: Visitor user agent, if known

        Returns:
            The created consent record

        Raises:
            ValidationError: If consent_choices lacks a category or holds a
                non-boolean value
        """
        errors = consent_choices_errors(capture.consent_choices)
        if errors:
            raise ValidationError({"consent_choices": errors})

        consent = Consent.capture(
            account_id=website.account_id,
            website_id=website.id,
            visitor_id=capture.visitor_id,
            consent_choices=capture.consent_choices,
            consent_method=capture.consent_method,
            ip_hasher=self._hash_ip,
            raw_ip_address=raw_ip_address,
            user_agent=user_agent,
            consent_given_at=capture.consent_given_at,
            consent_version=capture.consent_version,
        )
        created = await self.repo.create(consent)

        logger.info(
            "Consent recorded",
            extra={
                "consent_id": str(created.id),
                "website_id": str(website.id),
                "consent_method": created.consent_method,
            },
        )
        return ConsentRead.model_validate(created)

    async def get_consent(
        self,
        consent_id: uuid.UUID,
        account_id: uuid.UUID,
    ) -> Consent:
        """Load a consent record owned by an account.

        Raises:
            NotFoundError: If the consent does not exist for the account
        """
        consent = await self.repo.get_by_id(consent_id, account_id=account_id)
        if consent is None:
            raise NotFoundError(resource="Consent", resource_id=str(consent_id))
        return consent

    async def withdraw_consent(
        self,
        consent_id: uuid.UUID,
        account_id: uuid.UUID,
        now: datetime | None = None,
    ) -> ConsentRead:
        """Withdraw a consent.

        Withdrawing an already withdrawn consent succeeds and moves the
        withdrawal timestamp to now.

        Raises:
            NotFoundError: If the consent does not exist for the account
        """
        consent = await self.get_consent(consent_id, account_id)
        consent.withdraw(now)
        updated = await self.repo.save(consent)
        logger.info(
            "Consent withdrawn",
            extra={"consent_id": str(updated.id), "website_id": str(updated.website_id)},
        )
        return ConsentRead.model_validate(updated)

    async def list_consents(
        self,
        website: Website,
        active: bool | None = None,
        visitor_id: str | None = None,
        method: ConsentMethod | None = None,
        recent: bool = False,
        cursor: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> CursorPage[ConsentRead]:
        """List a website's consents, newest first.

        Args:
            website: The website
            active: True for active only, False for withdrawn only
            visitor_id: Only this visitor's consents
            method: Only consents given through this banner action
            recent: Only consents from the trailing 30 days
            cursor: Cursor returned with the previous page
            limit: Page size

        Raises:
            ValidationError: If the cursor is malformed
        """
        try:
            consents = await self.repo.list_for_website(
                website.id,
                active=active,
                visitor_id=visitor_id,
                method=method,
                recent=recent,
                cursor=cursor,
                limit=limit,
            )
        except ValueError as e:
            raise ValidationError.single("cursor", "is invalid") from e

        return create_cursor_page(
            consents,
            limit,
            get_sort_value=lambda c: c.consent_given_at,
            get_id=lambda c: c.id,
            transform=ConsentRead.model_validate,
        )

    async def visitor_history(
        self,
        website: Website,
        visitor_id: str,
    ) -> list[ConsentRead]:
        """Every decision a visitor made on a website, newest first."""
        consents = await self.repo.list_for_visitor(website.id, visitor_id)
        return [ConsentRead.model_validate(c) for c in consents]

    async def get_stats(
        self,
        website: Website,
        now: datetime | None = None,
    ) -> ConsentStats:
        """Consent counts for a website, overall and per banner action."""
        return ConsentStats(
            website_id=website.id,
            total=await self.repo.count_for_website(website.id),
            active=await self.repo.count_for_website(website.id, active_clause()),
            withdrawn=await self.repo.count_for_website(website.id, withdrawn_clause()),
            recent=await self.repo.count_for_website(website.id, recent_clause(now)),
            by_method=await self.repo.count_by_method(website.id),
        )

    async def purge_expired(
        self,
        now: datetime | None = None,
        batch_size: int | None = None,
    ) -> PurgeResult:
        """Permanently delete consents past the 13 month retention period.

        The cutoff is computed once, so consents that age out while the
        purge runs are left for the next run. Each batch is committed on
        its own to keep transactions short.

        Args:
            now: Reference time, defaults to the current UTC time
            batch_size: Rows per transaction, defaults to the configured size

        Returns:
            The number of deleted consents and the cutoff used
        """
        cutoff = retention_cutoff(now or utcnow())
        batch_size = batch_size or self.settings.retention_purge_batch_size

        total = 0
        while True:
            deleted = await self.repo.delete_expired_batch(cutoff, batch_size)
            await self.session.commit()
            total += deleted
            if deleted < batch_size:
                break

        logger.info(
            "Expired consents purged",
            extra={"deleted_count": total, "cutoff": cutoff.isoformat()},
        )
        return PurgeResult(deleted_count=total, cutoff=cutoff)
