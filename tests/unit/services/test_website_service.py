"""Tests for WebsiteService."""

import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy.exc import IntegrityError

from src.core.exceptions import NotFoundError, ValidationError
from src.models.db.website import VerificationMethod, Website
from src.models.domain.website import ScanSchedule, WebsiteCreate, WebsiteUpdate
from src.services.website_service import WebsiteService


@pytest.fixture
def account_id() -> uuid.UUID:
    return uuid.uuid4()


def make_website(account_id: uuid.UUID, **overrides: Any) -> Website:
    now = datetime.now(UTC)
    values: dict[str, Any] = {
        "id": uuid.uuid4(),
        "account_id": account_id,
        "url": "https://example.mc",
        "domain": "example.mc",
        "verified": False,
        "verification_token": "token-123",
        "verification_method": VerificationMethod.DNS_TXT,
        "api_key": "wk_existing",
        "created_at": now,
        "updated_at": now,
    }
    values.update(overrides)
    return Website(**values)


@pytest.fixture
def service(mock_session: AsyncMock) -> WebsiteService:
    with (
        patch("src.services.website_service.WebsiteRepository") as MockRepo,
        patch("src.services.website_service.ConsentRepository") as MockConsentRepo,
    ):
        service = WebsiteService(mock_session)
        service.repo = MockRepo.return_value
        service.consent_repo = MockConsentRepo.return_value
    return service


class TestRegisterWebsite:
    """Tests for register_website."""

    async def test_register_derives_domain_and_generates_keys(
        self,
        service: WebsiteService,
        account_id: uuid.UUID,
        persist: Callable[[Any], Any],
    ) -> None:
        service.repo.domain_taken = AsyncMock(return_value=False)
        service.repo.create = AsyncMock(side_effect=persist)

        result = await service.register_website(
            account_id,
            WebsiteCreate(
                url="https://www.boutique.mc/accueil",
                verification_method="meta_tag",
            ),
        )

        assert result.account_id == account_id
        assert result.domain == "www.boutique.mc"
        assert result.verified is False
        assert result.verification_method == VerificationMethod.META_TAG
        assert result.verification_token
        assert result.api_key
        service.repo.domain_taken.assert_awaited_once_with(account_id, "www.boutique.mc")

    async def test_register_generates_distinct_banner_keys(
        self,
        service: WebsiteService,
        account_id: uuid.UUID,
        persist: Callable[[Any], Any],
    ) -> None:
        service.repo.domain_taken = AsyncMock(return_value=False)
        service.repo.create = AsyncMock(side_effect=persist)

        first = await service.register_website(account_id, WebsiteCreate(url="https://a.mc"))
        second = await service.register_website(account_id, WebsiteCreate(url="https://b.mc"))

        assert first.api_key != second.api_key
        assert first.verification_token != second.verification_token

    async def test_register_duplicate_domain(
        self,
        service: WebsiteService,
        account_id: uuid.UUID,
    ) -> None:
        service.repo.domain_taken = AsyncMock(return_value=True)
        service.repo.create = AsyncMock()

        with pytest.raises(ValidationError) as exc_info:
            await service.register_website(account_id, WebsiteCreate(url="https://example.mc"))

        assert exc_info.value.errors == {"domain": ["has already been taken"]}
        service.repo.create.assert_not_awaited()

    async def test_register_concurrent_duplicate_maps_constraint(
        self,
        service: WebsiteService,
        account_id: uuid.UUID,
    ) -> None:
        """Test a unique violation at insert time is reported on the domain field."""
        service.repo.domain_taken = AsyncMock(return_value=False)
        service.repo.create = AsyncMock(
            side_effect=IntegrityError(
                "INSERT",
                {},
                Exception('violates unique constraint "uq_websites_account_id_domain"'),
            )
        )

        with pytest.raises(ValidationError) as exc_info:
            await service.register_website(account_id, WebsiteCreate(url="https://example.mc"))

        assert exc_info.value.errors == {"domain": ["has already been taken"]}


class TestGetWebsite:
    """Tests for get_website."""

    async def test_get_website_found(
        self, service: WebsiteService, account_id: uuid.UUID
    ) -> None:
        website = make_website(account_id)
        service.repo.get_by_id = AsyncMock(return_value=website)

        result = await service.get_website(website.id, account_id=account_id)

        assert result is website
        service.repo.get_by_id.assert_awaited_once_with(website.id, account_id=account_id)

    async def test_get_website_not_found(self, service: WebsiteService) -> None:
        service.repo.get_by_id = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError):
            await service.get_website(uuid.uuid4())


class TestChangeUrl:
    """Tests for change_url."""

    async def test_change_url_rederives_domain(
        self,
        service: WebsiteService,
        account_id: uuid.UUID,
        persist: Callable[[Any], Any],
    ) -> None:
        website = make_website(account_id)
        service.repo.domain_taken = AsyncMock(return_value=False)
        service.repo.save = AsyncMock(side_effect=persist)

        result = await service.change_url(website, WebsiteUpdate(url="https://new.example.mc/"))

        assert result.url == "https://new.example.mc/"
        assert result.domain == "new.example.mc"
        service.repo.domain_taken.assert_awaited_once_with(
            account_id, "new.example.mc", exclude_id=website.id
        )

    async def test_change_url_to_taken_domain_leaves_website_unchanged(
        self,
        service: WebsiteService,
        account_id: uuid.UUID,
    ) -> None:
        website = make_website(account_id)
        service.repo.domain_taken = AsyncMock(return_value=True)
        service.repo.save = AsyncMock()

        with pytest.raises(ValidationError):
            await service.change_url(website, WebsiteUpdate(url="https://taken.mc"))

        assert website.domain == "example.mc"
        service.repo.save.assert_not_awaited()


class TestVerify:
    """Tests for verify."""

    async def test_verify_clears_token(
        self,
        service: WebsiteService,
        account_id: uuid.UUID,
        persist: Callable[[Any], Any],
    ) -> None:
        website = make_website(account_id)
        service.repo.save = AsyncMock(side_effect=persist)

        result = await service.verify(website)

        assert result.verified is True
        assert result.verification_token is None
        assert result.verification_method is None

    async def test_verify_twice_is_noop(
        self,
        service: WebsiteService,
        account_id: uuid.UUID,
    ) -> None:
        website = make_website(
            account_id, verified=True, verification_token=None, verification_method=None
        )
        service.repo.save = AsyncMock()

        result = await service.verify(website)

        assert result.verified is True
        service.repo.save.assert_not_awaited()


class TestScans:
    """Tests for scan scheduling."""

    async def test_schedule_next_scan_default_month(
        self,
        service: WebsiteService,
        account_id: uuid.UUID,
        persist: Callable[[Any], Any],
    ) -> None:
        website = make_website(account_id)
        service.repo.save = AsyncMock(side_effect=persist)
        now = datetime(2025, 1, 31, tzinfo=UTC)

        result = await service.schedule_next_scan(website, now=now)

        assert result.last_scan_at == now
        assert result.next_scan_at == datetime(2025, 2, 28, tzinfo=UTC)

    async def test_schedule_next_scan_interval(
        self,
        service: WebsiteService,
        account_id: uuid.UUID,
        persist: Callable[[Any], Any],
    ) -> None:
        website = make_website(account_id)
        service.repo.save = AsyncMock(side_effect=persist)
        now = datetime(2025, 1, 1, tzinfo=UTC)

        result = await service.schedule_next_scan(
            website, ScanSchedule(interval_days=14), now=now
        )

        assert result.next_scan_at == now + timedelta(days=14)

    async def test_list_needing_scan(
        self,
        service: WebsiteService,
        account_id: uuid.UUID,
    ) -> None:
        due = make_website(account_id, next_scan_at=None)
        service.repo.list_needing_scan = AsyncMock(return_value=[due])

        result = await service.list_needing_scan(account_id=account_id)

        assert [w.id for w in result] == [due.id]
        service.repo.list_needing_scan.assert_awaited_once_with(None, account_id=account_id)


class TestStatsAndDelete:
    """Tests for get_stats and delete_website."""

    async def test_get_stats(
        self,
        service: WebsiteService,
        account_id: uuid.UUID,
    ) -> None:
        now = datetime(2025, 6, 1, tzinfo=UTC)
        website = make_website(account_id, next_scan_at=now + timedelta(days=3))
        service.repo.count_active_cookies = AsyncMock(return_value=7)
        service.consent_repo.count_for_website = AsyncMock(side_effect=[120, 15])

        stats = await service.get_stats(website, now)

        assert stats.website_id == website.id
        assert stats.active_cookies_count == 7
        assert stats.total_consents_count == 120
        assert stats.recent_consents_count == 15
        assert stats.needs_scan is False

    async def test_delete_website(
        self,
        service: WebsiteService,
        account_id: uuid.UUID,
    ) -> None:
        website = make_website(account_id)
        service.repo.delete = AsyncMock(return_value=True)

        await service.delete_website(website)

        service.repo.delete.assert_awaited_once_with(website.id)

    async def test_delete_missing_website(
        self,
        service: WebsiteService,
        account_id: uuid.UUID,
    ) -> None:
        service.repo.delete = AsyncMock(return_value=False)

        with pytest.raises(NotFoundError):
            await service.delete_website(make_website(account_id))
