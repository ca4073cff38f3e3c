"""Tests for Website model and schemas."""

import uuid
from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError
from sqlalchemy.dialects import postgresql

from src.models.db.website import VerificationMethod, Website, extract_domain
from src.models.domain.website import ScanSchedule, WebsiteCreate, WebsiteUpdate


def make_website(**overrides: object) -> Website:
    website = Website(
        id=uuid.uuid4(),
        account_id=uuid.uuid4(),
        url="https://shop.example.mc/fr",
        domain="shop.example.mc",
        verified=False,
        verification_token="tok",
        verification_method=VerificationMethod.META_TAG,
        api_key="wk_test",
    )
    for name, value in overrides.items():
        setattr(website, name, value)
    return website


class TestExtractDomain:
    """Tests for extract_domain."""

    @pytest.mark.parametrize(
        ("url", "domain"),
        [
            ("https://example.mc", "example.mc"),
            ("http://www.example.mc/path?q=1", "www.example.mc"),
            ("https://Example.MC:8443/", "example.mc"),
        ],
    )
    def test_valid_urls(self, url: str, domain: str) -> None:
        assert extract_domain(url) == domain

    @pytest.mark.parametrize(
        "url",
        [
            "",
            "example.mc",
            "ftp://example.mc",
            "https://",
            "https://exa mple.mc",
            "https://example.mc:notaport/",
        ],
    )
    def test_invalid_urls(self, url: str) -> None:
        with pytest.raises(ValueError):
            extract_domain(url)


class TestWebsiteModel:
    """Tests for Website database model."""

    def test_website_tablename(self) -> None:
        assert Website.__tablename__ == "websites"

    def test_domain_unique_per_account(self) -> None:
        """Test the (account_id, domain) unique constraint carries the conventional name."""
        names = {c.name for c in Website.__table__.constraints}

        assert "uq_websites_account_id_domain" in names
        assert "uq_websites_api_key" in names
        assert "uq_websites_verification_token" in names

    def test_verified_defaults_to_false(self) -> None:
        # SQLAlchemy defaults are applied at INSERT time, not Python instantiation
        assert Website.__table__.c.verified.default.arg is False
        server_default = Website.__table__.c.verified.server_default.arg
        assert str(server_default.compile(dialect=postgresql.dialect())) == "false"

    def test_change_url_rederives_domain(self) -> None:
        website = make_website()

        website.change_url("https://other.example.com/")

        assert website.url == "https://other.example.com/"
        assert website.domain == "other.example.com"

    def test_change_url_invalid_leaves_website_untouched(self) -> None:
        website = make_website()

        with pytest.raises(ValueError):
            website.change_url("not a url")

        assert website.url == "https://shop.example.mc/fr"
        assert website.domain == "shop.example.mc"

    def test_verify_clears_challenge(self) -> None:
        website = make_website()

        website.verify()

        assert website.verified is True
        assert website.verification_token is None
        assert website.verification_method is None

    def test_schedule_next_scan_defaults_to_one_month(self) -> None:
        website = make_website()
        now = datetime(2025, 1, 31, 9, 0, tzinfo=UTC)

        website.schedule_next_scan(now=now)

        assert website.last_scan_at == now
        assert website.next_scan_at == datetime(2025, 2, 28, 9, 0, tzinfo=UTC)

    def test_schedule_next_scan_with_interval(self) -> None:
        website = make_website()
        now = datetime(2025, 1, 1, tzinfo=UTC)

        website.schedule_next_scan(timedelta(days=7), now=now)

        assert website.next_scan_at == now + timedelta(days=7)

    def test_needs_scan(self) -> None:
        now = datetime(2025, 6, 1, tzinfo=UTC)

        assert make_website(next_scan_at=None).needs_scan(now) is True
        assert make_website(next_scan_at=now).needs_scan(now) is True
        assert make_website(next_scan_at=now - timedelta(days=1)).needs_scan(now) is True
        assert make_website(next_scan_at=now + timedelta(days=1)).needs_scan(now) is False


class TestWebsiteSchemas:
    """Tests for website request schemas."""

    def test_create_strips_url(self) -> None:
        schema = WebsiteCreate(url="  https://example.mc  ")

        assert schema.url == "https://example.mc"
        assert schema.verification_method is None

    def test_create_rejects_non_http_url(self) -> None:
        with pytest.raises(ValidationError) as exc_info:
            WebsiteCreate(url="mailto:owner@example.mc")

        assert exc_info.value.errors()[0]["loc"] == ("url",)

    def test_update_requires_url(self) -> None:
        with pytest.raises(ValidationError):
            WebsiteUpdate()  # type: ignore[call-arg]

    def test_scan_interval_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            ScanSchedule(interval_days=0)

        assert ScanSchedule().interval_days is None
