"""Service for per-website cookie catalogs."""

import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from src.core.database import unique_violation_guard
from src.core.exceptions import NotFoundError, ValidationError
from src.models.db.cookie import Cookie, CookieCategory
from src.models.db.website import Website
from src.models.domain.cookie import CookieCreate, CookieRead, CookieUpdate
from src.repositories.cookie_repo import CookieRepository

logger = logging.getLogger(__name__)

COOKIE_UNIQUE_FIELDS = {
    "uq_cookies_website_id_name_domain": "name",
}


class CookieService:
    """Service for registering and classifying a website's cookies."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.repo = CookieRepository(session)

    async def register_cookie(
        self,
        website: Website,
        data: CookieCreate,
    ) -> CookieRead:
        """Add a cookie to a website's catalog.

        Args:
            website: The website placing the cookie
            data: Validated cookie attributes

        Returns:
            The cataloged cookie

        Raises:
            ValidationError: If the (name, domain) pair is already cataloged
                for this website
        """
        if await self.repo.exists(website.id, data.name, data.domain):
            raise ValidationError.single("name", "has already been taken")

        cookie = Cookie(website_id=website.id, **data.model_dump())
        async with unique_violation_guard(self.session, COOKIE_UNIQUE_FIELDS):
            created = await self.repo.create(cookie)

        logger.info(
            "Cookie registered",
            extra={
                "cookie_id": str(created.id),
                "website_id": str(website.id),
                "category": created.category,
            },
        )
        return CookieRead.model_validate(created)

    async def get_cookie(self, website: Website, cookie_id: uuid.UUID) -> Cookie:
        """Load a catalog entry of a website.

        Raises:
            NotFoundError: If the cookie is not in this website's catalog
        """
        cookie = await self.repo.get_by_id(cookie_id, website_id=website.id)
        if cookie is None:
            raise NotFoundError(resource="Cookie", resource_id=str(cookie_id))
        return cookie

    async def update_cookie(
        self,
        website: Website,
        cookie_id: uuid.UUID,
        data: CookieUpdate,
    ) -> CookieRead:
        """Edit a catalog entry; only fields present in the request change.

        Raises:
            NotFoundError: If the cookie is not in this website's catalog
            ValidationError: If the new (name, domain) pair is already taken
        """
        cookie = await self.get_cookie(website, cookie_id)
        changes = data.model_dump(exclude_unset=True)

        # name, domain and category are required columns
        for field in ("name", "domain", "category", "path"):
            if field in changes and changes[field] is None:
                raise ValidationError.single(field, "can't be blank")

        name = changes.get("name", cookie.name)
        domain = changes.get("domain", cookie.domain)
        if (name, domain) != (cookie.name, cookie.domain) and await self.repo.exists(
            website.id, name, domain, exclude_id=cookie.id
        ):
            raise ValidationError.single("name", "has already been taken")

        for field, value in changes.items():
            setattr(cookie, field, value)

        async with unique_violation_guard(self.session, COOKIE_UNIQUE_FIELDS):
            updated = await self.repo.save(cookie)
        return CookieRead.model_validate(updated)

    async def set_active(
        self,
        website: Website,
        cookie_id: uuid.UUID,
        active: bool,
    ) -> CookieRead:
        """Activate or deactivate a catalog entry. Repeating is a no-op."""
        cookie = await self.get_cookie(website, cookie_id)
        if cookie.active != active:
            if active:
                cookie.activate()
            else:
                cookie.deactivate()
            cookie = await self.repo.save(cookie)
        return CookieRead.model_validate(cookie)

    async def list_cookies(
        self,
        website: Website,
        active: bool | None = None,
        category: CookieCategory | None = None,
    ) -> list[CookieRead]:
        """Catalog listing in canonical order: category, then name."""
        cookies = await self.repo.list_for_website(
            website.id, active=active, category=category
        )
        return [CookieRead.model_validate(c) for c in cookies]

    async def delete_cookie(self, website: Website, cookie_id: uuid.UUID) -> None:
        """Remove a cookie from a website's catalog.

        Raises:
            NotFoundError: If the cookie is not in this website's catalog
        """
        cookie = await self.get_cookie(website, cookie_id)
        await self.repo.delete(cookie.id)
        logger.info(
            "Cookie deleted",
            extra={"cookie_id": str(cookie.id), "website_id": str(website.id)},
        )
