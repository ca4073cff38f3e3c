"""Database models package."""

from src.models.db.account import Account
from src.models.db.api_key import ApiKey
from src.models.db.base import Base, TimestampMixin
from src.models.db.consent import Consent, ConsentMethod
from src.models.db.cookie import Cookie, CookieCategory, SameSitePolicy
from src.models.db.website import VerificationMethod, Website

__all__ = [
    "Account",
    "ApiKey",
    "Base",
    "Consent",
    "ConsentMethod",
    "Cookie",
    "CookieCategory",
    "SameSitePolicy",
    "TimestampMixin",
    "VerificationMethod",
    "Website",
]
