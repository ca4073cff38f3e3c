"""Shared fixtures for endpoint tests."""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from src.api.v1.dependencies import AuthContext, get_api_key_auth, get_owned_website
from src.api.v1.router import router
from src.core.database import get_db_session
from src.core.exceptions import setup_exception_handlers


@pytest.fixture
def auth_context() -> AuthContext:
    """Authenticated operator of a fresh account."""
    return AuthContext(
        api_key_id=uuid.uuid4(),
        account_id=uuid.uuid4(),
        api_key_name="test-key",
    )


@pytest.fixture
def owned_website(auth_context: AuthContext) -> MagicMock:
    """Website resolved from the path and owned by the caller."""
    website = MagicMock()
    website.id = uuid.uuid4()
    website.account_id = auth_context.account_id
    return website


@pytest.fixture
def app(auth_context: AuthContext, owned_website: MagicMock) -> FastAPI:
    """Create test app with the v1 router and mocked auth and database."""
    test_app = FastAPI()
    test_app.include_router(router)
    setup_exception_handlers(test_app)

    test_app.dependency_overrides[get_api_key_auth] = lambda: auth_context
    test_app.dependency_overrides[get_db_session] = lambda: AsyncMock()
    test_app.dependency_overrides[get_owned_website] = lambda: owned_website

    return test_app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Create test client."""
    return TestClient(app)
