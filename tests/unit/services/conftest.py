"""Shared fixtures for service tests."""

import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest


@pytest.fixture
def mock_session() -> AsyncMock:
    """Async session whose begin_nested() works as a savepoint context."""
    session = AsyncMock()
    nested = MagicMock()
    nested.__aenter__ = AsyncMock(return_value=None)
    nested.__aexit__ = AsyncMock(return_value=False)
    session.begin_nested = MagicMock(return_value=nested)
    return session


@pytest.fixture
def persist() -> Callable[[Any], Any]:
    """Mimic a flush + refresh: fill the id and timestamps the database sets."""

    def _persist(record: Any) -> Any:
        now = datetime.now(UTC)
        if record.id is None:
            record.id = uuid.uuid4()
        record.created_at = record.created_at or now
        record.updated_at = now
        return record

    return _persist
