"""Tests for AccountService."""

import uuid
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock, patch

from src.core.security import API_KEY_PREFIX, hash_api_key
from src.services.account_service import AccountService


async def test_create_account_returns_plaintext_key_once(mock_session: AsyncMock) -> None:
    """Test the account gets a key whose hash, not plaintext, is stored."""
    account = MagicMock()
    account.id = uuid.uuid4()
    account.name = "Boutique Monte-Carlo"
    created_at = datetime.now(UTC)

    def fill(api_key):  # type: ignore[no-untyped-def]
        api_key.id = uuid.uuid4()
        api_key.created_at = created_at
        return api_key

    with patch("src.services.account_service.ApiKeyRepository") as MockRepo:
        mock_repo = MockRepo.return_value
        mock_repo.create_account = AsyncMock(return_value=account)
        mock_repo.create = AsyncMock(side_effect=fill)

        service = AccountService(mock_session)
        service.repo = mock_repo

        result = await service.create_account("Boutique Monte-Carlo", key_name="ops")

    stored = mock_repo.create.await_args.args[0]
    assert result.account_id == account.id
    assert result.account_name == "Boutique Monte-Carlo"
    assert result.key_name == "ops"
    assert result.key.startswith(API_KEY_PREFIX)
    assert stored.account_id == account.id
    assert stored.key_hash == hash_api_key(result.key)
    assert stored.key_hash != result.key
    mock_repo.create_account.assert_awaited_once_with("Boutique Monte-Carlo")
