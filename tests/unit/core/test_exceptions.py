"""Tests for exception handling."""

import pydantic
import pytest
from fastapi import status

from src.core.exceptions import (
    AppError,
    ForbiddenError,
    NotFoundError,
    RateLimitError,
    StorageError,
    UnauthorizedError,
    ValidationError,
)


class TestAppError:
    """Tests for base AppError class."""

    def test_app_error_creation(self) -> None:
        """Test AppError can be created with required fields."""
        error = AppError(
            title="Test Error",
            detail="This is a test error",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

        assert error.title == "Test Error"
        assert error.detail == "This is a test error"
        assert error.status_code == status.HTTP_400_BAD_REQUEST

    def test_app_error_to_problem_detail(self) -> None:
        """Test AppError converts to RFC 7807 format."""
        error = AppError(
            title="Test Error",
            detail="This is a test error",
            status_code=status.HTTP_400_BAD_REQUEST,
            error_type="test-error",
            instance="/test/1",
            extra={"field": "value"},
        )

        problem = error.to_problem_detail()

        assert problem["type"] == "test-error"
        assert problem["title"] == "Test Error"
        assert problem["status"] == status.HTTP_400_BAD_REQUEST
        assert problem["detail"] == "This is a test error"
        assert problem["instance"] == "/test/1"
        assert problem["field"] == "value"

    def test_app_error_default_type(self) -> None:
        """Test AppError generates default type from status code."""
        error = AppError(
            title="Test",
            detail="Test",
            status_code=status.HTTP_400_BAD_REQUEST,
        )

        assert error.error_type == f"about:blank#{status.HTTP_400_BAD_REQUEST}"


class TestNotFoundError:
    """Tests for NotFoundError."""

    def test_not_found_basic(self) -> None:
        """Test NotFoundError with resource name only."""
        error = NotFoundError(resource="User")

        assert error.status_code == status.HTTP_404_NOT_FOUND
        assert error.detail == "User not found"

    def test_not_found_with_id(self) -> None:
        """Test NotFoundError with resource ID."""
        error = NotFoundError(resource="User", resource_id="123")

        assert error.detail == "User with id '123' not found"

    def test_not_found_custom_detail(self) -> None:
        """Test NotFoundError with custom detail."""
        error = NotFoundError(resource="User", detail="Custom message")

        assert error.detail == "Custom message"


class TestValidationError:
    """Tests for ValidationError."""

    def test_validation_error_with_errors(self) -> None:
        """Test ValidationError builds its detail from the field mapping."""
        error = ValidationError({"domain": ["can't be blank"], "url": ["is invalid"]})

        assert error.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert error.errors == {"domain": ["can't be blank"], "url": ["is invalid"]}
        assert error.detail == "domain can't be blank; url is invalid"
        assert error.to_problem_detail()["errors"] == error.errors

    def test_validation_error_custom_detail(self) -> None:
        """Test an explicit detail wins over the generated one."""
        error = ValidationError({"name": ["is invalid"]}, detail="Invalid input")

        assert error.detail == "Invalid input"

    def test_validation_error_empty(self) -> None:
        """Test an empty mapping still produces a readable detail."""
        error = ValidationError({})

        assert error.detail == "Validation failed"
        assert error.extra["errors"] == {}

    def test_single(self) -> None:
        """Test building an error for a single field."""
        error = ValidationError.single("name", "has already been taken")

        assert error.errors == {"name": ["has already been taken"]}

    def test_from_pydantic(self) -> None:
        """Test pydantic errors collapse into field names."""

        class Payload(pydantic.BaseModel):
            name: str
            retries: int

        with pytest.raises(pydantic.ValidationError) as exc_info:
            Payload.model_validate({"retries": "many"})

        error = ValidationError.from_pydantic(exc_info.value)

        assert set(error.errors) == {"name", "retries"}
        assert error.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY

    def test_from_pydantic_strips_value_error_prefix(self) -> None:
        """Test custom validator messages are kept as written."""

        class Payload(pydantic.BaseModel):
            url: str

            @pydantic.field_validator("url")
            @classmethod
            def must_be_http(cls, value: str) -> str:
                raise ValueError("must start with http:// or https://")

        with pytest.raises(pydantic.ValidationError) as exc_info:
            Payload.model_validate({"url": "ftp://example.com"})

        error = ValidationError.from_pydantic(exc_info.value)

        assert error.errors == {"url": ["must start with http:// or https://"]}


class TestStorageError:
    """Tests for StorageError."""

    def test_storage_error_default(self) -> None:
        """Test StorageError maps to 503."""
        error = StorageError()

        assert error.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert error.detail == "Storage temporarily unavailable"


class TestUnauthorizedError:
    """Tests for UnauthorizedError."""

    def test_unauthorized_default(self) -> None:
        """Test UnauthorizedError with default message."""
        error = UnauthorizedError()

        assert error.status_code == status.HTTP_401_UNAUTHORIZED
        assert error.detail == "Authentication required"

    def test_unauthorized_custom(self) -> None:
        """Test UnauthorizedError with custom message."""
        error = UnauthorizedError(detail="Invalid token")

        assert error.detail == "Invalid token"


class TestForbiddenError:
    """Tests for ForbiddenError."""

    def test_forbidden_default(self) -> None:
        """Test ForbiddenError with default message."""
        error = ForbiddenError()

        assert error.status_code == status.HTTP_403_FORBIDDEN
        assert error.detail == "Permission denied"


class TestRateLimitError:
    """Tests for RateLimitError."""

    def test_rate_limit_default(self) -> None:
        """Test RateLimitError with default message."""
        error = RateLimitError()

        assert error.status_code == status.HTTP_429_TOO_MANY_REQUESTS
        assert error.detail == "Rate limit exceeded"

    def test_rate_limit_with_retry(self) -> None:
        """Test RateLimitError with retry_after."""
        error = RateLimitError(retry_after=60)

        assert error.extra["retry_after"] == 60
        assert error.headers == {"Retry-After": "60"}

    def test_rate_limit_without_retry_has_no_headers(self) -> None:
        """Test RateLimitError without retry_after sends no Retry-After."""
        assert RateLimitError().headers == {}
