"""Custom exceptions and error handling for RFC 7807 Problem Details."""

from typing import Any

import pydantic
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse


class AppError(Exception):
    """Base application error with RFC 7807 Problem Details support."""

    def __init__(
        self,
        title: str,
        detail: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_type: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.title = title
        self.detail = detail
        self.status_code = status_code
        self.error_type = error_type or f"about:blank#{status_code}"
        self.instance = instance
        self.extra = extra or {}
        super().__init__(detail)

    def to_problem_detail(self) -> dict[str, Any]:
        """Convert to RFC 7807 Problem Details format."""
        problem = {
            "type": self.error_type,
            "title": self.title,
            "status": self.status_code,
            "detail": self.detail,
        }
        if self.instance:
            problem["instance"] = self.instance
        problem.update(self.extra)
        return problem

    @property
    def headers(self) -> dict[str, str]:
        """HTTP headers sent with the error response."""
        return {}


class NotFoundError(AppError):
    """Resource not found error."""

    def __init__(
        self,
        resource: str,
        resource_id: str | None = None,
        detail: str | None = None,
    ) -> None:
        if detail is None:
            detail = f"{resource} not found"
            if resource_id:
                detail = f"{resource} with id '{resource_id}' not found"
        super().__init__(
            title="Not Found",
            detail=detail,
            status_code=status.HTTP_404_NOT_FOUND,
            error_type="about:blank#not-found",
        )


def _field_name(loc: tuple[int | str, ...]) -> str:
    """Collapse a pydantic error location into a field name."""
    parts = [str(part) for part in loc if part not in ("body", "query", "path")]
    return ".".join(parts) or "base"


class ValidationError(AppError):
    """Validation error carrying a field -> messages mapping.

    Raised whenever a create or update would violate a record invariant.
    Validation always happens before anything is written.
    """

    def __init__(
        self,
        errors: dict[str, list[str]],
        detail: str | None = None,
    ) -> None:
        self.errors = {field: list(messages) for field, messages in errors.items()}
        if detail is None:
            detail = "; ".join(
                f"{field} {message}"
                for field, messages in self.errors.items()
                for message in messages
            ) or "Validation failed"
        super().__init__(
            title="Validation Error",
            detail=detail,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            error_type="about:blank#validation-error",
            extra={"errors": self.errors},
        )

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        """Build an error for one field."""
        return cls({field: [message]})

    @classmethod
    def from_pydantic(
        cls, exc: pydantic.ValidationError | RequestValidationError
    ) -> "ValidationError":
        """Convert pydantic/FastAPI validation failures into a field mapping."""
        errors: dict[str, list[str]] = {}
        for error in exc.errors():
            message = str(error.get("msg", "is invalid"))
            # Drop pydantic's "Value error, " prefix on custom validator messages
            message = message.removeprefix("Value error, ")
            errors.setdefault(_field_name(tuple(error.get("loc", ()))), []).append(
                message
            )
        return cls(errors)


class UnauthorizedError(AppError):
    """Authentication required error."""

    def __init__(self, detail: str = "Authentication required") -> None:
        super().__init__(
            title="Unauthorized",
            detail=detail,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_type="about:blank#unauthorized",
        )


class ForbiddenError(AppError):
    """Permission denied error."""

    def __init__(self, detail: str = "Permission denied") -> None:
        super().__init__(
            title="Forbidden",
            detail=detail,
            status_code=status.HTTP_403_FORBIDDEN,
            error_type="about:blank#forbidden",
        )


class StorageError(AppError):
    """Storage layer failure that is not a validation problem."""

    def __init__(self, detail: str = "Storage temporarily unavailable") -> None:
        super().__init__(
            title="Storage Error",
            detail=detail,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error_type="about:blank#storage-error",
        )


class RateLimitError(AppError):
    """Rate limit exceeded error."""

    def __init__(
        self,
        detail: str = "Rate limit exceeded",
        retry_after: int | None = None,
    ) -> None:
        extra = {}
        if retry_after:
            extra["retry_after"] = retry_after
        super().__init__(
            title="Too Many Requests",
            detail=detail,
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            error_type="about:blank#rate-limit",
            extra=extra,
        )
        self.retry_after = retry_after

    @property
    def headers(self) -> dict[str, str]:
        if self.retry_after:
            return {"Retry-After": str(self.retry_after)}
        return {}


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:  # noqa: ARG001
    """Handle AppError exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_problem_detail(),
        media_type="application/problem+json",
        headers=exc.headers,
    )


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Render request body/query validation failures as ValidationError."""
    return await app_error_handler(request, ValidationError.from_pydantic(exc))


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # noqa: ARG001
    """Handle unexpected exceptions."""
    error = AppError(
        title="Internal Server Error",
        detail="An unexpected error occurred",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
    return JSONResponse(
        status_code=error.status_code,
        content=error.to_problem_detail(),
        media_type="application/problem+json",
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with the FastAPI application."""
    app.add_exception_handler(AppError, app_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, request_validation_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, generic_exception_handler)
