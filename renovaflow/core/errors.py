from __future__ import annotations

import logging
from typing import Any

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class RenovaFlowError(Exception):
    """Base class for errors that map onto an HTTP error envelope."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(RenovaFlowError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class InvalidCredentialsError(RenovaFlowError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "invalid_credentials"

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class AccountDeactivatedError(RenovaFlowError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "account_deactivated"

    def __init__(self, message: str = "Account is deactivated") -> None:
        super().__init__(message)


class ConflictError(RenovaFlowError):
    status_code = status.HTTP_409_CONFLICT
    code = "conflict"


class DuplicateEmailError(ConflictError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "duplicate_email"

    def __init__(self, message: str = "Email already exists") -> None:
        super().__init__(message)


class StoreError(RenovaFlowError):
    """A write failed and its transaction was rolled back."""

    code = "store_error"


class ErrorEnvelope(JSONResponse):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        payload: dict[str, Any] = {"error": message, "code": code}
        if details is not None:
            payload["details"] = details
        super().__init__(payload, status_code=status_code, headers=headers)


async def renovaflow_exception_handler(request: Request, exc: RenovaFlowError):
    if isinstance(exc, StoreError):
        logger.error("store.failure %s %s: %s", request.method, request.url.path, exc.message)
    return ErrorEnvelope(status_code=exc.status_code, code=exc.code, message=exc.message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    detail = exc.detail
    message = detail if isinstance(detail, str) else "Error"
    details = detail if isinstance(detail, dict) else None
    return ErrorEnvelope(
        status_code=exc.status_code,
        code="http_error",
        message=message,
        details=details,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return ErrorEnvelope(
        status_code=422,
        code="validation_error",
        message="Validation failed",
        details={"errors": jsonable_encoder(exc.errors())},
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(RenovaFlowError, renovaflow_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
