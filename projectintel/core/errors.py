"""
Error taxonomy and the normalized HTTP error envelope.

Every failure leaves the API as

    {"error": {"code", "message", "request_id"}, "detail": message}

with the request id echoed in the x-request-id header.

Inside the import pipeline ValidationError, ReferentialError and
PersistenceError are row-scoped: the reconciler records them in the
outcome instead of letting them reach these handlers.
"""

import logging
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.requests import Request

from projectintel.core.logging import LOGGER_NAME, get_request_id

logger = logging.getLogger(LOGGER_NAME)


class AppError(Exception):
    """Base for errors that map onto an HTTP status and a stable error code."""

    code = "app_error"
    status_code = 500

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        status_code: Optional[int] = None,
        request_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or type(self).code
        self.status_code = status_code or type(self).status_code
        self.request_id = request_id

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class ValidationError(AppError, ValueError):
    """Entitlement-rule or row-shape violation; fatal to the single operation."""
    code = "validation_error"
    status_code = 400


class ReferentialError(AppError, ValueError):
    """A state or sector reference is absent from (or inactive in) the registry."""
    code = "referential_error"
    status_code = 422


class PersistenceError(AppError):
    """Storage failure while writing one record."""
    code = "persistence_error"
    status_code = 500


class AuthorizationDenied(AppError):
    code = "forbidden"
    status_code = 403


class AuthenticationError(AppError):
    code = "unauthorized"
    status_code = 401


class SubscriptionRequiredError(AppError):
    """The caller has no active, unexpired subscription."""
    code = "subscription_expired"
    status_code = 403


class NotFoundError(AppError, LookupError):
    code = "not_found"
    status_code = 404


class ConflictError(AppError):
    code = "conflict"
    status_code = 409


class PayloadTooLargeError(AppError):
    code = "payload_too_large"
    status_code = 413


def _request_id_for(request: Request, preferred: Optional[str] = None) -> str:
    return (
        preferred
        or getattr(request.state, "request_id", None)
        or get_request_id()
        or uuid4().hex
    )


def error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    request_id: Optional[str] = None,
    details: Optional[Any] = None,
) -> JSONResponse:
    """Build the normalized envelope and log it (error level for 5xx)."""
    rid = _request_id_for(request, request_id)
    body: Dict[str, Any] = {
        "error": {"code": code, "message": message, "request_id": rid},
        "detail": message,
    }
    if details is not None:
        body["error"]["details"] = details

    logger.log(
        logging.ERROR if status_code >= 500 else logging.WARNING,
        "http.error",
        extra={
            "request_id": rid,
            "error_code": code,
            "status": status_code,
            "path": request.url.path,
        },
    )
    return JSONResponse(status_code=status_code, content=body, headers={"x-request-id": rid})


async def app_error_handler(request: Request, exc: AppError):
    return error_response(
        request,
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        request_id=exc.request_id,
    )


async def http_error_handler(request: Request, exc: HTTPException):
    return error_response(
        request,
        status_code=exc.status_code,
        code="not_found" if exc.status_code == 404 else "http_error",
        message=str(exc.detail) if exc.detail else "HTTP error",
    )


async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Malformed query, form or body parameters."""
    problems = [
        {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
        for err in exc.errors()
    ]
    return error_response(
        request,
        status_code=422,
        code="request_validation_error",
        message="Request parameters are invalid",
        details=problems,
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(
        "unhandled.exception",
        exc_info=exc,
        extra={"request_id": _request_id_for(request), "error_code": "internal_error"},
    )
    return error_response(request, status_code=500, code="internal_error", message="Unexpected error")
