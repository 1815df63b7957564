"""
Domain errors and their HTTP rendering.
Every API error leaves the service as JSON shaped like {"error": "..."}
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


class DomainError(Exception):
    """Base class for business rule failures raised by services"""

    status_code = 400

    def __init__(self, message: str, status_code: Optional[int] = None, **extra: Any):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra


class ValidationFailed(DomainError):
    status_code = 400


class NotFoundError(DomainError):
    status_code = 404


class ConflictError(DomainError):
    status_code = 409


class ForbiddenError(DomainError):
    status_code = 403


class PersistenceError(DomainError):
    """A dependent write failed and the parent row was removed again"""

    status_code = 500


class QuoteNotFoundError(NotFoundError):
    def __init__(self, message: str = "Quote not found"):
        super().__init__(message)


class QuoteDraftOnlyError(DomainError):
    def __init__(self, message: str = "Only draft quotes can be deleted"):
        super().__init__(message)


class QuoteNotConvertibleError(DomainError):
    def __init__(
        self,
        message: str = "Expired or already-converted quotes cannot be converted to appointments",
    ):
        super().__init__(message)


class CouponInvalidError(DomainError):
    """Raised when a coupon code cannot be applied to the current cart"""


class RoleProtectedError(DomainError):
    """Raised when a system or super role would be modified in a forbidden way"""


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================


async def domain_error_handler(request: Request, exc: DomainError):
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    else:
        logger.warning(f"⚠️ {request.method} {request.url.path} -> {exc.status_code}: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message, **exc.extra})


async def http_exception_handler(request: Request, exc: HTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    content = {"error": message}
    if isinstance(exc.detail, dict):
        content.update(exc.detail)
        content["error"] = exc.detail.get("message", message)
    return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    logger.warning(f"Validation error for {request.url.path}: {errors}")
    first = errors[0] if errors else {}
    field = ".".join(str(part) for part in first.get("loc", []) if part != "body")
    message = first.get("msg", "Invalid request")
    return JSONResponse(
        status_code=400,
        content={
            "error": f"{field}: {message}" if field else message,
            "details": [{"loc": list(e.get("loc", [])), "msg": e.get("msg")} for e in errors],
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"❌ {request.method} {request.url.path} - Error: {str(exc)}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
