"""
errors.py — Domain Exceptions & Global FastAPI Error Handlers

Purpose:
- Give services a small exception vocabulary that maps onto HTTP statuses.
- Translate every failure into the `{ "message": ... }` JSON body clients expect.

Taxonomy:
- Validation errors          → 400 (request schema failures)
- NotFoundError              → 404
- IncompleteDataError        → 400 (valuation prerequisites missing)
- ConflictError              → 400 (duplicate email / username)
- AuthenticationError        → 401
- UpstreamServiceError       → upstream status (or 500) with the upstream body
- anything else              → 500 with the exception message
"""

from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.logging import get_logger

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Exceptions
# -----------------------------------------------------------------------------

class AppError(Exception):
    """Base application exception."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)

    def to_body(self) -> dict:
        return {"message": self.message}


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND


class IncompleteDataError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthenticationError(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)

    def to_body(self) -> dict:
        return {"success": False, "message": self.message}


class UpstreamServiceError(AppError):
    """
    Raised when a third-party provider (OpenAI, Perplexity) fails.

    `upstream_status` is forwarded when the provider answered with an error
    status; transport failures have no upstream status and surface as 500.
    """

    def __init__(self, message: str, error: Any = None, upstream_status: Optional[int] = None):
        super().__init__(message, status_code=upstream_status or status.HTTP_500_INTERNAL_SERVER_ERROR)
        self.error = error
        self.upstream_status = upstream_status

    def to_body(self) -> dict:
        return {"message": self.message, "error": self.error}


# -----------------------------------------------------------------------------
# Handlers
# -----------------------------------------------------------------------------

def format_validation_errors(errors: list) -> str:
    """
    Render pydantic errors as one readable line, e.g.
    'Validation error: Field required at "companyId"; ...'
    """
    parts = []
    for err in errors:
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path", "form")]
        where = f' at "{".".join(loc)}"' if loc else ""
        parts.append(f"{err.get('msg', 'Invalid value')}{where}")
    return "Validation error: " + "; ".join(parts)


async def app_error_handler(request: Request, exc: AppError):
    logger.warning("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.info("HTTP %s on %s: %s", exc.status_code, request.url.path, exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"message": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    message = format_validation_errors(exc.errors())
    logger.info("Validation error on %s: %s", request.url.path, message)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"message": message})


async def general_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception on %s: %s", request.url.path, exc, exc_info=True)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"message": str(exc) or "An unexpected error occurred"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
