"""Error taxonomy for publishing articles, plus the FastAPI handlers that render errors."""

import logging

import pydantic
from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class PublicationError(Exception):
    """Base class for every failure surfaced by the publication core.

    ``reason`` is a stable tag callers can branch on, ``status_code`` is the
    HTTP status the API answers with.
    """

    reason = "publication_failed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, art_id: str | None = None):
        super().__init__(message)
        self.message = message
        self.art_id = art_id
        self.history: list = []


class ResourceExhausted(PublicationError):
    """No relational connection is available; the pool is at its cap."""

    reason = "resource_exhausted"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class TransactionError(PublicationError):
    """The backend rejected begin, commit or rollback."""

    reason = "transaction_failed"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class InsertError(PublicationError):
    """The article row could not be written."""

    reason = "insert_failed"
    status_code = status.HTTP_400_BAD_REQUEST


class UploadError(PublicationError):
    """The object store rejected the attachment (network, auth, quota)."""

    reason = "upload_failed"
    status_code = status.HTTP_502_BAD_GATEWAY


class StageReadError(PublicationError):
    """The staged temp file could not be read."""

    reason = "stage_read_failed"
    status_code = status.HTTP_400_BAD_REQUEST


async def handle_publication_errors(request: Request, exc: PublicationError) -> JSONResponse:
    """Render a publication failure as ``{"status": "Error! ..."}``."""
    logger.warning(f"{request.method} {request.url.path} failed with {exc.reason}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"status": f"Error! {exc.message}", "reason": exc.reason},
    )


async def handle_pydantic_validation_errors(request: Request, exc: pydantic.ValidationError) -> JSONResponse:
    errors = exc.errors()
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": [
                {
                    "msg": error["msg"],
                    "loc": [str(part) for part in error.get("loc", ())],
                }
                for error in errors
            ]
        },
    )


async def handle_broad_exceptions(request: Request, call_next):
    """Handle any exception that propagates out of the route handlers."""
    try:
        return await call_next(request)
    except Exception as err:
        logger.exception(err)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )
