# shared/errors.py
import logging
from typing import Any, Dict, Iterable

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class TeachWaveError(Exception):
    """Base class for domain failures raised by the service layer."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail

    def to_body(self) -> Dict[str, Any]:
        return {"detail": self.detail}


class BadRequestError(TeachWaveError):
    """The request is well-formed but breaks a domain rule, e.g. a grade above max points."""


class NotFoundError(TeachWaveError):
    """A referenced grade, subject, group, user or edge does not exist."""

    status_code = status.HTTP_404_NOT_FOUND


class AccessDeniedError(TeachWaveError):
    """The caller holds no active edge for the subject."""

    status_code = status.HTTP_403_FORBIDDEN


class ConflictError(TeachWaveError):
    """A uniqueness rule was violated, usually by a concurrent writer."""

    status_code = status.HTTP_409_CONFLICT


class StoreUnavailableError(TeachWaveError):
    """Transient store failure; the caller may retry."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


class PartialEnrollmentError(StoreUnavailableError):
    """Subject fan-out failed for some subjects. Nothing was committed; retrying is safe."""

    def __init__(self, failed_subject_ids: Iterable[Any]):
        self.failed_subject_ids = [str(s) for s in failed_subject_ids]
        super().__init__(
            f"Enrollment could not be provisioned for {len(self.failed_subject_ids)} subject(s)"
        )

    def to_body(self) -> Dict[str, Any]:
        return {
            "detail": self.detail,
            "failed_subject_ids": self.failed_subject_ids,
            "retryable": True,
        }


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(TeachWaveError)
    async def teachwave_error_handler(request: Request, exc: TeachWaveError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(SQLAlchemyError)
    async def store_error_handler(request: Request, exc: SQLAlchemyError):
        logger.error("store error on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"detail": "Service temporarily unavailable"},
        )
