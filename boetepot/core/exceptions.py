import logging
from enum import Enum
from typing import Any, Dict, Optional

from fastapi.exceptions import RequestValidationError
from fastapi import Request, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, OperationalError

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    UNIQUE_VIOLATION = "unique_violation"
    REFERENTIAL_VIOLATION = "referential_violation"
    TRANSIENT = "transient"
    INVALID = "invalid"


ERROR_STATUS = {
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.UNIQUE_VIOLATION: 409,
    ErrorKind.REFERENTIAL_VIOLATION: 409,
    ErrorKind.INVALID: 422,
    ErrorKind.TRANSIENT: 503,
}


class PersistenceError(Exception):
    """Failure raised by the service layer, classified by kind.

    Callers branch on ``kind``; ``message`` is for humans and may change.
    """

    def __init__(self, kind: ErrorKind, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.details = details or {}

    @property
    def status_code(self) -> int:
        return ERROR_STATUS[self.kind]

    def __repr__(self) -> str:
        return f"PersistenceError(kind={self.kind.value!r}, message={self.message!r})"


# SQLSTATE codes (PostgreSQL) and extended result names (SQLite)
_UNIQUE_CODES = {"23505", "SQLITE_CONSTRAINT_UNIQUE", "SQLITE_CONSTRAINT_PRIMARYKEY"}
_FOREIGN_KEY_CODES = {"23503", "SQLITE_CONSTRAINT_FOREIGNKEY"}
_CHECK_CODES = {"23514", "SQLITE_CONSTRAINT_CHECK", "23502", "SQLITE_CONSTRAINT_NOTNULL"}


def _driver_error_code(exc: IntegrityError) -> Optional[str]:
    orig = exc.orig
    for attr in ("sqlstate", "pgcode", "sqlite_errorname"):
        code = getattr(orig, attr, None)
        if code:
            return str(code)
    return None


# SQLite without extended result codes only says SQLITE_CONSTRAINT; its
# messages are fixed strings per constraint type.
_SQLITE_MESSAGES = (
    ("UNIQUE constraint failed", "SQLITE_CONSTRAINT_UNIQUE"),
    ("FOREIGN KEY constraint failed", "SQLITE_CONSTRAINT_FOREIGNKEY"),
    ("CHECK constraint failed", "SQLITE_CONSTRAINT_CHECK"),
    ("NOT NULL constraint failed", "SQLITE_CONSTRAINT_NOTNULL"),
)


def _sqlite_code_from_message(exc: IntegrityError) -> Optional[str]:
    text = str(exc.orig)
    for prefix, code in _SQLITE_MESSAGES:
        if text.startswith(prefix):
            return code
    return None


def classify_integrity_error(exc: IntegrityError, entity: str) -> PersistenceError:
    """Turn a driver level constraint failure into a typed PersistenceError."""
    code = _driver_error_code(exc)
    if code in (None, "SQLITE_CONSTRAINT"):
        code = _sqlite_code_from_message(exc) or code
    if code in _UNIQUE_CODES:
        return PersistenceError(ErrorKind.UNIQUE_VIOLATION, f"{entity} already exists")
    if code in _FOREIGN_KEY_CODES:
        return PersistenceError(ErrorKind.REFERENTIAL_VIOLATION, f"{entity} references a missing row or is still referenced")
    if code in _CHECK_CODES:
        return PersistenceError(ErrorKind.INVALID, f"{entity} violates a value constraint")
    logger.warning("Unclassified integrity error", extra={"entity": entity, "code": code})
    return PersistenceError(ErrorKind.INVALID, f"{entity} could not be saved")


def register_exception_handlers(app):
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        logger.info("HTTP exception", extra={"status_code": exc.status_code})
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.info("Validation error", extra={"errors": exc.errors()})
        return JSONResponse(
            {"error": "Validation error", "kind": ErrorKind.INVALID.value, "details": jsonable_errors(exc)},
            status_code=422,
        )

    @app.exception_handler(PersistenceError)
    async def persistence_exception_handler(request: Request, exc: PersistenceError):
        logger.info("Persistence error", extra={"kind": exc.kind.value, "status_code": exc.status_code})
        return JSONResponse(
            {"error": exc.message, "kind": exc.kind.value, "details": exc.details},
            status_code=exc.status_code,
        )

    @app.exception_handler(OperationalError)
    async def operational_exception_handler(request: Request, exc: OperationalError):
        logger.warning("Database unavailable", exc_info=exc)
        return JSONResponse(
            {"error": "Database temporarily unavailable", "kind": ErrorKind.TRANSIENT.value},
            status_code=503,
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled exception")
        return JSONResponse({"error": "Internal server error"}, status_code=500)


def jsonable_errors(exc: RequestValidationError) -> list:
    # ctx may carry exception instances (e.g. ValueError) that JSON cannot encode
    errors = []
    for err in exc.errors():
        err = dict(err)
        if "ctx" in err:
            err["ctx"] = {k: str(v) for k, v in err["ctx"].items()}
        errors.append(err)
    return errors
