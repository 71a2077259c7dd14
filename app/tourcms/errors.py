from __future__ import annotations

import logging
from typing import Any

from flask import Flask, g, jsonify
from sqlalchemy.exc import IntegrityError, NoResultFound, SQLAlchemyError
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Error raised by handlers/services; rendered as a JSON body with ``status_code``."""

    def __init__(self, status_code: int, message: str, code: str | None = None, details: list[str] | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.code = code
        self.details = details


def unauthorized() -> ApiError:
    return ApiError(401, "Unauthorized", "UNAUTHORIZED")


def not_found(what: str = "Data") -> ApiError:
    return ApiError(404, f"{what} not found", "NOT_FOUND")


def validation_error(errors: list[str]) -> ApiError:
    message = errors[0] if len(errors) == 1 else "Invalid data"
    return ApiError(400, message, "VALIDATION_ERROR", details=errors)


def error_response(status: int, error: str, code: str, message: str | None = None, **extra: Any):
    body: dict[str, Any] = {"error": error, "message": message or error, "code": code}
    body.update({k: v for k, v in extra.items() if v is not None})
    return jsonify(body), status


def _rollback() -> None:
    s = getattr(g, "db_session", None)
    if s is not None:
        s.rollback()


def integrity_kind(exc: IntegrityError) -> str:
    """Classify a driver integrity error as ``unique``, ``foreign_key`` or ``constraint``."""
    text = str(getattr(exc, "orig", exc)).lower()
    if "foreign key" in text:
        return "foreign_key"
    if "unique" in text or "duplicate key" in text:
        return "unique"
    # NOT NULL and CHECK failures
    return "constraint"


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ApiError)
    def _api_error(exc: ApiError):
        if exc.status_code >= 500:
            _rollback()
        return error_response(exc.status_code, exc.message, exc.code or "ERROR", details=exc.details)

    @app.errorhandler(IntegrityError)
    def _integrity_error(exc: IntegrityError):
        _rollback()
        kind = integrity_kind(exc)
        if kind != "unique":
            logger.warning("Constraint violation (request_id=%s): %s", getattr(g, "request_id", None), exc.orig)
            message = (
                "A related record is missing or still in use"
                if kind == "foreign_key"
                else "A required value is missing or invalid"
            )
            return error_response(400, "Constraint violation", "CONSTRAINT_VIOLATION", message)
        logger.warning("Duplicate entry (request_id=%s): %s", getattr(g, "request_id", None), exc.orig)
        return error_response(
            409,
            "Duplicate entry",
            "DUPLICATE_ENTRY",
            "A record with the same unique value already exists",
        )

    @app.errorhandler(NoResultFound)
    def _no_result(exc: NoResultFound):
        _rollback()
        return error_response(404, "Not found", "NOT_FOUND", "The requested record does not exist")

    @app.errorhandler(SQLAlchemyError)
    def _db_error(exc: SQLAlchemyError):
        _rollback()
        logger.exception("Database error (request_id=%s)", getattr(g, "request_id", None))
        return error_response(500, "Database error", "DATABASE_ERROR", "The database rejected the operation")

    @app.errorhandler(RequestEntityTooLarge)
    def _too_large(exc: RequestEntityTooLarge):
        return error_response(400, "File too large", "FILE_TOO_LARGE")

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        status = exc.code or 500
        name = (exc.name or "Error").upper().replace(" ", "_")
        if status == 400 and "json" in (exc.description or "").lower():
            return error_response(400, "Invalid JSON", "INVALID_JSON", "The request body is not valid JSON")
        return error_response(status, exc.name or "Error", name, exc.description)

    @app.errorhandler(Exception)
    def _unhandled(exc: Exception):
        _rollback()
        logger.exception("Unhandled error (request_id=%s)", getattr(g, "request_id", None))
        env = (app.config.get("ENV") or "").strip().lower()
        detail = None if env in ("prod", "production") else str(exc)
        return error_response(500, "Internal server error", "INTERNAL_ERROR", detail or "Unexpected server error")
