from enum import Enum

from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
from sqlalchemy.exc import IntegrityError
import logging


class ErrorKind(Enum):
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    NOT_FOUND = 404
    CONFLICT = 409
    INTERNAL = 500

    @property
    def status(self) -> int:
        return self.value


class ApiError(Exception):
    """Base for every failure a handler or service can report to the client."""
    kind = ErrorKind.INTERNAL
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None, errors: dict | list | None = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)

    @property
    def status(self) -> int:
        return self.kind.status


class BadRequest(ApiError):
    kind = ErrorKind.BAD_REQUEST
    default_message = "Bad request"


class Unauthorized(ApiError):
    kind = ErrorKind.UNAUTHORIZED
    default_message = "Unauthorized request"


class NotFound(ApiError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Resource not found"


class Conflict(ApiError):
    kind = ErrorKind.CONFLICT
    default_message = "Conflict"


class InternalError(ApiError):
    kind = ErrorKind.INTERNAL
    default_message = "An unexpected error occurred"


def error_response(status: int, message: str, errors: dict | list | None = None):
    payload = {"statusCode": status, "message": message, "success": False}
    if errors:
        payload["errors"] = errors
    return jsonify(payload), status


def register_error_handlers(app):
    # Every ApiError: the kind decides the status code
    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        if err.kind is ErrorKind.INTERNAL:
            logging.exception("Internal error: %s", err.message, exc_info=err)
        elif current_app and current_app.debug:
            logging.info("%s: %s", err.kind.name, err.message)
        return error_response(err.status, err.message, err.errors)

    # Marshmallow validation errors are bad input
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        return error_response(ErrorKind.BAD_REQUEST.status, "Invalid input", err.messages)

    # Integrity errors that escape a handler (unique constraints, FK violations)
    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        message = str(getattr(err, "orig", err))
        lower_msg = message.lower()
        if current_app and current_app.debug:
            logging.exception("Integrity error", exc_info=err)
        if "unique constraint" in lower_msg or "unique violation" in lower_msg:
            return error_response(ErrorKind.CONFLICT.status, "Unique constraint violated.")
        return error_response(ErrorKind.BAD_REQUEST.status, "Integrity error.")

    # Werkzeug HTTPExceptions (unknown route, wrong method, payload too large)
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response(err.code or 400, err.description)

    # 500 Internal Error (catch-all)
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logging.exception("Unhandled exception", exc_info=err)
        details = None
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response(ErrorKind.INTERNAL.status, "An unexpected error occurred", details)
