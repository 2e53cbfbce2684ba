"""Error taxonomy for the circulation core.

Services raise these; the handler registered by :func:`register_error_handlers`
turns them into the JSON envelope used by every blueprint. Each class carries
the HTTP status it maps to, so controllers never translate errors by hand.
"""
from flask import jsonify
from werkzeug.exceptions import HTTPException

from lms.extensions import db


class LibraryError(Exception):
    status_code = 400
    code = "LibraryError"
    default_message = "Request could not be processed"

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class ValidationError(LibraryError):
    status_code = 400
    code = "ValidationError"
    default_message = "Invalid input"


class InvalidPackage(ValidationError):
    code = "InvalidPackage"
    default_message = "Unknown subscription package"


class AccessDenied(LibraryError):
    status_code = 403
    code = "AccessDenied"
    default_message = "Access denied"


class NotFound(LibraryError):
    status_code = 404
    code = "NotFound"
    default_message = "Not found"


class StateConflict(LibraryError):
    status_code = 409
    code = "StateConflict"
    default_message = "Operation conflicts with current state"


class InvalidStateTransition(StateConflict):
    code = "InvalidStateTransition"
    default_message = "Request already processed"


class InsufficientCopies(LibraryError):
    status_code = 409
    code = "InsufficientCopies"
    default_message = "No available copies"


class QuotaExceeded(LibraryError):
    status_code = 409
    code = "QuotaExceeded"
    default_message = "Monthly request limit reached"


class Overdue(LibraryError):
    status_code = 409
    code = "Overdue"
    default_message = "Return overdue books before requesting new ones"


class AlreadyExists(LibraryError):
    status_code = 409
    code = "AlreadyExists"
    default_message = "Already exists"


class AlreadyWaitlisted(AlreadyExists):
    code = "AlreadyWaitlisted"
    default_message = "Student is already in the waitlist for this book"


def json_error(message, code=400, error=None):
    body = {"success": False, "message": message}
    if error:
        body["error"] = error
    return jsonify(body), code


def register_error_handlers(app):
    @app.errorhandler(LibraryError)
    def _library_error(e: LibraryError):
        db.session.rollback()
        app.logger.debug(f"[errors] {e.code}: {e.message}")
        return json_error(e.message, e.status_code, e.code)

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        return json_error(e.description, e.code, e.name.replace(" ", ""))

    @app.errorhandler(Exception)
    def _unhandled(e: Exception):
        db.session.rollback()
        app.logger.exception(f"[errors] Unhandled exception: {e}")
        return json_error("An unexpected error occurred", 500, "InternalError")
