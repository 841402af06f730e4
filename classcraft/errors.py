from flask import jsonify, current_app, request
from werkzeug.exceptions import HTTPException


class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400
    default_message = "Bad request"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(DomainError):
    """Raised when input data is missing or malformed."""

    status_code = 400
    default_message = "Invalid input"


class AuthenticationError(DomainError):
    """Raised when the caller cannot be identified."""

    status_code = 401
    default_message = "Authentication required"


class AuthorizationError(DomainError):
    """Raised when the caller lacks ownership or role for a class."""

    status_code = 403
    default_message = "Forbidden"


class NotFoundError(DomainError):
    status_code = 404
    default_message = "Not found"


class StorageError(DomainError):
    """Raised when the database rejects or fails an operation."""

    status_code = 500
    default_message = "Server error"


def register_error_handlers(app):
    @app.errorhandler(DomainError)
    def handle_domain_error(error):
        return jsonify({"message": error.message}), error.status_code

    @app.errorhandler(AuthorizationError)
    def handle_access_denied(error):
        from classcraft.utils.audit import log_event

        log_event(
            "ACCESS_DENIED",
            ip=request.remote_addr,
            description=f"{request.method} {request.path}: {error.message}",
            level="WARNING",
        )
        return jsonify({"message": error.message}), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        # rate-limit breaches carry the response built by the on_breach callback
        if error.response is not None:
            return error.get_response()
        return jsonify({"message": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        current_app.logger.exception("Unhandled error: %s", error)
        return jsonify({"message": "Server error"}), 500
