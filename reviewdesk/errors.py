from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException


class ReviewServiceError(Exception):
    """Base error for the review services; carries an HTTP status."""

    status = 500
    code = "OPERATION_FAILED"

    def __init__(self, message, code=None, status=None, field=None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code
        if status is not None:
            self.status = status
        self.field = field

    def to_dict(self):
        body = {"error": self.message, "code": self.code}
        if self.field:
            body["field"] = self.field
        return body


class Unauthorized(ReviewServiceError):
    status = 401
    code = "UNAUTHORIZED"

    def __init__(self, message="Unauthorized"):
        super().__init__(message)


class NotFound(ReviewServiceError):
    """Missing resource, or one the caller may not see."""

    status = 404
    code = "NOT_FOUND"


class ValidationError(ReviewServiceError):
    status = 400
    code = "VALIDATION_ERROR"


class Conflict(ReviewServiceError):
    status = 409
    code = "CONFLICT"


class PersistenceError(ReviewServiceError):
    status = 500
    code = "PERSISTENCE_ERROR"

    def __init__(self, message="Internal server error"):
        super().__init__(message)


def register_error_handlers(app):
    @app.errorhandler(ReviewServiceError)
    def handle_review_error(err):
        if err.status >= 500:
            current_app.logger.error('%s: %s', err.code, err.message)
        return jsonify(err.to_dict()), err.status

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        return jsonify({"error": err.description, "code": f"HTTP_{err.code}"}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected(err):
        current_app.logger.exception('Unhandled error')
        return jsonify({"error": "Internal server error", "code": "UNKNOWN_ERROR"}), 500
