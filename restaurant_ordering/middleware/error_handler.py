import logging
import traceback

from flask import current_app, g, jsonify, request
from marshmallow import ValidationError as SchemaValidationError
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from restaurant_ordering import db
from restaurant_ordering.errors import OrderingError
from .utils import sanitize_data

logger = logging.getLogger(__name__)


def first_message(messages):
    """First human-readable string in a (nested) marshmallow error structure."""
    if isinstance(messages, str):
        return messages
    if isinstance(messages, dict):
        messages = list(messages.values())
    for item in messages or ():
        found = first_message(item)
        if found:
            return found
    return None


class ErrorHandlerMiddleware:
    """Turns every failure into ``{"success": false, "error": ..., "message": ...}``.

    Domain errors keep their own status. Request-schema failures are 400 even
    though webargs reports them as 422. Database and unexpected errors become a
    generic 500; their traceback is logged and only echoed back in DEBUG.
    """

    def __init__(self, app):
        app.register_error_handler(OrderingError, self.domain_error)
        app.register_error_handler(HTTPException, self.http_error)
        app.register_error_handler(SchemaValidationError, self.schema_error)
        app.register_error_handler(SQLAlchemyError, self.database_error)
        app.register_error_handler(Exception, self.unexpected_error)

    def domain_error(self, e):
        return self.render(e, e.status_code, e.error, e.message)

    def http_error(self, e):
        data = getattr(e, "data", None) or {}
        if e.code == 422:
            messages = data.get("messages")
            return self.render(
                e, 400, "Validation Error",
                first_message(messages) or "Invalid request data",
                validation_errors=messages
            )
        return self.render(e, e.code, e.name, data.get("message") or e.description)

    def schema_error(self, e):
        return self.render(
            e, 400, "Validation Error",
            first_message(e.messages) or "Invalid request data",
            validation_errors=e.messages
        )

    def database_error(self, e):
        db.session.rollback()
        return self.render(e, 500, "Database Error", "An unexpected database error occurred")

    def unexpected_error(self, e):
        return self.render(e, 500, "Internal Server Error", "Internal server error")

    def render(self, exception, status_code, error, message, validation_errors=None):
        self.log(exception, status_code, error, message)

        body = {'success': False, 'error': error, 'message': message}
        if validation_errors:
            body['validation_errors'] = validation_errors
        if status_code >= 500 and current_app.debug:
            body['traceback'] = ''.join(traceback.format_exception(
                type(exception), exception, exception.__traceback__))
        return jsonify(body), status_code

    @staticmethod
    def log(exception, status_code, error, message):
        extra = {
            'event': 'server_error' if status_code >= 500 else 'client_error',
            'request_id': g.get('request_id'),
            'status_code': status_code,
            'request_info': {
                'method': request.method,
                'path': request.path,
                'args': request.args.to_dict(),
                'json': sanitize_data(request.get_json(silent=True)),
            },
            'error_context': sanitize_data(getattr(exception, 'context', None) or {}),
        }
        if status_code >= 500:
            logger.error(f"{error} on {request.method} {request.path}: {exception}",
                         exc_info=exception, extra=extra)
        else:
            logger.warning(f"{error} on {request.method} {request.path}: {message}",
                           extra=extra)


def init_error_handler(app):
    return ErrorHandlerMiddleware(app)
