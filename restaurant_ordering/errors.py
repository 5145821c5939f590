"""Domain errors raised by the service layer.

Each error carries the HTTP status the error-handler middleware renders it
with, and a human-readable message that is safe to return to the client.
"""


class OrderingError(Exception):
    status_code = 500
    error = "Internal Server Error"

    def __init__(self, message=None, **context):
        super().__init__(message or self.error)
        self.message = message or self.error
        self.context = context

    def to_dict(self):
        return {
            "success": False,
            "error": self.error,
            "message": self.message,
        }


class ValidationError(OrderingError):
    status_code = 400
    error = "Validation Error"


class NotFoundError(OrderingError):
    status_code = 404
    error = "Not Found"


class ConflictError(OrderingError):
    status_code = 409
    error = "Conflict"


class UnavailableError(OrderingError):
    status_code = 400
    error = "Unavailable"


class EmptyCartError(OrderingError):
    status_code = 400
    error = "Empty Cart"

    def __init__(self, message="Cart is empty", **context):
        super().__init__(message, **context)


class InternalError(OrderingError):
    status_code = 500
    error = "Internal Server Error"
