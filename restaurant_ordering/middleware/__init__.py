from .error_handler import init_error_handler
from .logging_config import get_logger, setup_logging
from .request_logger import init_request_logger
from .utils import log_function_call, sanitize_data

__all__ = [
    'get_logger',
    'init_middleware',
    'log_function_call',
    'sanitize_data',
]


def init_middleware(app):
    """Logging first, so the error handler and request logger log through it."""
    setup_logging(app)
    init_error_handler(app)
    init_request_logger(app)
    get_logger(__name__).info(
        f"Middleware ready (file logs: {app.config.get('LOG_TO_FILES', True)})",
        extra={'event': 'middleware_initialized'}
    )
