import json
import logging
import logging.handlers
import os
from datetime import datetime

REQUEST_LOGGER = 'restaurant_ordering.middleware.request_logger'
CONSOLE_FORMAT = '%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s'
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRS = set(vars(logging.LogRecord(
    "", logging.INFO, "", 0, "", None, None))) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, with the record's ``extra`` fields inlined."""

    def format(self, record):
        entry = {
            'timestamp': datetime.utcnow().isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
            'location': f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update(
            (key, value) for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and key not in entry
        )
        if record.exc_info:
            entry['traceback'] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class _RequestIdDefault(logging.Filter):
    """Lets the console format reference ``request_id`` on every record."""

    def filter(self, record):
        if getattr(record, 'request_id', None) is None:
            record.request_id = '-'
        return True


def _owned(handler):
    handler._restaurant_ordering = True
    return handler


def _json_file(logs_dir, filename, level):
    handler = logging.handlers.RotatingFileHandler(
        os.path.join(logs_dir, filename), maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS)
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    return _owned(handler)


def setup_logging(app):
    """Console logging always; rotating JSON files unless LOG_TO_FILES is off.

    ``app.log`` gets INFO and up, ``error.log`` ERROR and up, and
    ``requests.log`` the request logger's lines, which are kept out of the
    other two. Calling this again for a new app replaces the handlers it
    installed before.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if app.debug else logging.INFO)
    for handler in list(root.handlers):
        if getattr(handler, '_restaurant_ordering', False):
            root.removeHandler(handler)

    console = _owned(logging.StreamHandler())
    console.setLevel(logging.INFO)
    console.addFilter(_RequestIdDefault())
    console.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    root.addHandler(console)

    request_logger = logging.getLogger(REQUEST_LOGGER)
    request_logger.setLevel(logging.INFO)
    request_logger.handlers.clear()
    request_logger.propagate = True

    logs_dir = app.config.get('LOG_DIR') if app.config.get('LOG_TO_FILES', True) else None
    if logs_dir:
        os.makedirs(logs_dir, exist_ok=True)
        root.addHandler(_json_file(logs_dir, 'app.log', logging.INFO))
        root.addHandler(_json_file(logs_dir, 'error.log', logging.ERROR))
        request_logger.addHandler(_json_file(logs_dir, 'requests.log', logging.INFO))
        request_logger.propagate = False

    for noisy in ('werkzeug', 'sqlalchemy.engine'):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        f"Logging configured for {app.config.get('RESTAURANT_NAME', app.name)}",
        extra={'event': 'logging_initialized', 'logs_directory': logs_dir}
    )


def get_logger(name):
    return logging.getLogger(name)
