import functools
import time

from flask import g, has_request_context

from .logging_config import get_logger

logger = get_logger(__name__)

REDACTED = '***REDACTED***'

# Matched as substrings of lower-cased keys
SECRET_KEYS = ('password', 'token', 'secret', 'authorization', 'cookie', 'jwt')

# Customer contact details stay in the database, not in the logs
CONTACT_KEYS = {'customerphone', 'customer_phone', 'customeremail',
                'customer_email', 'phone', 'email'}


def current_request_id():
    if not has_request_context():
        return None
    return g.get('request_id')


def _mask(value):
    text = str(value)
    if len(text) <= 4:
        return '*' * len(text)
    return '*' * (len(text) - 4) + text[-4:]


def sanitize_data(data, secret_keys=SECRET_KEYS):
    """Copy of ``data`` with secrets redacted and contact details masked."""
    if isinstance(data, list):
        return [sanitize_data(item, secret_keys) for item in data]
    if not isinstance(data, dict):
        return data

    clean = {}
    for key, value in data.items():
        lowered = str(key).lower()
        if any(secret in lowered for secret in secret_keys):
            clean[key] = REDACTED
        elif lowered in CONTACT_KEYS and value:
            clean[key] = _mask(value)
        else:
            clean[key] = sanitize_data(value, secret_keys)
    return clean


def log_function_call(func):
    """Trace a service call at DEBUG: entry, then outcome with elapsed time."""
    name = f"{func.__module__}.{func.__name__}"

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        context = {'function_name': name, 'request_id': current_request_id()}
        logger.debug(f"-> {name}", extra=dict(context, event='service_call'))
        started = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.debug(
                f"<- {name} raised {type(e).__name__}: {e}",
                extra=dict(context, event='service_error', error_type=type(e).__name__,
                           execution_time=time.perf_counter() - started)
            )
            raise
        logger.debug(
            f"<- {name}",
            extra=dict(context, event='service_return',
                       execution_time=time.perf_counter() - started)
        )
        return result

    return wrapper
