import logging
import time
import uuid

from flask import g, request

from .utils import sanitize_data, REDACTED

logger = logging.getLogger(__name__)

HIDDEN_HEADERS = {'authorization', 'cookie', 'x-api-key'}


def _status_level(status_code):
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


def _session_id():
    """Cart session the request acts on, when it names one."""
    body = request.get_json(silent=True) if request.is_json else None
    if isinstance(body, dict) and body.get('sessionId'):
        return body['sessionId']
    return request.args.get('sessionId')


def _describe_request():
    details = {
        'method': request.method,
        'path': request.path,
        'endpoint': request.endpoint,
        'remote_addr': request.remote_addr,
        'headers': {
            name: REDACTED if name.lower() in HIDDEN_HEADERS else value
            for name, value in request.headers.items()
        },
    }
    if request.args:
        details['query_params'] = sanitize_data(request.args.to_dict())
    if request.is_json:
        details['body'] = sanitize_data(request.get_json(silent=True))
    return details


class RequestLoggerMiddleware:
    """One log line when a request arrives and one when its response leaves.

    Both lines carry the request id, which is taken from ``X-Request-ID`` when
    the client sends one and echoed back on the response.
    """

    def __init__(self, app):
        app.before_request(self.start)
        app.after_request(self.finish)

    @staticmethod
    def start():
        g.request_id = request.headers.get('X-Request-ID') or uuid.uuid4().hex
        g.start_time = time.perf_counter()
        logger.info(
            f"{request.method} {request.path}",
            extra={
                'event': 'request_started',
                'request_id': g.request_id,
                'session_id': _session_id(),
                'request_data': _describe_request(),
            }
        )

    @staticmethod
    def finish(response):
        elapsed = time.perf_counter() - g.get('start_time', time.perf_counter())
        request_id = g.get('request_id', '-')
        logger.log(
            _status_level(response.status_code),
            f"{request.method} {request.path} -> {response.status_code} in {elapsed:.3f}s",
            extra={
                'event': 'request_completed',
                'request_id': request_id,
                'status_code': response.status_code,
                'processing_time': elapsed,
            }
        )
        response.headers['X-Request-ID'] = request_id
        response.headers['X-Processing-Time'] = f"{elapsed:.3f}s"
        return response


def init_request_logger(app):
    return RequestLoggerMiddleware(app)
