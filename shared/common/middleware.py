"""
Request Middleware

Every request gets an ``X-Request-ID``. The id is stored on the request,
echoed in the response, carried in error bodies and stamped on every log
record emitted while the request is handled.
"""

import time
import uuid
import logging
from contextvars import ContextVar
from typing import Callable, Optional
from django.http import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)

SKIP_LOGGING_PATHS = ('/health/', '/health/ready/')

current_request_id: ContextVar[Optional[str]] = ContextVar('current_request_id', default=None)


def get_client_ip(request: HttpRequest) -> str:
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR', '')


class RequestIDLogFilter(logging.Filter):
    """Adds ``request_id`` to log records that don't carry one."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, 'request_id', None):
            record.request_id = current_request_id.get()
        return True


class RequestIDMiddleware:
    """Assigns the request id, reusing a client-supplied ``X-Request-ID``."""

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        request_id = request.headers.get('X-Request-ID') or str(uuid.uuid4())
        request.request_id = request_id
        token = current_request_id.set(request_id)
        try:
            response = self.get_response(request)
        finally:
            current_request_id.reset(token)

        response['X-Request-ID'] = request_id
        return response


class LoggingMiddleware:
    """One access log record per request; 4xx and 5xx are logged as warnings."""

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        if request.path in SKIP_LOGGING_PATHS:
            return self.get_response(request)

        started = time.monotonic()
        response = self.get_response(request)
        elapsed_ms = round((time.monotonic() - started) * 1000, 2)

        log = logger.warning if response.status_code >= 400 else logger.info
        log(
            f"{request.method} {request.path} - {response.status_code}",
            extra={
                'request_id': getattr(request, 'request_id', None),
                'method': request.method,
                'path': request.path,
                'status_code': response.status_code,
                'duration_ms': elapsed_ms,
                'ip_address': get_client_ip(request),
                'account_id': getattr(getattr(request, 'user', None), 'id', None),
            }
        )

        response['X-Response-Time'] = f"{elapsed_ms:.2f}ms"
        return response
