# shared/common/exceptions.py
"""
DRF Exception Handler

Every error leaving the API has the shape::

    {"success": false,
     "error": {"code": ..., "message": ..., "details": ..., "request_id": ...}}

Service-layer errors are converted by ``ExceptionHandlerMixin`` in the API
views; this handler covers DRF's own exceptions (authentication, throttling,
parse errors, serializer validation) and anything left unhandled.
"""

import logging
import traceback
from typing import Dict, Any, Optional
from rest_framework import status
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework.exceptions import APIException
from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from django.conf import settings

logger = logging.getLogger(__name__)

STATUS_CODES = {
    400: 'VALIDATION_ERROR',
    401: 'UNAUTHORIZED',
    403: 'FORBIDDEN',
    404: 'NOT_FOUND',
    405: 'METHOD_NOT_ALLOWED',
    415: 'UNSUPPORTED_MEDIA_TYPE',
    429: 'RATE_LIMITED',
}


class ValidationException(APIException):
    """400 raised outside the service layer, e.g. by the paginator."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Validation error.'
    default_code = 'validation_error'
    error_code = 'VALIDATION_ERROR'

    def __init__(self, errors: Any, detail: Optional[str] = None):
        super().__init__(detail=detail)
        self.errors = errors


def error_body(
    code: str,
    message: str,
    details: Any = None,
    request_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Build the uniform error payload."""
    body = {
        'success': False,
        'error': {
            'code': code,
            'message': message,
            'request_id': request_id,
        }
    }
    if details:
        body['error']['details'] = details
    return body


def custom_exception_handler(exc, context) -> Optional[Response]:
    """Render DRF and unexpected exceptions in the uniform error shape."""

    request = context.get('request')
    request_id = getattr(request, 'request_id', None) if request else None

    response = exception_handler(exc, context)
    if response is not None:
        return format_error_response(exc, response, request_id)

    if isinstance(exc, DjangoValidationError):
        errors = exc.message_dict if hasattr(exc, 'message_dict') else {'detail': exc.messages}
        return Response(
            error_body('VALIDATION_ERROR', 'Validation error', errors, request_id),
            status=status.HTTP_400_BAD_REQUEST
        )

    if isinstance(exc, Http404):
        return Response(
            error_body('NOT_FOUND', str(exc) or 'Resource not found', request_id=request_id),
            status=status.HTTP_404_NOT_FOUND
        )

    logger.exception(
        f"Unhandled exception: {exc}",
        extra={
            'request_id': request_id,
            'exception_type': type(exc).__name__,
        }
    )

    if settings.DEBUG and not getattr(settings, 'TESTING', False):
        body = error_body('INTERNAL_ERROR', str(exc), request_id=request_id)
        body['error']['type'] = type(exc).__name__
        body['error']['traceback'] = traceback.format_exc().split('\n')
        return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return Response(
        error_body(
            'INTERNAL_ERROR',
            'An unexpected error occurred. Please try again later.',
            request_id=request_id,
        ),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR
    )


def format_error_response(exc, response: Response, request_id: Optional[str] = None) -> Response:
    """Rewrite a DRF error response into the uniform body."""

    code = getattr(exc, 'error_code', None) or STATUS_CODES.get(response.status_code, 'ERROR')

    details = getattr(exc, 'errors', None)
    if details is None and isinstance(response.data, dict) and 'detail' not in response.data:
        # Serializer field errors
        details = response.data

    response.data = error_body(code, get_error_message(exc, response), details, request_id)
    return response


def get_error_message(exc, response: Response) -> str:
    detail = getattr(exc, 'detail', None)
    if isinstance(detail, str):
        return detail
    if isinstance(detail, list) and detail:
        return str(detail[0])
    if isinstance(detail, dict):
        return detail.get('detail', 'Validation error')

    if isinstance(response.data, dict):
        return response.data.get('detail', str(response.data))
    return str(response.data)
