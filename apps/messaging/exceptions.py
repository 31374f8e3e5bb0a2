"""
Messaging errors and the DRF exception handler that renders them.

Every error leaves the API in the same envelope:
``{"success": false, "error": {"code", "message", "retryable"}}``.
"""

import logging

from django.db import OperationalError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class MessagingError(Exception):
    status_code = status.HTTP_400_BAD_REQUEST
    code = 'MESSAGING_ERROR'
    retryable = False

    def __init__(self, message, details=None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(MessagingError):
    """Malformed request: empty body, bad payload, invalid transition."""
    code = 'VALIDATION_ERROR'


class AuthorizationError(MessagingError):
    """Acting on a conversation the user may not act on (not a participant, blocked)."""
    status_code = status.HTTP_403_FORBIDDEN
    code = 'FORBIDDEN'


class NotFoundError(MessagingError):
    status_code = status.HTTP_404_NOT_FOUND
    code = 'NOT_FOUND'


class TransientError(MessagingError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = 'TRANSIENT_ERROR'
    retryable = True


def _error_response(code, message, status_code, retryable=False, details=None):
    error = {
        'code': code,
        'message': message,
        'retryable': retryable,
    }
    if details:
        error['details'] = details
    return Response({'success': False, 'error': error}, status=status_code)


def messaging_exception_handler(exc, context):
    """
    DRF ``EXCEPTION_HANDLER``.

    MessagingError subclasses carry their own status and code. DRF errors are
    mapped onto the same codes by status. Database connectivity problems are
    reported as retryable; anything else is logged and hidden behind a 500.
    """
    if isinstance(exc, MessagingError):
        return _error_response(exc.code, exc.message, exc.status_code, exc.retryable, exc.details)

    if isinstance(exc, OperationalError):
        logger.warning('Database unavailable: %s', exc)
        return _error_response(
            TransientError.code,
            'Service temporarily unavailable',
            TransientError.status_code,
            retryable=True,
        )

    response = exception_handler(exc, context)

    if response is not None:
        code = 'VALIDATION_ERROR'
        retryable = False
        if response.status_code == 401:
            code = 'UNAUTHORIZED'
        elif response.status_code == 403:
            code = 'FORBIDDEN'
        elif response.status_code == 404:
            code = 'NOT_FOUND'
        elif response.status_code == 405:
            code = 'METHOD_NOT_ALLOWED'
        elif response.status_code == 429:
            code = 'RATE_LIMIT_EXCEEDED'
            retryable = True
        elif response.status_code >= 500:
            code = 'INTERNAL_ERROR'
            retryable = True

        data = response.data
        details = None
        if isinstance(data, dict) and 'detail' in data:
            message = str(data['detail'])
        elif isinstance(data, dict):
            message = 'Invalid request'
            details = data
        else:
            message = str(data)

        rendered = _error_response(code, message, response.status_code, retryable, details)
        for header in ('WWW-Authenticate', 'Retry-After'):
            if header in response:
                rendered[header] = response[header]
        return rendered

    logger.error('Unexpected error: %s', exc, exc_info=True)
    return _error_response('INTERNAL_ERROR', 'An unexpected error occurred', status.HTTP_500_INTERNAL_SERVER_ERROR)
