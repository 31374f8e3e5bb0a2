# chat_client/exceptions.py
"""Errors raised by the chat client, mirroring the server's error codes."""


class ChatError(Exception):
    retryable = False

    def __init__(self, message, code=None, status_code=None, details=None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ValidationError(ChatError):
    """Rejected request. Never retried automatically."""


class AuthorizationError(ChatError):
    """Not a participant, not authenticated, or blocked."""


class NotFoundError(ChatError):
    """Unknown or deleted conversation or message."""


class TransientNetworkError(ChatError):
    """Timeout, dropped connection or a server-side hiccup; safe to retry idempotent calls."""
    retryable = True


_BY_CODE = {
    'VALIDATION_ERROR': ValidationError,
    'FORBIDDEN': AuthorizationError,
    'UNAUTHORIZED': AuthorizationError,
    'NOT_FOUND': NotFoundError,
    'TRANSIENT_ERROR': TransientNetworkError,
    'RATE_LIMIT_EXCEEDED': TransientNetworkError,
    'INTERNAL_ERROR': TransientNetworkError,
}


def error_from_response(status_code, body):
    """Build the matching ChatError from an error response's status and JSON body."""
    error = body.get('error') if isinstance(body, dict) else None
    if isinstance(error, dict):
        code = error.get('code')
        message = error.get('message') or 'Request failed'
        details = error.get('details')
    else:
        code = None
        message = str(error or body or 'Request failed')
        details = None

    cls = _BY_CODE.get(code)
    if cls is None:
        if status_code in (401, 403):
            cls = AuthorizationError
        elif status_code == 404:
            cls = NotFoundError
        elif status_code == 429 or status_code >= 500:
            cls = TransientNetworkError
        else:
            cls = ValidationError

    return cls(message, code=code, status_code=status_code, details=details)
