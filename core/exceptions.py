"""
GoExpress Error Taxonomy
========================

Domain errors raised by the service layer. Each carries a stable machine
code, a human message and the HTTP status the API answers with.

Rule violations (InvalidTransition, AccessDenied, DriverUnavailable, ...)
are routine outcomes of multi-actor operation: services raise them, the
API renders them, nobody logs them as faults. Only infrastructure failures
are logged with full context and surfaced as Unavailable.
"""

import functools
import logging

from django.db import DatabaseError
from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ServiceError(Exception):
    """Base class for every expected, typed failure."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'SERVICE_ERROR'
    default_message = 'Request could not be completed.'

    def __init__(self, message=None, code=None, **details):
        self.message = message or self.default_message
        self.code = code or self.default_code
        self.details = details
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        return type(self).__name__

    def as_dict(self) -> dict:
        payload = {'code': self.code, 'message': self.message}
        payload.update(self.details)
        return payload


class NotFound(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_code = 'NOT_FOUND'
    default_message = 'Resource not found.'


class InvalidTransition(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_code = 'INVALID_STATUS_TRANSITION'
    default_message = 'Status transition not allowed.'

    def __init__(self, current_status=None, requested_status=None, message=None, code=None):
        if message is None and current_status is not None:
            message = f"Cannot change status from {current_status} to {requested_status}"
        super().__init__(
            message,
            code,
            current_status=current_status,
            requested_status=requested_status,
        )


class OrderNotPending(InvalidTransition):
    default_code = 'ORDER_NOT_PENDING'
    default_message = 'Order must be pending to assign a driver.'

    def __init__(self, current_status=None):
        super().__init__(
            current_status=current_status,
            requested_status='assigned',
            message=self.default_message,
        )


class AccessDenied(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_code = 'ACCESS_DENIED'
    default_message = 'You are not allowed to perform this action.'


class DriverUnavailable(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_code = 'DRIVER_NOT_AVAILABLE'
    default_message = 'Driver must be active and free to receive assignments.'


class InvalidInput(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_code = 'INVALID_INPUT'
    default_message = 'Invalid request data.'


class OutOfRange(InvalidInput):
    default_code = 'INVALID_COORDINATES'
    default_message = 'Invalid latitude or longitude values.'


class NoValidEntries(InvalidInput):
    default_code = 'NO_VALID_UPDATES'
    default_message = 'No valid updates found in batch.'


class Conflict(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_code = 'CONFLICT'
    default_message = 'A record with the same unique fields already exists.'


class Unavailable(ServiceError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_code = 'SERVICE_UNAVAILABLE'
    default_message = 'Storage is temporarily unavailable. Please retry later.'


def guard_persistence(operation: str):
    """
    Convert storage failures raised by `operation` into Unavailable.

    The failure is logged once, with the call arguments, before the generic
    error leaves the service layer. Typed ServiceErrors pass through.
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except DatabaseError as exc:
                logger.exception(
                    f"[STORE] {operation} failed | args={args!r} kwargs={kwargs!r} | {exc}"
                )
                raise Unavailable() from exc
        return wrapper
    return decorator


# ===========================================
# DRF EXCEPTION HANDLER
# ===========================================

_DRF_CODES = {
    drf_exceptions.ValidationError: 'INVALID_INPUT',
    drf_exceptions.ParseError: 'INVALID_INPUT',
    drf_exceptions.NotAuthenticated: 'UNAUTHORIZED',
    drf_exceptions.AuthenticationFailed: 'INVALID_TOKEN',
    drf_exceptions.PermissionDenied: 'INSUFFICIENT_PERMISSIONS',
    drf_exceptions.NotFound: 'NOT_FOUND',
    drf_exceptions.MethodNotAllowed: 'METHOD_NOT_ALLOWED',
    drf_exceptions.Throttled: 'RATE_LIMITED',
}


def _code_for(exc) -> str:
    for exc_class, code in _DRF_CODES.items():
        if isinstance(exc, exc_class):
            return code
    return 'API_ERROR'


def api_exception_handler(exc, context):
    """
    Render every error as {"code": ..., "message": ...}.

    ServiceErrors carry their own code and status; DRF and Django errors are
    reshaped so clients can branch on `code` whatever the origin.
    """
    if isinstance(exc, ServiceError):
        return Response(exc.as_dict(), status=exc.status_code)

    response = exception_handler(exc, context)
    if response is None:
        return None

    if isinstance(exc, Http404):
        response.data = {'code': 'NOT_FOUND', 'message': 'Resource not found.'}
        return response

    if isinstance(exc, drf_exceptions.ValidationError):
        response.data = {
            'code': 'INVALID_INPUT',
            'message': 'Invalid request data.',
            'details': exc.detail,
        }
        return response

    detail = getattr(exc, 'detail', None)
    response.data = {
        'code': _code_for(exc),
        'message': str(detail) if detail is not None else str(exc),
    }
    return response
