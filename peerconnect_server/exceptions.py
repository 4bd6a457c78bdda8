"""Typed service errors and the DRF exception handler that renders them.

Services raise these instead of returning Response objects so the same code
paths can be reused by REST views and the websocket gateway.
"""

import logging

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger('peerconnect_server')


class ServiceError(APIException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = 'Internal server error.'
    default_code = 'internal_error'


class BadRequestError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Bad request.'
    default_code = 'bad_request'


class UnauthorizedError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = 'Authentication required.'
    default_code = 'unauthorized'


class ForbiddenError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = 'You do not have permission to perform this action.'
    default_code = 'forbidden'


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Not found.'
    default_code = 'not_found'


class ConflictError(ServiceError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Conflict.'
    default_code = 'conflict'


class InternalError(ServiceError):
    pass


def api_exception_handler(exc, context):
    """Render every error as ``{"detail", "error", "status_code"}``.

    Unknown exceptions are logged with their traceback and mapped to 500.
    """
    view = context.get('view')
    view_name = view.__class__.__name__ if view is not None else 'unknown'
    response = exception_handler(exc, context)

    if response is None:
        logger.exception(f"[{view_name}] Unhandled error: {exc}")
        return Response(
            {'detail': 'Internal server error.', 'error': 'internal_error', 'status_code': 500},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    data = response.data
    if isinstance(data, dict) and 'detail' in data:
        detail = data['detail']
    else:
        # Serializer validation errors keep their field map under "errors"
        detail = 'Validation failed.' if response.status_code == 400 else str(data)
        data = {'errors': data}
    code = getattr(exc, 'default_code', None) or 'error'
    if hasattr(exc, 'get_codes'):
        codes = exc.get_codes()
        if isinstance(codes, str):
            code = codes
    payload = dict(data) if isinstance(data, dict) else {}
    payload.update({'detail': detail, 'error': code, 'status_code': response.status_code})
    response.data = payload

    if response.status_code >= 500:
        logger.error(f"[{view_name}] {response.status_code} {detail}")
    else:
        logger.warning(f"[{view_name}] {response.status_code} {detail}")
    return response
