"""
Error taxonomy for the API and the DRF exception handler that renders it.

Every failure leaves the API as ``{"success": false, "message": "..."}``.
Serializer failures arrive as DRF ``ValidationError`` and have their field
messages joined into one string.
"""
import logging

from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class InvalidState(exceptions.APIException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Operation not allowed in the current state."
    default_code = 'invalid_state'


class Unauthorized(exceptions.APIException):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Authentication required."
    default_code = 'unauthorized'


class Forbidden(exceptions.APIException):
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Insufficient permissions."
    default_code = 'forbidden'


class NotFound(exceptions.APIException):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = 'not_found'


class Conflict(exceptions.APIException):
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = 'conflict'


def flatten_errors(detail, prefix=None):
    """Turn a (possibly nested) DRF error detail into a flat list of messages."""
    if isinstance(detail, dict):
        messages = []
        for field, value in detail.items():
            if field == 'non_field_errors':
                messages.extend(flatten_errors(value, prefix))
            else:
                name = f"{prefix}.{field}" if prefix else str(field)
                messages.extend(flatten_errors(value, name))
        return messages
    if isinstance(detail, (list, tuple)):
        messages = []
        for value in detail:
            messages.extend(flatten_errors(value, prefix))
        return messages
    return [f"{prefix}: {detail}" if prefix else str(detail)]


def api_exception_handler(exc, context):
    response = exception_handler(exc, context)

    if response is None:
        view = context.get('view')
        logger.error(
            "Unhandled error in %s", type(view).__name__ if view else 'view',
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        return Response(
            {"success": False, "message": "Internal server error"},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if isinstance(exc, exceptions.ValidationError):
        message = ", ".join(flatten_errors(exc.detail))
    else:
        detail = getattr(exc, 'detail', None)
        message = ", ".join(flatten_errors(detail)) if detail is not None else str(exc)

    response.data = {"success": False, "message": message}
    return response
