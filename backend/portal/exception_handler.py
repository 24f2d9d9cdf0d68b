"""DRF exception handler that maps portal service errors onto HTTP responses.

Validation errors raised by the services (illegal transitions, render
preconditions, provisioning conflicts) are user-correctable and become 400s.
Lost updates reported by the persistence layer become 409s so clients can
re-read and retry. Everything else falls through to DRF's default handling.
"""
import logging

from django.core.exceptions import ObjectDoesNotExist, ValidationError as DjangoValidationError
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

from accounts.exceptions import ProvisioningError
from bonafide.exceptions import LifecycleError, StaleRequestState
from certificates.exceptions import RenderError

logger = logging.getLogger(__name__)


def _error_response(exc, status_code, code):
    return Response(
        {'detail': str(exc), 'code': code, 'status_code': status_code},
        status=status_code,
    )


def custom_exception_handler(exc, context):
    if isinstance(exc, LifecycleError):
        return _error_response(exc, status.HTTP_400_BAD_REQUEST, exc.code)
    if isinstance(exc, RenderError):
        return _error_response(exc, status.HTTP_400_BAD_REQUEST, exc.code)
    if isinstance(exc, ProvisioningError):
        return _error_response(exc, status.HTTP_400_BAD_REQUEST, 'provisioning_failed')
    if isinstance(exc, StaleRequestState):
        logger.warning('Lost update on request: %s', exc)
        return _error_response(exc, status.HTTP_409_CONFLICT, 'stale_request')
    if isinstance(exc, ObjectDoesNotExist):
        return _error_response(exc, status.HTTP_404_NOT_FOUND, 'not_found')
    if isinstance(exc, DjangoValidationError):
        return Response(
            {'detail': '; '.join(exc.messages), 'code': 'invalid', 'status_code': status.HTTP_400_BAD_REQUEST},
            status=status.HTTP_400_BAD_REQUEST,
        )

    response = exception_handler(exc, context)

    if response is not None and isinstance(response.data, dict):
        response.data['status_code'] = response.status_code
        response.data.setdefault('detail', str(exc))

    return response
