"""Map service errors to HTTP responses."""

from django.conf import settings
from rest_framework import status
from rest_framework.response import Response

from .exceptions import (
    ServiceError,
    ValidationError,
    AuthorizationError,
    NotFoundError,
    ConflictError,
    GenerationExhaustedError,
    BackendUnavailableError,
)


ERROR_STATUS_CODES = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (AuthorizationError, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (GenerationExhaustedError, status.HTTP_503_SERVICE_UNAVAILABLE),
    (BackendUnavailableError, status.HTTP_503_SERVICE_UNAVAILABLE),
]


def status_for_error(exc: ServiceError) -> int:
    for error_class, status_code in ERROR_STATUS_CODES:
        if isinstance(exc, error_class):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def service_error_response(exc: ServiceError) -> Response:
    """Build the ``{'error': ...}`` response for a service error."""
    status_code = status_for_error(exc)
    response = Response({'error': str(exc)}, status=status_code)
    if status_code == status.HTTP_503_SERVICE_UNAVAILABLE:
        response['Retry-After'] = str(getattr(settings, 'BACKEND_RETRY_AFTER', 5))
    return response
