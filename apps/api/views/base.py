# apps/api/views/base.py
"""
Base Views and Mixins

Common functionality for Venue Booking API views.
"""

import logging
from typing import Any, Dict, Set

from rest_framework import status
from rest_framework.response import Response
from rest_framework.viewsets import ViewSet

from shared.common.pagination import paginated_response
from apps.core.services.exceptions import (
    VenueServiceError,
    ValidationFailedError,
    EntityReferenceError,
    NotFoundError,
    BookingConflictError,
    DependencyError,
    EventStateError,
    PermissionDeniedError,
    PersistenceError,
    PaymentGatewayError,
    StorageError,
)
from apps.core.services.listing_service import is_truthy, parse_include

logger = logging.getLogger(__name__)


class ExceptionHandlerMixin:
    """Mixin for handling service layer exceptions."""

    exception_status_map = (
        (ValidationFailedError, status.HTTP_400_BAD_REQUEST),
        (EntityReferenceError, status.HTTP_400_BAD_REQUEST),
        (NotFoundError, status.HTTP_404_NOT_FOUND),
        (BookingConflictError, status.HTTP_409_CONFLICT),
        (DependencyError, status.HTTP_409_CONFLICT),
        (EventStateError, status.HTTP_409_CONFLICT),
        (PermissionDeniedError, status.HTTP_403_FORBIDDEN),
        (PersistenceError, status.HTTP_500_INTERNAL_SERVER_ERROR),
        (PaymentGatewayError, status.HTTP_502_BAD_GATEWAY),
        (StorageError, status.HTTP_502_BAD_GATEWAY),
    )

    def handle_exception(self, exc):
        """Convert service exceptions to appropriate HTTP responses."""

        if isinstance(exc, VenueServiceError):
            status_code = status.HTTP_400_BAD_REQUEST
            for exc_class, mapped in self.exception_status_map:
                if isinstance(exc, exc_class):
                    status_code = mapped
                    break

            body = exc.to_dict()
            body['error']['request_id'] = getattr(self.request, 'request_id', None)
            if status_code >= 500:
                logger.error(
                    f"{type(exc).__name__}: {exc.message}",
                    extra={'request_id': body['error']['request_id']}
                )
            return Response(body, status=status_code)

        # Everything else goes through the DRF exception handler
        return super().handle_exception(exc)


class ActorMixin:
    """The authenticated caller as seen by the services."""

    def get_actor(self):
        user = getattr(self.request, 'user', None)
        if user is None or not getattr(user, 'is_authenticated', False):
            return None
        return user


class ResponseMixin:
    """Uniform success bodies."""

    def success_response(self, data: Any, status_code: int = status.HTTP_200_OK) -> Response:
        return Response({'success': True, 'data': data}, status=status_code)

    def list_response(self, result: Dict[str, Any], serializer_class, include: Set[str] = None) -> Response:
        """Serialize a ``{items, pagination}`` listing result."""
        serializer = serializer_class(
            result['items'],
            many=True,
            context={'request': self.request, 'include': include or set()}
        )
        return paginated_response(serializer.data, result['pagination'])

    def get_include(self, allowed: Set[str]) -> Set[str]:
        return parse_include(self.request.query_params.get('include'), allowed)

    def get_flag(self, name: str) -> bool:
        return is_truthy(self.request.query_params.get(name))


class BaseVenueViewSet(ExceptionHandlerMixin, ActorMixin, ResponseMixin, ViewSet):
    """
    Base ViewSet for the venue booking API.

    Provides caller context, response helpers and exception handling.
    """
