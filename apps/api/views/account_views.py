# apps/api/views/account_views.py
"""
Account Views

Reviews and in-app notifications.
"""

import logging

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from shared.common.pagination import StandardPagination
from shared.common.permissions import IsPrivileged
from apps.core.filters import ReviewFilter
from apps.core.models import Review
from apps.core.services import NotificationService, ReviewService
from apps.core.services.listing_service import is_truthy
from apps.api.serializers import ReviewSerializer, NotificationSerializer
from .base import BaseVenueViewSet, ExceptionHandlerMixin, ActorMixin, ResponseMixin

logger = logging.getLogger(__name__)


class ReviewViewSet(
    ExceptionHandlerMixin,
    ActorMixin,
    ResponseMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet
):
    """
    Reviews of services and events.

    Listing is open to every authenticated account so ratings can be
    shown next to services.
    """

    queryset = Review.objects.select_related('account').order_by('-created_at', '-id')
    serializer_class = ReviewSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = StandardPagination
    filter_backends = [DjangoFilterBackend]
    filterset_class = ReviewFilter
    lookup_value_regex = r'\d+'

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.review_service = ReviewService()

    def get_permissions(self):
        if self.action == 'verify':
            return [IsPrivileged()]
        return [IsAuthenticated()]

    def retrieve(self, request, pk=None):
        review = self.review_service.get_review(int(pk))
        return self.success_response(ReviewSerializer(review).data)

    def create(self, request):
        """
        Submit a review.

        POST /api/v1/reviews/
        """
        review = self.review_service.create_review(request.data, actor=self.get_actor())
        return self.success_response(
            ReviewSerializer(review).data,
            status_code=status.HTTP_201_CREATED
        )

    def destroy(self, request, pk=None):
        self.review_service.delete_review(int(pk), actor=self.get_actor())
        return self.success_response({'deleted_review_id': int(pk)})

    @action(detail=True, methods=['post'])
    def verify(self, request, pk=None):
        review = self.review_service.verify_review(int(pk))
        return self.success_response(ReviewSerializer(review).data)


class NotificationViewSet(BaseVenueViewSet):
    """The caller's own notifications."""

    lookup_value_regex = r'\d+'
    permission_classes = [IsAuthenticated]

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.notification_service = NotificationService()

    def list(self, request):
        """
        GET /api/v1/notifications/?unread_only=true&page=1&limit=20
        """
        params = request.query_params
        result = self.notification_service.list_for_account(
            request.user.id,
            page=params.get('page'),
            limit=params.get('limit'),
            unread_only=is_truthy(params.get('unread_only')),
        )
        serializer = NotificationSerializer(result['items'], many=True)
        return Response({
            'success': True,
            'results': serializer.data,
            'unread_count': result['unread_count'],
            'pagination': result['pagination'],
        })

    @action(detail=True, methods=['post'])
    def read(self, request, pk=None):
        notification = self.notification_service.mark_read(int(pk), request.user.id)
        return self.success_response(NotificationSerializer(notification).data)

    @action(detail=False, methods=['post'], url_path='read-all')
    def read_all(self, request):
        updated = self.notification_service.mark_all_read(request.user.id)
        return self.success_response({'marked_read': updated})
