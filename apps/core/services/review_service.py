# apps/core/services/review_service.py
"""
Review Service
"""

import logging
from typing import Mapping

from django.db import transaction

from shared.common.validators import Err
from apps.core.models import Account, Event, Review, Service, Notification
from .notification_service import NotificationService
from .validation import validate_review_data

logger = logging.getLogger(__name__)


class ReviewService:
    """
    Service for reviews of services and events.

    Handles:
    - Review creation with reference checks
    - Verification
    - Deletion
    """

    def __init__(self, notifications: NotificationService = None):
        self.notifications = notifications or NotificationService()

    @transaction.atomic
    def create_review(self, data: Mapping, actor=None) -> Review:
        from . import ValidationFailedError, EntityReferenceError, PermissionDeniedError

        payload = dict(data)
        if actor is not None and not payload.get('account_id'):
            payload['account_id'] = actor.id
        result = validate_review_data(payload)
        if isinstance(result, Err):
            raise ValidationFailedError(result.errors)
        cleaned = result.value

        if actor is not None and not actor.is_privileged and cleaned['account_id'] != actor.id:
            raise PermissionDeniedError("You can only review as yourself.")

        if not Account.objects.filter(id=cleaned['account_id']).exists():
            raise EntityReferenceError("Account not found", field='account_id')

        service = None
        if cleaned['service_id']:
            service = Service.objects.filter(id=cleaned['service_id'], is_active=True).first()
            if service is None:
                raise EntityReferenceError("Service not found or inactive", field='service_id')

        event = None
        if cleaned['event_id']:
            event = (
                Event.objects.exclude(status=Event.Status.CANCELLED)
                .filter(id=cleaned['event_id'])
                .first()
            )
            if event is None:
                raise EntityReferenceError("Event not found or cancelled", field='event_id')

        review = Review.objects.create(
            account_id=cleaned['account_id'],
            service=service,
            event=event,
            rate=cleaned['rate'],
            comment=cleaned.get('comment'),
        )

        subject = service.name if service is not None else event.name
        self.notifications.send(
            review.account_id,
            "Review Submitted",
            f"Thank you for reviewing '{subject}' ({review.rate}/5).",
            Notification.Type.CONFIRMATION,
        )

        logger.info(f"Created review {review.id}", extra={'rate': review.rate})
        return review

    def verify_review(self, review_id: int) -> Review:
        review = self.get_review(review_id)
        if not review.is_verified:
            review.is_verified = True
            review.save(update_fields=['is_verified', 'updated_at'])
            self.notifications.send(
                review.account_id,
                "Review Verified",
                "Your review has been verified.",
                Notification.Type.CONFIRMATION,
            )
        return review

    def get_review(self, review_id: int) -> Review:
        from . import NotFoundError

        review = Review.objects.filter(id=review_id).first()
        if review is None:
            raise NotFoundError('Review', review_id)
        return review

    def delete_review(self, review_id: int, actor=None) -> None:
        from . import PermissionDeniedError

        review = self.get_review(review_id)
        if actor is not None and not actor.is_privileged and review.account_id != actor.id:
            raise PermissionDeniedError("You can only delete your own reviews.")
        review.delete()
        logger.info(f"Deleted review {review_id}")
