# apps/core/services/notification_service.py
"""
Notification Service

In-app notifications for accounts. Rows are written inside the caller's
transaction (in a savepoint) and e-mail delivery is queued only after the
outer transaction commits, so a rolled-back booking never notifies.
"""

import logging
from typing import Optional, Dict, Any

from django.db import transaction, DatabaseError
from django.utils import timezone

from shared.common.pagination import build_pagination_meta
from shared.common.validators import Err, validate_pagination
from apps.core.models import Notification
from .validation import validate_notification_data

logger = logging.getLogger(__name__)


class NotificationService:
    """
    Service for account notifications.

    Handles:
    - Best-effort dispatch
    - Listing an account's notifications
    - Read tracking
    """

    def __init__(self, queue_email: bool = True):
        self.queue_email = queue_email

    # ==========================================================================
    # Dispatch
    # ==========================================================================

    def send(
        self,
        account_id: Optional[int],
        title: str,
        message: str,
        notification_type: str = Notification.Type.CONFIRMATION
    ) -> bool:
        """
        Store a notification for ``account_id``.

        Never raises for delivery problems: invalid input or a database
        failure is logged and reported as ``False``.
        """
        if not account_id:
            return False

        result = validate_notification_data(title, message, notification_type)
        if isinstance(result, Err):
            logger.warning(
                "Notification rejected",
                extra={'account_id': account_id, 'errors': result.errors}
            )
            return False

        try:
            with transaction.atomic():
                notification = Notification.objects.create(
                    account_id=account_id,
                    title=result.value['title'],
                    message=result.value['message'],
                    type=result.value['type'],
                )
        except DatabaseError:
            logger.exception(
                "Failed to store notification",
                extra={'account_id': account_id, 'title': title}
            )
            return False

        if self.queue_email:
            transaction.on_commit(lambda: self._queue_email(notification.id))

        logger.info(
            f"Notification {notification.id} created for account {account_id}"
        )
        return True

    def _queue_email(self, notification_id: int) -> None:
        from apps.core.tasks import send_notification_email

        send_notification_email.delay(notification_id)

    # ==========================================================================
    # Queries
    # ==========================================================================

    def list_for_account(
        self,
        account_id: int,
        page: Any = None,
        limit: Any = None,
        unread_only: bool = False
    ) -> Dict[str, Any]:
        """Paginated notifications of one account, newest first."""
        from .exceptions import ValidationFailedError

        paging = validate_pagination(page, limit)
        if isinstance(paging, Err):
            raise ValidationFailedError(paging.errors)
        page, limit = paging.value['page'], paging.value['limit']

        queryset = Notification.objects.filter(account_id=account_id)
        if unread_only:
            queryset = queryset.filter(is_read=False)

        total = queryset.count()
        offset = (page - 1) * limit
        items = list(queryset.order_by('-created_at', '-id')[offset:offset + limit])

        return {
            'items': items,
            'pagination': build_pagination_meta(page, limit, total),
            'unread_count': Notification.objects.filter(
                account_id=account_id, is_read=False
            ).count(),
        }

    def mark_read(self, notification_id: int, account_id: int) -> Notification:
        from .exceptions import NotFoundError

        notification = Notification.objects.filter(
            id=notification_id, account_id=account_id
        ).first()
        if notification is None:
            raise NotFoundError('Notification', notification_id)

        notification.mark_read()
        return notification

    def mark_all_read(self, account_id: int) -> int:
        """Mark every unread notification of the account read."""
        return Notification.objects.filter(
            account_id=account_id, is_read=False
        ).update(is_read=True, read_at=timezone.now(), updated_at=timezone.now())
