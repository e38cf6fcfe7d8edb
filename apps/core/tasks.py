# apps/core/tasks.py
"""
Celery Tasks for Venue Booking

E-mail delivery of stored notifications.
"""

import logging
from smtplib import SMTPException
from typing import Dict, Any

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=60)
def send_notification_email(self, notification_id: int) -> Dict[str, Any]:
    """
    E-mail a notification to its account.

    Args:
        notification_id: id of the stored notification

    Returns:
        Dict with send result
    """
    from .models import Notification

    try:
        notification = Notification.objects.select_related('account').get(id=notification_id)
    except Notification.DoesNotExist:
        logger.error(f"Notification not found: {notification_id}")
        return {'success': False, 'error': 'Notification not found'}

    if notification.emailed_at:
        logger.info(f"Notification {notification_id} already emailed")
        return {'success': True, 'message': 'Already sent'}

    try:
        send_mail(
            subject=notification.title,
            message=notification.message,
            from_email=getattr(settings, 'DEFAULT_FROM_EMAIL', 'noreply@example.com'),
            recipient_list=[notification.account.email],
            fail_silently=False,
        )
    except (SMTPException, OSError) as exc:
        logger.error(f"Failed to email notification {notification_id}: {exc}")
        notification.failure_reason = str(exc)
        notification.save(update_fields=['failure_reason', 'updated_at'])
        raise self.retry(exc=exc)

    notification.emailed_at = timezone.now()
    notification.failure_reason = None
    notification.save(update_fields=['emailed_at', 'failure_reason', 'updated_at'])

    return {'success': True, 'notification_id': notification_id}
