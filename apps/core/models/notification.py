"""
Notification Model

In-app notifications; e-mail delivery is tracked on the same row.
"""

from django.db import models
from django.utils import timezone

from shared.common.mixins import TimestampMixin


class Notification(TimestampMixin):
    """A message addressed to one account."""

    class Type(models.TextChoices):
        CONFIRMATION = 'CONFIRMATION', 'Confirmation'
        REMINDER = 'REMINDER', 'Reminder'
        COMPLETED = 'COMPLETED', 'Completed'
        PAYMENT_SUCCESS = 'PAYMENT_SUCCESS', 'Payment Success'
        WARNING = 'WARNING', 'Warning'
        ERROR = 'ERROR', 'Error'

    account = models.ForeignKey(
        'core.Account',
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    title = models.CharField(max_length=255)
    message = models.CharField(max_length=1000)
    type = models.CharField(
        max_length=20,
        choices=Type.choices,
        default=Type.CONFIRMATION
    )
    is_read = models.BooleanField(default=False, db_index=True)
    read_at = models.DateTimeField(blank=True, null=True)
    emailed_at = models.DateTimeField(blank=True, null=True)
    failure_reason = models.TextField(blank=True, null=True)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['account', 'is_read']),
        ]

    def __str__(self):
        return f"{self.type}: {self.title}"

    def mark_read(self):
        if self.is_read:
            return
        self.is_read = True
        self.read_at = timezone.now()
        self.save(update_fields=['is_read', 'read_at', 'updated_at'])
