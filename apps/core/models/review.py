"""
Review Model
"""

from django.db import models

from shared.common.mixins import TimestampMixin


class Review(TimestampMixin):
    """A 1-5 rating of a service or an event by an account."""

    account = models.ForeignKey(
        'core.Account',
        on_delete=models.CASCADE,
        related_name='reviews'
    )
    service = models.ForeignKey(
        'core.Service',
        on_delete=models.SET_NULL,
        related_name='reviews',
        blank=True,
        null=True
    )
    event = models.ForeignKey(
        'core.Event',
        on_delete=models.SET_NULL,
        related_name='reviews',
        blank=True,
        null=True
    )
    rate = models.PositiveSmallIntegerField()
    comment = models.TextField(blank=True, null=True)
    is_verified = models.BooleanField(default=False)

    class Meta:
        db_table = 'reviews'
        ordering = ['-created_at']
        constraints = [
            models.CheckConstraint(
                condition=models.Q(rate__gte=1) & models.Q(rate__lte=5),
                name='review_rate_range'
            ),
        ]

    def __str__(self):
        return f"Review {self.pk}: {self.rate}/5"
