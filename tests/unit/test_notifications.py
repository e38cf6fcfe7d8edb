# tests/unit/test_notifications.py
"""
Unit Tests for NotificationService and the e-mail task
"""

from unittest.mock import patch

import pytest
from django.core import mail
from django.db import DatabaseError, transaction

from apps.core.models import Notification
from apps.core.services import NotificationService, NotFoundError
from apps.core.tasks import send_notification_email


@pytest.mark.django_db
class TestSend:
    """Tests for NotificationService.send."""

    def setup_method(self):
        self.service = NotificationService()

    def test_stores_and_emails_after_commit(self, customer, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            sent = self.service.send(customer.id, 'Event Approved', 'Your event was approved.')

        notification = Notification.objects.get(account=customer)
        assert sent is True
        assert len(callbacks) == 1
        assert len(mail.outbox) == 1
        assert mail.outbox[0].to == [customer.email]
        assert mail.outbox[0].subject == 'Event Approved'
        notification.refresh_from_db()
        assert notification.emailed_at is not None

    def test_no_email_when_disabled(self, customer, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            NotificationService(queue_email=False).send(customer.id, 'Hello', 'World')

        assert callbacks == []
        assert mail.outbox == []

    def test_missing_account_is_skipped(self):
        assert self.service.send(None, 'Hello', 'World') is False
        assert not Notification.objects.exists()

    def test_invalid_type_is_rejected(self, customer):
        assert self.service.send(customer.id, 'Hello', 'World', 'SPAM') is False
        assert not Notification.objects.exists()

    def test_database_failure_does_not_break_caller(self, customer):
        with transaction.atomic():
            with patch.object(Notification.objects, 'create', side_effect=DatabaseError('locked')):
                sent = self.service.send(customer.id, 'Hello', 'World')
            Notification.objects.create(account=customer, title='After', message='Still usable')

        assert sent is False
        assert Notification.objects.filter(account=customer).count() == 1


@pytest.mark.django_db
class TestReadTracking:
    """Tests for listing and read flags."""

    def setup_method(self):
        self.service = NotificationService(queue_email=False)

    def test_list_newest_first_with_unread_count(self, customer, create_account):
        for title in ('First', 'Second', 'Third'):
            self.service.send(customer.id, title, 'Body')
        self.service.send(create_account().id, 'Other', 'Body')

        result = self.service.list_for_account(customer.id, page=1, limit=2)

        assert [n.title for n in result['items']] == ['Third', 'Second']
        assert result['pagination']['total_count'] == 3
        assert result['unread_count'] == 3

    def test_mark_read(self, customer):
        self.service.send(customer.id, 'Hello', 'World')
        notification = Notification.objects.get(account=customer)

        updated = self.service.mark_read(notification.id, customer.id)
        unread = self.service.list_for_account(customer.id, unread_only=True)

        assert updated.is_read is True
        assert updated.read_at is not None
        assert unread['items'] == []
        assert unread['unread_count'] == 0

    def test_cannot_mark_someone_elses(self, customer, create_account):
        self.service.send(customer.id, 'Hello', 'World')
        notification = Notification.objects.get(account=customer)

        with pytest.raises(NotFoundError):
            self.service.mark_read(notification.id, create_account().id)

    def test_mark_all_read(self, customer):
        for title in ('One', 'Two'):
            self.service.send(customer.id, title, 'Body')

        assert self.service.mark_all_read(customer.id) == 2
        assert not Notification.objects.filter(account=customer, is_read=False).exists()


@pytest.mark.django_db
class TestEmailTask:
    """Tests for send_notification_email."""

    def test_already_emailed(self, customer):
        notification = Notification.objects.create(account=customer, title='Hi', message='There')
        send_notification_email(notification.id)

        result = send_notification_email(notification.id)

        assert result['message'] == 'Already sent'
        assert len(mail.outbox) == 1

    def test_unknown_notification(self):
        result = send_notification_email(424242)

        assert result['success'] is False
