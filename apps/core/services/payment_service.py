# apps/core/services/payment_service.py
"""
Payment Service

Payments for event invoices. The Payment row is written in its own
transaction; the gateway is called after that commits, so a slow or
failing gateway never holds database locks.

Completion (checkout sync or manual status change) marks the invoice
PAID and confirms a PENDING event when its room is still free.
"""

import logging
from typing import Optional, Mapping

from django.db import transaction, DatabaseError
from django.utils import timezone

from shared.common.validators import Err, validate_enum
from apps.core.models import Account, Event, Invoice, Payment, Notification
from .availability_service import AvailabilityService
from .cost_calculator import ZERO, to_money
from .invoice_service import InvoiceService
from .notification_service import NotificationService
from .payment_gateway import StripeGateway
from .validation import validate_payment_data

logger = logging.getLogger(__name__)


class PaymentService:
    """
    Service for event payments.

    Handles:
    - Checkout creation and sync
    - Manual status changes
    - Completion side effects (invoice, event, notification)
    """

    def __init__(
        self,
        gateway: StripeGateway = None,
        availability: AvailabilityService = None,
        invoices: InvoiceService = None,
        notifications: NotificationService = None
    ):
        self._gateway = gateway
        self.availability = availability or AvailabilityService()
        self.invoices = invoices or InvoiceService()
        self.notifications = notifications or NotificationService()

    @property
    def gateway(self) -> StripeGateway:
        if self._gateway is None:
            self._gateway = StripeGateway()
        return self._gateway

    # ==========================================================================
    # Checkout
    # ==========================================================================

    def create_checkout(self, data: Mapping, actor=None) -> Payment:
        """
        Create a payment for an event.

        STRIPE payments get a Checkout session; other methods stay PENDING
        until their status is set manually.
        """
        from . import (
            ValidationFailedError,
            EntityReferenceError,
            EventStateError,
            PermissionDeniedError,
            PersistenceError,
            PaymentGatewayError,
        )

        payload = dict(data)
        if actor is not None and not payload.get('account_id'):
            payload['account_id'] = actor.id
        result = validate_payment_data(payload)
        if isinstance(result, Err):
            raise ValidationFailedError(result.errors)
        cleaned = result.value

        if actor is not None and not actor.is_privileged and cleaned['account_id'] != actor.id:
            raise PermissionDeniedError("You can only pay for your own account.")

        try:
            with transaction.atomic():
                event = (
                    Event.objects.exclude(status=Event.Status.CANCELLED)
                    .filter(id=cleaned['event_id'])
                    .first()
                )
                if event is None:
                    raise EntityReferenceError("Event not found or cancelled", field='event_id')

                account = Account.objects.filter(id=cleaned['account_id']).first()
                if account is None:
                    raise EntityReferenceError("Account not found", field='account_id')

                invoice = Invoice.objects.filter(event=event).first()
                if invoice is None:
                    raise EntityReferenceError("Invoice not found", field='event_id')
                if invoice.status == Invoice.Status.PAID:
                    raise EventStateError("Invoice is already paid", current_state=invoice.status)

                amount = to_money(cleaned['amount']) if cleaned.get('amount') is not None else invoice.total_amount
                if amount <= ZERO:
                    raise ValidationFailedError(["amount must be greater than 0"])

                payment = Payment.objects.create(
                    event=event,
                    account=account,
                    invoice=invoice,
                    amount=amount,
                    method=cleaned.get('method') or Payment.Method.STRIPE,
                    status=Payment.Status.PENDING,
                )
        except DatabaseError as exc:
            logger.exception(
                "Failed to create payment",
                extra={'event_id': cleaned['event_id'], 'account_id': cleaned['account_id']}
            )
            raise PersistenceError() from exc

        if payment.method != Payment.Method.STRIPE:
            logger.info(f"Created {payment.method} payment {payment.id} for event {event.id}")
            return payment

        try:
            session = self.gateway.create_checkout_session(
                amount=payment.amount,
                description=f"Invoice {invoice.invoice_number} - {event.name}",
                metadata={'payment_id': payment.id, 'event_id': event.id},
                customer_email=account.email,
            )
        except PaymentGatewayError as exc:
            payment.status = Payment.Status.FAILED
            payment.failure_reason = exc.message
            payment.save(update_fields=['status', 'failure_reason', 'updated_at'])
            raise

        payment.stripe_session_id = session.session_id
        payment.checkout_url = session.url
        payment.save(update_fields=['stripe_session_id', 'checkout_url', 'updated_at'])

        logger.info(f"Created checkout {session.session_id} for payment {payment.id}")
        return payment

    def sync_checkout(self, payment_id: int) -> Payment:
        """Pull the Checkout session status; a paid session completes the payment."""
        from . import EventStateError

        payment = self.get_payment(payment_id)
        if payment.status == Payment.Status.COMPLETED:
            return payment
        if not payment.stripe_session_id:
            raise EventStateError("Payment has no checkout session", current_state=payment.status)

        session = self.gateway.retrieve_session_status(payment.stripe_session_id)

        if session.is_paid:
            return self.complete_payment(payment.id, transaction_id=session.payment_intent)

        if session.is_expired and payment.status == Payment.Status.PENDING:
            payment.status = Payment.Status.CANCELLED
            payment.failure_reason = "Checkout session expired"
            payment.save(update_fields=['status', 'failure_reason', 'updated_at'])
            logger.info(f"Payment {payment.id} cancelled: checkout expired")

        return payment

    # ==========================================================================
    # Status
    # ==========================================================================

    def set_payment_status(self, payment_id: int, status) -> Payment:
        from . import ValidationFailedError, EventStateError

        result = validate_enum(status, 'status', Payment.Status.values, required=True)
        if isinstance(result, Err):
            raise ValidationFailedError(result.errors)
        target = result.value

        if target == Payment.Status.COMPLETED:
            return self.complete_payment(payment_id)

        with transaction.atomic():
            self._lock_payment_event(payment_id)
            payment = self._lock_payment(payment_id)
            if payment.status == target:
                return payment
            if payment.status == Payment.Status.COMPLETED and target != Payment.Status.REFUNDED:
                raise EventStateError(
                    "Completed payments can only be refunded",
                    current_state=payment.status,
                    target_state=target
                )
            if target == Payment.Status.REFUNDED and payment.status != Payment.Status.COMPLETED:
                raise EventStateError(
                    "Only completed payments can be refunded",
                    current_state=payment.status,
                    target_state=target
                )

            payment.status = target
            payment.save(update_fields=['status', 'updated_at'])

            if target == Payment.Status.REFUNDED and payment.invoice_id:
                Invoice.objects.filter(id=payment.invoice_id).update(
                    status=Invoice.Status.REFUNDED, updated_at=timezone.now()
                )

        logger.info(f"Payment {payment_id} status set to {target}")
        return payment

    def complete_payment(self, payment_id: int, transaction_id: Optional[str] = None) -> Payment:
        """
        Mark a payment COMPLETED and apply its side effects.

        Completing an already completed payment changes nothing.
        """
        with transaction.atomic():
            event = self._lock_payment_event(payment_id)
            payment = self._lock_payment(payment_id)
            if payment.status == Payment.Status.COMPLETED:
                return payment

            payment.status = Payment.Status.COMPLETED
            payment.paid_at = timezone.now()
            payment.failure_reason = None
            if transaction_id:
                payment.transaction_id = transaction_id
            payment.save(update_fields=[
                'status', 'paid_at', 'failure_reason', 'transaction_id', 'updated_at'
            ])

            invoice = payment.invoice or Invoice.objects.filter(event_id=payment.event_id).first()
            if invoice is not None:
                self.invoices.mark_paid(invoice)

            if event is not None:
                self._confirm_event(event)

            self.notifications.send(
                payment.account_id,
                "Payment Successful",
                f"Your payment of {payment.amount} has been received.",
                Notification.Type.PAYMENT_SUCCESS,
            )

        logger.info(f"Payment {payment_id} completed")
        return payment

    def _lock_payment_event(self, payment_id: int) -> Optional[Event]:
        """Lock the paid event ahead of the payment row itself."""
        event_id = (
            Payment.objects.filter(id=payment_id)
            .values_list('event_id', flat=True)
            .first()
        )
        if event_id is None:
            return None
        return Event.objects.select_for_update().filter(id=event_id).first()

    def _confirm_event(self, event: Event) -> None:
        if event.status != Event.Status.PENDING:
            return

        if event.room_id and event.start_time and event.end_time:
            room = self.availability.lock_rooms([event.room_id]).get(event.room_id)
            result = self.availability.check_room_availability(
                event.room_id,
                event.start_time,
                end=event.end_time,
                exclude_event_id=event.id,
                room=room,
            )
            if not result.available:
                logger.warning(
                    f"Paid event {event.id} left PENDING: {result.reason}",
                    extra={'room_id': event.room_id}
                )
                return

        event.status = Event.Status.CONFIRMED
        event.save(update_fields=['status', 'updated_at'])
        logger.info(f"Event {event.id} confirmed by payment")

    # ==========================================================================
    # Queries
    # ==========================================================================

    def get_payment(self, payment_id: int) -> Payment:
        from . import NotFoundError

        payment = Payment.objects.select_related('event', 'invoice').filter(id=payment_id).first()
        if payment is None:
            raise NotFoundError('Payment', payment_id)
        return payment

    def _lock_payment(self, payment_id: int) -> Payment:
        from . import NotFoundError

        payment = Payment.objects.select_for_update().filter(id=payment_id).first()
        if payment is None:
            raise NotFoundError('Payment', payment_id)
        return payment
