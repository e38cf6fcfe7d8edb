# apps/api/views/billing_views.py
"""
Billing Views

REST API views for invoices and payments.
"""

import logging

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated

from shared.common.pagination import StandardPagination
from shared.common.permissions import IsPrivileged
from shared.common.validators import Err, collect, validate_date
from apps.core.filters import InvoiceFilter, PaymentFilter
from apps.core.models import Invoice, Payment
from apps.core.services import (
    InvoiceService,
    PaymentService,
    PermissionDeniedError,
    ValidationFailedError,
)
from apps.api.serializers import InvoiceSerializer, InvoiceDetailedSerializer, PaymentSerializer
from .base import ExceptionHandlerMixin, ActorMixin, ResponseMixin

logger = logging.getLogger(__name__)


class OwnedListMixin(ActorMixin):
    """Restricts list querysets to the caller's own rows unless privileged."""

    owner_lookup = 'account_id'

    def get_queryset(self):
        queryset = super().get_queryset()
        actor = self.get_actor()
        if actor is not None and not actor.is_privileged:
            queryset = queryset.filter(**{self.owner_lookup: actor.id})
        return queryset

    def ensure_owner(self, owner_id) -> None:
        actor = self.get_actor()
        if actor is not None and not actor.is_privileged and owner_id != actor.id:
            raise PermissionDeniedError("You can only view your own records.")


class InvoiceViewSet(
    ExceptionHandlerMixin,
    OwnedListMixin,
    ResponseMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet
):
    """Read-only invoices."""

    queryset = Invoice.objects.all().order_by('-issue_date', '-id')
    serializer_class = InvoiceSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = StandardPagination
    filter_backends = [DjangoFilterBackend]
    filterset_class = InvoiceFilter
    owner_lookup = 'event__account_id'
    lookup_value_regex = r'\d+'

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.invoice_service = InvoiceService()

    def get_permissions(self):
        if self.action == 'statistics':
            return [IsPrivileged()]
        return [IsAuthenticated()]

    def retrieve(self, request, pk=None):
        """
        Invoice with its line items.

        GET /api/v1/invoices/{id}/
        """
        invoice = self.invoice_service.get_invoice(int(pk))
        self.ensure_owner(invoice.event.account_id if invoice.event_id else None)
        return self.success_response(InvoiceDetailedSerializer(invoice).data)

    @action(detail=False, methods=['get'])
    def statistics(self, request):
        """
        Counts and totals per status.

        GET /api/v1/invoices/statistics/?date_from=2025-01-01&date_to=2025-12-31
        """
        result = collect({
            'date_from': validate_date(request.query_params.get('date_from'), 'date_from'),
            'date_to': validate_date(request.query_params.get('date_to'), 'date_to'),
        })
        if isinstance(result, Err):
            raise ValidationFailedError(result.errors)

        return self.success_response(self.invoice_service.get_statistics(**result.value))


class PaymentViewSet(
    ExceptionHandlerMixin,
    OwnedListMixin,
    ResponseMixin,
    mixins.ListModelMixin,
    viewsets.GenericViewSet
):
    """
    Payments for event invoices.

    Creating a payment starts a Stripe Checkout session; ``sync`` pulls
    its outcome.
    """

    queryset = Payment.objects.all().order_by('-created_at', '-id')
    serializer_class = PaymentSerializer
    permission_classes = [IsAuthenticated]
    pagination_class = StandardPagination
    filter_backends = [DjangoFilterBackend]
    filterset_class = PaymentFilter
    lookup_value_regex = r'\d+'

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.payment_service = PaymentService()

    def get_permissions(self):
        if self.action == 'set_status':
            return [IsPrivileged()]
        return [IsAuthenticated()]

    def retrieve(self, request, pk=None):
        payment = self.payment_service.get_payment(int(pk))
        self.ensure_owner(payment.account_id)
        return self.success_response(PaymentSerializer(payment).data)

    def create(self, request):
        """
        Create a payment (checkout) for an event.

        POST /api/v1/payments/
        """
        payment = self.payment_service.create_checkout(request.data, actor=self.get_actor())
        return self.success_response(
            PaymentSerializer(payment).data,
            status_code=status.HTTP_201_CREATED
        )

    @action(detail=True, methods=['post'])
    def sync(self, request, pk=None):
        payment = self.payment_service.get_payment(int(pk))
        self.ensure_owner(payment.account_id)

        payment = self.payment_service.sync_checkout(payment.id)
        return self.success_response(PaymentSerializer(payment).data)

    @action(detail=True, methods=['post'], url_path='set-status')
    def set_status(self, request, pk=None):
        payment = self.payment_service.set_payment_status(int(pk), request.data.get('status'))
        return self.success_response(PaymentSerializer(payment).data)
