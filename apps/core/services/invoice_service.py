# apps/core/services/invoice_service.py
"""
Invoice Service

Keeps each event's invoice equal to the event's estimated cost. Line
items are rebuilt from scratch (delete-then-insert) whenever the cost
changes; the history of previous details is not kept.
"""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Dict, Any, List, Iterable

from django.db.models import Sum, Count
from django.utils import timezone

from apps.core.models import Event, Invoice, InvoiceDetail
from .cost_calculator import ZERO, to_money, room_cost

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvoiceLine:
    """One invoice detail before it is stored."""
    item_name: str
    quantity: int
    unit_price: Decimal
    item_type: str = InvoiceDetail.ItemType.SERVICE
    service_id: Optional[int] = None
    variation_id: Optional[int] = None

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


def build_invoice_lines(
    room,
    duration_hours: Optional[Decimal],
    booked_items: Iterable = (),
    base_cost: Optional[Decimal] = None,
) -> List[InvoiceLine]:
    """
    Invoice lines whose subtotals add up to the estimated cost.

    ``booked_items`` are objects exposing ``service``, ``variation``,
    ``quantity`` and ``unit_price`` (resolved request items or stored
    EventService rows).
    """
    lines = []

    room_total = to_money(room_cost(room, duration_hours))
    if room is not None and room_total > ZERO:
        name = f"Room: {room.name}"
        if duration_hours is not None and room.hourly_rate is not None:
            name = f"{name} ({to_money(duration_hours)} h)"
        lines.append(InvoiceLine(
            item_name=name,
            quantity=1,
            unit_price=room_total,
            item_type=InvoiceDetail.ItemType.ROOM,
        ))

    for item in booked_items:
        service, variation = item.service, item.variation
        if service is not None and variation is not None:
            name = f"{service.name} - {variation.name}"
        elif service is not None:
            name = service.name
        else:
            name = variation.name if variation is not None else "Service"
        lines.append(InvoiceLine(
            item_name=name[:255],
            quantity=item.quantity,
            unit_price=to_money(item.unit_price),
            item_type=InvoiceDetail.ItemType.SERVICE,
            service_id=service.id if service is not None else None,
            variation_id=variation.id if variation is not None else None,
        ))

    if base_cost is not None and to_money(base_cost) > ZERO:
        lines.append(InvoiceLine(
            item_name="Additional charges",
            quantity=1,
            unit_price=to_money(base_cost),
            item_type=InvoiceDetail.ItemType.OTHER,
        ))

    return lines


class InvoiceService:
    """
    Service for event invoices.

    Handles:
    - Invoice creation alongside an event
    - Total/detail synchronization after changes
    - Cancellation and settlement
    - Statistics
    """

    # ==========================================================================
    # Synchronization
    # ==========================================================================

    def sync_for_event(
        self,
        event: Event,
        lines: List[InvoiceLine],
        total: Decimal
    ) -> Optional[Invoice]:
        """
        Make the event's invoice match ``total`` and ``lines``.

        Creates the invoice when none exists and ``total`` is positive.
        Must run inside the caller's transaction.
        """
        invoice = Invoice.objects.filter(event=event).first()

        if invoice is None:
            if total <= ZERO:
                return None
            invoice = Invoice.objects.create(event=event, total_amount=total)
            self._write_details(invoice, lines)
            logger.info(
                f"Invoice {invoice.invoice_number} created for event {event.id}"
            )
            return invoice

        if invoice.total_amount != total:
            invoice.total_amount = total
            invoice.save(update_fields=['total_amount', 'updated_at'])
        invoice.details.all().delete()
        self._write_details(invoice, lines)
        logger.info(
            f"Invoice {invoice.invoice_number} synchronized for event {event.id}",
            extra={'total_amount': str(total)}
        )
        return invoice

    def _write_details(self, invoice: Invoice, lines: List[InvoiceLine]) -> None:
        for line in lines:
            InvoiceDetail.objects.create(
                invoice=invoice,
                item_name=line.item_name,
                quantity=line.quantity,
                unit_price=line.unit_price,
                subtotal=to_money(line.subtotal),
                item_type=line.item_type,
                service_id=line.service_id,
                variation_id=line.variation_id,
            )

    def cancel_for_event(self, event: Event) -> Optional[Invoice]:
        """Cancel the event's invoice unless it is already settled."""
        invoice = Invoice.objects.filter(event=event).first()
        if invoice is None or invoice.is_settled or invoice.status == Invoice.Status.CANCELLED:
            return invoice
        invoice.status = Invoice.Status.CANCELLED
        invoice.save(update_fields=['status', 'updated_at'])
        logger.info(f"Invoice {invoice.invoice_number} cancelled")
        return invoice

    def mark_paid(self, invoice: Invoice) -> Invoice:
        if invoice.status == Invoice.Status.PAID:
            return invoice
        invoice.status = Invoice.Status.PAID
        invoice.paid_date = timezone.now()
        invoice.save(update_fields=['status', 'paid_date', 'updated_at'])
        logger.info(f"Invoice {invoice.invoice_number} paid")
        return invoice

    # ==========================================================================
    # Queries
    # ==========================================================================

    def get_invoice(self, invoice_id: int) -> Invoice:
        from .exceptions import NotFoundError

        invoice = (
            Invoice.objects.select_related('event')
            .prefetch_related('details')
            .filter(id=invoice_id)
            .first()
        )
        if invoice is None:
            raise NotFoundError('Invoice', invoice_id)
        return invoice

    def get_statistics(
        self,
        date_from: date = None,
        date_to: date = None
    ) -> Dict[str, Any]:
        """
        Get invoice statistics.

        Args:
            date_from: Start issue date
            date_to: End issue date

        Returns:
            Dict with counts and totals per status
        """
        queryset = Invoice.objects.all()

        if date_from:
            queryset = queryset.filter(issue_date__gte=date_from)

        if date_to:
            queryset = queryset.filter(issue_date__lte=date_to)

        breakdown = queryset.values('status').annotate(
            count=Count('id'),
            total=Sum('total_amount'),
        )
        by_status = {
            item['status']: {
                'count': item['count'],
                'total_amount': str(item['total'] or Decimal('0.00')),
            }
            for item in breakdown
        }

        outstanding = queryset.filter(
            status__in=[Invoice.Status.PENDING, Invoice.Status.OVERDUE]
        ).aggregate(total=Sum('total_amount'))['total'] or Decimal('0.00')

        overdue_count = queryset.filter(
            status=Invoice.Status.PENDING,
            due_date__lt=timezone.localdate(),
        ).count()

        return {
            'period': {
                'from': date_from.isoformat() if date_from else None,
                'to': date_to.isoformat() if date_to else None,
            },
            'total_count': queryset.count(),
            'total_invoiced': str(
                queryset.exclude(status=Invoice.Status.CANCELLED)
                .aggregate(total=Sum('total_amount'))['total'] or Decimal('0.00')
            ),
            'total_outstanding': str(outstanding),
            'overdue_count': overdue_count,
            'status_breakdown': by_status,
        }
