"""
Cost Calculator

Pure estimated-cost arithmetic. No database access: callers pass the
resolved room and booked items.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional

ZERO = Decimal('0')
CENTS = Decimal('0.01')


@dataclass(frozen=True)
class BookedItem:
    """A service variation booked for an event."""
    variation_price: Optional[Decimal] = None
    quantity: int = 1
    custom_price: Optional[Decimal] = None

    @property
    def unit_price(self) -> Decimal:
        if self.custom_price is not None:
            return Decimal(self.custom_price)
        if self.variation_price is not None:
            return Decimal(self.variation_price)
        return ZERO

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


def to_money(value) -> Decimal:
    """Round to cents."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def room_cost(room, duration_hours: Optional[Decimal]) -> Decimal:
    """Room base price plus hourly rate times duration (when both are known)."""
    if room is None:
        return ZERO
    total = Decimal(room.base_price) if room.base_price is not None else ZERO
    if duration_hours is not None and room.hourly_rate is not None:
        total += Decimal(room.hourly_rate) * Decimal(duration_hours)
    return total


def calculate_estimated_cost(
    room,
    duration_hours: Optional[Decimal],
    booked_items: Iterable[BookedItem] = (),
    base_cost: Optional[Decimal] = None,
) -> Decimal:
    """
    Aggregate the estimated cost of an event.

    ``base_cost`` (default 0) + room base price + hourly rate x duration
    + sum of ``unit_price x quantity`` over the booked items. Arithmetic is
    exact in ``Decimal``; the result is rounded to cents once at the end.
    """
    total = Decimal(base_cost) if base_cost is not None else ZERO
    total += room_cost(room, duration_hours)
    for item in booked_items:
        total += item.subtotal
    return to_money(total)
