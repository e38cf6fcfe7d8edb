"""
Venue Booking Models
"""

from .account import Account
from .catalog import ServiceType, Service, Variation, PricingTier
from .room import Room, Image
from .event import EventType, Event, EventService
from .billing import Invoice, InvoiceDetail, Payment
from .review import Review
from .notification import Notification

__all__ = [
    'Account',
    'ServiceType',
    'Service',
    'Variation',
    'PricingTier',
    'Room',
    'Image',
    'EventType',
    'Event',
    'EventService',
    'Invoice',
    'InvoiceDetail',
    'Payment',
    'Review',
    'Notification',
]
