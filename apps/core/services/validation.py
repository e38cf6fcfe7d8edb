"""
Payload Validation

Cross-field validators for booking payloads built on the shared field
validators. All functions are pure and return ``Ok(cleaned)`` or
``Err(messages)``; only keys present in the payload appear in ``cleaned``.
In partial mode a non-nullable field may be omitted but, when sent, must
carry a value.
"""

from decimal import Decimal
from typing import Any, Dict, List, Mapping

from shared.common.validators import (
    Ok,
    Err,
    Result,
    collect,
    validate_string,
    validate_number,
    validate_non_negative,
    validate_price,
    validate_duration_hours,
    validate_id,
    validate_date,
    validate_datetime,
    validate_enum,
    PRICE_MAX,
)

from apps.core.models import Event, EventService, Room, Payment, Notification

EVENT_NAME_MAX = 1024
EVENT_DESCRIPTION_MAX = 5000
NOTES_MAX = 1000
COMMENT_MAX = 1000
TITLE_MAX = 255
MESSAGE_MAX = 1000

PAYMENT_METHODS = [
    Payment.Method.CREDIT_CARD,
    Payment.Method.BANK_TRANSFER,
    Payment.Method.CASH,
    Payment.Method.STRIPE,
]


def _present(data: Mapping, keys) -> List[str]:
    return [k for k in keys if k in data]


def _positive_duration(value: Any, field_name: str) -> Result:
    result = validate_number(value, field_name)
    if isinstance(result, Ok) and result.value is not None and result.value <= 0:
        return Err([f"{field_name} must be greater than 0"])
    return result


# =============================================================================
# Events
# =============================================================================

def validate_booked_item(item: Any, index: int) -> Result[Dict[str, Any]]:
    """Validate one ``{service_id, variation_id, ...}`` entry of a booking request."""
    prefix = f"service_variants[{index}]"
    if not isinstance(item, Mapping):
        return Err([f"{prefix} must be an object"])

    checks = {
        'service_id': validate_id(item.get('service_id'), f"{prefix}.service_id", required=True),
        'variation_id': validate_id(item.get('variation_id'), f"{prefix}.variation_id"),
        'quantity': validate_number(
            item.get('quantity', 1), f"{prefix}.quantity",
            min_value=Decimal('1'), integer=True,
        ),
        'custom_price': validate_non_negative(item.get('custom_price'), f"{prefix}.custom_price"),
        'scheduled_time': validate_datetime(item.get('scheduled_time'), f"{prefix}.scheduled_time"),
        'duration_hours': _positive_duration(item.get('duration_hours'), f"{prefix}.duration_hours"),
        'notes': validate_string(item.get('notes'), f"{prefix}.notes", max_length=NOTES_MAX),
    }
    result = collect(checks)
    if isinstance(result, Ok) and result.value['quantity'] is None:
        result.value['quantity'] = 1
    return result


def validate_event_data(data: Mapping, partial: bool = False) -> Result[Dict[str, Any]]:
    """
    Validate an event create/update payload.

    On create (``partial=False``) the name, the room and either a start
    time or an event date are required, and start/end come as a pair.
    """
    if not isinstance(data, Mapping):
        return Err(["Request body must be an object"])

    field_checks = {
        'name': lambda v: validate_string(
            v, 'name', required=True, min_length=1, max_length=EVENT_NAME_MAX
        ),
        'description': lambda v: validate_string(
            v, 'description', max_length=EVENT_DESCRIPTION_MAX
        ),
        'event_date': lambda v: validate_date(v, 'event_date', required=partial),
        'start_time': lambda v: validate_datetime(v, 'start_time'),
        'end_time': lambda v: validate_datetime(v, 'end_time'),
        'estimated_cost': lambda v: validate_non_negative(v, 'estimated_cost'),
        'final_cost': lambda v: validate_non_negative(v, 'final_cost'),
        'room_service_fee': lambda v: validate_non_negative(v, 'room_service_fee'),
        'account_id': lambda v: validate_id(v, 'account_id'),
        'room_id': lambda v: validate_id(v, 'room_id', required=True),
        'event_type_id': lambda v: validate_id(v, 'event_type_id'),
        'status': lambda v: validate_enum(v, 'status', Event.Status.values, required=partial),
    }

    keys = list(field_checks) if not partial else _present(data, field_checks)
    result = collect({key: field_checks[key](data.get(key)) for key in keys})
    errors = list(result.errors) if isinstance(result, Err) else []
    cleaned = result.value if isinstance(result, Ok) else {}

    if 'service_variants' in data:
        items = data.get('service_variants')
        if items is None:
            items = []
        if not isinstance(items, list):
            errors.append("service_variants must be a list")
        else:
            cleaned_items = []
            for index, item in enumerate(items):
                item_result = validate_booked_item(item, index)
                if isinstance(item_result, Err):
                    errors.extend(item_result.errors)
                else:
                    cleaned_items.append(item_result.value)
            cleaned['service_variants'] = cleaned_items

    if errors:
        return Err(errors)

    start, end = cleaned.get('start_time'), cleaned.get('end_time')
    if start and end and end <= start:
        errors.append("End time must be after start time")
    if not partial:
        if bool(start) != bool(end):
            errors.append("start_time and end_time must be provided together")
        if not start and not cleaned.get('event_date'):
            errors.append("event_date is required when start_time is not provided")

    if errors:
        return Err(errors)
    return Ok(cleaned)


def validate_event_service_data(data: Mapping, partial: bool = False) -> Result[Dict[str, Any]]:
    """Validate a standalone event-service (line item) payload."""
    if not isinstance(data, Mapping):
        return Err(["Request body must be an object"])

    field_checks = {
        'event_id': lambda v: validate_id(v, 'event_id', required=not partial),
        'service_id': lambda v: validate_id(v, 'service_id', required=True),
        'variation_id': lambda v: validate_id(v, 'variation_id'),
        'quantity': lambda v: validate_number(
            v, 'quantity', required=partial, min_value=Decimal('1'), integer=True
        ),
        'custom_price': lambda v: validate_non_negative(v, 'custom_price'),
        'notes': lambda v: validate_string(v, 'notes', max_length=NOTES_MAX),
        'status': lambda v: validate_enum(v, 'status', EventService.Status.values, required=partial),
        'scheduled_time': lambda v: validate_datetime(v, 'scheduled_time'),
        'duration_hours': lambda v: _positive_duration(v, 'duration_hours'),
    }
    keys = list(field_checks) if not partial else _present(data, field_checks)
    result = collect({key: field_checks[key](data.get(key)) for key in keys})
    if isinstance(result, Ok) and not partial and result.value['quantity'] is None:
        result.value['quantity'] = 1
    return result


# =============================================================================
# Master data
# =============================================================================

def validate_variation_data(data: Mapping, partial: bool = False) -> Result[Dict[str, Any]]:
    """Validate a variation payload (price 0.01-999999.99, duration 0.5-168 h)."""
    field_checks = {
        'name': lambda v: validate_string(
            v, 'name', required=True, min_length=1, max_length=255
        ),
        'base_price': lambda v: validate_price(v, 'base_price', required=True),
        'duration_hours': lambda v: validate_duration_hours(v, 'duration_hours'),
        'description': lambda v: validate_string(v, 'description', max_length=NOTES_MAX),
    }
    keys = list(field_checks) if not partial else _present(data, field_checks)
    return collect({key: field_checks[key](data.get(key)) for key in keys})


def validate_pricing_tier_data(data: Mapping, partial: bool = False) -> Result[Dict[str, Any]]:
    """
    Validate a pricing tier payload.

    The modifier may be negative (a discount) but stays within the price
    band; ``valid_to`` may not precede ``valid_from`` when both are sent.
    """
    if not isinstance(data, Mapping):
        return Err(["Request body must be an object"])

    field_checks = {
        'variation_id': lambda v: validate_id(v, 'variation_id', required=True),
        'price_modifier': lambda v: validate_number(
            v, 'price_modifier', required=True, min_value=-PRICE_MAX, max_value=PRICE_MAX
        ),
        'valid_from': lambda v: validate_date(v, 'valid_from', required=True),
        'valid_to': lambda v: validate_date(v, 'valid_to', required=True),
    }
    keys = list(field_checks) if not partial else _present(data, field_checks)
    result = collect({key: field_checks[key](data.get(key)) for key in keys})
    if isinstance(result, Err):
        return result

    cleaned = result.value
    if cleaned.get('valid_from') and cleaned.get('valid_to') and cleaned['valid_to'] < cleaned['valid_from']:
        return Err(["valid_to cannot be before valid_from"])
    return Ok(cleaned)


def validate_service_data(data: Mapping, partial: bool = False) -> Result[Dict[str, Any]]:
    """Validate a service payload."""
    field_checks = {
        'name': lambda v: validate_string(
            v, 'name', required=True, min_length=1, max_length=255
        ),
        'description': lambda v: validate_string(v, 'description', max_length=EVENT_DESCRIPTION_MAX),
        'service_type_id': lambda v: validate_id(v, 'service_type_id'),
        'setup_time': lambda v: validate_number(
            v, 'setup_time', min_value=Decimal('0'), integer=True
        ),
    }
    keys = list(field_checks) if not partial else _present(data, field_checks)
    result = collect({key: field_checks[key](data.get(key)) for key in keys})
    if isinstance(result, Ok) and 'is_available' in data:
        result.value['is_available'] = bool(data.get('is_available'))
    return result


def validate_room_data(data: Mapping, partial: bool = False) -> Result[Dict[str, Any]]:
    """Validate a room payload."""
    field_checks = {
        'name': lambda v: validate_string(
            v, 'name', required=True, min_length=1, max_length=255
        ),
        'description': lambda v: validate_string(v, 'description', max_length=EVENT_DESCRIPTION_MAX),
        'status': lambda v: validate_enum(v, 'status', Room.Status.values, required=partial),
        'guest_capacity': lambda v: validate_number(
            v, 'guest_capacity', required=partial, min_value=Decimal('0'), integer=True
        ),
        'base_price': lambda v: validate_non_negative(v, 'base_price'),
        'hourly_rate': lambda v: validate_non_negative(v, 'hourly_rate'),
    }
    keys = list(field_checks) if not partial else _present(data, field_checks)
    return collect({key: field_checks[key](data.get(key)) for key in keys})


# =============================================================================
# Reviews, payments, notifications
# =============================================================================

def validate_review_data(data: Mapping) -> Result[Dict[str, Any]]:
    """Validate a review: rate 1-5, account and one of service/event required."""
    result = collect({
        'rate': validate_number(
            data.get('rate'), 'rate', required=True,
            min_value=Decimal('1'), max_value=Decimal('5'), integer=True,
        ),
        'account_id': validate_id(data.get('account_id'), 'account_id', required=True),
        'service_id': validate_id(data.get('service_id'), 'service_id'),
        'event_id': validate_id(data.get('event_id'), 'event_id'),
        'comment': validate_string(data.get('comment'), 'comment', max_length=COMMENT_MAX),
    })
    if isinstance(result, Ok) and not (result.value['service_id'] or result.value['event_id']):
        return Err(["Either service_id or event_id is required"])
    return result


def validate_payment_data(data: Mapping) -> Result[Dict[str, Any]]:
    """Validate a checkout request."""
    return collect({
        'event_id': validate_id(data.get('event_id'), 'event_id', required=True),
        'account_id': validate_id(data.get('account_id'), 'account_id', required=True),
        'amount': validate_non_negative(data.get('amount'), 'amount'),
        'method': validate_enum(data.get('method'), 'method', PAYMENT_METHODS),
    })


def validate_notification_data(title: Any, message: Any, notification_type: Any) -> Result[Dict[str, Any]]:
    """Validate a notification before it is stored."""
    return collect({
        'title': validate_string(
            title, 'title', required=True, min_length=1, max_length=TITLE_MAX, sanitize=False
        ),
        'message': validate_string(
            message, 'message', required=True, min_length=1, max_length=MESSAGE_MAX, sanitize=False
        ),
        'type': validate_enum(notification_type, 'type', Notification.Type.values, required=True),
    })
