"""
Shared Validators Module.

Field-level validators used by the service layer. Validators never raise:
each returns ``Ok(value)`` carrying the sanitized/coerced value, or
``Err(errors)`` carrying human-readable messages.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime, date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Generic, Iterable, List, Optional, TypeVar, Union

from dateutil import parser as date_parser
from django.utils import timezone

T = TypeVar('T')


# =============================================================================
# RESULT TYPE
# =============================================================================

@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful validation carrying the sanitized value."""
    value: T

    @property
    def is_valid(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    """Failed validation carrying one or more messages."""
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return False


Result = Union[Ok[T], Err]


def collect(results: Dict[str, Result]) -> Result:
    """
    Merge named results into one.

    Returns ``Ok`` with a dict of sanitized values when every result is
    ``Ok``, otherwise ``Err`` with all messages in field order.
    """
    errors: List[str] = []
    values: Dict[str, Any] = {}
    for name, result in results.items():
        if isinstance(result, Err):
            errors.extend(result.errors)
        else:
            values[name] = result.value
    if errors:
        return Err(errors)
    return Ok(values)


# =============================================================================
# CONSTANTS
# =============================================================================

PAGINATION_DEFAULT_LIMIT = 20
PAGINATION_MAX_LIMIT = 100
PRICE_MIN = Decimal('0.01')
PRICE_MAX = Decimal('999999.99')
DURATION_MIN = Decimal('0.5')
DURATION_MAX = Decimal('168')

MESSAGES = {
    'required': '{field} is required',
    'length': '{field} must be between {min} and {max} characters',
    'max_length': '{field} must not exceed {max} characters',
    'number': '{field} must be a valid number',
    'integer': '{field} must be an integer',
    'min': '{field} must be at least {min}',
    'max': '{field} must not exceed {max}',
    'non_negative': '{field} cannot be negative',
    'date': '{field} must be a valid date',
    'enum': '{field} must be one of: {choices}',
    'id': '{field} must be a positive integer',
    'page': 'Page number must be a positive integer',
    'limit': 'Limit must be between 1 and {max}',
}

_UNSAFE_CHARS = re.compile(r'[<>"\'&]')


def _message(key: str, **kwargs) -> str:
    return MESSAGES[key].format(**kwargs)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == '')


# =============================================================================
# STRING VALIDATORS
# =============================================================================

def sanitize_input(value: str) -> str:
    """Trim whitespace and strip markup-significant characters."""
    return _UNSAFE_CHARS.sub('', value.strip())


def validate_string(
    value: Any,
    field_name: str,
    required: bool = False,
    min_length: int = 0,
    max_length: Optional[int] = None,
    sanitize: bool = True,
) -> Result[Optional[str]]:
    """Validate a text value, optionally sanitizing it."""
    if _is_blank(value):
        if required:
            return Err([_message('required', field=field_name)])
        return Ok(None)

    text = sanitize_input(str(value)) if sanitize else str(value).strip()

    if len(text) < min_length or (max_length is not None and len(text) > max_length):
        if min_length and max_length is not None:
            return Err([_message('length', field=field_name, min=min_length, max=max_length)])
        if max_length is not None:
            return Err([_message('max_length', field=field_name, max=max_length)])
        return Err([_message('required', field=field_name)])

    return Ok(text)


# =============================================================================
# NUMERIC VALIDATORS
# =============================================================================

def _to_decimal(value: Any) -> Optional[Decimal]:
    if isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return None
    if not number.is_finite():
        return None
    return number


def validate_number(
    value: Any,
    field_name: str,
    required: bool = False,
    min_value: Optional[Decimal] = None,
    max_value: Optional[Decimal] = None,
    integer: bool = False,
) -> Result[Optional[Decimal]]:
    """Validate a numeric value and coerce it to ``Decimal`` (or ``int``)."""
    if _is_blank(value):
        if required:
            return Err([_message('required', field=field_name)])
        return Ok(None)

    number = _to_decimal(value)
    if number is None:
        return Err([_message('number', field=field_name)])

    if integer and number != number.to_integral_value():
        return Err([_message('integer', field=field_name)])

    if min_value is not None and number < min_value:
        if min_value == 0:
            return Err([_message('non_negative', field=field_name)])
        return Err([_message('min', field=field_name, min=min_value)])

    if max_value is not None and number > max_value:
        return Err([_message('max', field=field_name, max=max_value)])

    return Ok(int(number) if integer else number)


def validate_non_negative(value: Any, field_name: str, required: bool = False) -> Result:
    """Validate a money or quantity value that may be zero."""
    return validate_number(value, field_name, required=required, min_value=Decimal('0'))


def validate_price(value: Any, field_name: str = 'price', required: bool = True) -> Result:
    """Validate a catalogue price within the accepted band."""
    return validate_number(
        value, field_name, required=required,
        min_value=PRICE_MIN, max_value=PRICE_MAX,
    )


def validate_duration_hours(value: Any, field_name: str = 'duration_hours', required: bool = False) -> Result:
    """Validate a duration expressed in hours."""
    return validate_number(
        value, field_name, required=required,
        min_value=DURATION_MIN, max_value=DURATION_MAX,
    )


def validate_id(value: Any, field_name: str, required: bool = False) -> Result[Optional[int]]:
    """Validate a foreign key reference that must parse to a positive integer."""
    if _is_blank(value):
        if required:
            return Err([_message('required', field=field_name)])
        return Ok(None)

    if isinstance(value, bool):
        return Err([_message('id', field=field_name)])

    try:
        number = int(str(value).strip())
    except (ValueError, TypeError):
        return Err([_message('id', field=field_name)])

    if number <= 0 or str(number) != str(value).strip():
        return Err([_message('id', field=field_name)])

    return Ok(number)


# =============================================================================
# DATE/TIME VALIDATORS
# =============================================================================

def parse_datetime(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 value into an aware datetime, or ``None``."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime(value.year, value.month, value.day)
    else:
        try:
            parsed = date_parser.isoparse(str(value).strip())
        except (ValueError, TypeError, OverflowError):
            return None

    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, timezone.get_default_timezone())
    return parsed


def validate_datetime(value: Any, field_name: str, required: bool = False) -> Result[Optional[datetime]]:
    """Validate a date-time value."""
    if _is_blank(value):
        if required:
            return Err([_message('required', field=field_name)])
        return Ok(None)

    parsed = parse_datetime(value)
    if parsed is None:
        return Err([_message('date', field=field_name)])
    return Ok(parsed)


def validate_date(value: Any, field_name: str, required: bool = False) -> Result[Optional[date]]:
    """Validate a calendar date."""
    if _is_blank(value):
        if required:
            return Err([_message('required', field=field_name)])
        return Ok(None)

    if isinstance(value, date) and not isinstance(value, datetime):
        return Ok(value)

    parsed = parse_datetime(value)
    if parsed is None:
        return Err([_message('date', field=field_name)])
    return Ok(parsed.date())


# =============================================================================
# ENUM / PAGINATION VALIDATORS
# =============================================================================

def validate_enum(
    value: Any,
    field_name: str,
    choices: Iterable[str],
    required: bool = False,
) -> Result[Optional[str]]:
    """Validate that a value is one of the allowed choices (case-insensitive)."""
    choices = list(choices)
    if _is_blank(value):
        if required:
            return Err([_message('required', field=field_name)])
        return Ok(None)

    normalized = str(value).strip().upper()
    if normalized not in choices:
        return Err([_message('enum', field=field_name, choices=', '.join(choices))])
    return Ok(normalized)


def validate_pagination(
    page: Any = None,
    limit: Any = None,
    max_limit: int = PAGINATION_MAX_LIMIT,
    default_limit: int = PAGINATION_DEFAULT_LIMIT,
) -> Result[Dict[str, int]]:
    """Validate 1-based page and bounded limit query parameters."""
    errors = []

    page_value = 1
    if not _is_blank(page):
        try:
            page_value = int(str(page))
        except ValueError:
            page_value = 0
        if page_value < 1:
            errors.append(_message('page'))

    limit_value = default_limit
    if not _is_blank(limit):
        try:
            limit_value = int(str(limit))
        except ValueError:
            limit_value = 0
        if limit_value < 1 or limit_value > max_limit:
            errors.append(_message('limit', max=max_limit))

    if errors:
        return Err(errors)
    return Ok({'page': page_value, 'limit': limit_value})


def validate_sort(
    sort_by: Any,
    sort_order: Any,
    allowed_fields: Iterable[str],
    default_field: str,
) -> Ok:
    """
    Normalize sorting parameters.

    Unknown fields fall back to ``default_field`` and the order to ``asc``,
    so this never fails.
    """
    field_name = str(sort_by) if sort_by in set(allowed_fields) else default_field
    order = 'desc' if str(sort_order or '').lower() == 'desc' else 'asc'
    return Ok({'sort_by': field_name, 'sort_order': order})
