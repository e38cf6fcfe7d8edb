# tests/unit/test_validators.py
"""
Unit Tests for Validators

Field validators and booking payload validation.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from shared.common.validators import (
    Ok,
    Err,
    collect,
    validate_string,
    validate_number,
    validate_price,
    validate_duration_hours,
    validate_id,
    validate_datetime,
    validate_date,
    validate_enum,
    validate_pagination,
    validate_sort,
)
from apps.core.services.validation import (
    validate_event_data,
    validate_booked_item,
    validate_variation_data,
    validate_review_data,
)


class TestFieldValidators:
    """Tests for shared field validators."""

    def test_string_is_sanitized(self):
        result = validate_string('  <b>Gala</b> ', 'name')

        assert isinstance(result, Ok)
        assert result.value == 'bGala/b'

    def test_required_string_missing(self):
        result = validate_string('   ', 'name', required=True)

        assert isinstance(result, Err)
        assert result.errors == ['name is required']

    def test_string_length_bounds(self):
        result = validate_string('x' * 300, 'name', min_length=1, max_length=255)

        assert isinstance(result, Err)
        assert 'between 1 and 255' in result.errors[0]

    def test_number_coerced_to_decimal(self):
        result = validate_number('12.50', 'amount')

        assert result.value == Decimal('12.50')

    def test_number_rejects_garbage(self):
        assert isinstance(validate_number('abc', 'amount'), Err)
        assert isinstance(validate_number(True, 'amount'), Err)
        assert isinstance(validate_number('NaN', 'amount'), Err)

    def test_integer_flag(self):
        assert validate_number('3', 'quantity', integer=True).value == 3
        assert isinstance(validate_number('2.5', 'quantity', integer=True), Err)

    def test_negative_rejected_with_min_zero(self):
        result = validate_number('-1', 'estimated_cost', min_value=Decimal('0'))

        assert result.errors == ['estimated_cost cannot be negative']

    def test_price_band(self):
        assert isinstance(validate_price('0.00'), Err)
        assert isinstance(validate_price('1000000'), Err)
        assert validate_price('0.01').value == Decimal('0.01')

    def test_duration_band(self):
        assert isinstance(validate_duration_hours('0.25'), Err)
        assert isinstance(validate_duration_hours('169'), Err)
        assert validate_duration_hours('0.5').value == Decimal('0.5')

    @pytest.mark.parametrize('value', ['0', '-3', '1.5', 'abc', '01', True])
    def test_invalid_ids(self, value):
        assert isinstance(validate_id(value, 'room_id'), Err)

    def test_valid_id(self):
        assert validate_id('42', 'room_id').value == 42
        assert validate_id(7, 'room_id').value == 7
        assert validate_id(None, 'room_id').value is None

    def test_datetime_parsing(self):
        result = validate_datetime('2030-05-01T10:00:00Z', 'start_time')

        assert isinstance(result.value, datetime)
        assert result.value.tzinfo is not None

    def test_naive_datetime_made_aware(self):
        result = validate_datetime('2030-05-01T10:00:00', 'start_time')

        assert result.value.tzinfo is not None

    def test_bad_datetime(self):
        result = validate_datetime('not-a-date', 'start_time')

        assert result.errors == ['start_time must be a valid date']

    def test_date(self):
        assert validate_date('2030-05-01', 'event_date').value == date(2030, 5, 1)

    def test_enum_is_case_insensitive(self):
        result = validate_enum('confirmed', 'status', ['PENDING', 'CONFIRMED'])

        assert result.value == 'CONFIRMED'

    def test_enum_rejects_unknown(self):
        result = validate_enum('DONE', 'status', ['PENDING', 'CONFIRMED'])

        assert result.errors == ['status must be one of: PENDING, CONFIRMED']

    def test_pagination_defaults(self):
        assert validate_pagination().value == {'page': 1, 'limit': 20}

    @pytest.mark.parametrize('page,limit', [('0', '10'), ('1', '0'), ('1', '101'), ('x', '10')])
    def test_pagination_bounds(self, page, limit):
        assert isinstance(validate_pagination(page, limit), Err)

    def test_sort_falls_back_to_default(self):
        result = validate_sort('password', 'DOWN', ['name', 'created_at'], 'created_at')

        assert result.value == {'sort_by': 'created_at', 'sort_order': 'asc'}

    def test_sort_desc(self):
        result = validate_sort('name', 'DESC', ['name'], 'created_at')

        assert result.value == {'sort_by': 'name', 'sort_order': 'desc'}

    def test_collect_merges_errors_in_order(self):
        result = collect({
            'a': Err(['first']),
            'b': Ok(1),
            'c': Err(['second']),
        })

        assert result.errors == ['first', 'second']


@pytest.mark.django_db
class TestEventPayloadValidation:
    """Tests for event payload validation."""

    def test_valid_create_payload(self):
        result = validate_event_data({
            'name': 'Gala',
            'room_id': '3',
            'start_time': '2030-05-01T10:00:00Z',
            'end_time': '2030-05-01T12:00:00Z',
            'estimated_cost': '100',
        })

        assert isinstance(result, Ok)
        assert result.value['room_id'] == 3
        assert result.value['estimated_cost'] == Decimal('100')

    def test_end_before_start(self):
        result = validate_event_data({
            'name': 'Gala',
            'room_id': 3,
            'start_time': '2030-05-01T12:00:00Z',
            'end_time': '2030-05-01T10:00:00Z',
        })

        assert result.errors == ['End time must be after start time']

    def test_missing_name_and_room(self):
        result = validate_event_data({'event_date': '2030-05-01'})

        assert 'name is required' in result.errors
        assert 'room_id is required' in result.errors

    def test_start_without_end(self):
        result = validate_event_data({
            'name': 'Gala',
            'room_id': 3,
            'start_time': '2030-05-01T10:00:00Z',
        })

        assert 'start_time and end_time must be provided together' in result.errors

    def test_negative_costs(self):
        result = validate_event_data({
            'name': 'Gala',
            'room_id': 3,
            'event_date': '2030-05-01',
            'final_cost': '-5',
            'room_service_fee': '-1',
        })

        assert 'final_cost cannot be negative' in result.errors
        assert 'room_service_fee cannot be negative' in result.errors

    def test_unknown_status(self):
        result = validate_event_data({
            'name': 'Gala',
            'room_id': 3,
            'event_date': '2030-05-01',
            'status': 'ARCHIVED',
        })

        assert isinstance(result, Err)

    def test_partial_only_checks_present_keys(self):
        result = validate_event_data({'name': 'Renamed'}, partial=True)

        assert result.value == {'name': 'Renamed'}

    def test_partial_sent_name_needs_value(self):
        assert validate_event_data({'name': None}, partial=True).errors == ['name is required']
        assert validate_event_data({'name': '  '}, partial=True).errors == ['name is required']

    def test_partial_variation_price_needs_value(self):
        result = validate_variation_data({'base_price': None}, partial=True)

        assert result.errors == ['base_price is required']

    def test_service_variants_must_be_list(self):
        result = validate_event_data({'service_variants': 'nope'}, partial=True)

        assert result.errors == ['service_variants must be a list']

    def test_booked_item_errors_are_prefixed(self):
        result = validate_booked_item({'service_id': 'x', 'quantity': 0}, 2)

        assert 'service_variants[2].service_id must be a positive integer' in result.errors
        assert 'service_variants[2].quantity must be at least 1' in result.errors

    def test_booked_item_quantity_defaults_to_one(self):
        result = validate_booked_item({'service_id': 1, 'variation_id': 2, 'quantity': None}, 0)

        assert result.value['quantity'] == 1

    def test_variation_payload(self):
        result = validate_variation_data({'name': 'Premium', 'base_price': '0', 'duration_hours': '200'})

        assert 'base_price must be at least 0.01' in result.errors
        assert 'duration_hours must not exceed 168' in result.errors

    def test_review_needs_subject(self):
        result = validate_review_data({'rate': 5, 'account_id': 1})

        assert result.errors == ['Either service_id or event_id is required']

    def test_review_rate_range(self):
        result = validate_review_data({'rate': 6, 'account_id': 1, 'service_id': 1})

        assert result.errors == ['rate must not exceed 5']
