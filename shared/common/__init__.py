# Shared common library for the venue booking service:
# authentication, permissions, errors, pagination and validation helpers.

__version__ = "1.0.0"

from .validators import (
    Ok,
    Err,
    Result,
    collect,
    validate_string,
    validate_number,
    validate_price,
    validate_id,
    validate_datetime,
    validate_enum,
    validate_pagination,
    validate_sort,
)

__all__ = [
    '__version__',
    'Ok',
    'Err',
    'Result',
    'collect',
    'validate_string',
    'validate_number',
    'validate_price',
    'validate_id',
    'validate_datetime',
    'validate_enum',
    'validate_pagination',
    'validate_sort',
]
