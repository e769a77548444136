"""Number parsing utilities for request payloads and spreadsheet cells."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from kala_pos.exceptions import ValidationError

CENTS = Decimal('0.01')


def is_blank(value) -> bool:
    """True for None and whitespace-only strings."""
    return value is None or (isinstance(value, str) and not value.strip())


def parse_money(value, field: str) -> Decimal:
    """
    Parse a non-negative monetary amount to a Decimal with 2 places.

    Accepts ints, floats, Decimals and numeric strings ("1500", "1500.50").

    Raises:
        ValidationError: if the value is empty, not numeric or negative.
    """
    if is_blank(value) or isinstance(value, bool):
        raise ValidationError(f'{field} is required')

    try:
        amount = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f'{field} must be a number')

    if not amount.is_finite():
        raise ValidationError(f'{field} must be a number')
    if amount < 0:
        raise ValidationError(f'{field} cannot be negative')

    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def parse_int(value, field: str, minimum: int = 0) -> int:
    """
    Parse a whole number no smaller than ``minimum``.

    "3", 3 and 3.0 are accepted; 3.5, "abc" and booleans are not.
    """
    if is_blank(value) or isinstance(value, bool):
        raise ValidationError(f'{field} is required')

    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValidationError(f'{field} must be a whole number')

    if not number.is_finite() or number != number.to_integral_value():
        raise ValidationError(f'{field} must be a whole number')

    number = int(number)
    if number < minimum:
        raise ValidationError(f'{field} must be at least {minimum}')
    return number


def parse_quantity(value, field: str = 'quantity') -> int:
    """Parse a sold quantity (positive integer)."""
    return parse_int(value, field, minimum=1)


def parse_stock(value, field: str = 'quantity') -> int:
    """Parse a stock level (zero or more)."""
    return parse_int(value, field, minimum=0)


def parse_id(value, field: str) -> int:
    """Parse a database identifier."""
    return parse_int(value, field, minimum=1)
