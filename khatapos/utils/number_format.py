"""Number parsing utilities for amounts typed at the till."""
import re
from decimal import Decimal, InvalidOperation

MONEY = Decimal('0.01')

# 1234.5, 1,234.50, 12,34,567.00 and -20 are all accepted
AMOUNT_PATTERN = re.compile(r"^-?(?:\d{1,3}(?:,\d{2,3})+|\d+)(?:\.\d+)?$")


def to_money(value) -> Decimal:
    """
    Coerce an int/float/str/Decimal to a Decimal quantized to the minor unit.

    Raises:
        ValueError: if the value is not a finite number.
    """
    try:
        decimal_value = value if isinstance(value, Decimal) else Decimal(str(value))
        if not decimal_value.is_finite():
            raise ValueError(f'Invalid amount: {value!r}')
        return decimal_value.quantize(MONEY)
    except InvalidOperation:
        raise ValueError(f'Invalid amount: {value!r}')


def parse_amount(value, allow_negative: bool = True) -> Decimal:
    """
    Parse an operator-entered amount to Decimal.

    Rules:
    - Comma is only a thousands separator (Indian or western grouping)
    - Dot is the decimal separator
    - Empty input means zero, the same as an untouched tender field
    - Negatives are parsed (so the settlement guard can reject them) unless
      allow_negative is False

    Raises:
        ValueError: if the value is not a number.
    """
    if value is None:
        return Decimal('0.00')
    if isinstance(value, (int, float, Decimal)):
        decimal_value = to_money(value)
    else:
        cleaned = str(value).strip()
        if not cleaned:
            return Decimal('0.00')
        if not AMOUNT_PATTERN.match(cleaned):
            raise ValueError(f'Invalid amount: {value!r}. Use 1,234.50')
        try:
            decimal_value = Decimal(cleaned.replace(',', '')).quantize(MONEY)
        except (InvalidOperation, ValueError):
            raise ValueError(f'Invalid amount: {value!r}. Use 1,234.50')

    if decimal_value < 0 and not allow_negative:
        raise ValueError('Amount cannot be negative')

    return decimal_value


def parse_quantity(value) -> int:
    """Parse an integer quantity delta (may be negative)."""
    try:
        qty = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValueError(f'Invalid quantity: {value!r}')
    return qty
