"""
Formatting helpers for the till screen and error messages.
Amounts use Indian digit grouping (12,34,567.50).
"""
from decimal import Decimal, InvalidOperation
from typing import Union, Optional

CURRENCY_SYMBOL = '₹'


def _group_indian(integer_part: str) -> str:
    """Group digits as 12,34,567: last three, then pairs."""
    if len(integer_part) <= 3:
        return integer_part
    head, tail = integer_part[:-3], integer_part[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ','.join(pairs + [tail])


def num_in(value: Union[int, float, Decimal, str, None], decimals: Optional[int] = None) -> str:
    """
    Format a number with Indian grouping.

    Examples:
        num_in(1500) -> "1,500"
        num_in(1234567.5) -> "12,34,567.5"
        num_in(1500, decimals=2) -> "1,500.00"
        num_in(None) -> "-"
    """
    if value is None or value == "":
        return "-"

    try:
        num = Decimal(str(value).replace(",", ""))
    except (InvalidOperation, ValueError, TypeError):
        return "-"

    if decimals is not None:
        num = num.quantize(Decimal(10) ** -decimals)

    sign = "-" if num < 0 else ""
    num_str = f"{abs(num):f}"

    if '.' in num_str:
        integer_part, decimal_part = num_str.split('.')
        if decimals is None:
            decimal_part = decimal_part.rstrip('0')
    else:
        integer_part, decimal_part = num_str, ""

    formatted = _group_indian(integer_part)
    if decimal_part:
        return f"{sign}{formatted}.{decimal_part}"
    return f"{sign}{formatted}"


def money_in(value: Union[int, float, Decimal, str, None], symbol: str = CURRENCY_SYMBOL) -> str:
    """
    Format an amount with the currency symbol and exactly two decimals.

    Examples:
        money_in(1500) -> "₹1,500.00"
        money_in(Decimal('-20.5')) -> "-₹20.50"
    """
    formatted = num_in(value, decimals=2)
    if formatted == "-":
        return formatted
    if formatted.startswith("-"):
        return f"-{symbol}{formatted[1:]}"
    return f"{symbol}{formatted}"
