"""Currency conversion helpers for gateway amounts."""
from decimal import ROUND_HALF_UP, Decimal
from typing import Union

# Currencies that don't use decimal places (smallest unit is whole currency)
zero_decimal_currencies = [
    "JPY",  # Japanese Yen
    "KRW",  # South Korean Won
    "VND",  # Vietnamese Đồng
    "CLP",  # Chilean Peso
    "ISK",  # Icelandic Króna
]


def convert_to_smallest_unit(amount: Union[Decimal, int, float, str], currency: str) -> int:
    """
    Convert a decimal amount to the smallest currency unit (paise for INR).

    Rounds half up to the nearest unit rather than truncating, so 9.995
    becomes 1000 paise and float noise such as 19.99 * 100 = 1998.999...
    does not lose a paisa.

    Args:
        amount: Amount in major currency units (e.g. 100.00 rupees)
        currency: ISO 4217 currency code

    Returns:
        Amount in smallest unit

    Examples:
        >>> convert_to_smallest_unit(Decimal("100"), "INR")
        10000
        >>> convert_to_smallest_unit("9.99", "INR")
        999
        >>> convert_to_smallest_unit(1000, "JPY")
        1000
    """
    value = Decimal(str(amount))
    if currency.upper() not in zero_decimal_currencies:
        value = value * 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def convert_from_smallest_unit(amount: int, currency: str) -> Decimal:
    """
    Convert from the smallest currency unit back to major units.

    Examples:
        >>> convert_from_smallest_unit(10000, "INR")
        Decimal('100.00')
    """
    if currency.upper() in zero_decimal_currencies:
        return Decimal(amount)
    return (Decimal(amount) / 100).quantize(Decimal("0.01"))
