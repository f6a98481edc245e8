from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Union

from school_portal.core.config import settings

# Type alias for money values
Money = Decimal


def round_money(value: Union[Decimal, float, int, str]) -> Decimal:
    """
    Round monetary value to 2 decimal places using ROUND_HALF_UP.

    Examples:
        >>> round_money(10.125)
        Decimal('10.13')
        >>> round_money(10.124)
        Decimal('10.12')
        >>> round_money("10.115")
        Decimal('10.12')
    """
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    if value < 0:
        return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_DOWN)
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def parse_amount(value: Any) -> Decimal | None:
    """Form/backend amount -> Decimal; blank or non-numeric -> None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip().replace(",", "")
        if not value:
            return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not result.is_finite():
        return None
    return result


def format_currency(
    amount: Any,
    show_decimals: bool = True,
    min_decimals: int = 2,
    max_decimals: int = 2,
) -> str:
    """
    Display an amount in pesos with thousands separators.

    Examples:
        >>> format_currency(1234.5)
        '₱1,234.50'
        >>> format_currency(None)
        '-'
        >>> format_currency("1500.4", show_decimals=False)
        '₱1,500'
    """
    value = parse_amount(amount)
    if value is None:
        return "-"
    sign = "-" if value < 0 else ""
    value = abs(value)
    if not show_decimals:
        whole = value.quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return f"{sign}{settings.currency_symbol}{whole:,.0f}"
    places = max(min_decimals, 0)
    rounded = value.quantize(Decimal(1).scaleb(-max_decimals), rounding=ROUND_HALF_UP)
    text = f"{rounded:,.{max_decimals}f}"
    if max_decimals > places and "." in text:
        integer, fraction = text.split(".")
        fraction = fraction.rstrip("0")
        if len(fraction) < places:
            fraction = fraction.ljust(places, "0")
        text = f"{integer}.{fraction}" if fraction else integer
    return f"{sign}{settings.currency_symbol}{text}"
