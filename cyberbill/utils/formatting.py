"""
Display formatting for money.
Amounts stay Decimal everywhere else; only rendering happens here.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from ..config.settings import get_settings

Amount = Union[Decimal, int, float, str]


def format_currency(amount: Amount, symbol: str = None) -> str:
    """Render an amount as symbol + two decimals, e.g. ₹1,234.50"""
    if symbol is None:
        symbol = get_settings().CURRENCY_SYMBOL
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}{symbol}{abs(value):,.2f}"

