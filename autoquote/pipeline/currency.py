from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP
from typing import Callable

Formatter = Callable[[Decimal], str]


def format_currency(amount) -> str:
    value = Decimal(str(amount)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_rate(rate) -> str:
    """0.25 -> '25%', 0.075 -> '7.5%'."""
    percent = (Decimal(str(rate)) * 100).normalize()
    text = format(percent, "f")
    return f"{text}%"
