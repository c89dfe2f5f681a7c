"""Utility helpers for calculator modules."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal

DEFAULT_CURRENCY = "TRY"
SENTINEL = "-"


def format_percentage(value: float) -> str:
    """Return an integer percentage label such as ``%27`` for ``value``."""

    if not math.isfinite(value):
        return SENTINEL
    percentage = Decimal(str(value * 100)).to_integral_value(rounding=ROUND_HALF_UP)
    return f"%{int(percentage)}"


def format_amount(amount: float, currency: str | None = None) -> str:
    """Return ``amount`` with grouped digits, no decimals and a currency suffix.

    Digits are grouped with ``.`` (``1.961.784 TRY``). Non-finite values render
    as the ``-`` sentinel so unbounded bracket limits and undefined rates never
    leak ``inf``/``nan`` into the tables.
    """

    if not math.isfinite(amount):
        return SENTINEL

    # to_integral_value ignores context precision, unlike quantize.
    rounded = int(Decimal(str(amount)).to_integral_value(rounding=ROUND_HALF_UP))
    grouped = f"{abs(rounded):,}".replace(",", ".")
    sign = "-" if rounded < 0 else ""
    return f"{sign}{grouped} {currency or DEFAULT_CURRENCY}"


def format_positive_amount(amount: float, currency: str | None = None) -> str:
    """Format ``amount`` or return the sentinel when it is zero or negative."""

    if not amount > 0:
        return SENTINEL
    return format_amount(amount, currency)


def round_currency(value: float) -> float:
    """Round monetary amounts to two decimals."""

    return round(value, 2)


def round_rate(value: float) -> float:
    """Round rate values to four decimals."""

    return round(value, 4)
