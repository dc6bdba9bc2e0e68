from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from django import template
from django.utils import numberformat

register = template.Library()


def _number(value, places: int) -> str:
    """Format with thousands separated by '.' and decimals by ','."""
    rounded = Decimal(str(value)).quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    return numberformat.format(
        rounded, ",", decimal_pos=places, grouping=3, thousand_sep=".", force_grouping=True,
    )


@register.filter(name="km")
def km(value) -> str:
    """1234.5 -> "1.234,5 km"; empty for missing readings."""
    if value is None or value == "":
        return "-"
    return f"{_number(value, 1)} km"


@register.filter(name="money")
def money(value) -> str:
    if value is None or value == "":
        return "-"
    return f"R$ {_number(value, 2)}"


@register.filter(name="liters")
def liters(value) -> str:
    if value is None or value == "":
        return "-"
    return f"{_number(value, 2)} L"


@register.filter(name="consumption")
def consumption(value) -> str:
    """km/L, or "No data" when no fuel was logged."""
    if value is None:
        return "No data"
    return f"{_number(value, 2)} km/L"


@register.filter(name="variation")
def variation(value) -> str:
    """Signed percentage: 12.5 -> "+12,5%"."""
    value = float(value or 0)
    sign = "+" if value > 0 else ""
    return f"{sign}{_number(value, 1)}%"


@register.filter(name="variation_class")
def variation_class(value) -> str:
    value = float(value or 0)
    if value > 0:
        return "text-success"
    if value < 0:
        return "text-danger"
    return "text-muted"
