from __future__ import annotations

from decimal import Decimal, ROUND_CEILING

# percentages are reported to a thousandth, always rounded up
PCT_STEP = Decimal("0.001")


def ceil_pct(value: Decimal) -> Decimal:
    return value.quantize(PCT_STEP, rounding=ROUND_CEILING)


def ceil_int(value: Decimal) -> int:
    return int(value.to_integral_value(rounding=ROUND_CEILING))


def to_decimal(value) -> Decimal:
    """Decimal from a Decimal, number or numeric text; floats go through ``str``."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, str):
        return Decimal(value.strip())
    return Decimal(str(value))
