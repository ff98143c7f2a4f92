# =============================================================================
# PRINTSHOP ANALYTICS - NUMERIC NORMALIZER
# =============================================================================
# Coerces operator-entered money and quantity fields into exact values.
#
# KEY PRINCIPLE: total functions. Anything that is not a finite number
# becomes zero (or the given default), never an exception.
# =============================================================================

import sys
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

ZERO = Decimal("0")

# Largest magnitude a double can hold; anything beyond reads as infinite.
MAX_MAGNITUDE = Decimal(sys.float_info.max)


def _parse(value: Any) -> Optional[Decimal]:
    """Finite, in-range Decimal for ``value``, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        parsed = value
    elif isinstance(value, int):
        parsed = Decimal(value)
    elif isinstance(value, (float, str)):
        # repr gives the shortest round-tripping form: 12.5 -> "12.5"
        text = repr(value) if isinstance(value, float) else value.strip()
        if not text:
            return None
        try:
            parsed = Decimal(text)
        except (InvalidOperation, ValueError):
            return None
    else:
        return None

    if not parsed.is_finite() or parsed.copy_abs() > MAX_MAGNITUDE:
        return None
    return parsed


def to_decimal(value: Any) -> Decimal:
    """
    Parse a money-like value into a Decimal.

    Args:
        value: str, int, float, Decimal, None or anything else

    Returns:
        The parsed amount, or Decimal(0) for None, blanks, booleans,
        unparsable text, NaN, infinities and magnitudes beyond the
        float range.
    """
    parsed = _parse(value)
    return ZERO if parsed is None else parsed


def is_number(value: Any) -> bool:
    """True when the value parses to a finite number (zero included)."""
    return _parse(value) is not None


def to_quantity(value: Any, default: int = 0) -> int:
    """Integer part of a count field; default when absent or unparsable."""
    parsed = _parse(value)
    if parsed is None:
        return default
    return int(parsed)


def to_sale_quantity(value: Any) -> int:
    """Quantity sold on a sale row: at least 1, defaulting to 1."""
    quantity = to_quantity(value, 1)
    return quantity if quantity >= 1 else 1
