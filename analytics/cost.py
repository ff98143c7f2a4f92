# =============================================================================
# PRINTSHOP ANALYTICS - COST COMPOSER
# =============================================================================
# Fully-loaded production cost of one inventory unit.
#
# MAIN FORMULA:
# Unit_cost = production_cost + SUM(production_extra_costs[i].amount)
#
# Per-unit figure: quantity is applied by the callers.
# =============================================================================

from decimal import Decimal
from typing import Any, Iterable, Mapping

from .numeric import ZERO, to_decimal
from .rows import list_field


def extra_costs_total(items: Iterable[Any]) -> Decimal:
    """Sum of ``amount`` over itemized extra costs; bad entries count as zero."""
    total = ZERO
    for item in items or ():
        if isinstance(item, Mapping):
            total += to_decimal(item.get("amount"))
    return total


def unit_cost(unit: Mapping) -> Decimal:
    """
    Base production cost plus itemized production extras.

    Args:
        unit: Product row with ``production_cost`` and
              ``production_extra_costs``

    Returns:
        Per-unit production cost
    """
    base = to_decimal(unit.get("production_cost"))
    return base + extra_costs_total(list_field(unit, "production_extra_costs"))
