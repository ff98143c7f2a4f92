# =============================================================================
# PRINTSHOP ANALYTICS - WAREHOUSE VALUATOR
# =============================================================================
# Stock valuation and quantity tallies for the dashboard.
#
# MAIN FORMULAS:
# Production_value = SUM(unit_cost * quantity)   status in {queued, available}
# Sale_value       = SUM(sale_price * quantity)  status = available
# Sold_qty         = SUM(quantity_sold)          sales with sold_at
#
# Production value answers "money already spent", sale value answers
# "money recoverable by selling current stock". Sold units leave the
# products table, so sold_qty comes from the sales ledger.
# =============================================================================

import logging
from dataclasses import dataclass, field
from datetime import timezone, tzinfo
from decimal import Decimal
from typing import Iterable, List, Mapping, Optional

from .cost import unit_cost
from .numeric import ZERO, to_decimal, to_quantity, to_sale_quantity
from .rows import (
    AVAILABLE, PRINTING, QUEUED,
    iter_rows, row_label, sold_at, unit_status,
)

logger = logging.getLogger(__name__)

PRODUCTION_VALUE_STATUSES = (QUEUED, AVAILABLE)
SALE_VALUE_STATUSES = (AVAILABLE,)


@dataclass
class WarehouseValuation:
    """Output structure for the warehouse valuator."""

    production_value: Decimal = ZERO
    sale_value: Decimal = ZERO

    queued_qty: int = 0
    printing_qty: int = 0
    available_qty: int = 0
    sold_qty: int = 0

    warnings: List[str] = field(default_factory=list)

    @property
    def potential_margin(self) -> Decimal:
        """Sale value of stock minus what the whole stock cost to make."""
        return self.sale_value - self.production_value


def valuate(
    units: Iterable[Mapping],
    sales: Optional[Iterable[Mapping]] = None,
) -> WarehouseValuation:
    """
    Value the warehouse and tally quantities by status.

    Args:
        units: Product rows (status, quantity, production_cost,
               production_extra_costs, sale_price)
        sales: Sale rows, used only for the sold quantity

    Returns:
        WarehouseValuation
    """
    output = WarehouseValuation()

    for unit in iter_rows(units):
        status = unit_status(unit)
        if status is None:
            output.warnings.append(
                f"Unknown status {unit.get('status')!r} on product {row_label(unit)}"
            )
            continue

        quantity = to_quantity(unit.get("quantity"), 0)

        if status in PRODUCTION_VALUE_STATUSES:
            output.production_value += unit_cost(unit) * quantity
        if status in SALE_VALUE_STATUSES:
            output.sale_value += to_decimal(unit.get("sale_price")) * quantity

        if status == QUEUED:
            output.queued_qty += quantity
        elif status == PRINTING:
            output.printing_qty += quantity
        elif status == AVAILABLE:
            output.available_qty += quantity

    output.sold_qty = sold_quantity(sales)

    if output.warnings:
        logger.debug("valuate: %d product rows skipped", len(output.warnings))
    return output


def sold_quantity(sales: Optional[Iterable[Mapping]]) -> int:
    """Units sold across every sale that carries a timestamp."""
    return sum(
        to_sale_quantity(sale.get("quantity_sold"))
        for sale in iter_rows(sales)
        if sold_at(sale) is not None
    )


def revenue_for_year(
    sales: Optional[Iterable[Mapping]],
    year: int,
    tz: tzinfo = timezone.utc,
) -> Decimal:
    """Revenue of sales whose timestamp, read in ``tz``, falls in ``year``."""
    total = ZERO
    for sale in iter_rows(sales):
        moment = sold_at(sale)
        if moment is not None and moment.astimezone(tz).year == year:
            total += to_decimal(sale.get("revenue"))
    return total
