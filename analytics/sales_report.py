# =============================================================================
# PRINTSHOP ANALYTICS - SALES REPORT AGGREGATOR
# =============================================================================
# Filters the sales ledger by period and computes totals and profit split.
#
# EXECUTION ORDER:
# 1. Filter sales by DateRange (inclusive; rows without sold_at dropped)
# 2. Sum per sale, quantity defaulting to 1:
#      total_sales           += quantity
#      total_revenue         += revenue
#      total_cost            += total_costs * quantity          (per unit)
#      total_production_cost += production_cost_base * quantity (per unit)
#      total_profit          += profit                          (already totaled)
# 3. Split profit:
#      producer_share = total_profit * 0.6 + total_production_cost
#      seller_share   = total_profit * 0.4
#
# KEY PRINCIPLE: profit on a sale is authoritative, never recomputed here.
# =============================================================================

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from .numeric import ZERO, to_decimal, to_sale_quantity
from .periods import UNBOUNDED, DateRange
from .rows import iter_rows, row_label, sold_at

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProfitSplit:
    """Producer/seller division of profit."""
    producer_ratio: Decimal = Decimal("0.6")
    seller_ratio: Decimal = Decimal("0.4")
    # Producer also gets the base production cost back in full.
    reimburse_production_cost: bool = True

    @classmethod
    def from_config(cls, section: Optional[Mapping]) -> "ProfitSplit":
        section = section or {}
        default = cls()
        return cls(
            producer_ratio=to_decimal(section.get("producer_ratio", default.producer_ratio)),
            seller_ratio=to_decimal(section.get("seller_ratio", default.seller_ratio)),
            reimburse_production_cost=bool(
                section.get("reimburse_production_cost", default.reimburse_production_cost)
            ),
        )


DEFAULT_SPLIT = ProfitSplit()


@dataclass
class SalesTotals:
    """Output structure for the sales report aggregator."""

    total_sales: int = 0  # units
    total_revenue: Decimal = ZERO
    total_cost: Decimal = ZERO
    total_production_cost: Decimal = ZERO
    total_profit: Decimal = ZERO

    producer_share: Decimal = ZERO
    seller_share: Decimal = ZERO

    sale_count: int = 0  # sale rows

    def as_dict(self) -> Dict[str, object]:
        return {
            "total_sales": self.total_sales,
            "total_revenue": self.total_revenue,
            "total_cost": self.total_cost,
            "total_production_cost": self.total_production_cost,
            "total_profit": self.total_profit,
            "producer_share": self.producer_share,
            "seller_share": self.seller_share,
            "sale_count": self.sale_count,
        }


def filter_sales(
    sales: Iterable[Mapping],
    date_range: Optional[DateRange] = None,
    warnings: Optional[List[str]] = None,
) -> List[Mapping]:
    """
    Keep sales whose sold_at lies inside ``date_range``.

    Args:
        sales: Sale rows
        date_range: Inclusive range; None means unbounded
        warnings: Optional list collecting one message per undated sale

    Returns:
        Matching sale rows, input order preserved
    """
    date_range = date_range or UNBOUNDED
    kept = []
    for sale in iter_rows(sales):
        moment = sold_at(sale)
        if moment is None:
            if warnings is not None:
                warnings.append(f"Sale {row_label(sale)} has no valid sold_at; excluded")
            continue
        if date_range.contains(moment):
            kept.append(sale)
    return kept


def split_profit(
    total_profit: Decimal,
    total_production_cost: Decimal,
    split: ProfitSplit = DEFAULT_SPLIT,
) -> Dict[str, Decimal]:
    """Producer and seller shares of a profit total."""
    producer = total_profit * split.producer_ratio
    if split.reimburse_production_cost:
        producer += total_production_cost
    return {
        "producer_share": producer,
        "seller_share": total_profit * split.seller_ratio,
    }


def sum_sales(sales: Iterable[Mapping], split: ProfitSplit = DEFAULT_SPLIT) -> SalesTotals:
    """Totals over already-filtered sales."""
    totals = SalesTotals()
    for sale in iter_rows(sales):
        quantity = to_sale_quantity(sale.get("quantity_sold"))
        totals.sale_count += 1
        totals.total_sales += quantity
        totals.total_revenue += to_decimal(sale.get("revenue"))
        totals.total_cost += to_decimal(sale.get("total_costs")) * quantity
        totals.total_production_cost += to_decimal(sale.get("production_cost_base")) * quantity
        totals.total_profit += to_decimal(sale.get("profit"))

    shares = split_profit(totals.total_profit, totals.total_production_cost, split)
    totals.producer_share = shares["producer_share"]
    totals.seller_share = shares["seller_share"]
    return totals


def aggregate(
    sales: Iterable[Mapping],
    date_range: Optional[DateRange] = None,
    split: ProfitSplit = DEFAULT_SPLIT,
) -> SalesTotals:
    """
    Filter the sales ledger and compute report totals.

    Args:
        sales: Sale rows
        date_range: Period to report on (None: every dated sale)
        split: Profit split ratios

    Returns:
        SalesTotals; all zero for an empty selection
    """
    selected = filter_sales(sales, date_range)
    totals = sum_sales(selected, split)
    logger.debug(
        "aggregate: %d sales, revenue=%s profit=%s",
        totals.sale_count, totals.total_revenue, totals.total_profit,
    )
    return totals


def validate_split(split: ProfitSplit) -> List[str]:
    """Ratios must be non-negative and add up to 1."""
    errors = []
    if split.producer_ratio < 0 or split.seller_ratio < 0:
        errors.append(
            f"profit_split ratios must be >= 0: producer={split.producer_ratio}, "
            f"seller={split.seller_ratio}"
        )
    if split.producer_ratio + split.seller_ratio != 1:
        errors.append(
            f"profit_split ratios must sum to 1: "
            f"{split.producer_ratio} + {split.seller_ratio}"
        )
    return errors


def validate_totals(totals: SalesTotals, split: ProfitSplit = DEFAULT_SPLIT) -> List[str]:
    """
    Check internal consistency of report totals.

    Validations:
        - Shares add back to profit (+ production cost when reimbursed)
        - Unit count >= number of sale rows
    """
    errors = []
    expected = totals.total_profit * (split.producer_ratio + split.seller_ratio)
    if split.reimburse_production_cost:
        expected += totals.total_production_cost
    shares = totals.producer_share + totals.seller_share
    if shares != expected:
        errors.append(f"Profit split mismatch: {shares} != {expected}")
    if totals.total_sales < totals.sale_count:
        errors.append(
            f"Unit count {totals.total_sales} below sale row count {totals.sale_count}"
        )
    return errors
