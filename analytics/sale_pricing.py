# =============================================================================
# PRINTSHOP ANALYTICS - SALE PRICING
# =============================================================================
# Prices a sale of an inventory unit through a channel and produces the
# sale row that the sales report later aggregates.
#
# MAIN FORMULAS (per unit unless stated):
# Total_costs = unit_cost + packaging + administrative + promotion + SUM(extras)
# Revenue     = sale_price * quantity                              (total)
# VAT         = revenue * rate / (100 + rate)      prices include VAT (total)
# Profit      = revenue - total_costs * quantity - VAT             (total)
#
# Promotion is either a fixed amount per unit or a percentage of the unit
# price, gross (VAT included) or net (VAT excluded).
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from .config import ChannelSettings
from .cost import extra_costs_total, unit_cost
from .numeric import ZERO, to_decimal, to_quantity
from .rows import iter_rows, joined, list_field, text_field

HUNDRED = Decimal("100")


@dataclass
class SaleQuote:
    """Output structure for sale pricing."""

    quantity: int = 1
    sale_price: Decimal = ZERO
    vat_rate: Decimal = ZERO

    production_cost_base: Decimal = ZERO
    production_extra_total: Decimal = ZERO
    total_production_cost: Decimal = ZERO
    packaging_cost: Decimal = ZERO
    administrative_cost: Decimal = ZERO
    promotion_cost: Decimal = ZERO
    extra_costs_total: Decimal = ZERO
    total_costs: Decimal = ZERO  # per unit

    revenue: Decimal = ZERO
    vat_amount: Decimal = ZERO
    profit: Decimal = ZERO

    production_extra_costs: List[Mapping] = field(default_factory=list)
    extra_costs: List[Mapping] = field(default_factory=list)

    def to_sale_row(
        self,
        sold_at: datetime,
        channel_name: str,
        vat_regime: Optional[str] = None,
        unit: Optional[Mapping] = None,
    ) -> Dict[str, object]:
        """Sale row in the shape stored in the ``sales`` table."""
        unit = unit or {}
        model = joined(unit, "models")
        material = joined(unit, "materials")
        return {
            "product_id": unit.get("id"),
            "sku": unit.get("sku"),
            "model_name": model.get("name"),
            "material_id": unit.get("material_id"),
            "material_color": material.get("color"),
            "material_color_hex": material.get("color_hex"),
            "sold_at": sold_at.isoformat(),
            "quantity_sold": self.quantity,
            "sale_price": str(self.sale_price),
            "sales_channel": channel_name,
            "vat_regime": vat_regime,
            "vat_rate": str(self.vat_rate),
            "vat_amount": str(self.vat_amount),
            "production_cost_base": str(self.production_cost_base),
            "production_extra_costs": list(self.production_extra_costs),
            "total_production_cost": str(self.total_production_cost),
            "packaging_cost": str(self.packaging_cost),
            "administrative_cost": str(self.administrative_cost),
            "promotion_cost": str(self.promotion_cost),
            "extra_costs": list(self.extra_costs),
            "total_costs": str(self.total_costs),
            "revenue": str(self.revenue),
            "profit": str(self.profit),
        }


def vat_included(amount: Decimal, vat_rate: Decimal) -> Decimal:
    """VAT contained in a VAT-inclusive amount."""
    if vat_rate <= 0:
        return ZERO
    return amount * vat_rate / (HUNDRED + vat_rate)


def promotion_cost(channel: ChannelSettings, unit_price: Decimal, vat_rate: Decimal) -> Decimal:
    """Per-unit promotion cost for a channel."""
    if channel.promotion_cost_type != "percent":
        return channel.promotion_cost_per_product
    base = unit_price
    if channel.promotion_cost_percent_base == "net":
        base = unit_price - vat_included(unit_price, vat_rate)
    return base * channel.promotion_cost_percent / HUNDRED


def price_sale(
    unit: Mapping,
    channel: Optional[ChannelSettings],
    sale_price,
    quantity=1,
    vat_rate=0,
    extra_costs: Iterable[Mapping] = (),
) -> SaleQuote:
    """
    Price the sale of ``quantity`` units.

    Args:
        unit: Product row being sold
        channel: Channel costs (None: no channel costs)
        sale_price: Final unit price, VAT included
        quantity: Units sold (defaults to 1 when unparsable)
        vat_rate: VAT percentage of the chosen regime
        extra_costs: Sale-time extras [{amount, note}] per unit

    Returns:
        SaleQuote
    """
    channel = channel or ChannelSettings(channel_name="")
    quote = SaleQuote()
    quote.quantity = max(to_quantity(quantity, 1), 1)
    quote.sale_price = to_decimal(sale_price)
    quote.vat_rate = to_decimal(vat_rate)

    quote.production_extra_costs = list_field(unit, "production_extra_costs")
    quote.production_cost_base = to_decimal(unit.get("production_cost"))
    quote.production_extra_total = extra_costs_total(quote.production_extra_costs)
    quote.total_production_cost = unit_cost(unit)

    quote.packaging_cost = channel.packaging_cost
    quote.administrative_cost = channel.administrative_base_cost
    quote.promotion_cost = promotion_cost(channel, quote.sale_price, quote.vat_rate)

    quote.extra_costs = [dict(item) for item in iter_rows(extra_costs)]
    quote.extra_costs_total = extra_costs_total(quote.extra_costs)

    quote.total_costs = (
        quote.total_production_cost
        + quote.packaging_cost
        + quote.administrative_cost
        + quote.promotion_cost
        + quote.extra_costs_total
    )
    quote.revenue = quote.sale_price * quote.quantity
    quote.vat_amount = vat_included(quote.revenue, quote.vat_rate)
    quote.profit = quote.revenue - quote.total_costs * quote.quantity - quote.vat_amount
    return quote


def find_vat_regime(regimes: Iterable[Mapping], name: Optional[str]) -> Optional[Mapping]:
    if not name:
        return None
    for regime in iter_rows(regimes):
        if text_field(regime, "name") == name:
            return regime
    return None


def vat_rate_of(regime: Optional[Mapping]) -> Decimal:
    return to_decimal(regime.get("vat_rate")) if regime else ZERO


def validate_sale_request(
    unit: Mapping,
    channel_name: Optional[str],
    vat_regime_name: Optional[str],
    quantity,
    sale_price=None,
) -> List[str]:
    """
    Check a sale before pricing it.

    Validations:
        - Channel and VAT regime selected
        - 1 <= quantity <= units in stock
        - Sale price given
    """
    errors = []
    if not channel_name:
        errors.append("Sales channel is required")
    if not vat_regime_name:
        errors.append("VAT regime is required")

    requested = to_quantity(quantity, 0)
    in_stock = to_quantity(unit.get("quantity"), 0)
    if requested < 1:
        errors.append(f"Quantity sold must be at least 1: {quantity!r}")
    elif requested > in_stock:
        errors.append(f"Quantity sold ({requested}) exceeds quantity available ({in_stock})")

    if sale_price is not None and to_decimal(sale_price) <= 0:
        errors.append(f"Sale price must be positive: {sale_price!r}")
    return errors
