# =============================================================================
# PRINTSHOP ANALYTICS - COST COMPOSER / WAREHOUSE VALUATOR TESTS
# =============================================================================

import pytest
import sys
import os
from datetime import timezone
from decimal import Decimal
from zoneinfo import ZoneInfo

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analytics.cost import extra_costs_total, unit_cost
from analytics.warehouse import revenue_for_year, sold_quantity, valuate


class TestUnitCost:
    """Tests for per-unit production cost."""

    def test_base_plus_extras(self):
        unit = {"production_cost": 10, "production_extra_costs": [{"amount": 2}, {"amount": "3.5"}]}
        assert unit_cost(unit) == Decimal("15.5")

    def test_zero(self):
        assert unit_cost({"production_cost": 0, "production_extra_costs": []}) == 0

    def test_missing_fields(self):
        assert unit_cost({}) == 0

    def test_bad_extras_ignored(self):
        unit = {
            "production_cost": "1",
            "production_extra_costs": [{"amount": "x"}, "junk", None, {"note": "no amount"}, {"amount": "2"}],
        }
        assert unit_cost(unit) == 3

    def test_extras_not_a_list(self):
        assert unit_cost({"production_cost": "4", "production_extra_costs": "5"}) == 4

    def test_extra_costs_total_none(self):
        assert extra_costs_total(None) == 0


class TestValuate:
    """Tests for warehouse valuation."""

    def test_production_and_sale_value(self):
        units = [
            {"status": "in_coda", "production_cost": 5, "quantity": 2},
            {"status": "disponibile", "production_cost": 3, "sale_price": 20, "quantity": 1},
        ]
        output = valuate(units)
        assert output.production_value == 13
        assert output.sale_value == 20

    def test_printing_excluded_from_values(self):
        units = [{"status": "in_stampa", "production_cost": 50, "sale_price": 80, "quantity": 1}]
        output = valuate(units)
        assert output.production_value == 0
        assert output.sale_value == 0
        assert output.printing_qty == 1

    def test_english_status_aliases(self):
        units = [
            {"status": "queued", "production_cost": 1, "quantity": 1},
            {"status": "available", "production_cost": 1, "sale_price": 2, "quantity": 1},
        ]
        output = valuate(units)
        assert output.queued_qty == 1
        assert output.available_qty == 1
        assert output.production_value == 2

    def test_fixture_tallies(self, products, sales):
        output = valuate(products, sales)
        # (4 + 1) * 2 + 1.10 * 5
        assert output.production_value == Decimal("15.50")
        assert output.sale_value == Decimal("32.50")
        assert output.queued_qty == 2
        assert output.printing_qty == 1
        assert output.available_qty == 5
        # s5 has no sold_at; s3 defaults to 1
        assert output.sold_qty == 5

    def test_sold_units_from_ledger_not_status(self, products):
        assert valuate(products).sold_qty == 0

    def test_unknown_status_warns(self):
        output = valuate([{"id": 9, "status": "lost", "quantity": 3}, "not a row"])
        assert output.production_value == 0
        assert len(output.warnings) == 1
        assert "id=9" in output.warnings[0]

    def test_missing_quantity_is_zero(self):
        output = valuate([{"status": "disponibile", "production_cost": 3, "sale_price": 9}])
        assert output.available_qty == 0
        assert output.sale_value == 0

    def test_empty(self):
        output = valuate([])
        assert output.production_value == 0
        assert output.sale_value == 0
        assert output.sold_qty == 0
        assert output.warnings == []

    def test_idempotent(self, products, sales):
        assert valuate(products, sales) == valuate(products, sales)

    def test_potential_margin(self):
        units = [{"status": "disponibile", "production_cost": 3, "sale_price": 20, "quantity": 2}]
        assert valuate(units).potential_margin == 34


class TestLedgerFigures:
    """Tests for sold quantity and yearly revenue."""

    def test_sold_quantity(self, sales):
        assert sold_quantity(sales) == 5
        assert sold_quantity(None) == 0

    def test_revenue_for_year(self, sales):
        assert revenue_for_year(sales, 2024) == Decimal("78")
        assert revenue_for_year(sales, 2023) == 0

    def test_revenue_for_year_uses_timezone(self):
        sales = [{"sold_at": "2023-12-31T23:30:00+00:00", "revenue": "10"}]
        assert revenue_for_year(sales, 2023, timezone.utc) == 10
        assert revenue_for_year(sales, 2024, ZoneInfo("Europe/Rome")) == 10


class TestOutOfRangeFields:
    """Absurd exponents on product rows count as zero."""

    def test_huge_values_ignored(self):
        units = [
            {"status": "disponibile", "quantity": 1, "sale_price": "1e999999999", "production_cost": "2"},
            {"status": "in_coda", "quantity": "1e999999999", "production_cost": "3"},
        ]
        output = valuate(units)
        assert output.sale_value == 0
        assert output.production_value == 2
        assert output.queued_qty == 0
