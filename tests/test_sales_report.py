# =============================================================================
# PRINTSHOP ANALYTICS - SALES REPORT AGGREGATOR TESTS
# =============================================================================

import pytest
import sys
import os
import copy
from datetime import datetime, timezone
from decimal import Decimal

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analytics.periods import DateRange, resolve_range
from analytics.sales_report import (
    DEFAULT_SPLIT,
    ProfitSplit,
    aggregate,
    filter_sales,
    split_profit,
    sum_sales,
    validate_split,
    validate_totals,
)

UTC = timezone.utc
MARCH = DateRange(datetime(2024, 3, 1, tzinfo=UTC), datetime(2024, 3, 31, 23, 59, 59, tzinfo=UTC))


class TestFilterSales:
    """Tests for period filtering."""

    def test_inclusive_end(self):
        end = datetime(2024, 3, 15, 23, 59, 59, tzinfo=UTC)
        sales = [{"sold_at": end.isoformat()}, {"sold_at": "2024-03-16T00:00:00+00:00"}]
        kept = filter_sales(sales, DateRange(None, end))
        assert len(kept) == 1

    def test_inclusive_start(self):
        start = datetime(2024, 3, 1, tzinfo=UTC)
        kept = filter_sales([{"sold_at": "2024-03-01T00:00:00Z"}], DateRange(start, None))
        assert len(kept) == 1

    def test_undated_sales_dropped_with_warning(self, sales):
        warnings = []
        kept = filter_sales(sales, None, warnings)
        assert [s["id"] for s in kept] == ["s1", "s2", "s3", "s4"]
        assert len(warnings) == 1
        assert "id=s5" in warnings[0]

    def test_unparsable_sold_at_dropped(self):
        assert filter_sales([{"sold_at": "yesterday"}, {"sold_at": 12}]) == []

    def test_naive_sold_at_is_utc(self):
        kept = filter_sales([{"sold_at": "2024-03-10 12:00:00"}], MARCH)
        assert len(kept) == 1


class TestAggregate:
    """Tests for report totals."""

    def test_single_sale_split(self):
        sales = [{"sold_at": "2024-03-10T10:00:00Z", "revenue": 100, "total_costs": 20,
                  "production_cost_base": 10, "profit": 80, "quantity_sold": 1}]
        totals = aggregate(sales, MARCH)
        assert totals.total_revenue == 100
        assert totals.total_cost == 20
        assert totals.producer_share == 58
        assert totals.seller_share == 32

    def test_per_unit_costs_multiplied_profit_not(self):
        sales = [{"sold_at": "2024-03-10T10:00:00Z", "revenue": "30", "total_costs": "4",
                  "production_cost_base": "2.5", "profit": "18", "quantity_sold": 3}]
        totals = aggregate(sales, MARCH)
        assert totals.total_sales == 3
        assert totals.total_cost == 12
        assert totals.total_production_cost == Decimal("7.5")
        assert totals.total_profit == 18
        assert totals.producer_share == Decimal("18") * Decimal("0.6") + Decimal("7.5")

    def test_profit_not_recomputed(self):
        """Profit is summed as given even when it disagrees with revenue - cost."""
        sales = [{"sold_at": "2024-03-10T10:00:00Z", "revenue": 50, "total_costs": 10, "profit": 1}]
        assert aggregate(sales, MARCH).total_profit == 1

    def test_fixture_last_30_days(self, sales, now):
        totals = aggregate(sales, resolve_range("last_30_days", now=now))
        assert totals.sale_count == 4
        assert totals.total_sales == 5
        assert totals.total_revenue == 78
        # 3*1 + 5*2 + 2*1 + 6*1
        assert totals.total_cost == 21
        assert totals.total_production_cost == 14
        assert totals.total_profit == 48

    def test_fixture_last_7_days(self, sales, now):
        totals = aggregate(sales, resolve_range("last_7_days", now=now))
        assert totals.sale_count == 2
        assert totals.total_revenue == 48

    def test_malformed_fields_count_as_zero(self):
        sales = [{"sold_at": "2024-03-10T10:00:00Z", "revenue": "n/a", "total_costs": None,
                  "profit": "", "quantity_sold": "two"}]
        totals = aggregate(sales, MARCH)
        assert totals.total_sales == 1
        assert totals.total_revenue == 0
        assert totals.total_profit == 0

    def test_empty(self):
        totals = aggregate([], MARCH)
        assert totals.total_sales == 0
        assert totals.total_revenue == 0
        assert totals.producer_share == 0
        assert totals.seller_share == 0

    def test_idempotent_and_no_mutation(self, sales, now):
        before = copy.deepcopy(sales)
        r = resolve_range("last_30_days", now=now)
        assert aggregate(sales, r) == aggregate(sales, r)
        assert sales == before

    def test_as_dict(self):
        assert set(aggregate([]).as_dict()) >= {"total_sales", "producer_share", "seller_share"}


class TestProfitSplit:
    """Tests for the producer/seller split."""

    def test_default_ratio(self):
        shares = split_profit(Decimal("100"), Decimal("20"))
        assert shares["producer_share"] == 80
        assert shares["seller_share"] == 40

    def test_without_reimbursement(self):
        split = ProfitSplit(reimburse_production_cost=False)
        assert split_profit(Decimal("100"), Decimal("20"), split)["producer_share"] == 60

    def test_from_config(self):
        split = ProfitSplit.from_config({"producer_ratio": 0.5, "seller_ratio": "0.5"})
        assert split.producer_ratio == Decimal("0.5")
        assert split.reimburse_production_cost is True
        assert ProfitSplit.from_config(None) == DEFAULT_SPLIT

    def test_custom_split_in_sum(self):
        sales = [{"sold_at": "2024-03-10T10:00:00Z", "profit": 100, "production_cost_base": 0}]
        totals = sum_sales(sales, ProfitSplit(Decimal("0.7"), Decimal("0.3")))
        assert totals.producer_share == 70
        assert totals.seller_share == 30

    def test_validate_split(self):
        assert validate_split(DEFAULT_SPLIT) == []
        assert len(validate_split(ProfitSplit(Decimal("0.7"), Decimal("0.4")))) == 1
        assert len(validate_split(ProfitSplit(Decimal("1.2"), Decimal("-0.2")))) == 1

    def test_validate_totals(self, sales):
        totals = aggregate(sales)
        assert validate_totals(totals) == []
        totals.seller_share += 1
        assert len(validate_totals(totals)) == 1


class TestOutOfRangeFields:
    """Rows with absurd exponents count as zero instead of failing the report."""

    def test_huge_revenue_ignored(self):
        sales = [
            {"sold_at": "2024-03-10T10:00:00Z", "revenue": "1e999999999", "profit": 1},
            {"sold_at": "2024-03-11T10:00:00Z", "revenue": "5", "profit": "1e999999999",
             "total_costs": "1e400", "quantity_sold": "1e999999999"},
        ]
        totals = aggregate(sales, MARCH)
        assert totals.total_revenue == 5
        assert totals.total_profit == 1
        assert totals.total_cost == 0
        assert totals.total_sales == 2
