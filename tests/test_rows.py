# =============================================================================
# PRINTSHOP ANALYTICS - ROW READER TESTS
# =============================================================================

import pytest
import sys
import os
from datetime import date, datetime, timezone

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from analytics.rows import parse_timestamp, row_label, unit_status

UTC = timezone.utc


class TestParseTimestamp:
    """Tests for timestamp parsing."""

    def test_trailing_z(self):
        assert parse_timestamp("2024-03-15T10:00:00Z") == datetime(2024, 3, 15, 10, tzinfo=UTC)

    def test_postgres_short_offset(self):
        """Supabase returns timestamptz as '... 10:00:00+00'."""
        assert parse_timestamp("2024-03-15 10:00:00+00") == datetime(2024, 3, 15, 10, tzinfo=UTC)

    def test_five_digit_fraction(self):
        parsed = parse_timestamp("2024-03-15T10:00:00.12345+00:00")
        assert parsed == datetime(2024, 3, 15, 10, 0, 0, 123450, tzinfo=UTC)

    def test_naive_is_utc(self):
        assert parse_timestamp("2024-03-15 10:00:00").tzinfo == UTC

    def test_date_value(self):
        assert parse_timestamp(date(2024, 3, 15)) == datetime(2024, 3, 15, tzinfo=UTC)

    @pytest.mark.parametrize("value", [None, "", "yesterday", 1710496800, "2024-13-01"])
    def test_unparsable(self, value):
        assert parse_timestamp(value) is None

    def test_sale_with_postgres_timestamp_is_reported(self):
        from analytics.sales_report import filter_sales
        assert len(filter_sales([{"sold_at": "2024-03-15 10:00:00+00"}])) == 1


class TestRowReaders:

    def test_status_codes(self):
        assert unit_status({"status": "in_coda"}) == "queued"
        assert unit_status({"status": " Disponibile "}) == "available"
        assert unit_status({"status": "printing"}) == "printing"
        assert unit_status({"status": "lost"}) is None
        assert unit_status({}) is None

    def test_row_label(self):
        assert row_label({"id": 7}) == "id=7"
        assert row_label({"sku": "A-1"}) == "sku=A-1"
        assert row_label({}) == "<no id>"
