# =============================================================================
# PRINTSHOP ANALYTICS - REPORT ORCHESTRATION
# =============================================================================
# Runs the engines for the two analytics views.
#
# DASHBOARD: warehouse valuation + year-to-date revenue + print queue
# REPORT:    period -> filtered sales -> totals -> daily channel buckets
#
# KEY PRINCIPLES:
# - Pure functions over a materialised snapshot, no global state
# - `now` is always an argument
# - Deterministic: same rows + same now -> same outputs
# =============================================================================

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping, Optional

from .config import DEFAULT_CONFIG, business_timezone, profit_split
from .numeric import ZERO
from .periods import DEFAULT_PERIOD, PERIODS, DateRange, resolve_range
from .queue import QueueItem, index_materials, summarize_queue
from .sales_report import SalesTotals, filter_sales, sum_sales, validate_totals
from .timeseries import DayBucket, bucketize, channel_totals, channels_seen, ChannelTally
from .warehouse import WarehouseValuation, revenue_for_year, valuate

logger = logging.getLogger(__name__)


@dataclass
class DashboardResult:
    """Everything the dashboard page shows."""
    valuation: WarehouseValuation = field(default_factory=WarehouseValuation)
    year: int = 0
    year_revenue: Decimal = ZERO
    queue: List[QueueItem] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class SalesReport:
    """Complete results for one report period."""
    period: str = DEFAULT_PERIOD
    date_range: DateRange = field(default_factory=DateRange)

    sales: List[Mapping] = field(default_factory=list)
    totals: SalesTotals = field(default_factory=SalesTotals)
    buckets: List[DayBucket] = field(default_factory=list)
    channels: List[str] = field(default_factory=list)
    by_channel: Dict[str, ChannelTally] = field(default_factory=dict)

    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


def _localize(now: datetime, config: Mapping) -> datetime:
    tz = business_timezone(config)
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now.astimezone(tz)


def build_dashboard(
    products: Iterable[Mapping],
    materials: Iterable[Mapping],
    sales: Iterable[Mapping],
    *,
    now: datetime,
    config: Optional[Mapping] = None,
) -> DashboardResult:
    """
    Dashboard figures for a snapshot.

    Execution order:
    1. Warehouse valuation (products + sales ledger for sold units)
    2. Revenue of the current calendar year in the business timezone
    3. Print queue with resolved colors
    """
    config = config if config is not None else DEFAULT_CONFIG
    products = list(products or [])
    sales = list(sales or [])
    local_now = _localize(now, config)

    result = DashboardResult(year=local_now.year)
    result.valuation = valuate(products, sales)
    result.warnings.extend(result.valuation.warnings)
    result.year_revenue = revenue_for_year(sales, local_now.year, local_now.tzinfo)
    result.queue = summarize_queue(products, index_materials(materials or []))

    logger.info(
        "Dashboard: production value %s, sale value %s, %d queued items",
        result.valuation.production_value,
        result.valuation.sale_value,
        len(result.queue),
    )
    return result


def build_report(
    sales: Iterable[Mapping],
    period: Optional[str] = None,
    custom_start=None,
    custom_end=None,
    *,
    now: datetime,
    config: Optional[Mapping] = None,
) -> SalesReport:
    """
    Execute the report pipeline for one period.

    Execution order:
    1. Resolve the period in the business timezone
    2. Filter the ledger (undated sales produce warnings)
    3. Totals and profit split
    4. Daily channel buckets
    5. Consistency checks
    """
    config = config if config is not None else DEFAULT_CONFIG
    report_config = config.get("report") or {}
    period = period or report_config.get("default_period", DEFAULT_PERIOD)

    report = SalesReport(period=period)
    if period not in PERIODS:
        report.warnings.append(f"Unknown period {period!r}; using {DEFAULT_PERIOD}")
        report.period = DEFAULT_PERIOD

    report.date_range = resolve_range(
        report.period, custom_start, custom_end, now=_localize(now, config)
    )

    # 2. Filter
    report.sales = filter_sales(sales or [], report.date_range, report.warnings)

    # 3. Totals
    split = profit_split(config)
    report.totals = sum_sales(report.sales, split)

    # 4. Buckets
    unknown = report_config.get("unknown_channel") or "Unknown"
    report.buckets = bucketize(report.sales, unknown_label=unknown)
    report.channels = channels_seen(report.buckets)
    report.by_channel = dict(channel_totals(report.buckets))

    # 5. Checks
    report.errors.extend(validate_totals(report.totals, split))

    logger.info(
        "Report %s [%s .. %s]: %d sales, revenue %s",
        report.period,
        report.date_range.start,
        report.date_range.end,
        report.totals.sale_count,
        report.totals.total_revenue,
    )
    return report
