# =============================================================================
# PRINTSHOP ANALYTICS - TIME-SERIES BUCKETIZER
# =============================================================================
# Groups sales by UTC calendar day and by channel for charting.
# Blank channels are tallied under "Unknown" so bucket totals reconcile
# with the unbucketed sums.
# =============================================================================

from collections import OrderedDict
from dataclasses import dataclass, field
from datetime import date, timezone
from decimal import Decimal
from typing import Dict, Iterable, List, Mapping

from .numeric import ZERO, to_decimal, to_sale_quantity
from .rows import iter_rows, sold_at, text_field

UNKNOWN_CHANNEL = "Unknown"


@dataclass
class ChannelTally:
    sales: int = 0
    revenue: Decimal = ZERO


@dataclass
class DayBucket:
    day: date
    channels: Dict[str, ChannelTally] = field(default_factory=OrderedDict)

    @property
    def total_sales(self) -> int:
        return sum(tally.sales for tally in self.channels.values())

    @property
    def total_revenue(self) -> Decimal:
        return sum((tally.revenue for tally in self.channels.values()), ZERO)


def channel_label(sale: Mapping, unknown_label: str = UNKNOWN_CHANNEL) -> str:
    return text_field(sale, "sales_channel") or unknown_label


def bucketize(sales: Iterable[Mapping], unknown_label: str = UNKNOWN_CHANNEL) -> List[DayBucket]:
    """
    One bucket per UTC day present in ``sales``, ascending by date.

    Args:
        sales: Sale rows (normally already filtered by period)
        unknown_label: Label for sales without a channel

    Returns:
        List of DayBucket; sales without sold_at are skipped
    """
    buckets: Dict[date, DayBucket] = {}
    for sale in iter_rows(sales):
        moment = sold_at(sale)
        if moment is None:
            continue
        day = moment.astimezone(timezone.utc).date()
        bucket = buckets.get(day)
        if bucket is None:
            bucket = buckets[day] = DayBucket(day=day)

        label = channel_label(sale, unknown_label)
        tally = bucket.channels.get(label)
        if tally is None:
            tally = bucket.channels[label] = ChannelTally()
        tally.sales += to_sale_quantity(sale.get("quantity_sold"))
        tally.revenue += to_decimal(sale.get("revenue"))

    return [buckets[day] for day in sorted(buckets)]


def channels_seen(buckets: Iterable[DayBucket]) -> List[str]:
    """Channel labels in first-seen order."""
    seen: List[str] = []
    for bucket in buckets:
        for label in bucket.channels:
            if label not in seen:
                seen.append(label)
    return seen


def channel_totals(buckets: Iterable[DayBucket]) -> Dict[str, ChannelTally]:
    totals: Dict[str, ChannelTally] = OrderedDict()
    for bucket in buckets:
        for label, tally in bucket.channels.items():
            total = totals.setdefault(label, ChannelTally())
            total.sales += tally.sales
            total.revenue += tally.revenue
    return totals
