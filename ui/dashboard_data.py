"""Transform engine outputs into dashboard/report table structures."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping

import pandas as pd

from analytics.filters import ACTION_LABELS
from analytics.numeric import to_decimal
from analytics.queue import QueueItem
from analytics.report import DashboardResult, SalesReport
from analytics.rows import parse_timestamp

CHANNEL_COLORS: Dict[str, str] = {
    "Vinted": "#09B1BA",
    "eBay": "#E53238",
    "Shopify": "#96BF48",
    "Negozio Fisico": "#2D2D2D",
}
DEFAULT_CHANNEL_COLOR = "#8884D8"

STATUS_LABELS = {
    "queued": "In Coda",
    "printing": "In Stampa",
    "available": "Disponibile",
    "sold": "Venduto",
}


@dataclass
class ReportSnapshot:
    summary: pd.DataFrame
    daily: pd.DataFrame
    daily_wide: pd.DataFrame
    by_channel: pd.DataFrame
    sales: pd.DataFrame


def _money(value) -> float:
    return float(to_decimal(value))


def _safe_pct(num: float, den: float) -> float:
    return (num / den) if den else 0.0


def channel_color(channel: str) -> str:
    return CHANNEL_COLORS.get(channel, DEFAULT_CHANNEL_COLOR)


def _summary_df(report: SalesReport) -> pd.DataFrame:
    totals = report.totals
    rows = [
        ("Total sales", float(totals.total_sales)),
        ("Total revenue", _money(totals.total_revenue)),
        ("Total costs", _money(totals.total_cost)),
        ("Production costs", _money(totals.total_production_cost)),
        ("Total profit", _money(totals.total_profit)),
        ("Producer share", _money(totals.producer_share)),
        ("Seller share", _money(totals.seller_share)),
    ]
    return pd.DataFrame(rows, columns=["metric", "value"])


def _daily_df(report: SalesReport) -> pd.DataFrame:
    rows = []
    for bucket in report.buckets:
        for channel, tally in bucket.channels.items():
            rows.append(
                {
                    "date": pd.Timestamp(bucket.day),
                    "channel": channel,
                    "sales": int(tally.sales),
                    "revenue": _money(tally.revenue),
                }
            )
    if not rows:
        return pd.DataFrame(columns=["date", "channel", "sales", "revenue"])
    return pd.DataFrame(rows).sort_values(["date", "channel"]).reset_index(drop=True)


def _daily_wide_df(daily: pd.DataFrame, channels: List[str]) -> pd.DataFrame:
    """One row per day, ``sales_<channel>``/``revenue_<channel>`` columns."""
    if daily.empty:
        return pd.DataFrame(columns=["date"])
    sales = daily.pivot_table(index="date", columns="channel", values="sales", aggfunc="sum", fill_value=0)
    revenue = daily.pivot_table(index="date", columns="channel", values="revenue", aggfunc="sum", fill_value=0.0)
    wide = pd.DataFrame(index=sales.index)
    for channel in channels:
        wide[f"sales_{channel}"] = sales[channel] if channel in sales else 0
        wide[f"revenue_{channel}"] = revenue[channel] if channel in revenue else 0.0
    return wide.reset_index().sort_values("date").reset_index(drop=True)


def _by_channel_df(report: SalesReport) -> pd.DataFrame:
    rows = [
        {"channel": channel, "sales": int(tally.sales), "revenue": _money(tally.revenue)}
        for channel, tally in report.by_channel.items()
    ]
    if not rows:
        return pd.DataFrame(columns=["channel", "sales", "revenue", "share_pct"])
    data = pd.DataFrame(rows).sort_values("revenue", ascending=False)
    total = float(data["revenue"].sum())
    data["share_pct"] = data["revenue"].apply(lambda value: _safe_pct(float(value), total))
    return data.reset_index(drop=True)


def _sales_df(sales: Iterable[Mapping]) -> pd.DataFrame:
    columns = ["sold_at", "model_name", "sales_channel", "quantity_sold", "revenue", "total_costs", "profit"]
    rows = [{column: sale.get(column) for column in columns} for sale in sales]
    if not rows:
        return pd.DataFrame(columns=columns)
    for row in rows:
        row["sold_at"] = parse_timestamp(row["sold_at"])
    data = pd.DataFrame(rows)
    data["sold_at"] = pd.to_datetime(data["sold_at"], utc=True)
    for column in ("revenue", "total_costs", "profit"):
        data[column] = pd.to_numeric(data[column], errors="coerce").fillna(0.0)
    data["quantity_sold"] = pd.to_numeric(data["quantity_sold"], errors="coerce").fillna(1).astype(int)
    return data.sort_values("sold_at", ascending=False).reset_index(drop=True)


def build_report_snapshot(report: SalesReport) -> ReportSnapshot:
    daily = _daily_df(report)
    return ReportSnapshot(
        summary=_summary_df(report),
        daily=daily,
        daily_wide=_daily_wide_df(daily, report.channels),
        by_channel=_by_channel_df(report),
        sales=_sales_df(report.sales),
    )


def build_dashboard_cards(result: DashboardResult) -> pd.DataFrame:
    valuation = result.valuation
    rows = [
        {"card": "Warehouse value", "value": _money(valuation.production_value), "kind": "money"},
        {"card": "Stock sale value", "value": _money(valuation.sale_value), "kind": "money"},
        {"card": "Potential margin", "value": _money(valuation.potential_margin), "kind": "money"},
        {"card": "In queue", "value": float(valuation.queued_qty), "kind": "count"},
        {"card": "Printing", "value": float(valuation.printing_qty), "kind": "count"},
        {"card": "Available", "value": float(valuation.available_qty), "kind": "count"},
        {"card": "Sold", "value": float(valuation.sold_qty), "kind": "count"},
        {"card": f"Revenue {result.year}", "value": _money(result.year_revenue), "kind": "money"},
    ]
    return pd.DataFrame(rows)


def build_queue_frame(items: Iterable[QueueItem]) -> pd.DataFrame:
    rows = []
    for position, item in enumerate(items, start=1):
        rows.append(
            {
                "position": position,
                "name": item.name,
                "status": STATUS_LABELS.get(item.status, item.status),
                "colors": ", ".join(swatch.name or "?" for swatch in item.colors) or "No color",
                "hex": [swatch.hex for swatch in item.colors],
                "photo": item.photo,
            }
        )
    if not rows:
        return pd.DataFrame(columns=["position", "name", "status", "colors", "hex", "photo"])
    return pd.DataFrame(rows)


def build_logs_frame(logs: Iterable[Mapping]) -> pd.DataFrame:
    columns = ["created_at", "user_email", "action", "entity_type", "entity_name"]
    rows = [
        {
            "created_at": parse_timestamp(log.get("created_at")),
            "user_email": log.get("user_email"),
            "action": ACTION_LABELS.get(log.get("action_type"), log.get("action_type")),
            "entity_type": log.get("entity_type"),
            "entity_name": log.get("entity_name"),
        }
        for log in logs
    ]
    if not rows:
        return pd.DataFrame(columns=columns)
    data = pd.DataFrame(rows, columns=columns)
    data["created_at"] = pd.to_datetime(data["created_at"], errors="coerce", utc=True)
    return data
