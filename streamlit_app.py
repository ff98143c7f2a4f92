from __future__ import annotations

from datetime import date, datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd
import plotly.express as px
import streamlit as st
import yaml

from analytics.config import channel_settings, load_config, validate_config
from analytics.datasource import DataSourceError, Snapshot, load_snapshot
from analytics.filters import ACTION_LABELS, apply_filter, log_filter, product_search
from analytics.periods import CUSTOM, PERIODS
from analytics.report import build_dashboard, build_report
from ui.dashboard_data import (
    build_dashboard_cards,
    build_logs_frame,
    build_queue_frame,
    build_report_snapshot,
    channel_color,
)


st.set_page_config(
    page_title="PrintShop Analytics",
    page_icon="P",
    layout="wide",
    initial_sidebar_state="expanded",
)

PERIOD_LABELS: Dict[str, str] = {
    "last_7_days": "Last 7 days",
    "last_30_days": "Last 30 days",
    "current_month": "Current month",
    "last_month": "Last month",
    "custom": "Custom range",
}


def _qp_value(key: str, default: str) -> str:
    value = st.query_params.get(key, default)
    if isinstance(value, list):
        return value[0] if value else default
    return str(value)


def _fmt_currency(value: float, currency: str = "EUR") -> str:
    return f"{currency} {value:,.2f}"


def _kpi_tile(title: str, value: str) -> None:
    st.metric(title, value)


def _style_figure(fig, height: int = 300):
    fig.update_layout(
        height=height,
        margin=dict(l=14, r=14, t=18, b=14),
        legend=dict(bgcolor="rgba(0,0,0,0)"),
    )
    return fig


@st.cache_data(ttl=60, show_spinner=False)
def _load(source: str) -> Snapshot:
    return load_snapshot(Path(source) if source else None)


def _render_dashboard(snapshot: Snapshot, config: Dict, now: datetime) -> None:
    result = build_dashboard(snapshot.products, snapshot.materials, snapshot.sales, now=now, config=config)
    cards = build_dashboard_cards(result)
    currency = config.get("currency", "EUR")

    columns = st.columns(len(cards))
    for column, (_, card) in zip(columns, cards.iterrows()):
        with column:
            value = _fmt_currency(card["value"], currency) if card["kind"] == "money" else f"{int(card['value'])}"
            _kpi_tile(card["card"], value)

    if result.warnings:
        with st.expander(f"{len(result.warnings)} rows skipped"):
            for warning in result.warnings:
                st.write(f"- {warning}")


def _render_queue(snapshot: Snapshot, config: Dict, now: datetime) -> None:
    query = st.text_input("Search", placeholder="SKU, model, material...")
    products = apply_filter(snapshot.products, product_search(query))
    result = build_dashboard(products, snapshot.materials, [], now=now, config=config)
    frame = build_queue_frame(result.queue)
    if frame.empty:
        st.info("The print queue is empty.")
        return
    st.dataframe(
        frame[["position", "name", "status", "colors", "photo"]],
        width="stretch",
        hide_index=True,
        column_config={"photo": st.column_config.ImageColumn("Photo")},
    )


def _render_reports(snapshot: Snapshot, config: Dict, now: datetime) -> None:
    default_period = (config.get("report") or {}).get("default_period", "last_30_days")
    c1, c2, c3 = st.columns([2, 1, 1])
    with c1:
        period = st.selectbox(
            "Period",
            PERIODS,
            index=PERIODS.index(default_period) if default_period in PERIODS else 1,
            format_func=lambda p: PERIOD_LABELS.get(p, p),
        )
    start: Optional[date] = None
    end: Optional[date] = None
    if period == CUSTOM:
        with c2:
            start = st.date_input("From", value=None)
        with c3:
            end = st.date_input("To", value=None)

    report = build_report(snapshot.sales, period, start, end, now=now, config=config)
    data = build_report_snapshot(report)
    currency = config.get("currency", "EUR")
    totals = report.totals

    k1, k2, k3, k4 = st.columns(4)
    with k1:
        _kpi_tile("Total sales", str(totals.total_sales))
    with k2:
        _kpi_tile("Revenue", _fmt_currency(float(totals.total_revenue), currency))
    with k3:
        _kpi_tile("Total costs", _fmt_currency(float(totals.total_cost), currency))
    with k4:
        _kpi_tile("Profit", _fmt_currency(float(totals.total_profit), currency))

    s1, s2 = st.columns(2)
    with s1:
        _kpi_tile("Producer share", _fmt_currency(float(totals.producer_share), currency))
    with s2:
        _kpi_tile("Seller share", _fmt_currency(float(totals.seller_share), currency))

    if data.daily.empty:
        st.info("No sales in the selected period.")
        return

    palette = {channel: channel_color(channel) for channel in report.channels}
    left, right = st.columns(2)
    with left:
        st.markdown("#### Sales")
        fig = px.line(data.daily, x="date", y="sales", color="channel", markers=True, color_discrete_map=palette)
        st.plotly_chart(_style_figure(fig), width="stretch")
    with right:
        st.markdown("#### Revenue")
        fig = px.line(data.daily, x="date", y="revenue", color="channel", markers=True, color_discrete_map=palette)
        st.plotly_chart(_style_figure(fig), width="stretch")

    st.markdown("#### By channel")
    st.dataframe(data.by_channel, width="stretch", hide_index=True)
    st.markdown("#### Sales")
    st.dataframe(data.sales, width="stretch", hide_index=True)
    st.download_button(
        "Download sales CSV", data.sales.to_csv(index=False), file_name="sales_report.csv", mime="text/csv"
    )

    if report.warnings:
        with st.expander(f"{len(report.warnings)} warnings"):
            for warning in report.warnings:
                st.write(f"- {warning}")


def _render_logs(snapshot: Snapshot) -> None:
    c1, c2, c3, c4 = st.columns(4)
    with c1:
        action_type = st.selectbox(
            "Action", [""] + list(ACTION_LABELS), format_func=lambda a: ACTION_LABELS.get(a, "All")
        )
    with c2:
        entity_type = st.selectbox("Entity", ["", "materiale", "modello", "prodotto"])
    with c3:
        user_email = st.text_input("User email")
    with c4:
        search = st.text_input("Search")

    logs = apply_filter(snapshot.logs, log_filter(action_type, entity_type, user_email, search))
    st.caption(f"{len(logs)} of {len(snapshot.logs)} entries")
    st.dataframe(build_logs_frame(logs), width="stretch", hide_index=True)


def _render_settings(snapshot: Snapshot, config: Dict) -> None:
    channels = channel_settings(config, snapshot.channel_rows)
    frame = pd.DataFrame([settings.as_dict() for settings in channels.values()])
    st.markdown("#### Sales channels")
    st.dataframe(frame, width="stretch", hide_index=True)
    st.markdown("#### VAT regimes")
    st.dataframe(pd.DataFrame(snapshot.vat_regimes), width="stretch", hide_index=True)
    st.markdown("#### Effective settings")
    st.code(yaml.safe_dump(config, sort_keys=False), language="yaml")


def main() -> None:
    sections: List[str] = ["Dashboard", "Print Queue", "Reports", "Logs", "Settings"]
    qp_section = _qp_value("section", "dashboard").strip().lower()
    initial_section = next((item for item in sections if item.lower() == qp_section), "Dashboard")

    with st.sidebar:
        st.markdown("## PrintShop Analytics")
        section = st.radio("Navigation", sections, index=sections.index(initial_section))
        source = st.text_input("Data directory (blank: Supabase)", value="")
        settings_path = st.text_input("Settings file", value="settings/base.yaml")
        if st.button("Reload data"):
            _load.clear()

    st.query_params["section"] = section.lower()

    try:
        config = load_config(Path(settings_path) if settings_path else None)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        st.error(f"Failed to load settings from {settings_path}: {exc}")
        return
    errors = validate_config(config)
    if errors:
        st.error("Settings are invalid.")
        for err in errors:
            st.write(f"- {err}")
        return

    try:
        snapshot = _load(source)
    except DataSourceError as exc:
        st.error(f"Failed to load data: {exc}")
        return

    now = datetime.now(timezone.utc)
    st.title(section)

    if section == "Dashboard":
        _render_dashboard(snapshot, config, now)
    elif section == "Print Queue":
        _render_queue(snapshot, config, now)
    elif section == "Reports":
        _render_reports(snapshot, config, now)
    elif section == "Logs":
        _render_logs(snapshot)
    else:
        _render_settings(snapshot, config)


if __name__ == "__main__":
    main()
