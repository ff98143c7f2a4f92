# =============================================================================
# PRINTSHOP ANALYTICS - MAIN ENTRY POINT
# =============================================================================
# Command-line interface for the analytics engine.
#
# Usage:
#   python main.py dashboard
#   python main.py queue --source data
#   python main.py report --period last_month
#   python main.py report --period custom --start 2024-03-01 --end 2024-03-31
#   python main.py quote --unit-json unit.json --channel eBay --price 24.40 --vat-regime "IVA Italia"
#   python main.py validate-config
# =============================================================================

import argparse
import json
import logging
import sys
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path

from analytics.config import (
    business_timezone, channel_settings, load_config, validate_config,
)
from analytics.datasource import DataSourceError, load_snapshot
from analytics.periods import PERIODS
from analytics.report import build_dashboard, build_report
from analytics.rows import parse_timestamp
from analytics.sale_pricing import (
    find_vat_regime, price_sale, validate_sale_request, vat_rate_of,
)

logger = logging.getLogger("printshop")


def _money(value: Decimal, currency: str) -> str:
    return f"{currency} {value:,.2f}"


def _now(args, config) -> datetime:
    if getattr(args, "now", None):
        parsed = parse_timestamp(args.now, business_timezone(config))
        if parsed is None:
            raise SystemExit(f"Invalid --now value: {args.now}")
        return parsed
    return datetime.now(timezone.utc)


def run_dashboard(args, config):
    """Print warehouse figures and year-to-date revenue."""
    snapshot = load_snapshot(args.source)
    result = build_dashboard(
        snapshot.products, snapshot.materials, snapshot.sales,
        now=_now(args, config), config=config,
    )
    currency = config.get("currency", "EUR")
    valuation = result.valuation

    print("\nDASHBOARD")
    print("-" * 40)
    print(f"  Warehouse value:   {_money(valuation.production_value, currency)}")
    print(f"  Stock sale value:  {_money(valuation.sale_value, currency)}")
    print(f"  Potential margin:  {_money(valuation.potential_margin, currency)}")
    print(f"  In queue:          {valuation.queued_qty}")
    print(f"  Printing:          {valuation.printing_qty}")
    print(f"  Available:         {valuation.available_qty}")
    print(f"  Sold:              {valuation.sold_qty}")
    print(f"  Revenue {result.year}:      {_money(result.year_revenue, currency)}")

    if result.warnings:
        print("\nWARNINGS:")
        for warning in result.warnings:
            print(f"  - {warning}")
    return result


def run_queue(args, config):
    """Print the print queue with resolved colors."""
    snapshot = load_snapshot(args.source)
    result = build_dashboard(
        snapshot.products, snapshot.materials, snapshot.sales,
        now=_now(args, config), config=config,
    )

    print("\nPRINT QUEUE")
    print("-" * 40)
    if not result.queue:
        print("  (empty)")
    for position, item in enumerate(result.queue, start=1):
        colors = ", ".join(
            f"{swatch.name or '?'}{' ' + swatch.hex if swatch.hex else ''}"
            for swatch in item.colors
        ) or "no color"
        print(f"  {position:>3}. [{item.status:8}] {item.name or '(unnamed)'} - {colors}")
    return result.queue


def run_report(args, config):
    """Print sales totals, profit split and per-channel figures."""
    snapshot = load_snapshot(args.source)
    report = build_report(
        snapshot.sales, args.period, args.start, args.end,
        now=_now(args, config), config=config,
    )

    if args.json:
        payload = {
            "period": report.period,
            "start": report.date_range.start.isoformat() if report.date_range.start else None,
            "end": report.date_range.end.isoformat() if report.date_range.end else None,
            "totals": {k: str(v) for k, v in report.totals.as_dict().items()},
            "daily": [
                {
                    "date": bucket.day.isoformat(),
                    "channels": {
                        channel: {"sales": tally.sales, "revenue": str(tally.revenue)}
                        for channel, tally in bucket.channels.items()
                    },
                }
                for bucket in report.buckets
            ],
            "warnings": report.warnings,
            "errors": report.errors,
        }
        print(json.dumps(payload, indent=2))
        return report

    currency = config.get("currency", "EUR")
    totals = report.totals
    print(f"\nSALES REPORT: {report.period}")
    if report.date_range.is_unbounded:
        print("  all dates")
    else:
        print(f"  {report.date_range.start} .. {report.date_range.end}")
    print("-" * 40)
    print(f"  Units sold:        {totals.total_sales}")
    print(f"  Revenue:           {_money(totals.total_revenue, currency)}")
    print(f"  Total costs:       {_money(totals.total_cost, currency)}")
    print(f"  Production costs:  {_money(totals.total_production_cost, currency)}")
    print(f"  Profit:            {_money(totals.total_profit, currency)}")
    print(f"  Producer share:    {_money(totals.producer_share, currency)}")
    print(f"  Seller share:      {_money(totals.seller_share, currency)}")

    if report.by_channel:
        print("\nBY CHANNEL:")
        for channel, tally in report.by_channel.items():
            print(f"  {channel:16}: {tally.sales:>5}  {_money(tally.revenue, currency)}")

    if report.warnings:
        print("\nWARNINGS:")
        for warning in report.warnings:
            print(f"  - {warning}")
    if report.errors:
        print("\nERRORS:")
        for error in report.errors:
            print(f"  - {error}")
    return report


def run_quote(args, config):
    """Price a sale of the unit described in a JSON file."""
    with open(args.unit_json, "r", encoding="utf-8") as handle:
        unit = json.load(handle)

    snapshot = load_snapshot(args.source)
    channels = channel_settings(config, snapshot.channel_rows)

    regime = None
    regime_name = args.vat_regime
    if args.vat_regime:
        regime = find_vat_regime(snapshot.vat_regimes, args.vat_regime)
    elif args.vat_rate is not None:
        regime_name = "custom"

    errors = validate_sale_request(unit, args.channel, regime_name, args.quantity, args.price)
    if args.channel and args.channel not in channels:
        errors.append(f"Unknown sales channel {args.channel!r} (known: {', '.join(channels)})")
    if args.vat_regime and regime is None:
        known = ", ".join(str(row.get("name")) for row in snapshot.vat_regimes)
        errors.append(f"Unknown VAT regime {args.vat_regime!r} (known: {known})")
    if errors:
        print("\nERRORS:")
        for error in errors:
            print(f"  - {error}")
        return None

    vat_rate = args.vat_rate if args.vat_rate is not None else vat_rate_of(regime)
    quote = price_sale(unit, channels[args.channel], args.price, args.quantity, vat_rate)

    if args.json:
        row = quote.to_sale_row(_now(args, config), args.channel, regime_name, unit)
        print(json.dumps(row, indent=2))
        return quote

    currency = config.get("currency", "EUR")
    print(f"\nSALE QUOTE: {args.quantity} x {args.price} on {args.channel}")
    print("-" * 40)
    print(f"  Production cost:   {_money(quote.total_production_cost, currency)}")
    print(f"  Packaging:         {_money(quote.packaging_cost, currency)}")
    print(f"  Administrative:    {_money(quote.administrative_cost, currency)}")
    print(f"  Promotion:         {_money(quote.promotion_cost, currency)}")
    print(f"  Costs per unit:    {_money(quote.total_costs, currency)}")
    print(f"  Revenue:           {_money(quote.revenue, currency)}")
    print(f"  VAT ({quote.vat_rate}%):       {_money(quote.vat_amount, currency)}")
    print(f"  Profit:            {_money(quote.profit, currency)}")
    return quote


def run_validate_config(args, config):
    errors = validate_config(config)
    if errors:
        print("\nFAILED - Settings errors:")
        for error in errors:
            print(f"  - {error}")
        return False
    print("\nPASSED - Settings are valid")
    return True


def main(argv=None):
    parser = argparse.ArgumentParser(description="PrintShop Analytics")
    parser.add_argument("--config", "-c", help="Settings YAML (default settings/base.yaml)")
    parser.add_argument("--override",
                        help="Settings override YAML deep-merged over --config (default settings/local.yaml)")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    def add_source(sub):
        sub.add_argument("--source", "-d", type=Path, default=None,
                         help="Directory of <table>.json files (default: Supabase, then data/)")
        sub.add_argument("--now", help="Reference instant (ISO), defaults to the current time")

    add_source(subparsers.add_parser("dashboard", help="Warehouse valuation"))
    add_source(subparsers.add_parser("queue", help="Print queue with colors"))

    report_parser = subparsers.add_parser("report", help="Sales report")
    add_source(report_parser)
    report_parser.add_argument("--period", "-p", choices=PERIODS, default=None)
    report_parser.add_argument("--start", help="Custom period start (YYYY-MM-DD or ISO)")
    report_parser.add_argument("--end", help="Custom period end (YYYY-MM-DD or ISO)")
    report_parser.add_argument("--json", action="store_true", help="Print JSON")

    quote_parser = subparsers.add_parser("quote", help="Price a sale")
    add_source(quote_parser)
    quote_parser.add_argument("--unit-json", required=True, help="Product row as JSON")
    quote_parser.add_argument("--channel", required=True)
    quote_parser.add_argument("--price", required=True, type=Decimal)
    quote_parser.add_argument("--quantity", type=int, default=1)
    quote_parser.add_argument("--vat-regime", help="VAT regime name from the vat_regimes table")
    quote_parser.add_argument("--vat-rate", type=Decimal, help="VAT percentage, overrides the regime")
    quote_parser.add_argument("--json", action="store_true", help="Print the sale row as JSON")

    subparsers.add_parser("validate-config", help="Validate settings")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(Path(args.config) if args.config else None,
                         Path(args.override) if args.override else None)

    commands = {
        "dashboard": run_dashboard,
        "queue": run_queue,
        "report": run_report,
        "quote": run_quote,
        "validate-config": run_validate_config,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        return 0

    if args.command != "validate-config":
        errors = validate_config(config)
        if errors:
            for error in errors:
                logger.error("Settings: %s", error)
            return 2

    try:
        outcome = command(args, config)
    except DataSourceError as exc:
        logger.error("%s", exc)
        print(f"\nERROR: {exc}")
        return 1
    return 1 if outcome is None or outcome is False else 0


if __name__ == "__main__":
    sys.exit(main())
