# =============================================================================
# PRINTSHOP ANALYTICS - ENGINE PACKAGE
# =============================================================================
# This package contains the calculation engines behind the dashboard,
# the print queue and the sales report.
#
# Modules:
# - numeric: Tolerant money/quantity parsing
# - rows: Status vocabulary and row field readers
# - cost: Per-unit production cost
# - warehouse: Stock valuation and status tallies
# - queue: Print queue summary and color resolution
# - periods: Report period resolution
# - sales_report: Sales totals and profit split
# - timeseries: Daily per-channel buckets
# - sale_pricing: Sale row pricing (channel costs, VAT, profit)
# - filters: Predicate combinators for logs and products
# - config: YAML settings and channel defaults
# - report: Dashboard/report orchestration
# - datasource: Row loading from Supabase or local JSON
# =============================================================================

__version__ = "0.1.0"
