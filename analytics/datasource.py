"""
Load analytics input rows from Supabase, with a local JSON fallback.

Returns plain row dicts in the shapes the engines read:
  products      - with joined models(name, photo_url) and materials(...)
  materials     - id, color, color_hex, ...
  sales         - the sales ledger
  vat_regimes   - VAT regimes (display join only)
  channel_rows  - sales_channels_settings rows
  logs          - audit log entries, newest first
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent.parent
PAGE_SIZE = 1000

# table -> (select, order column, descending)
TABLES: Dict[str, tuple] = {
    "products": (
        "*, models(name, photo_url), materials(id, brand, material_type, color, color_hex)",
        "created_at",
        False,
    ),
    "materials": ("*", "created_at", False),
    "sales": ("*", "sold_at", False),
    "vat_regimes": ("*", "vat_rate", False),
    "sales_channels_settings": ("*", "channel_name", False),
    "logs": ("*", "created_at", True),
}


class DataSourceError(RuntimeError):
    """Rows could not be fetched; raised before any engine runs."""


@dataclass
class Snapshot:
    products: List[dict] = field(default_factory=list)
    materials: List[dict] = field(default_factory=list)
    sales: List[dict] = field(default_factory=list)
    vat_regimes: List[dict] = field(default_factory=list)
    channel_rows: List[dict] = field(default_factory=list)
    logs: List[dict] = field(default_factory=list)
    source: str = ""


# -- Supabase -----------------------------------------------------------------

def get_supabase_client():
    """Return a Supabase client, or None if credentials are missing."""
    from dotenv import load_dotenv
    load_dotenv(BASE_DIR / ".env")

    url = os.environ.get("SUPABASE_URL", "")
    key = os.environ.get("SUPABASE_KEY", "")
    if not url or not key:
        return None

    from supabase import create_client
    return create_client(url, key)


def fetch_all(client, table: str) -> List[dict]:
    """Fetch all rows of a table, paginating past the 1000-row limit."""
    select, order_col, desc = TABLES.get(table, ("*", "id", False))
    rows: List[dict] = []
    offset = 0
    while True:
        try:
            resp = (
                client.table(table)
                .select(select)
                .order(order_col, desc=desc)
                .range(offset, offset + PAGE_SIZE - 1)
                .execute()
            )
        except Exception as exc:
            raise DataSourceError(f"Failed to fetch {table}: {exc}") from exc
        batch = resp.data or []
        rows.extend(batch)
        if len(batch) < PAGE_SIZE:
            break
        offset += PAGE_SIZE
    logger.debug("Fetched %d rows from %s", len(rows), table)
    return rows


def load_from_supabase(client) -> Snapshot:
    return Snapshot(
        products=fetch_all(client, "products"),
        materials=fetch_all(client, "materials"),
        sales=fetch_all(client, "sales"),
        vat_regimes=fetch_all(client, "vat_regimes"),
        channel_rows=fetch_all(client, "sales_channels_settings"),
        logs=fetch_all(client, "logs"),
        source="supabase",
    )


# -- Local files --------------------------------------------------------------

def _read_table(directory: Path, table: str) -> List[dict]:
    path = directory / f"{table}.json"
    if not path.exists():
        return []
    try:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, ValueError) as exc:
        raise DataSourceError(f"Failed to read {path}: {exc}") from exc
    if isinstance(data, dict):
        data = data.get("rows", [])
    if not isinstance(data, list):
        raise DataSourceError(f"{path} must contain a list of rows")
    return data


def load_from_directory(directory: Path) -> Snapshot:
    """Read ``<table>.json`` files; missing tables are empty."""
    directory = Path(directory)
    if not directory.is_dir():
        raise DataSourceError(f"Data directory not found: {directory}")
    return Snapshot(
        products=_read_table(directory, "products"),
        materials=_read_table(directory, "materials"),
        sales=_read_table(directory, "sales"),
        vat_regimes=_read_table(directory, "vat_regimes"),
        channel_rows=_read_table(directory, "sales_channels_settings"),
        logs=_read_table(directory, "logs"),
        source=str(directory),
    )


def load_snapshot(source_dir: Optional[Path] = None, client=None) -> Snapshot:
    """
    Materialise every table the analytics views need.

    Order of preference: explicit ``source_dir``, explicit ``client``,
    Supabase from environment credentials, then ``data/`` next to the project.
    """
    if source_dir is not None:
        snapshot = load_from_directory(Path(source_dir))
    else:
        client = client or get_supabase_client()
        if client is not None:
            snapshot = load_from_supabase(client)
        else:
            snapshot = load_from_directory(BASE_DIR / "data")

    logger.info(
        "Loaded snapshot from %s: %d products, %d materials, %d sales",
        snapshot.source, len(snapshot.products), len(snapshot.materials), len(snapshot.sales),
    )
    return snapshot
