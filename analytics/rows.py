"""Status vocabulary and tolerant readers for externally sourced rows."""

from __future__ import annotations

from datetime import date, datetime, time, timezone, tzinfo
from typing import Any, Iterable, Iterator, List, Mapping, Optional

QUEUED = "queued"
PRINTING = "printing"
AVAILABLE = "available"
SOLD = "sold"

# Database codes and English aliases -> canonical status.
STATUS_CODES: Mapping[str, str] = {
    "in_coda": QUEUED,
    "in_stampa": PRINTING,
    "disponibile": AVAILABLE,
    "venduto": SOLD,
    QUEUED: QUEUED,
    PRINTING: PRINTING,
    AVAILABLE: AVAILABLE,
    SOLD: SOLD,
}


def iter_rows(rows: Optional[Iterable[Any]]) -> Iterator[Mapping]:
    """Yield only mapping rows; None and stray values are skipped."""
    if rows is None:
        return
    for row in rows:
        if isinstance(row, Mapping):
            yield row


def unit_status(row: Mapping) -> Optional[str]:
    """Canonical status of a product row, or None when unknown."""
    raw = row.get("status")
    if not isinstance(raw, str):
        return None
    return STATUS_CODES.get(raw.strip().lower())


def joined(row: Mapping, key: str) -> Mapping:
    """Joined sub-record (e.g. ``models``/``materials``) or an empty dict."""
    value = row.get(key)
    return value if isinstance(value, Mapping) else {}


def list_field(row: Mapping, key: str) -> List[Mapping]:
    """List-of-objects field with non-mapping entries dropped."""
    value = row.get(key)
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def text_field(row: Mapping, key: str) -> str:
    value = row.get(key)
    if value is None:
        return ""
    return str(value).strip()


def parse_timestamp(value: Any, default_tz: tzinfo = timezone.utc) -> Optional[datetime]:
    """
    Parse a timestamp field into an aware datetime.

    Accepts datetime, date and ISO-8601 strings (a trailing ``Z`` included).
    Naive values are taken to be in ``default_tz``. Returns None for
    anything unparsable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z") or text.endswith("z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=default_tz)
    return parsed


def sold_at(row: Mapping) -> Optional[datetime]:
    """Sale timestamp, or None when the sale cannot be placed in time."""
    return parse_timestamp(row.get("sold_at"))


def row_label(row: Mapping) -> str:
    """Short identifier used in warnings."""
    for key in ("id", "sku", "entity_name"):
        value = row.get(key)
        if value not in (None, ""):
            return f"{key}={value}"
    return "<no id>"
