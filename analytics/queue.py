# =============================================================================
# PRINTSHOP ANALYTICS - QUEUE SUMMARIZER
# =============================================================================
# Print queue listing: queued and printing units in queue order, each with
# the material colors to display.
#
# COLOR RESOLUTION (first resolver that applies wins):
# 1. Multi-material mapping, slots ascending (terminal when non-empty)
# 2. Joined single material object
# 3. material_id looked up in the materials index
# 4. No color (empty tuple)
# =============================================================================

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .numeric import is_number, to_decimal
from .rows import PRINTING, QUEUED, iter_rows, joined, list_field, text_field, unit_status

logger = logging.getLogger(__name__)

QUEUE_STATUSES = (QUEUED, PRINTING)

_HEX_COLOR = re.compile(r"^#[0-9A-Fa-f]{6}$")


@dataclass(frozen=True)
class Swatch:
    """One material color as shown next to a queue item."""
    material_id: Optional[str]
    name: str
    hex: Optional[str]  # "#RRGGBB" or None when missing/invalid


@dataclass(frozen=True)
class QueueItem:
    name: str
    photo: Optional[str]
    status: str
    colors: Tuple[Swatch, ...]
    queue_order: Optional[Decimal] = None

    @property
    def has_colors(self) -> bool:
        return len(self.colors) > 0


MaterialsIndex = Mapping[str, Mapping]
ColorResolver = Callable[[Mapping, MaterialsIndex], Optional[Tuple[Swatch, ...]]]


def normalize_hex(value) -> Optional[str]:
    if not isinstance(value, str):
        return None
    text = value.strip()
    return text.upper() if _HEX_COLOR.match(text) else None


def swatch_from_material(material: Mapping) -> Swatch:
    material_id = material.get("id")
    return Swatch(
        material_id=str(material_id) if material_id is not None else None,
        name=text_field(material, "color"),
        hex=normalize_hex(material.get("color_hex")),
    )


def index_materials(materials: Iterable[Mapping]) -> Dict[str, Mapping]:
    """Map material id (as string) to material row."""
    index: Dict[str, Mapping] = {}
    for material in iter_rows(materials):
        material_id = material.get("id")
        if material_id is not None:
            index[str(material_id)] = material
    return index


def _lookup(materials_by_id: MaterialsIndex, material_id) -> Optional[Mapping]:
    if material_id is None or material_id == "":
        return None
    return materials_by_id.get(str(material_id))


def _slot_key(entry: Mapping) -> Decimal:
    # Slot index is "color" on stored rows; "slot" is accepted as well.
    return to_decimal(entry.get("color", entry.get("slot")))


def resolve_from_mapping(unit: Mapping, materials_by_id: MaterialsIndex) -> Optional[Tuple[Swatch, ...]]:
    mapping = list_field(unit, "multimaterial_mapping")
    if not mapping:
        return None
    swatches = []
    for entry in sorted(mapping, key=_slot_key):
        material = _lookup(materials_by_id, entry.get("material_id"))
        if material is not None:
            swatches.append(swatch_from_material(material))
    return tuple(swatches)


def resolve_from_joined_material(unit: Mapping, materials_by_id: MaterialsIndex) -> Optional[Tuple[Swatch, ...]]:
    material = joined(unit, "materials")
    if not material:
        return None
    if material.get("id") is None and unit.get("material_id") is not None:
        material = dict(material, id=unit.get("material_id"))
    return (swatch_from_material(material),)


def resolve_from_material_id(unit: Mapping, materials_by_id: MaterialsIndex) -> Optional[Tuple[Swatch, ...]]:
    material = _lookup(materials_by_id, unit.get("material_id"))
    if material is None:
        return None
    return (swatch_from_material(material),)


COLOR_RESOLVERS: Tuple[ColorResolver, ...] = (
    resolve_from_mapping,
    resolve_from_joined_material,
    resolve_from_material_id,
)


def resolve_colors(
    unit: Mapping,
    materials_by_id: MaterialsIndex,
    resolvers: Sequence[ColorResolver] = COLOR_RESOLVERS,
) -> Tuple[Swatch, ...]:
    """Run the resolver chain; empty tuple when none applies."""
    for resolver in resolvers:
        colors = resolver(unit, materials_by_id)
        if colors is not None:
            return colors
    return ()


def _queue_sort_key(unit: Mapping) -> Tuple[int, Decimal]:
    raw = unit.get("queue_order")
    if not is_number(raw):
        return (1, Decimal(0))
    return (0, to_decimal(raw))


def summarize_queue(
    units: Iterable[Mapping],
    materials_by_id: Optional[MaterialsIndex] = None,
) -> List[QueueItem]:
    """
    Build the print queue listing.

    Args:
        units: Product rows with joined ``models`` and ``materials``
        materials_by_id: Material rows by id (see index_materials)

    Returns:
        QueueItems ordered by queue_order ascending, unordered units last
    """
    materials_by_id = materials_by_id or {}

    rows = list(iter_rows(units))
    queued = [unit for unit in rows if unit_status(unit) in QUEUE_STATUSES]
    queued.sort(key=_queue_sort_key)

    items = []
    for unit in queued:
        model = joined(unit, "models")
        photo = model.get("photo_url")
        raw_order = unit.get("queue_order")
        items.append(
            QueueItem(
                name=text_field(model, "name"),
                photo=str(photo) if photo else None,
                status=unit_status(unit),
                colors=resolve_colors(unit, materials_by_id),
                queue_order=to_decimal(raw_order) if is_number(raw_order) else None,
            )
        )

    logger.debug("summarize_queue: %d of %d rows in queue", len(items), len(rows))
    return items
