"""Predicate combinators for filtering already-loaded rows (logs, products)."""

from __future__ import annotations

from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence

Predicate = Callable[[Mapping], bool]

ACTION_LABELS = {
    "aggiunta_materiale": "Aggiunta Materiale",
    "modifica_materiale": "Modifica Materiale",
    "eliminazione_materiale": "Eliminazione Materiale",
    "aggiunta_modello": "Aggiunta Modello",
    "modifica_modello": "Modifica Modello",
    "eliminazione_modello": "Eliminazione Modello",
    "aggiunta_prodotto": "Aggiunta Prodotto",
    "modifica_prodotto": "Modifica Prodotto",
    "eliminazione_prodotto": "Eliminazione Prodotto",
}

PRODUCT_SEARCH_FIELDS = (
    "sku",
    "models.name",
    "materials.brand",
    "materials.material_type",
    "materials.color",
)


def always(row: Mapping) -> bool:
    return True


def get_path(row: Mapping, path: str) -> Any:
    """Dotted lookup through joined sub-records ("models.name")."""
    value: Any = row
    for part in path.split("."):
        if not isinstance(value, Mapping):
            return None
        value = value.get(part)
    return value


def all_of(*predicates: Predicate) -> Predicate:
    """Conjunction; stops at the first predicate that fails."""
    active = [p for p in predicates if p is not None and p is not always]
    if not active:
        return always

    def predicate(row: Mapping) -> bool:
        return all(p(row) for p in active)

    return predicate


def any_of(*predicates: Predicate) -> Predicate:
    active = [p for p in predicates if p is not None]

    def predicate(row: Mapping) -> bool:
        return any(p(row) for p in active)

    return predicate


def field_equals(path: str, expected: Optional[str]) -> Predicate:
    """Exact match; blank ``expected`` matches everything."""
    if not expected:
        return always
    return lambda row: get_path(row, path) == expected


def field_contains(path: str, text: Optional[str]) -> Predicate:
    """Case-insensitive substring match; blank ``text`` matches everything."""
    if not text or not text.strip():
        return always
    needle = text.strip().lower()

    def predicate(row: Mapping) -> bool:
        value = get_path(row, path)
        return value is not None and needle in str(value).lower()

    return predicate


def any_field_contains(paths: Sequence[str], text: Optional[str]) -> Predicate:
    if not text or not text.strip():
        return always
    return any_of(*(field_contains(path, text) for path in paths))


def action_label_contains(text: str) -> Predicate:
    needle = text.strip().lower()

    def predicate(row: Mapping) -> bool:
        label = ACTION_LABELS.get(row.get("action_type"))
        return label is not None and needle in label.lower()

    return predicate


def log_filter(
    action_type: Optional[str] = None,
    entity_type: Optional[str] = None,
    user_email: Optional[str] = None,
    search: Optional[str] = None,
) -> Predicate:
    """Log viewer filter: every given criterion must hold."""
    search_predicate = always
    if search and search.strip():
        search_predicate = any_of(
            field_contains("entity_name", search),
            field_contains("user_email", search),
            action_label_contains(search),
        )
    return all_of(
        field_equals("action_type", action_type),
        field_equals("entity_type", entity_type),
        field_contains("user_email", user_email),
        search_predicate,
    )


def product_search(query: Optional[str]) -> Predicate:
    """Product/queue search over SKU, model name and material fields."""
    return any_field_contains(PRODUCT_SEARCH_FIELDS, query)


def apply_filter(rows: Iterable[Any], predicate: Predicate) -> List[Mapping]:
    return [row for row in rows if isinstance(row, Mapping) and predicate(row)]
