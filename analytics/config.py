"""Settings loading, channel defaults and validation."""

from __future__ import annotations

import copy
import logging
from dataclasses import asdict, dataclass
from decimal import Decimal
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import yaml

from .numeric import ZERO, is_number, to_decimal
from .periods import DEFAULT_PERIOD, PERIODS
from .rows import iter_rows, text_field
from .sales_report import ProfitSplit, validate_split

logger = logging.getLogger(__name__)

SETTINGS_DIR = Path(__file__).resolve().parent.parent / "settings"

CHANNELS = ["Vinted", "eBay", "Shopify", "Negozio Fisico"]

PROMOTION_TYPES = ("fixed", "percent")
PERCENT_BASES = ("gross", "net")

CHANNEL_DEFAULTS: Dict[str, object] = {
    "promotion_cost_per_product": 0,
    "promotion_cost_type": "fixed",
    "promotion_cost_percent": 0,
    "promotion_cost_percent_base": "gross",
    "packaging_cost": 0,
    "administrative_base_cost": 0,
}

DEFAULT_CONFIG: Dict = {
    "timezone": "UTC",
    "currency": "EUR",
    "report": {
        "default_period": DEFAULT_PERIOD,
        "unknown_channel": "Unknown",
    },
    "profit_split": {
        "producer_ratio": 0.6,
        "seller_ratio": 0.4,
        "reimburse_production_cost": True,
    },
    "channels": {},
}


@dataclass(frozen=True)
class ChannelSettings:
    """Per-channel selling costs."""
    channel_name: str
    promotion_cost_per_product: Decimal = ZERO
    promotion_cost_type: str = "fixed"
    promotion_cost_percent: Decimal = ZERO
    promotion_cost_percent_base: str = "gross"
    packaging_cost: Decimal = ZERO
    administrative_base_cost: Decimal = ZERO

    @classmethod
    def from_mapping(cls, channel_name: str, values: Mapping) -> "ChannelSettings":
        merged = dict(CHANNEL_DEFAULTS)
        merged.update({k: v for k, v in values.items() if k in CHANNEL_DEFAULTS and v is not None})
        return cls(
            channel_name=channel_name,
            promotion_cost_per_product=to_decimal(merged["promotion_cost_per_product"]),
            promotion_cost_type=str(merged["promotion_cost_type"]),
            promotion_cost_percent=to_decimal(merged["promotion_cost_percent"]),
            promotion_cost_percent_base=str(merged["promotion_cost_percent_base"]),
            packaging_cost=to_decimal(merged["packaging_cost"]),
            administrative_base_cost=to_decimal(merged["administrative_base_cost"]),
        )

    def as_dict(self) -> Dict[str, object]:
        return asdict(self)


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge override into base; lists are replaced, not merged."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def load_yaml_file(path: Path) -> dict:
    """Load a YAML file and return an object (empty dict for empty files)."""
    with open(path, "r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Settings file {path} must contain a mapping")
    return data


def load_config(path: Optional[Path] = None, override_path: Optional[Path] = None) -> dict:
    """
    Build the effective configuration.

    DEFAULT_CONFIG, then ``path`` (settings/base.yaml when omitted and
    present), then ``override_path`` (settings/local.yaml when omitted),
    each deep-merged over the previous. A missing override is skipped.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)

    if path is None:
        candidate = SETTINGS_DIR / "base.yaml"
        path = candidate if candidate.exists() else None
    if path is not None:
        config = deep_merge(config, load_yaml_file(Path(path)))
        logger.info("Loaded settings from %s", path)

    if override_path is None:
        override_path = SETTINGS_DIR / "local.yaml"
    if Path(override_path).exists():
        config = deep_merge(config, load_yaml_file(Path(override_path)))
        logger.info("Applied settings override %s", override_path)

    return config


def channel_settings(
    config: Mapping,
    persisted_rows: Optional[Iterable[Mapping]] = None,
) -> Mapping[str, ChannelSettings]:
    """
    Read-only channel settings, merged with defaults once.

    Precedence per field: persisted row (sales_channels_settings table),
    then the ``channels`` config section, then CHANNEL_DEFAULTS. Every name
    in CHANNELS is present; extra configured channels are kept.
    """
    configured = config.get("channels") or {}
    names = list(CHANNELS)
    for name in configured:
        if name not in names:
            names.append(name)

    persisted: Dict[str, Mapping] = {}
    for row in iter_rows(persisted_rows):
        name = text_field(row, "channel_name")
        if name:
            persisted[name] = row
            if name not in names:
                names.append(name)

    settings = {}
    for name in names:
        values = dict(configured.get(name) or {})
        values.update({k: v for k, v in persisted.get(name, {}).items() if v is not None})
        settings[name] = ChannelSettings.from_mapping(name, values)
    return MappingProxyType(settings)


def profit_split(config: Mapping) -> ProfitSplit:
    return ProfitSplit.from_config(config.get("profit_split"))


def business_timezone(config: Mapping) -> ZoneInfo:
    """Configured timezone; UTC when missing or unknown."""
    name = str(config.get("timezone") or "UTC")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, using UTC", name)
        return ZoneInfo("UTC")


def validate_config(config: Mapping) -> List[str]:
    """
    Validate settings structure and key constraints.

    Returns:
        List of error messages (empty when valid)
    """
    errors: List[str] = []

    name = str(config.get("timezone") or "UTC")
    try:
        ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        errors.append(f"timezone invalid: {name}")

    period = (config.get("report") or {}).get("default_period", DEFAULT_PERIOD)
    if period not in PERIODS:
        errors.append(f"report.default_period invalid: {period} (expected one of {PERIODS})")

    split_section = config.get("profit_split") or {}
    for key in ("producer_ratio", "seller_ratio"):
        if key in split_section and not is_number(split_section[key]):
            errors.append(f"profit_split.{key} must be a number: {split_section[key]!r}")
    errors.extend(validate_split(profit_split(config)))

    channels = config.get("channels") or {}
    if not isinstance(channels, dict):
        errors.append("channels must be a mapping of channel name to settings")
        return errors

    for channel, values in channels.items():
        if not isinstance(values, dict):
            errors.append(f"channels.{channel} must be a mapping")
            continue
        for key in values:
            if key not in CHANNEL_DEFAULTS:
                errors.append(f"channels.{channel}: unknown setting {key}")
        for key in ("promotion_cost_per_product", "promotion_cost_percent",
                    "packaging_cost", "administrative_base_cost"):
            if key in values:
                if not is_number(values[key]):
                    errors.append(f"channels.{channel}.{key} must be a number: {values[key]!r}")
                elif to_decimal(values[key]) < 0:
                    errors.append(f"channels.{channel}.{key} must be >= 0: {values[key]}")
        promo_type = values.get("promotion_cost_type", "fixed")
        if promo_type not in PROMOTION_TYPES:
            errors.append(f"channels.{channel}.promotion_cost_type invalid: {promo_type}")
        base = values.get("promotion_cost_percent_base", "gross")
        if base not in PERCENT_BASES:
            errors.append(f"channels.{channel}.promotion_cost_percent_base invalid: {base}")

    return errors
