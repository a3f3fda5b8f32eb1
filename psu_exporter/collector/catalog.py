from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple

import yaml

from .metrics import MetricType
from .uevent import DEFAULT_PREFIX, normalize_key

log = logging.getLogger("psu_exporter.collector")

NAMESPACE = "node_power_supply"
DEVICE_LABEL = "power_supply"


@dataclass(frozen=True)
class ValueDesc:
    key: str
    metric: str
    help: str
    metric_type: MetricType = MetricType.GAUGE


def make_value_desc(key: str, help: str, namespace: str = NAMESPACE) -> ValueDesc:
    return ValueDesc(key=key, metric=f"{namespace}_{key}", help=help)


INFO_KEYS: Tuple[str, ...] = (
    DEVICE_LABEL,
    "status",
    "technology",
    "capacity_level",
    "model_name",
    "manufacturer",
    "serial_number",
)

VALUE_DESCS: Tuple[ValueDesc, ...] = (
    make_value_desc("present", "Whether the power supply is present (0/1)."),
    make_value_desc("online", "Whether the power supply is online (0/1)."),
    make_value_desc("cycle_count", "Charge cycles reported by the battery."),
    make_value_desc("voltage_min_design", "Minimum design voltage, as reported."),
    make_value_desc("voltage_now", "Instantaneous voltage, as reported."),
    make_value_desc("current_now", "Instantaneous current, as reported."),
    make_value_desc("charge_full_design", "Design full charge, as reported."),
    make_value_desc("charge_full", "Last full charge, as reported."),
    make_value_desc("charge_now", "Current charge, as reported."),
    make_value_desc("capacity", "Capacity in percent."),
)


@dataclass(frozen=True)
class Catalog:
    """
    Immutable attribute tables used by the power-supply collector.

    info_keys become the label names of the info metric, in order; the
    first one is always filled with the device name. value_descs are
    emitted as one gauge each, in order.
    """

    info_keys: Tuple[str, ...] = INFO_KEYS
    value_descs: Tuple[ValueDesc, ...] = VALUE_DESCS
    namespace: str = NAMESPACE
    label: str = DEVICE_LABEL

    @property
    def info_metric(self) -> str:
        return f"{self.namespace}_info"


DEFAULT_CATALOG = Catalog()


def _dedupe(keys) -> Tuple[str, ...]:
    seen: Dict[str, None] = {}
    for key in keys:
        seen.setdefault(key, None)
    return tuple(seen)


def _value_desc_from_dict(d: Dict[str, Any], namespace: str, prefix: str) -> ValueDesc:
    key = normalize_key(str(d["key"]), prefix)
    return ValueDesc(
        key=key,
        metric=str(d.get("metric") or f"{namespace}_{key}"),
        help=str(d.get("help", "")),
    )


def catalog_from_dict(d: Dict[str, Any], prefix: str = DEFAULT_PREFIX) -> Catalog:
    """
    Build a Catalog from a parsed YAML mapping.

    Keys are normalized like uevent keys (prefix stripped, lowercased).
    Repeated info keys, value keys and metric names keep their first entry.
    """
    namespace = str(d.get("namespace") or NAMESPACE)
    label = str(d.get("label") or DEVICE_LABEL).lower()

    raw_info = d.get("info_keys")
    if isinstance(raw_info, list):
        info_keys = (label,) + tuple(
            k for k in (normalize_key(str(k), prefix) for k in raw_info) if k != label
        )
    else:
        info_keys = (label,) + INFO_KEYS[1:]
    info_keys = _dedupe(info_keys)

    raw_values = d.get("values")
    if isinstance(raw_values, list):
        parsed = [
            _value_desc_from_dict(v, namespace, prefix)
            for v in raw_values
            if isinstance(v, dict) and v.get("key")
        ]
    elif namespace != NAMESPACE:
        parsed = [make_value_desc(v.key, v.help, namespace) for v in VALUE_DESCS]
    else:
        parsed = list(VALUE_DESCS)

    value_descs = []
    seen_keys = set()
    seen_metrics = {f"{namespace}_info"}
    for vd in parsed:
        if vd.key in seen_keys or vd.metric in seen_metrics:
            log.warning("catalog: dropping duplicate value %s (%s)", vd.key, vd.metric)
            continue
        seen_keys.add(vd.key)
        seen_metrics.add(vd.metric)
        value_descs.append(vd)

    return Catalog(
        info_keys=info_keys,
        value_descs=tuple(value_descs),
        namespace=namespace,
        label=label,
    )


def load_catalog(path: str, prefix: str = DEFAULT_PREFIX) -> Catalog:
    p = Path(path)
    if not path or not p.exists():
        return DEFAULT_CATALOG
    data = yaml.safe_load(p.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        return DEFAULT_CATALOG
    return catalog_from_dict(data, prefix)
