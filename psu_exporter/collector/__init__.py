"""Power-supply collector: uevent parsing, attribute catalog, metric mapping."""

from .catalog import DEFAULT_CATALOG, Catalog, ValueDesc, load_catalog
from .errors import NameMissingError
from .metrics import ListSink, Metric, MetricType, render_text
from .power_supply import PowerSupplyCollector, ScanOutcome
from .registry import CollectorRegistry, build_registry
from .uevent import parse_uevent

__all__ = [
    "Catalog",
    "CollectorRegistry",
    "DEFAULT_CATALOG",
    "ListSink",
    "Metric",
    "MetricType",
    "NameMissingError",
    "PowerSupplyCollector",
    "ScanOutcome",
    "ValueDesc",
    "build_registry",
    "load_catalog",
    "parse_uevent",
    "render_text",
]
