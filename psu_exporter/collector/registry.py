from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol

from .metrics import Metric, MetricSink, MetricType
from .power_supply import ScanOutcome

log = logging.getLogger("psu_exporter.registry")

DURATION_METRIC = "node_scrape_collector_duration_seconds"
SUCCESS_METRIC = "node_scrape_collector_success"


class Collector(Protocol):
    def update(self, sink: MetricSink) -> ScanOutcome: ...


@dataclass
class _Entry:
    name: str
    collector: Collector
    enabled: bool = True


class CollectorRegistry:
    def __init__(self) -> None:
        self._entries: Dict[str, _Entry] = {}

    def register(self, name: str, collector: Collector, enabled: bool = True) -> None:
        if not name:
            raise ValueError("collector name missing")
        if name in self._entries:
            raise ValueError(f"collector {name} already registered")
        self._entries[name] = _Entry(name=name, collector=collector, enabled=enabled)

    def names(self) -> List[str]:
        return list(self._entries)

    def get(self, name: str) -> Optional[Collector]:
        entry = self._entries.get(name)
        return entry.collector if entry else None

    def enabled(self) -> List[str]:
        return [e.name for e in self._entries.values() if e.enabled]

    def collect(self, sink: MetricSink) -> Dict[str, ScanOutcome]:
        """
        Run every enabled collector, then emit one duration and one success
        gauge per collector.
        """
        outcomes: Dict[str, ScanOutcome] = {}
        durations: Dict[str, float] = {}
        for name in self.enabled():
            collector = self._entries[name].collector
            start = time.monotonic()
            try:
                outcome = collector.update(sink)
            except Exception as exc:
                log.exception("collector %s failed: %s", name, exc)
                outcome = ScanOutcome(error=exc)
            durations[name] = time.monotonic() - start
            if not outcome.ok:
                log.error("collector %s failed after %.4fs: %s", name, durations[name], outcome.error)
            else:
                log.debug("collector %s succeeded after %.4fs", name, durations[name])
            outcomes[name] = outcome

        for name, duration in durations.items():
            sink.emit(
                Metric(
                    name=DURATION_METRIC,
                    help="Duration of a collector scrape.",
                    metric_type=MetricType.GAUGE,
                    value=duration,
                    labels=(("collector", name),),
                )
            )
        for name, outcome in outcomes.items():
            sink.emit(
                Metric(
                    name=SUCCESS_METRIC,
                    help="Whether a collector succeeded.",
                    metric_type=MetricType.GAUGE,
                    value=1.0 if outcome.ok else 0.0,
                    labels=(("collector", name),),
                )
            )
        return outcomes


def build_registry(cfg) -> CollectorRegistry:
    from .catalog import load_catalog
    from .power_supply import PowerSupplyCollector

    ccfg = cfg.collector
    registry = CollectorRegistry()
    registry.register(
        PowerSupplyCollector.name,
        PowerSupplyCollector(
            root=ccfg.resolved_power_supply_path(),
            catalog=load_catalog(ccfg.catalog_path, ccfg.prefix),
            prefix=ccfg.prefix,
        ),
        enabled=ccfg.enabled,
    )
    return registry
