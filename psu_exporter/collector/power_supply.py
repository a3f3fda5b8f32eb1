from __future__ import annotations

import logging
import math
import os
import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .catalog import DEFAULT_CATALOG, Catalog
from .errors import NameMissingError
from .metrics import ListSink, Metric, MetricSink, MetricType
from .uevent import DEFAULT_PREFIX, parse_uevent, uevent_path

log = logging.getLogger("psu_exporter.collector")

_DECIMAL_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

INFO_HELP = "Informational labels of a power supply, value is always 1."


def parse_number(raw: str) -> Optional[float]:
    """Return raw as a finite float, or None if it is not a plain decimal."""
    if not _DECIMAL_RE.fullmatch(raw):
        return None
    value = float(raw)
    if not math.isfinite(value):
        return None
    return value


@dataclass
class ScanOutcome:
    devices: int = 0
    failed: int = 0
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def raise_for_error(self) -> None:
        if self.error is not None:
            raise self.error

    def to_dict(self) -> Dict[str, object]:
        return {
            "ok": self.ok,
            "devices": self.devices,
            "failed": self.failed,
            "error": str(self.error) if self.error is not None else None,
        }


class PowerSupplyCollector:
    name = "power_supply"

    def __init__(
        self,
        root: str,
        catalog: Catalog = DEFAULT_CATALOG,
        prefix: str = DEFAULT_PREFIX,
    ) -> None:
        self.root = root
        self.catalog = catalog
        self.prefix = prefix

    def device_metrics(self, device_dir: str) -> List[Metric]:
        """
        Build every metric for one device directory.

        Raises OSError if the uevent file is unreadable and NameMissingError
        if it has no NAME attribute.
        """
        data = parse_uevent(device_dir, self.prefix)
        name = data.get("name")
        if name is None:
            raise NameMissingError(uevent_path(device_dir))

        cat = self.catalog
        info_labels: List[Tuple[str, str]] = []
        for idx, key in enumerate(cat.info_keys):
            value = name if idx == 0 else data.get(key, "")
            info_labels.append((key, value))

        out = [
            Metric(
                name=cat.info_metric,
                help=INFO_HELP,
                metric_type=MetricType.UNTYPED,
                value=1.0,
                labels=tuple(info_labels),
            )
        ]

        for vd in cat.value_descs:
            raw = data.get(vd.key)
            if raw is None:
                continue
            value = parse_number(raw)
            if value is None:
                log.debug("%s: skipping non-numeric %s=%r", name, vd.key, raw)
                continue
            out.append(
                Metric(
                    name=vd.metric,
                    help=vd.help,
                    metric_type=vd.metric_type,
                    value=value,
                    labels=((cat.label, name),),
                )
            )
        return out

    def update_device(self, sink: MetricSink, device_dir: str) -> int:
        metrics = self.device_metrics(device_dir)
        for metric in metrics:
            sink.emit(metric)
        return len(metrics)

    def update(self, sink: MetricSink) -> ScanOutcome:
        """
        Scan every device under root, emitting metrics as each device is done.

        A device that fails is logged and skipped; the outcome keeps only the
        last error. An unlistable root fails the whole scan with zero devices.
        """
        outcome = ScanOutcome()
        try:
            entries = sorted(os.listdir(self.root))
        except OSError as exc:
            log.error("cannot list %s: %s", self.root, exc)
            outcome.error = exc
            return outcome

        for entry in entries:
            outcome.devices += 1
            device_dir = os.path.join(self.root, entry)
            try:
                self.update_device(sink, device_dir)
            except (OSError, NameMissingError) as exc:
                log.warning("power supply %s: %s", entry, exc)
                outcome.failed += 1
                outcome.error = exc
        return outcome

    def collect(self) -> Tuple[List[Metric], ScanOutcome]:
        sink = ListSink()
        outcome = self.update(sink)
        return sink.metrics, outcome
