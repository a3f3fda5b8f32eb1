from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Iterable, List, Protocol, Tuple

EXPOSITION_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


class MetricType(Enum):
    UNTYPED = "untyped"
    GAUGE = "gauge"


@dataclass(frozen=True)
class Metric:
    name: str
    help: str
    metric_type: MetricType
    value: float
    labels: Tuple[Tuple[str, str], ...] = ()

    def label_dict(self) -> Dict[str, str]:
        return dict(self.labels)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "type": self.metric_type.value,
            "value": self.value,
            "labels": self.label_dict(),
        }


class MetricSink(Protocol):
    def emit(self, metric: Metric) -> None: ...


class ListSink:
    """Append-only sink that keeps metrics in emission order."""

    def __init__(self) -> None:
        self.metrics: List[Metric] = []

    def emit(self, metric: Metric) -> None:
        self.metrics.append(metric)

    def __len__(self) -> int:
        return len(self.metrics)

    def __iter__(self):
        return iter(self.metrics)


class CallbackSink:
    def __init__(self, fn: Callable[[Metric], None]) -> None:
        self._fn = fn

    def emit(self, metric: Metric) -> None:
        self._fn(metric)


def _escape_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def _escape_help(text: str) -> str:
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def format_value(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if float(value).is_integer() and abs(value) < 1e15:
        return str(int(value))
    return repr(float(value))


def format_sample(metric: Metric) -> str:
    if metric.labels:
        label_str = ",".join(
            f'{k}="{_escape_label_value(v)}"' for k, v in metric.labels
        )
        return f"{metric.name}{{{label_str}}} {format_value(metric.value)}"
    return f"{metric.name} {format_value(metric.value)}"


def render_text(metrics: Iterable[Metric]) -> str:
    """
    Render metrics in the Prometheus text exposition format.

    Samples of one metric name are grouped under a single HELP/TYPE header,
    groups appear in the order their names were first seen.
    """
    groups: Dict[str, List[Metric]] = {}
    for metric in metrics:
        groups.setdefault(metric.name, []).append(metric)

    lines: List[str] = []
    for name, samples in groups.items():
        first = samples[0]
        lines.append(f"# HELP {name} {_escape_help(first.help)}")
        lines.append(f"# TYPE {name} {first.metric_type.value}")
        lines.extend(format_sample(m) for m in samples)
    return "\n".join(lines) + "\n" if lines else ""


def metrics_to_dicts(metrics: Iterable[Metric]) -> List[Dict[str, Any]]:
    return [m.to_dict() for m in metrics]
