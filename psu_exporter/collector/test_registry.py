import pytest

from psu_exporter.collector.metrics import ListSink, Metric, MetricType
from psu_exporter.collector.power_supply import ScanOutcome
from psu_exporter.collector.registry import (
    DURATION_METRIC,
    SUCCESS_METRIC,
    CollectorRegistry,
    build_registry,
)
from psu_exporter.core.config import AppConfig, CollectorCfg


class _Static:
    def __init__(self, outcome: ScanOutcome) -> None:
        self.outcome = outcome
        self.calls = 0

    def update(self, sink):
        self.calls += 1
        sink.emit(
            Metric(name="x", help="x", metric_type=MetricType.GAUGE, value=1.0)
        )
        return self.outcome


class _Boom:
    def update(self, sink):
        raise RuntimeError("boom")


def _success(sink: ListSink) -> dict:
    return {
        m.label_dict()["collector"]: m.value
        for m in sink.metrics
        if m.name == SUCCESS_METRIC
    }


def test_register_rejects_duplicates():
    reg = CollectorRegistry()
    reg.register("a", _Static(ScanOutcome()))
    with pytest.raises(ValueError):
        reg.register("a", _Static(ScanOutcome()))
    with pytest.raises(ValueError):
        reg.register("", _Static(ScanOutcome()))


def test_collect_emits_scrape_metrics():
    reg = CollectorRegistry()
    reg.register("good", _Static(ScanOutcome(devices=1)))
    reg.register("bad", _Static(ScanOutcome(devices=2, failed=1, error=OSError("x"))))
    sink = ListSink()
    outcomes = reg.collect(sink)

    assert outcomes["good"].ok
    assert not outcomes["bad"].ok
    assert _success(sink) == {"good": 1.0, "bad": 0.0}
    durations = [m for m in sink.metrics if m.name == DURATION_METRIC]
    assert [m.label_dict()["collector"] for m in durations] == ["good", "bad"]
    assert all(m.value >= 0 for m in durations)
    assert [m.name for m in sink.metrics[:2]] == ["x", "x"]


def test_disabled_collector_is_skipped():
    reg = CollectorRegistry()
    off = _Static(ScanOutcome())
    reg.register("off", off, enabled=False)
    sink = ListSink()
    assert reg.collect(sink) == {}
    assert off.calls == 0
    assert reg.names() == ["off"]
    assert reg.enabled() == []
    assert reg.get("off") is off
    assert reg.get("missing") is None


def test_raising_collector_does_not_stop_others():
    reg = CollectorRegistry()
    reg.register("boom", _Boom())
    reg.register("ok", _Static(ScanOutcome()))
    sink = ListSink()
    outcomes = reg.collect(sink)
    assert isinstance(outcomes["boom"].error, RuntimeError)
    assert _success(sink) == {"boom": 0.0, "ok": 1.0}


def test_build_registry_wires_power_supply(tmp_path):
    dev = tmp_path / "class" / "power_supply" / "AC"
    dev.mkdir(parents=True)
    (dev / "uevent").write_text("POWER_SUPPLY_NAME=AC\nPOWER_SUPPLY_ONLINE=1\n")
    cfg = AppConfig(collector=CollectorCfg(sysfs_root=str(tmp_path)))

    reg = build_registry(cfg)
    assert reg.names() == ["power_supply"]
    sink = ListSink()
    outcomes = reg.collect(sink)
    assert outcomes["power_supply"].ok
    assert [m.name for m in sink.metrics] == [
        "node_power_supply_info",
        "node_power_supply_online",
        DURATION_METRIC,
        SUCCESS_METRIC,
    ]
