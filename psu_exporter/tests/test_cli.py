from __future__ import annotations

import json
from pathlib import Path

import psu_exporter.cli as cli


def _sysfs(tmp_path: Path) -> Path:
    root = tmp_path / "sys"
    ps = root / "class" / "power_supply"
    for name, lines in {
        "AC": ["POWER_SUPPLY_NAME=AC", "POWER_SUPPLY_ONLINE=1"],
        "BAT0": [
            "POWER_SUPPLY_NAME=BAT0",
            "POWER_SUPPLY_STATUS=Discharging",
            "POWER_SUPPLY_CAPACITY=87",
            "POWER_SUPPLY_PRESENT=1",
        ],
    }.items():
        dev = ps / name
        dev.mkdir(parents=True)
        (dev / "uevent").write_text("\n".join(lines) + "\n", encoding="utf-8")
    return root


def _base_args(tmp_path: Path) -> list[str]:
    return ["--config", str(tmp_path / "config.toml")]


def test_scan_text(tmp_path, capsys) -> None:
    root = _sysfs(tmp_path)
    exit_code = cli.main(_base_args(tmp_path) + ["scan", "--sysfs", str(root)])
    assert exit_code == cli.EX_OK
    out = capsys.readouterr().out
    assert "# TYPE node_power_supply_info untyped" in out
    assert 'node_power_supply_online{power_supply="AC"} 1' in out
    assert 'node_power_supply_capacity{power_supply="BAT0"} 87' in out
    assert out.index('power_supply="AC"') < out.index('power_supply="BAT0"')


def test_scan_json(tmp_path, capsys) -> None:
    root = _sysfs(tmp_path)
    exit_code = cli.main(
        _base_args(tmp_path) + ["scan", "--sysfs", str(root), "--format", "json"]
    )
    assert exit_code == cli.EX_OK
    payload = json.loads(capsys.readouterr().out)
    assert payload["ok"] is True
    assert payload["collectors"]["power_supply"]["devices"] == 2
    names = [m["name"] for m in payload["metrics"]]
    assert names[:3] == [
        "node_power_supply_info",
        "node_power_supply_online",
        "node_power_supply_info",
    ]


def test_scan_table(tmp_path, capsys) -> None:
    root = _sysfs(tmp_path)
    exit_code = cli.main(
        _base_args(tmp_path) + ["scan", "--sysfs", str(root), "--format", "table"]
    )
    assert exit_code == cli.EX_OK
    out = capsys.readouterr().out.splitlines()
    assert out[0].split() == ["METRIC", "LABELS", "VALUE"]
    assert any("node_power_supply_capacity" in line and "87" in line for line in out)


def test_scan_failure_exit_code(tmp_path, capsys) -> None:
    root = _sysfs(tmp_path)
    (root / "class" / "power_supply" / "BAT1").mkdir()
    exit_code = cli.main(
        _base_args(tmp_path) + ["scan", "--sysfs", str(root), "--format", "json"]
    )
    assert exit_code == cli.EX_SCAN_FAILED
    payload = json.loads(capsys.readouterr().out)
    assert payload["ok"] is False
    ps = payload["collectors"]["power_supply"]
    assert ps["failed"] == 1
    assert ps["error"]
    assert any(m["labels"].get("power_supply") == "BAT0" for m in payload["metrics"])


def test_scan_missing_root(tmp_path, capsys) -> None:
    exit_code = cli.main(
        _base_args(tmp_path) + ["scan", "--sysfs", str(tmp_path / "nowhere")]
    )
    assert exit_code == cli.EX_SCAN_FAILED
    out = capsys.readouterr().out
    assert 'node_scrape_collector_success{collector="power_supply"} 0' in out
    assert "node_power_supply_info" not in out


def test_scan_uses_sysfs_env(tmp_path, capsys, monkeypatch) -> None:
    root = _sysfs(tmp_path)
    monkeypatch.setenv("PSU_EXPORTER_SYSFS", str(root))
    assert cli.main(_base_args(tmp_path) + ["scan"]) == cli.EX_OK
    assert "node_power_supply_online" in capsys.readouterr().out
