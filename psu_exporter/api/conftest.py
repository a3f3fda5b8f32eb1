import pytest

from psu_exporter.api.web import create_app


@pytest.fixture()
def sysfs(tmp_path):
    root = tmp_path / "sys"
    ps = root / "class" / "power_supply"
    bat = ps / "BAT0"
    bat.mkdir(parents=True)
    (bat / "uevent").write_text(
        "POWER_SUPPLY_NAME=BAT0\n"
        "POWER_SUPPLY_STATUS=Discharging\n"
        "POWER_SUPPLY_CAPACITY=87\n"
        "POWER_SUPPLY_PRESENT=1\n",
        encoding="utf-8",
    )
    return root


@pytest.fixture()
def client(tmp_path, sysfs, monkeypatch):
    monkeypatch.delenv("PSU_EXPORTER_SYSFS", raising=False)
    app = create_app(config_path=str(tmp_path / "config.toml"), sysfs_root=str(sysfs))
    app.config["TESTING"] = True
    return app.test_client()
