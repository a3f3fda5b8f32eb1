from __future__ import annotations

import dataclasses
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

from .paths import DEFAULT_SYSFS_ROOT, DEFAULT_WEB_HOST, DEFAULT_WEB_PORT, sys_file_path


def _load_toml(path: str) -> Dict[str, Any]:
    p = Path(path)
    if not p.exists():
        return {}
    try:
        import tomllib  # py>=3.11

        return tomllib.loads(p.read_text(encoding="utf-8"))
    except ModuleNotFoundError:
        import tomli  # type: ignore

        return tomli.loads(p.read_text(encoding="utf-8"))


@dataclass
class CollectorCfg:
    sysfs_root: str = DEFAULT_SYSFS_ROOT
    power_supply_path: str = ""
    prefix: str = "POWER_SUPPLY_"
    catalog_path: str = ""
    enabled: bool = True

    def resolved_power_supply_path(self) -> str:
        if self.power_supply_path:
            return self.power_supply_path
        return sys_file_path(self.sysfs_root, "class", "power_supply")


@dataclass
class WebCfg:
    host: str = DEFAULT_WEB_HOST
    port: int = DEFAULT_WEB_PORT
    metrics_path: str = "/metrics"


@dataclass
class LoggingCfg:
    level: str = "INFO"


@dataclass
class AppConfig:
    collector: CollectorCfg = field(default_factory=CollectorCfg)
    web: WebCfg = field(default_factory=WebCfg)
    logging: LoggingCfg = field(default_factory=LoggingCfg)


def with_sysfs_root(cfg: AppConfig, sysfs_root: str | None) -> AppConfig:
    """Return cfg with the sysfs root replaced, if one is given."""
    if not sysfs_root:
        return cfg
    return dataclasses.replace(
        cfg, collector=dataclasses.replace(cfg.collector, sysfs_root=sysfs_root)
    )


class ConfigStore:
    """
    Loads config.toml, caches it, reloads on demand or when the mtime changes.
    """

    def __init__(self, path: str = "config.toml"):
        self.path = path
        self._mtime: float = 0.0
        self._cfg: AppConfig = self._from_dict({})

    def _from_dict(self, d: Dict[str, Any]) -> AppConfig:
        collector = d.get("collector", {}) if isinstance(d.get("collector"), dict) else {}
        web = d.get("web", {}) if isinstance(d.get("web"), dict) else {}
        logging_ = d.get("logging", {}) if isinstance(d.get("logging"), dict) else {}

        metrics_path = str(web.get("metrics_path", "/metrics")) or "/metrics"
        if not metrics_path.startswith("/"):
            metrics_path = "/" + metrics_path

        return AppConfig(
            collector=CollectorCfg(
                sysfs_root=str(collector.get("sysfs_root", DEFAULT_SYSFS_ROOT)),
                power_supply_path=str(collector.get("power_supply_path", "")),
                prefix=str(collector.get("prefix", "POWER_SUPPLY_")),
                catalog_path=str(collector.get("catalog_path", "")),
                enabled=bool(collector.get("enabled", True)),
            ),
            web=WebCfg(
                host=str(web.get("host", DEFAULT_WEB_HOST)),
                port=int(web.get("port", DEFAULT_WEB_PORT)),
                metrics_path=metrics_path,
            ),
            logging=LoggingCfg(
                level=str(logging_.get("level", "INFO")).upper(),
            ),
        )

    def load(self) -> AppConfig:
        d = _load_toml(self.path)
        self._cfg = self._from_dict(d)
        try:
            self._mtime = Path(self.path).stat().st_mtime
        except OSError:
            self._mtime = time.time()
        return self._cfg

    def get(self) -> AppConfig:
        p = Path(self.path)
        if p.exists():
            m = p.stat().st_mtime
            if m > self._mtime:
                self.load()
        return self._cfg

    def reload(self) -> AppConfig:
        return self.load()
