from __future__ import annotations

import logging
import os


DEFAULT_CONFIG_PATH = "config.toml"
DEFAULT_SYSFS_ROOT = "/sys"
DEFAULT_WEB_HOST = "0.0.0.0"
DEFAULT_WEB_PORT = 9101

log = logging.getLogger("psu_exporter.config")


def resolve_config_path() -> str:
    return os.environ.get("PSU_EXPORTER_CONFIG", DEFAULT_CONFIG_PATH)


def resolve_sysfs_root() -> str | None:
    return os.environ.get("PSU_EXPORTER_SYSFS") or None


def resolve_web_host() -> str | None:
    return os.environ.get("PSU_EXPORTER_WEB_HOST") or None


def resolve_web_port() -> int | None:
    raw = os.environ.get("PSU_EXPORTER_WEB_PORT")
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        log.warning("ignoring PSU_EXPORTER_WEB_PORT=%r: not an integer", raw)
        return None


def sys_file_path(sysfs_root: str, *parts: str) -> str:
    return os.path.join(sysfs_root, *parts)
