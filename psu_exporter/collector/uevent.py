from __future__ import annotations

import os
from typing import Dict

UEVENT_FILE = "uevent"
DEFAULT_PREFIX = "POWER_SUPPLY_"


def uevent_path(device_dir: str) -> str:
    return os.path.join(device_dir, UEVENT_FILE)


def normalize_key(key: str, prefix: str = DEFAULT_PREFIX) -> str:
    if prefix and key.startswith(prefix):
        key = key[len(prefix):]
    return key.lower()


def parse_line(line: str, prefix: str = DEFAULT_PREFIX) -> tuple[str, str] | None:
    idx = line.find("=")
    if idx == -1:
        return None
    return normalize_key(line[:idx], prefix), line[idx + 1:]


def parse_uevent(device_dir: str, prefix: str = DEFAULT_PREFIX) -> Dict[str, str]:
    """
    Read <device_dir>/uevent into {lowercased key without prefix: raw value}.

    Lines without '=' are ignored, later duplicates overwrite earlier ones.
    OSError propagates if the file cannot be opened.
    """
    data: Dict[str, str] = {}
    with open(
        uevent_path(device_dir), encoding="utf-8", errors="replace", newline="\n"
    ) as fh:
        for raw in fh:
            line = raw[:-1] if raw.endswith("\n") else raw
            if line.endswith("\r"):
                line = line[:-1]
            parsed = parse_line(line, prefix)
            if parsed is None:
                continue
            key, value = parsed
            data[key] = value
    return data
