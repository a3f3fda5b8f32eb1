"""Power-supply exporter: turns sysfs power_supply uevent files into metrics."""

__version__ = "0.1.0"
