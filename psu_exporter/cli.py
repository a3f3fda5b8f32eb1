import argparse
import json
import logging

from psu_exporter.collector.metrics import ListSink, metrics_to_dicts, render_text
from psu_exporter.collector.registry import build_registry
from psu_exporter.core.config import ConfigStore, with_sysfs_root
from psu_exporter.core.paths import (
    resolve_config_path,
    resolve_sysfs_root,
    resolve_web_host,
    resolve_web_port,
)

EX_OK = 0
EX_SCAN_FAILED = 1


def _print_json(payload) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _print_table(headers: list[str], rows: list[list[str]]) -> None:
    widths = [len(h) for h in headers]
    for row in rows:
        for idx, cell in enumerate(row):
            widths[idx] = max(widths[idx], len(str(cell)))
    fmt = "  ".join(f"{{:{w}}}" for w in widths)
    print(fmt.format(*headers))
    print(fmt.format(*["-" * w for w in widths]))
    for row in rows:
        print(fmt.format(*row))


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def cmd_web(args) -> int:
    from psu_exporter.api.web import create_app

    store = ConfigStore(args.config)
    cfg = store.load()
    _setup_logging(args.log_level or cfg.logging.level)

    app = create_app(config_path=args.config)
    host = args.host or resolve_web_host() or cfg.web.host
    port = args.port or resolve_web_port() or cfg.web.port
    logging.getLogger("psu_exporter.web").info(
        "serving %s on %s:%s", cfg.web.metrics_path, host, port
    )
    app.run(host=host, port=port, debug=False)
    return EX_OK


def cmd_scan(args) -> int:
    store = ConfigStore(args.config)
    cfg = store.load()
    _setup_logging(args.log_level or cfg.logging.level)
    cfg = with_sysfs_root(cfg, args.sysfs or resolve_sysfs_root())

    registry = build_registry(cfg)
    sink = ListSink()
    outcomes = registry.collect(sink)
    ok = all(outcome.ok for outcome in outcomes.values())

    if args.format == "json":
        _print_json(
            {
                "ok": ok,
                "collectors": {name: o.to_dict() for name, o in outcomes.items()},
                "metrics": metrics_to_dicts(sink),
            }
        )
    elif args.format == "table":
        _print_table(
            ["METRIC", "LABELS", "VALUE"],
            [
                [
                    m.name,
                    ",".join(f"{k}={v}" for k, v in m.labels),
                    f"{m.value:g}",
                ]
                for m in sink
            ],
        )
    else:
        print(render_text(sink), end="")
    return EX_OK if ok else EX_SCAN_FAILED


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="psu-exporter",
        description="Export sysfs power_supply status as Prometheus metrics",
    )
    p.add_argument(
        "--config",
        default=resolve_config_path(),
        help="Path to config.toml (default: config.toml)",
    )
    p.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: from config, INFO)",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    s = sub.add_parser("web", help="Serve metrics over HTTP")
    s.add_argument("--host", default=None)
    s.add_argument("--port", type=int, default=None)
    s.set_defaults(fn=cmd_web)

    s = sub.add_parser("scan", help="Run one collection and print the result")
    s.add_argument("--sysfs", default=None, help="sysfs mount point (default: /sys)")
    s.add_argument("--format", choices=["text", "json", "table"], default="text")
    s.set_defaults(fn=cmd_scan)

    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    return int(args.fn(args))


if __name__ == "__main__":
    raise SystemExit(main())
