import logging

from flask import Flask, Response, jsonify, render_template_string

from psu_exporter import __version__
from psu_exporter.collector.metrics import EXPOSITION_CONTENT_TYPE, ListSink, render_text
from psu_exporter.collector.registry import build_registry
from psu_exporter.core.config import ConfigStore, with_sysfs_root
from psu_exporter.core.paths import resolve_sysfs_root

log = logging.getLogger("psu_exporter.web")

INDEX_HTML = """<!doctype html>
<html>
<head><title>Power Supply Exporter</title></head>
<body>
<h1>Power Supply Exporter</h1>
<p>version {{ version }}, reading {{ root }}</p>
<p><a href="{{ metrics_path }}">Metrics</a> | <a href="/health">Health</a></p>
</body>
</html>
"""


def create_app(config_path: str = "config.toml", sysfs_root: str | None = None) -> Flask:
    """
    Build the exporter app.

    The collector registry (and its catalog) is built once per config load
    and reused by every request. A catalog that fails to load on reload is
    logged and the previous registry stays in service.
    """
    app = Flask(__name__)
    store = ConfigStore(config_path)
    override = sysfs_root or resolve_sysfs_root()

    base = store.load()
    cfg = with_sysfs_root(base, override)
    state = {"base": base, "cfg": cfg, "registry": build_registry(cfg)}

    def current():
        base = store.get()
        if base is not state["base"]:
            cfg = with_sysfs_root(base, override)
            try:
                registry = build_registry(cfg)
            except Exception as exc:
                log.exception("config reload failed, keeping previous collectors: %s", exc)
            else:
                state["cfg"] = cfg
                state["registry"] = registry
            state["base"] = base
        return state["cfg"], state["registry"]

    def metrics():
        _, registry = current()
        sink = ListSink()
        outcomes = registry.collect(sink)
        failed = [name for name, outcome in outcomes.items() if not outcome.ok]
        if failed:
            log.warning("scrape finished with failed collectors: %s", ", ".join(failed))
        return Response(render_text(sink), content_type=EXPOSITION_CONTENT_TYPE)

    app.add_url_rule(cfg.web.metrics_path, "metrics", metrics, methods=["GET"])

    @app.get("/health")
    def health():
        cfg, registry = current()
        return jsonify(
            {
                "ok": True,
                "version": __version__,
                "power_supply_path": cfg.collector.resolved_power_supply_path(),
                "collectors": registry.enabled(),
            }
        )

    @app.get("/")
    def index():
        cfg, _ = current()
        return render_template_string(
            INDEX_HTML,
            version=__version__,
            root=cfg.collector.resolved_power_supply_path(),
            metrics_path=cfg.web.metrics_path,
        )

    return app
