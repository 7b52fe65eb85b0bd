"""GoBGP Exporter: HTTP scrape endpoint and command-line entry point."""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Optional

import uvicorn
import yaml
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import HTMLResponse, Response
from prometheus_client import CONTENT_TYPE_LATEST
from pydantic import ValidationError

from gobgp_exporter import APP_NAME, __version__
from gobgp_exporter.exporter import Exporter
from gobgp_exporter.metric_table import get_metrics_table
from gobgp_exporter.models import ExporterSettings
from gobgp_exporter.router_node import ExporterError

logger = logging.getLogger(__name__)

NO_CACHE = "no-cache, max-age=0, must-revalidate, no-store"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _client(request: Request) -> str:
    return f"{request.client.host}:{request.client.port}" if request.client else "unknown"


def create_app(exporter: Exporter, metrics_path: str = "/metrics") -> FastAPI:
    app = FastAPI(title="GoBGP Exporter", description="Prometheus exporter for GoBGP", version=__version__)
    app.state.exporter = exporter

    # Plain def handlers: FastAPI runs each scrape on its own worker thread.
    @app.get(metrics_path)
    def scrape(request: Request):
        _, authorized = exporter.authorize(request.headers, request.query_params, _client(request))
        if not authorized:
            raise HTTPException(403, "Forbidden")
        return Response(content=exporter.scrape(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/", response_class=HTMLResponse)
    def summary(request: Request):
        token, authorized = exporter.authorize(request.headers, request.query_params, _client(request))
        if not authorized:
            raise HTTPException(403, "Forbidden", headers={"Cache-Control": NO_CACHE})
        return HTMLResponse(exporter.summary(metrics_path, token), headers={"Cache-Control": NO_CACHE})

    return app


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="Prometheus Exporter for GoBGP",
        epilog="Documentation: https://github.com/greenpau/gobgp_exporter/",
    )
    parser.add_argument("--config", help="YAML file with exporter settings.")
    parser.add_argument("--web.listen-address", dest="listen_address",
                        help="Address to listen on for web interface and telemetry (default :9474).")
    parser.add_argument("--web.telemetry-path", dest="metrics_path",
                        help="Path under which to expose metrics (default /metrics).")
    parser.add_argument("--gobgp.address", dest="server_address",
                        help="gRPC API address of GoBGP server (default 127.0.0.1:50051).")
    parser.add_argument("--gobgp.timeout", dest="timeout", type=float,
                        help="Timeout on gRPC requests to a GoBGP server (default 2).")
    parser.add_argument("--gobgp.poll-interval", dest="poll_interval", type=float,
                        help="The minimum interval (in seconds) between collections from a GoBGP server (default 15).")
    parser.add_argument("--gobgp.tls", dest="tls_enabled", action="store_true", default=None,
                        help="Whether to enable TLS for gRPC API access.")
    parser.add_argument("--gobgp.tls-ca", dest="tls_ca_path",
                        help="Optional path to PEM file with CA certificates to be trusted for gRPC API access.")
    parser.add_argument("--gobgp.tls-server-name", dest="tls_server_name",
                        help="Optional hostname to verify API server as.")
    parser.add_argument("--gobgp.tls-client-cert", dest="tls_client_cert_path",
                        help="Optional path to PEM file with client certificate to be used for client authentication.")
    parser.add_argument("--gobgp.tls-client-key", dest="tls_client_key_path",
                        help="Optional path to PEM file with client key to be used for client authentication.")
    parser.add_argument("--auth.token", dest="auth_token",
                        help="The X-Token for accessing the exporter itself (default anonymous).")
    parser.add_argument("--log.level", dest="log_level", help="Logging severity level (default info).")
    parser.add_argument("--metrics", action="store_true", help="Display available metrics.")
    parser.add_argument("--version", action="store_true", help="Version information.")
    return parser


_TLS_ARGS = {
    "tls_enabled": "enabled",
    "tls_ca_path": "ca_path",
    "tls_server_name": "server_name",
    "tls_client_cert_path": "client_cert_path",
    "tls_client_key_path": "client_key_path",
}
_SETTINGS_ARGS = ("listen_address", "metrics_path", "server_address", "timeout",
                  "poll_interval", "auth_token", "log_level")


def load_settings(args: argparse.Namespace) -> ExporterSettings:
    """Merge the optional YAML file with flags that were given on the command line."""
    overrides: dict[str, Any] = {
        key: getattr(args, key) for key in _SETTINGS_ARGS if getattr(args, key) is not None
    }
    tls = {field: getattr(args, arg) for arg, field in _TLS_ARGS.items() if getattr(args, arg) is not None}
    if tls:
        overrides["tls"] = tls

    if args.config:
        return ExporterSettings.from_yaml(args.config, **overrides)
    return ExporterSettings.model_validate(overrides)


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if args.version:
        print(f"{APP_NAME} {__version__}")
        return 0
    if args.metrics:
        print(get_metrics_table())
        return 0

    try:
        settings = load_settings(args)
    except (ValidationError, ValueError, OSError, yaml.YAMLError) as e:
        print(f"{APP_NAME}: invalid configuration: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(level=getattr(logging, settings.log_level.upper()), format=LOG_FORMAT)
    logger.info("Starting exporter %s, version %s", APP_NAME, __version__)

    try:
        exporter = Exporter.from_settings(settings)
    except (ExporterError, ValueError, OSError) as e:
        logger.error("failed to init properly: %s", e)
        return 1

    logger.info("exporter configuration: min_scrape_interval=%s", exporter.get_poll_interval())
    app = create_app(exporter, settings.metrics_path)

    logger.info("listen on %s", settings.listen_address)
    try:
        uvicorn.run(app, host=settings.listen_host, port=settings.listen_port, log_level=settings.log_level)
    finally:
        exporter.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
