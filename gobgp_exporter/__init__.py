"""Prometheus exporter for GoBGP routers."""

APP_NAME = "gobgp-exporter"
__version__ = "1.1.0"
