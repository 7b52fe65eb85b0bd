"""
Exporter: process-wide wrapper around the RouterNode.

Holds the authentication tokens and poll interval, adapts the node's
snapshot to prometheus_client metric families, and renders the status page.
"""

from __future__ import annotations

import functools
import html
import logging
import time
from typing import Callable, Mapping, Optional
from urllib.parse import quote

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric

from gobgp_exporter.collectors import RouterClient
from gobgp_exporter.collectors.gobgp_client import GobgpApiClient, load_channel_credentials
from gobgp_exporter.descriptors import Descriptor, MetricKind
from gobgp_exporter.models import ExporterSettings
from gobgp_exporter.router_node import RouterNode

logger = logging.getLogger(__name__)

ANONYMOUS = "anonymous"
TOKEN_KEYS = ("x_token", "x-token", "X-Token")


def metric_family(descriptor: Descriptor) -> Metric:
    labels = list(descriptor.labels)
    if descriptor.kind is MetricKind.COUNTER:
        return CounterMetricFamily(descriptor.name, descriptor.help, labels=labels)
    return GaugeMetricFamily(descriptor.name, descriptor.help, labels=labels)


class SnapshotCollector:
    """prometheus_client collector serving a RouterNode's snapshot."""

    def __init__(self, node: RouterNode):
        self.node = node

    def describe(self) -> list[Metric]:
        return [metric_family(d) for d in self.node.describe()]

    def collect(self) -> list[Metric]:
        families: dict[str, Metric] = {}
        for metric in self.node.collect():
            name = metric.descriptor.name
            if name not in families:
                families[name] = metric_family(metric.descriptor)
            families[name].add_metric(list(metric.labels), metric.value)
        return list(families.values())


def grpc_client_factory(settings: ExporterSettings) -> Callable[[str, float], RouterClient]:
    credentials = None
    if settings.tls.enabled:
        credentials = load_channel_credentials(
            settings.tls.ca_path,
            settings.tls.client_cert_path,
            settings.tls.client_key_path,
        )
    return functools.partial(GobgpApiClient.connect, credentials=credentials,
                             server_name=settings.tls.server_name)


class Exporter:
    """Collects GoBGP data from one router and exports it in Prometheus format."""

    def __init__(self, node: RouterNode, timeout: float = 2):
        self.node = node
        self.timeout = timeout
        self.tokens: set[str] = set()
        self._poll_interval: float = 0
        self.registry = CollectorRegistry()
        self.registry.register(SnapshotCollector(node))

    @classmethod
    def from_settings(cls, settings: ExporterSettings,
                      client_factory: Optional[Callable[[str, float], RouterClient]] = None) -> "Exporter":
        if client_factory is None:
            client_factory = grpc_client_factory(settings)
        node = RouterNode.connect(
            settings.server_address,
            client_factory,
            timeout=settings.timeout,
            table_types=settings.enabled_table_types(),
            families=settings.enabled_families(),
        )
        exporter = cls(node, timeout=settings.timeout)
        exporter.set_poll_interval(settings.poll_interval)
        exporter.add_authentication_token(settings.auth_token)
        logger.debug("exporter for %s initialized", node.address)
        return exporter

    @property
    def address(self) -> str:
        return self.node.address

    def set_poll_interval(self, seconds: float) -> None:
        """Set the minimal polling interval; the node inherits it unless it has its own."""
        self._poll_interval = seconds
        if self.node.poll_interval == 0:
            self.node.poll_interval = seconds

    def get_poll_interval(self) -> float:
        return self._poll_interval

    def add_authentication_token(self, token: str) -> None:
        if not token:
            raise ValueError("invalid empty token")
        self.tokens.add(token)

    def authorize(self, headers: Mapping[str, str], query_params: Mapping[str, str],
                  client: str = "unknown") -> tuple[str, bool]:
        """Return (token, authorized) for a request's headers and query string."""
        if ANONYMOUS in self.tokens:
            return ANONYMOUS, True

        invalid_token = False
        for source in (headers, query_params):
            for key in TOKEN_KEYS:
                token = source.get(key)
                if not token:
                    continue
                if token in self.tokens:
                    return token, True
                invalid_token = True

        if invalid_token:
            logger.warning("unauthorized access from %s due to invalid token", client)
        else:
            logger.warning("unauthorized access from %s due to the lack of auth token", client)
        return "", False

    def scrape(self) -> bytes:
        """Run a (possibly throttled) collection and render the exposition text."""
        start = time.perf_counter()
        output = generate_latest(self.registry)
        logger.debug("completed scrape of %s in %.3fs", self.node.address, time.perf_counter() - start)
        return output

    def summary(self, metrics_path: str, token: str) -> str:
        """HTML status page with the node's last collection result."""
        node = self.node
        color = {"success": "lightgreen", "failure": "tomato"}.get(node.result, "lightgray")
        url = f"{metrics_path}?x-token={quote(token)}"
        return (
            "<html>"
            "<head><title>Prometheus Exporter for GoBGP</title></head>"
            "<body>"
            "<h1>Prometheus Exporter for GoBGP</h1>"
            "<table border='1'>"
            "<tr><th>Node</th><th>Last Result</th><th>Last Scrape</th><th>Metrics</th></tr>"
            "<tr>"
            f"<td>{html.escape(node.address)}</td>"
            f"<td style=\"background-color:{color}\">{html.escape(node.result)}</td>"
            f"<td>{html.escape(node.timestamp)}</td>"
            f"<td><a href='{html.escape(url, quote=True)}'>Metrics</a></td>"
            "</tr>"
            "</table>"
            "</body>"
            "</html>"
        )

    def close(self) -> None:
        self.node.close()
