"""
RouterNode: poll, cache and serve metrics for one GoBGP router.

A collection cycle runs under the node lock, so at most one cycle is in
flight and readers only ever see a complete snapshot. Cycles are throttled:
within `poll_interval` seconds of the previous cycle, callers get the cached
snapshot and the router is not queried. The error counter has its own lock
so the RIB and peer collectors can count failures while the cycle lock is held.
"""

from __future__ import annotations

import ipaddress
import logging
import re
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional

from gobgp_exporter.collectors import RouterClient
from gobgp_exporter.collectors.families import (
    ADDRESS_FAMILIES,
    SUPPORTED_TABLE_TYPES,
    AddressFamily,
    TableType,
)
from gobgp_exporter.collectors.peers import PeerCollector
from gobgp_exporter.collectors.rib import RibCollector
from gobgp_exporter.descriptors import (
    DESCRIPTORS,
    ROUTER_ERRORS,
    ROUTER_ID,
    ROUTER_LOCAL_ASN,
    ROUTER_NEXT_POLL,
    ROUTER_SCRAPE_TIME,
    ROUTER_UP,
    Descriptor,
    DescriptorRegistry,
    MetricInstance,
)

logger = logging.getLogger(__name__)

MIN_PORT = 1024
MAX_PORT = 65535
DNS_SCHEME = "dns://"

RESULT_UNKNOWN = "unknown"
RESULT_SUCCESS = "success"
RESULT_FAILURE = "failure"

_PORT_RE = re.compile(r"[0-9]+")
_HOSTNAME_RE = re.compile(
    r"(?=.{1,253}\.?$)[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?"
    r"(?:\.[A-Za-z0-9](?:[A-Za-z0-9-]{0,61}[A-Za-z0-9])?)*\.?"
)


class ExporterError(Exception):
    """Base class for errors that prevent the exporter from starting."""


class InvalidAddressError(ExporterError, ValueError):
    pass


class RouterConnectionError(ExporterError):
    pass


def _is_ip(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


def split_host_port(address: str) -> tuple[str, str]:
    """Split `host:port` or `[ipv6]:port`."""
    if address.startswith("["):
        end = address.find("]")
        if end < 0:
            raise InvalidAddressError(f"missing ']' in address {address}")
        host, rest = address[1:end], address[end + 1:]
        if not rest.startswith(":"):
            raise InvalidAddressError(f"missing port in address {address}")
        return host, rest[1:]

    host, sep, port = address.rpartition(":")
    if not sep:
        raise InvalidAddressError(f"missing port in address {address}")
    if ":" in host:
        raise InvalidAddressError(f"too many colons in address {address}")
    return host, port


def validate_address(address: str) -> tuple[str, int]:
    """Check a GoBGP API address and return its host and port.

    Accepted forms are `ip:port`, `[ipv6]:port` and `dns://[authority]/hostname:port`.
    The port must be in the 1024-65535 range.
    """
    if not address:
        raise InvalidAddressError("empty address")

    if address.startswith(DNS_SCHEME):
        target = address[len(DNS_SCHEME):].rpartition("/")[2]
        host, port = split_host_port(target)
        if not (_is_ip(host) or _HOSTNAME_RE.fullmatch(host)):
            raise InvalidAddressError(f"invalid hostname in {address}")
    else:
        host, port = split_host_port(address)
        if not _is_ip(host):
            raise InvalidAddressError(f"invalid IP address in {address}")

    if not _PORT_RE.fullmatch(port) or str(int(port)) != port:
        raise InvalidAddressError(f"invalid port in {address}")
    port_number = int(port)
    if not MIN_PORT <= port_number <= MAX_PORT:
        raise InvalidAddressError(f"invalid port in {address}, expected range {MIN_PORT}-{MAX_PORT}")

    logger.debug("valid address %s: host=%s port=%d", address, host, port_number)
    return host, port_number


class RouterNode:
    """An instance of a GoBGP router and its latest metric snapshot."""

    def __init__(self, address: str, client: RouterClient, poll_interval: float = 0,
                 table_types: Iterable[TableType] = SUPPORTED_TABLE_TYPES,
                 families: Iterable[AddressFamily] = ADDRESS_FAMILIES.values(),
                 registry: DescriptorRegistry = DESCRIPTORS,
                 clock: Callable[[], float] = time.time):
        validate_address(address)
        self._address = address
        self.client = client
        self.poll_interval = poll_interval
        self.registry = registry
        self._clock = clock

        self._lock = threading.Lock()
        self._errors_lock = threading.Lock()
        self._errors = 0

        self._connected = False
        self._router_id = ""
        self._local_asn = 0
        self._next_collection_at = 0.0
        self._result = RESULT_UNKNOWN
        self._timestamp = RESULT_UNKNOWN
        self._snapshot: tuple[MetricInstance, ...] = ()

        self._rib = RibCollector(client, self.increment_error_counter, table_types, families)
        self._peers = PeerCollector(client, self.increment_error_counter)

    @classmethod
    def connect(cls, address: str, client_factory: Callable[[str, float], RouterClient],
                timeout: float = 2, **kwargs) -> "RouterNode":
        """Validate the address, dial the router and build a node.

        Fails fast: an invalid address raises InvalidAddressError before any
        dialing, an unreachable router raises RouterConnectionError.
        """
        validate_address(address)
        try:
            client = client_factory(address, timeout)
        except Exception as e:
            raise RouterConnectionError(f"failed to connect to GoBGP at {address}: {e}") from e
        return cls(address, client, **kwargs)

    @property
    def address(self) -> str:
        return self._address

    @property
    def connected(self) -> bool:
        return self._connected

    @property
    def router_id(self) -> str:
        return self._router_id

    @property
    def local_asn(self) -> int:
        return self._local_asn

    @property
    def result(self) -> str:
        return self._result

    @property
    def timestamp(self) -> str:
        return self._timestamp

    @property
    def next_collection_at(self) -> float:
        return self._next_collection_at

    @property
    def errors(self) -> int:
        with self._errors_lock:
            return self._errors

    def increment_error_counter(self) -> None:
        """Count a failed query to the router."""
        with self._errors_lock:
            self._errors += 1

    @property
    def snapshot(self) -> tuple[MetricInstance, ...]:
        with self._lock:
            return self._snapshot

    def gather_metrics(self) -> bool:
        """Collect data from the router into a new snapshot.

        Returns False without touching the router when called before the
        throttle window has elapsed. Remote failures never raise; they are
        counted and reflected in the snapshot.
        """
        with self._lock:
            logger.debug("%s: gather_metrics() locked", self._address)
            if self._clock() < self._next_collection_at:
                logger.debug("%s: throttled until %s", self._address, self._next_collection_at)
                return False

            start = time.perf_counter()
            up = self._refresh_identity()

            metrics: list[MetricInstance] = []
            if up:
                metrics.extend(self._collect_tables_and_peers())

            # next_poll reports the window that starts with this cycle.
            next_collection_at = self._clock() + self.poll_interval
            metrics.extend([
                MetricInstance(ROUTER_UP, 1.0 if up else 0.0),
                MetricInstance(ROUTER_ERRORS, float(self.errors)),
                MetricInstance(ROUTER_NEXT_POLL, float(int(next_collection_at))),
                MetricInstance(ROUTER_SCRAPE_TIME, time.perf_counter() - start),
            ])
            if self._router_id:
                metrics.append(MetricInstance(ROUTER_ID, 1.0, (self._router_id,)))
            if self._local_asn > 0:
                metrics.append(MetricInstance(ROUTER_LOCAL_ASN, float(self._local_asn)))

            self._snapshot = tuple(metrics)
            self._next_collection_at = next_collection_at
            self._result = RESULT_SUCCESS if up else RESULT_FAILURE
            self._timestamp = datetime.now(timezone.utc).isoformat()
            logger.debug("%s: gathered %d metrics", self._address, len(metrics))
            return True

    def _refresh_identity(self) -> bool:
        try:
            identity = self.client.get_router_identity()
        except Exception as e:
            self.increment_error_counter()
            logger.error("failed query gobgp server %s: %s", self._address, e)
            # Keep the last known router ID and ASN.
            self._connected = False
            return False

        self._router_id = identity.router_id
        self._local_asn = identity.local_asn
        self._connected = True
        logger.debug("router info: router_id=%s local_asn=%s", self._router_id, self._local_asn)
        return True

    def _collect_tables_and_peers(self) -> list[MetricInstance]:
        # Each collector fills its own list; they are merged after both finish.
        with ThreadPoolExecutor(max_workers=2, thread_name_prefix="gobgp-collect") as pool:
            futures = [("rib", pool.submit(self._rib.collect)), ("peers", pool.submit(self._peers.collect))]

        metrics: list[MetricInstance] = []
        for name, future in futures:
            try:
                metrics.extend(future.result())
            except Exception as e:
                self.increment_error_counter()
                logger.exception("%s: %s collector failed: %s", self._address, name, e)
        return metrics

    def collect(self) -> tuple[MetricInstance, ...]:
        """Trigger a (possibly throttled) cycle and return the current snapshot."""
        self.gather_metrics()
        return self.snapshot

    def describe(self) -> tuple[Descriptor, ...]:
        """Every descriptor this node can ever emit, regardless of connectivity."""
        return tuple(self.registry)

    def close(self) -> None:
        self.client.close()
