"""
Metric descriptors for everything the exporter can emit.

Descriptors are declared once at import time and collected into the
read-only DESCRIPTORS registry. Collectors build MetricInstance values that
reference these descriptors; nothing registers a descriptor at runtime.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator

NAMESPACE = "gobgp"


class MetricKind(str, Enum):
    GAUGE = "gauge"
    COUNTER = "counter"


def build_fq_name(namespace: str, subsystem: str, name: str) -> str:
    return "_".join(part for part in (namespace, subsystem, name) if part)


@dataclass(frozen=True)
class Descriptor:
    name: str
    help: str
    labels: tuple[str, ...] = ()
    kind: MetricKind = MetricKind.GAUGE

    @property
    def sample_name(self) -> str:
        """Name of the sample as it appears in the exposition text."""
        if self.kind is MetricKind.COUNTER:
            return f"{self.name}_total"
        return self.name


@dataclass(frozen=True)
class MetricInstance:
    """One sample: a descriptor, a value and label values in descriptor order."""
    descriptor: Descriptor
    value: float
    labels: tuple[str, ...] = ()

    def __post_init__(self):
        if len(self.labels) != len(self.descriptor.labels):
            raise ValueError(
                f"{self.descriptor.name}: expected {len(self.descriptor.labels)} label values "
                f"{list(self.descriptor.labels)}, got {len(self.labels)}"
            )

    @property
    def label_map(self) -> dict[str, str]:
        return dict(zip(self.descriptor.labels, self.labels))


def _desc(subsystem: str, name: str, help: str, labels: tuple[str, ...] = (),
          kind: MetricKind = MetricKind.GAUGE) -> Descriptor:
    return Descriptor(build_fq_name(NAMESPACE, subsystem, name), help, labels, kind)


# --- Router ---

ROUTER_UP = _desc("router", "up", "Is GoBGP up and responds to queries (1) or is it down (0).")
ROUTER_ID = _desc("router", "id", "What is GoBGP router ID.", ("id",))
ROUTER_LOCAL_ASN = _desc("router", "asn", "What is GoBGP AS number.")
ROUTER_ERRORS = _desc("router", "failed_req_count", "The number of failed requests to GoBGP router.",
                      kind=MetricKind.COUNTER)
ROUTER_NEXT_POLL = _desc("router", "next_poll", "The timestamp of the next potential scrape of the router.")
ROUTER_SCRAPE_TIME = _desc("router", "scrape_time", "The amount of time it took to scrape the router.")

# --- RIB ---

RIB_LABELS = ("route_table", "address_family", "vrf_name")

RIB_TOTAL_DESTINATIONS = _desc(
    "route", "total_destination_count",
    "The number of routes on per address family and route table basis", RIB_LABELS)
RIB_TOTAL_PATHS = _desc(
    "route", "total_path_count",
    "The number of available paths to destinations on per address family and route table basis", RIB_LABELS)
RIB_ACCEPTED_PATHS = _desc(
    "route", "accepted_path_count",
    "The number of accepted paths to destinations on per address family and route table basis", RIB_LABELS)

# --- Peers ---

PEER_LABELS = ("name", "description")

PEER_COUNT = _desc("peer", "count", "The number of BGP peers")
PEER_UP = _desc("peer", "up", "Is the peer up and in established state (1) or it is not (0).", PEER_LABELS)
PEER_ASN = _desc("peer", "asn", "What is the AS number of the peer", PEER_LABELS)
PEER_LOCAL_ASN = _desc("peer", "local_asn", "What is the AS number presented to the peer by this router.",
                       PEER_LABELS)
PEER_ADMIN_STATE = _desc("peer", "admin_state", "Is the peer configured for being Up (0), Down (1), or PFX_CT (2)",
                         PEER_LABELS)
PEER_SESSION_STATE = _desc(
    "peer", "session_state",
    "What is the state of BGP session to the peer - unknown (0), idle (1), connect (2), active (3), "
    "opensent (4), openconfirm (5), established (6)", PEER_LABELS)
PEER_OUT_QUEUE = _desc("peer", "out_queue_count", "The number of messages queued for the peer.", PEER_LABELS)
PEER_FLOPS = _desc("peer", "flop_count", "The number of times the session to the peer flapped.", PEER_LABELS)
PEER_SEND_COMMUNITY = _desc("peer", "send_community", "Whether BGP communities are sent to the peer.", PEER_LABELS)
PEER_REMOVE_PRIVATE_AS = _desc("peer", "remove_private_as", "Whether private AS numbers are removed for the peer.",
                               PEER_LABELS)
PEER_PASSWORD_SET = _desc(
    "peer", "password_set",
    "Whether the GoBGP peer has been configured (1) for authentication or not (0)", PEER_LABELS)
PEER_TYPE = _desc("peer", "type", "The type of the peer, internal (0) or external (1).", PEER_LABELS)

# Message counter descriptors keyed by PeerMessageCounters field name.
_MESSAGE_KINDS = (
    ("total", "message_total_count", "The total number of messages"),
    ("notification", "notification_message_count", "How many Notification messages"),
    ("update", "update_message_count", "How many Update messages"),
    ("open", "open_message_count", "How many Open messages"),
    ("keepalive", "keepalive_message_count", "How many Keepalive messages"),
    ("refresh", "refresh_message_count", "How many Refresh messages"),
    ("withdraw_update", "withdraw_update_message_count", "How many WithdrawUpdate messages"),
    ("withdraw_prefix", "withdraw_prefix_message_count", "How many WithdrawPrefix messages"),
)

PEER_RECEIVED_MESSAGES: dict[str, Descriptor] = {
    field: _desc("peer", f"received_{suffix}", f"{text} the BGP peer sent to this router.", PEER_LABELS)
    for field, suffix, text in _MESSAGE_KINDS
}
PEER_SENT_MESSAGES: dict[str, Descriptor] = {
    field: _desc("peer", f"sent_{suffix}", f"{text} this router sent to the BGP peer.", PEER_LABELS)
    for field, suffix, text in _MESSAGE_KINDS
}


class DescriptorRegistry:
    """Immutable, ordered set of descriptors."""

    def __init__(self, descriptors):
        self._descriptors = tuple(descriptors)
        self._by_name = {d.name: d for d in self._descriptors}
        if len(self._by_name) != len(self._descriptors):
            raise ValueError("duplicate metric descriptor names")

    def __iter__(self) -> Iterator[Descriptor]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)

    def __contains__(self, descriptor: object) -> bool:
        return isinstance(descriptor, Descriptor) and self._by_name.get(descriptor.name) == descriptor

    def get(self, name: str) -> Descriptor | None:
        return self._by_name.get(name)


DESCRIPTORS = DescriptorRegistry([
    ROUTER_UP, ROUTER_ID, ROUTER_LOCAL_ASN, ROUTER_ERRORS, ROUTER_NEXT_POLL, ROUTER_SCRAPE_TIME,
    RIB_TOTAL_DESTINATIONS, RIB_TOTAL_PATHS, RIB_ACCEPTED_PATHS,
    PEER_COUNT, PEER_UP, PEER_ASN, PEER_LOCAL_ASN, PEER_ADMIN_STATE, PEER_SESSION_STATE,
    *PEER_RECEIVED_MESSAGES.values(), *PEER_SENT_MESSAGES.values(),
    PEER_OUT_QUEUE, PEER_FLOPS, PEER_SEND_COMMUNITY, PEER_REMOVE_PRIVATE_AS, PEER_PASSWORD_SET, PEER_TYPE,
])
