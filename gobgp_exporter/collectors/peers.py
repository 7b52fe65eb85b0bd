"""
Peer Collector: BGP session state and message counters per neighbor.

The peer list is a single ordered stream, so enumeration is all-or-nothing:
if the stream fails part way, no peer metrics are produced for the cycle.
"""

import logging
from typing import Callable, Optional

from gobgp_exporter.collectors import PeerMessageCounters, PeerRecord, RouterClient
from gobgp_exporter.descriptors import (
    PEER_ADMIN_STATE,
    PEER_ASN,
    PEER_COUNT,
    PEER_FLOPS,
    PEER_LOCAL_ASN,
    PEER_OUT_QUEUE,
    PEER_PASSWORD_SET,
    PEER_RECEIVED_MESSAGES,
    PEER_REMOVE_PRIVATE_AS,
    PEER_SEND_COMMUNITY,
    PEER_SENT_MESSAGES,
    PEER_SESSION_STATE,
    PEER_TYPE,
    PEER_UP,
    Descriptor,
    MetricInstance,
)

logger = logging.getLogger(__name__)


class PeerCollector:
    def __init__(self, client: RouterClient, on_error: Callable[[], None]):
        self.client = client
        self.on_error = on_error

    def collect(self) -> list[MetricInstance]:
        try:
            peers = list(self.client.list_peers())
        except Exception as e:
            logger.error("GoBGP query for peers failed: %s", e)
            self.on_error()
            return []

        metrics = [MetricInstance(PEER_COUNT, float(len(peers)))]
        for peer in peers:
            metrics.extend(self.peer_metrics(peer))
        logger.debug("collected %d peers", len(peers))
        return metrics

    @staticmethod
    def peer_metrics(peer: PeerRecord) -> list[MetricInstance]:
        labels = (peer.neighbor_address, peer.description or "")

        def m(descriptor: Descriptor, value) -> MetricInstance:
            return MetricInstance(descriptor, float(value), labels)

        metrics = [
            m(PEER_UP, 1 if peer.router_id else 0),
            m(PEER_ASN, peer.peer_asn),
            m(PEER_ADMIN_STATE, peer.admin_state),
            m(PEER_SESSION_STATE, peer.session_state),
            m(PEER_LOCAL_ASN, peer.local_asn),
        ]

        if peer.has_messages:
            metrics.extend(_message_metrics(PEER_RECEIVED_MESSAGES, peer.received, labels))
            metrics.extend(_message_metrics(PEER_SENT_MESSAGES, peer.sent, labels))

        metrics.extend([
            m(PEER_OUT_QUEUE, peer.out_queue),
            m(PEER_FLOPS, peer.flops),
            m(PEER_SEND_COMMUNITY, peer.send_community),
            m(PEER_REMOVE_PRIVATE_AS, peer.remove_private),
            m(PEER_PASSWORD_SET, 1 if peer.auth_password else 0),
            m(PEER_TYPE, peer.peer_type),
        ])
        return metrics


def _message_metrics(descriptors: dict[str, Descriptor], counters: Optional[PeerMessageCounters],
                     labels: tuple[str, ...]) -> list[MetricInstance]:
    # A missing direction reports zeros rather than dropping the series.
    counters = counters or PeerMessageCounters()
    return [
        MetricInstance(descriptor, float(getattr(counters, field)), labels)
        for field, descriptor in descriptors.items()
    ]
