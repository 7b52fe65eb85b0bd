import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from gobgp_exporter.descriptors import (
    DESCRIPTORS,
    PEER_LABELS,
    PEER_RECEIVED_MESSAGES,
    PEER_SENT_MESSAGES,
    RIB_TOTAL_PATHS,
    ROUTER_ERRORS,
    ROUTER_ID,
    ROUTER_UP,
    Descriptor,
    DescriptorRegistry,
    MetricInstance,
    MetricKind,
    build_fq_name,
)


def test_build_fq_name():
    assert build_fq_name("gobgp", "router", "up") == "gobgp_router_up"
    assert build_fq_name("gobgp", "", "up") == "gobgp_up"


def test_registry_size():
    # 6 router, 3 rib, 6 peer state, 16 message counters, 6 peer flags
    assert len(DESCRIPTORS) == 37


def test_names_are_namespaced_and_unique():
    names = [d.name for d in DESCRIPTORS]
    assert len(names) == len(set(names))
    assert all(n.startswith("gobgp_") for n in names)


def test_message_counters():
    assert len(PEER_RECEIVED_MESSAGES) == 8
    assert len(PEER_SENT_MESSAGES) == 8
    assert PEER_RECEIVED_MESSAGES["total"].name == "gobgp_peer_received_message_total_count"
    assert PEER_SENT_MESSAGES["withdraw_prefix"].name == "gobgp_peer_sent_withdraw_prefix_message_count"


def test_peer_descriptors_share_labels():
    peer = [d for d in DESCRIPTORS if d.name.startswith("gobgp_peer_") and d.name != "gobgp_peer_count"]
    assert peer
    assert all(d.labels == PEER_LABELS for d in peer)


def test_error_counter_is_counter():
    assert ROUTER_ERRORS.kind is MetricKind.COUNTER
    assert ROUTER_UP.kind is MetricKind.GAUGE


def test_metric_instance_label_count_enforced():
    with pytest.raises(ValueError, match="expected 3 label values"):
        MetricInstance(RIB_TOTAL_PATHS, 1.0, ("global", "ipv4"))
    with pytest.raises(ValueError):
        MetricInstance(ROUTER_UP, 1.0, ("extra",))


def test_metric_instance_label_map():
    m = MetricInstance(ROUTER_ID, 1.0, ("10.0.0.1",))
    assert m.label_map == {"id": "10.0.0.1"}


def test_registry_membership():
    assert ROUTER_UP in DESCRIPTORS
    assert Descriptor("gobgp_router_up", "different help") not in DESCRIPTORS
    assert DESCRIPTORS.get("gobgp_router_id") is ROUTER_ID
    assert DESCRIPTORS.get("missing") is None


def test_registry_rejects_duplicates():
    with pytest.raises(ValueError):
        DescriptorRegistry([ROUTER_UP, ROUTER_UP])


def test_sample_name():
    assert ROUTER_ERRORS.sample_name == "gobgp_router_failed_req_count_total"
    assert ROUTER_UP.sample_name == "gobgp_router_up"
