"""Tests for the RIB collector: per-table counters and partial failure handling."""

import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from gobgp_exporter.collectors import TableCounters
from gobgp_exporter.collectors.families import ADDRESS_FAMILIES, TableType, get_family
from gobgp_exporter.collectors.rib import RibCollector
from gobgp_exporter.descriptors import RIB_ACCEPTED_PATHS, RIB_TOTAL_DESTINATIONS, RIB_TOTAL_PATHS
from fakes import FakeRouterClient, find


class ErrorCounter:
    def __init__(self):
        self.count = 0

    def __call__(self):
        self.count += 1


class TestRibCollector:

    def setup_method(self):
        self.errors = ErrorCounter()

    def test_all_tables_and_families(self):
        client = FakeRouterClient()
        metrics = RibCollector(client, self.errors).collect()
        assert client.calls["table"] == 28
        assert len(metrics) == 28 * 3
        assert self.errors.count == 0

    def test_labels(self):
        client = FakeRouterClient()
        metrics = RibCollector(client, self.errors).collect()
        tables = {m.label_map["route_table"] for m in metrics}
        families = {m.label_map["address_family"] for m in metrics}
        assert tables == {"global", "local"}
        assert families == {f.name for f in ADDRESS_FAMILIES.values()}
        assert {m.label_map["vrf_name"] for m in metrics} == {"default"}

    def test_counter_values(self):
        ipv4 = get_family("ipv4")
        client = FakeRouterClient(tables={(TableType.GLOBAL, "ipv4"): TableCounters(5, 7, 6)})
        metrics = RibCollector(client, self.errors, [TableType.GLOBAL], [ipv4]).collect()
        assert [(m.descriptor, m.value) for m in metrics] == [
            (RIB_TOTAL_DESTINATIONS, 5.0),
            (RIB_TOTAL_PATHS, 7.0),
            (RIB_ACCEPTED_PATHS, 6.0),
        ]
        assert metrics[0].labels == ("global", "ipv4", "default")

    def test_one_failed_query_skips_only_that_pair(self):
        client = FakeRouterClient(table_errors=[(TableType.GLOBAL, "evpn")])
        metrics = RibCollector(client, self.errors, [TableType.GLOBAL]).collect()
        families = {m.label_map["address_family"] for m in find(metrics, RIB_TOTAL_PATHS.name)}
        assert len(families) == 13
        assert "evpn" not in families
        assert self.errors.count == 1

    def test_empty_response_is_not_an_error(self, caplog):
        client = FakeRouterClient(tables={(TableType.LOCAL, "ipv6"): None})
        with caplog.at_level(logging.WARNING):
            metrics = RibCollector(client, self.errors, [TableType.LOCAL]).collect()
        assert len(metrics) == 13 * 3
        assert self.errors.count == 0
        assert "empty" in caplog.text

    def test_every_query_failing(self):
        failures = [(t, f.name) for t in (TableType.GLOBAL, TableType.LOCAL) for f in ADDRESS_FAMILIES.values()]
        client = FakeRouterClient(table_errors=failures)
        metrics = RibCollector(client, self.errors).collect()
        assert metrics == []
        assert self.errors.count == 28
