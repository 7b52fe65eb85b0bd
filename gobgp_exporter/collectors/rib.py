"""
RIB Collector: per table type and address family route counters.

Each (table type, family) pair is queried independently: a failed query is
counted and skipped, the remaining pairs are still collected.
"""

import logging
from typing import Callable, Iterable

from gobgp_exporter.collectors import RouterClient
from gobgp_exporter.collectors.families import (
    ADDRESS_FAMILIES,
    SUPPORTED_TABLE_TYPES,
    AddressFamily,
    TableType,
)
from gobgp_exporter.descriptors import (
    RIB_ACCEPTED_PATHS,
    RIB_TOTAL_DESTINATIONS,
    RIB_TOTAL_PATHS,
    MetricInstance,
)

logger = logging.getLogger(__name__)

DEFAULT_VRF = "default"


class RibCollector:
    """Query table counters for every enabled table type and address family."""

    def __init__(self, client: RouterClient, on_error: Callable[[], None],
                 table_types: Iterable[TableType] = SUPPORTED_TABLE_TYPES,
                 families: Iterable[AddressFamily] = ADDRESS_FAMILIES.values()):
        self.client = client
        self.on_error = on_error
        self.table_types = tuple(table_types)
        self.families = tuple(families)

    def collect(self) -> list[MetricInstance]:
        metrics: list[MetricInstance] = []
        for table_type in self.table_types:
            for family in self.families:
                metrics.extend(self._collect_table(table_type, family))
        return metrics

    def _collect_table(self, table_type: TableType, family: AddressFamily) -> list[MetricInstance]:
        try:
            counters = self.client.get_table_counters(table_type, family)
        except Exception as e:
            logger.error("failed GoBGP query for route table %s/%s: %s", table_type.label, family.name, e)
            self.on_error()
            return []

        if counters is None:
            logger.warning("GoBGP route table response is empty: %s/%s", table_type.label, family.name)
            return []

        logger.debug("route table %s/%s: %s", table_type.label, family.name, counters)
        labels = (table_type.label, family.name.lower(), DEFAULT_VRF)
        return [
            MetricInstance(RIB_TOTAL_DESTINATIONS, float(counters.num_destinations), labels),
            MetricInstance(RIB_TOTAL_PATHS, float(counters.num_paths), labels),
            MetricInstance(RIB_ACCEPTED_PATHS, float(counters.num_accepted), labels),
        ]
