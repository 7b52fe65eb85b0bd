"""Router API contract: records returned by a GoBGP API client and the client interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional

from gobgp_exporter.collectors.families import AddressFamily, TableType


@dataclass(frozen=True)
class RouterIdentity:
    router_id: str = ""
    local_asn: int = 0


@dataclass(frozen=True)
class TableCounters:
    """Counters of one routing table for one address family."""
    num_destinations: int = 0
    num_paths: int = 0
    num_accepted: int = 0


@dataclass(frozen=True)
class PeerMessageCounters:
    """BGP message counters in one direction (received or sent)."""
    total: int = 0
    notification: int = 0
    update: int = 0
    open: int = 0
    keepalive: int = 0
    refresh: int = 0
    withdraw_update: int = 0
    withdraw_prefix: int = 0


@dataclass(frozen=True)
class PeerRecord:
    """Common peer state as reported by the router."""
    neighbor_address: str
    description: str = ""
    router_id: str = ""          # empty until the session is established
    peer_asn: int = 0
    local_asn: int = 0
    admin_state: int = 0         # up (0), down (1), pfx_ct (2)
    session_state: int = 0       # unknown (0) .. established (6)
    out_queue: int = 0
    flops: int = 0
    send_community: int = 0
    remove_private: int = 0
    auth_password: str = ""
    peer_type: int = 0           # internal (0), external (1)
    received: Optional[PeerMessageCounters] = None
    sent: Optional[PeerMessageCounters] = None

    @property
    def has_messages(self) -> bool:
        return self.received is not None or self.sent is not None


class RouterClient(ABC):
    """Connection to one router's management API.

    Every call is bounded by the client's own per-call timeout and raises on
    failure; callers decide how failures are counted. Reconnecting is not the
    client's job.
    """

    @abstractmethod
    def get_router_identity(self) -> RouterIdentity:
        ...

    @abstractmethod
    def get_table_counters(self, table_type: TableType, family: AddressFamily) -> Optional[TableCounters]:
        """Return counters for a table, or None when the router has nothing to report."""
        ...

    @abstractmethod
    def list_peers(self) -> Iterator[PeerRecord]:
        """Stream peers. The iterator is finite, not restartable, and may raise mid-stream."""
        ...

    def close(self) -> None:
        pass
