"""
Address-family catalog for GoBGP table queries.

Values match the GoBGP v3 API enums (Family.Afi, Family.Safi, TableType).
"""

from dataclasses import dataclass
from enum import Enum, IntEnum


class Afi(IntEnum):
    IP = 1
    IP6 = 2
    L2VPN = 25


class Safi(IntEnum):
    UNICAST = 1
    MPLS_LABEL = 4
    ENCAPSULATION = 7
    EVPN = 70
    MPLS_VPN = 128
    FLOW_SPEC_UNICAST = 133
    FLOW_SPEC_VPN = 134


class TableType(IntEnum):
    GLOBAL = 0
    LOCAL = 1
    ADJ_IN = 2
    ADJ_OUT = 3
    VRF = 4

    @property
    def label(self) -> str:
        return self.name.lower()


# ADJ_IN, ADJ_OUT and VRF tables need a neighbor or VRF name; not collected.
SUPPORTED_TABLE_TYPES = (TableType.GLOBAL, TableType.LOCAL)


@dataclass(frozen=True)
class AddressFamily:
    name: str
    afi: Afi
    safi: Safi


class FamilyName(str, Enum):
    IPV4 = "ipv4"
    IPV6 = "ipv6"
    IPV4_VPN = "ipv4_vpn"
    IPV6_VPN = "ipv6_vpn"
    IPV4_MPLS = "ipv4_mpls"
    IPV6_MPLS = "ipv6_mpls"
    EVPN = "evpn"
    IPV4_ENCAP = "ipv4_encap"
    IPV6_ENCAP = "ipv6_encap"
    IPV4_FLOWSPEC = "ipv4_flowspec"
    IPV6_FLOWSPEC = "ipv6_flowspec"
    IPV4_VPN_FLOWSPEC = "ipv4_vpn_flowspec"
    IPV6_VPN_FLOWSPEC = "ipv6_vpn_flowspec"
    L2_VPN_FLOWSPEC = "l2_vpn_flowspec"


_CATALOG = {
    FamilyName.IPV4: (Afi.IP, Safi.UNICAST),
    FamilyName.IPV6: (Afi.IP6, Safi.UNICAST),
    FamilyName.IPV4_VPN: (Afi.IP, Safi.MPLS_VPN),
    FamilyName.IPV6_VPN: (Afi.IP6, Safi.MPLS_VPN),
    FamilyName.IPV4_MPLS: (Afi.IP, Safi.MPLS_LABEL),
    FamilyName.IPV6_MPLS: (Afi.IP6, Safi.MPLS_LABEL),
    FamilyName.EVPN: (Afi.L2VPN, Safi.EVPN),
    FamilyName.IPV4_ENCAP: (Afi.IP, Safi.ENCAPSULATION),
    FamilyName.IPV6_ENCAP: (Afi.IP6, Safi.ENCAPSULATION),
    FamilyName.IPV4_FLOWSPEC: (Afi.IP, Safi.FLOW_SPEC_UNICAST),
    FamilyName.IPV6_FLOWSPEC: (Afi.IP6, Safi.FLOW_SPEC_UNICAST),
    FamilyName.IPV4_VPN_FLOWSPEC: (Afi.IP, Safi.FLOW_SPEC_VPN),
    FamilyName.IPV6_VPN_FLOWSPEC: (Afi.IP6, Safi.FLOW_SPEC_VPN),
    FamilyName.L2_VPN_FLOWSPEC: (Afi.L2VPN, Safi.FLOW_SPEC_VPN),
}

ADDRESS_FAMILIES: dict[FamilyName, AddressFamily] = {
    name: AddressFamily(name=name.value, afi=afi, safi=safi)
    for name, (afi, safi) in _CATALOG.items()
}


def get_family(name: str) -> AddressFamily:
    """Look up a catalog entry by its lower-case name."""
    try:
        return ADDRESS_FAMILIES[FamilyName(name.lower())]
    except ValueError:
        raise ValueError(f"unknown address family: {name}") from None
