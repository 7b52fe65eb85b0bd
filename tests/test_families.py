import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from gobgp_exporter.collectors.families import (
    ADDRESS_FAMILIES,
    SUPPORTED_TABLE_TYPES,
    Afi,
    FamilyName,
    Safi,
    TableType,
    get_family,
)


def test_catalog_has_fourteen_families():
    assert len(ADDRESS_FAMILIES) == 14


def test_family_pairs_are_unique():
    pairs = {(f.afi, f.safi) for f in ADDRESS_FAMILIES.values()}
    assert len(pairs) == 14


@pytest.mark.parametrize("name,afi,safi", [
    ("ipv4", Afi.IP, Safi.UNICAST),
    ("ipv6", Afi.IP6, Safi.UNICAST),
    ("ipv4_vpn", Afi.IP, Safi.MPLS_VPN),
    ("ipv6_mpls", Afi.IP6, Safi.MPLS_LABEL),
    ("evpn", Afi.L2VPN, Safi.EVPN),
    ("ipv4_encap", Afi.IP, Safi.ENCAPSULATION),
    ("ipv6_flowspec", Afi.IP6, Safi.FLOW_SPEC_UNICAST),
    ("ipv4_vpn_flowspec", Afi.IP, Safi.FLOW_SPEC_VPN),
    ("l2_vpn_flowspec", Afi.L2VPN, Safi.FLOW_SPEC_VPN),
])
def test_family_mapping(name, afi, safi):
    family = get_family(name)
    assert family.name == name
    assert (family.afi, family.safi) == (afi, safi)


def test_gobgp_enum_values():
    assert (Afi.IP, Afi.IP6, Afi.L2VPN) == (1, 2, 25)
    assert Safi.EVPN == 70
    assert Safi.MPLS_VPN == 128


def test_lookup_is_case_insensitive():
    assert get_family("EVPN") is ADDRESS_FAMILIES[FamilyName.EVPN]


def test_unknown_family():
    with pytest.raises(ValueError, match="unknown address family"):
        get_family("ipx")


def test_supported_table_types():
    assert SUPPORTED_TABLE_TYPES == (TableType.GLOBAL, TableType.LOCAL)
    assert [t.label for t in SUPPORTED_TABLE_TYPES] == ["global", "local"]
