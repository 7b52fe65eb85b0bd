#!/usr/bin/env python3
"""
Live scrape: connect to a running gobgpd and print one collection cycle.

Usage: python3 scripts/live_scrape.py [address]
Default address: 127.0.0.1:50051

Requires gobgp_pb2 / gobgp_pb2_grpc generated from GoBGP's api/*.proto
on the Python path.
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))
from gobgp_exporter.collectors.gobgp_client import GobgpApiClient
from gobgp_exporter.router_node import RouterNode

DEFAULT_ADDRESS = "127.0.0.1:50051"
TIMEOUT = 5


def main():
    address = sys.argv[1] if len(sys.argv) > 1 else DEFAULT_ADDRESS

    print(f"Connecting to {address}...")
    node = RouterNode.connect(address, GobgpApiClient.connect, timeout=TIMEOUT)
    try:
        metrics = node.collect()
    finally:
        node.close()

    print(f"\n{'='*60}")
    print(f"Router ID: {node.router_id or '-'}  ASN: {node.local_asn or '-'}  Result: {node.result}")
    print(f"Failed requests: {node.errors}")
    print(f"{'='*60}\n")

    for m in metrics:
        labels = ",".join(f'{k}="{v}"' for k, v in m.label_map.items())
        print(f"{m.descriptor.name}{{{labels}}} {m.value:g}")

    print(f"\n{len(metrics)} metrics")


if __name__ == "__main__":
    main()
