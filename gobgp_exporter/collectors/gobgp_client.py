"""
GoBGP gRPC client: RouterClient implementation over the GoBGP v3 API.

The protobuf stubs are not distributed on PyPI. Generate them from GoBGP's
api/*.proto with grpc_tools.protoc and make `gobgp_pb2` / `gobgp_pb2_grpc`
importable (or pass another module name).
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Iterator, Optional

import grpc

from gobgp_exporter.collectors import (
    PeerMessageCounters,
    PeerRecord,
    RouterClient,
    RouterIdentity,
    TableCounters,
)
from gobgp_exporter.collectors.families import AddressFamily, TableType

logger = logging.getLogger(__name__)

DEFAULT_API_MODULE = "gobgp_pb2"
PEM_MARKER = b"-----BEGIN "


def _read_pem(path: Optional[str]) -> Optional[bytes]:
    if not path:
        return None
    data = Path(path).read_bytes()
    if PEM_MARKER not in data:
        raise ValueError(f"{path}: no PEM data found")
    return data


def load_channel_credentials(ca_path: Optional[str] = None,
                             client_cert_path: Optional[str] = None,
                             client_key_path: Optional[str] = None) -> grpc.ChannelCredentials:
    """Build TLS channel credentials from PEM files.

    Missing files raise OSError and files without PEM blocks raise ValueError,
    so bad TLS material fails at startup instead of looking like an
    unreachable router.
    """
    if bool(client_cert_path) != bool(client_key_path):
        raise ValueError("client certificate and key must be set together")

    root_certificates = _read_pem(ca_path)
    certificate_chain = _read_pem(client_cert_path)
    private_key = _read_pem(client_key_path)
    return grpc.ssl_channel_credentials(
        root_certificates=root_certificates,
        private_key=private_key,
        certificate_chain=certificate_chain,
    )


def open_channel(address: str, timeout: float,
                 credentials: Optional[grpc.ChannelCredentials] = None,
                 server_name: Optional[str] = None) -> grpc.Channel:
    """Dial the router and block until the channel is ready or the timeout expires."""
    options = []
    if server_name:
        options.append(("grpc.ssl_target_name_override", server_name))

    if credentials is None:
        channel = grpc.insecure_channel(address, options=options)
    else:
        channel = grpc.secure_channel(address, credentials, options=options)

    try:
        grpc.channel_ready_future(channel).result(timeout=timeout)
    except grpc.FutureTimeoutError:
        channel.close()
        raise ConnectionError(f"GoBGP at {address} not reachable within {timeout}s") from None
    return channel


def _message_counters(message) -> PeerMessageCounters:
    return PeerMessageCounters(
        total=message.total,
        notification=message.notification,
        update=message.update,
        open=message.open,
        keepalive=message.keepalive,
        refresh=message.refresh,
        withdraw_update=message.withdraw_update,
        withdraw_prefix=message.withdraw_prefix,
    )


class GobgpApiClient(RouterClient):
    """Query a GoBGP daemon over gRPC. Every call is bounded by `timeout`."""

    def __init__(self, channel: grpc.Channel, timeout: float = 2,
                 api_module: str = DEFAULT_API_MODULE):
        self.channel = channel
        self.timeout = timeout
        self._pb2 = importlib.import_module(api_module)
        self._stub = importlib.import_module(f"{api_module}_grpc").GobgpApiStub(channel)

    @classmethod
    def connect(cls, address: str, timeout: float = 2,
                credentials: Optional[grpc.ChannelCredentials] = None,
                server_name: Optional[str] = None,
                api_module: str = DEFAULT_API_MODULE) -> "GobgpApiClient":
        channel = open_channel(address, timeout, credentials, server_name)
        logger.info("connected to GoBGP at %s", address)
        return cls(channel, timeout, api_module)

    def get_router_identity(self) -> RouterIdentity:
        response = self._stub.GetBgp(self._pb2.GetBgpRequest(), timeout=self.timeout)
        global_config = getattr(response, "global")
        return RouterIdentity(router_id=global_config.router_id, local_asn=global_config.asn)

    def get_table_counters(self, table_type: TableType, family: AddressFamily) -> Optional[TableCounters]:
        request = self._pb2.GetTableRequest(
            table_type=int(table_type),
            family=self._pb2.Family(afi=int(family.afi), safi=int(family.safi)),
            name="",
        )
        response = self._stub.GetTable(request, timeout=self.timeout)
        if response is None:
            return None
        return TableCounters(
            num_destinations=response.num_destination,
            num_paths=response.num_path,
            num_accepted=response.num_accepted,
        )

    def list_peers(self) -> Iterator[PeerRecord]:
        for response in self._stub.ListPeer(self._pb2.ListPeerRequest(), timeout=self.timeout):
            yield self._peer_record(response.peer)

    @staticmethod
    def _peer_record(peer) -> PeerRecord:
        state = peer.state
        received = sent = None
        if state.HasField("messages"):
            messages = state.messages
            if messages.HasField("received"):
                received = _message_counters(messages.received)
            if messages.HasField("sent"):
                sent = _message_counters(messages.sent)

        return PeerRecord(
            neighbor_address=state.neighbor_address or peer.conf.neighbor_address,
            description=state.description or peer.conf.description,
            router_id=state.router_id,
            peer_asn=state.peer_asn,
            local_asn=state.local_asn,
            admin_state=state.admin_state,
            session_state=state.session_state,
            out_queue=state.out_q,
            flops=state.flops,
            send_community=state.send_community,
            remove_private=state.remove_private,
            auth_password=state.auth_password,
            peer_type=state.type,
            received=received,
            sent=sent,
        )

    def close(self) -> None:
        self.channel.close()
