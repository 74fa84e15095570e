"""
Parser for the tab-separated output of `wg show all dump`.

Expects every line to start with the interface name. `wg show <iface> dump`
leaves that column out; the collector prepends it before calling in here,
so this module only ever sees one layout:

    device: interface  private-key  public-key  listen-port  fwmark
    peer:   interface  public-key  preshared-key  endpoint  allowed-ips
            latest-handshake  rx-bytes  tx-bytes  persistent-keepalive
"""

from __future__ import annotations

from typing import List, Optional, Tuple

from wgexporter.errors import MalformedRecord
from wgexporter.model import DeviceRecord, Endpoint, InterfaceState, PeerRecord, Snapshot

DEVICE_FIELDS = 5
PEER_FIELDS = 9

NONE = "(none)"
OFF = "off"


def _parse_int(value: str, what: str) -> int:
    # int() accepts "+5", " 5" and "1_000"; the dump only ever has plain digits
    if not value.isdigit():
        raise MalformedRecord(f"{what} is not a non-negative integer: {value!r}")
    return int(value)


def _parse_optional_int(value: str, what: str) -> Optional[int]:
    if value == OFF:
        return None
    return _parse_int(value, what)


def parse_endpoint(value: str) -> Optional[Endpoint]:
    """Split `host:port` on the last colon. `[v6]:port` loses its brackets."""
    if value == NONE:
        return None

    host, sep, port = value.rpartition(":")
    if not sep or not host:
        raise MalformedRecord(f"endpoint has no port: {value!r}")

    if host.startswith("["):
        if not host.endswith("]"):
            raise MalformedRecord(f"unterminated IPv6 endpoint: {value!r}")
        host = host[1:-1]

    return Endpoint(host=host, port=_parse_int(port, "endpoint port"))


def parse_allowed_ips(value: str) -> Tuple[str, ...]:
    if value == NONE:
        return ()
    return tuple(value.split(","))


def parse_latest_handshake(value: str) -> Optional[int]:
    seconds = _parse_int(value, "latest handshake")
    return seconds or None


def _parse_device(fields: List[str]) -> DeviceRecord:
    # fields[1] and fields[2] are the private and public key; dropped here
    interface, _, _, listen_port, fwmark = fields
    return DeviceRecord(
        interface=interface,
        listen_port=_parse_optional_int(listen_port, "listen port"),
        fwmark=_parse_optional_int(fwmark, "fwmark"),
    )


def _parse_peer(fields: List[str]) -> PeerRecord:
    (_, public_key, preshared_key, endpoint, allowed_ips,
     latest_handshake, rx_bytes, tx_bytes, keepalive) = fields

    if not public_key:
        raise MalformedRecord("peer has an empty public key")

    return PeerRecord(
        public_key=public_key,
        has_preshared_key=preshared_key != NONE,
        endpoint=parse_endpoint(endpoint),
        allowed_ips=parse_allowed_ips(allowed_ips),
        latest_handshake=parse_latest_handshake(latest_handshake),
        received_bytes=_parse_int(rx_bytes, "rx bytes"),
        sent_bytes=_parse_int(tx_bytes, "tx bytes"),
        persistent_keepalive=_parse_optional_int(keepalive, "persistent keepalive"),
    )


def parse_dump(text: str) -> Snapshot:
    """Turn one dump into a Snapshot. Any bad line fails the whole dump."""
    snapshot = Snapshot()

    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue

        fields = line.split("\t")
        interface = fields[0]

        try:
            if not interface:
                raise MalformedRecord("missing interface name")

            if len(fields) == DEVICE_FIELDS:
                if interface in snapshot:
                    raise MalformedRecord(f"second device line for {interface!r}")
                snapshot.interfaces[interface] = InterfaceState(device=_parse_device(fields))

            elif len(fields) == PEER_FIELDS:
                state = snapshot.interfaces.get(interface)
                if state is None:
                    raise MalformedRecord(f"peer line before device line of {interface!r}")
                state.peers.append(_parse_peer(fields))

            else:
                raise MalformedRecord(
                    f"expected {DEVICE_FIELDS} or {PEER_FIELDS} fields, got {len(fields)}"
                )
        except MalformedRecord as e:
            raise MalformedRecord(e.reason, line_number=line_number, line=line) from None

    return snapshot
