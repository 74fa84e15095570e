"""
Render a Snapshot as a Prometheus text exposition document.

Samples of one metric family must be contiguous, so samples are buffered
per family and written out family by family. Interfaces come out sorted
by name, peers in the order `wg` reported them.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import List, Mapping, Optional, Tuple

from wgexporter.model import InterfaceState, PeerRecord, Snapshot
from wgexporter.peers import FriendlyLabels, FriendlyName, PeerEntry


@dataclass(frozen=True)
class RenderOptions:
    separate_allowed_ips: bool = False
    export_remote_ip_and_port: bool = False
    export_latest_handshake_delay: bool = False


Labels = List[Tuple[str, str]]


def escape_label_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def format_sample(name: str, labels: Labels, value: int) -> str:
    if not labels:
        return f"{name} {value}"
    body = ",".join(f'{key}="{escape_label_value(val)}"' for key, val in labels)
    return f"{name}{{{body}}} {value}"


class _Family:

    def __init__(self, name: str, metric_type: str, help_text: str):
        self.name = name
        self.metric_type = metric_type
        self.help_text = help_text
        self.samples: List[str] = []

    def add(self, labels: Labels, value: int):
        self.samples.append(format_sample(self.name, labels, value))

    def lines(self) -> List[str]:
        if not self.samples:
            return []
        return [
            f"# HELP {self.name} {self.help_text}",
            f"# TYPE {self.name} {self.metric_type}",
            *self.samples,
        ]


def _peer_labels(state: InterfaceState, peer: PeerRecord) -> Labels:
    return [("interface", state.device.interface), ("public_key", peer.public_key)]


def _friendly_labels(entry: Optional[PeerEntry]) -> Labels:
    if entry is None or entry.metadata is None:
        return []
    metadata = entry.metadata
    if isinstance(metadata, FriendlyName):
        return [("friendly_name", metadata.name)]
    if isinstance(metadata, FriendlyLabels):
        return list(metadata.labels.items())
    raise TypeError(f"unknown peer metadata: {metadata!r}")


def _interface_labels(state: InterfaceState) -> Labels:
    labels = [("interface", state.device.interface)]
    if state.device.listen_port is not None:
        labels.append(("listen_port", str(state.device.listen_port)))
    if state.device.fwmark is not None:
        labels.append(("fwmark", str(state.device.fwmark)))
    return labels


def render_metrics(
    snapshot: Snapshot,
    peer_entries: Optional[Mapping[str, PeerEntry]] = None,
    options: RenderOptions = RenderOptions(),
    now: Optional[int] = None,
) -> str:
    """Render every interface and peer of `snapshot`.

    `now` is the single time sample used for handshake delays; it defaults
    to the wall clock at call time.
    """
    peer_entries = peer_entries or {}
    if now is None:
        now = int(time.time())

    interface_info = _Family(
        "wireguard_interface_info", "gauge", "WireGuard interface information")
    peer_info = _Family(
        "wireguard_peer_info", "gauge", "WireGuard peer information")
    allowed_ip = _Family(
        "wireguard_peer_allowed_ip", "gauge", "One of the allowed IPs of a peer")
    sent = _Family(
        "wireguard_sent_bytes_total", "counter", "Bytes sent to the peer")
    received = _Family(
        "wireguard_received_bytes_total", "counter", "Bytes received from the peer")
    handshake = _Family(
        "wireguard_latest_handshake_seconds", "gauge",
        "UNIX timestamp seconds of the last handshake")
    handshake_delay = _Family(
        "wireguard_latest_handshake_delay_seconds", "gauge",
        "Seconds from the last handshake")

    for state in snapshot.sorted_interfaces():
        interface_info.add(_interface_labels(state), 1)

        for peer in state.peers:
            base = _peer_labels(state, peer)

            info = list(base)
            if options.separate_allowed_ips:
                for cidr in peer.allowed_ips:
                    allowed_ip.add(base + [("allowed_ip", cidr)], 0)
            else:
                info.append(("allowed_ips", ",".join(peer.allowed_ips)))

            if options.export_remote_ip_and_port and peer.endpoint is not None:
                info.append(("remote_ip", peer.endpoint.host))
                info.append(("remote_port", str(peer.endpoint.port)))

            info.extend(_friendly_labels(peer_entries.get(peer.public_key)))
            peer_info.add(info, 1)

            sent.add(base, peer.sent_bytes)
            received.add(base, peer.received_bytes)
            handshake.add(base, peer.latest_handshake or 0)

            if options.export_latest_handshake_delay and peer.latest_handshake is not None:
                handshake_delay.add(base, now - peer.latest_handshake)

    lines: List[str] = []
    for family in (interface_info, peer_info, allowed_ip, sent, received, handshake, handshake_delay):
        lines.extend(family.lines())

    if not lines:
        return ""
    return "\n".join(lines) + "\n"
