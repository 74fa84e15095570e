"""
Core state definitions for wgexporter.

These mirror what `wg show <iface> dump` reports: one device record per
interface and one record per configured peer. Key material is never kept
here, only whether a preshared key is set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from wgexporter.errors import DuplicateInterface


@dataclass(frozen=True)
class DeviceRecord:
    interface: str
    listen_port: Optional[int] = None
    fwmark: Optional[int] = None


@dataclass(frozen=True)
class Endpoint:
    host: str   # IPv6 addresses are stored without brackets
    port: int

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class PeerRecord:
    public_key: str
    has_preshared_key: bool = False
    endpoint: Optional[Endpoint] = None
    allowed_ips: Tuple[str, ...] = ()
    latest_handshake: Optional[int] = None  # epoch seconds, None = never
    received_bytes: int = 0
    sent_bytes: int = 0
    persistent_keepalive: Optional[int] = None  # seconds, None = off


@dataclass
class InterfaceState:
    device: DeviceRecord
    peers: List[PeerRecord] = field(default_factory=list)


@dataclass
class Snapshot:
    """Every interface seen during one scrape, keyed by interface name."""

    interfaces: Dict[str, InterfaceState] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.interfaces)

    def __contains__(self, interface: str) -> bool:
        return interface in self.interfaces

    def merge(self, incoming: "Snapshot") -> "Snapshot":
        """Add every interface of `incoming` to this snapshot.

        A given interface must be queried exactly once, so a shared name
        raises DuplicateInterface even when both entries are identical.
        Nothing is inserted if any name clashes.
        """
        for name in incoming.interfaces:
            if name in self.interfaces:
                raise DuplicateInterface(name)
        self.interfaces.update(incoming.interfaces)
        return self

    def sorted_interfaces(self) -> Iterator[InterfaceState]:
        for name in sorted(self.interfaces):
            yield self.interfaces[name]

    def peer_count(self) -> int:
        return sum(len(state.peers) for state in self.interfaces.values())


def merge_snapshots(base: Snapshot, incoming: Snapshot) -> Snapshot:
    return base.merge(incoming)
