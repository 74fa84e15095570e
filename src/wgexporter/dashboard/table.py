"""Terminal peer table using Rich. One collection, printed once."""

from __future__ import annotations

import time
from typing import Mapping, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from wgexporter import __version__
from wgexporter.model import PeerRecord, Snapshot
from wgexporter.peers import FriendlyLabels, FriendlyName, PeerEntry

# Handshakes older than this usually mean the session is gone
STALE_HANDSHAKE_SECONDS = 180


def format_bytes(value: int) -> str:
    size = float(value)
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if size < 1024 or unit == "TiB":
            break
        size /= 1024
    if unit == "B":
        return f"{value} B"
    return f"{size:.1f} {unit}"


def format_handshake_age(peer: PeerRecord, now: int) -> str:
    if peer.latest_handshake is None:
        return "[dim]never[/dim]"

    age = max(0, now - peer.latest_handshake)
    color = "green" if age < STALE_HANDSHAKE_SECONDS else "yellow"
    if age < 60:
        text = f"{age}s ago"
    elif age < 3600:
        text = f"{age // 60}m {age % 60}s ago"
    else:
        text = f"{age // 3600}h {(age % 3600) // 60}m ago"
    return f"[{color}]{text}[/{color}]"


def display_name(entry: Optional[PeerEntry]) -> str:
    if entry is None or entry.metadata is None:
        return ""
    if isinstance(entry.metadata, FriendlyName):
        return entry.metadata.name
    if isinstance(entry.metadata, FriendlyLabels):
        return ", ".join(f"{k}={v}" for k, v in entry.metadata.labels.items())
    raise TypeError(f"unknown peer metadata: {entry.metadata!r}")


def build_peer_table(
    snapshot: Snapshot,
    peer_entries: Mapping[str, PeerEntry],
    now: Optional[int] = None,
) -> Table:
    if now is None:
        now = int(time.time())

    table = Table(show_header=True, header_style="bold cyan", expand=True)
    table.add_column("Interface", style="dim")
    table.add_column("Peer")
    table.add_column("Name")
    table.add_column("Endpoint")
    table.add_column("Allowed IPs")
    table.add_column("Handshake", justify="right")
    table.add_column("Received", justify="right")
    table.add_column("Sent", justify="right")

    for state in snapshot.sorted_interfaces():
        for peer in state.peers:
            table.add_row(
                state.device.interface,
                f"{peer.public_key[:8]}...",
                escape(display_name(peer_entries.get(peer.public_key))),
                escape(str(peer.endpoint)) if peer.endpoint else "[dim](none)[/dim]",
                ", ".join(peer.allowed_ips) or "[dim](none)[/dim]",
                format_handshake_age(peer, now),
                format_bytes(peer.received_bytes),
                format_bytes(peer.sent_bytes),
            )

    return table


def print_peer_table(
    snapshot: Snapshot,
    peer_entries: Mapping[str, PeerEntry],
    source_name: str,
    console: Optional[Console] = None,
):
    console = console or Console()
    header = Text(f"wgexporter v{__version__}  |  {source_name}", style="bold")
    console.print(header)

    if not snapshot.peer_count():
        console.print("\n[dim]No peers found.[/dim]\n")
        return

    console.print(build_peer_table(snapshot, peer_entries))
    console.print(
        f"[dim]{len(snapshot)} interface(s), {snapshot.peer_count()} peer(s)[/dim]\n"
    )
