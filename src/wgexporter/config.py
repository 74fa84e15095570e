"""
Exporter configuration.

Built once by the CLI (which also binds the environment variables) and
handed to the exporter at construction. Nothing below the CLI reads the
process environment.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from wgexporter.renderer import RenderOptions

DEFAULT_ADDRESS = "0.0.0.0"
DEFAULT_PORT = 9586


@dataclass(frozen=True)
class ExporterConfig:
    address: str = DEFAULT_ADDRESS
    port: int = DEFAULT_PORT

    # Empty means `wg show all dump`
    interfaces: Tuple[str, ...] = ()

    wg_binary: str = "wg"
    prepend_sudo: bool = False
    command_timeout: float = 5.0
    dump_file: Optional[str] = None

    config_files: Tuple[str, ...] = ()
    peer_names_file: Optional[str] = None

    separate_allowed_ips: bool = False
    export_remote_ip_and_port: bool = False
    export_latest_handshake_delay: bool = False

    def render_options(self) -> RenderOptions:
        return RenderOptions(
            separate_allowed_ips=self.separate_allowed_ips,
            export_remote_ip_and_port=self.export_remote_ip_and_port,
            export_latest_handshake_delay=self.export_latest_handshake_delay,
        )
