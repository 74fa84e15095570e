"""
One scrape, start to finish.

Reads the peer naming files, queries each configured interface in turn,
merges the dumps and renders the result. Nothing is cached between
scrapes; a failure anywhere aborts the scrape with an ExporterError and
no output.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional

from wgexporter.collector.base import ALL_INTERFACES, DumpSource
from wgexporter.collector.dump_parser import parse_dump
from wgexporter.collector.file_source import FileDumpSource
from wgexporter.collector.wg_command import WgCommandSource
from wgexporter.config import ExporterConfig
from wgexporter.errors import InvalidConfig, InvalidNameMapping
from wgexporter.model import Snapshot
from wgexporter.peers import PeerEntry, resolve_peer_metadata
from wgexporter.renderer import render_metrics

log = logging.getLogger(__name__)


def build_source(config: ExporterConfig) -> DumpSource:
    if config.dump_file:
        return FileDumpSource(config.dump_file)
    return WgCommandSource(
        wg_binary=config.wg_binary,
        prepend_sudo=config.prepend_sudo,
        timeout_seconds=config.command_timeout,
    )


def _read_text(path: str, error_cls) -> str:
    try:
        return Path(path).read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise error_cls(f"cannot read file: {e}", path) from e


class WireGuardExporter:

    def __init__(self, config: ExporterConfig, source: Optional[DumpSource] = None):
        self._config = config
        self._source = source or build_source(config)
        self._options = config.render_options()

    @property
    def config(self) -> ExporterConfig:
        return self._config

    def interfaces(self) -> List[str]:
        return list(self._config.interfaces) or [ALL_INTERFACES]

    def collect(self) -> Snapshot:
        """Query every interface, one after the other, into one Snapshot."""
        snapshot = Snapshot()
        for interface in self.interfaces():
            snapshot.merge(parse_dump(self._source.dump(interface)))
        log.debug("collected %d interfaces, %d peers", len(snapshot), snapshot.peer_count())
        return snapshot

    def peer_entries(self) -> Dict[str, PeerEntry]:
        config_texts = None
        if self._config.config_files:
            config_texts = [_read_text(path, InvalidConfig) for path in self._config.config_files]

        names_text = None
        if self._config.peer_names_file:
            names_text = _read_text(self._config.peer_names_file, InvalidNameMapping)

        entries = resolve_peer_metadata(
            config_texts,
            names_text,
            config_sources=self._config.config_files,
            mapping_source=self._config.peer_names_file,
        )
        log.debug("resolved friendly metadata for %d peers", len(entries))
        return entries

    def scrape(self, now: Optional[int] = None) -> str:
        entries = self.peer_entries()
        snapshot = self.collect()
        return render_metrics(snapshot, entries, self._options, now=now)

    def name(self) -> str:
        return self._source.name()
