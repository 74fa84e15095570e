"""
Dump source backed by a saved `wg show all dump` file.
Used for local development on machines without WireGuard.
"""

from __future__ import annotations

from pathlib import Path

from wgexporter.collector.base import ALL_INTERFACES, DumpSource
from wgexporter.errors import ExternalToolFailure


class FileDumpSource(DumpSource):
    """Serves an all-interfaces dump from disk, re-read on every call."""

    def __init__(self, path: str):
        self._path = Path(path)

    def dump(self, interface: str) -> str:
        try:
            text = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ExternalToolFailure(f"cannot read dump file {self._path}: {e}") from e

        if interface == ALL_INTERFACES:
            return text

        # Same shape the wg command source hands back for a named interface
        lines = [line for line in text.splitlines() if line.split("\t", 1)[0] == interface]
        if not lines:
            raise ExternalToolFailure(f"no such interface in {self._path}: {interface}")
        return "".join(line + "\n" for line in lines)

    def name(self) -> str:
        return f"dump file ({self._path})"
