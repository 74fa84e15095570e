"""
Dump source that shells out to `wg show <iface> dump`.

Output of `wg show all dump` carries the interface name as its first
column, output for a named interface does not. Per-interface output gets
the name prepended to every line here so the parser only deals with one
layout.
"""

from __future__ import annotations

import logging
import subprocess
from typing import List

from wgexporter.collector.base import ALL_INTERFACES, DumpSource, prepend_interface
from wgexporter.errors import ExternalToolFailure

log = logging.getLogger(__name__)


class WgCommandSource(DumpSource):

    def __init__(
        self,
        wg_binary: str = "wg",
        prepend_sudo: bool = False,
        timeout_seconds: float = 5.0,
    ):
        self._wg_binary = wg_binary
        self._prepend_sudo = prepend_sudo
        self._timeout = timeout_seconds

    def command(self, interface: str) -> List[str]:
        cmd = [self._wg_binary, "show", interface, "dump"]
        if self._prepend_sudo:
            cmd.insert(0, "sudo")
        return cmd

    def dump(self, interface: str) -> str:
        cmd = self.command(interface)
        log.debug("running %s", " ".join(cmd))

        try:
            result = subprocess.run(cmd, capture_output=True, timeout=self._timeout)
        except subprocess.TimeoutExpired:
            raise ExternalToolFailure(f"timed out after {self._timeout:g}s", command=cmd) from None
        except OSError as e:
            raise ExternalToolFailure(f"could not be started: {e}", command=cmd) from e

        try:
            stdout = result.stdout.decode("utf-8")
            stderr = result.stderr.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ExternalToolFailure(f"output is not valid UTF-8: {e}", command=cmd) from e

        log.debug("%s stdout == %r", " ".join(cmd), stdout)
        if stderr:
            log.debug("%s stderr == %r", " ".join(cmd), stderr)

        if result.returncode != 0:
            raise ExternalToolFailure(
                f"exited with status {result.returncode}",
                command=cmd,
                returncode=result.returncode,
                stderr=stderr,
            )

        if interface == ALL_INTERFACES:
            return stdout

        log.debug("injecting %s into the wg show output", interface)
        return prepend_interface(stdout, interface)

    def name(self) -> str:
        prefix = "sudo " if self._prepend_sudo else ""
        return f"{prefix}{self._wg_binary} show <interface> dump"
