"""
Error types for the scrape pipeline.

Every failure while parsing a dump, merging snapshots, or resolving peer
names is fatal to the scrape. Each error keeps enough context (line,
file, key) for the serving layer to log it.
"""

from __future__ import annotations

from typing import Optional


class ExporterError(Exception):
    """Base class for everything the pipeline raises."""


class MalformedRecord(ExporterError):
    def __init__(self, reason: str, line_number: Optional[int] = None, line: Optional[str] = None):
        self.reason = reason
        self.line_number = line_number
        self.line = line
        msg = f"malformed dump record: {reason}"
        if line_number is not None:
            msg += f" (line {line_number}: {line!r})"
        super().__init__(msg)


class DuplicateInterface(ExporterError):
    def __init__(self, interface: str):
        self.interface = interface
        super().__init__(f"interface {interface!r} was queried more than once")


class InvalidConfig(ExporterError):
    def __init__(self, reason: str, source: Optional[str] = None):
        self.reason = reason
        self.source = source
        where = f" in {source}" if source else ""
        super().__init__(f"invalid peer config{where}: {reason}")


class InvalidPeerComment(ExporterError):
    def __init__(self, reason: str, source: Optional[str] = None, public_key: Optional[str] = None):
        self.reason = reason
        self.source = source
        self.public_key = public_key
        where = f" in {source}" if source else ""
        peer = f" for peer {public_key}" if public_key else ""
        super().__init__(f"invalid friendly comment{peer}{where}: {reason}")


class InvalidNameMapping(ExporterError):
    def __init__(self, reason: str, source: Optional[str] = None):
        self.reason = reason
        self.source = source
        where = f" {source}" if source else ""
        super().__init__(
            f"failed to parse peer names{where}: {reason} "
            f"(expected JSON object mapping public keys to names)"
        )


class ExternalToolFailure(ExporterError):
    def __init__(
        self,
        reason: str,
        command: Optional[list] = None,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        self.reason = reason
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        msg = reason
        if command:
            msg = f"{' '.join(command)}: {reason}"
        if stderr:
            msg += f" ({stderr.strip()})"
        super().__init__(msg)
