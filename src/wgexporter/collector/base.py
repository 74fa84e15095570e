"""
Base dump source interface.

A dump source is anything that can produce `wg show ... dump` text in the
interface-first layout the parser expects. This keeps the exporter
decoupled from where the dump actually comes from (the real `wg` binary,
a saved file, etc).
"""

from abc import ABC, abstractmethod

# Sentinel accepted by `wg show` meaning every interface at once
ALL_INTERFACES = "all"


class DumpSource(ABC):
    """Interface for all dump producers."""

    @abstractmethod
    def dump(self, interface: str) -> str:
        """Return the dump for one interface (or ALL_INTERFACES), interface column first."""
        ...

    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this source."""
        ...


def prepend_interface(text: str, interface: str) -> str:
    """Give a single-interface dump the same column layout as `wg show all dump`."""
    return "".join(f"{interface}\t{line}\n" for line in text.splitlines() if line)
