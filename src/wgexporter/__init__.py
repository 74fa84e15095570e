"""Prometheus exporter for WireGuard interface and peer state."""

__version__ = "0.4.0"
