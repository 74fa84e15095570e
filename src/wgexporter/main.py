"""
wgexporter entry point.

Usage:
    wgexporter                                  Serve /metrics on 0.0.0.0:9586
    wgexporter -i wg0 -i wg1 -n /etc/wireguard/wg0.conf serve
    wgexporter --dump-file sample.dump show     One-shot peer table
"""

from __future__ import annotations

import logging

import click

from wgexporter import __version__
from wgexporter.config import DEFAULT_ADDRESS, DEFAULT_PORT, ExporterConfig
from wgexporter.errors import ExporterError
from wgexporter.exporter import WireGuardExporter
from wgexporter.server import run_server


log = logging.getLogger("wgexporter")

_ENV = "PROMETHEUS_WIREGUARD_EXPORTER_"


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="wgexporter")
@click.option("-l", "--address", default=DEFAULT_ADDRESS, envvar=_ENV + "ADDRESS",
              help="Exporter address")
@click.option("-p", "--port", default=DEFAULT_PORT, type=click.IntRange(0, 65535),
              envvar=_ENV + "PORT", help="Exporter port")
@click.option("-v", "--verbose", is_flag=True, default=False,
              envvar=_ENV + "VERBOSE_ENABLED", help="Enable debug logging")
@click.option("-a", "--prepend-sudo", is_flag=True, default=False,
              envvar=_ENV + "PREPEND_SUDO_ENABLED", help="Prepend sudo to the wg show commands")
@click.option("-s", "--separate-allowed-ips", is_flag=True, default=False,
              envvar=_ENV + "SEPARATE_ALLOWED_IPS_ENABLED",
              help="Export one wireguard_peer_allowed_ip line per allowed IP")
@click.option("-r", "--export-remote-ip-and-port", is_flag=True, default=False,
              envvar=_ENV + "EXPORT_REMOTE_IP_AND_PORT_ENABLED",
              help="Export the peer's remote ip and port as labels (if available)")
@click.option("-d", "--export-latest-handshake-delay", is_flag=True, default=False,
              envvar="EXPORT_LATEST_HANDSHAKE_DELAY",
              help="Export the seconds elapsed since the latest handshake")
@click.option("-n", "--extract-names-config-file", "config_files", multiple=True,
              type=click.Path(dir_okay=False), envvar=_ENV + "CONFIG_FILE_NAMES",
              help="WireGuard config file to read peer names from (repeatable)")
@click.option("--peer-names-config-file", type=click.Path(dir_okay=False), default=None,
              envvar=_ENV + "PEER_NAMES_CONFIG_FILE",
              help="JSON file mapping peer public keys to names")
@click.option("-i", "--interface", "interfaces", multiple=True, envvar=_ENV + "INTERFACES",
              help="Interface passed to wg show (repeatable, default: all)")
@click.option("--wg-binary", default="wg", envvar=_ENV + "WG_BINARY", help="Path to the wg binary")
@click.option("--timeout", default=5.0, type=click.FloatRange(min=0, min_open=True),
              envvar=_ENV + "TIMEOUT", help="Seconds to wait for each wg invocation")
@click.option("--dump-file", type=click.Path(dir_okay=False), default=None,
              help="Read a saved 'wg show all dump' instead of running wg")
@click.pass_context
def cli(ctx, address: str, port: int, verbose: bool, prepend_sudo: bool,
        separate_allowed_ips: bool, export_remote_ip_and_port: bool,
        export_latest_handshake_delay: bool, config_files: tuple,
        peer_names_config_file: str, interfaces: tuple, wg_binary: str,
        timeout: float, dump_file: str):
    """Prometheus exporter for WireGuard."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    ctx.ensure_object(dict)
    ctx.obj["config"] = ExporterConfig(
        address=address,
        port=port,
        interfaces=tuple(interfaces),
        wg_binary=wg_binary,
        prepend_sudo=prepend_sudo,
        command_timeout=timeout,
        dump_file=dump_file,
        config_files=tuple(config_files),
        peer_names_file=peer_names_config_file,
        separate_allowed_ips=separate_allowed_ips,
        export_remote_ip_and_port=export_remote_ip_and_port,
        export_latest_handshake_delay=export_latest_handshake_delay,
    )

    # If no subcommand, serve (backwards compatible)
    if ctx.invoked_subcommand is None:
        ctx.invoke(serve)


@cli.command()
@click.pass_context
def serve(ctx):
    """Serve /metrics until interrupted."""
    config: ExporterConfig = ctx.obj["config"]
    log.info("wgexporter v%s starting...", __version__)
    log.info("using options: %s", config)

    exporter = WireGuardExporter(config)
    run_server(exporter, config.address, config.port)


@cli.command()
@click.pass_context
def show(ctx):
    """Collect once and print the peers as a table."""
    from wgexporter.dashboard.table import print_peer_table

    config: ExporterConfig = ctx.obj["config"]
    exporter = WireGuardExporter(config)

    try:
        entries = exporter.peer_entries()
        snapshot = exporter.collect()
    except ExporterError as e:
        log.error("collection failed: %s", e)
        raise SystemExit(1)

    print_peer_table(snapshot, entries, exporter.name())


if __name__ == "__main__":
    cli()
