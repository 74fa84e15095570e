"""
Tests for the /metrics HTTP server.

Starts the server in a thread on a free port and scrapes it with httpx.
"""

import threading

import httpx

from wgexporter.collector.base import ALL_INTERFACES, DumpSource
from wgexporter.config import ExporterConfig
from wgexporter.errors import ExternalToolFailure
from wgexporter.exporter import WireGuardExporter
from wgexporter.server import CONTENT_TYPE, make_server

DUMP = (
    "wg0\tpriv\tpub\t51820\toff\n"
    "wg0\tPEER_A=\t(none)\t1.2.3.4:5000\t10.0.0.2/32\t1700000000\t10\t20\toff\n"
)


class StaticSource(DumpSource):

    def __init__(self, text=DUMP, fail=False):
        self._text = text
        self._fail = fail

    def dump(self, interface: str) -> str:
        if self._fail:
            raise ExternalToolFailure("exited with status 1", command=["wg", "show", interface, "dump"])
        return self._text

    def name(self) -> str:
        return "static"


def _get(url: str) -> httpx.Response:
    return httpx.get(url, trust_env=False)


def _start_test_server(source: DumpSource):
    exporter = WireGuardExporter(ExporterConfig(), source=source)
    server = make_server(exporter, "127.0.0.1", 0)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    return server, f"http://{host}:{port}"


def test_metrics_endpoint_serves_exposition_text():
    server, base_url = _start_test_server(StaticSource())
    try:
        response = _get(f"{base_url}/metrics")
        assert response.status_code == 200
        assert response.headers["content-type"] == CONTENT_TYPE
        assert 'wireguard_sent_bytes_total{interface="wg0",public_key="PEER_A="} 20' in response.text
    finally:
        server.shutdown()
        server.server_close()


def test_failed_scrape_returns_500_without_metrics():
    server, base_url = _start_test_server(StaticSource(fail=True))
    try:
        response = _get(f"{base_url}/metrics")
        assert response.status_code == 500
        assert "wireguard_" not in response.text
        assert "exited with status 1" in response.text
    finally:
        server.shutdown()
        server.server_close()


def test_malformed_dump_returns_500():
    server, base_url = _start_test_server(StaticSource(text=DUMP + "wg0\tbroken\n"))
    try:
        response = _get(f"{base_url}/metrics")
        assert response.status_code == 500
        assert "malformed dump record" in response.text
    finally:
        server.shutdown()
        server.server_close()


def test_landing_page_and_unknown_path():
    server, base_url = _start_test_server(StaticSource())
    try:
        assert '<a href="/metrics">' in _get(f"{base_url}/").text
        assert _get(f"{base_url}/nope").status_code == 404
    finally:
        server.shutdown()
        server.server_close()


def test_scrapes_are_recomputed_each_time():
    source = StaticSource()
    server, base_url = _start_test_server(source)
    try:
        first = _get(f"{base_url}/metrics").text
        source._text = DUMP.replace("\t10\t20\t", "\t11\t25\t")
        second = _get(f"{base_url}/metrics").text
        assert "} 20" in first
        assert 'public_key="PEER_A="} 25' in second
    finally:
        server.shutdown()
        server.server_close()


def test_all_interfaces_sentinel_used_by_default():
    seen = []

    class RecordingSource(StaticSource):
        def dump(self, interface):
            seen.append(interface)
            return super().dump(interface)

    server, base_url = _start_test_server(RecordingSource())
    try:
        _get(f"{base_url}/metrics")
        assert seen == [ALL_INTERFACES]
    finally:
        server.shutdown()
        server.server_close()
