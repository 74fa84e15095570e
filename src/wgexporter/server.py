"""
/metrics HTTP endpoint.

Every GET /metrics runs a full scrape. A failed scrape answers 500 with
the error text and never a partial document.
"""

from __future__ import annotations

import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Type

from wgexporter import __version__
from wgexporter.errors import ExporterError
from wgexporter.exporter import WireGuardExporter

log = logging.getLogger(__name__)

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

_LANDING_PAGE = """\
<html>
<head><title>WireGuard Exporter</title></head>
<body>
<h1>WireGuard Exporter v{version}</h1>
<p><a href="/metrics">Metrics</a></p>
</body>
</html>
"""


class _MetricsHandler(BaseHTTPRequestHandler):
    exporter: WireGuardExporter

    def do_GET(self):
        path = self.path.split("?", 1)[0]
        if path == "/metrics":
            self._serve_metrics()
        elif path == "/":
            self._send(200, _LANDING_PAGE.format(version=__version__), "text/html; charset=utf-8")
        else:
            self._send(404, "not found\n", "text/plain; charset=utf-8")

    def _serve_metrics(self):
        try:
            body = self.exporter.scrape()
        except ExporterError as e:
            log.error("scrape failed: %s", e)
            self._send(500, f"{e}\n", "text/plain; charset=utf-8")
            return
        self._send(200, body, CONTENT_TYPE)

    def _send(self, status: int, text: str, content_type: str):
        body = text.encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        log.debug("%s - %s", self.address_string(), format % args)


def make_server(exporter: WireGuardExporter, host: str, port: int) -> ThreadingHTTPServer:
    handler: Type[_MetricsHandler] = type(
        "MetricsHandler", (_MetricsHandler,), {"exporter": exporter}
    )
    return ThreadingHTTPServer((host, port), handler)


def run_server(exporter: WireGuardExporter, host: str, port: int):
    server = make_server(exporter, host, port)
    log.info("starting exporter on http://%s:%d/metrics", host, server.server_address[1])
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    finally:
        server.server_close()
    log.info("exporter stopped")
