# linky_exporter/services/exporter.py

from __future__ import annotations

from typing import Any
from wsgiref.simple_server import WSGIRequestHandler, WSGIServer, make_server

from prometheus_client import CollectorRegistry, generate_latest, make_wsgi_app

from linky_exporter.config import ExporterConfig
from linky_exporter.logging import get_logger


class LinkyRequestHandler(WSGIRequestHandler):
    """Send per-request access lines to the exporter log instead of stderr."""

    log = get_logger("http")

    def log_message(self, format: str, *args: Any) -> None:
        self.log.debug("HTTP %s - %s", self.address_string(), format % args)


class LinkyExporter:
    """
    Serves /metrics from a dedicated registry holding only the Linky collector.

    The wsgiref server handles one request at a time, which keeps scrapes
    (and therefore serial reads) strictly sequential.
    """

    def __init__(self, exporter_cfg: ExporterConfig, collector: Any, log: Any):
        self.cfg = exporter_cfg
        self.log = log
        self.registry = CollectorRegistry(auto_describe=True)
        self.registry.register(collector)
        self._server: WSGIServer | None = None

    # ----------------------------------------------------------------------

    def render(self) -> bytes:
        return generate_latest(self.registry)

    def build_server(self) -> WSGIServer:
        app = make_wsgi_app(self.registry)
        self._server = make_server(self.cfg.address, self.cfg.port, app, handler_class=LinkyRequestHandler)
        return self._server

    @property
    def port(self) -> int:
        if self._server is None:
            return self.cfg.port
        return self._server.server_address[1]

    # ----------------------------------------------------------------------

    def run(self) -> None:
        server = self.build_server()
        self.log.info("Beginning to serve on %s:%d", self.cfg.address, self.port)
        try:
            server.serve_forever()
        finally:
            server.server_close()
