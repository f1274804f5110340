"""HTTP server for the static front-end and its proxy configuration."""

from __future__ import annotations

import json
import threading
from http import HTTPStatus
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from os import PathLike
from typing import Dict, Optional, Union
from urllib.parse import urlsplit

from .log import Loggable

CONFIG_PATH = "/config.json"


class WebServer(Loggable):
    """Serves a content directory and ``/config.json`` listing the proxy ports."""

    module_name = "WebServer"

    def __init__(
        self, port: int, content_dir: Union[str, PathLike], host: str = "0.0.0.0"
    ) -> None:
        self.port = port
        self.content_dir = str(content_dir)
        self.host = host
        self.proxy_ports: Dict[str, int] = {}
        self._server: Optional[ThreadingHTTPServer] = None
        self._serving = False
        self._stopped = False
        self._lock = threading.Lock()

    def add_proxy_port(self, proxy_name: str, port: int) -> None:
        """Publish a proxy's port under its name in the configuration."""
        if not 0 <= port <= 0xFFFF:
            raise ValueError(f"Port out of range: {port}")
        self.proxy_ports[proxy_name] = port

    def config_json(self) -> str:
        """The configuration document served at ``/config.json``."""
        return json.dumps(
            {"proxyPorts": dict(sorted(self.proxy_ports.items()))},
            separators=(",", ":"),
        )

    def start(self) -> int:
        """Bind the listening socket and return its port; raises OSError on failure."""
        with self._lock:
            if self._server is None:
                web = self

                class _Handler(SimpleHTTPRequestHandler):
                    def __init__(self, *args, **kwargs):
                        super().__init__(*args, directory=web.content_dir, **kwargs)

                    def do_GET(self):
                        if urlsplit(self.path).path != CONFIG_PATH:
                            return super().do_GET()
                        body = web.config_json().encode("utf-8")
                        self.send_response(HTTPStatus.OK)
                        self.send_header("Content-Type", "application/json")
                        self.send_header("Content-Length", str(len(body)))
                        self.end_headers()
                        self.wfile.write(body)

                self._server = ThreadingHTTPServer((self.host, self.port), _Handler)
                self._server.daemon_threads = True
                self.port = self._server.server_address[1]
            return self.port

    def run(self) -> None:
        """Serve requests, blocking until :meth:`stop` is called."""
        self.start()
        server = self._server
        self.log_info(f"HTTP server serving directory '{self.content_dir}' on port {self.port}")
        try:
            with self._lock:
                self._serving = not self._stopped
            if self._serving:
                server.serve_forever()
        finally:
            with self._lock:
                self._serving = False
                self._server = None
            server.server_close()
            self.log_info("HTTP server stopped")

    def stop(self) -> None:
        """Stop serving; call from a thread other than the one in :meth:`run`."""
        with self._lock:
            self._stopped = True
            server = self._server if self._serving else None
        if server is not None:
            server.shutdown()