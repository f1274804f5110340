"""Command line entry point: one web server plus one or more panel proxies."""

from __future__ import annotations

import argparse
import signal
import threading
from typing import Optional, Sequence, Tuple

from .log import Level, log_message
from .proxy import PDProxy
from .webserver import WebServer

WEBSERVER_PORT = 4080
CONTENT_DIR = "wwwroot"
PDPROXY_NAME = "pdproxy"
PDPROXY_PORT = 4000


def _port(text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a port number: {text!r}") from None
    if not 0 < value <= 0xFFFF:
        raise argparse.ArgumentTypeError(f"port out of range: {value}")
    return value


def _proxy_spec(text: str) -> Tuple[str, int]:
    name, sep, port_text = text.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=PORT, got {text!r}")
    return name, _port(port_text)


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="udproxy", description="Relay UDP front panel packets to WebSocket clients."
    )
    parser.add_argument("--host", default="0.0.0.0", help="address to listen on")
    parser.add_argument("--web-port", type=_port, default=WEBSERVER_PORT)
    parser.add_argument("--content-dir", default=CONTENT_DIR)
    parser.add_argument(
        "--proxy", dest="proxies", action="append", type=_proxy_spec, metavar="NAME=PORT",
        help=f"add a proxy (default {PDPROXY_NAME}={PDPROXY_PORT}); repeatable",
    )
    return parser


def _run_proxy(proxy: PDProxy) -> None:
    try:
        proxy.run()
    except OSError:
        pass  # already logged by the proxy


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the web server and proxies until interrupted."""
    args = build_parser().parse_args(argv)
    webserver = WebServer(args.web_port, args.content_dir, args.host)
    proxies = []
    for name, port in args.proxies or [(PDPROXY_NAME, PDPROXY_PORT)]:
        webserver.add_proxy_port(name, port)
        proxies.append(PDProxy(port, args.host))

    try:
        webserver.start()
    except OSError as exc:
        log_message("main", Level.ERROR, f"HTTP server listen failed: {exc}")
        return 1

    def _stop(signum, frame):
        for proxy in proxies:
            proxy.stop()
        webserver.stop()

    previous = signal.signal(signal.SIGINT, _stop)
    threads = [threading.Thread(target=webserver.run, daemon=True)]
    threads += [threading.Thread(target=_run_proxy, args=(p,), daemon=True) for p in proxies]
    try:
        for thread in threads:
            thread.start()
        for thread in reversed(threads):
            while thread.is_alive():
                thread.join(0.5)
    finally:
        signal.signal(signal.SIGINT, previous)
    return 0