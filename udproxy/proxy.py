"""Relay of UDP panel datagrams to every connected WebSocket client."""

from __future__ import annotations

import abc
import asyncio
from typing import Any, Optional, Set

import websockets
from websockets.exceptions import ConnectionClosed

from .log import Loggable
from .packet import PacketError, packet_to_json

DEFAULT_HOST = "0.0.0.0"
MAX_PORT = 0xFFFF


class _DatagramReceiver(asyncio.DatagramProtocol):
    """Hands every received datagram to the owning proxy."""

    def __init__(self, proxy: "ProxyBase") -> None:
        self._proxy = proxy

    def datagram_received(self, data: bytes, addr: Any) -> None:
        self._proxy.handle_datagram(data)

    def error_received(self, exc: Exception) -> None:
        self._proxy.log_error(f"UDP recv error: {exc}")


class ProxyBase(Loggable, abc.ABC):
    """Listens for UDP datagrams and a WebSocket server on the same port.

    Every datagram is turned into JSON by :meth:`udp_packet_to_json` and
    sent to all connected WebSocket clients.
    """

    def __init__(self, port: int, host: str = DEFAULT_HOST) -> None:
        if not 0 <= port <= MAX_PORT:
            raise ValueError(f"Port out of range: {port}")
        self.port = port
        self.host = host
        self.ready = asyncio.Event()
        self._stop_event = asyncio.Event()
        self._stop_requested = False
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._clients: Set[Any] = set()
        self._pending: Set[asyncio.Task] = set()

    @abc.abstractmethod
    def udp_packet_to_json(self, data: bytes) -> str:
        """Render one datagram as JSON; raise PacketError if it is malformed."""

    def handle_datagram(self, data: bytes) -> Optional[str]:
        """Convert a datagram and send it to every client.

        Returns the JSON sent, or None when the datagram was empty or
        could not be parsed.
        """
        if not data:
            return None
        try:
            message = self.udp_packet_to_json(bytes(data))
        except PacketError as exc:
            self.log_error(str(exc))
            self.log_error(
                f"Failed to parse UDP packet ({len(data)} bytes) - packet cannot be processed"
            )
            return None
        self._broadcast(message)
        return message

    def _broadcast(self, message: str) -> None:
        if not self._clients:
            return
        loop = asyncio.get_running_loop()
        for client in tuple(self._clients):
            task = loop.create_task(self._send(client, message))
            self._pending.add(task)
            task.add_done_callback(self._pending.discard)

    @staticmethod
    async def _send(client: Any, message: str) -> None:
        try:
            await client.send(message)
        except ConnectionClosed:
            pass

    async def _handle_client(self, websocket: Any) -> None:
        remote = websocket.remote_address or ("?", 0)
        self.log_info(f"WebSocket client connected: {remote[0]}:{remote[1]}")
        self._clients.add(websocket)
        try:
            async for _ in websocket:
                pass
        except ConnectionClosed:
            pass
        finally:
            self._clients.discard(websocket)

    async def _open_udp(self) -> asyncio.DatagramTransport:
        loop = asyncio.get_running_loop()
        try:
            transport, _ = await loop.create_datagram_endpoint(
                lambda: _DatagramReceiver(self), local_addr=(self.host, self.port)
            )
        except OSError as exc:
            self.log_error(f"Failed to bind UDP socket: {exc}")
            raise
        self.log_info(f"UDP socket listening on port {self.port}")
        return transport

    async def serve(self) -> None:
        """Serve until :meth:`stop` is called.

        Raises OSError when either socket cannot be bound.
        """
        self._loop = asyncio.get_running_loop()
        if self._stop_requested:
            self._stop_event.set()
        self.log_info(f"Starting WebSocket server on port {self.port}")
        try:
            server = await websockets.serve(self._handle_client, self.host, self.port)
        except OSError as exc:
            self._loop = None
            self.log_error(f"WebSocket server listen failed: {exc}")
            raise
        try:
            self.port = next(iter(server.sockets)).getsockname()[1]
            self.log_info("WebSocket server started")
            transport = await self._open_udp()
            try:
                self.ready.set()
                await self._stop_event.wait()
            finally:
                transport.close()
                self.log_info("UDP socket closed")
        finally:
            server.close()
            await server.wait_closed()
            self.ready.clear()
            self._loop = None
            self.log_info("WebSocket server stopped")

    def run(self) -> None:
        """Serve in a fresh event loop, blocking until stopped."""
        asyncio.run(self.serve())

    def stop(self) -> None:
        """Ask the proxy to stop; safe to call from any thread."""
        self._stop_requested = True
        loop = self._loop
        if loop is None:
            return
        try:
            loop.call_soon_threadsafe(self._stop_event.set)
        except RuntimeError:
            pass


class PDProxy(ProxyBase):
    """Proxy for PDP-11 front panel packets."""

    module_name = "PDProxy"

    def udp_packet_to_json(self, data: bytes) -> str:
        return packet_to_json(data)