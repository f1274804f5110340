"""Relay PDP-11 front panel state from UDP datagrams to WebSocket clients as JSON."""

__version__ = "0.1.0"