"""Realtime chat server: a bounded, file-backed message log with websocket fanout."""

__version__ = "0.1.0"
