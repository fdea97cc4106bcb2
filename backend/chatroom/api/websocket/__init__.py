"""Persistent-connection transport."""
