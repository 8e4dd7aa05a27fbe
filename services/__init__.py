"""Service-layer helpers for talking to the lock controller."""

from . import device_client, http_client

__all__ = ["device_client", "http_client"]
