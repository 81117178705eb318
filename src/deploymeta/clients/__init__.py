"""HTTP clients for the Factory API."""

from deploymeta.clients.connect import ConnectClient

__all__ = ["ConnectClient"]
