"""
Communication Adapters Module

Adapters share the client/server interfaces defined in adapter_interface; the
factory picks the transport from the address:
- tcp: "host:port"
- unix: a Unix domain socket path
"""

from .adapter_factory import AdapterFactory, AdapterType, parse_address
from .adapter_interface import ClientAdapterInterface, ServerAdapterInterface

__all__ = [
    "AdapterFactory",
    "AdapterType",
    "ClientAdapterInterface",
    "ServerAdapterInterface",
    "parse_address"
]
