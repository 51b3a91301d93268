"""
Stream Adapter Package

Newline-delimited JSON request/response over a TCP or Unix domain socket:
frame reader, connection, service and client.
"""

from socket_link.adapters.stream.client import SocketLinkClient, request_service
from socket_link.adapters.stream.connection import Connection
from socket_link.adapters.stream.reader import MessageReader
from socket_link.adapters.stream.server import ServiceState, SocketLinkServer, start_service

__all__ = [
    "Connection",
    "MessageReader",
    "ServiceState",
    "SocketLinkClient",
    "SocketLinkServer",
    "request_service",
    "start_service"
]
