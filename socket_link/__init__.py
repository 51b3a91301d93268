"""
Socket link: request/response messaging over a persistent stream socket

Messages are JSON objects, one per line, exchanged over TCP or a Unix domain
socket. A service answers requests with a handler; a client issues sequential
calls over one connection and matches responses to requests by position.

Quick start:
    from socket_link import ErrorResponse, request_service, start_service

    def greet(request):
        name = request["body"]
        if not name[:1].isupper():
            raise ErrorResponse("Name is invalid", {"name": name})
        return "Hello " + name

    service = await start_service("link.sock", greet)
    print(await request_service("link.sock", "Socket"))   # Hello Socket
    service.stop()
    await service.when_stopped()
"""

__version__ = "0.1.0"

from .adapters.stream import (
    Connection,
    MessageReader,
    ServiceState,
    SocketLinkClient,
    SocketLinkServer,
    request_service,
    start_service
)
from .config import ClientConfig, ServiceConfig
from .errors import ErrorResponse, RemoteError, decode_error, encode_error
from .interactive import ConsoleLineSource, InteractiveSession, LineSource
from .utils.id_generator import CounterIdGenerator

__all__ = [
    "ClientConfig",
    "Connection",
    "ConsoleLineSource",
    "CounterIdGenerator",
    "ErrorResponse",
    "InteractiveSession",
    "LineSource",
    "MessageReader",
    "RemoteError",
    "ServiceConfig",
    "ServiceState",
    "SocketLinkClient",
    "SocketLinkServer",
    "decode_error",
    "encode_error",
    "request_service",
    "start_service",
    "__version__"
]
