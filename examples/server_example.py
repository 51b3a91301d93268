#!/usr/bin/env python
"""
Socket Link Server Example

Demonstrates how to run a socket link service with a structured request handler.
"""

import asyncio
import logging
import signal
import sys
from typing import Any, Dict

from socket_link import ErrorResponse, ServiceConfig
from socket_link.adapters import AdapterFactory
from socket_link.telemetry.metrics import increment_counter

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

def handle_request(request: Dict[str, Any]) -> Any:
    """
    Handle one request

    Bodies are either a plain name to greet or ``{"add": [numbers]}``.

    Args:
        request: Request message, ``id`` assigned by the service

    Returns:
        Response body
    """
    body = request.get("body")
    logger.info(f"Received request {request.get('id')}: {body}")

    if isinstance(body, dict) and "add" in body:
        numbers = body["add"]
        if not all(isinstance(n, (int, float)) for n in numbers):
            raise ErrorResponse("add expects numbers", {"add": numbers})
        increment_counter("example.additions", 1)
        return sum(numbers)

    if isinstance(body, str) and body[:1].isupper():
        return "Hello " + body

    raise ErrorResponse("Name is invalid (should start with capital char)", {"name": body})

async def main(address: str):
    """Start socket link server example"""
    server = AdapterFactory.create_server(ServiceConfig(address=address, log=True), handle_request)
    server.on("connect", lambda connection: logger.info(f"Peer {connection.peer or connection.id} joined"))
    server.on("stop", lambda reason: logger.info(f"Server stopped ({reason})"))

    await server.start()

    # Stop gracefully on SIGINT/SIGTERM
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, server.stop, sig.name)

    await server.when_stopped()

if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "127.0.0.1:5555"))
