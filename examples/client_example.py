#!/usr/bin/env python
"""
Socket Link Client Example

Demonstrates single requests, a driver issuing several sequential calls and
handling of remote errors.
"""

import asyncio
import logging
import sys
import time

from socket_link import ClientConfig, RemoteError, request_service
from socket_link.adapters import AdapterFactory

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

async def run_batch(call):
    """Issue several calls over one connection

    Args:
        call: Sends one request and returns its response body

    Returns:
        List of results, one per request
    """
    results = []
    for body in ["Socket", {"add": [1, 2, 3.5]}, "socket", {"add": ["x"]}]:
        start_time = time.time()
        try:
            result = await call(body)
        except RemoteError as e:
            logger.warning(f"Request {body!r} failed: {e} (details: {e.details})")
            result = None
        logger.info(f"{body!r} -> {result!r} in {(time.time() - start_time) * 1000:.2f}ms")
        results.append(result)
    return results

async def main(address: str):
    """Run client example"""
    config = ClientConfig(address=address, call_timeout=5.0)

    # Single request
    greeting = await request_service(config, "World")
    logger.info(f"Single request result: {greeting}")

    # Several sequential requests over one connection
    results = await request_service(config, run_batch)
    logger.info(f"Batch results: {results}")

    # Client adapter from the factory, kept open for several calls
    async with AdapterFactory.create_client(config) as client:
        total = await client.call({"add": [10, 20]})
        logger.info(f"Total via client adapter: {total}")

if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "127.0.0.1:5555"))
