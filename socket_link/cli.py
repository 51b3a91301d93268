"""
Command line entry point

    socket-link --service              run the demo greeting service
    socket-link --send Socket          send one request and print the result
    socket-link                        interactive session, one request per line

All modes take --socket (a Unix socket path or host:port).
"""

import argparse
import asyncio
import logging
import signal
import sys
from typing import Any, List, Optional

from socket_link.adapters.adapter_factory import AdapterFactory
from socket_link.adapters.stream.client import request_service
from socket_link.config import ClientConfig, ServiceConfig
from socket_link.errors import ErrorResponse
from socket_link.interactive import ConsoleLineSource
from socket_link.utils.serialization import Message

logger = logging.getLogger(__name__)

def greet(request: Message) -> str:
    """Demo handler: greet names that start with a capital letter"""
    name = request.get("body")
    logger.info(f"request {request.get('id')}> {name}")
    if isinstance(name, str) and name[:1].isupper():
        return "Hello " + name
    raise ErrorResponse("Name is invalid (should start with capital char)", {"name": name})

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="socket-link",
        description="Newline-delimited JSON request/response over a socket"
    )
    parser.add_argument("--socket", default=None,
                        help="Unix socket path or host:port (default: $SOCKET_LINK_ADDRESS or link.sock)")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--service", action="store_true", help="Run the demo service")
    mode.add_argument("--send", metavar="TEXT", help="Send one request and print the result")
    parser.add_argument("--trace-errors", action="store_true",
                        help="Send handler tracebacks to clients (service mode)")
    parser.add_argument("--timeout", type=float, default=None,
                        help="Seconds to wait for each response (client modes)")
    parser.add_argument("--log-level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    parser.add_argument("--otlp-endpoint", default=None,
                        help="Export traces and metrics to this OTLP endpoint")
    return parser

async def run_service(config: ServiceConfig) -> None:
    """Serve the demo handler until SIGINT/SIGTERM"""
    server = AdapterFactory.create_server(config, greet)
    await server.start()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, server.stop, sig.name)
        except NotImplementedError:
            # Windows doesn't support add_signal_handler
            pass

    await server.when_stopped()

async def run_client(config: ClientConfig, send: Optional[str]) -> Any:
    if send is not None:
        return await request_service(config, send)
    return await request_service(config, ConsoleLineSource())

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if args.otlp_endpoint:
        from socket_link.telemetry import setup_metrics, setup_tracer

        service_name = "socket_link.service" if args.service else "socket_link.client"
        setup_tracer(service_name, args.otlp_endpoint)
        setup_metrics(service_name, args.otlp_endpoint)

    overrides = {"address": args.socket} if args.socket else {}

    try:
        if args.service:
            config = ServiceConfig.from_env(log=True, **overrides)
            if args.trace_errors:
                config.trace_errors = True
            asyncio.run(run_service(config))
            return 0

        config = ClientConfig.from_env(**overrides)
        if args.timeout is not None:
            config.call_timeout = args.timeout
        result = asyncio.run(run_client(config, args.send))
        if args.send is not None:
            print(result)
        return 0
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130
    except Exception as e:
        logger.error(f"{type(e).__name__}: {e}")
        return 1

if __name__ == "__main__":
    sys.exit(main())
