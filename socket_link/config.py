"""
Configuration settings for socket link services and clients
"""
import os
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Tuple, Union

from socket_link.utils.id_generator import CounterIdGenerator

DEFAULT_ADDRESS = "link.sock"

Address = Union[str, Tuple[str, int]]
LogOption = Union[bool, Callable[[str], None]]


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class ServiceConfig:
    """Configuration for a listening service"""
    address: Address = DEFAULT_ADDRESS
    service_id: Optional[str] = None
    # True logs lifecycle messages via the module logger, a callable receives them instead
    log: LogOption = False
    # Send formatted tracebacks of handler exceptions to clients
    trace_errors: bool = False
    connection_id_generator: Optional[CounterIdGenerator] = None
    # Fallback factory used for both connection and request ids
    id_generator_factory: Optional[Callable[[], CounterIdGenerator]] = None
    request_id_generator_factory: Optional[Callable[[], CounterIdGenerator]] = None

    @classmethod
    def from_env(cls, **overrides: Any) -> "ServiceConfig":
        """Create config from environment variables"""
        config = cls(
            address=os.getenv("SOCKET_LINK_ADDRESS", DEFAULT_ADDRESS),
            service_id=os.getenv("SOCKET_LINK_SERVICE_ID") or None,
            log=_env_flag("SOCKET_LINK_LOG"),
            trace_errors=_env_flag("SOCKET_LINK_TRACE_ERRORS"),
        )
        for key, value in overrides.items():
            setattr(config, key, value)
        return config

    def make_connection_id_generator(self) -> CounterIdGenerator:
        if self.connection_id_generator is not None:
            return self.connection_id_generator
        if self.id_generator_factory is not None:
            return self.id_generator_factory()
        return CounterIdGenerator(16)

    def make_request_id_generator(self) -> CounterIdGenerator:
        if self.request_id_generator_factory is not None:
            return self.request_id_generator_factory()
        if self.id_generator_factory is not None:
            return self.id_generator_factory()
        return CounterIdGenerator(16)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging"""
        return {
            "address": self.address,
            "service_id": self.service_id,
            "log": bool(self.log),
            "trace_errors": self.trace_errors,
        }


@dataclass
class ClientConfig:
    """Configuration for a client connection"""
    address: Address = DEFAULT_ADDRESS
    # Seconds to wait for one response, None waits forever
    call_timeout: Optional[float] = None

    @classmethod
    def from_env(cls, **overrides: Any) -> "ClientConfig":
        """Create config from environment variables"""
        timeout = os.getenv("SOCKET_LINK_CALL_TIMEOUT")
        config = cls(
            address=os.getenv("SOCKET_LINK_ADDRESS", DEFAULT_ADDRESS),
            call_timeout=float(timeout) if timeout else None,
        )
        for key, value in overrides.items():
            setattr(config, key, value)
        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging"""
        return {
            "address": self.address,
            "call_timeout": self.call_timeout,
        }
