"""
Socket link客户端适配器

与服务器建立一条连接，并在其上依次发起调用。响应按位置与请求对应：
每次调用发送一个请求，并把下一条收到的消息作为它的响应。
"""

import asyncio
import inspect
import logging
import time
from typing import Any, Optional, Union

from opentelemetry import trace

from socket_link.adapters.adapter_factory import AdapterType, format_address, parse_address
from socket_link.adapters.adapter_interface import ClientAdapterInterface
from socket_link.adapters.stream.connection import Connection
from socket_link.config import Address, ClientConfig
from socket_link.errors import decode_error
from socket_link.interactive import InteractiveSession, LineSource
from socket_link.telemetry.metrics import increment_counter, record_latency
from socket_link.telemetry.tracer import create_span
from socket_link.utils.id_generator import CounterIdGenerator
from socket_link.utils.serialization import Message, is_error_message

logger = logging.getLogger(__name__)

# 客户端连接ID，仅用于在日志中区分连接
_connection_ids = CounterIdGenerator(16)

class SocketLinkClient(ClientAdapterInterface):
    """
    Socket link客户端适配器

    用法:
        async with SocketLinkClient("link.sock") as client:
            greeting = await client.call("Socket")
    """

    def __init__(self, config: Union[Address, ClientConfig, None] = None):
        """初始化客户端

        Args:
            config: 地址或客户端配置
        """
        if config is None:
            config = ClientConfig()
        elif not isinstance(config, ClientConfig):
            config = ClientConfig(address=config)

        self.config = config
        self.adapter_type, self._target = parse_address(config.address)
        self.connection: Optional[Connection] = None
        self._responses: "asyncio.Queue[Optional[Message]]" = asyncio.Queue()
        self._closed = asyncio.Event()
        self._pump_task: Optional[asyncio.Task] = None
        self._busy = False

    @property
    def connected(self) -> bool:
        return self.connection is not None and not self._closed.is_set()

    @property
    def closed(self) -> asyncio.Event:
        """流结束后被置位，无论是哪一端结束的"""
        return self._closed

    async def connect(self) -> bool:
        """建立连接

        连接失败只记录日志，不抛出异常。

        Returns:
            bool: 是否连接成功
        """
        if self.connection is not None:
            return self.connected

        try:
            if self.adapter_type == AdapterType.TCP:
                host, port = self._target
                reader, writer = await asyncio.open_connection(host, port)
            else:
                reader, writer = await asyncio.open_unix_connection(self._target)
        except OSError as e:
            logger.error(f"Cannot connect to {format_address(self.config.address)}: {e}")
            increment_counter("link.client.errors", 1, {"type": "connect"})
            return False

        self.connection = Connection(_connection_ids("client"), reader, writer)
        self._pump_task = asyncio.ensure_future(self._pump())
        logger.debug(f"Connection {self.connection.id} open to {format_address(self.config.address)}")
        return True

    async def _pump(self) -> None:
        """把收到的消息转入响应队列，直到流结束"""
        try:
            async for message in self.connection.requests():
                await self._responses.put(message)
        except ConnectionError as e:
            logger.warning(f"Connection {self.connection.id} lost: {e}")
            increment_counter("link.client.errors", 1, {"type": "transport"})
        finally:
            self._closed.set()
            await self._responses.put(None)

    async def call(self, body: Any) -> Any:
        """发送一个请求并等待其响应

        Args:
            body: 可JSON序列化的请求体

        Returns:
            Any: 响应体，流先结束时为None

        Raises:
            RemoteError: 服务器返回错误消息
            ConnectionError: 客户端尚未连接
            RuntimeError: 该客户端上已有调用在等待响应
            asyncio.TimeoutError: 超过 ``call_timeout``，连接已关闭
        """
        if self.connection is None:
            raise ConnectionError("Client is not connected")
        if self._busy:
            raise RuntimeError("A call is already in progress on this connection")

        self._busy = True
        start_time = time.time()
        try:
            with create_span("socket_link.call", {"connection.id": self.connection.id}, trace.SpanKind.CLIENT):
                increment_counter("link.client.calls", 1)
                if not self._closed.is_set():
                    await self.connection.send_result({"body": body})
                message = await self._next_response()
        finally:
            self._busy = False
            record_latency("link.client.latency", (time.time() - start_time) * 1000)

        if message is None:
            logger.debug(f"Connection {self.connection.id} ended before a response arrived")
            return None
        if is_error_message(message):
            increment_counter("link.client.errors", 1, {"type": message.get("type", "unknown")})
            raise decode_error(message)
        return message.get("body")

    async def _next_response(self) -> Optional[Message]:
        if self.config.call_timeout is None:
            message = await self._responses.get()
        else:
            try:
                message = await asyncio.wait_for(self._responses.get(), self.config.call_timeout)
            except asyncio.TimeoutError:
                logger.error(f"No response on {self.connection.id} within {self.config.call_timeout}s, closing")
                increment_counter("link.client.errors", 1, {"type": "timeout"})
                await self.close()
                # 超时与关闭之间到达的响应属于已放弃的调用
                self._drain_responses()
                raise
        if message is None:
            # 保留结束标记，供后续调用使用
            self._responses.put_nowait(None)
        return message

    def _drain_responses(self) -> None:
        while not self._responses.empty():
            self._responses.get_nowait()
        self._responses.put_nowait(None)

    async def close(self) -> None:
        """关闭连接，并等待流完全关闭"""
        if self.connection is None:
            return
        self.connection.close()
        await self.connection.wait_closed()
        if self._pump_task is not None:
            await self._pump_task
        logger.debug(f"Connection {self.connection.id} closed")

    async def __aenter__(self) -> "SocketLinkClient":
        if not await self.connect():
            raise ConnectionError(f"Cannot connect to {format_address(self.config.address)}")
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

async def request_service(config: Union[Address, ClientConfig], caller_or_body: Any) -> Any:
    """连接服务器，完成一次交互后关闭连接

    ``caller_or_body`` 决定交互方式:

    - ``LineSource``: 交互式会话，每输入一行发起一次调用
    - 可调用对象: 以 ``call`` 为参数调用的驱动函数，可依次发起任意次调用，返回其自身结果
    - 其他值: 作为单次调用的请求体发送，返回该调用的结果

    Args:
        config: 地址或客户端配置
        caller_or_body: 行输入源、驱动函数或请求体

    Returns:
        Any: 交互结果，连接失败时为None
    """
    client = SocketLinkClient(config)
    if not await client.connect():
        if isinstance(caller_or_body, LineSource):
            caller_or_body.close()
        return None

    try:
        if isinstance(caller_or_body, LineSource):
            session = InteractiveSession(caller_or_body)
            result = await session.run(client.call, client.closed)
        elif callable(caller_or_body):
            result = caller_or_body(client.call)
            if inspect.isawaitable(result):
                result = await result
        else:
            result = await client.call(caller_or_body)
    finally:
        await client.close()
    return result
