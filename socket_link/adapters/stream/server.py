"""
Socket link服务器适配器

在TCP或Unix域套接字上监听，将每个接入的流包装为Connection。给定处理函数时，
按到达顺序应答每个请求：当前请求的响应写出之前，不会读取同一连接的下一个请求。
"""

import asyncio
import functools
import inspect
import logging
import os
import socket
import time
from collections import defaultdict
from contextlib import suppress
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set, Union

from opentelemetry import trace

from socket_link.adapters.adapter_factory import AdapterType, format_address, parse_address
from socket_link.adapters.adapter_interface import ServerAdapterInterface
from socket_link.adapters.stream.connection import Connection
from socket_link.config import Address, ServiceConfig
from socket_link.errors import encode_error
from socket_link.telemetry.metrics import adjust_gauge, increment_counter, record_latency
from socket_link.telemetry.tracer import create_span
from socket_link.utils.id_generator import to_radix
from socket_link.utils.serialization import Message

logger = logging.getLogger(__name__)

Handler = Callable[[Message], Any]

class ServiceState(Enum):
    """服务生命周期状态"""
    STARTING = "starting"
    LISTENING = "listening"
    STOPPING = "stopping"
    STOPPED = "stopped"

def _make_log_sink(option) -> Callable[[str], None]:
    if callable(option):
        return option
    if option:
        return logger.info
    return logger.debug

class SocketLinkServer(ServerAdapterInterface):
    """
    Socket link服务器适配器，基于换行分隔JSON的请求-响应服务

    通知（见 ``on``）:
        start()                  监听套接字已绑定
        connect(connection)      客户端已连接
        disconnect(connection)   客户端连接已结束
        stop(reason)             监听已关闭且所有连接均已结束
    """

    def __init__(self,
                 config: Union[Address, ServiceConfig, None] = None,
                 handler: Optional[Handler] = None):
        """初始化服务器

        Args:
            config: 地址或服务配置
            handler: 处理函数，以请求消息调用，返回值即响应体；协程函数会被await。
                为None时连接交给 ``connect`` 订阅者处理
        """
        if config is None:
            config = ServiceConfig()
        elif not isinstance(config, ServiceConfig):
            config = ServiceConfig(address=config)

        self.config = config
        self.handler = handler
        self.id = config.service_id or f"{socket.gethostname()}.{to_radix(int(time.time() * 1000), 16)}"
        self.state = ServiceState.STARTING
        self.adapter_type, self._target = parse_address(config.address)

        self._connection_ids = config.make_connection_id_generator()
        self._connections: Set[Connection] = set()
        self._connection_tasks: Set[asyncio.Task] = set()
        self._listener_tasks: Set[asyncio.Future] = set()
        self._listeners: Dict[str, List[Callable[..., Any]]] = defaultdict(list)
        self._server: Optional[asyncio.AbstractServer] = None
        self._stopped = asyncio.Event()
        self._stop_task: Optional[asyncio.Task] = None
        self._log = _make_log_sink(config.log)

    @property
    def connections(self) -> Set[Connection]:
        """当前打开连接的快照"""
        return set(self._connections)

    @property
    def bound_address(self) -> Address:
        """实际绑定的地址，请求端口0时为真实端口"""
        if self.adapter_type == AdapterType.TCP and self._server is not None and self._server.sockets:
            host, port = self._server.sockets[0].getsockname()[:2]
            return host, port
        return self._target

    # -- 通知 ----------------------------------------------------------------

    def on(self, event: str, callback: Callable[..., Any]):
        """订阅生命周期通知

        Args:
            event: "start"、"connect"、"disconnect"或"stop"
            callback: 收到通知时调用的函数，可以是协程函数

        Returns:
            传入的callback，便于链式使用
        """
        self._listeners[event].append(callback)
        return callback

    def off(self, event: str, callback: Callable[..., Any]) -> None:
        """取消通过 ``on`` 添加的订阅"""
        with suppress(ValueError):
            self._listeners[event].remove(callback)

    def _emit(self, event: str, *args: Any) -> None:
        for callback in list(self._listeners.get(event, ())):
            try:
                result = callback(*args)
            except Exception:
                logger.exception(f"Listener for '{event}' failed")
                continue
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._listener_tasks.add(task)
                task.add_done_callback(functools.partial(self._listener_done, event))

    def _listener_done(self, event: str, task: asyncio.Future) -> None:
        self._listener_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(f"Listener for '{event}' failed", exc_info=error)

    # -- 生命周期 ------------------------------------------------------------

    async def start(self) -> "SocketLinkServer":
        """绑定监听套接字并开始接受连接

        Raises:
            RuntimeError: 服务已启动过
            OSError: 地址无法绑定
        """
        if self._server is not None or self.state != ServiceState.STARTING:
            raise RuntimeError(f"Service {self.id} already started")

        if self.adapter_type == AdapterType.TCP:
            host, port = self._target
            self._server = await asyncio.start_server(self._handle_connection, host, port)
        else:
            path = self._target
            if Path(path).is_socket():
                logger.debug(f"Removing stale socket {path}")
                os.unlink(path)
            self._server = await asyncio.start_unix_server(self._handle_connection, path)

        self.state = ServiceState.LISTENING
        increment_counter("link.server.started", 1, {"adapter": self.adapter_type})
        self._log(f"Service {self.id} started ({format_address(self.bound_address)})")
        self._emit("start")
        return self

    def stop(self, reason: str = "stop") -> None:
        """关闭监听，然后结束所有已跟踪的连接

        可多次调用，也可在信号处理函数中调用，只有第一次调用生效。
        使用 ``when_stopped`` 等待停止完成。

        Args:
            reason: 停止原因，传给stop通知
        """
        if self.state in (ServiceState.STOPPING, ServiceState.STOPPED):
            return

        self.state = ServiceState.STOPPING
        logger.debug(f"Stopping service {self.id} ({reason}), {len(self._connections)} open connections")

        if self._server is not None:
            self._server.close()
        for connection in list(self._connections):
            connection.close()

        self._stop_task = asyncio.ensure_future(self._finish_stop(reason))

    async def _finish_stop(self, reason: str) -> None:
        if self._connection_tasks:
            await asyncio.gather(*self._connection_tasks, return_exceptions=True)
        if self._server is not None:
            await self._server.wait_closed()
            if self.adapter_type == AdapterType.UNIX:
                with suppress(FileNotFoundError):
                    os.unlink(self._target)

        self.state = ServiceState.STOPPED
        self._log(f"Service {self.id} stopped by '{reason}'")
        self._emit("stop", reason)
        self._stopped.set()

    async def when_stopped(self) -> None:
        """等待stop通知发出"""
        await self._stopped.wait()

    async def __aenter__(self) -> "SocketLinkServer":
        return await self.start()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.stop("exit")
        await self.when_stopped()

    # -- 连接 ----------------------------------------------------------------

    async def _handle_connection(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        connection = Connection(
            self._connection_ids(self.id),
            reader,
            writer,
            self.config.make_request_id_generator(),
        )
        task = asyncio.current_task()
        self._connection_tasks.add(task)
        self._connections.add(connection)
        adjust_gauge("link.server.connections.active", 1)
        self._log(f"client {connection.id} connected")
        self._emit("connect", connection)

        try:
            if self.handler is not None:
                await self._serve(connection)
            else:
                await connection.wait_ended()
        except ConnectionError as e:
            logger.warning(f"Connection {connection.id} failed: {e}")
            increment_counter("link.server.errors", 1, {"type": "transport"})
        finally:
            self._connections.discard(connection)
            adjust_gauge("link.server.connections.active", -1)
            connection.close()
            await connection.wait_closed()
            self._connection_tasks.discard(task)
            self._log(f"client {connection.id} disconnected")
            self._emit("disconnect", connection)

    async def _serve(self, connection: Connection) -> None:
        async for request in connection.requests():
            response = await self._dispatch(request)
            try:
                await connection.send_result(response)
            except (TypeError, ValueError) as e:
                logger.warning(f"Response to {request.get('id')} is not serializable: {e}")
                error = encode_error(e, self.config.trace_errors)
                await connection.send_result({"id": request.get("id"), **error})

    async def _dispatch(self, request: Message) -> Dict[str, Any]:
        request_id = request.get("id")
        start_time = time.time()
        increment_counter("link.server.requests", 1)

        with create_span("socket_link.dispatch", {"request.id": request_id or ""}, trace.SpanKind.SERVER):
            try:
                result = self.handler(request)
                if inspect.isawaitable(result):
                    result = await result
                response = {"id": request_id, "body": result}
            except Exception as e:
                self._log(f"request {request_id} failed: {type(e).__name__}: {e}")
                increment_counter("link.server.errors", 1, {"type": type(e).__name__})
                response = {"id": request_id, **encode_error(e, self.config.trace_errors)}

        # 记录请求处理延迟
        latency_ms = (time.time() - start_time) * 1000
        record_latency("link.server.request.latency", latency_ms)
        logger.debug(f"Handled request {request_id}, took {latency_ms:.2f}ms")
        return response

async def start_service(config: Union[Address, ServiceConfig],
                        handler: Optional[Handler] = None) -> SocketLinkServer:
    """创建服务器并开始监听

    Args:
        config: 地址或服务配置
        handler: 请求处理函数，见SocketLinkServer

    Returns:
        SocketLinkServer: 正在监听的服务器
    """
    server = SocketLinkServer(config, handler)
    return await server.start()
