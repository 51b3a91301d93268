"""
连接

服务器与对端之间的一条双向流，配有解析其入站消息的帧读取器。
"""

import asyncio
import logging
from contextlib import suppress
from typing import Any, AsyncIterator, Callable, Dict, Optional

from socket_link.adapters.stream.reader import MessageReader
from socket_link.utils.serialization import Message, encode_message

logger = logging.getLogger(__name__)

class Connection:
    """接入或发起的流连接

    在服务端， ``request_id_generator`` 为每个入站请求分配本连接范围内的ID
    （``<连接ID>.<n>``）。
    """

    def __init__(self,
                 connection_id: str,
                 reader: asyncio.StreamReader,
                 writer: asyncio.StreamWriter,
                 request_id_generator: Optional[Callable[[str], str]] = None):
        self.id = connection_id
        self._writer = writer
        self._messages = MessageReader(reader, request_id_generator, connection_id)
        self._ended = asyncio.Event()

    @property
    def peer(self) -> Any:
        """传输层报告的对端地址（Unix套接字为空）"""
        return self._writer.get_extra_info("peername")

    @property
    def closed(self) -> bool:
        return self._writer.is_closing()

    @property
    def ended(self) -> bool:
        """对端结束流或连接已关闭时为True"""
        return self._ended.is_set()

    async def next_request(self) -> Optional[Message]:
        """读取下一条入站消息，流结束后返回None"""
        message = await self._messages.next()
        if message is None:
            self._ended.set()
        return message

    async def requests(self) -> AsyncIterator[Message]:
        """迭代入站消息，直到对端结束流"""
        while True:
            message = await self.next_request()
            if message is None:
                return
            yield message

    async def wait_ended(self) -> None:
        await self._ended.wait()

    async def send_result(self, message: Dict[str, Any]) -> None:
        """序列化消息，作为一帧写出并刷新

        Raises:
            TypeError: 消息无法JSON序列化
            ValueError: 消息包含NaN或无穷大等JSON无法表示的数值
            ConnectionError: 对端已断开
        """
        self._writer.write(encode_message(message))
        await self._writer.drain()

    def close(self) -> None:
        """结束流，对端读取器将读到输入结束"""
        if not self._writer.is_closing():
            logger.debug(f"Closing connection {self.id}")
            self._writer.close()
        self._ended.set()

    async def wait_closed(self) -> None:
        """等待底层传输关闭"""
        # 连接重置已在读写路径上报告
        with suppress(ConnectionError):
            await self._writer.wait_closed()

    def __repr__(self) -> str:
        return f"Connection(id={self.id!r}, closed={self.closed})"
