"""
帧读取器

把asyncio字节流转换为按需解析的消息序列。帧以换行符分隔，可以任意方式
跨越多个数据块到达，也可以多帧挤在同一个数据块中。
"""

import asyncio
import logging
from collections import deque
from typing import Callable, Deque, Optional

from socket_link.telemetry.metrics import increment_counter
from socket_link.utils.serialization import FRAME_DELIMITER, Message, parse_frame

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

class MessageReader:
    """拉取式读取器，每帧产出一条消息

    ``next()`` 挂起直到缓冲区中有完整的帧或流结束。读取器不会因格式错误的输入
    抛出异常：无法解析的帧作为错误消息产出。流结束时，未以换行结尾的残缺帧被丢弃，
    序列结束。

    设置 ``request_id_generator`` 时，每条产出消息的 ``id`` 都被改写为
    ``request_id_generator(id_prefix)``。
    """

    def __init__(self,
                 stream: asyncio.StreamReader,
                 request_id_generator: Optional[Callable[[str], str]] = None,
                 id_prefix: str = ""):
        self._stream = stream
        self._request_id_generator = request_id_generator
        self._id_prefix = id_prefix
        self._buffer = bytearray()
        self._frames: Deque[bytes] = deque()
        self._done = False

    @property
    def done(self) -> bool:
        """流已结束且所有完整帧均已取出时为True"""
        return self._done and not self._frames

    async def next(self) -> Optional[Message]:
        """返回下一条消息，流结束时返回None"""
        while not self._frames:
            if self._done:
                return None
            chunk = await self._stream.read(CHUNK_SIZE)
            if not chunk:
                self._done = True
                if self._buffer:
                    logger.debug(f"Stream ended with {len(self._buffer)} bytes of incomplete frame, discarding")
                    self._buffer.clear()
                return None
            self._feed(chunk)

        message = parse_frame(self._frames.popleft())
        increment_counter("link.reader.frames", 1)
        if "invalidResponse" in message:
            increment_counter("link.reader.malformed_frames", 1, {"type": message["type"]})
            logger.debug(f"Malformed frame: {message['error']}")

        if self._request_id_generator is not None:
            message["id"] = self._request_id_generator(self._id_prefix)
        return message

    def _feed(self, chunk: bytes) -> None:
        self._buffer.extend(chunk)
        start = 0
        while True:
            end = self._buffer.find(FRAME_DELIMITER, start)
            if end < 0:
                break
            self._frames.append(bytes(self._buffer[start:end]))
            start = end + 1
        if start:
            del self._buffer[:start]

    def __aiter__(self) -> "MessageReader":
        return self

    async def __anext__(self) -> Message:
        message = await self.next()
        if message is None:
            raise StopAsyncIteration
        return message
