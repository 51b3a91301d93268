"""
通信适配器接口

定义socket link服务端与客户端实现的统一接口，调用方无需关心底层传输（TCP或Unix域套接字）。
"""

import abc
from typing import Any, Callable

class ClientAdapterInterface(abc.ABC):
    """客户端适配器接口，定义所有客户端适配器必须实现的方法"""

    @abc.abstractmethod
    async def connect(self) -> bool:
        """建立连接

        Returns:
            bool: 连接成功返回True，连接失败返回False
        """
        pass

    @abc.abstractmethod
    async def call(self, body: Any) -> Any:
        """发送一个请求并等待其响应

        Args:
            body: 可JSON序列化的请求体

        Returns:
            Any: 响应体

        Raises:
            RemoteError: 服务端返回错误消息
            ConnectionError: 尚未连接
        """
        pass

    @abc.abstractmethod
    async def close(self) -> None:
        """关闭连接，并等待流完全关闭"""
        pass

class ServerAdapterInterface(abc.ABC):
    """服务器适配器接口，定义所有服务器适配器必须实现的方法"""

    @abc.abstractmethod
    async def start(self):
        """绑定监听套接字并开始接受连接"""
        pass

    @abc.abstractmethod
    def stop(self, reason: str = "stop"):
        """停止接受新连接，并关闭所有已打开的连接

        Args:
            reason: 停止原因，传给stop通知
        """
        pass

    @abc.abstractmethod
    async def when_stopped(self) -> None:
        """等待服务完全停止"""
        pass

    @abc.abstractmethod
    def on(self, event: str, callback: Callable[..., Any]):
        """订阅生命周期通知

        Args:
            event: 通知名称
            callback: 收到通知时调用的函数，参数为通知携带的参数
        """
        pass
