"""
适配器工厂

根据地址解析出传输方式（TCP或Unix域套接字），并创建对应的服务端和客户端适配器实例。
"""

import os
from typing import Any, Callable, Optional, Tuple, Union

from socket_link.adapters.adapter_interface import ClientAdapterInterface, ServerAdapterInterface
from socket_link.config import Address, ClientConfig, ServiceConfig

class AdapterType:
    """适配器类型常量"""
    TCP = "tcp"
    UNIX = "unix"

def parse_address(address: Address) -> Tuple[str, Union[str, Tuple[str, int]]]:
    """将地址解析为传输方式及其目标

    支持的形式:
        ("host", 5000), "host:5000", "tcp://host:5000"  -> TCP
        "unix:///run/link.sock", "link.sock", "/tmp/x"  -> Unix域套接字

    Args:
        address: 传给服务端或客户端的地址

    Returns:
        Tuple: (适配器类型, TCP为(host, port)，Unix套接字为路径)

    Raises:
        ValueError: 地址为空或格式错误
    """
    if isinstance(address, tuple):
        host, port = address
        return AdapterType.TCP, (host, int(port))

    if not isinstance(address, str) or not address:
        raise ValueError(f"Invalid address: {address!r}")

    if address.startswith("unix://"):
        return AdapterType.UNIX, address[len("unix://"):]

    if address.startswith("tcp://"):
        host, sep, port = address[len("tcp://"):].rpartition(":")
        if not sep or not port.isdigit():
            raise ValueError(f"Invalid TCP address: {address!r}")
        return AdapterType.TCP, (host.strip("[]") or "localhost", int(port))

    if os.sep in address or "/" in address:
        return AdapterType.UNIX, address

    host, sep, port = address.rpartition(":")
    if sep and port.isdigit():
        return AdapterType.TCP, (host.strip("[]") or "localhost", int(port))

    return AdapterType.UNIX, address

def format_address(address: Address) -> str:
    """地址的可读形式，用于日志"""
    adapter_type, target = parse_address(address)
    if adapter_type == AdapterType.TCP:
        host, port = target
        return f"{host}:{port}"
    return str(target)

class AdapterFactory:
    """适配器工厂，用于创建服务端和客户端适配器实例"""

    @staticmethod
    def create_client(config: Union[Address, ClientConfig]) -> ClientAdapterInterface:
        """创建客户端适配器

        Args:
            config: 地址或客户端配置

        Returns:
            ClientAdapterInterface: 客户端适配器实例

        Raises:
            ValueError: 地址无效
        """
        from socket_link.adapters.stream.client import SocketLinkClient

        if not isinstance(config, ClientConfig):
            config = ClientConfig(address=config)
        parse_address(config.address)
        return SocketLinkClient(config)

    @staticmethod
    def create_server(config: Union[Address, ServiceConfig],
                      handler: Optional[Callable[[Any], Any]] = None) -> ServerAdapterInterface:
        """创建服务器适配器

        Args:
            config: 地址或服务配置
            handler: 请求处理函数，为None时由connect订阅者自行处理连接

        Returns:
            ServerAdapterInterface: 服务器适配器实例

        Raises:
            ValueError: 地址无效
        """
        from socket_link.adapters.stream.server import SocketLinkServer

        if not isinstance(config, ServiceConfig):
            config = ServiceConfig(address=config)
        parse_address(config.address)
        return SocketLinkServer(config, handler)
