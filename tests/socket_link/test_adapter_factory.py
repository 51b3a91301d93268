"""
Tests for address parsing and the adapter factory
"""
import pytest

from socket_link.adapters.adapter_factory import AdapterFactory, AdapterType, format_address, parse_address
from socket_link.adapters.stream.client import SocketLinkClient
from socket_link.adapters.stream.server import SocketLinkServer
from socket_link.config import ClientConfig, ServiceConfig


class TestParseAddress:
    """Test address resolution"""

    @pytest.mark.parametrize("address, expected", [
        (("127.0.0.1", 5000), (AdapterType.TCP, ("127.0.0.1", 5000))),
        ("localhost:5000", (AdapterType.TCP, ("localhost", 5000))),
        (":5000", (AdapterType.TCP, ("localhost", 5000))),
        ("tcp://10.0.0.2:80", (AdapterType.TCP, ("10.0.0.2", 80))),
        ("[::1]:8080", (AdapterType.TCP, ("::1", 8080))),
        ("link.sock", (AdapterType.UNIX, "link.sock")),
        ("/run/app/link.sock", (AdapterType.UNIX, "/run/app/link.sock")),
        ("unix:///tmp/link.sock", (AdapterType.UNIX, "/tmp/link.sock")),
        ("./dir:1/sock", (AdapterType.UNIX, "./dir:1/sock")),
    ])
    def test_forms(self, address, expected):
        assert parse_address(address) == expected

    @pytest.mark.parametrize("address", ["", None, "tcp://nohost", "tcp://host:port"])
    def test_invalid(self, address):
        with pytest.raises(ValueError):
            parse_address(address)

    def test_format_address(self):
        assert format_address(("127.0.0.1", 9)) == "127.0.0.1:9"
        assert format_address("unix:///tmp/a.sock") == "/tmp/a.sock"


class TestAdapterFactory:
    """Test adapter creation"""

    def test_create_server(self):
        server = AdapterFactory.create_server("127.0.0.1:0", lambda request: None)
        assert isinstance(server, SocketLinkServer)
        assert server.adapter_type == AdapterType.TCP
        assert isinstance(server.config, ServiceConfig)

    def test_create_client(self):
        client = AdapterFactory.create_client(ClientConfig(address="link.sock", call_timeout=1))
        assert isinstance(client, SocketLinkClient)
        assert client.adapter_type == AdapterType.UNIX
        assert client.config.call_timeout == 1

    def test_invalid_address(self):
        with pytest.raises(ValueError):
            AdapterFactory.create_client("tcp://broken")
