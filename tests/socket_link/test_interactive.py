"""
Tests for the interactive session
"""
import asyncio
import io
import os

import pytest

from socket_link.adapters.stream.client import request_service
from socket_link.adapters.stream.server import start_service
from socket_link.config import ServiceConfig
from socket_link.errors import ErrorResponse, RemoteError
from socket_link.interactive import REMOTE_CLOSED_NOTICE, ConsoleLineSource, InteractiveSession, LineSource


class ScriptedLineSource(LineSource):
    """Yields the given lines, then waits until closed

    ``on_exhausted`` is called once when the script runs out.
    """

    def __init__(self, lines, end_with_eof=False, on_exhausted=None):
        self._lines = list(lines)
        self._end_with_eof = end_with_eof
        self._on_exhausted = on_exhausted
        self._closed = asyncio.Event()
        self.prompts = 0
        self.close_calls = 0

    @property
    def closed(self):
        return self._closed.is_set()

    def prompt(self):
        self.prompts += 1

    async def read_line(self):
        if self._closed.is_set():
            return None
        if self._lines:
            return self._lines.pop(0)
        if self._end_with_eof:
            return None
        if self._on_exhausted is not None:
            self._on_exhausted()
            self._on_exhausted = None
        await self._closed.wait()
        return None

    def close(self):
        self.close_calls += 1
        self._closed.set()


class TestInteractiveSession:
    """Test line forwarding"""

    @pytest.mark.asyncio
    async def test_lines_forwarded_until_eof(self):
        """Each line is one call, results and failures are printed"""
        async def call(line):
            if line == "fail":
                raise RemoteError({"error": "bad line", "type": "ErrorResponse"})
            return line.upper()

        output = []
        source = ScriptedLineSource(["one", "fail", "two"], end_with_eof=True)
        await InteractiveSession(source, output.append).run(call, asyncio.Event())

        assert output == [
            "ONE",
            "RemoteError(type='ErrorResponse', message='bad line', details=None)",
            "TWO",
        ]
        assert source.prompts == 4
        assert source.closed

    @pytest.mark.asyncio
    async def test_remote_close_while_waiting(self):
        """Remote close stops the session and is reported once"""
        remote_closed = asyncio.Event()

        async def call(line):
            remote_closed.set()
            return "last"

        output = []
        source = ScriptedLineSource(["only"])
        await asyncio.wait_for(InteractiveSession(source, output.append).run(call, remote_closed), 5)

        assert output == ["last", REMOTE_CLOSED_NOTICE]
        assert source.closed

    @pytest.mark.asyncio
    async def test_already_closed(self):
        """Nothing is forwarded once the remote side is gone"""
        remote_closed = asyncio.Event()
        remote_closed.set()
        forwarded = []

        async def call(line):
            forwarded.append(line)

        output = []
        source = ScriptedLineSource(["ignored"])
        await InteractiveSession(source, output.append).run(call, remote_closed)

        assert forwarded == []
        assert output == [REMOTE_CLOSED_NOTICE]
        assert source.prompts == 0

    @pytest.mark.asyncio
    async def test_against_service(self, capsys):
        """Session over a real connection ends when the service stops"""
        def greet(request):
            name = request["body"]
            if name[:1].isupper():
                return "Hello " + name
            raise ErrorResponse("Name is invalid", {"name": name})

        server = await start_service(ServiceConfig(address=("127.0.0.1", 0)), greet)
        source = ScriptedLineSource(["Socket", "socket"], on_exhausted=server.stop)
        await asyncio.wait_for(request_service(server.bound_address, source), 5)
        await asyncio.wait_for(server.when_stopped(), 5)

        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "Hello Socket"
        assert lines[1] == "RemoteError(type='ErrorResponse', message='Name is invalid', details={'name': 'socket'})"
        assert lines[2:] == [REMOTE_CLOSED_NOTICE]
        assert source.close_calls >= 1


class TestConsoleLineSource:
    """Test the stdin/stdout line source"""

    def test_prompt_written(self):
        stdout = io.StringIO()
        source = ConsoleLineSource("$ ", stdout=stdout)
        source.prompt()
        assert stdout.getvalue() == "$ "

    @pytest.mark.asyncio
    async def test_closed_source(self):
        """A closed source prompts nothing and reads no more lines"""
        stdout = io.StringIO()
        source = ConsoleLineSource(stdout=stdout)
        source.close()
        source.prompt()
        assert source.closed
        assert stdout.getvalue() == ""
        assert await source.read_line() is None

    @pytest.mark.asyncio
    async def test_regular_file_stdin(self, tmp_path):
        """Input redirected from a file is read line by line"""
        path = tmp_path / "input.txt"
        path.write_text("Socket\nsecond\n", encoding="utf-8")
        with open(path, encoding="utf-8") as stdin:
            source = ConsoleLineSource(stdin=stdin, stdout=io.StringIO())
            assert await source.read_line() == "Socket"
            assert await source.read_line() == "second"
            assert await source.read_line() is None
            assert source.closed

    @pytest.mark.asyncio
    async def test_pipe_stdin(self):
        read_fd, write_fd = os.pipe()
        os.write(write_fd, b"one\r\ntwo\n")
        os.close(write_fd)
        stdin = os.fdopen(read_fd, "rb")
        source = ConsoleLineSource(stdin=stdin, stdout=io.StringIO())
        assert await source.read_line() == "one"
        assert await source.read_line() == "two"
        assert await source.read_line() is None
        assert source.closed

    @pytest.mark.asyncio
    async def test_file_stdin_session(self, tmp_path, capsys):
        """A session driven by a redirected file calls the service once per line"""
        path = tmp_path / "names.txt"
        path.write_text("Socket\nLink\n", encoding="utf-8")

        server = await start_service(ServiceConfig(address=("127.0.0.1", 0)), lambda request: "Hello " + request["body"])
        try:
            with open(path, encoding="utf-8") as stdin:
                source = ConsoleLineSource(stdin=stdin, stdout=io.StringIO())
                await asyncio.wait_for(request_service(server.bound_address, source), 5)
        finally:
            server.stop()
            await asyncio.wait_for(server.when_stopped(), 5)

        assert capsys.readouterr().out.splitlines() == ["Hello Socket", "Hello Link"]
