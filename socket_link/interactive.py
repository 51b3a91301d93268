"""
Interactive session

Drives a client from a line-oriented input: every line read becomes one call,
and its result (or the raised error) is printed before the next prompt.
"""

import abc
import asyncio
import os
import stat
import sys
from contextlib import suppress
from typing import Any, Awaitable, Callable, Optional

CallService = Callable[[Any], Awaitable[Any]]

REMOTE_CLOSED_NOTICE = "connection closed by server."

class LineSource(abc.ABC):
    """Source of input lines, e.g. a terminal prompt"""

    @abc.abstractmethod
    def prompt(self) -> None:
        """Show the prompt for the next line"""
        pass

    @abc.abstractmethod
    async def read_line(self) -> Optional[str]:
        """Wait for the next line

        Returns:
            Optional[str]: Line without its terminator, None once the source is closed
        """
        pass

    @abc.abstractmethod
    def close(self) -> None:
        """Stop reading; later ``read_line`` calls return None"""
        pass

    @property
    @abc.abstractmethod
    def closed(self) -> bool:
        pass

class ConsoleLineSource(LineSource):
    """Reads lines from stdin on the event loop and prompts on stdout"""

    def __init__(self, prompt: str = "> ", stdin=None, stdout=None):
        self._prompt = prompt
        self._stdin = stdin or sys.stdin
        self._stdout = stdout or sys.stdout
        self._reader: Optional[asyncio.StreamReader] = None
        self._transport: Optional[asyncio.BaseTransport] = None
        self._regular_file: Optional[bool] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def prompt(self) -> None:
        if not self._closed:
            self._stdout.write(self._prompt)
            self._stdout.flush()

    async def read_line(self) -> Optional[str]:
        if self._closed:
            return None
        if self._regular_file is None:
            self._regular_file = stat.S_ISREG(os.fstat(self._stdin.fileno()).st_mode)

        if self._regular_file:
            # regular files are always readable, reading them does not block the loop
            line = self._stdin.readline()
        else:
            if self._reader is None:
                loop = asyncio.get_running_loop()
                self._reader = asyncio.StreamReader()
                protocol = asyncio.StreamReaderProtocol(self._reader)
                self._transport, _ = await loop.connect_read_pipe(lambda: protocol, self._stdin)
            line = await self._reader.readline()

        if not line:
            self.close()
            return None
        if isinstance(line, bytes):
            line = line.decode("utf-8", errors="replace")
        return line.rstrip("\r\n")

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._transport is not None:
            self._transport.close()
        if self._stdout.isatty():
            # move to column 0 and clear the pending prompt
            self._stdout.write("\x1b[0G\x1b[2K")
            self._stdout.flush()

class InteractiveSession:
    """Forwards lines from a LineSource to a call function until either side closes"""

    def __init__(self, line_source: LineSource, output: Callable[[Any], None] = print):
        self._line_source = line_source
        self._output = output
        self._remote_closed_reported = False

    def _report_remote_closed(self) -> None:
        if not self._remote_closed_reported:
            self._remote_closed_reported = True
            self._output(REMOTE_CLOSED_NOTICE)

    async def run(self, call: CallService, remote_closed: asyncio.Event) -> None:
        """Prompt, forward each line to ``call`` and print the outcome

        Stops when the line source closes, or when ``remote_closed`` is set, in
        which case no further lines are forwarded and a notice is printed once.

        Args:
            call: Sends one request and returns its response
            remote_closed: Set when the connection to the service has ended
        """
        closed_wait = asyncio.ensure_future(remote_closed.wait())
        try:
            while True:
                if remote_closed.is_set():
                    self._report_remote_closed()
                    break

                self._line_source.prompt()
                line_task = asyncio.ensure_future(self._line_source.read_line())
                done, _ = await asyncio.wait({line_task, closed_wait}, return_when=asyncio.FIRST_COMPLETED)
                if closed_wait in done:
                    line_task.cancel()
                    with suppress(asyncio.CancelledError):
                        await line_task
                    self._report_remote_closed()
                    break

                line = line_task.result()
                if line is None:
                    break

                try:
                    self._output(await call(line))
                except Exception as e:
                    self._output(repr(e))
        finally:
            closed_wait.cancel()
            self._line_source.close()
