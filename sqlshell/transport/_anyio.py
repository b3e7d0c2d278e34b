import contextlib
import subprocess
from typing import TYPE_CHECKING, Final, Optional

import anyio
from anyio.streams.buffered import BufferedByteReceiveStream

from sqlshell.exceptions import MalformedRowError
from sqlshell.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

    from anyio.abc import Process

__all__ = ("DEFAULT_MAX_LINE_BYTES", "AnyioProcessTransport")

logger = get_logger("transport.anyio")

DEFAULT_MAX_LINE_BYTES: Final = 64 * 1024 * 1024


class AnyioProcessTransport:
    """Async transport over an ``anyio`` child process.

    Lines are split out of the stdout byte stream with a buffered reader;
    a single line longer than ``max_line_bytes`` is rejected.
    """

    __slots__ = ("_reader", "max_line_bytes", "process")

    def __init__(self, process: "Process", max_line_bytes: int = DEFAULT_MAX_LINE_BYTES) -> None:
        if process.stdin is None or process.stdout is None:
            msg = "Shell process must be started with piped stdin and stdout"
            raise ValueError(msg)
        self.process = process
        self.max_line_bytes = max_line_bytes
        self._reader = BufferedByteReceiveStream(process.stdout)

    @classmethod
    async def spawn(
        cls, command: "Sequence[str]", max_line_bytes: int = DEFAULT_MAX_LINE_BYTES
    ) -> "AnyioProcessTransport":
        """Start ``command`` with piped stdin and stdout.

        Raises:
            OSError: The program could not be started.
        """
        process = await anyio.open_process(
            list(command), stdin=subprocess.PIPE, stdout=subprocess.PIPE, stderr=None
        )
        logger.debug("Spawned shell process %s: %s", process.pid, command[0])
        return cls(process, max_line_bytes)

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid

    async def write(self, data: bytes) -> None:
        stdin = self.process.stdin
        assert stdin is not None
        await stdin.send(data)

    async def readline(self) -> bytes:
        try:
            line = await self._reader.receive_until(b"\n", self.max_line_bytes)
        except anyio.IncompleteRead:
            return b""
        except anyio.DelimiterNotFound as exc:
            msg = f"Shell output line exceeds {self.max_line_bytes} bytes"
            raise MalformedRowError("", msg) from exc
        return line + b"\n"

    async def close(self) -> None:
        stdin, stdout = self.process.stdin, self.process.stdout
        if stdin is not None:
            with contextlib.suppress(anyio.BrokenResourceError, BrokenPipeError, ConnectionResetError):
                await stdin.aclose()
        if stdout is not None:
            await stdout.aclose()

    async def wait(self) -> int:
        return await self.process.wait()
