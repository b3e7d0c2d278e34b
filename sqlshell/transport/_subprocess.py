import contextlib
import subprocess
from typing import TYPE_CHECKING, Optional

from sqlshell.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = ("SubprocessTransport",)

logger = get_logger("transport.subprocess")


class SubprocessTransport:
    """Blocking transport over the pipes of a ``subprocess.Popen`` child.

    Standard error is inherited from the parent process.
    """

    __slots__ = ("process",)

    def __init__(self, process: "subprocess.Popen[bytes]") -> None:
        if process.stdin is None or process.stdout is None:
            msg = "Shell process must be started with piped stdin and stdout"
            raise ValueError(msg)
        self.process = process

    @classmethod
    def spawn(cls, command: "Sequence[str]") -> "SubprocessTransport":
        """Start ``command`` with piped stdin and stdout.

        Raises:
            OSError: The program could not be started.
        """
        process = subprocess.Popen(list(command), stdin=subprocess.PIPE, stdout=subprocess.PIPE)  # noqa: S603
        logger.debug("Spawned shell process %s: %s", process.pid, command[0])
        return cls(process)

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid

    def write(self, data: bytes) -> None:
        stdin = self.process.stdin
        assert stdin is not None
        stdin.write(data)
        stdin.flush()

    def readline(self) -> bytes:
        stdout = self.process.stdout
        assert stdout is not None
        return stdout.readline()

    def close(self) -> None:
        stdin, stdout = self.process.stdin, self.process.stdout
        if stdin is not None and not stdin.closed:
            # The child may already be gone after an ``.exit``.
            with contextlib.suppress(BrokenPipeError):
                stdin.close()
        if stdout is not None and not stdout.closed:
            stdout.close()

    def wait(self) -> int:
        return self.process.wait()
