"""Process transport capabilities consumed by shell sessions."""

from typing import Optional, Protocol, runtime_checkable

__all__ = ("AsyncShellTransport", "ShellTransport")


@runtime_checkable
class ShellTransport(Protocol):
    """Blocking line transport to a shell process."""

    @property
    def pid(self) -> Optional[int]: ...  # pragma: no cover

    def write(self, data: bytes) -> None:
        """Write ``data`` to the process and flush it."""
        ...  # pragma: no cover

    def readline(self) -> bytes:
        """Read one line including its terminator; ``b""`` at end of stream."""
        ...  # pragma: no cover

    def close(self) -> None:
        """Close the input pipe, then the output pipe."""
        ...  # pragma: no cover

    def wait(self) -> int:
        """Wait for the process to exit and return its exit code."""
        ...  # pragma: no cover


@runtime_checkable
class AsyncShellTransport(Protocol):
    """Async line transport to a shell process."""

    @property
    def pid(self) -> Optional[int]: ...  # pragma: no cover

    async def write(self, data: bytes) -> None: ...  # pragma: no cover

    async def readline(self) -> bytes: ...  # pragma: no cover

    async def close(self) -> None: ...  # pragma: no cover

    async def wait(self) -> int: ...  # pragma: no cover
