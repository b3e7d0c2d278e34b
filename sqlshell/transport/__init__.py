"""Transports connecting sessions to a running shell process."""

from sqlshell.transport._anyio import AnyioProcessTransport
from sqlshell.transport._protocols import AsyncShellTransport, ShellTransport
from sqlshell.transport._subprocess import SubprocessTransport

__all__ = ("AnyioProcessTransport", "AsyncShellTransport", "ShellTransport", "SubprocessTransport")
