"""Shell sessions driving a ``sqlite3`` process."""

from sqlshell.driver._async import AsyncRowStream, AsyncShell
from sqlshell.driver._common import DEFAULT_ARGUMENTS, ExecutionGuard, ShellState, build_command
from sqlshell.driver._sync import Shell

__all__ = ("DEFAULT_ARGUMENTS", "AsyncRowStream", "AsyncShell", "ExecutionGuard", "Shell", "ShellState", "build_command")
