"""Asynchronous shell session built on anyio."""

import logging
import uuid
from contextlib import aclosing
from typing import TYPE_CHECKING, Generic, Optional, TypeVar

from sqlshell.driver._common import (
    ExecutionGuard,
    ShellState,
    build_command,
    decode_line,
    decode_row,
    frame_line,
    is_ready_line,
    prepare_statement,
)
from sqlshell.exceptions import AbnormalExitError, MalformedRowError, StartupFailedError
from sqlshell.framing import RowFramer, encode_statement
from sqlshell.transport import AnyioProcessTransport
from sqlshell.utils.executable import resolve_executable
from sqlshell.utils.logging import get_logger, log_with_context, truncate_sql

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from types import TracebackType

    from sqlshell.transport import AsyncShellTransport
    from sqlshell.typing import JSONPrimitive, Row, StatementParameters

__all__ = ("AsyncRowStream", "AsyncShell")

logger = get_logger("driver")

T = TypeVar("T")


class AsyncRowStream(Generic[T]):
    """Async iterator over the result of one statement.

    The statement is bound and sent on the first ``__anext__``. The session
    stays busy while the stream is referenced and unfinished. A stream that
    is dropped early, for example by leaving an ``async for`` loop with
    ``break``, releases the session as soon as it is garbage collected; its
    unread rows are discarded before the next statement is sent.
    :meth:`aclose` discards them right away.
    """

    __slots__ = ("__weakref__", "_decode", "_done", "_framer", "_parameters", "_shell", "_sql")

    def __init__(
        self,
        shell: "AsyncShell",
        sql: str,
        parameters: "Optional[StatementParameters]",
        decode: "Callable[[str], T]",
    ) -> None:
        self._shell = shell
        self._sql = sql
        self._parameters = parameters
        self._decode = decode
        self._framer: Optional[RowFramer] = None
        self._done = False

    def __aiter__(self) -> "AsyncRowStream[T]":
        return self

    async def __anext__(self) -> T:
        if self._done:
            raise StopAsyncIteration
        if self._framer is None:
            try:
                self._framer = await self._shell._begin_statement(self, self._sql, self._parameters)
            except BaseException:
                self._done = True
                raise
        try:
            fragment = await self._shell._read_row(self._framer)
        except BaseException:
            self._release()
            raise
        if fragment is None:
            self._release()
            raise StopAsyncIteration
        try:
            return self._decode(fragment)
        except MalformedRowError:
            await self.aclose()
            raise

    async def aclose(self) -> None:
        """Discard the unread rows and release the session."""
        if self._done:
            return
        if self._framer is None:
            self._done = True
            return
        try:
            await self._shell._discard_rows(self._framer)
        finally:
            self._release()

    def _release(self) -> None:
        self._done = True
        self._shell._guard.end(self)


class AsyncShell:
    """Async counterpart of :class:`~sqlshell.driver.Shell`.

    Row iterators are :class:`AsyncRowStream` instances.
    """

    __slots__ = ("_guard", "session_id", "transport")

    def __init__(self, transport: "AsyncShellTransport") -> None:
        self.transport = transport
        self.session_id = uuid.uuid4().hex[:12]
        self._guard = ExecutionGuard()

    @classmethod
    async def create(
        cls,
        executable: Optional[str] = None,
        database: Optional[str] = None,
        arguments: "Optional[Sequence[str]]" = None,
    ) -> "AsyncShell":
        """Spawn a shell process and wait until it is ready.

        Raises:
            StartupFailedError: The process could not be started or did not
                report readiness.
        """
        command = build_command(resolve_executable(executable), database, arguments)
        try:
            transport = await AnyioProcessTransport.spawn(command)
        except OSError as exc:
            msg = f"Sqlite startup failed: cannot run {command[0]!r}"
            raise StartupFailedError(msg) from exc
        return await cls.start(transport)

    @classmethod
    async def start(cls, transport: "AsyncShellTransport") -> "AsyncShell":
        shell = cls(transport)
        await shell._handshake()
        return shell

    async def _handshake(self) -> None:
        line = decode_line(await self.transport.readline(), "replace")
        if is_ready_line(line):
            self._guard.transition(ShellState.IDLE)
            logger.debug("Shell %s ready (pid %s)", self.session_id, self.transport.pid)
            return
        self._guard.transition(ShellState.FAILED)
        await self.transport.close()
        exit_code = await self.transport.wait()
        logger.debug("Shell %s failed to start, exit code %s, first line %r", self.session_id, exit_code, line)
        raise StartupFailedError

    @property
    def state(self) -> ShellState:
        return self._guard.state

    @property
    def pid(self) -> Optional[int]:
        return self.transport.pid

    @property
    def is_closed(self) -> bool:
        return self._guard.state in {ShellState.CLOSED, ShellState.FAILED}

    def query_raw(self, sql: str, parameters: "Optional[StatementParameters]" = None) -> "AsyncRowStream[str]":
        """Run a statement and yield the JSON text of each result row.

        Raises:
            AlreadyExecutingError: Another statement is in flight.
            ShellClosedError: The session is closed.
            ParameterError: ``parameters`` do not match the placeholders.
        """
        return AsyncRowStream(self, sql, parameters, str)

    async def _begin_statement(
        self, owner: "AsyncRowStream[T]", sql: str, parameters: "Optional[StatementParameters]"
    ) -> RowFramer:
        stale = self._guard.begin(owner)
        try:
            if stale is not None:
                await self._discard_rows(stale)
            statement = prepare_statement(sql, parameters)
            log_with_context(
                logger,
                logging.DEBUG,
                "Executing statement",
                session_id=self.session_id,
                sql=truncate_sql(statement),
            )
            framer = RowFramer()
            self._guard.track(framer)
            await self.transport.write(encode_statement(statement))
        except BaseException:
            self._guard.end(owner)
            raise
        return framer

    async def _read_row(self, framer: RowFramer) -> Optional[str]:
        data = await self.transport.readline()
        if not data:
            self._end_of_output(framer)
            return None
        try:
            return frame_line(framer, data)
        except MalformedRowError:
            await self._discard_rows(framer)
            raise

    def _end_of_output(self, framer: RowFramer) -> None:
        framer.complete = True
        logger.warning("Shell %s output ended before the end-of-statement marker", self.session_id)

    async def _discard_rows(self, framer: RowFramer) -> None:
        read = framer.rows
        while not framer.complete:
            data = await self.transport.readline()
            if not data:
                self._end_of_output(framer)
                break
            framer.frame(decode_line(data, "replace"))
        logger.debug("Shell %s discarded %d unread rows", self.session_id, framer.rows - read)

    def query(self, sql: str, parameters: "Optional[StatementParameters]" = None) -> "AsyncRowStream[Row]":
        """Run a statement and yield each result row as a dict.

        Raises:
            MalformedRowError: A row did not decode as a JSON object. The rest
                of the result is discarded first.
        """
        return AsyncRowStream(self, sql, parameters, decode_row)

    async def query_all(self, sql: str, parameters: "Optional[StatementParameters]" = None) -> "list[Row]":
        async with aclosing(self.query(sql, parameters)) as rows:
            return [row async for row in rows]

    async def query_one(self, sql: str, parameters: "Optional[StatementParameters]" = None) -> "Optional[Row]":
        """Return the first row, or None. Remaining rows are discarded."""
        async with aclosing(self.query(sql, parameters)) as rows:
            async for row in rows:
                return row
        return None

    async def query_value(self, sql: str, parameters: "Optional[StatementParameters]" = None) -> "JSONPrimitive":
        row = await self.query_one(sql, parameters)
        if not row:
            return None
        return next(iter(row.values()))

    async def execute(self, sql: str, parameters: "Optional[StatementParameters]" = None) -> None:
        async with aclosing(self.query_raw(sql, parameters)) as fragments:
            async for _ in fragments:
                pass

    async def close(self) -> None:
        """Close the pipes and reap the process.

        Raises:
            AlreadyExecutingError: A statement is still in flight.
            AbnormalExitError: The process exited with a non-zero status.
        """
        if not self._guard.mark_closed():
            return
        await self.transport.close()
        exit_code = await self.transport.wait()
        logger.debug("Shell %s closed, exit code %s", self.session_id, exit_code)
        if exit_code:
            raise AbnormalExitError(exit_code)

    async def __aenter__(self) -> "AsyncShell":
        return self

    async def __aexit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: "Optional[BaseException]",
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        await self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(session_id={self.session_id!r}, pid={self.pid!r}, state={self.state!s})"
