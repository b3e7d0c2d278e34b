"""Synchronous shell session."""

import logging
import uuid
from contextlib import closing
from typing import TYPE_CHECKING, Optional

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
from sqlshell.transport import SubprocessTransport
from sqlshell.utils.executable import resolve_executable
from sqlshell.utils.logging import get_logger, log_with_context, truncate_sql

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence
    from types import TracebackType

    from sqlshell.transport import ShellTransport
    from sqlshell.typing import JSONPrimitive, Row, StatementParameters

__all__ = ("Shell",)

logger = get_logger("driver")


class Shell:
    """A session on one ``sqlite3`` shell process.

    Statements run one at a time. The row iterators returned by
    :meth:`query_raw` and :meth:`query` keep the session busy until they are
    exhausted or closed; closing one early discards the rest of its result.
    """

    __slots__ = ("_guard", "session_id", "transport")

    def __init__(self, transport: "ShellTransport") -> None:
        """Wrap a transport. Use :meth:`create` or :meth:`start` instead."""
        self.transport = transport
        self.session_id = uuid.uuid4().hex[:12]
        self._guard = ExecutionGuard()

    @classmethod
    def create(
        cls,
        executable: Optional[str] = None,
        database: Optional[str] = None,
        arguments: "Optional[Sequence[str]]" = None,
    ) -> "Shell":
        """Spawn a shell process and wait until it is ready.

        Args:
            executable: Program to run. Resolved with
                :func:`~sqlshell.utils.executable.resolve_executable` when omitted.
            database: Database file, passed as the last argument.
            arguments: Replaces the default argument list.

        Raises:
            StartupFailedError: The process could not be started or did not
                report readiness.

        Returns:
            An idle session.
        """
        command = build_command(resolve_executable(executable), database, arguments)
        try:
            transport = SubprocessTransport.spawn(command)
        except OSError as exc:
            msg = f"Sqlite startup failed: cannot run {command[0]!r}"
            raise StartupFailedError(msg) from exc
        return cls.start(transport)

    @classmethod
    def start(cls, transport: "ShellTransport") -> "Shell":
        """Perform the readiness handshake on an already running transport.

        Raises:
            StartupFailedError: The first output line was not the sentinel. The
                transport is closed and reaped before this is raised.
        """
        shell = cls(transport)
        shell._handshake()
        return shell

    def _handshake(self) -> None:
        line = decode_line(self.transport.readline(), "replace")
        if is_ready_line(line):
            self._guard.transition(ShellState.IDLE)
            logger.debug("Shell %s ready (pid %s)", self.session_id, self.transport.pid)
            return
        self._guard.transition(ShellState.FAILED)
        self.transport.close()
        exit_code = self.transport.wait()
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

    def query_raw(self, sql: str, parameters: "Optional[StatementParameters]" = None) -> "Iterator[str]":
        """Run a statement and yield the JSON text of each result row.

        The statement is bound and sent when iteration starts.

        Args:
            sql: Statement text, without a trailing semicolon.
            parameters: Values for ``?`` placeholders, or a mapping for named ones.

        Raises:
            AlreadyExecutingError: Another statement is in flight.
            ShellClosedError: The session is closed.
            ParameterError: ``parameters`` do not match the placeholders.

        Yields:
            One JSON object per row.
        """
        with self._guard.acquire() as stale:
            if stale is not None:
                self._discard_rows(stale)
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
            self.transport.write(encode_statement(statement))
            try:
                yield from self._read_rows(framer)
            except GeneratorExit:
                self._discard_rows(framer)
                raise

    def _read_rows(self, framer: RowFramer) -> "Iterator[str]":
        while True:
            data = self.transport.readline()
            if not data:
                self._end_of_output(framer)
                return
            try:
                fragment = frame_line(framer, data)
            except MalformedRowError:
                self._discard_rows(framer)
                raise
            if fragment is None:
                return
            yield fragment

    def _end_of_output(self, framer: RowFramer) -> None:
        framer.complete = True
        logger.warning("Shell %s output ended before the end-of-statement marker", self.session_id)

    def _discard_rows(self, framer: RowFramer) -> None:
        read = framer.rows
        while not framer.complete:
            data = self.transport.readline()
            if not data:
                self._end_of_output(framer)
                break
            framer.frame(decode_line(data, "replace"))
        logger.debug("Shell %s discarded %d unread rows", self.session_id, framer.rows - read)

    def query(self, sql: str, parameters: "Optional[StatementParameters]" = None) -> "Iterator[Row]":
        """Run a statement and yield each result row as a dict.

        Raises:
            MalformedRowError: A row did not decode as a JSON object.
        """
        with closing(self.query_raw(sql, parameters)) as fragments:
            for fragment in fragments:
                yield decode_row(fragment)

    def query_all(self, sql: str, parameters: "Optional[StatementParameters]" = None) -> "list[Row]":
        return list(self.query(sql, parameters))

    def query_one(self, sql: str, parameters: "Optional[StatementParameters]" = None) -> "Optional[Row]":
        """Return the first row, or None. Remaining rows are discarded."""
        with closing(self.query(sql, parameters)) as rows:
            return next(rows, None)

    def query_value(self, sql: str, parameters: "Optional[StatementParameters]" = None) -> "JSONPrimitive":
        """Return the first column of the first row, or None."""
        row = self.query_one(sql, parameters)
        if not row:
            return None
        return next(iter(row.values()))

    def execute(self, sql: str, parameters: "Optional[StatementParameters]" = None) -> None:
        """Run a statement, discarding any rows it produces."""
        for _ in self.query_raw(sql, parameters):
            pass

    def close(self) -> None:
        """Close the pipes and reap the process.

        Closing a closed session does nothing.

        Raises:
            AlreadyExecutingError: A statement is still in flight.
            AbnormalExitError: The process exited with a non-zero status.
        """
        if not self._guard.mark_closed():
            return
        self.transport.close()
        exit_code = self.transport.wait()
        logger.debug("Shell %s closed, exit code %s", self.session_id, exit_code)
        if exit_code:
            raise AbnormalExitError(exit_code)

    def __enter__(self) -> "Shell":
        return self

    def __exit__(
        self,
        exc_type: "Optional[type[BaseException]]",
        exc_val: "Optional[BaseException]",
        exc_tb: "Optional[TracebackType]",
    ) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(session_id={self.session_id!r}, pid={self.pid!r}, state={self.state!s})"
