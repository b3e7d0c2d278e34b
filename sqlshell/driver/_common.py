"""State handling and helpers shared by the sync and async shell sessions."""

import threading
import weakref
from collections.abc import Mapping
from contextlib import contextmanager
from enum import Enum
from typing import TYPE_CHECKING, Any, Final, Optional

from sqlshell.exceptions import AlreadyExecutingError, MalformedRowError, ShellClosedError
from sqlshell.framing import ENCODING, SENTINEL, RowFramer
from sqlshell.parameters import bind_parameters
from sqlshell.utils.serializers import DecodeError, from_json

if TYPE_CHECKING:
    from collections.abc import Callable, Generator, Sequence

    from sqlshell.typing import Row, StatementParameters

__all__ = (
    "DEFAULT_ARGUMENTS",
    "ExecutionGuard",
    "ShellState",
    "build_command",
    "decode_line",
    "decode_row",
    "frame_line",
    "is_ready_line",
    "prepare_statement",
)

DEFAULT_ARGUMENTS: "Final[tuple[str, ...]]" = (
    "-batch",
    "-noheader",
    "-json",
    "-cmd",
    ".binary on",
    "-cmd",
    f".print {SENTINEL}",
)
"""Batch mode, JSON rows, and a readiness sentinel printed before any input is read."""


class ShellState(str, Enum):
    """Lifecycle of a shell session."""

    STARTING = "starting"
    IDLE = "idle"
    BUSY = "busy"
    CLOSED = "closed"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value


def _orphaned() -> None:
    """Owner reference of a statement whose output is still unread."""
    return None


class ExecutionGuard:
    """Single-flight state holder for one session.

    The lock only protects state transitions and is never held while
    talking to the process. A call made while another statement is in
    flight fails instead of waiting.

    A statement may be begun on behalf of an owner, which is only weakly
    referenced. Once the owner is garbage collected, or ends while its
    output is still unread, the statement counts as abandoned: the next
    :meth:`begin` takes the session over and hands back the stale framer so
    its output can be discarded first.
    """

    __slots__ = ("_framer", "_lock", "_owner", "_state")

    def __init__(self, state: ShellState = ShellState.STARTING) -> None:
        self._lock = threading.Lock()
        self._state = state
        self._owner: "Optional[Callable[[], Optional[object]]]" = None
        self._framer: Optional[RowFramer] = None

    @property
    def state(self) -> ShellState:
        if self._is_abandoned():
            return ShellState.IDLE
        return self._state

    def _is_abandoned(self) -> bool:
        return self._state is ShellState.BUSY and self._owner is not None and self._owner() is None

    def _owns(self, owner: Optional[object]) -> bool:
        if owner is None:
            return self._owner is None
        return self._owner is not None and self._owner() is owner

    def transition(self, state: ShellState) -> None:
        with self._lock:
            self._state = state

    def check_open(self) -> None:
        if self._state in {ShellState.CLOSED, ShellState.FAILED, ShellState.STARTING}:
            raise ShellClosedError

    def begin(self, owner: Optional[object] = None) -> Optional[RowFramer]:
        """Move IDLE to BUSY, taking over an abandoned statement if there is one.

        Args:
            owner: Object the statement runs for. The session is released
                when it is garbage collected.

        Raises:
            AlreadyExecutingError: Another statement is in flight.
            ShellClosedError: The session is not open.

        Returns:
            The framer of an abandoned statement whose output must be
            discarded before anything else is sent, or None.
        """
        with self._lock:
            stale = None
            if self._state is ShellState.BUSY:
                if not self._is_abandoned():
                    raise AlreadyExecutingError
                stale = self._framer
            else:
                self.check_open()
            self._state = ShellState.BUSY
            self._owner = None if owner is None else weakref.ref(owner)
            self._framer = stale
            return stale

    def track(self, framer: RowFramer) -> None:
        """Record the framer reading the output of the statement in flight."""
        self._framer = framer

    def end(self, owner: Optional[object] = None) -> None:
        """Release the session held by ``owner``.

        A statement whose output is still unread is left for the next
        :meth:`begin` to discard.
        """
        with self._lock:
            if self._state is not ShellState.BUSY or not self._owns(owner):
                return
            if self._framer is not None and not self._framer.complete:
                self._owner = _orphaned
                return
            self._state = ShellState.IDLE
            self._owner = None
            self._framer = None

    def mark_closed(self) -> bool:
        """Move to CLOSED ahead of shutting the process down.

        An abandoned statement does not prevent closing.

        Raises:
            AlreadyExecutingError: A statement is still in flight.

        Returns:
            False when the session was already closed or failed.
        """
        with self._lock:
            if self._state in {ShellState.CLOSED, ShellState.FAILED}:
                return False
            if self._state is ShellState.BUSY and not self._is_abandoned():
                raise AlreadyExecutingError
            self._state = ShellState.CLOSED
            self._owner = None
            self._framer = None
            return True

    @contextmanager
    def acquire(self, owner: Optional[object] = None) -> "Generator[Optional[RowFramer], None, None]":
        """Hold the BUSY state for the duration of the block.

        Yields:
            The framer of an abandoned statement, as returned by :meth:`begin`.
        """
        stale = self.begin(owner)
        try:
            yield stale
        finally:
            self.end(owner)


def build_command(
    executable: str, database: Optional[str] = None, arguments: "Optional[Sequence[str]]" = None
) -> "list[str]":
    """Assemble the shell command line.

    ``arguments`` replaces the default argument list entirely; the database
    path, when given, is always last.
    """
    command = [executable, *(DEFAULT_ARGUMENTS if arguments is None else arguments)]
    if database:
        command.append(database)
    return command


def prepare_statement(sql: str, parameters: "Optional[StatementParameters]" = None) -> str:
    if parameters is None:
        return sql
    return bind_parameters(sql, parameters)


def decode_line(data: bytes, errors: str = "strict") -> str:
    return data.decode(ENCODING, errors)


def frame_line(framer: RowFramer, data: bytes) -> Optional[str]:
    """Decode and frame one line of statement output.

    Raises:
        MalformedRowError: ``data`` is not valid UTF-8. The line still counts
            as a row of ``framer``.
    """
    try:
        line = decode_line(data)
    except UnicodeDecodeError as exc:
        fragment = framer.frame(decode_line(data, "replace"))
        msg = f"Row is not valid UTF-8: {data!r}"
        raise MalformedRowError(fragment or "", msg) from exc
    return framer.frame(line)


def is_ready_line(line: str) -> bool:
    return line.strip() == SENTINEL


def decode_row(fragment: str) -> "Row":
    """Decode one framed row.

    Raises:
        MalformedRowError: ``fragment`` is not a JSON object.
    """
    try:
        row: Any = from_json(fragment)
    except DecodeError as exc:
        raise MalformedRowError(fragment) from exc
    if not isinstance(row, Mapping):
        raise MalformedRowError(fragment, f"Row is not a JSON object: {fragment!r}")
    return dict(row)
