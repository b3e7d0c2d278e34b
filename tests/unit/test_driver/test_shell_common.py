"""Unit tests for session state handling and command assembly."""

import threading

import pytest

from sqlshell.driver import DEFAULT_ARGUMENTS, ExecutionGuard, ShellState, build_command
from sqlshell.driver._common import decode_row, frame_line, is_ready_line, prepare_statement
from sqlshell.exceptions import AlreadyExecutingError, MalformedRowError, ShellClosedError
from sqlshell.framing import RowFramer


def test_default_arguments() -> None:
    assert DEFAULT_ARGUMENTS == ("-batch", "-noheader", "-json", "-cmd", ".binary on", "-cmd", ".print *")


def test_build_command_with_database_last() -> None:
    assert build_command("sqlite3", "data.db") == ["sqlite3", *DEFAULT_ARGUMENTS, "data.db"]


def test_build_command_in_memory() -> None:
    assert build_command("sqlite3") == ["sqlite3", *DEFAULT_ARGUMENTS]


def test_build_command_arguments_replace_defaults() -> None:
    assert build_command("sqlite3", "data.db", ["-invalid-sqlite-cli-arg"]) == [
        "sqlite3",
        "-invalid-sqlite-cli-arg",
        "data.db",
    ]
    assert build_command("sqlite3", None, []) == ["sqlite3"]


def test_guard_starts_closed_until_ready() -> None:
    guard = ExecutionGuard()

    assert guard.state is ShellState.STARTING
    with pytest.raises(ShellClosedError):
        guard.begin()


def test_guard_single_flight() -> None:
    guard = ExecutionGuard(ShellState.IDLE)

    with guard.acquire():
        assert guard.state is ShellState.BUSY
        with pytest.raises(AlreadyExecutingError):
            guard.begin()
        with pytest.raises(AlreadyExecutingError):
            guard.mark_closed()

    assert guard.state is ShellState.IDLE


def test_guard_releases_on_error() -> None:
    guard = ExecutionGuard(ShellState.IDLE)

    with pytest.raises(RuntimeError), guard.acquire():
        raise RuntimeError

    assert guard.state is ShellState.IDLE


def test_guard_mark_closed() -> None:
    guard = ExecutionGuard(ShellState.IDLE)

    assert guard.mark_closed() is True
    assert guard.mark_closed() is False
    assert guard.state is ShellState.CLOSED
    with pytest.raises(ShellClosedError):
        guard.begin()


def test_guard_end_does_not_reopen_closed_session() -> None:
    guard = ExecutionGuard(ShellState.CLOSED)
    guard.end()

    assert guard.state is ShellState.CLOSED


def test_guard_admits_one_thread() -> None:
    guard = ExecutionGuard(ShellState.IDLE)
    barrier = threading.Barrier(8)
    admitted: list[int] = []
    rejected: list[int] = []

    def worker(number: int) -> None:
        barrier.wait()
        try:
            guard.begin()
        except AlreadyExecutingError:
            rejected.append(number)
        else:
            admitted.append(number)

    threads = [threading.Thread(target=worker, args=(number,)) for number in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(admitted) == 1
    assert len(rejected) == 7
    assert guard.state is ShellState.BUSY


class Owner:
    """Stands in for a row iterator holding the session."""


def test_guard_owner_keeps_session_busy() -> None:
    guard = ExecutionGuard(ShellState.IDLE)
    owner = Owner()

    assert guard.begin(owner) is None
    with pytest.raises(AlreadyExecutingError):
        guard.begin()
    guard.end(Owner())
    guard.end()

    assert guard.state is ShellState.BUSY
    guard.end(owner)
    assert guard.state is ShellState.IDLE


def test_guard_takes_over_from_collected_owner() -> None:
    guard = ExecutionGuard(ShellState.IDLE)
    owner = Owner()
    framer = RowFramer()
    guard.begin(owner)
    guard.track(framer)

    del owner

    assert guard.state is ShellState.IDLE
    assert guard.begin() is framer
    assert guard.state is ShellState.BUSY


def test_guard_end_with_unread_output_hands_framer_to_next_statement() -> None:
    guard = ExecutionGuard(ShellState.IDLE)
    owner = Owner()
    framer = RowFramer()
    guard.begin(owner)
    guard.track(framer)

    guard.end(owner)

    assert guard.state is ShellState.IDLE
    assert guard.begin() is framer
    assert framer.frame("*") is None
    guard.end()
    assert guard.state is ShellState.IDLE
    assert guard.begin() is None


def test_guard_closes_over_abandoned_statement() -> None:
    guard = ExecutionGuard(ShellState.IDLE)
    owner = Owner()
    guard.begin(owner)
    guard.track(RowFramer())

    del owner

    assert guard.mark_closed() is True
    assert guard.state is ShellState.CLOSED
    with pytest.raises(ShellClosedError):
        guard.begin()


def test_prepare_statement() -> None:
    assert prepare_statement("SELECT ?") == "SELECT ?"
    assert prepare_statement("SELECT ?", [1]) == "SELECT 1"
    assert prepare_statement("SELECT :a", {"a": "x"}) == "SELECT 'x'"


@pytest.mark.parametrize("line", ["*", "*\n", " *\r\n"])
def test_is_ready_line(line: str) -> None:
    assert is_ready_line(line)


def test_is_not_ready_line() -> None:
    assert not is_ready_line("Error: unknown option\n")
    assert not is_ready_line("")


def test_decode_row() -> None:
    assert decode_row('{"id":1,"name":"goku","power":45000.3,"blob":null}') == {
        "id": 1,
        "name": "goku",
        "power": 45000.3,
        "blob": None,
    }


@pytest.mark.parametrize("fragment", ["not json", "[1,2]", "42", ""])
def test_decode_row_rejects_non_objects(fragment: str) -> None:
    with pytest.raises(MalformedRowError) as exc_info:
        decode_row(fragment)

    assert exc_info.value.line == fragment


def test_frame_line_rejects_invalid_utf8() -> None:
    framer = RowFramer()

    with pytest.raises(MalformedRowError, match="not valid UTF-8"):
        frame_line(framer, b'[{"name":"\xff"}]\n')

    assert framer.rows == 1
    assert frame_line(framer, b"*\n") is None
    assert framer.complete
