import pytest

from sqlshell.exceptions import (
    AbnormalExitError,
    AlreadyExecutingError,
    ImproperConfigurationError,
    MalformedRowError,
    MissingNamedParameterError,
    MissingPositionalParameterError,
    ParameterError,
    SessionStateError,
    ShellClosedError,
    SQLShellError,
    StartupFailedError,
    UnconsumedParametersError,
    UnsupportedParameterError,
)


def test_exception_hierarchy():
    """Test exception classes inherit correctly."""
    for error in (
        MissingPositionalParameterError,
        UnconsumedParametersError,
        MissingNamedParameterError,
        UnsupportedParameterError,
    ):
        assert issubclass(error, ParameterError)

    assert issubclass(AlreadyExecutingError, SessionStateError)
    assert issubclass(ShellClosedError, SessionStateError)

    for error in (
        ParameterError,
        SessionStateError,
        StartupFailedError,
        MalformedRowError,
        AbnormalExitError,
        ImproperConfigurationError,
    ):
        assert issubclass(error, SQLShellError)


@pytest.mark.parametrize(
    "exc,message",
    [
        (StartupFailedError(), "Sqlite startup failed"),
        (AlreadyExecutingError(), "Already processing another query"),
        (ShellClosedError(), "Shell is closed"),
        (AbnormalExitError(1), "SQLite exited with status: 1"),
        (MissingPositionalParameterError(2), 'Cannot find parameter with index "2"'),
        (MissingNamedParameterError("c3"), 'Cannot find parameter with key "c3"'),
        (UnconsumedParametersError("SELECT ?"), 'Not all parameters were used by "SELECT ?"'),
    ],
)
def test_default_messages(exc: SQLShellError, message: str):
    assert str(exc) == message
    assert exc.detail == message


def test_exception_carries_context():
    assert AbnormalExitError(3).exit_code == 3
    assert MissingPositionalParameterError(1).index == 1
    assert MissingNamedParameterError("k").key == "k"
    assert MalformedRowError("{bad").line == "{bad"


def test_custom_messages():
    assert str(StartupFailedError("cannot run 'nope'")) == "cannot run 'nope'"
    assert str(MalformedRowError("x", "Row is not a JSON object")) == "Row is not a JSON object"


def test_repr_includes_detail():
    assert repr(ShellClosedError()) == "ShellClosedError - Shell is closed"
    assert repr(SQLShellError()) == "SQLShellError"


def test_exception_chaining():
    """Test exceptions support chaining with 'from'."""
    try:
        try:
            raise FileNotFoundError("sqlite3")
        except FileNotFoundError as e:
            raise StartupFailedError("cannot run 'sqlite3'") from e
    except StartupFailedError as exc:
        assert isinstance(exc.__cause__, FileNotFoundError)
