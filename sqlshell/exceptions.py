from typing import Any, Optional

__all__ = (
    "AbnormalExitError",
    "AlreadyExecutingError",
    "ImproperConfigurationError",
    "MalformedRowError",
    "MissingNamedParameterError",
    "MissingPositionalParameterError",
    "ParameterError",
    "SQLShellError",
    "SessionStateError",
    "ShellClosedError",
    "StartupFailedError",
    "UnconsumedParametersError",
    "UnsupportedParameterError",
)


class SQLShellError(Exception):
    """Base exception class from which all SQLShell exceptions inherit."""

    detail: str

    def __init__(self, *args: Any, detail: str = "") -> None:
        """Initialize ``SQLShellError``.

        Args:
            *args: args are converted to :class:`str` before passing to :class:`Exception`
            detail: detail of the exception.
        """
        str_args = [str(arg) for arg in args if arg]
        if not detail:
            if str_args:
                detail, *str_args = str_args
            elif hasattr(self, "detail"):
                detail = self.detail
        self.detail = detail
        super().__init__(*str_args)

    def __repr__(self) -> str:
        if self.detail:
            return f"{self.__class__.__name__} - {self.detail}"
        return self.__class__.__name__

    def __str__(self) -> str:
        return " ".join((*self.args, self.detail)).strip()


class ImproperConfigurationError(SQLShellError):
    """Improper Configuration error.

    Raised when a shell configuration value has the wrong type or shape.
    """


# -- Parameter Binding Errors --
class ParameterError(SQLShellError):
    """Base class for parameter binding errors.

    Always raised before anything is written to the shell process.
    """


class MissingPositionalParameterError(ParameterError):
    """A ``?`` placeholder has no corresponding positional value."""

    index: int

    def __init__(self, index: int) -> None:
        super().__init__(f'Cannot find parameter with index "{index}"')
        self.index = index


class UnconsumedParametersError(ParameterError):
    """More positional values were supplied than placeholders consumed."""

    sql: str

    def __init__(self, sql: str) -> None:
        super().__init__(f'Not all parameters were used by "{sql}"')
        self.sql = sql


class MissingNamedParameterError(ParameterError):
    """A named placeholder has no corresponding key in the mapping."""

    key: str

    def __init__(self, key: str) -> None:
        super().__init__(f'Cannot find parameter with key "{key}"')
        self.key = key


class UnsupportedParameterError(ParameterError):
    """A value cannot be rendered as a SQL literal."""

    def __init__(self, value: Any) -> None:
        super().__init__(f"Unsupported parameter type: {type(value).__name__}")
        self.value = value


# -- Session Errors --
class StartupFailedError(SQLShellError):
    """The shell process did not report readiness.

    The process is torn down before this is raised.
    """

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Sqlite startup failed"
        super().__init__(message)


class SessionStateError(SQLShellError):
    """Base class for calls made while the session is in the wrong state."""


class AlreadyExecutingError(SessionStateError):
    """Another statement is still in flight on this session."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Already processing another query"
        super().__init__(message)


class ShellClosedError(SessionStateError):
    """The session has been closed or never started."""

    def __init__(self, message: Optional[str] = None) -> None:
        if message is None:
            message = "Shell is closed"
        super().__init__(message)


class MalformedRowError(SQLShellError):
    """A line of shell output did not decode as a JSON object.

    The session discards the rest of the statement's output before this
    propagates, unless the line exceeded the transport's size limit, in
    which case the position of the output stream is unspecified.
    """

    line: str

    def __init__(self, line: str, message: Optional[str] = None) -> None:
        if message is None:
            message = f"Malformed row: {line!r}"
        super().__init__(message)
        self.line = line


class AbnormalExitError(SQLShellError):
    """The shell process exited with a non-zero status on close."""

    exit_code: int

    def __init__(self, exit_code: int) -> None:
        super().__init__(f"SQLite exited with status: {exit_code}")
        self.exit_code = exit_code
