"""SQLShell: drive the ``sqlite3`` command-line shell as a database connection."""

from sqlshell import driver, exceptions, parameters, transport, typing, utils
from sqlshell.__metadata__ import __version__
from sqlshell.config import AsyncShellConfig, ShellConfig, ShellConnectionParams
from sqlshell.driver import AsyncShell, Shell, ShellState
from sqlshell.exceptions import (
    AbnormalExitError,
    AlreadyExecutingError,
    ImproperConfigurationError,
    MalformedRowError,
    MissingNamedParameterError,
    MissingPositionalParameterError,
    ParameterError,
    ShellClosedError,
    SQLShellError,
    StartupFailedError,
    UnconsumedParametersError,
)
from sqlshell.framing import SENTINEL, RowFramer, split_rows
from sqlshell.parameters import ParameterBinder, ParameterStyle, bind_parameters, format_parameter
from sqlshell.typing import Parameter, Row, StatementParameters

__all__ = (
    "SENTINEL",
    "AbnormalExitError",
    "AlreadyExecutingError",
    "AsyncShell",
    "AsyncShellConfig",
    "ImproperConfigurationError",
    "MalformedRowError",
    "MissingNamedParameterError",
    "MissingPositionalParameterError",
    "Parameter",
    "ParameterBinder",
    "ParameterError",
    "ParameterStyle",
    "Row",
    "RowFramer",
    "SQLShellError",
    "Shell",
    "ShellClosedError",
    "ShellConfig",
    "ShellConnectionParams",
    "ShellState",
    "StartupFailedError",
    "StatementParameters",
    "UnconsumedParametersError",
    "__version__",
    "bind_parameters",
    "driver",
    "exceptions",
    "format_parameter",
    "parameters",
    "split_rows",
    "transport",
    "typing",
    "utils",
)
