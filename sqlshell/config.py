"""Shell session configuration."""

from collections.abc import Sequence
from contextlib import asynccontextmanager, contextmanager
from typing import TYPE_CHECKING, Any, ClassVar, Optional, TypedDict

from typing_extensions import NotRequired

from sqlshell.driver import AsyncShell, Shell, build_command
from sqlshell.exceptions import ImproperConfigurationError
from sqlshell.utils.executable import resolve_executable
from sqlshell.utils.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Generator

__all__ = ("AsyncShellConfig", "ShellConfig", "ShellConnectionParams")

logger = get_logger("config")


class ShellConnectionParams(TypedDict, total=False):
    """Parameters for starting a ``sqlite3`` shell process."""

    executable: NotRequired[str]
    database: NotRequired[str]
    arguments: NotRequired[Sequence[str]]


_KNOWN_KEYS = frozenset(ShellConnectionParams.__annotations__)


class _ShellConfigBase:
    __slots__ = ("connection_config",)

    def __init__(self, *, connection_config: "Optional[ShellConnectionParams | dict[str, Any]]" = None) -> None:
        """Initialize shell configuration.

        Args:
            connection_config: Executable, database path and argument overrides.

        Raises:
            ImproperConfigurationError: A key is unknown or a value has the wrong type.
        """
        config = dict(connection_config or {})
        unknown = set(config) - _KNOWN_KEYS
        if unknown:
            msg = f"Unknown shell connection parameters: {', '.join(sorted(unknown))}"
            raise ImproperConfigurationError(msg)
        for key in ("executable", "database"):
            value = config.get(key)
            if value is not None and not isinstance(value, str):
                msg = f"Shell connection parameter {key!r} must be a string, got {type(value).__name__}"
                raise ImproperConfigurationError(msg)
        arguments = config.get("arguments")
        if arguments is not None:
            if isinstance(arguments, str) or not isinstance(arguments, Sequence):
                msg = "Shell connection parameter 'arguments' must be a sequence of strings"
                raise ImproperConfigurationError(msg)
            if not all(isinstance(argument, str) for argument in arguments):
                msg = "Shell connection parameter 'arguments' must only contain strings"
                raise ImproperConfigurationError(msg)
            config["arguments"] = list(arguments)
        self.connection_config: ShellConnectionParams = config  # type: ignore[assignment]

    @property
    def command(self) -> "list[str]":
        """The command line a new session would run."""
        return build_command(
            resolve_executable(self.connection_config.get("executable")),
            self.connection_config.get("database"),
            self.connection_config.get("arguments"),
        )

    def __repr__(self) -> str:
        return f"{type(self).__name__}(connection_config={self.connection_config!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, type(self)):
            return NotImplemented
        return self.connection_config == other.connection_config

    __hash__ = None  # type: ignore[assignment]


class ShellConfig(_ShellConfigBase):
    """Configuration for synchronous shell sessions."""

    __slots__ = ()

    session_type: "ClassVar[type[Shell]]" = Shell

    def create_connection(self) -> Shell:
        """Start a new shell session.

        Returns:
            An idle session the caller must close.
        """
        logger.debug("Starting shell session: %s", self.connection_config)
        return self.session_type.create(**self.connection_config)

    @contextmanager
    def provide_session(self) -> "Generator[Shell, None, None]":
        """Provide a shell session that is closed on exit.

        Yields:
            Shell: An idle session.
        """
        with self.create_connection() as shell:
            yield shell


class AsyncShellConfig(_ShellConfigBase):
    """Configuration for asynchronous shell sessions."""

    __slots__ = ()

    session_type: "ClassVar[type[AsyncShell]]" = AsyncShell

    async def create_connection(self) -> AsyncShell:
        logger.debug("Starting async shell session: %s", self.connection_config)
        return await self.session_type.create(**self.connection_config)

    @asynccontextmanager
    async def provide_session(self) -> "AsyncGenerator[AsyncShell, None]":
        """Provide an async shell session that is closed on exit.

        Yields:
            AsyncShell: An idle session.
        """
        async with await self.create_connection() as shell:
            yield shell
