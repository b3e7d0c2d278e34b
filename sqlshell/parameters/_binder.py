"""Quote-aware placeholder substitution.

Placeholders are replaced by SQL literals in a single regex pass. The scanner
tracks string literals by toggling an in-quote flag on every single quote it
sees, so text between two quotes is never substituted. A doubled quote inside
a literal flips the flag twice and leaves it unchanged, which is correct for
the surrounding literal but means the scanner has no notion of escapes.
"""

import re
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Callable, Final, Optional

from mypy_extensions import mypyc_attr

from sqlshell.exceptions import (
    MissingNamedParameterError,
    MissingPositionalParameterError,
    ParameterError,
    UnconsumedParametersError,
)
from sqlshell.parameters._formatter import format_parameter
from sqlshell.parameters._types import NAMED_PARAMETER_STYLES, NAMED_SIGILS, ParameterStyle

if TYPE_CHECKING:
    from collections.abc import Collection

    from sqlshell.typing import NamedParameters, Parameter, PositionalParameters, StatementParameters

__all__ = ("ParameterBinder", "bind_parameters", "is_named_parameters")


_POSITIONAL_REGEX: Final = re.compile(r"(?P<quote>')|(?P<qmark>\?)")


def _compile_named_regex(styles: "Collection[ParameterStyle]") -> "re.Pattern[str]":
    sigils = "".join(re.escape(sigil) for sigil, style in NAMED_SIGILS.items() if style in styles)
    return re.compile(rf"(?P<quote>')|(?P<sigil>[{sigils}])(?P<name>\w+)")


class _QuoteAwareReplacer:
    """``re.sub`` callback that leaves quoted text alone."""

    __slots__ = ("_fetch", "_in_quote")

    def __init__(self, fetch: "Callable[[re.Match[str]], Parameter]") -> None:
        self._fetch = fetch
        self._in_quote = False

    def __call__(self, match: "re.Match[str]") -> str:
        if match.group("quote"):
            self._in_quote = not self._in_quote
            return match.group(0)
        if self._in_quote:
            return match.group(0)
        return format_parameter(self._fetch(match))


def is_named_parameters(parameters: "StatementParameters") -> bool:
    """Return True when ``parameters`` binds named placeholders.

    Mappings bind named placeholders, any other sequence binds ``?``.

    Raises:
        ParameterError: ``parameters`` is neither a mapping nor a sequence.
    """
    if isinstance(parameters, Mapping):
        return True
    if isinstance(parameters, (str, bytes, bytearray)) or not isinstance(parameters, Sequence):
        msg = f"Parameters must be a sequence or a mapping, got {type(parameters).__name__}"
        raise ParameterError(msg)
    return False


@mypyc_attr(allow_interpreted_subclasses=False)
class ParameterBinder:
    """Substitutes formatted literals for placeholders in SQL text.

    Args:
        named_styles: Named placeholder styles to recognize. Defaults to all of
            ``:name``, ``@name`` and ``$name``.
    """

    __slots__ = ("_named_regex", "named_styles")

    def __init__(self, named_styles: "Optional[Collection[ParameterStyle]]" = None) -> None:
        styles = frozenset(named_styles) if named_styles is not None else NAMED_PARAMETER_STYLES
        unknown = styles - NAMED_PARAMETER_STYLES
        if unknown or not styles:
            msg = f"Invalid named parameter styles: {sorted(str(style) for style in unknown) or 'none'}"
            raise ParameterError(msg)
        self.named_styles = styles
        self._named_regex = _compile_named_regex(styles)

    def bind(self, sql: str, parameters: "StatementParameters") -> str:
        """Bind a positional sequence or a named mapping into ``sql``.

        Raises:
            MissingPositionalParameterError: A ``?`` has no value.
            UnconsumedParametersError: Values were left over after the scan.
            MissingNamedParameterError: A named placeholder has no key.

        Returns:
            SQL text with every placeholder outside quotes replaced.
        """
        if is_named_parameters(parameters):
            return self.bind_named(sql, parameters)  # type: ignore[arg-type]
        return self.bind_positional(sql, parameters)  # type: ignore[arg-type]

    def bind_positional(self, sql: str, parameters: "PositionalParameters") -> str:
        cursor = 0

        def fetch(_: "re.Match[str]") -> "Parameter":
            nonlocal cursor
            index = cursor
            cursor += 1
            if index >= len(parameters):
                raise MissingPositionalParameterError(index)
            return parameters[index]

        bound = _POSITIONAL_REGEX.sub(_QuoteAwareReplacer(fetch), sql)
        if cursor < len(parameters):
            raise UnconsumedParametersError(sql)
        return bound

    def bind_named(self, sql: str, parameters: "NamedParameters") -> str:
        # Unused keys are allowed here, unlike leftover positional values.
        def fetch(match: "re.Match[str]") -> "Parameter":
            key = match.group("name")
            if key not in parameters:
                raise MissingNamedParameterError(key)
            return parameters[key]

        return self._named_regex.sub(_QuoteAwareReplacer(fetch), sql)


_default_binder: Final = ParameterBinder()


def bind_parameters(sql: str, parameters: "StatementParameters") -> str:
    """Bind ``parameters`` into ``sql`` with the default binder.

    Args:
        sql: SQL text containing ``?`` or ``:name``/``@name``/``$name`` placeholders.
        parameters: A sequence for ``?`` placeholders or a mapping for named ones.

    Returns:
        The bound SQL text.
    """
    return _default_binder.bind(sql, parameters)
