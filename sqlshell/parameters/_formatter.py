"""Rendering of Python values as SQLite literals."""

import math
from decimal import Decimal
from typing import TYPE_CHECKING, Final

from sqlshell.exceptions import UnsupportedParameterError

if TYPE_CHECKING:
    from sqlshell.typing import Parameter

__all__ = ("format_parameter",)

NULL_LITERAL: Final = "NULL"
# SQLite reads an overflowing exponent as +/-Inf.
POSITIVE_INFINITY_LITERAL: Final = "1e999"
NEGATIVE_INFINITY_LITERAL: Final = "-1e999"


def _format_float(value: float) -> str:
    if math.isnan(value):
        return NULL_LITERAL
    if math.isinf(value):
        return POSITIVE_INFINITY_LITERAL if value > 0 else NEGATIVE_INFINITY_LITERAL
    return repr(value)


def format_parameter(value: "Parameter") -> str:
    """Render one parameter value as SQL text.

    Strings only get their single quotes doubled; SQLite string literals need
    no other escaping. Byte sequences become blob literals.

    Args:
        value: The value to render.

    Raises:
        UnsupportedParameterError: ``value`` is not a supported parameter type.

    Returns:
        The SQL literal.
    """
    if value is None:
        return NULL_LITERAL
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, Decimal):
        if value.is_nan():
            return NULL_LITERAL
        if value.is_infinite():
            return POSITIVE_INFINITY_LITERAL if value > 0 else NEGATIVE_INFINITY_LITERAL
        return str(value)
    if isinstance(value, str):
        escaped = value.replace("'", "''")
        return f"'{escaped}'"
    if isinstance(value, (bytes, bytearray, memoryview)):
        return f"x'{bytes(value).hex()}'"
    raise UnsupportedParameterError(value)
