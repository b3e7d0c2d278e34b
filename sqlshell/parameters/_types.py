"""Placeholder styles understood by the parameter binder."""

from enum import Enum
from typing import Final

__all__ = ("NAMED_PARAMETER_STYLES", "NAMED_SIGILS", "ParameterStyle")


class ParameterStyle(str, Enum):
    """Parameter style enumeration with string values."""

    QMARK = "qmark"
    NAMED_COLON = "named_colon"
    NAMED_AT = "named_at"
    NAMED_DOLLAR = "named_dollar"

    def __str__(self) -> str:
        """String representation for better error messages.

        Returns:
            The enum value as a string.
        """
        return self.value

    @property
    def is_named(self) -> bool:
        return self is not ParameterStyle.QMARK


NAMED_PARAMETER_STYLES: Final = frozenset(
    {ParameterStyle.NAMED_COLON, ParameterStyle.NAMED_AT, ParameterStyle.NAMED_DOLLAR}
)

NAMED_SIGILS: Final[dict[str, ParameterStyle]] = {
    ":": ParameterStyle.NAMED_COLON,
    "@": ParameterStyle.NAMED_AT,
    "$": ParameterStyle.NAMED_DOLLAR,
}
