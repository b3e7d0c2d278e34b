from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Union

from typing_extensions import TypeAlias

__all__ = (
    "JSONPrimitive",
    "NamedParameters",
    "Parameter",
    "PositionalParameters",
    "Row",
    "StatementParameters",
)

JSONPrimitive: TypeAlias = Union[str, int, float, bool, None]
"""Scalar values the shell emits in JSON rows."""

Parameter: TypeAlias = Union[None, bool, int, float, Decimal, str, bytes, bytearray, memoryview]
"""Values accepted for placeholder substitution."""

PositionalParameters: TypeAlias = Sequence[Parameter]
NamedParameters: TypeAlias = Mapping[str, Parameter]
StatementParameters: TypeAlias = Union[PositionalParameters, NamedParameters]

Row: TypeAlias = dict[str, JSONPrimitive]
"""One decoded result row, keyed by column name."""
