"""JSON serialization utilities for SQLShell.

Both directions go through msgspec; rows coming back from the shell are
decoded with a shared decoder instance.
"""

from typing import Any, Final, Literal, overload

import msgspec

__all__ = ("DecodeError", "from_json", "to_json")

DecodeError = msgspec.DecodeError

_encoder: Final = msgspec.json.Encoder(enc_hook=str)
_decoder: Final = msgspec.json.Decoder()


@overload
def to_json(data: Any, *, as_bytes: Literal[False] = ...) -> str: ...


@overload
def to_json(data: Any, *, as_bytes: Literal[True]) -> bytes: ...


def to_json(data: Any, *, as_bytes: bool = False) -> "str | bytes":
    """Encode data to JSON string or bytes.

    Args:
        data: Data to encode. Unknown types are encoded through ``str``.
        as_bytes: Whether to return bytes instead of string.

    Returns:
        JSON string or bytes representation based on as_bytes parameter.
    """
    encoded = _encoder.encode(data)
    if as_bytes:
        return encoded
    return encoded.decode("utf-8")


def from_json(data: "str | bytes") -> Any:
    """Decode JSON string or bytes to Python object.

    Raises:
        DecodeError: ``data`` is not valid JSON.
    """
    return _decoder.decode(data)
