"""Framing of ``sqlite3 -json`` output into row fragments.

Every statement is written followed by a ``.print *`` directive, so its
output ends at the next line consisting of the sentinel alone. In JSON mode
the shell prints a result set as an array with one element per line::

    [{"id":1,"name":"goku"},
    {"id":2,"name":"gohan"}]
    *

The array punctuation is stripped line by line instead of buffering the whole
array: the first row line loses its leading ``[`` and every row line loses
its trailing ``,`` or ``]``.
"""

from typing import TYPE_CHECKING, Final, Optional

from mypy_extensions import mypyc_attr

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

__all__ = ("SENTINEL", "RowFramer", "encode_statement", "split_rows")

SENTINEL: Final = "*"
SENTINEL_DIRECTIVE: Final = f".print {SENTINEL}"
ENCODING: Final = "utf-8"


def encode_statement(sql: str, sentinel: str = SENTINEL) -> bytes:
    """Build the bytes written to the shell for one statement."""
    return f"{sql};\n.print {sentinel}\n".encode(ENCODING)


@mypyc_attr(allow_interpreted_subclasses=False)
class RowFramer:
    """Turns the output lines of one statement into row fragments.

    A framer is single use: once it has seen the sentinel it is ``complete``.
    """

    __slots__ = ("complete", "rows", "sentinel")

    def __init__(self, sentinel: str = SENTINEL) -> None:
        self.sentinel = sentinel
        self.complete = False
        self.rows = 0

    def frame(self, line: str) -> Optional[str]:
        """Frame one output line.

        Args:
            line: A line of shell output, with or without its line terminator.

        Returns:
            The JSON text of one row, or None when ``line`` is the sentinel.
        """
        text = line.rstrip("\r\n")
        if text == self.sentinel:
            self.complete = True
            return None
        start = 1 if self.rows == 0 else 0
        self.rows += 1
        return text[start:-1]


def split_rows(lines: "Iterable[str]", sentinel: str = SENTINEL) -> "Iterator[str]":
    """Lazily frame ``lines`` up to the first sentinel line.

    Lines after the sentinel are left unread in ``lines``.
    """
    framer = RowFramer(sentinel)
    for line in lines:
        fragment = framer.frame(line)
        if fragment is None:
            return
        yield fragment
