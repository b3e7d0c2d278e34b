"""In-memory stand-ins for a ``sqlite3 -json`` process."""

from __future__ import annotations

import json
from collections import deque
from typing import Any, Callable

import pytest

from sqlshell.framing import SENTINEL

STATEMENT_TERMINATOR = f";\n.print {SENTINEL}\n"


def render_rows(rows: list[dict[str, Any]]) -> list[bytes]:
    """Render rows the way ``sqlite3 -json`` prints them, one per line."""
    if not rows:
        return []
    encoded = [json.dumps(row, separators=(",", ":")) for row in rows]
    lines = [f"{text}," for text in encoded[:-1]] + [f"{encoded[-1]}]"]
    lines[0] = f"[{lines[0]}"
    return [f"{line}\n".encode() for line in lines]


class FakeShellTransport:
    """Scripted transport.

    ``results`` maps statement text to the rows or raw output lines the
    statement produces. ``.exit N`` ends the output stream and sets the exit
    code. Reading past the scripted output fails instead of blocking.
    """

    def __init__(
        self,
        results: dict[str, list[dict[str, Any]] | list[bytes]] | None = None,
        *,
        ready_line: bytes = b"*\n",
        exit_code: int = 0,
    ) -> None:
        self.results = results or {}
        self.output: deque[bytes] = deque([ready_line] if ready_line else [])
        self.written: list[bytes] = []
        self.statements: list[str] = []
        self.exit_code = exit_code
        self.eof = not ready_line
        self.closed = False
        self.waited = False
        self.pid = 4242

    def write(self, data: bytes) -> None:
        assert not self.closed, "write after close"
        self.written.append(data)
        text = data.decode()
        assert text.endswith(STATEMENT_TERMINATOR), f"unterminated statement: {text!r}"
        statement = text[: -len(STATEMENT_TERMINATOR)]
        self.statements.append(statement)
        if statement.startswith(".exit"):
            self.exit_code = int(statement.split()[1]) if len(statement.split()) > 1 else 0
            self.eof = True
            return
        result = self.results.get(statement, [])
        if result and isinstance(result[0], bytes):
            self.output.extend(result)  # type: ignore[arg-type]
        else:
            self.output.extend(render_rows(result))  # type: ignore[arg-type]
        self.output.append(f"{SENTINEL}\n".encode())

    def readline(self) -> bytes:
        if self.output:
            return self.output.popleft()
        if self.eof or self.closed:
            return b""
        msg = "read would block: no scripted output left"
        raise AssertionError(msg)

    def close(self) -> None:
        self.closed = True

    def wait(self) -> int:
        assert self.closed, "wait before close"
        self.waited = True
        return self.exit_code


class AsyncFakeShellTransport:
    """Async facade over :class:`FakeShellTransport`."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.sync = FakeShellTransport(*args, **kwargs)
        self.pid = self.sync.pid

    async def write(self, data: bytes) -> None:
        self.sync.write(data)

    async def readline(self) -> bytes:
        return self.sync.readline()

    async def close(self) -> None:
        self.sync.close()

    async def wait(self) -> int:
        return self.sync.wait()


@pytest.fixture
def fake_transport() -> Callable[..., FakeShellTransport]:
    return FakeShellTransport


@pytest.fixture
def async_fake_transport() -> Callable[..., AsyncFakeShellTransport]:
    return AsyncFakeShellTransport
