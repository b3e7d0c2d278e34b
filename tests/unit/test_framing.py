"""Unit tests for row framing of sqlite3 JSON output."""

import pytest

from sqlshell.framing import SENTINEL, RowFramer, encode_statement, split_rows


def test_encode_statement_appends_terminator_and_sentinel() -> None:
    assert encode_statement("SELECT 1") == b"SELECT 1;\n.print *\n"


def test_encode_statement_custom_sentinel() -> None:
    assert encode_statement("SELECT 1", sentinel="@@") == b"SELECT 1;\n.print @@\n"


def test_encode_statement_utf8() -> None:
    assert encode_statement("SELECT 'ñ'") == "SELECT 'ñ';\n.print *\n".encode()


def test_frame_multiple_rows() -> None:
    framer = RowFramer()

    assert framer.frame('[{"id":1},\n') == '{"id":1}'
    assert framer.frame('{"id":2},\n') == '{"id":2}'
    assert framer.frame('{"id":3}]\n') == '{"id":3}'
    assert framer.frame("*\n") is None
    assert framer.complete
    assert framer.rows == 3


def test_frame_single_row_strips_both_brackets() -> None:
    framer = RowFramer()

    assert framer.frame('[{"id":1}]\n') == '{"id":1}'
    assert framer.rows == 1


def test_frame_sentinel_without_rows() -> None:
    framer = RowFramer()

    assert framer.frame(SENTINEL) is None
    assert framer.complete
    assert framer.rows == 0


@pytest.mark.parametrize("line", ['[{"a":1}]\r\n', '[{"a":1}]\n', '[{"a":1}]'])
def test_frame_ignores_line_terminator(line: str) -> None:
    assert RowFramer().frame(line) == '{"a":1}'


def test_frame_sentinel_with_crlf() -> None:
    assert RowFramer().frame("*\r\n") is None


def test_frame_keeps_row_text_intact() -> None:
    framer = RowFramer()

    assert framer.frame('[{"t":"a, b]"},\n') == '{"t":"a, b]"}'


def test_custom_sentinel() -> None:
    framer = RowFramer(sentinel="--done--")

    assert framer.frame("*\n") == ""
    assert framer.frame("--done--\n") is None


def test_split_rows_stops_at_sentinel() -> None:
    lines = iter(['[{"x":1},\n', '{"x":2}]\n', "*\n", '[{"next":true}]\n', "*\n"])

    assert list(split_rows(lines)) == ['{"x":1}', '{"x":2}']
    assert next(lines) == '[{"next":true}]\n'


def test_split_rows_without_sentinel_ends_with_input() -> None:
    assert list(split_rows(['[{"x":1}]\n'])) == ['{"x":1}']


def test_split_rows_empty_result() -> None:
    assert list(split_rows(["*\n"])) == []
