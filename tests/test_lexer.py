from __future__ import annotations

import pytest

from noirlint.core.errors import ParseError
from noirlint.frontend.lexer import TokenKind, tokenize


def _texts(source: str) -> list[str]:
    return [token.text for token in tokenize(source) if token.kind is not TokenKind.EOF]


def test_function_header_tokens() -> None:
    tokens = tokenize("pub fn main(x: Field) -> pub Field {}")

    assert [t.text for t in tokens[:4]] == ["pub", "fn", "main", "("]
    assert tokens[-1].kind is TokenKind.EOF


def test_positions_are_one_based() -> None:
    tokens = tokenize("fn foo() {}\n  fn bar() {}")

    foo = tokens[1]
    assert (foo.line, foo.column, foo.end_line, foo.end_column) == (1, 4, 1, 7)
    bar = next(t for t in tokens if t.text == "bar")
    assert (bar.line, bar.column) == (2, 6)


def test_comments_are_skipped() -> None:
    source = "// line\n/* outer /* inner */ still comment */ fn /* x */ f"

    assert _texts(source) == ["fn", "f"]


def test_longest_punctuation_wins() -> None:
    assert _texts("a <<= b :: c ..= d") == ["a", "<<=", "b", "::", "c", "..=", "d"]


def test_string_literals() -> None:
    tokens = tokenize('let a = "x\\"y"; let b = r#"raw "q""#; let c = f"{a}";')

    strings = [t.text for t in tokens if t.kind is TokenKind.STR]
    assert strings == ['"x\\"y"', 'r#"raw "q""#', 'f"{a}"']


def test_integer_literals() -> None:
    tokens = tokenize("0xff 0b1010 1_000")

    assert [t.kind for t in tokens[:3]] == [TokenKind.INT] * 3


def test_unknown_character_raises() -> None:
    with pytest.raises(ParseError) as excinfo:
        tokenize("fn f() {\n  `\n}", "src/main.nr")

    assert excinfo.value.line == 2
    assert excinfo.value.column == 3
    assert excinfo.value.file_path == "src/main.nr"


def test_unterminated_block_comment_raises() -> None:
    with pytest.raises(ParseError, match="unterminated block comment"):
        tokenize("/* /* */")


def test_unterminated_string_raises() -> None:
    with pytest.raises(ParseError, match="unterminated string"):
        tokenize('let s = "abc')
