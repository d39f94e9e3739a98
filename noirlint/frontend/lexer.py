"""Tokenizer for Noir source files."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from noirlint.core.errors import ParseError


class TokenKind(Enum):
    IDENT = "ident"
    INT = "int"
    STR = "str"
    PUNCT = "punct"
    EOF = "eof"


@dataclass(frozen=True, slots=True)
class Token:
    kind: TokenKind
    text: str
    line: int
    column: int
    end_line: int
    end_column: int

    def is_punct(self, text: str) -> bool:
        return self.kind is TokenKind.PUNCT and self.text == text

    def is_keyword(self, text: str) -> bool:
        return self.kind is TokenKind.IDENT and self.text == text


# Longest first so that e.g. `<<=` wins over `<<` and `<`.
PUNCTUATION = (
    "<<=", ">>=", "...", "..=",
    "::", "->", "=>", "==", "!=", "<=", ">=", "&&", "||",
    "+=", "-=", "*=", "/=", "%=", "&=", "|=", "^=", "..", "<<", ">>",
    "+", "-", "*", "/", "%", "=", "<", ">", "!", "&", "|", "^",
    "(", ")", "[", "]", "{", "}", ",", ";", ":", ".", "#", "@", "?", "$", "~", "'",
)

_PUNCT_RE = re.compile("|".join(re.escape(p) for p in PUNCTUATION))
_IDENT_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_INT_RE = re.compile(r"0x[0-9A-Fa-f_]+|0b[01_]+|[0-9][0-9_]*")
_WHITESPACE_RE = re.compile(r"[ \t\r\n\f]+")
_RAW_STRING_RE = re.compile(r'r(#*)"')


class Lexer:
    """Splits Noir source text into tokens with 1-based line/column positions."""

    def __init__(self, source: str, file_path: str = "<memory>") -> None:
        self.source = source
        self.file_path = file_path
        self.pos = 0
        self.line = 1
        self.column = 1

    def tokenize(self) -> list[Token]:
        tokens: list[Token] = []
        while True:
            self._skip_trivia()
            if self.pos >= len(self.source):
                tokens.append(Token(TokenKind.EOF, "", self.line, self.column, self.line, self.column))
                return tokens
            tokens.append(self._next_token())

    def _error(self, message: str) -> ParseError:
        return ParseError(message, self.file_path, self.line, self.column)

    def _advance(self, count: int) -> str:
        text = self.source[self.pos : self.pos + count]
        for char in text:
            if char == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        self.pos += count
        return text

    def _skip_trivia(self) -> None:
        while self.pos < len(self.source):
            match = _WHITESPACE_RE.match(self.source, self.pos)
            if match:
                self._advance(match.end() - self.pos)
                continue
            if self.source.startswith("//", self.pos):
                end = self.source.find("\n", self.pos)
                self._advance((len(self.source) if end == -1 else end) - self.pos)
                continue
            if self.source.startswith("/*", self.pos):
                self._skip_block_comment()
                continue
            return

    def _skip_block_comment(self) -> None:
        depth = 0
        while self.pos < len(self.source):
            if self.source.startswith("/*", self.pos):
                depth += 1
                self._advance(2)
            elif self.source.startswith("*/", self.pos):
                depth -= 1
                self._advance(2)
                if depth == 0:
                    return
            else:
                self._advance(1)
        raise self._error("unterminated block comment")

    def _make(self, kind: TokenKind, length: int) -> Token:
        line, column = self.line, self.column
        text = self._advance(length)
        return Token(kind, text, line, column, self.line, self.column)

    def _next_token(self) -> Token:
        source, pos = self.source, self.pos
        char = source[pos]

        raw = _RAW_STRING_RE.match(source, pos)
        if raw:
            return self._raw_string(len(raw.group(1)))
        if char == '"':
            return self._string(0)
        if char == "f" and source.startswith('f"', pos):
            return self._string(1)

        match = _IDENT_RE.match(source, pos)
        if match:
            return self._make(TokenKind.IDENT, match.end() - pos)
        match = _INT_RE.match(source, pos)
        if match:
            return self._make(TokenKind.INT, match.end() - pos)
        match = _PUNCT_RE.match(source, pos)
        if match:
            return self._make(TokenKind.PUNCT, match.end() - pos)
        raise self._error(f"unexpected character {char!r}")

    def _string(self, prefix: int) -> Token:
        index = self.pos + prefix + 1
        while index < len(self.source):
            char = self.source[index]
            if char == "\\":
                index += 2
                continue
            if char == '"':
                return self._make(TokenKind.STR, index + 1 - self.pos)
            index += 1
        raise self._error("unterminated string literal")

    def _raw_string(self, hashes: int) -> Token:
        terminator = '"' + "#" * hashes
        start = self.pos + 2 + hashes
        end = self.source.find(terminator, start)
        if end == -1:
            raise self._error("unterminated raw string literal")
        return self._make(TokenKind.STR, end + len(terminator) - self.pos)


def tokenize(source: str, file_path: str = "<memory>") -> list[Token]:
    return Lexer(source, file_path).tokenize()
