"""Lexer: turns plist text into a stream of tokens.

Recognised tokens are the punctuation ``{ } ( ) = ; ,``, barewords made of
``[A-Za-z0-9_.$]`` and double-quoted strings. Inside quotes a backslash
passes the following character through unchanged, which covers ``\\\\``
and ``\\"``. Whitespace, ``/* ... */`` and ``// ...`` comments separate
tokens.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Iterator

from .errors import PlistLexError

logger = logging.getLogger(__name__)


IDENTIFIER_RE = re.compile(r"[A-Za-z0-9_.$]+")
_WHITESPACE_RE = re.compile(r"[ \t\r\n]+")


# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

class TokenType(Enum):
    LBRACE = auto()
    RBRACE = auto()
    LPAREN = auto()
    RPAREN = auto()
    EQUALS = auto()
    SEMICOLON = auto()
    COMMA = auto()
    IDENTIFIER = auto()
    QUOTED_STRING = auto()
    EOF = auto()


_PUNCTUATION: dict[str, TokenType] = {
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "=": TokenType.EQUALS,
    ";": TokenType.SEMICOLON,
    ",": TokenType.COMMA,
}

STRING_TOKENS = frozenset({TokenType.IDENTIFIER, TokenType.QUOTED_STRING})


@dataclass(slots=True)
class Token:
    type: TokenType
    value: str
    line: int
    column: int

    def describe(self) -> str:
        if self.type is TokenType.EOF:
            return "end of input"
        if self.type in STRING_TOKENS:
            return f"string {self.value!r}"
        return repr(self.value)


# ---------------------------------------------------------------------------
# Lexer
# ---------------------------------------------------------------------------

class Lexer:
    """Scans ``text`` one token at a time. Positions are 1-based."""

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0
        self.line = 1
        self._line_start = 0

    @property
    def column(self) -> int:
        return self.pos - self._line_start + 1

    def _advance(self, end: int) -> None:
        newlines = self.text.count("\n", self.pos, end)
        if newlines:
            self.line += newlines
            self._line_start = self.text.rindex("\n", self.pos, end) + 1
        self.pos = end

    def _fail(self, message: str, line: int, column: int) -> PlistLexError:
        logger.error("Lex error at %d:%d: %s", line, column, message)
        return PlistLexError(message, line, column)

    def _skip_blanks(self) -> None:
        """Skip whitespace and both comment styles."""
        text = self.text
        while self.pos < len(text):
            m = _WHITESPACE_RE.match(text, self.pos)
            if m:
                self._advance(m.end())
                continue
            if text.startswith("/*", self.pos):
                end = text.find("*/", self.pos + 2)
                if end < 0:
                    raise self._fail("unterminated comment",
                                     self.line, self.column)
                self._advance(end + 2)
                continue
            if text.startswith("//", self.pos):
                end = text.find("\n", self.pos + 2)
                self._advance(len(text) if end < 0 else end + 1)
                continue
            return

    def _quoted(self) -> str:
        text = self.text
        line, column = self.line, self.column
        chars: list[str] = []
        i = self.pos + 1
        while i < len(text):
            c = text[i]
            if c == '"':
                self._advance(i + 1)
                return "".join(chars)
            if c == "\\":
                i += 1
                if i >= len(text):
                    break
                c = text[i]
            chars.append(c)
            i += 1
        raise self._fail("unterminated quoted string", line, column)

    def next_token(self) -> Token:
        self._skip_blanks()
        line, column = self.line, self.column
        if self.pos >= len(self.text):
            return Token(TokenType.EOF, "", line, column)

        c = self.text[self.pos]
        kind = _PUNCTUATION.get(c)
        if kind is not None:
            self._advance(self.pos + 1)
            return Token(kind, c, line, column)

        if c == '"':
            return Token(TokenType.QUOTED_STRING, self._quoted(), line, column)

        m = IDENTIFIER_RE.match(self.text, self.pos)
        if m:
            self._advance(m.end())
            return Token(TokenType.IDENTIFIER, m.group(), line, column)

        raise self._fail(f"unexpected character {c!r}", line, column)

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self.next_token()
            yield token
            if token.type is TokenType.EOF:
                return


def tokenize(text: str) -> list[Token]:
    """Lex all of ``text``, including the trailing EOF token."""
    return list(Lexer(text))
