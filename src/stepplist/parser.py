"""Parser: builds an object tree from plist text.

Grammar::

    document  = value [ ';' ] EOF
    value     = string | dict | array
    string    = identifier | quoted-string
    dict      = '{' [ pair (';' pair)* [ ';' ] ] '}'
    pair      = string '=' value
    array     = '(' [ value (',' value)* [ ',' ] ] ')'

The parser is a push-down automaton. Every reduced ``value`` is pushed on
an object stack; a completed pair pops key and value and inserts them into
the dict below, a completed array element is appended to the array below.
On any failure the stack is drained and every object on it released, so a
failed parse leaves nothing behind.
"""

from __future__ import annotations

import logging
import os
from enum import Enum, auto

from .dynbuf import DynBuf
from .errors import (
    DuplicateKeyError,
    PlistAllocError,
    PlistIOError,
    PlistParseError,
)
from .lexer import STRING_TOKENS, Lexer, Token, TokenType
from .model import PlistArray, PlistDict, PlistObject, PlistString

logger = logging.getLogger(__name__)


class _State(Enum):
    VALUE = auto()             # expecting a value
    KEY_OR_CLOSE = auto()      # after '{' or ';' inside a dict
    EQUALS = auto()            # after a dict key
    PAIR_END = auto()          # after a pair value: ';' or '}'
    ELEMENT_OR_CLOSE = auto()  # after '(' or ',' inside an array
    ELEMENT_END = auto()       # after an element: ',' or ')'
    DOCUMENT_END = auto()      # after the root value: ';' or EOF
    EOF = auto()               # after the optional trailing ';'
    DONE = auto()


# ---------------------------------------------------------------------------
# Parser context
# ---------------------------------------------------------------------------

class _ParserContext:
    """Object stack plus the state stack of open containers."""

    def __init__(self, lexer: Lexer) -> None:
        self.lexer = lexer
        self.object_stack: list[PlistObject] = []
        # Open containers, innermost last. Each one is also on object_stack.
        self.frames: list[PlistDict | PlistArray] = []
        self.state = _State.VALUE

    def fail(self, token: Token, message: str) -> PlistParseError:
        logger.error("Parse error at %d:%d: %s",
                     token.line, token.column, message)
        return PlistParseError(message, token.line, token.column)

    def drain(self) -> None:
        while self.object_stack:
            self.object_stack.pop().unref()

    # -- Shift ----------------------------------------------------------

    def shift_value(self, token: Token) -> None:
        if token.type in STRING_TOKENS:
            self.object_stack.append(PlistString(token.value))
            self.reduce_value(token)
        elif token.type is TokenType.LBRACE:
            dict_obj = PlistDict()
            self.object_stack.append(dict_obj)
            self.frames.append(dict_obj)
            self.state = _State.KEY_OR_CLOSE
        elif token.type is TokenType.LPAREN:
            array = PlistArray()
            self.object_stack.append(array)
            self.frames.append(array)
            self.state = _State.ELEMENT_OR_CLOSE
        else:
            raise self.fail(token, f"expected a value, got {token.describe()}")

    def close_container(self, token: Token) -> None:
        self.frames.pop()
        self.reduce_value(token)

    # -- Reduce ---------------------------------------------------------

    def reduce_value(self, token: Token) -> None:
        """A complete value sits on top of the stack; attach it."""
        if not self.frames:
            self.state = _State.DOCUMENT_END
            return

        container = self.frames[-1]
        if isinstance(container, PlistDict):
            value = self.object_stack.pop()
            key = self.object_stack.pop()
            try:
                if not container.add(key.value, value):
                    logger.error("Duplicate key %r at %d:%d",
                                 key.value, token.line, token.column)
                    raise DuplicateKeyError(key.value, token.line,
                                            token.column)
            finally:
                key.unref()
                value.unref()
            self.state = _State.PAIR_END
        else:
            value = self.object_stack.pop()
            try:
                container.push_back(value)
            finally:
                value.unref()
            self.state = _State.ELEMENT_END

    # -- Driver ---------------------------------------------------------

    def step(self, token: Token) -> None:
        state = self.state
        kind = token.type

        if state is _State.VALUE:
            self.shift_value(token)

        elif state is _State.KEY_OR_CLOSE:
            if kind is TokenType.RBRACE:
                self.close_container(token)
            elif kind in STRING_TOKENS:
                self.object_stack.append(PlistString(token.value))
                self.state = _State.EQUALS
            else:
                raise self.fail(
                    token, f"expected a key or '}}', got {token.describe()}")

        elif state is _State.EQUALS:
            if kind is not TokenType.EQUALS:
                raise self.fail(token, f"expected '=', got {token.describe()}")
            self.state = _State.VALUE

        elif state is _State.PAIR_END:
            if kind is TokenType.SEMICOLON:
                self.state = _State.KEY_OR_CLOSE
            elif kind is TokenType.RBRACE:
                self.close_container(token)
            else:
                raise self.fail(
                    token, f"expected ';' or '}}', got {token.describe()}")

        elif state is _State.ELEMENT_OR_CLOSE:
            if kind is TokenType.RPAREN:
                self.close_container(token)
            else:
                self.shift_value(token)

        elif state is _State.ELEMENT_END:
            if kind is TokenType.COMMA:
                self.state = _State.ELEMENT_OR_CLOSE
            elif kind is TokenType.RPAREN:
                self.close_container(token)
            else:
                raise self.fail(
                    token, f"expected ',' or ')', got {token.describe()}")

        elif state is _State.DOCUMENT_END:
            if kind is TokenType.SEMICOLON:
                self.state = _State.EOF
            elif kind is TokenType.EOF:
                self.state = _State.DONE
            else:
                raise self.fail(
                    token, f"expected end of input, got {token.describe()}")

        elif state is _State.EOF:
            if kind is not TokenType.EOF:
                raise self.fail(
                    token, f"expected end of input, got {token.describe()}")
            self.state = _State.DONE

    def run(self) -> PlistObject:
        try:
            while self.state is not _State.DONE:
                self.step(self.lexer.next_token())
        except MemoryError as exc:
            self.drain()
            logger.error("Out of memory while parsing")
            raise PlistAllocError("out of memory while parsing") from exc
        except BaseException:
            self.drain()
            raise
        if len(self.object_stack) != 1:
            self.drain()
            raise PlistParseError(
                f"internal error: {len(self.object_stack)} objects left "
                f"after parsing")
        return self.object_stack.pop()


# ---------------------------------------------------------------------------
# Public entry points
# ---------------------------------------------------------------------------

def parse_string(text: str) -> PlistObject:
    """Parse ``text``. The caller owns the returned reference."""
    return _ParserContext(Lexer(text)).run()


def parse_data(data: bytes | bytearray | memoryview) -> PlistObject:
    """Parse a byte span. Bytes are taken as UTF-8, without validation."""
    return parse_string(bytes(data).decode("utf-8", "surrogateescape"))


def parse_dynbuf(buf: DynBuf) -> PlistObject:
    """Parse the written bytes of ``buf``."""
    return parse_data(memoryview(buf.data)[:buf.length])


def parse_file(path: str | os.PathLike[str]) -> PlistObject:
    """Read and parse the file at ``path``."""
    try:
        with open(path, "rb") as fh:
            data = fh.read()
    except OSError as exc:
        logger.error("Failed to read %s: %s", path, exc)
        raise PlistIOError(f"cannot read {os.fspath(path)!r}: {exc}",
                           os.fspath(path)) from exc
    return parse_data(data)
