"""Exception hierarchy for stepplist."""

from __future__ import annotations


class PlistError(Exception):
    """Base class of every error raised by stepplist."""


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

class PlistParseError(PlistError):
    """Token out of place, or otherwise malformed document."""

    def __init__(self, message: str, line: int | None = None,
                 column: int | None = None) -> None:
        self.line = line
        self.column = column
        if line is not None:
            message = f"{line}:{column}: {message}"
        super().__init__(message)


class PlistLexError(PlistParseError):
    """Malformed token: unterminated string or comment, stray character."""


class DuplicateKeyError(PlistParseError):
    def __init__(self, key: str, line: int | None = None,
                 column: int | None = None) -> None:
        self.key = key
        super().__init__(f"duplicate dict key {key!r}", line, column)


class PlistIOError(PlistError, OSError):
    """Input could not be opened or read."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.path = path
        super().__init__(message)


class PlistAllocError(PlistError, MemoryError):
    """Ran out of memory while building objects."""


# ---------------------------------------------------------------------------
# Decoding / encoding
# ---------------------------------------------------------------------------

class PlistDecodeError(PlistError):
    """Base of decode failures. ``key`` names the descriptor entry, if known."""

    key: str | None = None


class DecodeTypeError(PlistDecodeError):
    """Object variant does not match the descriptor."""

    def __init__(self, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(f"expected {expected}, got {actual}")


class DecodeValueError(PlistDecodeError):
    """String does not parse for the target scalar type."""

    def __init__(self, message: str, text: str | None = None) -> None:
        self.text = text
        super().__init__(message)


class MissingRequiredError(PlistDecodeError):
    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"required key {key!r} not found")


class EnumError(PlistDecodeError):
    """Enum name (decode) or value (encode) not in the table."""


class CharBufTooSmallError(PlistDecodeError):
    def __init__(self, length: int, text: str) -> None:
        self.length = length
        self.text = text
        super().__init__(
            f"charbuf size {length} too small for {text!r} "
            f"({len(text.encode('utf-8', 'surrogateescape'))} + 1 bytes)")


class PlistEncodeError(PlistError):
    def __init__(self, message: str, key: str | None = None) -> None:
        self.key = key
        super().__init__(message)


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

class BufferFullError(PlistError):
    """Output buffer reached its maximum capacity."""
