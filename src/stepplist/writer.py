"""Writer: serialises the object model to plist text.

Output goes into a :class:`~stepplist.dynbuf.DynBuf`. When the buffer runs
out of space the write functions return ``False`` with the buffer length
rolled back to where it was before the call, so the caller can ``grow()``
the buffer and simply call again.
"""

from __future__ import annotations

import logging
import sys

from .dynbuf import DynBuf
from .errors import BufferFullError
from .lexer import IDENTIFIER_RE
from .model import PlistArray, PlistDict, PlistObject, PlistString

logger = logging.getLogger(__name__)


def _encode(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def quote_string(value: str) -> str:
    """Bareword if ``value`` is an identifier, else a quoted string."""
    if IDENTIFIER_RE.fullmatch(value):
        return value
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


# ---------------------------------------------------------------------------
# Per-variant emission
# ---------------------------------------------------------------------------

def _write_string(string: PlistString, buf: DynBuf) -> bool:
    return buf.append(_encode(quote_string(string.value)))


def _write_newline_indent(buf: DynBuf, indent: int, level: int) -> bool:
    return buf.append(b"\n" + b" " * (indent * level))


def _write_dict(dict_obj: PlistDict, buf: DynBuf,
                indent: int, level: int) -> bool:
    if not buf.append_char("{"):
        return False
    if len(dict_obj) == 0:
        return buf.append_char("}")

    for key, value in dict_obj.items():
        if indent and not _write_newline_indent(buf, indent, level + 1):
            return False
        if not (buf.append(_encode(quote_string(key) + " = "))
                and _write_object(value, buf, indent, level + 1)
                and buf.append_char(";")):
            return False

    if indent and not _write_newline_indent(buf, indent, level):
        return False
    return buf.append_char("}")


def _write_array(array: PlistArray, buf: DynBuf,
                 indent: int, level: int) -> bool:
    if not buf.append_char("("):
        return False
    if len(array) == 0:
        return buf.append_char(")")

    for i, value in enumerate(array):
        if i > 0 and not buf.append_char(","):
            return False
        if indent and not _write_newline_indent(buf, indent, level + 1):
            return False
        if not _write_object(value, buf, indent, level + 1):
            return False

    if indent and not _write_newline_indent(buf, indent, level):
        return False
    return buf.append_char(")")


def _write_object(obj: PlistObject, buf: DynBuf,
                  indent: int, level: int) -> bool:
    if isinstance(obj, PlistString):
        return _write_string(obj, buf)
    if isinstance(obj, PlistDict):
        return _write_dict(obj, buf, indent, level)
    if isinstance(obj, PlistArray):
        return _write_array(obj, buf, indent, level)
    raise TypeError(f"not a plist object: {type(obj).__name__}")


# ---------------------------------------------------------------------------
# Public interface
# ---------------------------------------------------------------------------

def object_write_indented(obj: PlistObject, buf: DynBuf,
                          indent: int, level: int) -> bool:
    """Append ``obj`` to ``buf``; ``indent`` spaces per nesting level.

    ``indent == 0`` gives flat output. ``level`` is the nesting level the
    object starts at, which only shifts the indentation of its contents.
    Returns False if ``buf`` is full; ``buf.length`` is then unchanged.
    """
    saved_length = buf.length
    if _write_object(obj, buf, indent, level):
        return True
    buf.length = saved_length
    return False


def object_write(obj: PlistObject, buf: DynBuf) -> bool:
    """Append the flat rendition of ``obj`` to ``buf``."""
    return object_write_indented(obj, buf, 0, 0)


def dumps(obj: PlistObject, indent: int = 0, level: int = 0,
          initial_capacity: int = 1024,
          max_capacity: int = sys.maxsize) -> bytes:
    """Serialise ``obj``, growing the buffer until it fits."""
    buf = DynBuf(initial_capacity, max_capacity)
    try:
        while not object_write_indented(obj, buf, indent, level):
            if not buf.grow():
                logger.error("Output exceeds buffer limit of %d bytes",
                             max_capacity)
                raise BufferFullError(
                    f"output exceeds buffer limit of {max_capacity} bytes")
        return buf.value()
    finally:
        buf.fini()
