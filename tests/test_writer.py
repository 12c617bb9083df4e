"""Tests for the writer."""

import pytest

from stepplist import (
    BufferFullError,
    DynBuf,
    PlistArray,
    PlistDict,
    PlistString,
    dumps,
    object_write,
    object_write_indented,
    parse_string,
)
from stepplist.writer import quote_string


def write_flat(text):
    obj = parse_string(text)
    try:
        return dumps(obj).decode("utf-8")
    finally:
        obj.unref()


def write_indented(text, indent=4, level=0):
    obj = parse_string(text)
    try:
        return dumps(obj, indent, level).decode("utf-8")
    finally:
        obj.unref()


# ---------------------------------------------------------------------------
# Strings
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("value, expected", [
    ("value", "value"),
    ("a.B_9$x", "a.B_9$x"),
    ("42", "42"),
    ("a b", '"a b"'),
    ("", '""'),
    ('x\\y"z', '"x\\\\y\\"z"'),
    ("-1", '"-1"'),
    ("a/b", '"a/b"'),
])
def test_quote_string(value, expected):
    assert quote_string(value) == expected

def test_bareword_round_trip():
    assert write_flat("value") == "value"

def test_quoted_round_trip():
    assert write_flat('"a b"') == '"a b"'

def test_escape_round_trip():
    assert write_flat('"x\\\\y\\"z"') == '"x\\\\y\\"z"'


# ---------------------------------------------------------------------------
# Flat containers
# ---------------------------------------------------------------------------

def test_flat_dict():
    assert (write_flat("{ key1 = dict_value1; key2 = dict_value2 }")
            == "{key1 = dict_value1;key2 = dict_value2;}")

def test_flat_dict_sorted():
    assert write_flat("{b = 2; a = 1}") == "{a = 1;b = 2;}"

def test_flat_array():
    assert write_flat("(elem0, elem1)") == "(elem0,elem1)"

def test_flat_nested():
    assert (write_flat('{list = (a, "b c"); sub = {}; empty = ()}')
            == '{empty = ();list = (a,"b c");sub = {};}')


# ---------------------------------------------------------------------------
# Indented containers
# ---------------------------------------------------------------------------

def test_indented_dict():
    assert write_indented("{key1 = v1; key2 = v2}", 2) == (
        "{\n"
        "  key1 = v1;\n"
        "  key2 = v2;\n"
        "}"
    )

def test_indented_array():
    assert write_indented("(a, b)", 4) == (
        "(\n"
        "    a,\n"
        "    b\n"
        ")"
    )

def test_indented_nested():
    assert write_indented("{a = (x, {k = v}); b = c}", 2) == (
        "{\n"
        "  a = (\n"
        "    x,\n"
        "    {\n"
        "      k = v;\n"
        "    }\n"
        "  );\n"
        "  b = c;\n"
        "}"
    )

def test_indented_start_level():
    assert write_indented("{a = b}", 2, 1) == (
        "{\n"
        "    a = b;\n"
        "  }"
    )

def test_indented_empty_containers():
    assert write_indented("{d = {}; a = ()}", 2) == (
        "{\n"
        "  a = ();\n"
        "  d = {};\n"
        "}"
    )

def test_indent_zero_is_flat():
    assert write_indented("{a = (b, c)}", 0) == "{a = (b,c);}"


# ---------------------------------------------------------------------------
# Retry on overflow
# ---------------------------------------------------------------------------

def test_write_into_buffer():
    obj = parse_string("{a = b}")
    buf = DynBuf(64)
    assert object_write(obj, buf)
    assert buf.value() == b"{a = b;}"
    obj.unref()

def test_overflow_restores_length():
    obj = parse_string("{key = (one, two, three)}")
    buf = DynBuf(16, 16)
    buf.append(b"prefix")
    assert object_write(obj, buf) is False
    assert buf.length == 6
    assert buf.value() == b"prefix"
    obj.unref()

def test_retry_after_grow():
    obj = parse_string("{key = (one, two, three); other = value}")
    expected = dumps(obj, 2)
    buf = DynBuf(1, 4096)
    buf.append(b">")
    attempts = 0
    while not object_write_indented(obj, buf, 2, 0):
        assert buf.length == 1
        assert buf.grow()
        attempts += 1
    assert attempts > 0
    assert buf.value() == b">" + expected
    obj.unref()

def test_dumps_buffer_limit():
    obj = parse_string("(" + ",".join(["item"] * 50) + ")")
    with pytest.raises(BufferFullError):
        dumps(obj, initial_capacity=8, max_capacity=64)
    obj.unref()

def test_dumps_grows_from_small_buffer():
    obj = parse_string("(" + ",".join(["item"] * 50) + ")")
    assert len(dumps(obj, initial_capacity=1)) == 50 * 5 + 1
    obj.unref()


# ---------------------------------------------------------------------------
# Built objects
# ---------------------------------------------------------------------------

def test_write_built_tree():
    d = PlistDict()
    a = PlistArray()
    for v in ("x", "needs quoting"):
        s = PlistString(v)
        a.push_back(s)
        s.unref()
    d.add("my key", a)
    a.unref()
    assert dumps(d) == b'{"my key" = (x,"needs quoting");}'
    d.unref()

def test_write_non_ascii():
    s = PlistString("café")
    assert dumps(s) == '"café"'.encode("utf-8")
    s.unref()

def test_write_rejects_foreign_objects():
    with pytest.raises(TypeError):
        object_write("plain str", DynBuf(16))
