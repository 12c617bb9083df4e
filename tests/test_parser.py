"""Tests for the parser."""

import pytest

import stepplist.parser as parser_module
from stepplist import (
    DuplicateKeyError,
    DynBuf,
    ObjectType,
    PlistArray,
    PlistIOError,
    PlistLexError,
    PlistObject,
    PlistParseError,
    PlistString,
    parse_data,
    parse_dynbuf,
    parse_file,
    parse_string,
)


# ---------------------------------------------------------------------------
# Strings
# ---------------------------------------------------------------------------

def test_bareword():
    obj = parse_string("value")
    assert obj.type is ObjectType.STRING
    assert obj.as_string().value == "value"
    obj.unref()

def test_quoted():
    obj = parse_string('"a b"')
    assert obj == PlistString("a b")
    obj.unref()

def test_escaped_string():
    obj = parse_string('"backslash\\\\dquote\\"end"')
    assert obj.as_string().value == 'backslash\\dquote"end'
    obj.unref()

def test_string_needing_quotes_fails():
    with pytest.raises(PlistLexError):
        parse_string("va:lue")

def test_document_trailing_semicolon():
    obj = parse_string("value;")
    assert obj == PlistString("value")
    obj.unref()


# ---------------------------------------------------------------------------
# Dicts
# ---------------------------------------------------------------------------

def test_dict():
    obj = parse_string("{key1=dict_value1;key2=dict_value2}")
    d = obj.as_dict()
    assert d is not None
    assert d.get_string_value("key1") == "dict_value1"
    assert d.get_string_value("key2") == "dict_value2"
    obj.unref()

def test_dict_trailing_semicolon():
    obj = parse_string("{key1=dict_value1;key2=dict_value2;}")
    assert len(obj.as_dict()) == 2
    obj.unref()

def test_empty_dict():
    obj = parse_string("{}")
    assert obj.type is ObjectType.DICT
    assert len(obj) == 0
    obj.unref()

def test_quoted_keys():
    obj = parse_string('{"quoted+key" = value}')
    assert obj.as_dict().get_string_value("quoted+key") == "value"
    obj.unref()

def test_nested():
    obj = parse_string("{a = {b = (c, {d = e})}}")
    inner = obj.as_dict().get_dict("a").get_array("b")
    assert inner.string_value_at(0) == "c"
    assert inner.at(1).as_dict().get_string_value("d") == "e"
    obj.unref()

def test_duplicate_key(no_leaks):
    with pytest.raises(DuplicateKeyError) as info:
        parse_string("{key1=dict_value1;key1=dict_value2}")
    assert info.value.key == "key1"

def test_duplicate_key_is_parse_error():
    with pytest.raises(PlistParseError):
        parse_string("{k = a; k = b}")

def test_duplicate_keys_in_different_dicts_are_fine():
    obj = parse_string("{a = {k = 1}; b = {k = 2}}")
    assert obj.as_dict().get_dict("b").get_string_value("k") == "2"
    obj.unref()

@pytest.mark.parametrize("text", [
    "{a}",
    "{a = }",
    "{a = b c = d}",
    "{;}",
    "{a = b;;}",
    "{a = b",
    "{(a) = b}",
    "{a b}",
])
def test_dict_syntax_errors(text, no_leaks):
    with pytest.raises(PlistParseError):
        parse_string(text)


# ---------------------------------------------------------------------------
# Arrays
# ---------------------------------------------------------------------------

def test_array():
    obj = parse_string("(elem0,elem1)")
    array = obj.as_array()
    assert array.string_value_at(0) == "elem0"
    assert array.string_value_at(1) == "elem1"
    obj.unref()

def test_array_trailing_comma():
    obj = parse_string("(elem0,elem1,)")
    assert obj.as_array().size() == 2
    obj.unref()

def test_empty_array():
    obj = parse_string("()")
    assert isinstance(obj, PlistArray)
    assert obj.size() == 0
    obj.unref()

@pytest.mark.parametrize("text", [
    "(,)",
    "(a,,b)",
    "(a b)",
    "(a",
    "(a;b)",
    ")",
])
def test_array_syntax_errors(text, no_leaks):
    with pytest.raises(PlistParseError):
        parse_string(text)


# ---------------------------------------------------------------------------
# Document level
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("text", [
    "",
    "   ",
    "a b",
    "a;;",
    "a; b",
    "{} {}",
    "=",
])
def test_document_errors(text, no_leaks):
    with pytest.raises(PlistParseError):
        parse_string(text)

def test_error_position():
    with pytest.raises(PlistParseError) as info:
        parse_string("{\n  a = b\n  c = d\n}")
    assert (info.value.line, info.value.column) == (3, 3)

def test_lex_error_mid_document_releases_objects(no_leaks):
    with pytest.raises(PlistLexError):
        parse_string("{a = (b, c, {d = e}); f = \"unterminated}")

def test_comments_in_document():
    obj = parse_string("""
        // leading comment
        {
            a = b; /* inline */
            c = (d, e); // trailing
        }
    """)
    assert obj.as_dict().keys() == ["a", "c"]
    obj.unref()

def test_successful_parse_keeps_only_the_tree(no_leaks):
    before = PlistObject.live_count()
    obj = parse_string("{a = (b, c); d = {e = f}}")
    # root, (b, c), b, c, {e = f}, f; keys are not objects once stored
    assert PlistObject.live_count() - before == 6
    assert obj.refcount == 1
    obj.unref()

def test_keys_in_byte_order_for_raw_bytes():
    obj = parse_data(b'{"\xff" = a; "\xee\x80\x80" = b; "\xc3\xa9" = c}')
    keys = [k.encode("utf-8", "surrogateescape") for k in obj.as_dict()]
    assert keys == [b"\xc3\xa9", b"\xee\x80\x80", b"\xff"]
    obj.unref()

def test_unbalanced_stack_is_parse_error(monkeypatch, no_leaks):
    def finish_early(self, token):
        self.object_stack.append(PlistString("stray"))
        self.shift_value(token)
        self.state = parser_module._State.DONE

    monkeypatch.setattr(parser_module._ParserContext, "step", finish_early)
    with pytest.raises(PlistParseError):
        parse_string("value")

def test_deep_nesting():
    depth = 200
    obj = parse_string("(" * depth + ")" * depth)
    assert obj.size() == 1
    obj.unref()


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------

def test_from_data():
    obj = parse_data(b"value")
    assert obj == PlistString("value")
    obj.unref()

def test_from_data_non_utf8():
    obj = parse_data(b'"\xff\xfe"')
    assert obj.as_string().value.encode("utf-8", "surrogateescape") == b"\xff\xfe"
    obj.unref()

def test_from_dynbuf():
    buf = DynBuf(16, 16)
    assert buf.append(b"value trailing-ignored") is False
    assert buf.append(b"value")
    obj = parse_dynbuf(buf)
    assert obj == PlistString("value")
    obj.unref()

def test_from_file(tmp_path):
    path = tmp_path / "dict.plist"
    path.write_text('{\n  key0 = value0;\n  "quoted+key" = value;\n}\n')
    obj = parse_file(path)
    d = obj.as_dict()
    assert d.get_string_value("key0") == "value0"
    assert d.get_string_value("quoted+key") == "value"
    obj.unref()

def test_from_file_string(tmp_path):
    path = tmp_path / "string.plist"
    path.write_text("file_value\n")
    obj = parse_file(str(path))
    assert obj == PlistString("file_value")
    obj.unref()

def test_from_missing_file(tmp_path):
    with pytest.raises(PlistIOError) as info:
        parse_file(tmp_path / "missing.plist")
    assert isinstance(info.value, OSError)
    assert info.value.path.endswith("missing.plist")
