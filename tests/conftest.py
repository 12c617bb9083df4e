"""Shared fixtures: a record type exercising every descriptor field type."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from stepplist import (
    Descriptor,
    PlistArray,
    PlistObject,
    PlistString,
    argb32_field,
    array_field,
    bool_field,
    charbuf_field,
    custom_field,
    dict_field,
    double_field,
    enum_field,
    int64_field,
    string_field,
    uint64_field,
)
from stepplist.decode import decode_string

TEST_ENUM = [("enum1", 1), ("enum2", 2)]

ALL_TYPES_TEXT = (
    '{u64="100"; i64="-101"; d="-1.414"; argb32="argb32:0204080c"; '
    "bool=Disabled; enum=enum1; string=TestString; charbuf=TestBuf; "
    "subdict={string=OtherTestString}; array=(a,b); custom=CustomThing}"
)


@dataclass
class SubRecord:
    string: str | None = None
    string_set: bool = False


@dataclass
class Record:
    u64: int = 0
    u64_set: bool = False
    i64: int = 0
    i64_set: bool = False
    d: float = 0.0
    d_set: bool = False
    argb32: int = 0
    argb32_set: bool = False
    flag: bool = False
    flag_set: bool = False
    enum: int = 0
    enum_set: bool = False
    string: str | None = None
    string_set: bool = False
    charbuf: str | None = None
    charbuf_set: bool = False
    subdict: SubRecord | None = None
    subdict_set: bool = False
    array: list | None = None
    array_set: bool = False
    custom: str | None = None
    custom_set: bool = False


def build_descriptor(released: list) -> Descriptor:
    """Descriptor over :class:`Record`; ``fini`` calls land in ``released``."""

    def decode_item(obj, index, current):
        current.append(decode_string(obj))
        return current

    def encode_items(items):
        array = PlistArray()
        for item in items:
            s = PlistString(item)
            array.push_back(s)
            s.unref()
        return array

    def decode_custom(obj, current):
        return decode_string(obj)

    sub = Descriptor(SubRecord, [
        string_field("string", "string", "Other String",
                     presence="string_set"),
    ])
    return Descriptor(Record, [
        uint64_field("u64", "u64", 1234, presence="u64_set"),
        int64_field("i64", "i64", -1234, presence="i64_set"),
        double_field("d", "d", 3.14, presence="d_set"),
        argb32_field("argb32", "argb32", 0x01020304, presence="argb32_set"),
        bool_field("bool", "flag", True, presence="flag_set"),
        enum_field("enum", "enum", TEST_ENUM, 3, presence="enum_set"),
        string_field("string", "string", "The String",
                     presence="string_set"),
        charbuf_field("charbuf", "charbuf", 10, "CharBuf",
                      presence="charbuf_set"),
        dict_field("subdict", "subdict", sub, presence="subdict_set"),
        array_field("array", "array", decode_item, encode_items,
                    init=list,
                    fini=lambda v: released.append(("array", list(v))),
                    presence="array_set"),
        custom_field("custom", "custom", decode_custom, PlistString,
                     init=lambda: "Custom Init",
                     fini=lambda v: released.append(("custom", v)),
                     presence="custom_set"),
    ])


@pytest.fixture
def all_types_text():
    return ALL_TYPES_TEXT


@pytest.fixture
def released():
    return []


@pytest.fixture
def descriptor(released):
    return build_descriptor(released)


@pytest.fixture
def no_leaks():
    before = PlistObject.live_count()
    yield
    assert PlistObject.live_count() == before
