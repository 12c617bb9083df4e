"""Descriptor-driven decoding of plist dicts into records, and back.

``decode_dict`` fills a record from a :class:`~stepplist.model.PlistDict`
following a :class:`~stepplist.schema.Descriptor`: all fields are first
set to their defaults, then every key found in the dict is decoded into
its field. ``encode_dict`` is the inverse. Scalar values travel as strings
in the plist; the per-type ``decode_*`` / ``encode_*`` functions define
their textual forms.
"""

from __future__ import annotations

import logging
import re
from typing import Any

from .errors import (
    CharBufTooSmallError,
    DecodeTypeError,
    DecodeValueError,
    EnumError,
    MissingRequiredError,
    PlistDecodeError,
    PlistEncodeError,
    PlistError,
)
from .model import PlistArray, PlistDict, PlistObject, PlistString
from .schema import Descriptor, EnumTable, FieldDesc, FieldType, enum_table

logger = logging.getLogger(__name__)


BOOL_TABLE: EnumTable = enum_table([
    ("True", 1),
    ("False", 0),
    ("Yes", 1),
    ("No", 0),
    ("Enabled", 1),
    ("Disabled", 0),
    ("On", 1),
    ("Off", 0),
])

UINT64_MAX = (1 << 64) - 1
INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1

_WS = r"[ \t\n\r\f\v]*"
_UINT_RE = re.compile(_WS + r"([0-9]+)" + _WS)
_INT_RE = re.compile(_WS + r"([+-]?[0-9]+)" + _WS)
_DOUBLE_RE = re.compile(
    _WS
    + r"([+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?"
    + r"|inf(?:inity)?|nan))"
    + _WS,
    re.IGNORECASE)
_ARGB32_RE = re.compile(r"argb32:([0-9a-fA-F]{8})")


# ---------------------------------------------------------------------------
# Enum tables
# ---------------------------------------------------------------------------

def enum_name_to_value(table: EnumTable, name: str | None) -> int:
    """Look up ``name`` in ``table``. Names are case-sensitive."""
    if name is not None:
        for entry in table:
            if entry.name == name:
                return entry.value
    raise EnumError(f"enum name {name!r} not in table")


def enum_value_to_name(table: EnumTable, value: int) -> str:
    """First name in ``table`` mapping to ``value``."""
    for entry in table:
        if entry.value == value:
            return entry.name
    raise EnumError(f"enum value {value!r} not in table")


# ---------------------------------------------------------------------------
# Per-type decoders
# ---------------------------------------------------------------------------

def _string_value(obj: PlistObject) -> str:
    string = obj.as_string()
    if string is None:
        raise DecodeTypeError("string", obj.type.name.lower())
    return string.value


def _match(regex: re.Pattern[str], text: str, what: str) -> str:
    m = regex.fullmatch(text)
    if m is None:
        logger.warning("Failed to decode %s from %r", what, text)
        raise DecodeValueError(f"not a valid {what}: {text!r}", text)
    return m.group(1)


def decode_uint64(obj: PlistObject) -> int:
    text = _string_value(obj)
    value = int(_match(_UINT_RE, text, "uint64"))
    if value > UINT64_MAX:
        logger.warning("Value %r out of range for uint64", text)
        raise DecodeValueError(f"uint64 out of range: {text!r}", text)
    return value


def decode_int64(obj: PlistObject) -> int:
    text = _string_value(obj)
    value = int(_match(_INT_RE, text, "int64"))
    if not INT64_MIN <= value <= INT64_MAX:
        logger.warning("Value %r out of range for int64", text)
        raise DecodeValueError(f"int64 out of range: {text!r}", text)
    return value


def decode_double(obj: PlistObject) -> float:
    text = _string_value(obj)
    return float(_match(_DOUBLE_RE, text, "double"))


def decode_argb32(obj: PlistObject) -> int:
    text = _string_value(obj)
    return int(_match(_ARGB32_RE, text, "argb32 color"), 16)


def decode_enum(obj: PlistObject, table: EnumTable) -> int:
    text = _string_value(obj)
    try:
        return enum_name_to_value(table, text)
    except EnumError:
        logger.warning("Failed to decode enum value %r", text)
        raise


def decode_bool(obj: PlistObject) -> bool:
    return bool(decode_enum(obj, BOOL_TABLE))


def decode_string(obj: PlistObject) -> str:
    return _string_value(obj)


def decode_charbuf(obj: PlistObject, length: int) -> str:
    """String that fits a buffer of ``length`` bytes, terminator included."""
    text = _string_value(obj)
    _check_charbuf(text, length)
    return text


def _check_charbuf(text: str, length: int) -> None:
    if length < len(text.encode("utf-8", "surrogateescape")) + 1:
        logger.warning("Charbuf size %d too small for %r", length, text)
        raise CharBufTooSmallError(length, text)


# ---------------------------------------------------------------------------
# Per-type encoders
# ---------------------------------------------------------------------------

def encode_uint64(value: int) -> PlistString:
    if not 0 <= value <= UINT64_MAX:
        raise PlistEncodeError(f"uint64 out of range: {value!r}")
    return PlistString(str(int(value)))


def encode_int64(value: int) -> PlistString:
    if not INT64_MIN <= value <= INT64_MAX:
        raise PlistEncodeError(f"int64 out of range: {value!r}")
    return PlistString(str(int(value)))


def encode_double(value: float) -> PlistString:
    return PlistString(repr(float(value)))


def encode_argb32(value: int) -> PlistString:
    if not 0 <= value <= 0xFFFFFFFF:
        raise PlistEncodeError(f"argb32 out of range: {value!r}")
    return PlistString(f"argb32:{value:08x}")


def encode_enum(value: int, table: EnumTable) -> PlistString:
    try:
        return PlistString(enum_value_to_name(table, value))
    except EnumError:
        logger.warning("Failed to encode enum value %r", value)
        raise


def encode_bool(value: Any) -> PlistString:
    return encode_enum(1 if value else 0, BOOL_TABLE)


def encode_string(value: str | None) -> PlistString:
    if value is None:
        raise PlistEncodeError("cannot encode a missing string")
    return PlistString(value)


# ---------------------------------------------------------------------------
# Defaults and cleanup
# ---------------------------------------------------------------------------

def init_defaults(desc: Descriptor, record: Any) -> None:
    """Set every field of ``record`` to its default, presence to False."""
    for fd in desc:
        if fd.tracks_presence:
            setattr(record, fd.presence, False)

        kind = fd.type
        if kind in (FieldType.UINT64, FieldType.INT64, FieldType.DOUBLE,
                    FieldType.ARGB32, FieldType.BOOL, FieldType.ENUM,
                    FieldType.STRING):
            setattr(record, fd.field, fd.default)
        elif kind is FieldType.CHARBUF:
            if fd.default is None:
                # no default: keep the record's own value, empty if unset
                if getattr(record, fd.field, None) is None:
                    setattr(record, fd.field, "")
                continue
            try:
                _check_charbuf(fd.default, fd.length)
            except CharBufTooSmallError as exc:
                exc.key = fd.key
                raise
            setattr(record, fd.field, fd.default)
        elif kind is FieldType.DICT:
            sub_record = fd.sub_desc.factory()
            setattr(record, fd.field, sub_record)
            init_defaults(fd.sub_desc, sub_record)
        elif fd.init is not None:
            setattr(record, fd.field, fd.init())


def decoded_destroy(desc: Descriptor, record: Any) -> None:
    """Release what decoding stored in ``record``. Safe to call twice."""
    for fd in desc:
        kind = fd.type
        if kind is FieldType.STRING:
            setattr(record, fd.field, None)
        elif kind is FieldType.DICT:
            sub_record = getattr(record, fd.field, None)
            if sub_record is not None:
                decoded_destroy(fd.sub_desc, sub_record)
        elif kind in (FieldType.CUSTOM, FieldType.ARRAY):
            if fd.fini is not None:
                value = getattr(record, fd.field, None)
                if value is not None:
                    fd.fini(value)
                setattr(record, fd.field, None)


# ---------------------------------------------------------------------------
# Dict decoding
# ---------------------------------------------------------------------------

def _decode_field(fd: FieldDesc, obj: PlistObject, record: Any) -> None:
    kind = fd.type
    if kind is FieldType.UINT64:
        value = decode_uint64(obj)
    elif kind is FieldType.INT64:
        value = decode_int64(obj)
    elif kind is FieldType.DOUBLE:
        value = decode_double(obj)
    elif kind is FieldType.ARGB32:
        value = decode_argb32(obj)
    elif kind is FieldType.BOOL:
        value = decode_bool(obj)
    elif kind is FieldType.ENUM:
        value = decode_enum(obj, fd.enum_table)
    elif kind is FieldType.STRING:
        value = decode_string(obj)
    elif kind is FieldType.CHARBUF:
        value = decode_charbuf(obj, fd.length)
    elif kind is FieldType.DICT:
        dict_obj = obj.as_dict()
        if dict_obj is None:
            raise DecodeTypeError("dict", obj.type.name.lower())
        _decode_fields(dict_obj, fd.sub_desc, getattr(record, fd.field))
        return
    elif kind is FieldType.CUSTOM:
        value = fd.decode(obj, getattr(record, fd.field, None))
    elif kind is FieldType.ARRAY:
        array = obj.as_array()
        if array is None:
            raise DecodeTypeError("array", obj.type.name.lower())
        value = getattr(record, fd.field, None)
        for i, item in enumerate(array):
            value = fd.decode(item, i, value)
    else:
        raise PlistDecodeError(f"unsupported field type {kind}")
    setattr(record, fd.field, value)


def _decode_fields(dict_obj: PlistDict, desc: Descriptor,
                   record: Any) -> None:
    for fd in desc:
        obj = dict_obj.get(fd.key)
        if obj is None:
            if fd.required:
                logger.error("Key %r not found in dict", fd.key)
                raise MissingRequiredError(fd.key)
            continue

        try:
            _decode_field(fd, obj, record)
        except PlistDecodeError as exc:
            if fd.tracks_presence:
                setattr(record, fd.presence, False)
            if exc.key is None:
                exc.key = fd.key
                logger.error("Failed to decode key %r: %s", fd.key, exc)
            raise
        if fd.tracks_presence:
            setattr(record, fd.presence, True)


def decode_dict(dict_obj: PlistObject, desc: Descriptor,
                record: Any = None) -> Any:
    """Decode ``dict_obj`` into ``record`` (a fresh one if not given).

    On failure everything already stored is released through
    :func:`decoded_destroy` before the error propagates. On success the
    caller owns the record and releases it with ``decoded_destroy``.
    """
    if dict_obj.as_dict() is None:
        logger.error("Cannot decode a %s as a record",
                     dict_obj.type.name.lower())
        raise DecodeTypeError("dict", dict_obj.type.name.lower())
    if record is None:
        record = desc.factory()
    try:
        init_defaults(desc, record)
        _decode_fields(dict_obj.as_dict(), desc, record)
    except BaseException:
        decoded_destroy(desc, record)
        raise
    return record


# ---------------------------------------------------------------------------
# Dict encoding
# ---------------------------------------------------------------------------

def _encode_field(fd: FieldDesc, value: Any) -> PlistObject:
    kind = fd.type
    if kind is FieldType.UINT64:
        return encode_uint64(value)
    if kind is FieldType.INT64:
        return encode_int64(value)
    if kind is FieldType.DOUBLE:
        return encode_double(value)
    if kind is FieldType.ARGB32:
        return encode_argb32(value)
    if kind is FieldType.BOOL:
        return encode_bool(value)
    if kind is FieldType.ENUM:
        return encode_enum(value, fd.enum_table)
    if kind is FieldType.STRING:
        return encode_string(value)
    if kind is FieldType.CHARBUF:
        return encode_string("" if value is None else value)
    if kind is FieldType.DICT:
        return encode_dict(fd.sub_desc, value)
    if fd.encode is None:
        raise PlistEncodeError(f"no encoder for field {fd.key!r}", fd.key)
    return fd.encode(value)


def encode_dict(desc: Descriptor, record: Any) -> PlistDict:
    """Build a dict from ``record``, skipping fields marked not present."""
    result = PlistDict()
    try:
        for fd in desc:
            if fd.tracks_presence and not getattr(record, fd.presence):
                continue
            obj = _encode_field(fd, getattr(record, fd.field))
            try:
                if not result.add(fd.key, obj):
                    logger.warning("Failed to add key %r to dict", fd.key)
                    raise PlistEncodeError(f"duplicate key {fd.key!r}",
                                           fd.key)
            finally:
                obj.unref()
    except PlistError as exc:
        result.unref()
        if getattr(exc, "key", None) is None:
            exc.key = fd.key
            logger.error("Failed to encode key %r: %s", fd.key, exc)
        raise
    except BaseException:
        result.unref()
        raise
    return result
