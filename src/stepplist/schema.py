"""Descriptors: static description of how a record maps to a plist dict.

A :class:`Descriptor` lists one :class:`FieldDesc` per dict key. Each entry
names the record attribute that receives the value, optionally a second
boolean attribute recording whether the key was present, and the
type-specific payload (default, enum table, buffer length, nested
descriptor or callbacks). The same descriptor drives decoding, encoding,
default initialisation and cleanup; see :mod:`stepplist.decode`.

Callback conventions for ``ARRAY`` and ``CUSTOM`` entries:

- ``init() -> value``: initial attribute value, used when the key is absent.
- ``fini(value)``: release ``value``; the attribute is then set to ``None``.
- ``decode(obj, current) -> value`` (CUSTOM) and
  ``decode(obj, index, current) -> value`` (ARRAY, once per item):
  return the new attribute value, raise a ``PlistDecodeError`` to fail.
- ``encode(value) -> PlistObject``: a new object, owned by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Callable, Iterable, Iterator


# ---------------------------------------------------------------------------
# FieldType / EnumDesc
# ---------------------------------------------------------------------------

class FieldType(Enum):
    UINT64 = auto()
    INT64 = auto()
    DOUBLE = auto()
    ARGB32 = auto()
    BOOL = auto()
    ENUM = auto()
    STRING = auto()
    CHARBUF = auto()
    DICT = auto()
    ARRAY = auto()
    CUSTOM = auto()


@dataclass(frozen=True, slots=True)
class EnumDesc:
    """One (name, value) pair of an enum table."""
    name: str
    value: int


EnumTable = tuple[EnumDesc, ...]


def enum_table(entries: Iterable[EnumDesc | tuple[str, int]]) -> EnumTable:
    """Build an enum table from ``EnumDesc`` or ``(name, value)`` pairs."""
    return tuple(e if isinstance(e, EnumDesc) else EnumDesc(*e)
                 for e in entries)


# ---------------------------------------------------------------------------
# FieldDesc / Descriptor
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FieldDesc:
    type: FieldType
    key: str
    field: str
    presence: str | None = None
    required: bool = False
    default: Any = None
    enum_table: EnumTable = ()
    length: int = 0
    sub_desc: Descriptor | None = None
    decode: Callable[..., Any] | None = None
    encode: Callable[[Any], Any] | None = None
    init: Callable[[], Any] | None = None
    fini: Callable[[Any], None] | None = None

    def __post_init__(self) -> None:
        if not self.key:
            raise ValueError("descriptor key must not be empty")
        if self.type is FieldType.ENUM and not self.enum_table:
            raise ValueError(f"enum field {self.key!r} needs an enum table")
        if self.type is FieldType.CHARBUF and self.length <= 0:
            raise ValueError(f"charbuf field {self.key!r} needs a length")
        if self.type is FieldType.DICT and self.sub_desc is None:
            raise ValueError(f"dict field {self.key!r} needs a descriptor")
        if (self.type in (FieldType.ARRAY, FieldType.CUSTOM)
                and self.decode is None):
            raise ValueError(f"field {self.key!r} needs a decode callback")

    @property
    def tracks_presence(self) -> bool:
        return self.presence is not None and self.presence != self.field


@dataclass(frozen=True)
class Descriptor:
    """Ordered field descriptors plus a factory for fresh records."""

    factory: Callable[[], Any]
    fields: tuple[FieldDesc, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", tuple(self.fields))
        keys = [f.key for f in self.fields]
        if len(set(keys)) != len(keys):
            raise ValueError(f"duplicate keys in descriptor: {keys}")

    def __iter__(self) -> Iterator[FieldDesc]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def keys(self) -> list[str]:
        return [f.key for f in self.fields]


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def uint64_field(key: str, field: str, default: int = 0, *,
                 required: bool = False,
                 presence: str | None = None) -> FieldDesc:
    return FieldDesc(FieldType.UINT64, key, field, presence, required,
                     default)


def int64_field(key: str, field: str, default: int = 0, *,
                required: bool = False,
                presence: str | None = None) -> FieldDesc:
    return FieldDesc(FieldType.INT64, key, field, presence, required,
                     default)


def double_field(key: str, field: str, default: float = 0.0, *,
                 required: bool = False,
                 presence: str | None = None) -> FieldDesc:
    return FieldDesc(FieldType.DOUBLE, key, field, presence, required,
                     default)


def argb32_field(key: str, field: str, default: int = 0, *,
                 required: bool = False,
                 presence: str | None = None) -> FieldDesc:
    return FieldDesc(FieldType.ARGB32, key, field, presence, required,
                     default)


def bool_field(key: str, field: str, default: bool = False, *,
               required: bool = False,
               presence: str | None = None) -> FieldDesc:
    return FieldDesc(FieldType.BOOL, key, field, presence, required,
                     default)


def enum_field(key: str, field: str,
               table: Iterable[EnumDesc | tuple[str, int]],
               default: int = 0, *,
               required: bool = False,
               presence: str | None = None) -> FieldDesc:
    return FieldDesc(FieldType.ENUM, key, field, presence, required,
                     default, enum_table=enum_table(table))


def string_field(key: str, field: str, default: str | None = None, *,
                 required: bool = False,
                 presence: str | None = None) -> FieldDesc:
    return FieldDesc(FieldType.STRING, key, field, presence, required,
                     default)


def charbuf_field(key: str, field: str, length: int,
                  default: str | None = None, *,
                  required: bool = False,
                  presence: str | None = None) -> FieldDesc:
    """``length`` counts bytes including the terminator, as a C buffer."""
    return FieldDesc(FieldType.CHARBUF, key, field, presence, required,
                     default, length=length)


def dict_field(key: str, field: str, descriptor: Descriptor, *,
               required: bool = False,
               presence: str | None = None) -> FieldDesc:
    return FieldDesc(FieldType.DICT, key, field, presence, required,
                     sub_desc=descriptor)


def array_field(key: str, field: str,
                decode: Callable[[Any, int, Any], Any],
                encode: Callable[[Any], Any] | None = None,
                init: Callable[[], Any] | None = None,
                fini: Callable[[Any], None] | None = None, *,
                required: bool = False,
                presence: str | None = None) -> FieldDesc:
    return FieldDesc(FieldType.ARRAY, key, field, presence, required,
                     decode=decode, encode=encode, init=init, fini=fini)


def custom_field(key: str, field: str,
                 decode: Callable[[Any, Any], Any],
                 encode: Callable[[Any], Any] | None = None,
                 init: Callable[[], Any] | None = None,
                 fini: Callable[[Any], None] | None = None, *,
                 required: bool = False,
                 presence: str | None = None) -> FieldDesc:
    return FieldDesc(FieldType.CUSTOM, key, field, presence, required,
                     decode=decode, encode=encode, init=init, fini=fini)
