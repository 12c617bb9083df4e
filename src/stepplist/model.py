"""Object model: reference-counted String, Dict and Array values."""

from __future__ import annotations

import bisect
import logging
from enum import Enum, auto
from typing import Callable, Iterator

from .errors import PlistError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# ObjectType
# ---------------------------------------------------------------------------

class ObjectType(Enum):
    STRING = auto()
    DICT = auto()
    ARRAY = auto()


# ---------------------------------------------------------------------------
# PlistObject base
# ---------------------------------------------------------------------------

class PlistObject:
    """Base of the three variants. Starts with one reference.

    ``unref()`` on the last reference destroys the object and releases
    every child it holds.
    """

    __slots__ = ("_refs",)

    type: ObjectType
    _live = 0

    def __init__(self) -> None:
        self._refs = 1
        PlistObject._live += 1

    # -- Reference counting ---------------------------------------------

    def ref(self) -> PlistObject:
        if self._refs <= 0:
            raise PlistError(f"ref() on destroyed {self.type.name} object")
        self._refs += 1
        return self

    def unref(self) -> None:
        if self._refs <= 0:
            logger.error("Potential double unref of %s object",
                         self.type.name)
            raise PlistError(f"unref() on destroyed {self.type.name} object")
        self._refs -= 1
        if self._refs == 0:
            self._destroy()
            PlistObject._live -= 1

    @property
    def refcount(self) -> int:
        return self._refs

    @property
    def destroyed(self) -> bool:
        return self._refs <= 0

    def _destroy(self) -> None:
        """Release owned children. Called once, on the last unref()."""

    @staticmethod
    def live_count() -> int:
        """Number of objects constructed and not yet destroyed."""
        return PlistObject._live

    # -- Variant views --------------------------------------------------

    def as_string(self) -> PlistString | None:
        return None

    def as_dict(self) -> PlistDict | None:
        return None

    def as_array(self) -> PlistArray | None:
        return None

    __hash__ = None  # type: ignore[assignment]


# ---------------------------------------------------------------------------
# PlistString
# ---------------------------------------------------------------------------

class PlistString(PlistObject):
    __slots__ = ("_value",)

    type = ObjectType.STRING

    def __init__(self, value: str | bytes) -> None:
        if isinstance(value, (bytes, bytearray)):
            value = bytes(value).decode("utf-8", "surrogateescape")
        if not isinstance(value, str):
            raise TypeError(f"string value must be str or bytes, "
                            f"not {type(value).__name__}")
        super().__init__()
        self._value = value

    @property
    def value(self) -> str:
        return self._value

    def as_string(self) -> PlistString:
        return self

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PlistString):
            return NotImplemented
        return self._value == other._value

    def __repr__(self) -> str:
        return f"PlistString({self._value!r})"

    def __str__(self) -> str:
        return self._value


# ---------------------------------------------------------------------------
# PlistDict
# ---------------------------------------------------------------------------

def _key_bytes(key: str) -> bytes:
    return key.encode("utf-8", "surrogateescape")


class PlistDict(PlistObject):
    """String-keyed mapping, iterated in ascending byte order of the keys."""

    __slots__ = ("_items", "_keys")

    type = ObjectType.DICT

    def __init__(self) -> None:
        super().__init__()
        self._items: dict[str, PlistObject] = {}
        self._keys: list[str] = []

    def add(self, key: str, obj: PlistObject) -> bool:
        """Insert ``obj`` under ``key``, taking a reference on it.

        Returns False, and takes no reference, if ``key`` already exists.
        """
        if key in self._items:
            return False
        self._items[key] = obj.ref()
        bisect.insort(self._keys, key, key=_key_bytes)
        return True

    def get(self, key: str) -> PlistObject | None:
        """Borrowed reference to the value under ``key``, or None."""
        return self._items.get(key)

    def foreach(self, fn: Callable[[str, PlistObject], bool]) -> bool:
        """Call ``fn(key, obj)`` in key order; stop at the first False."""
        for key in self._keys:
            if not fn(key, self._items[key]):
                return False
        return True

    def keys(self) -> list[str]:
        return list(self._keys)

    def items(self) -> Iterator[tuple[str, PlistObject]]:
        for key in self._keys:
            yield key, self._items[key]

    # -- Typed lookups --------------------------------------------------

    def get_dict(self, key: str) -> PlistDict | None:
        obj = self.get(key)
        return obj.as_dict() if obj is not None else None

    def get_array(self, key: str) -> PlistArray | None:
        obj = self.get(key)
        return obj.as_array() if obj is not None else None

    def get_string_value(self, key: str) -> str | None:
        obj = self.get(key)
        if obj is None or obj.as_string() is None:
            return None
        return obj.as_string().value

    # -- Protocols ------------------------------------------------------

    def as_dict(self) -> PlistDict:
        return self

    def __len__(self) -> int:
        return len(self._keys)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._keys))

    def __contains__(self, key: object) -> bool:
        return key in self._items

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PlistDict):
            return NotImplemented
        return self._items == other._items

    def __repr__(self) -> str:
        inner = ", ".join(f"{k!r}: {v!r}" for k, v in self.items())
        return f"PlistDict({{{inner}}})"

    def _destroy(self) -> None:
        items, self._items, self._keys = self._items, {}, []
        for obj in items.values():
            obj.unref()


# ---------------------------------------------------------------------------
# PlistArray
# ---------------------------------------------------------------------------

class PlistArray(PlistObject):
    __slots__ = ("_objects",)

    type = ObjectType.ARRAY

    def __init__(self) -> None:
        super().__init__()
        self._objects: list[PlistObject] = []

    def push_back(self, obj: PlistObject) -> bool:
        """Append ``obj``, taking a reference on it."""
        self._objects.append(obj.ref())
        return True

    def at(self, index: int) -> PlistObject | None:
        """Borrowed reference to the object at ``index``, or None."""
        if 0 <= index < len(self._objects):
            return self._objects[index]
        return None

    def size(self) -> int:
        return len(self._objects)

    def string_value_at(self, index: int) -> str | None:
        obj = self.at(index)
        if obj is None or obj.as_string() is None:
            return None
        return obj.as_string().value

    # -- Protocols ------------------------------------------------------

    def as_array(self) -> PlistArray:
        return self

    def __len__(self) -> int:
        return len(self._objects)

    def __iter__(self) -> Iterator[PlistObject]:
        return iter(list(self._objects))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PlistArray):
            return NotImplemented
        return self._objects == other._objects

    def __repr__(self) -> str:
        return f"PlistArray({self._objects!r})"

    def _destroy(self) -> None:
        while self._objects:
            self._objects.pop().unref()


# ---------------------------------------------------------------------------
# Functional interface
# ---------------------------------------------------------------------------

def string_create(value: str | bytes) -> PlistString:
    return PlistString(value)


def dict_create() -> PlistDict:
    return PlistDict()


def dict_add(dict_obj: PlistDict, key: str, obj: PlistObject) -> bool:
    return dict_obj.add(key, obj)


def dict_get(dict_obj: PlistDict, key: str) -> PlistObject | None:
    return dict_obj.get(key)


def dict_foreach(dict_obj: PlistDict,
                 fn: Callable[[str, PlistObject], bool]) -> bool:
    return dict_obj.foreach(fn)


def array_create() -> PlistArray:
    return PlistArray()


def array_push_back(array: PlistArray, obj: PlistObject) -> bool:
    return array.push_back(obj)


def array_at(array: PlistArray, index: int) -> PlistObject | None:
    return array.at(index)


def array_size(array: PlistArray) -> int:
    return array.size()


def object_type(obj: PlistObject) -> ObjectType:
    return obj.type


def object_ref(obj: PlistObject) -> PlistObject:
    return obj.ref()


def object_unref(obj: PlistObject | None) -> None:
    if obj is not None:
        obj.unref()
