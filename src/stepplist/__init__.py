"""stepplist: OpenStep-style text property lists with a typed record codec."""

from .decode import (
    BOOL_TABLE,
    decode_dict,
    decoded_destroy,
    encode_dict,
    enum_name_to_value,
    enum_value_to_name,
)
from .dynbuf import DynBuf
from .errors import (
    BufferFullError,
    CharBufTooSmallError,
    DecodeTypeError,
    DecodeValueError,
    DuplicateKeyError,
    EnumError,
    MissingRequiredError,
    PlistAllocError,
    PlistDecodeError,
    PlistEncodeError,
    PlistError,
    PlistIOError,
    PlistLexError,
    PlistParseError,
)
from .model import ObjectType, PlistArray, PlistDict, PlistObject, PlistString
from .parser import parse_data, parse_dynbuf, parse_file, parse_string
from .schema import (
    Descriptor,
    EnumDesc,
    FieldDesc,
    FieldType,
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
from .writer import dumps, object_write, object_write_indented

__version__ = "1.0.0"

__all__ = [
    "parse_string",
    "parse_data",
    "parse_dynbuf",
    "parse_file",
    "object_write",
    "object_write_indented",
    "dumps",
    "ObjectType",
    "PlistObject",
    "PlistString",
    "PlistDict",
    "PlistArray",
    "DynBuf",
    "Descriptor",
    "FieldDesc",
    "FieldType",
    "EnumDesc",
    "uint64_field",
    "int64_field",
    "double_field",
    "argb32_field",
    "bool_field",
    "enum_field",
    "string_field",
    "charbuf_field",
    "dict_field",
    "array_field",
    "custom_field",
    "decode_dict",
    "encode_dict",
    "decoded_destroy",
    "enum_name_to_value",
    "enum_value_to_name",
    "BOOL_TABLE",
    "PlistError",
    "PlistLexError",
    "PlistParseError",
    "DuplicateKeyError",
    "PlistIOError",
    "PlistAllocError",
    "PlistDecodeError",
    "DecodeTypeError",
    "DecodeValueError",
    "MissingRequiredError",
    "EnumError",
    "CharBufTooSmallError",
    "PlistEncodeError",
    "BufferFullError",
]
