"""Extraction and interpretation of packed_struct / packed_field annotations.

Annotations arrive already tokenized: each one carries a list of named
arguments whose values are literals (str, int, bytes or lists of those).
Attributes are kept as an ordered list of (key, value) pairs. Keys may repeat
and lookups always return the first entry in declaration order.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from .errors import ConfigError
from .model import BitNumbering, FixedBytes, IntegerEndianness, Region, ReservedLength
from .positions import BitsPosition, Range, Start
from .types import Annotation

logger = logging.getLogger(__name__)

STRUCT_TAG = "packed_struct"
FIELD_TAG = "packed_field"

Attributes = list[tuple[str, Any]]

STRUCT_KEYS = frozenset(["bit_numbering", "default_int_endian", "size_bytes", "header", "footer"])
FIELD_KEYS = frozenset(
    [
        "bit_position",
        "bits",
        "byte_position",
        "bytes",
        "size_bits",
        "size_bytes",
        "element_size_bits",
        "element_size_bytes",
        "endian",
        "ty",
    ]
)

_BIT_POSITION_KEYS = ("bit_position", "bits")
_BYTE_POSITION_KEYS = ("byte_position", "bytes")
_RANGE_SEPARATORS = ("..=", "..", ":")


def extract_attributes(
    annotations: Iterable[Annotation],
    tag: str,
    wrong_tag: str,
    location: str | None = None,
) -> Attributes:
    """Collect the (key, value) pairs of every annotation named tag.

    Raises ConfigError if an annotation meant for the other scope is found.
    """
    attrs: Attributes = []

    for annotation in annotations:
        if annotation.name == wrong_tag:
            raise ConfigError(
                f"This attribute is not supported here, did you mean {tag!r}?", location
            )
        if annotation.name != tag:
            continue
        for arg in annotation.arguments:
            # Positional arguments carry no key
            if arg.name is None:
                continue
            attrs.append((arg.name, arg.value))

    return attrs


def extract_attributes_as_string(
    annotations: Iterable[Annotation],
    tag: str,
    wrong_tag: str,
    location: str | None = None,
) -> list[tuple[str, str]]:
    """Like extract_attributes, but non-string values degrade to ""."""
    return [
        (key, value if isinstance(value, str) else "")
        for key, value in extract_attributes(annotations, tag, wrong_tag, location)
    ]


def lookup(attrs: Attributes, *keys: str) -> tuple[str, Any] | None:
    """Return the first (key, value) pair whose key is one of keys."""
    for key, value in attrs:
        if key in keys:
            return key, value
    return None


def parse_num(s: str) -> int:
    """Parse a decimal or 0x-prefixed hexadecimal number."""
    s = s.strip()

    if s.startswith(("0x", "0X")):
        try:
            return int(s[2:], 16)
        except ValueError:
            raise ValueError(f"Invalid hex number: {s!r}") from None

    if not s.isdigit():
        raise ValueError(f"Invalid decimal number: {s!r}")
    return int(s)


def _num_value(key: str, value: Any, location: str | None) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        if value < 0:
            raise ConfigError(f"{key} must not be negative", location)
        return value
    if not isinstance(value, str) or value == "":
        raise ConfigError(f'{key} expects a string literal, e.g. {key}="8"', location)
    try:
        return parse_num(value)
    except ValueError as e:
        raise ConfigError(f"{key}: {e}", location) from e


def parse_position(s: str, in_bytes: bool = False) -> BitsPosition:
    """Parse a bit or byte position: "n", "lo..hi", "lo..=hi" or "lo:hi".

    Ranges are inclusive at both ends. A single byte position covers the
    whole byte, while a single bit position only fixes where the field starts.
    """
    for sep in _RANGE_SEPARATORS:
        if sep in s:
            a, b = s.split(sep, 1)
            r = Range.in_order(parse_num(a), parse_num(b))
            if in_bytes:
                return Range(r.lo * 8, r.hi * 8 + 7)
            return r

    n = parse_num(s)
    if in_bytes:
        return Range(n * 8, n * 8 + 7)
    return Start(n)


def _bytes_from_literal(value: Any) -> bytes:
    match value:
        case bytes():
            return value
        case bool():
            raise ValueError(f"Unsupported byte value: {value!r}")
        case int() if 0 <= value <= 0xFF:
            return bytes([value])
        case list():
            return b"".join(_bytes_from_literal(v) for v in value)
        case _:
            raise ValueError(f"Unsupported byte value: {value!r}")


def parse_region(key: str, value: Any, location: str | None = None) -> Region | None:
    """Interpret a header/footer literal.

    An integer reserves that many bytes; byte strings and arrays give fixed
    content. Empty content or a zero length means no region at all.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        if value < 0:
            raise ConfigError(f"{key} length must not be negative", location)
        return ReservedLength(value) if value > 0 else None

    try:
        data = _bytes_from_literal(value)
    except ValueError as e:
        raise ConfigError(f"{key}: {e}", location) from e
    return FixedBytes(data) if data else None


@dataclass(frozen=True)
class StructAttributes:
    """Interpreted packed_struct attributes."""

    bit_numbering: BitNumbering | None = None
    default_endian: IntegerEndianness | None = None
    size_bytes: int | None = None
    header: Region | None = None
    footer: Region | None = None


@dataclass(frozen=True)
class FieldAttributes:
    """Interpreted packed_field attributes."""

    bits_position: BitsPosition | None = None
    size_bits: int | None = None
    element_size_bits: int | None = None
    endian: IntegerEndianness | None = None
    is_enum: bool = False


def _warn_unknown(attrs: Attributes, known: frozenset[str], location: str | None) -> None:
    for key, _ in attrs:
        if key not in known:
            logger.warning("%s: ignoring unknown attribute %r", location, key)


def _endianness(key: str, value: Any, location: str | None) -> IntegerEndianness:
    endian = IntegerEndianness.from_str(value) if isinstance(value, str) else None
    if endian is None:
        raise ConfigError(f"{key} must be one of msb, lsb, be, le; got {value!r}", location)
    return endian


def parse_struct_attributes(attrs: Attributes, location: str | None = None) -> StructAttributes:
    """Interpret the attributes attached to a struct."""
    _warn_unknown(attrs, STRUCT_KEYS, location)

    bit_numbering = None
    if found := lookup(attrs, "bit_numbering"):
        key, value = found
        bit_numbering = BitNumbering.from_str(value) if isinstance(value, str) else None
        if bit_numbering is None:
            raise ConfigError(f"{key} must be msb0 or lsb0; got {value!r}", location)

    default_endian = None
    if found := lookup(attrs, "default_int_endian"):
        default_endian = _endianness(*found, location)

    size_bytes = None
    if found := lookup(attrs, "size_bytes"):
        size_bytes = _num_value(*found, location)
        if size_bytes == 0:
            raise ConfigError("size_bytes must be greater than zero", location)

    header = parse_region(*found, location) if (found := lookup(attrs, "header")) else None
    footer = parse_region(*found, location) if (found := lookup(attrs, "footer")) else None

    return StructAttributes(
        bit_numbering=bit_numbering,
        default_endian=default_endian,
        size_bytes=size_bytes,
        header=header,
        footer=footer,
    )


def parse_field_attributes(
    attrs: list[tuple[str, str]], location: str | None = None
) -> FieldAttributes:
    """Interpret the (string valued) attributes attached to a field."""
    _warn_unknown(attrs, FIELD_KEYS, location)

    bits_position = None
    if found := lookup(attrs, *_BIT_POSITION_KEYS, *_BYTE_POSITION_KEYS):
        key, value = found
        if value == "":
            raise ConfigError(f'{key} expects a string literal, e.g. {key}="0..7"', location)
        try:
            bits_position = parse_position(value, in_bytes=key in _BYTE_POSITION_KEYS)
        except ValueError as e:
            raise ConfigError(f"{key}: {e}", location) from e

    size_bits = None
    if found := lookup(attrs, "size_bits", "size_bytes"):
        key, value = found
        size_bits = _num_value(key, value, location) * (8 if key == "size_bytes" else 1)

    element_size_bits = None
    if found := lookup(attrs, "element_size_bits", "element_size_bytes"):
        key, value = found
        element_size_bits = _num_value(key, value, location) * (
            8 if key == "element_size_bytes" else 1
        )

    endian = _endianness(*found, location) if (found := lookup(attrs, "endian")) else None

    is_enum = False
    if found := lookup(attrs, "ty"):
        key, value = found
        if value.lower() != "enum":
            raise ConfigError(f'{key} only supports "enum"; got {value!r}', location)
        is_enum = True

    return FieldAttributes(
        bits_position=bits_position,
        size_bits=size_bits,
        element_size_bits=element_size_bits,
        endian=endian,
        is_enum=is_enum,
    )
