"""Bit width resolution for field types."""

import re
from collections.abc import Mapping

from .attributes import FieldAttributes
from .errors import ConfigError
from .positions import FieldMidPositioning, Next, Range
from .types import BUILTIN_WIDTHS, PARAMETRIZED_TYPES, EnumDef, FieldDef, TypeRef

# Marker preceding the width inside parametrized types, e.g. Integer<u8, Bits<3>>
BITS_MARKER = "Bits"

_MARKER_RE = re.compile(rf"\b{BITS_MARKER}\b")
_DIGITS_RE = re.compile(r"\d+")


def width_from_params(params: str) -> int | None:
    """Find the Bits marker in a type parameter list and parse the number after it."""
    marker = _MARKER_RE.search(params)
    if marker is None:
        return None
    digits = _DIGITS_RE.search(params, marker.end())
    if digits is None:
        return None
    return int(digits.group())


def builtin_bit_width(t: TypeRef, enums: Mapping[str, EnumDef] | None = None) -> int | None:
    """Width in bits of a single element of type t, or None if it isn't known."""
    if t.name in PARAMETRIZED_TYPES:
        return width_from_params(t.params) if t.params is not None else None

    if t.params is None and t.name in BUILTIN_WIDTHS:
        return BUILTIN_WIDTHS[t.name]

    if enums and t.name in enums:
        # Enums are as wide as their underlying primitive
        return builtin_bit_width(enums[t.name].type)

    return None


def array_length(t: TypeRef, location: str | None = None) -> int:
    """Number of elements of a field type, 1 for scalars."""
    if t.array_size is None:
        return 1
    if t.array_size == 0:
        raise ConfigError("zero-sized array", location)
    return t.array_size


def get_field_mid_positioning(
    field: FieldDef,
    attrs: FieldAttributes,
    enums: Mapping[str, EnumDef] | None = None,
    location: str | None = None,
) -> FieldMidPositioning:
    """Resolve the width and position mode of a field.

    The width comes from, in order: size_bits, element_size_bits times the
    array length, the span of an explicit bit range, the width of the type
    times the array length.
    """
    length = array_length(field.type, location)
    builtin = builtin_bit_width(field.type, enums)
    position = attrs.bits_position if attrs.bits_position is not None else Next()

    if attrs.size_bits is not None:
        if field.type.is_array:
            raise ConfigError(
                "size_bits can't be used on arrays, "
                "please use element_size_bits or element_size_bytes",
                location,
            )
        bit_width = attrs.size_bits
    elif attrs.element_size_bits is not None:
        bit_width = attrs.element_size_bits * length
    elif isinstance(position, Range):
        bit_width = position.width
    elif builtin is not None:
        bit_width = builtin * length
    else:
        raise ConfigError(f"cannot determine width of type {field.type.text!r}", location)

    if isinstance(position, Range) and position.width != bit_width:
        raise ConfigError(
            f"bit range {position.lo}..{position.hi} is {position.width} bits wide, "
            f"but the field is {bit_width} bits",
            location,
        )

    return FieldMidPositioning(bit_width=bit_width, bits_position=position)
