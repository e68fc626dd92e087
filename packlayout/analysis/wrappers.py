"""Selection of the serialization wrapper chain for scalar fields."""

import logging
from collections.abc import Mapping

from .attributes import FieldAttributes
from .errors import ConfigError
from .model import (
    EnumToPrimitive,
    Endianness,
    IntegerEndianness,
    SerializationWrapper,
    SizedInteger,
)
from .types import SIZED_INTEGER_TYPE, EnumDef, TypeRef, is_integer
from .widths import BITS_MARKER

logger = logging.getLogger(__name__)


def _enum_primitive(t: TypeRef, enums: Mapping[str, EnumDef], location: str | None) -> str:
    if t.name in enums:
        return enums[t.name].type.text
    if is_integer(t):
        return t.text
    raise ConfigError(f"{t.text!r} is marked as an enum, but no such enum is declared", location)


def _is_sized_integer(t: TypeRef) -> bool:
    return t.name == SIZED_INTEGER_TYPE and t.params is not None and BITS_MARKER in t.params


def select_wrappers(
    t: TypeRef,
    bit_width: int,
    attrs: FieldAttributes,
    default_endian: IntegerEndianness | None,
    enums: Mapping[str, EnumDef] | None = None,
    location: str | None = None,
) -> tuple[SerializationWrapper, ...]:
    """Build the ordered wrapper chain for a scalar field of element type t.

    Fields that are 8 bits wide or less are always big endian, even when the
    field asks for another byte order.
    """
    enums = enums or {}
    wrappers: list[SerializationWrapper] = []

    needs_int_wrap = attrs.is_enum or is_integer(t)
    needs_endian_wrap = needs_int_wrap or _is_sized_integer(t)

    if attrs.is_enum:
        wrappers.append(EnumToPrimitive())

    if needs_int_wrap:
        underlying = _enum_primitive(t, enums, location) if attrs.is_enum else t.text
        wrappers.append(SizedInteger(underlying_type=underlying, bit_width=bit_width))

    if needs_endian_wrap:
        order = attrs.endian if attrs.endian is not None else default_endian

        if bit_width <= 8:
            if order is IntegerEndianness.LSB:
                logger.debug("%s: %d bit field forced to msb", location, bit_width)
            order = IntegerEndianness.MSB

        if order is None:
            raise ConfigError(
                f"Missing integer endianness for {t.text!r}, specify endian on the field "
                "or default_int_endian on the struct",
                location,
            )
        wrappers.append(Endianness(order))

    return tuple(wrappers)
