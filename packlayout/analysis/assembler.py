"""Layout assembly: runs every resolution step over the fields of a struct."""

import logging
from collections.abc import Iterable, Mapping

from .attributes import (
    FIELD_TAG,
    STRUCT_TAG,
    FieldAttributes,
    extract_attributes,
    extract_attributes_as_string,
    parse_field_attributes,
    parse_struct_attributes,
)
from .errors import ConfigError
from .model import (
    ArrayField,
    BitRange,
    FieldKind,
    FieldRegular,
    IntegerEndianness,
    Layout,
    RegularField,
    iter_leaves,
)
from .numbering import normalize_position
from .overlap import check_overlaps
from .positions import FieldMidPositioning, Next, resolve_bit_range
from .types import Definition, EnumDef, FieldDef, StructDef, TypeRef
from .widths import get_field_mid_positioning
from .wrappers import select_wrappers

logger = logging.getLogger(__name__)


def _build_leaf(
    t: TypeRef,
    bit_range: BitRange,
    attrs: FieldAttributes,
    default_endian: IntegerEndianness | None,
    enums: Mapping[str, EnumDef],
    location: str,
) -> FieldRegular:
    return FieldRegular(
        type_name=t.text,
        bit_width=bit_range.width,
        bit_range=bit_range,
        wrappers=select_wrappers(t, bit_range.width, attrs, default_endian, enums, location),
    )


def _build_field(
    field: FieldDef,
    mid: FieldMidPositioning,
    bit_range: BitRange,
    attrs: FieldAttributes,
    default_endian: IntegerEndianness | None,
    enums: Mapping[str, EnumDef],
    location: str,
) -> FieldKind:
    t = field.type
    if t.array_size is None:
        leaf = _build_leaf(t, bit_range, attrs, default_endian, enums, location)
        return RegularField(name=field.name, field=leaf)

    size = t.array_size
    element_bits = mid.bit_width // size
    if element_bits == 0 or mid.bit_width % size != 0:
        raise ConfigError(
            f"Element and array size mismatch: {mid.bit_width} bits can't hold "
            f"{size} equal elements",
            location,
        )

    elements = []
    for i in range(size):
        start = bit_range.start + i * element_bits
        element_range = BitRange(start, start + element_bits - 1)
        elements.append(
            _build_leaf(t, element_range, attrs, default_endian, enums, f"{location}[{i}]")
        )

    return ArrayField(name=field.name, size=size, elements=tuple(elements))


def analyze_struct(struct: StructDef, enums: Iterable[EnumDef] = ()) -> Layout:
    """Resolve the complete bit layout of a struct.

    Args:
        struct: The struct definition with its annotated fields.
        enums: Enums that enum-coded fields may refer to.

    Returns:
        The resolved layout.

    Raises:
        ConfigError: On the first problem found. No partial layout is returned.
    """
    enum_map = {e.name: e for e in enums}
    struct_attrs = parse_struct_attributes(
        extract_attributes(struct.annotations, STRUCT_TAG, FIELD_TAG, struct.name),
        struct.name,
    )

    resolved: list[tuple[FieldDef, FieldAttributes, FieldMidPositioning, str]] = []
    for field in struct.fields:
        location = f"{struct.name}.{field.name}"
        attrs = parse_field_attributes(
            extract_attributes_as_string(field.annotations, FIELD_TAG, STRUCT_TAG, location),
            location,
        )
        mid = get_field_mid_positioning(field, attrs, enum_map, location)
        resolved.append((field, attrs, mid, location))

    first_field_is_auto = bool(resolved) and isinstance(resolved[0][2].bits_position, Next)

    fields: list[FieldKind] = []
    prev_range: BitRange | None = None
    for field, attrs, mid, location in resolved:
        position = normalize_position(
            struct_attrs.bit_numbering, mid.bits_position, struct_attrs.size_bytes, location
        )
        bit_range = resolve_bit_range(position, mid.bit_width, prev_range, location)
        logger.debug("%s: bits %s (%d wide)", location, bit_range, mid.bit_width)

        fields.append(
            _build_field(
                field, mid, bit_range, attrs, struct_attrs.default_endian, enum_map, location
            )
        )
        prev_range = bit_range

    if struct_attrs.size_bytes is not None:
        num_bits = struct_attrs.size_bytes * 8
    elif fields:
        num_bits = max(leaf.bit_range.end_exclusive for _, leaf in iter_leaves(fields))
    else:
        raise ConfigError("Struct has no fields, please declare its size_bytes", struct.name)

    field_bits = num_bits

    if struct_attrs.header is not None:
        num_bits += 8 * struct_attrs.header.length
    if struct_attrs.footer is not None:
        num_bits += 8 * struct_attrs.footer.length

    num_bytes = (num_bits + 7) // 8

    if first_field_is_auto and num_bits % 8 != 0 and struct_attrs.size_bytes is None:
        raise ConfigError(
            "Please explicitly position the bits of the first field of this struct, "
            "as the alignment isn't obvious to the end user",
            f"{struct.name}.{struct.fields[0].name}",
        )

    check_overlaps(fields, num_bytes, struct.name, field_bits)

    logger.debug("%s: %d bits, %d bytes", struct.name, num_bits, num_bytes)

    return Layout(
        name=struct.name,
        fields=tuple(fields),
        num_bits=num_bits,
        num_bytes=num_bytes,
        header=struct_attrs.header,
        footer=struct_attrs.footer,
        bit_numbering=struct_attrs.bit_numbering,
        default_endian=struct_attrs.default_endian,
    )


def analyze(definition: Definition) -> list[Layout]:
    """Resolve the layout of every struct in a parsed definition."""
    return [analyze_struct(struct, definition.enums) for struct in definition.structs]
