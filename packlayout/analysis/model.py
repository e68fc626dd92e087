"""Resolved layout types produced by the analysis."""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from enum import StrEnum
from typing import Self


class BitNumbering(StrEnum):
    """Convention for indexing bits inside a struct."""

    MSB0 = "msb0"
    LSB0 = "lsb0"

    @classmethod
    def from_str(cls, s: str) -> Self | None:
        try:
            return cls(s.lower())
        except ValueError:
            return None


class IntegerEndianness(StrEnum):
    """Byte order of a multi-byte integer."""

    MSB = "msb"
    LSB = "lsb"

    @classmethod
    def from_str(cls, s: str) -> Self | None:
        s = s.lower()
        if s in ("msb", "be"):
            return cls.MSB
        if s in ("lsb", "le"):
            return cls.LSB
        return None


@dataclass(frozen=True)
class BitRange:
    """An inclusive range of bits, counted MSB0 from the start of the struct."""

    start: int
    end: int

    @property
    def width(self) -> int:
        return self.end - self.start + 1

    @property
    def end_exclusive(self) -> int:
        return self.end + 1

    def __str__(self) -> str:
        return f"{self.start}..{self.end}"


# Serialization wrappers. Encoding applies them in order, decoding in reverse.


@dataclass(frozen=True)
class EnumToPrimitive:
    """Maps an enum variant to its primitive value."""

    def __str__(self) -> str:
        return "EnumToPrimitive"


@dataclass(frozen=True)
class SizedInteger:
    """Truncates or zero-extends a primitive to exactly bit_width bits."""

    underlying_type: str
    bit_width: int

    def __str__(self) -> str:
        return f"Integer<{self.underlying_type}, Bits<{self.bit_width}>>"


@dataclass(frozen=True)
class Endianness:
    """Selects the byte order used to place the integer in the buffer."""

    order: IntegerEndianness

    def __str__(self) -> str:
        return f"{self.order.capitalize()}Integer"


SerializationWrapper = EnumToPrimitive | SizedInteger | Endianness


@dataclass(frozen=True)
class FieldRegular:
    """A scalar leaf field with its final position and wrapper chain."""

    type_name: str
    bit_width: int
    bit_range: BitRange
    wrappers: tuple[SerializationWrapper, ...] = ()

    @property
    def encode_wrappers(self) -> tuple[SerializationWrapper, ...]:
        return self.wrappers

    @property
    def decode_wrappers(self) -> tuple[SerializationWrapper, ...]:
        return tuple(reversed(self.wrappers))


@dataclass(frozen=True)
class RegularField:
    """A named scalar field."""

    name: str
    field: FieldRegular


@dataclass(frozen=True)
class ArrayField:
    """A named array, flattened into contiguous equally-sized elements."""

    name: str
    size: int
    elements: tuple[FieldRegular, ...]

    @property
    def bit_range(self) -> BitRange:
        return BitRange(self.elements[0].bit_range.start, self.elements[-1].bit_range.end)


FieldKind = RegularField | ArrayField


@dataclass(frozen=True)
class FixedBytes:
    """A header or footer with fixed content."""

    data: bytes

    @property
    def length(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class ReservedLength:
    """A header or footer of a declared length, filled in by the user."""

    length: int


Region = FixedBytes | ReservedLength


def iter_leaves(fields: Iterable[FieldKind]) -> Iterator[tuple[str, FieldRegular]]:
    """Yield (name, leaf) pairs, naming array elements name[i]."""
    for f in fields:
        match f:
            case RegularField(name=name, field=leaf):
                yield name, leaf
            case ArrayField(name=name, elements=elements):
                for i, leaf in enumerate(elements):
                    yield f"{name}[{i}]", leaf


@dataclass(frozen=True)
class Layout:
    """The resolved layout of a packed struct."""

    name: str
    fields: tuple[FieldKind, ...]
    num_bits: int
    num_bytes: int
    header: Region | None = None
    footer: Region | None = None
    bit_numbering: BitNumbering | None = None
    default_endian: IntegerEndianness | None = None

    def leaves(self) -> Iterator[tuple[str, FieldRegular]]:
        return iter_leaves(self.fields)

    def field(self, name: str) -> FieldKind:
        for f in self.fields:
            if f.name == name:
                return f
        raise KeyError(name)
