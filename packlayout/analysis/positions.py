"""Field positioning: parsed position modes and absolute bit range resolution."""

from dataclasses import dataclass
from typing import Self

from .errors import ConfigError
from .model import BitRange


@dataclass(frozen=True)
class Next:
    """Follows the previous field, or starts at bit 0."""


@dataclass(frozen=True)
class Start:
    """Starts at a fixed bit, width taken from the field type."""

    bit: int


@dataclass(frozen=True)
class Range:
    """Occupies an explicit inclusive bit range."""

    lo: int
    hi: int

    def __post_init__(self) -> None:
        if self.lo > self.hi:
            raise ValueError(f"Range start {self.lo} is after its end {self.hi}")

    @classmethod
    def in_order(cls, a: int, b: int) -> Self:
        return cls(min(a, b), max(a, b))

    @property
    def width(self) -> int:
        return self.hi - self.lo + 1


BitsPosition = Next | Start | Range


@dataclass(frozen=True)
class FieldMidPositioning:
    """Width and position mode of a field, before the struct size is known."""

    bit_width: int
    bits_position: BitsPosition


def resolve_bit_range(
    position: BitsPosition,
    bit_width: int,
    prev: BitRange | None,
    location: str | None = None,
) -> BitRange:
    """Compute the absolute bit range of a field.

    Args:
        position: How the field is positioned.
        bit_width: Resolved width of the field in bits.
        prev: Range of the previous field, None for the first one.
        location: Used in error messages.
    """
    if bit_width <= 0:
        raise ConfigError("Field has a width of zero bits", location)

    match position:
        case Next():
            start = prev.end + 1 if prev is not None else 0
            return BitRange(start, start + bit_width - 1)
        case Start(bit=bit):
            return BitRange(bit, bit + bit_width - 1)
        case Range(lo=lo, hi=hi):
            return BitRange(lo, hi)
