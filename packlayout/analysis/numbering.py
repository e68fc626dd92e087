"""Bit numbering normalization.

Layouts are always expressed MSB0: bit 0 is the most significant bit of the
first byte. Ranges declared LSB0 count from the least significant bit of the
last byte, so they can only be converted once the struct size is known.
"""

from .errors import ConfigError
from .model import BitNumbering
from .positions import BitsPosition, Next, Range


def lsb0_to_msb0(r: Range, total_bits: int) -> Range:
    """Mirror a range around the struct size. Applying it twice is a no-op."""
    if r.hi >= total_bits:
        raise ValueError(f"bit {r.hi} is outside a struct of {total_bits} bits")
    return Range.in_order(total_bits - 1 - r.lo, total_bits - 1 - r.hi)


def normalize_position(
    numbering: BitNumbering | None,
    position: BitsPosition,
    size_bytes: int | None,
    location: str | None = None,
) -> BitsPosition:
    """Rewrite a field position into MSB0 struct coordinates."""
    match numbering, position:
        case BitNumbering.LSB0, Range():
            if size_bytes is None:
                raise ConfigError(
                    "LSB0 field positioning requires an explicit struct size_bytes", location
                )
            try:
                return lsb0_to_msb0(position, size_bytes * 8)
            except ValueError as e:
                raise ConfigError(str(e), location) from e
        case BitNumbering.LSB0, _:
            raise ConfigError(
                "LSB0 field positioning requires explicit, full field positions", location
            )
        case BitNumbering.MSB0, _:
            return position
        case None, Next():
            return position
        case _:
            raise ConfigError(
                "Please specify the bit numbering of the struct: "
                '@packed_struct(bit_numbering="msb0") or "lsb0"',
                location,
            )
