"""Detection of fields sharing bits."""

from collections.abc import Iterable

from .errors import ConfigError
from .model import FieldKind, iter_leaves


def check_overlaps(
    fields: Iterable[FieldKind],
    num_bytes: int,
    location: str | None = None,
    field_bits: int | None = None,
) -> None:
    """Claim every bit of every leaf field, failing on the first shared bit.

    Leaves must also end before field_bits, the size of the field region
    without header and footer bytes. Defaults to the whole struct.
    """
    owners: list[str | None] = [None] * (num_bytes * 8)
    limit = len(owners) if field_bits is None else min(field_bits, len(owners))

    for name, leaf in iter_leaves(fields):
        for bit in range(leaf.bit_range.start, leaf.bit_range.end + 1):
            if bit >= limit:
                raise ConfigError(
                    f"Field {name} (bits {leaf.bit_range}) lies outside the field region "
                    f"of {limit} bits",
                    location,
                )
            if (owner := owners[bit]) is not None:
                raise ConfigError(
                    f"Overlap in bits between fields {owner} and {name} "
                    f"(bits {leaf.bit_range})",
                    location,
                )
            owners[bit] = name
