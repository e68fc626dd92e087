"""Tests for bit range resolution and bit numbering normalization."""

import pytest

from packlayout.analysis import BitNumbering, BitRange, ConfigError, Next, Range, Start
from packlayout.analysis.numbering import lsb0_to_msb0, normalize_position
from packlayout.analysis.positions import resolve_bit_range


def describe_range():
    def enforces_order(expect):
        with pytest.raises(ValueError):
            Range(7, 0)

    def orders_on_request(expect):
        expect(Range.in_order(7, 0)) == Range(0, 7)
        expect(Range.in_order(7, 0).width) == 8


def describe_resolve_bit_range():
    def starts_first_auto_field_at_zero(expect):
        expect(resolve_bit_range(Next(), 8, None)) == BitRange(0, 7)

    def follows_previous_field(expect):
        expect(resolve_bit_range(Next(), 16, BitRange(0, 7))) == BitRange(8, 23)

    def is_strictly_sequential(expect):
        prev = None
        for width in (1, 3, 8, 16, 5):
            current = resolve_bit_range(Next(), width, prev)
            expect(current.start) == (prev.end + 1 if prev else 0)
            expect(current.width) == width
            prev = current

    def uses_start_and_width(expect):
        expect(resolve_bit_range(Start(4), 8, BitRange(0, 40))) == BitRange(4, 11)

    def uses_ranges_verbatim(expect):
        expect(resolve_bit_range(Range(3, 5), 3, BitRange(0, 40))) == BitRange(3, 5)

    def rejects_zero_width(expect):
        with pytest.raises(ConfigError):
            resolve_bit_range(Next(), 0, None)


def describe_lsb0_to_msb0():
    def mirrors_around_struct_size(expect):
        expect(lsb0_to_msb0(Range(0, 7), 32)) == Range(24, 31)
        expect(lsb0_to_msb0(Range(12, 15), 16)) == Range(0, 3)

    def is_involutive(expect):
        for total_bits in (8, 16, 40):
            for lo in range(0, total_bits, 3):
                for hi in range(lo, total_bits, 5):
                    r = Range(lo, hi)
                    expect(lsb0_to_msb0(lsb0_to_msb0(r, total_bits), total_bits)) == r

    def rejects_bits_outside_struct(expect):
        with pytest.raises(ValueError):
            lsb0_to_msb0(Range(0, 8), 8)


def describe_normalize_position():
    def converts_lsb0_ranges(expect):
        result = normalize_position(BitNumbering.LSB0, Range(0, 7), 4)
        expect(result) == Range(24, 31)

    def requires_struct_size_for_lsb0(expect):
        with pytest.raises(ConfigError) as exc:
            normalize_position(BitNumbering.LSB0, Range(0, 7), None)
        expect("size_bytes" in exc.value.message) == True

    def requires_full_ranges_for_lsb0(expect):
        with pytest.raises(ConfigError):
            normalize_position(BitNumbering.LSB0, Next(), 4)
        with pytest.raises(ConfigError):
            normalize_position(BitNumbering.LSB0, Start(3), 4)

    def rejects_lsb0_ranges_outside_struct(expect):
        with pytest.raises(ConfigError):
            normalize_position(BitNumbering.LSB0, Range(0, 15), 1)

    def passes_msb0_through(expect):
        expect(normalize_position(BitNumbering.MSB0, Start(3), None)) == Start(3)
        expect(normalize_position(BitNumbering.MSB0, Range(1, 2), None)) == Range(1, 2)
        expect(normalize_position(BitNumbering.MSB0, Next(), None)) == Next()

    def allows_only_auto_positions_without_numbering(expect):
        expect(normalize_position(None, Next(), None)) == Next()
        with pytest.raises(ConfigError) as exc:
            normalize_position(None, Range(0, 7), None)
        expect("bit_numbering" in exc.value.message) == True
        with pytest.raises(ConfigError):
            normalize_position(None, Start(0), 2)
