"""Tests for attribute extraction and interpretation."""

import pytest

from packlayout.analysis import (
    Annotation,
    AnnotationArg,
    BitNumbering,
    ConfigError,
    FixedBytes,
    IntegerEndianness,
    Range,
    ReservedLength,
    Start,
)
from packlayout.analysis.attributes import (
    FIELD_TAG,
    STRUCT_TAG,
    extract_attributes,
    extract_attributes_as_string,
    lookup,
    parse_field_attributes,
    parse_num,
    parse_position,
    parse_region,
    parse_struct_attributes,
)


def field_annotation(**kwargs):
    return Annotation(
        name=FIELD_TAG, arguments=[AnnotationArg(name=k, value=v) for k, v in kwargs.items()]
    )


def describe_extract_attributes():
    def collects_pairs_in_declaration_order(expect):
        annotations = [
            Annotation(
                name=FIELD_TAG,
                arguments=[
                    AnnotationArg(name="bits", value="0..3"),
                    AnnotationArg(name="endian", value="le"),
                ],
            ),
            Annotation(name="doc", arguments=[AnnotationArg(name="text", value="ignored")]),
            Annotation(name=FIELD_TAG, arguments=[AnnotationArg(name="bits", value="4..7")]),
        ]
        attrs = extract_attributes(annotations, FIELD_TAG, STRUCT_TAG)
        expect(attrs) == [("bits", "0..3"), ("endian", "le"), ("bits", "4..7")]

    def skips_positional_arguments(expect):
        annotations = [
            Annotation(
                name=STRUCT_TAG,
                arguments=[
                    AnnotationArg(name=None, value="msb0"),
                    AnnotationArg(name="size_bytes", value=4),
                ],
            )
        ]
        expect(extract_attributes(annotations, STRUCT_TAG, FIELD_TAG)) == [("size_bytes", 4)]

    def rejects_annotation_of_the_other_scope(expect):
        annotations = [Annotation(name=STRUCT_TAG, arguments=[])]
        with pytest.raises(ConfigError) as exc:
            extract_attributes(annotations, FIELD_TAG, STRUCT_TAG, "Packet.flags")
        expect(exc.value.location) == "Packet.flags"
        expect("did you mean 'packed_field'" in exc.value.message) == True

    def degrades_non_string_values_to_empty_string(expect):
        annotations = [field_annotation(size_bits=4, endian="le", bytes=[1, 2])]
        attrs = extract_attributes_as_string(annotations, FIELD_TAG, STRUCT_TAG)
        expect(attrs) == [("size_bits", ""), ("endian", "le"), ("bytes", "")]


def describe_lookup():
    def returns_first_match(expect):
        attrs = [("bits", "0..3"), ("bits", "4..7")]
        expect(lookup(attrs, "bits")) == ("bits", "0..3")

    def matches_any_of_several_keys(expect):
        attrs = [("endian", "le"), ("bytes", "1"), ("bits", "0..3")]
        expect(lookup(attrs, "bits", "bytes")) == ("bytes", "1")

    def returns_none_when_missing(expect):
        expect(lookup([("endian", "le")], "bits")) == None


def describe_parse_num():
    def parses_decimal(expect):
        expect(parse_num("42")) == 42
        expect(parse_num(" 7 ")) == 7

    def parses_hex(expect):
        expect(parse_num("0x1F")) == 31
        expect(parse_num("0XfF")) == 255

    def rejects_garbage(expect):
        with pytest.raises(ValueError):
            parse_num("12abc")
        with pytest.raises(ValueError):
            parse_num("0xZZ")
        with pytest.raises(ValueError):
            parse_num("")


def describe_parse_position():
    def parses_single_bit_as_start(expect):
        expect(parse_position("5")) == Start(5)

    def parses_inclusive_ranges(expect):
        expect(parse_position("0..7")) == Range(0, 7)
        expect(parse_position("0..=7")) == Range(0, 7)
        expect(parse_position("2:5")) == Range(2, 5)

    def orders_reversed_ranges(expect):
        expect(parse_position("7..0")) == Range(0, 7)

    def parses_byte_positions(expect):
        expect(parse_position("1", in_bytes=True)) == Range(8, 15)
        expect(parse_position("0..1", in_bytes=True)) == Range(0, 15)
        expect(parse_position("0x2..0x3", in_bytes=True)) == Range(16, 31)


def describe_parse_region():
    def reserves_length_for_integers(expect):
        expect(parse_region("header", 2)) == ReservedLength(2)

    def keeps_fixed_bytes(expect):
        expect(parse_region("header", b"\xaa\x55")) == FixedBytes(b"\xaa\x55")
        expect(parse_region("footer", [0xAA, b"\x55", [1]])) == FixedBytes(b"\xaa\x55\x01")

    def drops_empty_regions(expect):
        expect(parse_region("header", 0)) == None
        expect(parse_region("header", b"")) == None

    def rejects_strings(expect):
        with pytest.raises(ConfigError):
            parse_region("header", "AA55")

    def rejects_values_that_are_not_bytes(expect):
        with pytest.raises(ConfigError):
            parse_region("footer", [256])


def describe_parse_struct_attributes():
    def interprets_all_keys(expect):
        attrs = parse_struct_attributes(
            [
                ("bit_numbering", "LSB0"),
                ("default_int_endian", "be"),
                ("size_bytes", "0x4"),
                ("header", 1),
                ("footer", b"\x00"),
            ]
        )
        expect(attrs.bit_numbering) == BitNumbering.LSB0
        expect(attrs.default_endian) == IntegerEndianness.MSB
        expect(attrs.size_bytes) == 4
        expect(attrs.header) == ReservedLength(1)
        expect(attrs.footer) == FixedBytes(b"\x00")

    def defaults_to_nothing(expect):
        attrs = parse_struct_attributes([])
        expect(attrs.bit_numbering) == None
        expect(attrs.default_endian) == None
        expect(attrs.size_bytes) == None

    def first_value_wins(expect):
        attrs = parse_struct_attributes([("size_bytes", 2), ("size_bytes", 8)])
        expect(attrs.size_bytes) == 2

    def rejects_unknown_numbering(expect):
        with pytest.raises(ConfigError):
            parse_struct_attributes([("bit_numbering", "msb1")])

    def rejects_unknown_endianness(expect):
        with pytest.raises(ConfigError):
            parse_struct_attributes([("default_int_endian", "middle")])

    def ignores_unknown_keys(expect):
        attrs = parse_struct_attributes([("colour", "blue")])
        expect(attrs.size_bytes) == None


def describe_parse_field_attributes():
    def interprets_positions(expect):
        expect(parse_field_attributes([]).bits_position) == None
        expect(parse_field_attributes([("bits", "3")]).bits_position) == Start(3)
        expect(parse_field_attributes([("bit_position", "0..3")]).bits_position) == Range(0, 3)
        expect(parse_field_attributes([("byte_position", "2")]).bits_position) == Range(16, 23)

    def first_position_key_wins(expect):
        attrs = parse_field_attributes([("bytes", "1"), ("bits", "0..3")])
        expect(attrs.bits_position) == Range(8, 15)

    def converts_byte_sizes_to_bits(expect):
        attrs = parse_field_attributes([("size_bytes", "2"), ("element_size_bytes", "1")])
        expect(attrs.size_bits) == 16
        expect(attrs.element_size_bits) == 8

    def interprets_endian_and_enum(expect):
        attrs = parse_field_attributes([("endian", "LE"), ("ty", "enum")])
        expect(attrs.endian) == IntegerEndianness.LSB
        expect(attrs.is_enum) == True

    def rejects_degraded_literals(expect):
        with pytest.raises(ConfigError) as exc:
            parse_field_attributes([("size_bits", "")])
        expect('size_bits="8"' in exc.value.message) == True

    def rejects_bad_numbers(expect):
        with pytest.raises(ConfigError):
            parse_field_attributes([("bits", "zero..seven")])

    def rejects_unsupported_ty(expect):
        with pytest.raises(ConfigError):
            parse_field_attributes([("ty", "struct")])
