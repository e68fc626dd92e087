"""Type definitions for struct descriptions fed into the layout analysis."""

from dataclasses import dataclass, field
from typing import Any

from dataclasses_json import DataClassJsonMixin


@dataclass
class TypeRef(DataClassJsonMixin):
    """Represents a field type as written in the definition.

    - params: textual generic parameters, e.g. "u8, Bits<3>" for Integer<u8, Bits<3>>
    - array_size=N: fixed length array of N elements
    - array_size=None: not an array
    """

    name: str
    params: str | None = None
    array_size: int | None = None

    @property
    def text(self) -> str:
        """The element type rendered back to text."""
        if self.params is None:
            return self.name
        return f"{self.name}<{self.params}>"

    @property
    def is_array(self) -> bool:
        return self.array_size is not None


@dataclass
class AnnotationArg(DataClassJsonMixin):
    """Represents an argument to an annotation.

    Positional arguments have no name. Values are already-tokenized literals:
    str, int, bytes or a list of those.
    """

    name: str | None
    value: Any


@dataclass
class Annotation(DataClassJsonMixin):
    """Represents an annotation such as @packed_field(bits="0..3")."""

    name: str
    arguments: list[AnnotationArg] = field(default_factory=list)


@dataclass
class FieldDef(DataClassJsonMixin):
    """Represents a field of a struct."""

    name: str
    type: TypeRef
    annotations: list[Annotation] = field(default_factory=list)


@dataclass
class StructDef(DataClassJsonMixin):
    """Represents a packed struct definition."""

    name: str
    fields: list[FieldDef] = field(default_factory=list)
    annotations: list[Annotation] = field(default_factory=list)


@dataclass
class EnumValueDef(DataClassJsonMixin):
    """Represents a single enum value."""

    name: str
    value: int


@dataclass
class EnumDef(DataClassJsonMixin):
    """Represents an enum with its underlying primitive type."""

    name: str
    type: TypeRef
    values: list[EnumValueDef] = field(default_factory=list)


@dataclass
class Definition(DataClassJsonMixin):
    """Represents a complete definition file."""

    enums: list[EnumDef] = field(default_factory=list)
    structs: list[StructDef] = field(default_factory=list)


# Bit widths of the builtin scalar types
BUILTIN_WIDTHS: dict[str, int] = {
    "bool": 1,
    "u8": 8,
    "i8": 8,
    "uint8": 8,
    "int8": 8,
    "u16": 16,
    "i16": 16,
    "uint16": 16,
    "int16": 16,
    "u32": 32,
    "i32": 32,
    "uint32": 32,
    "int32": 32,
    "u64": 64,
    "i64": 64,
    "uint64": 64,
    "int64": 64,
}

INTEGER_TYPES = frozenset(name for name, width in BUILTIN_WIDTHS.items() if width > 1)

# Parametrized pseudo-types carrying their width as Bits<N>
SIZED_INTEGER_TYPE = "Integer"
RESERVED_TYPES = frozenset(["ReservedZero", "ReservedZeroes", "ReservedOne", "ReservedOnes"])
PARAMETRIZED_TYPES = frozenset([SIZED_INTEGER_TYPE, *RESERVED_TYPES])


def is_integer(t: TypeRef) -> bool:
    """Check if a type is one of the fixed-width integer types."""
    return t.params is None and t.name in INTEGER_TYPES
