"""Struct definition parser using Lark."""

import ast
import os
from dataclasses import dataclass
from typing import Any, TypeVar

from lark import Lark, Token
from lark.exceptions import VisitError
from lark.visitors import Transformer

from .attributes import parse_num
from .errors import ConfigError
from .types import (
    Annotation,
    AnnotationArg,
    Definition,
    EnumDef,
    EnumValueDef,
    FieldDef,
    StructDef,
    TypeRef,
    is_integer,
)

_g_parser: Lark | None = None


@dataclass
class _Generic:
    name: str
    params: list[str]

    @property
    def text(self) -> str:
        if not self.params:
            return self.name
        return f"{self.name}<{', '.join(self.params)}>"


@dataclass
class _ArraySize:
    value: int


TFilter = TypeVar("TFilter", bound=object)


def _filter(args: list[Any], class_type: type[TFilter]) -> list[TFilter]:
    return [v for v in args if isinstance(v, class_type)]


def _find_one(args: list[Any], class_type: type[TFilter]) -> TFilter | None:
    filtered = _filter(args, class_type)
    if len(filtered) > 1:
        raise RuntimeError(f"Found more than one {class_type}")
    return filtered[0] if filtered else None


def _name(args: list[Any]) -> str:
    return next(str(v) for v in args if isinstance(v, Token) and v.type == "NAME")


def _literal(token: Token) -> Any:
    try:
        return ast.literal_eval(str(token))
    except (ValueError, SyntaxError) as e:
        raise ConfigError(
            f"Invalid literal {str(token)!r} at line {token.line}, column {token.column}: {e}"
        ) from e


class TreeTransformer(Transformer):
    """Transform parse tree into struct description types."""

    def string(self, args: list[Any]) -> str:
        return _literal(args[0])

    def byte_string(self, args: list[Any]) -> bytes:
        return _literal(args[0])

    def byte_char(self, args: list[Any]) -> bytes:
        return _literal(args[0])

    def integer(self, args: list[Any]) -> int:
        return parse_num(str(args[0]))

    def array(self, args: list[Any]) -> list[Any]:
        return [v for v in args if v is not None]

    def named_argument(self, args: list[Any]) -> AnnotationArg:
        return AnnotationArg(name=str(args[0]), value=args[1])

    def positional_argument(self, args: list[Any]) -> AnnotationArg:
        return AnnotationArg(name=None, value=args[0])

    def annotation(self, args: list[Any]) -> Annotation:
        return Annotation(name=_name(args), arguments=_filter(args, AnnotationArg))

    def generic(self, args: list[Any]) -> _Generic:
        params = [v.text if isinstance(v, _Generic) else v for v in args[1:] if v is not None]
        return _Generic(name=str(args[0]), params=params)

    def generic_number(self, args: list[Any]) -> str:
        return str(args[0])

    def array_size(self, args: list[Any]) -> _ArraySize:
        return _ArraySize(value=parse_num(str(args[0])))

    def type_ref(self, args: list[Any]) -> TypeRef:
        generic = args[0]
        array = _find_one(args, _ArraySize)
        return TypeRef(
            name=generic.name,
            params=", ".join(generic.params) if generic.params else None,
            array_size=array.value if array else None,
        )

    def struct_member(self, args: list[Any]) -> FieldDef:
        return FieldDef(
            name=_name(args),
            type=_find_one(args, TypeRef),
            annotations=_filter(args, Annotation),
        )

    def struct(self, args: list[Any]) -> StructDef:
        return StructDef(
            name=_name(args),
            fields=_filter(args, FieldDef),
            annotations=_filter(args, Annotation),
        )

    def enum_value(self, args: list[Any]) -> EnumValueDef:
        return EnumValueDef(name=str(args[0]), value=parse_num(str(args[1])))

    def enum(self, args: list[Any]) -> EnumDef:
        return EnumDef(
            name=_name(args),
            type=_find_one(args, TypeRef),
            values=_filter(args, EnumValueDef),
        )

    def start(self, args: list[Any]) -> Definition:
        return Definition(enums=_filter(args, EnumDef), structs=_filter(args, StructDef))


def validate(definition: Definition) -> None:
    """Validate names and enum types of a parsed definition."""
    seen: set[str] = set()
    for item in [*definition.enums, *definition.structs]:
        if item.name in seen:
            raise ConfigError(f"{item.name} is declared more than once")
        seen.add(item.name)

    for enum in definition.enums:
        if not is_integer(enum.type) or enum.type.is_array:
            raise ConfigError(f"Enum type must be an integer, got {enum.type.text}", enum.name)

    for struct in definition.structs:
        names: set[str] = set()
        for field in struct.fields:
            if field.name in names:
                raise ConfigError(f"Field {field.name} is declared more than once", struct.name)
            names.add(field.name)


def parse(text: str) -> Definition:
    """Parse a struct definition file."""
    global _g_parser

    if not _g_parser:
        with open(f"{os.path.dirname(__file__)}/structdef.lark", encoding="utf-8") as f:
            grammar = f.read()

        _g_parser = Lark(grammar)

    tree = _g_parser.parse(text)
    try:
        definition = TreeTransformer().transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, ConfigError):
            raise e.orig_exc from None
        raise

    validate(definition)

    return definition
