"""Command-line interface for packed struct layout analysis."""

from __future__ import annotations

import json
import logging
import sys
from typing import TYPE_CHECKING, Any, NoReturn

import click
from lark.exceptions import UnexpectedInput
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from packlayout.analysis import ConfigError, analyze, parse
from packlayout.analysis.model import ArrayField, FixedBytes, RegularField, ReservedLength

if TYPE_CHECKING:
    from packlayout.analysis.model import FieldRegular, Layout, Region
    from packlayout.analysis.types import Definition


@click.group()
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Packed struct layout analyser."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=Console(stderr=True), show_time=False)],
        )


def _load(input_file: str) -> Definition:
    with open(input_file, encoding="utf-8") as f:
        text = f.read()

    try:
        return parse(text)
    except UnexpectedInput as e:
        _fail(f"Syntax error at line {e.line}, column {e.column}")
    except ConfigError as e:
        _fail(str(e))


def _analyze(definition: Definition) -> list[Layout]:
    try:
        return analyze(definition)
    except ConfigError as e:
        _fail(str(e))


def _fail(message: str) -> NoReturn:
    Console(stderr=True).print(f"[bold red]error:[/bold red] {message}", highlight=False)
    sys.exit(1)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input definition file")
@click.option("--struct", "-s", "struct_name", default=None, help="Only show this struct")
@click.option("--json", "output_json", is_flag=True, help="Output as JSON")
def layout(input_file: str, struct_name: str | None, output_json: bool) -> None:
    """Display the resolved bit layout of each struct."""
    layouts = _analyze(_load(input_file))

    if struct_name is not None:
        layouts = [lay for lay in layouts if lay.name == struct_name]
        if not layouts:
            _fail(f"Unknown struct: {struct_name}")

    if output_json:
        print(json.dumps([layout_to_dict(lay) for lay in layouts], indent=2))
    else:
        _output_plain(layouts)


@cli.command()
@click.option("--input", "-i", "input_file", required=True, help="Input definition file")
def check(input_file: str) -> None:
    """Check that every struct in a definition file can be laid out."""
    for lay in _analyze(_load(input_file)):
        print(f"{lay.name}: ok ({lay.num_bytes} bytes)")


@cli.command("parse")
@click.option("--input", "-i", "input_file", required=True, help="Input definition file")
def parse_cmd(input_file: str) -> None:
    """Dump the parsed definition as JSON."""
    data = _load(input_file).to_dict()
    print(json.dumps(data, indent=2, default=_json_default))


def _json_default(value: Any) -> str:
    if isinstance(value, bytes):
        return value.hex()
    raise TypeError(f"Cannot serialize {type(value).__name__}")


def _region_to_dict(region: Region | None) -> dict[str, Any] | None:
    match region:
        case FixedBytes(data=data):
            return {"kind": "bytes", "length": len(data), "data": data.hex()}
        case ReservedLength(length=length):
            return {"kind": "reserved", "length": length}
        case _:
            return None


def _leaf_to_dict(leaf: FieldRegular) -> dict[str, Any]:
    return {
        "type": leaf.type_name,
        "bit_width": leaf.bit_width,
        "bit_range": [leaf.bit_range.start, leaf.bit_range.end],
        "wrappers": [str(w) for w in leaf.wrappers],
    }


def layout_to_dict(lay: Layout) -> dict[str, Any]:
    """Convert a resolved layout to plain JSON-compatible data."""
    fields: list[dict[str, Any]] = []
    for f in lay.fields:
        match f:
            case RegularField(name=name, field=leaf):
                fields.append({"name": name, **_leaf_to_dict(leaf)})
            case ArrayField(name=name, size=size, elements=elements):
                fields.append(
                    {
                        "name": name,
                        "size": size,
                        "elements": [_leaf_to_dict(leaf) for leaf in elements],
                    }
                )

    return {
        "name": lay.name,
        "num_bits": lay.num_bits,
        "num_bytes": lay.num_bytes,
        "bit_numbering": lay.bit_numbering.value if lay.bit_numbering else None,
        "default_endian": lay.default_endian.value if lay.default_endian else None,
        "header": _region_to_dict(lay.header),
        "footer": _region_to_dict(lay.footer),
        "fields": fields,
    }


def _region_str(region: Region) -> str:
    match region:
        case FixedBytes(data=data):
            return f"{len(data)} bytes ({data.hex(' ')})"
        case ReservedLength(length=length):
            return f"{length} bytes reserved"


def _output_plain(layouts: list[Layout]) -> None:
    """Output layouts using rich text formatting."""
    console = Console()

    for lay in layouts:
        numbering = lay.bit_numbering.value if lay.bit_numbering else "unspecified"
        console.print(
            f"[bold cyan]{lay.name}[/bold cyan] "
            f"[dim]{lay.num_bytes} bytes, {lay.num_bits} bits, {numbering}[/dim]"
        )

        if lay.header is not None:
            console.print(f"  Header: {_region_str(lay.header)}")
        if lay.footer is not None:
            console.print(f"  Footer: {_region_str(lay.footer)}")

        table = Table(show_header=True, box=None, padding=(0, 2, 0, 2))
        table.add_column("Field", style="white")
        table.add_column("Bits", style="yellow", justify="right")
        table.add_column("Width", style="yellow", justify="right")
        table.add_column("Type", style="green")
        table.add_column("Wrappers", style="dim")

        for name, leaf in lay.leaves():
            table.add_row(
                name,
                str(leaf.bit_range),
                str(leaf.bit_width),
                leaf.type_name,
                " > ".join(str(w) for w in leaf.wrappers),
            )

        console.print(table)
        console.print()


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
