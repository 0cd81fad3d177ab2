"""Kestrel compiler CLI."""

from __future__ import annotations

import logging
from pathlib import Path

import click

from kestrel import __version__
from kestrel.ast_nodes import Program
from kestrel.codegen import LLVMEmitter
from kestrel.config import config_for
from kestrel.errors import CompileError, DiagnosticRenderer
from kestrel.parser import Parser
from kestrel.tokens import Token

LOGGER = logging.getLogger(__name__)

# Token-valued fields worth showing in an AST dump; the rest are delimiters.
_SHOWN_TOKENS = frozenset({"name", "token", "op"})


def _parse_file(path: Path, renderer: DiagnosticRenderer) -> Program | None:
    """Parse one file, printing diagnostics. Returns None on failure."""
    source = path.read_text(encoding="utf-8")
    filename = str(path)
    renderer.add_source(filename, source)
    try:
        return Parser(source, filename).parse()
    except CompileError as e:
        for diag in e.diagnostics:
            click.echo(renderer.render(diag), err=True)
        return None


@click.group()
@click.version_option(__version__, prog_name="kestrel")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option("--no-color", is_flag=True, help="Disable colored diagnostics.")
@click.pass_context
def main(ctx: click.Context, verbose: bool, no_color: bool) -> None:
    """The Kestrel language compiler."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    ctx.obj = DiagnosticRenderer(color=not no_color)


@main.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def check(renderer: DiagnosticRenderer, files: tuple[str, ...]) -> None:
    """Parse Kestrel source files and report syntax errors."""
    had_errors = False
    for file in files:
        if _parse_file(Path(file), renderer) is None:
            had_errors = True
    if had_errors:
        raise SystemExit(1)
    click.echo(f"checked {len(files)} file(s), no errors")


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.pass_obj
def view(renderer: DiagnosticRenderer, file: str) -> None:
    """View the AST of a Kestrel source file."""
    program = _parse_file(Path(file), renderer)
    if program is None:
        raise SystemExit(1)
    _dump_ast(program, 0)


@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("-o", "--output", type=click.Path(dir_okay=False), default=None,
              help="Where to write the LLVM IR (default: FILE with .ll suffix).")
@click.pass_obj
def build(renderer: DiagnosticRenderer, file: str, output: str | None) -> None:
    """Compile a Kestrel source file to LLVM IR."""
    path = Path(file)
    program = _parse_file(path, renderer)
    if program is None:
        raise SystemExit(1)

    config = config_for(path)
    emitter = LLVMEmitter(program, config, module_name=path.stem, filename=str(path))
    try:
        text = emitter.emit()
    except CompileError as e:
        for diag in e.diagnostics:
            click.echo(renderer.render(diag), err=True)
        raise SystemExit(1)

    out_path = Path(output) if output else path.with_suffix(".ll")
    out_path.write_text(text, encoding="utf-8")
    LOGGER.debug("wrote %d bytes of IR", len(text))
    click.echo(f"built {path} -> {out_path}")


def _dump_ast(node: object, depth: int) -> None:
    """Print a readable AST dump."""
    indent = "  " * depth
    name = type(node).__name__

    if hasattr(node, "__dataclass_fields__"):
        fields = node.__dataclass_fields__  # type: ignore[union-attr]
        click.echo(f"{indent}{name}")
        for field_name in fields:
            value = getattr(node, field_name)
            if isinstance(value, Token):
                if field_name in _SHOWN_TOKENS:
                    click.echo(f"{indent}  {field_name}: {value.content!r}")
            elif isinstance(value, list):
                if value:
                    click.echo(f"{indent}  {field_name}:")
                    for item in value:
                        if isinstance(item, Token):
                            click.echo(f"{indent}    {item.content!r}")
                        else:
                            _dump_ast(item, depth + 2)
                else:
                    click.echo(f"{indent}  {field_name}: []")
            elif hasattr(value, "__dataclass_fields__"):
                click.echo(f"{indent}  {field_name}:")
                _dump_ast(value, depth + 2)
            elif value is not None:
                click.echo(f"{indent}  {field_name}: {value!r}")
    else:
        click.echo(f"{indent}{name}: {node!r}")
