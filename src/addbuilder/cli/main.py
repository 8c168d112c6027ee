"""addbuilder CLI for generating Swift builders."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..config import Settings, load_settings
from ..generator.defaults import DefaultValueInference
from ..generator.extractor import extract_fields
from ..generator.service import BuilderService, ExpandedSource
from ..generator.types import render_type
from ..models.records import Severity

console = Console()
err_console = Console(stderr=True)
app = typer.Typer(add_completion=False, no_args_is_help=True)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Generate fluent builders for Swift structs marked with @AddBuilder."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _resolve_settings(config_path: Optional[Path], indent: Optional[int]) -> Settings:
    settings = load_settings(config_path)
    if indent is not None:
        settings.indent_width = indent
    return settings


def _expand(path: Path, settings: Settings) -> ExpandedSource:
    service = BuilderService(settings)
    try:
        return service.expand_file(path)
    except ValueError as exc:
        err_console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(1)


def _report(expanded: ExpandedSource) -> None:
    for location in expanded.syntax_errors:
        err_console.print(f"[yellow]warning:[/yellow] syntax error at {location}")
    for diagnostic in expanded.diagnostics:
        style = "red" if diagnostic.severity is Severity.ERROR else "yellow"
        err_console.print(f"[{style}]{escape(str(diagnostic))}[/{style}]")
    if expanded.has_errors:
        raise typer.Exit(1)


@app.command()
def expand(
    source: Path = typer.Argument(..., help="Swift source file"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the expanded source here"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to addbuilder.yaml"),
    indent: Optional[int] = typer.Option(None, "--indent", min=1, help="Spaces per indentation level"),
):
    """Print the source with builders spliced into every marked struct."""
    settings = _resolve_settings(config, indent)
    expanded = _expand(source, settings)
    if output:
        output.write_text(expanded.source, encoding="utf-8")
        console.print(f"[green]Wrote[/green] {output}")
    else:
        typer.echo(expanded.source, nl=False)
    _report(expanded)


@app.command()
def generate(
    source: Path = typer.Argument(..., help="Swift source file"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to addbuilder.yaml"),
    indent: Optional[int] = typer.Option(None, "--indent", min=1, help="Spaces per indentation level"),
):
    """Print only the generated builders, as extensions of their records."""
    settings = _resolve_settings(config, indent)
    expanded = _expand(source, settings)
    typer.echo(BuilderService(settings).render_extensions(expanded), nl=False)
    _report(expanded)


@app.command()
def inspect(
    source: Path = typer.Argument(..., help="Swift source file"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to addbuilder.yaml"),
):
    """Show the fields and resolved defaults of every marked declaration."""
    settings = _resolve_settings(config, None)
    expanded = _expand(source, settings)

    if not expanded.expansions:
        console.print(f"[yellow]No @{settings.builder_attributes[0]} declarations in {source}[/yellow]")
        return

    for expansion in expanded.expansions:
        declaration = expansion.record.declaration
        table = Table(title=f"{expansion.name} ({declaration.kind})")
        table.add_column("Field", style="cyan")
        table.add_column("Type")
        table.add_column("Default")
        inference = DefaultValueInference(settings, placeholders=declaration.generic_parameters)
        for resolved in inference.resolve(extract_fields(declaration)):
            if resolved.ok:
                default = escape(resolved.expression)
            else:
                default = f"[red]{escape(str(resolved.error))}[/red]"
            table.add_row(resolved.field.name, escape(render_type(resolved.field.type)), default)
        console.print(table)

    _report(expanded)


if __name__ == "__main__":
    app()
