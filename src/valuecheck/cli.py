"""Valuecheck CLI entry point."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from valuecheck import __version__


@click.group()
@click.version_option(version=__version__, prog_name="valuecheck")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Minimal output (errors only).")
@click.pass_context
def main(ctx: click.Context, *, verbose: bool, quiet: bool) -> None:
    """Valuecheck - validate configuration data values against schema rules."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet

    level = logging.WARNING
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


@main.command()
@click.option(
    "--schema",
    "schema_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Schema document (default: from valuecheck.yml, else schema.yml).",
)
@click.option(
    "--values",
    "values_paths",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    multiple=True,
    help="Values document to overlay; repeatable, applied in order.",
)
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["rich", "json", "porcelain"]),
    default=None,
    help="Output format (default: rich for TTY, porcelain otherwise).",
)
@click.option(
    "--strict/--no-strict",
    default=None,
    help="Exit 1 if any data value is invalid (default: on).",
)
@click.option(
    "--project",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Project root (default: current directory).",
)
def check(
    *,
    schema_path: Path | None,
    values_paths: tuple[Path, ...],
    fmt: str | None,
    strict: bool | None,
    project: Path | None,
) -> None:
    """Validate data values against the rules declared in the schema.

    Exit codes: 0 = all values valid (or invalid without --strict),
    1 = invalid values with --strict, 2 = configuration, load, or schema error.
    """
    from valuecheck.checker import check as run_check
    from valuecheck.checker import format_json as _format_json
    from valuecheck.checker import format_porcelain as _format_porcelain
    from valuecheck.checker import format_rich as _format_rich
    from valuecheck.config import load_config
    from valuecheck.errors import CheckError

    project_root = project or Path.cwd()
    config = load_config(project_root)

    # Resolve output format: explicit flag > config > TTY detection.
    if fmt is None:
        fmt = config.output_format
    if fmt is None:
        fmt = "rich" if sys.stdout.isatty() else "porcelain"
    if strict is None:
        strict = config.strict

    try:
        result = run_check(
            project_root,
            schema_path=schema_path,
            values_paths=list(values_paths) if values_paths else None,
            config=config,
        )
    except CheckError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(2)

    formatters = {
        "rich": _format_rich,
        "json": _format_json,
        "porcelain": _format_porcelain,
    }
    output = formatters[fmt](result)
    if output:
        click.echo(output)

    if strict and not result.ok:
        sys.exit(1)


@main.command()
def rules() -> None:
    """List the built-in validation rules."""
    from rich.console import Console
    from rich.table import Table

    from valuecheck.validation.registry import DEFAULT_REGISTRY

    table = Table(title="Validation rules")
    table.add_column("Rule", style="cyan", no_wrap=True)
    table.add_column("Parameter")
    table.add_column("Applies to")
    table.add_column("Checks for null")

    for definition in DEFAULT_REGISTRY:
        table.add_row(
            definition.name,
            definition.parameter,
            definition.applies_to,
            "yes" if definition.nullity else "no",
        )

    Console().print(table)
