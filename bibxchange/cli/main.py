"""Main CLI entry point and commands."""

import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import click
from click.exceptions import Exit
from rich.console import Console
from rich.table import Table

from bibxchange import __version__
from bibxchange.cli.config import export_options, import_options, load_config
from bibxchange.formats import convert as convert_content
from bibxchange.formats import get_handler, supported_formats
from bibxchange.formats.base import Format
from bibxchange.operations.detection import detect_format
from bibxchange.operations.importer import ImportManager
from bibxchange.store.memory import MemoryRecordStore

FORMAT_CHOICE = click.Choice(
    ["ris", "bibtex", "bib", "csv", "json", "csl"], case_sensitive=False
)


@dataclass
class Context:
    """CLI context that holds shared resources."""

    console: Console
    config: dict[str, Any] = field(default_factory=dict)
    debug: bool = False


def setup_logging(
    verbose: bool = False, quiet: bool = False, debug: bool = False
) -> None:
    """Configure logging based on CLI flags."""
    if quiet:
        level = logging.ERROR
    elif verbose or debug:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s"
        if not debug
        else "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def create_console(no_color: bool = False, width: int | None = None) -> Console:
    """Create Rich console with appropriate settings."""
    return Console(
        no_color=no_color,
        width=width or 120,
        highlight=not no_color,
        color_system=None if no_color else "auto",
    )


class BibxGroup(click.Group):
    """Group that reports errors as a single line and exits with status 1."""

    def invoke(self, ctx):
        try:
            return super().invoke(ctx)
        except KeyboardInterrupt:
            console = getattr(ctx.obj, "console", None) if ctx.obj else None
            if console:
                console.print("[yellow]Interrupted[/yellow]")
            ctx.exit(130)
        except (click.ClickException, click.Abort, Exit, SystemExit):
            raise
        except Exception as e:
            debug = getattr(ctx.obj, "debug", False) if ctx.obj else False
            if debug:
                raise
            console = getattr(ctx.obj, "console", None) if ctx.obj else None
            if console:
                console.print(f"[red]Error:[/red] {e}")
            else:
                click.echo(f"Error: {e}", err=True)
            ctx.exit(1)


def _resolve_format(path: Path, format: str | None) -> Format:
    if format:
        return Format.from_value(format)
    return detect_format(path)


@click.group(cls=BibxGroup)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-error output")
@click.option("--no-color", is_flag=True, help="Disable colored output")
@click.option("--debug", is_flag=True, help="Enable debug mode with full tracebacks")
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
@click.version_option(
    version=__version__,
    prog_name="bibxchange",
    message="bibxchange version %(version)s",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    no_color: bool,
    debug: bool,
    config: Path | None,
) -> None:
    """Bibliographic interchange tool.

    Detect, validate, inspect and convert RIS, BibTeX, CSV and CSL-JSON
    reference files.
    """
    setup_logging(verbose=verbose, quiet=quiet, debug=debug)
    console = create_console(no_color=no_color)

    try:
        config_data = load_config(config)
    except ValueError as e:
        if debug:
            raise
        console.print(f"[red]Error loading config file:[/red] {e}")
        ctx.exit(1)

    ctx.obj = Context(console=console, config=config_data, debug=debug)


@cli.command()
@click.argument("source", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def detect(ctx: click.Context, source: Path) -> None:
    """Detect the format of a reference file."""
    fmt = detect_format(source)
    ctx.obj.console.print(
        f"{source.name}: [bold]{fmt.label}[/bold] ({fmt.mime_type})"
    )


@cli.command()
@click.argument("source", type=click.Path(exists=True, path_type=Path))
@click.option("--format", "-f", "format_name", type=FORMAT_CHOICE, help="Input format")
@click.pass_context
def validate(ctx: click.Context, source: Path, format_name: str | None) -> None:
    """Check that a file is well formed for its format."""
    fmt = _resolve_format(source, format_name)
    handler = get_handler(fmt)
    content = source.read_text(encoding="utf-8")
    handler.validate(content)
    count = handler.count(content)
    ctx.obj.console.print(
        f"[green]✓[/green] Valid {fmt.label} content ({count} references)"
    )


@cli.command()
@click.argument("source", type=click.Path(exists=True, path_type=Path))
@click.option(
    "--to", "target", type=FORMAT_CHOICE, required=True, help="Output format"
)
@click.option("--from", "source_format", type=FORMAT_CHOICE, help="Input format")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Write to a file instead of standard output",
)
@click.option("--no-abstracts", is_flag=True, help="Leave out abstracts")
@click.option("--no-keywords", is_flag=True, help="Leave out keywords")
@click.option("--no-urls", is_flag=True, help="Leave out URLs")
@click.option("--no-header", is_flag=True, help="Leave out the export header")
@click.pass_context
def convert(
    ctx: click.Context,
    source: Path,
    target: str,
    source_format: str | None,
    output: Path | None,
    no_abstracts: bool,
    no_keywords: bool,
    no_urls: bool,
    no_header: bool,
) -> None:
    """Convert a reference file to another format."""
    fmt = _resolve_format(source, source_format)
    options = export_options(
        ctx.obj.config,
        include_abstracts=False if no_abstracts else None,
        include_keywords=False if no_keywords else None,
        include_urls=False if no_urls else None,
        include_header=False if no_header else None,
    )
    content = convert_content(
        source.read_text(encoding="utf-8"), fmt, Format.from_value(target), options
    )

    if output is None:
        click.echo(content, nl=not content.endswith("\n"))
        return

    output.write_text(content, encoding="utf-8")
    ctx.obj.console.print(f"[green]✓[/green] Wrote {output}")


@cli.command()
@click.argument("source", type=click.Path(exists=True, path_type=Path))
@click.option("--format", "-f", "format_name", type=FORMAT_CHOICE, help="Input format")
@click.option(
    "--limit", "-n", type=int, default=20, show_default=True, help="Rows to show"
)
@click.pass_context
def inspect(
    ctx: click.Context, source: Path, format_name: str | None, limit: int
) -> None:
    """Import a file into a scratch store and show what it contains.

    Duplicates within the file are reported the same way an import into a
    populated store would report them.
    """
    console = ctx.obj.console
    store = MemoryRecordStore()
    manager = ImportManager(store, import_options(ctx.obj.config))
    result = manager.import_file(source, format=format_name)

    table = Table(title=f"{source.name} ({result.format.label})")
    table.add_column("ID", style="cyan", justify="right")
    table.add_column("Type", style="magenta")
    table.add_column("Year")
    table.add_column("Author")
    table.add_column("Title")

    for record in store.all()[:limit]:
        ref = record.reference
        table.add_row(
            str(record.id),
            ref.type.value,
            str(ref.year or ""),
            ref.authors[0].display() if ref.authors else "",
            ref.title or "",
        )
    console.print(table)

    stats = result.statistics
    summary = Table(title="Import Statistics")
    summary.add_column("Metric", style="cyan")
    summary.add_column("Value", justify="right")
    summary.add_row("Processed", str(stats.total_processed))
    summary.add_row("Imported", str(stats.successful))
    summary.add_row("Duplicates", str(stats.duplicates_found))
    summary.add_row("Failed", str(stats.failed))
    console.print(summary)

    for error in stats.errors:
        console.print(f"[yellow]•[/yellow] {error.identifier}: {error.error}")


@cli.command()
@click.pass_context
def formats(ctx: click.Context) -> None:
    """List supported formats."""
    table = Table(title="Supported Formats")
    table.add_column("Format", style="cyan")
    table.add_column("Name")
    table.add_column("Extension")
    table.add_column("MIME Type")

    for key, info in supported_formats().items():
        table.add_row(key, info["name"], f".{info['extension']}", info["mime_type"])
    ctx.obj.console.print(table)


def main() -> None:
    """Main entry point for the CLI application."""
    try:
        cli()
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
