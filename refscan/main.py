"""refscan CLI - find every use of a symbol across a TypeScript/JavaScript tree.

Usage:
    refscan PROJECT_ROOT SYMBOL DOMAIN

The JSON result is written to stdout (or --output); everything meant for
humans goes to stderr.
"""
from pathlib import Path
from typing import List, Optional

import typer
from rich.markup import escape
from rich.progress import (
    Progress,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TaskProgressColumn,
    TimeElapsedColumn
)
from rich.table import Table

from refscan.analyzer.aggregator import ReferenceAggregator, ScanReport, Summary
from refscan.config import NO_DOMAIN_SCOPE, __version__, load_config
from refscan.errors import ConfigurationError, UnexpectedError
from refscan.utils.safe_console import SafeConsole

app = typer.Typer(
    name="refscan",
    help="Find every syntactic reference to a symbol across a source tree",
    add_completion=False
)
# Diagnostics only; stdout carries the JSON result
console = SafeConsole()

USAGE = (
    "Usage: refscan PROJECT_ROOT SYMBOL DOMAIN\n"
    f"  DOMAIN narrows service-layer files to one business domain; "
    f"pass '{NO_DOMAIN_SCOPE}' to scan every domain."
)

EXIT_FAILURE = 1
EXIT_CONFIGURATION = 2
EXIT_CANCELLED = 130


def version_callback(value: bool):
    if value:
        typer.echo(f"refscan {__version__}")
        raise typer.Exit()


def _print_summary_tables(summary: Summary, console):
    """Print the two count tables (by type, by category)."""
    type_table = Table(title="References by Type", show_header=True, header_style="bold magenta")
    type_table.add_column("Type", style="cyan")
    type_table.add_column("Count", justify="right", style="yellow")
    for ref_type, count in summary.counts_by_type.items():
        type_table.add_row(ref_type, str(count))

    category_table = Table(title="References by Category", show_header=True, header_style="bold magenta")
    category_table.add_column("Category", style="cyan")
    category_table.add_column("Count", justify="right", style="yellow")
    for category, count in summary.counts_by_category.items():
        category_table.add_row(category, str(count))

    console.print(type_table)
    console.print(category_table)


def _report_failures(report: ScanReport, project_root: Path, console):
    for failure in report.failures:
        try:
            display_path = Path(failure.path).relative_to(project_root)
        except ValueError:
            display_path = failure.path
        console.log(
            f"[yellow]⚠ Skipped unparsable file[/yellow] {escape(str(display_path))}: "
            f"{escape(failure.reason)}"
        )


@app.command()
def scan(
    project_root: str = typer.Argument(..., help="Project root directory to scan"),
    symbol: str = typer.Argument(..., help="Symbol name to find (single identifier)"),
    domain: str = typer.Argument(..., help=f"Domain filter for service files ('{NO_DOMAIN_SCOPE}' disables scoping)"),
    include: Optional[List[str]] = typer.Option(None, "--include", "-i", help="Include pattern (gitignore syntax, repeatable)"),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", "-x", help="Exclude pattern (gitignore syntax, repeatable)"),
    before: Optional[int] = typer.Option(None, "--before", "-B", help="Context lines before each match (default 1)"),
    after: Optional[int] = typer.Option(None, "--after", "-A", help="Context lines after each match (default 1)"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Parallel file workers (default 4)"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the JSON result to a file instead of stdout"),
    with_summary: bool = typer.Option(False, "--with-summary", help="Emit {references, summary} instead of a bare array"),
    tolerant: bool = typer.Option(False, "--tolerant", help="Scan files that contain syntax errors instead of skipping them"),
    version: Optional[bool] = typer.Option(None, "--version", callback=version_callback, is_eager=True, help="Show version and exit"),
):
    """Scan PROJECT_ROOT for references to SYMBOL and print them as JSON."""

    console.print(
        f"[bold blue]🔍 Finding references to[/bold blue] [cyan]{escape(symbol)}[/cyan] "
        f"[dim](domain: {escape(domain)})[/dim]"
    )

    try:
        config = load_config(
            project_root, symbol, domain,
            include=include or None,
            exclude=exclude or None,
            before=before,
            after=after,
            workers=workers,
            strict_parse=False if tolerant else None,
        )
    except ConfigurationError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        console.print(escape(USAGE))
        raise typer.Exit(EXIT_CONFIGURATION)

    console.print(f"[bold blue]Project root:[/bold blue] {escape(str(config.project_root))}")
    if not config.domain_scoped:
        console.print("[dim]Domain scoping disabled: all service domains are scanned[/dim]")

    aggregator = ReferenceAggregator(config)

    try:
        with console.status("[cyan]Discovering source files..."):
            files = aggregator.discover()
        console.print(f"[bold blue]Source files matched:[/bold blue] {len(files)}")

        with Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeElapsedColumn(),
            console=console,
            transient=True
        ) as progress:
            task = progress.add_task("[cyan]Scanning files...", total=len(files))
            report = aggregator.run(files, on_file_done=lambda _result: progress.advance(task))
    except UnexpectedError as e:
        console.print(f"[bold red]Scan failed:[/bold red] {escape(str(e))}")
        raise typer.Exit(EXIT_FAILURE)
    except KeyboardInterrupt:
        console.print("[yellow]Scan cancelled; no result written[/yellow]")
        raise typer.Exit(EXIT_CANCELLED)

    _report_failures(report, config.project_root, console)
    if report.out_of_scope:
        console.print(
            f"[dim]{len(report.out_of_scope)} service files outside domain "
            f"'{escape(config.domain_filter)}' skipped[/dim]"
        )

    console.print(f"\n[bold green]✓ Found {len(report.references)} references[/bold green]")
    _print_summary_tables(report.summary, console)

    payload = report.to_payload_json() if with_summary else report.to_json()
    if output is not None:
        output.write_text(payload + "\n", encoding="utf-8")
        console.print(f"[bold blue]Result written to[/bold blue] {escape(str(output))}")
    else:
        typer.echo(payload)


def main():
    app()


if __name__ == "__main__":
    main()
