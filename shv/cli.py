"""CLI interface for the SST handler validator."""

import logging
import sys
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Annotated, TypeVar

import typer
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn

from shv.core.models import ValidationError
from shv.core.navigation import resolve_handler_location
from shv.core.protocols import ProgressCallback
from shv.core.scanner import MARKER_FILE, ProjectFileScanner
from shv.core.statistics import StatisticsAnalyzer
from shv.core.validator import HandlerValidator
from shv.output.formatters.enums import OutputFormat
from shv.output.formatters.formatter_factory import get_formatter
from shv.output.formatters.protocols import BaseFormatter
from shv.output.progress.callbacks import NoOpProgressCallback, RichProgressCallback

app = typer.Typer(
    name="shv",
    help="🔍 Validate SST handler references in TypeScript infrastructure code",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()

T = TypeVar("T")

PathOption = Annotated[
    Path,
    typer.Option(
        "--path",
        "-p",
        exists=True,
        file_okay=False,
        dir_okay=True,
        help="Path to the SST project",
    ),
]
JsonOption = Annotated[bool, typer.Option("--json", help="Output results in JSON format")]
VerboseOption = Annotated[bool, typer.Option("--verbose", "-v", help="Verbose output")]


def _configure_logging(verbose: bool) -> None:
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)


def _formatter(json_output: bool) -> BaseFormatter:
    return get_formatter(OutputFormat.JSON if json_output else OutputFormat.TREE)


def _emit(output: str) -> None:
    if output:
        typer.echo(output)


@contextmanager
def _progress(enabled: bool, description: str) -> Iterator[ProgressCallback]:
    if not enabled:
        yield NoOpProgressCallback()
        return
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task_id = progress.add_task(description, total=None)
        yield RichProgressCallback(progress, task_id)


def _run(action: Callable[[], T], failure: str, verbose: bool) -> T:
    try:
        return action()
    except Exception as e:
        console.print(f"[red]❌ {failure}: {e}[/red]")
        if verbose:
            console.print_exception()
        raise typer.Exit(1)


@app.command()
def validate(
    path: PathOption = Path("."),
    json_output: JsonOption = False,
    warn_unused: Annotated[
        bool,
        typer.Option("--warn-unused", help="Warn about exported handlers that are never referenced"),
    ] = False,
    verbose: VerboseOption = False,
) -> None:
    """
    Validate every handler reference in the project.

    Exits with code 1 when at least one reference is broken.

    Examples:
        shv validate
        shv validate --path ./infra-app --json
    """
    _configure_logging(verbose)
    project_path = path.resolve()
    validator = HandlerValidator(project_path)

    with _progress(not json_output, "Validating handler references...") as callback:
        result = _run(
            lambda: validator.validate_project(report_unused=warn_unused, progress_callback=callback),
            "Validation failed",
            verbose,
        )

    _emit(_formatter(json_output).format_validation(result, project_path))
    if not result.is_valid:
        raise typer.Exit(1)


@app.command()
def scan(
    path: PathOption = Path("."),
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Scan and list all handler files in the project."""
    _configure_logging(verbose)
    project_path = path.resolve()
    scanner = ProjectFileScanner(project_path)

    config = _run(scanner.find_project_config, "Scan failed", verbose)
    if config is None:
        console.print(f"[red]❌ No SST project found. Make sure {MARKER_FILE} exists.[/red]")
        raise typer.Exit(1)

    handlers = _run(lambda: scanner.scan_handlers(config), "Scan failed", verbose)
    _emit(_formatter(json_output).format_handlers(handlers, Path(config.root_path)))


@app.command("check-file")
def check_file(
    file: Annotated[
        Path,
        typer.Argument(exists=True, file_okay=True, dir_okay=False, help="TypeScript file to validate"),
    ],
    project: Annotated[
        Path,
        typer.Option("--project", "-p", exists=True, file_okay=False, dir_okay=True, help="Path to the SST project"),
    ] = Path("."),
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Validate the handler references of a single file."""
    _configure_logging(verbose)
    project_path = project.resolve()
    file_path = file.resolve()
    validator = HandlerValidator(project_path)

    def check() -> list[ValidationError]:
        handlers = validator.scanner.scan_handlers()
        return validator.validate_file(file_path, handlers)

    errors = _run(check, "File validation failed", verbose)
    _emit(_formatter(json_output).format_file_errors(errors, file_path, project_path))
    if errors:
        raise typer.Exit(1)


@app.command("stats")
def stats(
    path: PathOption = Path("."),
    handler: Annotated[
        str | None,
        typer.Option("--handler", "-H", help="Show statistics for a specific handler path"),
    ] = None,
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Show handler usage statistics."""
    _configure_logging(verbose)
    project_path = path.resolve()
    analyzer = StatisticsAnalyzer(project_path)
    formatter = _formatter(json_output)

    if handler:
        usage = _run(lambda: analyzer.get_handler_usage(handler), "Statistics analysis failed", verbose)
        if usage is None:
            console.print(f'[yellow]📊 Handler "{handler}" not found or never used[/yellow]')
            raise typer.Exit(1)
        _emit(formatter.format_usage(usage))
        return

    with _progress(not json_output, "Analyzing handler usage...") as callback:
        result = _run(
            lambda: analyzer.analyze_usage_statistics(progress_callback=callback),
            "Statistics analysis failed",
            verbose,
        )

    if result is None:
        console.print(f"[red]❌ Failed to analyze project. Make sure {MARKER_FILE} exists.[/red]")
        raise typer.Exit(1)
    _emit(formatter.format_statistics(result, project_path))


app.command("statistics", hidden=True)(stats)


@app.command()
def locate(
    handler_path: Annotated[str, typer.Argument(help='Handler path, e.g. "functions/upload.handler"')],
    path: PathOption = Path("."),
    json_output: JsonOption = False,
    verbose: VerboseOption = False,
) -> None:
    """Show where the function behind a handler path is exported."""
    _configure_logging(verbose)
    scanner = ProjectFileScanner(path.resolve())

    handlers = _run(scanner.scan_handlers, "Lookup failed", verbose)
    target = resolve_handler_location(handler_path, handlers)
    if target is None:
        console.print(f'[yellow]Handler "{handler_path}" could not be resolved[/yellow]')
        raise typer.Exit(1)
    _emit(_formatter(json_output).format_definition(target))


@app.command("version")
def cli_version() -> None:
    """Show version information."""
    try:
        console.print(version("sst-handler-validator"))
    except PackageNotFoundError:
        console.print("unknown")


@app.command()
def doctor() -> None:
    """Check system requirements and setup."""
    console.print("🔧 Checking system requirements...")

    python_version = sys.version_info
    if python_version >= (3, 10):
        console.print(f"[green]✓ Python {python_version.major}.{python_version.minor}[/green]")
    else:
        console.print(
            f"[red]✗ Python {python_version.major}.{python_version.minor} (requires 3.10+)[/red]"
        )
        raise typer.Exit(1)

    try:
        from shv.core.ast_utils import get_parser

        get_parser().parse(b"export const handler = () => {};")
    except Exception as e:
        console.print(f"[red]✗ TypeScript grammar could not be loaded: {e}[/red]")
        console.print("Install with: pip install tree-sitter tree-sitter-typescript")
        raise typer.Exit(1)
    console.print("[green]✓ tree-sitter TypeScript grammar loaded[/green]")

    console.print("\n[green]✓ System check complete[/green]")


if __name__ == "__main__":
    app()
