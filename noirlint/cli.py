"""CLI interface for the Noir unused function lint."""

import logging
import sys
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    TextColumn,
)
from rich.table import Table

from noirlint.core.config import CONFIG_FILE_NAME, AnalyzerConfig, discover_config, load_config
from noirlint.core.detector import Detector
from noirlint.core.errors import NoirLintError
from noirlint.frontend.workspace import find_manifest, resolve_workspace
from noirlint.lints.registry import get_lint_rules
from noirlint.output.formatters.enums import OutputFormat
from noirlint.output.formatters.formatter_factory import get_formatter
from noirlint.output.progress.callbacks import RichProgressCallback

app = typer.Typer(
    name="noirlint",
    help="🔍 Find unused functions in Noir packages",
    no_args_is_help=True,
    add_completion=False,
)

console = Console()

EXIT_FINDINGS = 1
EXIT_USAGE = 2


def _load_config(config_path: Path | None, manifest_path: Path, entry_points: list[str]) -> AnalyzerConfig:
    if config_path is not None:
        config = load_config(config_path)
    else:
        config = discover_config(manifest_path.parent)
    if entry_points:
        config = config.with_entry_points(entry_points)
    return config


def _fail(message: str, verbose: bool, code: int) -> typer.Exit:
    console.print(f"[red]Error: {message}[/red]", highlight=False, soft_wrap=True)
    if verbose:
        console.print_exception()
    return typer.Exit(code)


@app.command()
def check(
    manifest_path: Annotated[
        Path | None,
        typer.Option(
            "--manifest-path",
            help="Path to Nargo.toml (searched for upwards from the current directory by default)",
        ),
    ] = None,
    package: Annotated[
        str | None,
        typer.Option(
            "--package",
            help="Only analyze this workspace member",
        ),
    ] = None,
    entry_points: Annotated[
        list[str] | None,
        typer.Option(
            "--entry-point",
            help="Function name treated as used in the crate root (repeatable)",
        ),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            exists=True,
            file_okay=True,
            dir_okay=False,
            help=f"Configuration file (defaults to {CONFIG_FILE_NAME} next to the manifest)",
        ),
    ] = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--output",
            "-o",
            help="Output format: tree, text, json, csv",
        ),
    ] = OutputFormat.TREE,
    output_file: Annotated[
        Path | None,
        typer.Option(
            "--output-file",
            "-f",
            help="Save results to file",
        ),
    ] = None,
    deny_warnings: Annotated[
        bool,
        typer.Option(
            "--deny-warnings",
            help="Exit with status 1 if any diagnostic is emitted",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Verbose output",
        ),
    ] = False,
) -> None:
    """
    Scan a Noir package or workspace for unused functions.

    A function is unused when it is not public, not an entry point, and not
    reachable through calls from one that is.

    Examples:
        noirlint check
        noirlint check --manifest-path ./circuits/Nargo.toml --package verifier
        noirlint check -o text --deny-warnings
        noirlint check -o json -f results.json
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG)
    else:
        logging.basicConfig(level=logging.WARNING)

    try:
        manifest = find_manifest(manifest_path or Path.cwd())
        config = _load_config(config_path, manifest, entry_points or [])
    except NoirLintError as e:
        raise _fail(str(e), verbose, EXIT_USAGE)

    detector = Detector(config=config, verbose=verbose)

    with Progress(
        MofNCompleteColumn(),
        BarColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
        transient=True,
    ) as progress:
        task_id = progress.add_task("Scanning for unused functions...", total=None)
        progress_callback = RichProgressCallback(progress, task_id)

        try:
            result = detector.scan(
                manifest_path=manifest,
                package=package,
                progress_callback=progress_callback,
            )
        except NoirLintError as e:
            raise _fail(str(e), verbose, EXIT_USAGE)

    formatter = get_formatter(output_format)

    if output_format == OutputFormat.TREE:
        output = formatter.format(result)
        if output:
            console.print(output)
    else:
        output = formatter.format(result)

        if output_file:
            _ = output_file.write_text(output, encoding="utf-8")
            console.print(f"[green]Results saved to {output_file}[/green]")
        elif output:
            console.print(output, markup=False, highlight=False, soft_wrap=True, end="")

    diagnostics = result.diagnostics
    if output_format in (OutputFormat.TREE, OutputFormat.TEXT) or output_file:
        if diagnostics:
            console.print(f"[yellow]⚠️  Found {len(diagnostics)} unused function(s)[/yellow]")
        elif output_format == OutputFormat.TEXT and not result.all_errors:
            console.print("[green]✅ No unused functions found![/green]")

    if result.has_errors:
        raise typer.Exit(EXIT_FINDINGS)
    if deny_warnings and diagnostics:
        raise typer.Exit(EXIT_FINDINGS)


@app.command("lints")
def list_lints() -> None:
    """List the available lint rules."""
    table = Table(title="Lint rules")
    table.add_column("Name", style="cyan", no_wrap=True)
    table.add_column("Description")
    for rule in get_lint_rules():
        table.add_row(rule.name, rule.description)
    console.print(table)


@app.command("version")
def cli_version() -> None:
    """Show version information."""
    try:
        console.print(version("noirlint"))
    except PackageNotFoundError:
        console.print("unknown")


@app.command()
def doctor(
    manifest_path: Annotated[
        Path | None,
        typer.Option(
            "--manifest-path",
            help="Path to Nargo.toml",
        ),
    ] = None,
) -> None:
    """Check system requirements and setup."""
    console.print("🔧 Checking system requirements...")

    python_version = sys.version_info
    if python_version >= (3, 11):
        console.print(f"[green]✓ Python {python_version.major}.{python_version.minor}[/green]")
    else:
        console.print(
            f"[red]✗ Python {python_version.major}.{python_version.minor} (requires 3.11+)[/red]"
        )
        raise typer.Exit(EXIT_FINDINGS)

    try:
        manifest = find_manifest(manifest_path or Path.cwd())
        workspace = resolve_workspace(manifest)
    except NoirLintError as e:
        console.print(f"[yellow]⚠ {e}[/yellow]", highlight=False)
    else:
        names = ", ".join(member.name for member in workspace.members) or "none"
        console.print(f"[green]✓ Manifest found at {manifest} (packages: {names})[/green]")
        try:
            discover_config(manifest.parent)
        except NoirLintError as e:
            console.print(f"[red]✗ {e}[/red]", highlight=False)
            raise typer.Exit(EXIT_USAGE)
        if (manifest.parent / CONFIG_FILE_NAME).is_file():
            console.print(f"[green]✓ {CONFIG_FILE_NAME} is valid[/green]")
        else:
            console.print(f"[green]✓ No {CONFIG_FILE_NAME}, using defaults[/green]")

    console.print("\n[green]✓ System check complete[/green]")


if __name__ == "__main__":
    app()
