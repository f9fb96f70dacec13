"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from grib_fetch import __version__
from grib_fetch.core.download_manager import DownloadManager
from grib_fetch.core.index_parser import parse_index, parse_index_file
from grib_fetch.exceptions import GribFetchError, TransferError
from grib_fetch.models.config import DEFAULT_TIMEOUT_S
from grib_fetch.net.http import create_session, fetch_index_text
from grib_fetch.storage.config_manager import EXAMPLE_PARAMETERS, ConfigManager

from .formatters import (
    format_error_with_suggestions,
    print_inventory_table,
    print_plan_table,
    print_summary_panel,
    print_validation_table,
)
from .progress_manager import ProgressManager

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("grib_fetch")

app = typer.Typer(
    name="grib-fetch",
    help=(
        "Download selected GRIB2 records using the .idx inventory and concurrent"
        " HTTP range requests."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-v for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
):
    """GRIB range downloader"""
    if version:
        console.print(f"[bold]grib-fetch[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "DEBUG" if verbose >= 1 else "INFO"
    logging.getLogger("grib_fetch").setLevel(log_level)

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


def _fail(error: Exception) -> typer.Exit:
    console.print()
    console.print(format_error_with_suggestions(error))
    return typer.Exit(code=1)


@app.command()
def init(
    config_file: Path = typer.Argument(..., help="Where to write the configuration."),
    idx_url: str = typer.Argument(..., help="URL of the GRIB2 .idx file."),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing file without asking."
    ),
):
    """Write a starter configuration file."""
    if (
        config_file.exists()
        and not force
        and not typer.confirm(f"'{config_file}' already exists. Overwrite it?")
    ):
        raise typer.Abort()

    try:
        ConfigManager(config_file).save_new_config(
            {"idx_url": idx_url, "parameters": EXAMPLE_PARAMETERS}
        )
    except GribFetchError as e:
        raise _fail(e) from e

    console.print(
        f"[bold green]✓ Configuration saved to '{config_file}'[/bold green]"
    )
    console.print(
        f"Edit the parameters, then run: [cyan]grib-fetch download {config_file}[/cyan]"
    )


@app.command()
def validate(
    config_file: Path = typer.Argument(..., help="Path to the JSON configuration."),
):
    """Validate a configuration file."""
    try:
        config = ConfigManager(config_file).load_config()
    except GribFetchError as e:
        console.print(f"[red]✗ Configuration is invalid: {e}[/red]")
        raise typer.Exit(code=1) from e
    print_validation_table(config, console)


@app.command()
def inventory(
    source: str = typer.Argument(..., help="URL or local path of a .idx file."),
    parameters: list[str] | None = typer.Option(  # noqa: B008
        None, "--param", "-p", help="Only show these parameters (repeatable)."
    ),
    timeout: float = typer.Option(
        DEFAULT_TIMEOUT_S, "--timeout", "-t", help="Request timeout in seconds."
    ),
):
    """List the records described by an index file."""

    async def _load():
        async with create_session() as session:
            return parse_index(await fetch_index_text(session, source, timeout))

    try:
        if source.startswith(("http://", "https://")):
            entries = asyncio.run(_load())
        else:
            entries = parse_index_file(source)
    except GribFetchError as e:
        raise _fail(e) from e

    if parameters:
        wanted = set(parameters)
        entries = [e for e in entries if e.parameter_name in wanted]
    print_inventory_table(entries, console)


@app.command(name="download")
def download_command(
    config_file: Path = typer.Argument(..., help="Path to the JSON configuration."),
    output_dir: str | None = typer.Option(
        None, "-o", "--output-dir", help="Directory for the downloaded files."
    ),
    filename: str | None = typer.Option(
        None, "--filename", help="Name of the GRIB file (default: from the URL)."
    ),
    timeout: float | None = typer.Option(
        None, "-t", "--timeout", help="Per-request timeout in seconds."
    ),
    keep_index: bool | None = typer.Option(
        None,
        "--keep-index/--no-keep-index",
        help="Save the downloaded .idx file next to the GRIB file.",
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Compute and print the ranges without downloading."
    ),
):
    """Download the configured records of a GRIB2 file."""
    cli_options = {
        key: value
        for key, value in {
            "output_dir": output_dir,
            "output_filename": filename,
            "timeout": timeout,
            "keep_index": keep_index,
        }.items()
        if value is not None
    }
    cli_options["dry_run"] = dry_run

    async def _download_async():
        config = ConfigManager(config_file).load_config(cli_options)

        async with create_session() as session:
            manager = DownloadManager(config, session)
            entries = await manager.load_index()
            plan = manager.plan(entries)

            if plan.is_empty:
                log.warning(
                    "[yellow]⚠ No index records matched the requested parameters."
                    " Nothing to download.[/yellow]"
                )
                return

            print_plan_table(plan, console)
            if config.dry_run:
                console.print("[bold cyan]Dry run: no data downloaded.[/bold cyan]")
                return

            start_time = time.monotonic()
            failed = None
            async with ProgressManager(console=console) as progress_manager:
                manager.progress_manager = progress_manager
                try:
                    await manager.execute(plan)
                except TransferError as e:
                    failed = e
                progress_stats = progress_manager.get_statistics()

            duration = time.monotonic() - start_time
            print_summary_panel(
                manager.stats, duration, plan.destination, progress_stats, console
            )
            if failed:
                raise failed
            log.info("[green]✓ Download completed successfully[/green]")

    try:
        asyncio.run(_download_async())
    except GribFetchError as e:
        raise _fail(e) from e
