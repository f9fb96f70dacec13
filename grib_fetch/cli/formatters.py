"""
Functions for formatting and displaying data in the console using Rich.
"""

from collections.abc import Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from grib_fetch.models.config import FetchConfig
from grib_fetch.models.index import IndexEntry, TransferPlan
from grib_fetch.models.stats import TransferStats
from grib_fetch.utils.formatting import format_duration, format_megabytes, format_size


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ConfigurationError": [
            "• Check the JSON syntax of your configuration file.",
            "• Run `grib-fetch validate <CONFIG>` to see what is wrong.",
            "• Create a starter file with `grib-fetch init <CONFIG> <IDX_URL>`.",
        ],
        "IndexDownloadError": [
            "• Verify that the idx_url exists; model runs are published late.",
            "• Older cycles may have been removed from the server.",
            "• Check your internet connection.",
        ],
        "IndexParseError": [
            "• The index file may be truncated or not a GRIB2 .idx file.",
        ],
        "TransferError": [
            "• The partial file was left on disk; delete it before retrying.",
            "• The server must support HTTP Range requests (status 206).",
            "• Try a larger `--timeout` on slow connections.",
        ],
        "PreallocationError": [
            "• Check that the output directory is writable.",
            "• Check the free disk space.",
        ],
        "TimeoutError": [
            "• A request timed out, which may indicate network throttling.",
            "• Try a larger `--timeout`.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -v for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    suggestion_text = Text("\n".join(suggestions))

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(suggestion_text)

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_plan_table(plan: TransferPlan, console: Console | None = None):
    """Displays every range of a plan with its size and the total."""
    console = console or Console()
    table = Table(title="Download ranges", box=box.SIMPLE_HEAVY)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")
    table.add_column("Size", justify="right", style="cyan")

    for i, byte_range in enumerate(plan.ranges, 1):
        table.add_row(
            str(i),
            str(byte_range.start),
            str(byte_range.end),
            format_megabytes(byte_range.size),
        )

    console.print(table)
    console.print(
        f"[bold]Total download size:[/bold] "
        f"[cyan]{format_megabytes(plan.total_size)}[/cyan]"
    )


def print_inventory_table(
    entries: Sequence[IndexEntry], console: Console | None = None
):
    """Displays the records of a parsed index."""
    console = console or Console()
    table = Table(box=box.SIMPLE)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Offset", justify="right")
    table.add_column("Date", style="dim")
    table.add_column("Parameter", style="bold cyan")
    table.add_column("Level")
    table.add_column("Kind", style="dim")

    for entry in entries:
        table.add_row(
            str(entry.sequence_number),
            str(entry.byte_offset),
            entry.date,
            entry.parameter_name,
            entry.level,
            entry.record_kind,
        )

    console.print(table)
    console.print(f"[dim]{len(entries)} records[/dim]")


def print_validation_table(config: FetchConfig, console: Console | None = None):
    """Displays a summary of the current settings."""
    console = console or Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("Index URL:", config.idx_url)
    table.add_row("GRIB URL:", f"[dim]{config.grib_url}[/dim]")
    table.add_row("Output File:", str(config.destination_path))
    table.add_row("Timeout:", f"{config.timeout:g}s")
    for name, levels in config.parameters.items():
        levels_text = ", ".join(levels) if levels else "[dim]all levels[/dim]"
        table.add_row(f"{name}:", levels_text)

    console.print(
        Panel(
            table,
            title="[bold green]✓ Validated Settings[/bold green]",
            border_style="green",
        )
    )


def print_summary_panel(
    stats: TransferStats,
    duration_s: float,
    destination: str,
    progress_stats: dict | None = None,
    console: Console | None = None,
):
    """Displays the final summary of a transfer."""
    console = console or Console()

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=16)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row(
        "✓ Ranges:",
        f"[bold green]{stats.ranges_completed}[/bold green]/{stats.ranges_total}",
    )
    if stats.ranges_failed > 0:
        stats_table.add_row(
            "✗ Failed:", f"[bold red]{stats.ranges_failed}[/bold red]"
        )

    stats_table.add_row("", "")  # Spacer
    stats_table.add_row(
        "Written:", f"[cyan]{format_size(stats.bytes_written)}[/cyan]"
    )
    stats_table.add_row("Planned:", f"[dim]{format_size(stats.bytes_planned)}[/dim]")

    avg_speed = stats.bytes_received / duration_s if duration_s > 0 else 0
    stats_table.add_row(
        "Avg. Speed:", f"[magenta]{format_size(int(avg_speed))}/s[/magenta]"
    )
    if stats.peak_speed_bps > 0:
        stats_table.add_row(
            "Peak Speed:",
            f"[magenta]{format_size(int(stats.peak_speed_bps))}/s[/magenta]",
        )
    stats_table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")

    if progress_stats:
        stats_table.add_row(
            "Peak Concurrent:",
            f"[green]{progress_stats.get('peak_concurrent', 0)}[/green]",
        )
    stats_table.add_row("Output:", f"[dim]{destination}[/dim]")

    if stats.ranges_failed:
        title = "⚠ [bold]Download Incomplete[/bold]"
        border_color = "red"
    else:
        title = "🌦 [bold]Download Complete![/bold]"
        border_color = "green"

    console.print()
    console.print(
        Panel(
            stats_table,
            title=title,
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
    console.print()
