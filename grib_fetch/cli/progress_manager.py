"""
Manages a Rich Live display for concurrent range downloads.
Shows overall progress, one bar per in-flight range and running statistics.
"""

import asyncio
from datetime import datetime

from rich.console import Console, Group
from rich.live import Live
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.table import Table
from rich.text import Text

from grib_fetch.models.index import ByteRange
from grib_fetch.utils.formatting import format_size


class ProgressManager:
    """Live progress display with one task per byte range."""

    def __init__(self, console: Console):
        self.console = console

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=20),
            "[progress.percentage]{task.percentage:>3.0f}%",
            "•",
            DownloadColumn(),
            "•",
            TransferSpeedColumn(),
            "•",
            TimeRemainingColumn(),
            console=console,
            transient=False,
        )

        self.overall_progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=40),
            "[progress.percentage]{task.percentage:>3.0f}%",
            DownloadColumn(),
            console=console,
        )

        self._live: Live | None = None
        self._overall_task_id: TaskID | None = None
        self._active_tasks: dict[TaskID, int] = {}
        self._finished_bytes = 0

        self._stats = {
            "total_ranges": 0,
            "completed": 0,
            "failed": 0,
            "active_downloads": 0,
            "peak_concurrent": 0,
            "total_size": 0,
            "start_time": None,
        }

    def _generate_stats_panel(self) -> Panel:
        stats_table = Table.grid(padding=(0, 2))
        stats_table.add_column(style="bold cyan", justify="right")
        stats_table.add_column(style="white")
        stats_table.add_column(style="bold cyan", justify="right")
        stats_table.add_column(style="white")
        remaining = (
            self._stats["total_ranges"]
            - self._stats["completed"]
            - self._stats["failed"]
        )
        stats_table.add_row(
            "Completed:",
            f"[green]{self._stats['completed']}[/green]",
            "Failed:",
            f"[red]{self._stats['failed']}[/red]",
        )
        stats_table.add_row(
            "Active:",
            f"[cyan]{self._stats['active_downloads']}[/cyan]",
            "Remaining:",
            f"[cyan]{remaining}[/cyan]",
        )
        stats_table.add_row(
            "Planned:",
            f"[magenta]{format_size(self._stats['total_size'])}[/magenta]",
            "Peak:",
            f"[magenta]{self._stats['peak_concurrent']}[/magenta]",
        )
        return Panel(
            Group(stats_table, Text(""), self.overall_progress),
            title="[bold]📊 Transfer Statistics[/bold]",
            border_style="blue",
        )

    def _generate_progress_panel(self) -> Panel:
        if not self._active_tasks:
            return Panel(
                Text(
                    "Waiting for ranges to start...",
                    style="dim italic",
                    justify="center",
                ),
                title="[bold]📥 Active Ranges[/bold]",
                border_style="green",
            )
        return Panel(
            self.progress,
            title=f"[bold]📥 Active Ranges ({len(self._active_tasks)})[/bold]",
            border_style="green",
        )

    def _render(self) -> Group:
        return Group(self._generate_stats_panel(), self._generate_progress_panel())

    def _update_display(self):
        if self._live:
            self._live.update(self._render())

    def initialize_session(self, total_ranges: int, total_size: int):
        self._stats["total_ranges"] = total_ranges
        self._stats["total_size"] = total_size
        self._stats["start_time"] = datetime.now()
        self._overall_task_id = self.overall_progress.add_task(
            "Overall Progress", total=total_size, start=True
        )
        self._update_display()

    def add_range_task(self, index: int, byte_range: ByteRange) -> TaskID:
        task_id = self.progress.add_task(
            f"Range {index}: {byte_range} [dim]{format_size(byte_range.size)}[/dim]",
            total=byte_range.size,
            start=True,
        )
        self._active_tasks[task_id] = 0
        self._stats["active_downloads"] = len(self._active_tasks)
        self._stats["peak_concurrent"] = max(
            self._stats["peak_concurrent"], self._stats["active_downloads"]
        )
        self._update_display()
        return task_id

    def update_task_progress(self, task_id: TaskID, completed: int):
        if task_id is None:
            return
        self.progress.update(task_id, completed=completed)
        if task_id in self._active_tasks:
            self._active_tasks[task_id] = completed
        if self._overall_task_id is not None:
            self.overall_progress.update(
                self._overall_task_id, completed=self._overall_completed()
            )

    def remove_task(self, task_id: TaskID | None, success: bool = True):
        if success:
            self._stats["completed"] += 1
        else:
            self._stats["failed"] += 1
        if task_id is None:
            return
        try:
            self.progress.remove_task(task_id)
        except KeyError:
            pass
        self._finished_bytes += self._active_tasks.pop(task_id, 0)
        self._stats["active_downloads"] = len(self._active_tasks)
        self._update_display()

    def _overall_completed(self) -> int:
        return self._finished_bytes + sum(self._active_tasks.values())

    def get_statistics(self) -> dict:
        return self._stats.copy()

    async def __aenter__(self):
        self._live = Live(
            self._render(),
            console=self.console,
            refresh_per_second=12,
            vertical_overflow="visible",
        )
        self._live.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._live:
            await asyncio.sleep(0.2)
            self._live.stop()
            self._live = None
