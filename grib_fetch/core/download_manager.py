"""
The main orchestrator for one configured download: fetches the index, builds
the transfer plan and hands it to the TransferOrchestrator.
"""

import logging
from pathlib import Path

import aiohttp
from rich.markup import escape

from grib_fetch.cli.progress_manager import ProgressManager
from grib_fetch.models.config import FetchConfig
from grib_fetch.models.index import IndexEntry, TransferPlan
from grib_fetch.models.stats import TransferResult, TransferStats
from grib_fetch.net.http import fetch_index_text, save_index_text
from grib_fetch.net.range_fetcher import RangeFetcher

from .index_parser import parse_index
from .range_selector import build_plan
from .transfer import TransferOrchestrator

log = logging.getLogger(__name__)


class DownloadManager:
    """Coordinates the index download, range selection and transfer."""

    def __init__(
        self,
        config: FetchConfig,
        session: aiohttp.ClientSession,
        progress_manager: ProgressManager | None = None,
    ):
        self.config = config
        self.session = session
        self.progress_manager = progress_manager
        self.stats = TransferStats()

    async def load_index(self) -> list[IndexEntry]:
        """Downloads and parses the configured .idx file."""
        log.info(
            f"Downloading idx file: [cyan]{escape(self.config.idx_filename)}[/cyan]"
        )
        text = await fetch_index_text(
            self.session, self.config.idx_url, self.config.timeout
        )
        if self.config.keep_index and not self.config.dry_run:
            Path(self.config.output_dir).mkdir(parents=True, exist_ok=True)
            await save_index_text(text, self.config.index_path)
        return parse_index(text)

    def plan(self, entries: list[IndexEntry]) -> TransferPlan:
        """Selects the configured parameters from the parsed index."""
        plan = build_plan(
            entries,
            self.config.selection(),
            source_url=self.config.grib_url,
            destination=str(self.config.destination_path),
        )
        self.stats.ranges_total = len(plan.ranges)
        self.stats.bytes_planned = plan.total_size
        return plan

    async def execute(self, plan: TransferPlan) -> TransferResult:
        """
        Fetches every range of the plan into the destination file.

        Raises:
            PreallocationError, TransferError: See TransferOrchestrator.run.
        """
        if not plan.is_empty:
            Path(plan.destination).parent.mkdir(parents=True, exist_ok=True)
            log.info(
                f"Downloading GRIB data to: [cyan]{escape(plan.destination)}[/cyan]"
            )
        fetcher = RangeFetcher(
            self.session,
            timeout=self.config.timeout,
            stats=self.stats,
            progress_manager=self.progress_manager,
        )
        orchestrator = TransferOrchestrator(
            plan, fetcher, stats=self.stats, progress_manager=self.progress_manager
        )
        return await orchestrator.run()
