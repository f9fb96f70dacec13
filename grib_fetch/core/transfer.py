"""
Runs a TransferPlan: sizes the destination file, fetches every range
concurrently and aggregates the per-range outcomes.
"""

import asyncio
import enum
import logging
from pathlib import Path

import aiofiles
from rich.markup import escape

from grib_fetch.cli.progress_manager import ProgressManager
from grib_fetch.exceptions import PreallocationError, TransferError
from grib_fetch.models.index import ByteRange, TransferPlan
from grib_fetch.models.stats import RangeResult, TransferResult, TransferStats
from grib_fetch.net.range_fetcher import RangeFetcher

log = logging.getLogger(__name__)


class TransferState(enum.Enum):
    INIT = "init"
    FILE_PREALLOCATED = "file_preallocated"
    RANGES_IN_FLIGHT = "ranges_in_flight"
    COMPLETED = "completed"
    FAILED = "failed"


class TransferOrchestrator:
    """
    Downloads all ranges of a plan into one pre-sized file.

    Every range is fetched by its own task and all tasks are started together.
    A failing range never cancels the others; once all tasks have finished,
    any failures are raised together as a TransferError. Ranges that did
    succeed stay written and the partial file is left on disk.

    An orchestrator runs a single plan once.
    """

    def __init__(
        self,
        plan: TransferPlan,
        fetcher: RangeFetcher,
        stats: TransferStats | None = None,
        progress_manager: ProgressManager | None = None,
    ):
        self.plan = plan
        self.fetcher = fetcher
        self.stats = stats
        self.progress_manager = progress_manager
        self.state = TransferState.INIT
        self._write_lock = asyncio.Lock()

    async def run(self) -> TransferResult:
        """
        Executes the plan.

        Returns:
            The TransferResult describing every range written.

        Raises:
            PreallocationError: If the destination cannot be created or sized.
            TransferError: If one or more ranges failed.
        """
        if self.state is not TransferState.INIT:
            raise RuntimeError(f"Transfer already ran (state: {self.state.value}).")

        destination = self.plan.destination
        if self.plan.is_empty:
            log.info("Transfer plan is empty. Nothing to download.")
            self.state = TransferState.COMPLETED
            return TransferResult(destination=destination, file_size=0, results=())

        file_size = self.plan.max_end + 1
        await self._preallocate(destination, file_size)

        if self.stats:
            self.stats.ranges_total = len(self.plan.ranges)
            self.stats.bytes_planned = self.plan.total_size
        if self.progress_manager:
            self.progress_manager.initialize_session(
                len(self.plan.ranges), self.plan.total_size
            )

        self.state = TransferState.RANGES_IN_FLIGHT
        tasks = [
            self._fetch_range(i, byte_range)
            for i, byte_range in enumerate(self.plan.ranges, start=1)
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            self.state = TransferState.FAILED
            raise

        failures = [result for result in results if not result.ok]
        if failures:
            self.state = TransferState.FAILED
            raise TransferError(failures)

        self.state = TransferState.COMPLETED
        log.debug(f"All {len(results)} ranges written to '{destination}'.")
        return TransferResult(
            destination=destination, file_size=file_size, results=tuple(results)
        )

    async def _preallocate(self, destination: str, file_size: int) -> None:
        """Creates or truncates the destination and extends it to ``file_size``."""
        try:
            async with aiofiles.open(destination, "wb") as f:
                await f.truncate(file_size)
        except OSError as e:
            self.state = TransferState.FAILED
            raise PreallocationError(
                f"Error pre-allocating '{destination}' to {file_size} bytes: {e}"
            ) from e

        self.state = TransferState.FILE_PREALLOCATED
        log.debug(f"Pre-allocated '{Path(destination).name}' to {file_size} bytes.")

    async def _fetch_range(self, index: int, byte_range: ByteRange) -> RangeResult:
        task_id = None
        try:
            if self.progress_manager:
                task_id = self.progress_manager.add_range_task(index, byte_range)
            written = await self.fetcher.fetch(
                self.plan.source_url,
                byte_range,
                self.plan.destination,
                self._write_lock,
                task_id=task_id,
                allow_short=byte_range.end == self.plan.max_end,
            )
            result = RangeResult(byte_range, bytes_written=written)
        except Exception as e:
            log.error(
                f"[red]✗ Range {index} ({byte_range}) failed: "
                f"{escape(str(e) or type(e).__name__)}[/red]"
            )
            result = RangeResult(byte_range, error=e)

        if self.stats:
            self.stats.record(result)
        if self.progress_manager:
            self.progress_manager.remove_task(task_id, success=result.ok)
        return result
