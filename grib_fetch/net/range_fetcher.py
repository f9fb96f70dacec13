"""
Fetches a single byte range over HTTP and writes it in place into the
destination file.
"""

import asyncio
import logging
from pathlib import Path

import aiofiles
import aiohttp
from rich.progress import TaskID

from grib_fetch.cli.progress_manager import ProgressManager
from grib_fetch.exceptions import RangeFetchError
from grib_fetch.models.config import DEFAULT_TIMEOUT_S
from grib_fetch.models.index import ByteRange
from grib_fetch.models.stats import TransferStats

log = logging.getLogger(__name__)

HTTP_PARTIAL_CONTENT = 206


class RangeFetcher:
    """Downloads one ``Range`` request at a time into a pre-sized file."""

    CHUNK_SIZE = 262144  # 256 KB

    def __init__(
        self,
        session: aiohttp.ClientSession,
        timeout: float = DEFAULT_TIMEOUT_S,
        stats: TransferStats | None = None,
        progress_manager: ProgressManager | None = None,
    ):
        self.session = session
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.stats = stats
        self.progress_manager = progress_manager

    async def fetch(
        self,
        url: str,
        byte_range: ByteRange,
        destination: str | Path,
        write_lock: asyncio.Lock,
        task_id: TaskID | None = None,
        allow_short: bool = False,
    ) -> int:
        """
        Fetches ``byte_range`` of ``url`` and writes it at offset
        ``byte_range.start`` of ``destination``.

        Only the final range of a plan is padded past the end of the file, so
        ``allow_short`` should be set for it alone; a short body for any other
        range is logged.

        The network phase is bounded by the per-request timeout. The write
        happens afterwards, inside ``write_lock``, so that only one writer has
        the destination open at a time.

        Returns:
            The number of bytes written.

        Raises:
            RangeFetchError: If the server does not answer with 206.
            aiohttp.ClientError, asyncio.TimeoutError: On transport failure.
            OSError: If the destination cannot be written.
        """
        data = await self._download(url, byte_range, task_id)
        if len(data) < byte_range.size and not allow_short:
            log.warning(
                f"Server returned {len(data)} bytes for range {byte_range} "
                f"({byte_range.size} requested); the rest stays zero-filled."
            )

        async with write_lock:
            async with aiofiles.open(destination, "r+b") as f:
                await f.seek(byte_range.start)
                await f.write(data)

        log.debug(f"Wrote {len(data)} bytes at offset {byte_range.start}.")
        return len(data)

    async def _download(
        self, url: str, byte_range: ByteRange, task_id: TaskID | None
    ) -> bytes:
        headers = {"Range": byte_range.header_value}
        async with self.session.get(
            url, headers=headers, timeout=self.timeout
        ) as response:
            if response.status != HTTP_PARTIAL_CONTENT:
                raise RangeFetchError(
                    f"unexpected status code: {response.status}",
                    status=response.status,
                )

            buffer = bytearray()
            async for chunk in response.content.iter_chunked(self.CHUNK_SIZE):
                buffer.extend(chunk)
                if self.stats:
                    await self.stats.add_received(len(chunk))
                if self.progress_manager and task_id is not None:
                    self.progress_manager.update_task_progress(
                        task_id, completed=len(buffer)
                    )

        # A body longer than requested would spill into the next range.
        if len(buffer) > byte_range.size:
            log.warning(
                f"Server returned {len(buffer)} bytes for range {byte_range} "
                f"({byte_range.size} requested); extra bytes discarded."
            )
            del buffer[byte_range.size :]
        return bytes(buffer)
