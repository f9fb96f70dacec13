"""
Creates HTTP sessions and downloads the small .idx inventory file.
"""

import asyncio
import logging
from pathlib import Path

import aiofiles
import aiohttp

from grib_fetch import __version__
from grib_fetch.exceptions import IndexDownloadError, IndexParseError

log = logging.getLogger(__name__)

USER_AGENT = f"grib-fetch/{__version__}"


def create_session(max_connections: int = 0) -> aiohttp.ClientSession:
    """
    Creates the aiohttp ClientSession used for one run.

    The caller owns the session and must close it. Timeouts are applied per
    request rather than on the session.

    Args:
        max_connections: Connection pool limit, 0 for no limit.
    """
    connector = aiohttp.TCPConnector(
        limit=max_connections,
        ttl_dns_cache=600,  # 10 minutes
        keepalive_timeout=30,
        enable_cleanup_closed=True,
    )
    log.debug(f"Created HTTP session with connection limit={max_connections}")
    return aiohttp.ClientSession(
        connector=connector,
        timeout=aiohttp.ClientTimeout(total=None),
        headers={"User-Agent": USER_AGENT},
    )


async def fetch_index_text(
    session: aiohttp.ClientSession, url: str, timeout: float
) -> str:
    """
    Downloads the .idx file and returns its text.

    Raises:
        IndexDownloadError: On transport failure or any status other than 200.
        IndexParseError: If the body is not UTF-8 text.
    """
    try:
        async with session.get(
            url, timeout=aiohttp.ClientTimeout(total=timeout)
        ) as response:
            if response.status != 200:
                raise IndexDownloadError(
                    f"Unexpected status code {response.status} for '{url}'."
                )
            text = await response.text(encoding="utf-8")
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise IndexDownloadError(f"Error downloading idx file '{url}': {e}") from e
    except UnicodeDecodeError as e:
        raise IndexParseError(f"Index '{url}' is not valid UTF-8 text: {e}") from e

    log.debug(f"Downloaded index '{url}' ({len(text)} characters).")
    return text


async def save_index_text(text: str, path: str | Path) -> None:
    """Writes the index text to disk next to the GRIB output."""
    async with aiofiles.open(path, "w", encoding="utf-8") as f:
        await f.write(text)
    log.debug(f"Saved index to '{path}'.")
