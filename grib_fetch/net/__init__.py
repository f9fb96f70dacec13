"""
Network Layer.

This package owns every HTTP interaction: creating the aiohttp session,
downloading the .idx file and fetching individual byte ranges.
"""

from .http import create_session, fetch_index_text
from .range_fetcher import RangeFetcher

__all__ = ["RangeFetcher", "create_session", "fetch_index_text"]
