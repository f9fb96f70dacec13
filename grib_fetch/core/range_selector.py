"""
Turns parsed index entries and a selection request into the minimal set of
byte ranges that cover every selected GRIB message.
"""

import logging
from collections.abc import Iterable, Sequence

from grib_fetch.models.index import (
    ByteRange,
    IndexEntry,
    SelectionRequest,
    TransferPlan,
)

log = logging.getLogger(__name__)

# The index does not record where the last message ends, so the range for the
# final entry is padded by this much. Servers clamp it to the real file size.
TRAILING_BUFFER = 1024 * 1024


def provisional_ranges(
    entries: Sequence[IndexEntry], request: SelectionRequest
) -> list[ByteRange]:
    """
    Computes one range per selected entry, in entry order.

    A selected entry ends one byte before the next entry of the whole index
    starts, whether or not that next entry is selected itself. Entries that
    share an offset with their successor extend to the next distinct offset.
    """
    ranges = []
    for i, entry in enumerate(entries):
        if not request.matches(entry):
            continue

        next_offset = _next_distinct_offset(entries, i)
        if next_offset is not None:
            end = next_offset - 1
        else:
            end = entry.byte_offset + TRAILING_BUFFER

        ranges.append(ByteRange(entry.byte_offset, end))
    return ranges


def _next_distinct_offset(entries: Sequence[IndexEntry], i: int) -> int | None:
    start = entries[i].byte_offset
    for following in entries[i + 1 :]:
        if following.byte_offset > start:
            return following.byte_offset
    return None


def merge_ranges(ranges: Iterable[ByteRange]) -> list[ByteRange]:
    """
    Coalesces overlapping or adjacent ranges.

    The input must be sorted by start. The output is sorted, pairwise
    non-overlapping and separated by gaps of at least one byte.
    """
    merged: list[ByteRange] = []
    for current in ranges:
        if merged and current.start <= merged[-1].end + 1:
            last = merged[-1]
            if current.end > last.end:
                merged[-1] = ByteRange(last.start, current.end)
        else:
            merged.append(current)
    return merged


def select_ranges(
    entries: Sequence[IndexEntry], request: SelectionRequest
) -> list[ByteRange]:
    """Returns the merged ranges needed to fetch every selected entry."""
    provisional = provisional_ranges(entries, request)
    merged = merge_ranges(provisional)
    log.debug(
        f"Selected {len(provisional)} of {len(entries)} index entries, "
        f"merged into {len(merged)} ranges."
    )
    return merged


def build_plan(
    entries: Sequence[IndexEntry],
    request: SelectionRequest,
    source_url: str,
    destination: str,
) -> TransferPlan:
    """Builds the immutable TransferPlan for a selection."""
    return TransferPlan(
        ranges=tuple(select_ranges(entries, request)),
        source_url=source_url,
        destination=str(destination),
    )
