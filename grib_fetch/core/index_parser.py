"""
Parses GRIB2 .idx inventory text into an ordered list of IndexEntry records.

Each line looks like ``1:0:d=2024010100:PRMSL:mean sea level:anl:`` and the
parser is deliberately lenient: lines that do not carry at least six fields
or whose sequence number and offset are not plain decimal integers are
skipped. Offsets must be non-negative.
"""

import logging
import re
from collections.abc import Iterable
from pathlib import Path

from grib_fetch.exceptions import IndexParseError
from grib_fetch.models.index import IndexEntry

log = logging.getLogger(__name__)

FIELD_SEPARATOR = ":"
MIN_FIELDS = 6
DATE_PREFIX = "d="

# ASCII digits only; int() would also take "1_000", " 7" and non-Latin digits.
SEQUENCE_PATTERN = re.compile(r"[+-]?[0-9]+")
OFFSET_PATTERN = re.compile(r"[0-9]+")


def parse_line(line: str) -> IndexEntry | None:
    """Parses a single index line, returning None if it is malformed."""
    parts = line.rstrip("\r\n").split(FIELD_SEPARATOR)
    if len(parts) < MIN_FIELDS:
        return None
    if not SEQUENCE_PATTERN.fullmatch(parts[0]):
        return None
    if not OFFSET_PATTERN.fullmatch(parts[1]):
        return None
    number = int(parts[0])
    offset = int(parts[1])

    return IndexEntry(
        sequence_number=number,
        byte_offset=offset,
        date=parts[2].removeprefix(DATE_PREFIX),
        parameter_name=parts[3],
        level=parts[4],
        record_kind=parts[5],
    )


def parse_index(source: str | Iterable[str]) -> list[IndexEntry]:
    """
    Parses index content into entries, preserving line order.

    Args:
        source: The full index text, or any iterable of lines.

    Returns:
        The well-formed entries in the order they appear.
    """
    lines = source.splitlines() if isinstance(source, str) else source
    entries = []
    skipped = 0
    for line in lines:
        entry = parse_line(line)
        if entry is None:
            if line.strip():
                skipped += 1
            continue
        entries.append(entry)

    if skipped:
        log.debug(f"Skipped {skipped} malformed index lines.")
    log.debug(f"Parsed {len(entries)} index entries.")
    return entries


def parse_index_file(path: str | Path) -> list[IndexEntry]:
    """
    Reads and parses a local .idx file.

    Raises:
        IndexParseError: If the file cannot be opened or decoded.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            return parse_index(f)
    except (OSError, UnicodeDecodeError) as e:
        raise IndexParseError(f"Error reading idx file '{path}': {e}") from e
