import re

import pytest
from aioresponses import CallbackResult

from grib_fetch.models.index import IndexEntry

GRIB_URL = "https://nomads.example.gov/gfs.20240101/00/atmos/gfs.t00z.pgrb2.0p25.f000"
IDX_URL = GRIB_URL + ".idx"

SAMPLE_IDX = """\
1:0:d=2024010100:PRMSL:mean sea level:anl:
2:1000:d=2024010100:CLWMR:1 hybrid level:anl:
3:1800:d=2024010100:TMP:2 m above ground:anl:
4:2600:d=2024010100:TMP:850 mb:anl:
5:3500:d=2024010100:UGRD:10 m above ground:anl:
6:4200:d=2024010100:VGRD:10 m above ground:anl:
"""


def make_entry(offset, parameter="TMP", level="surface", number=1):
    return IndexEntry(
        sequence_number=number,
        byte_offset=offset,
        date="2024010100",
        parameter_name=parameter,
        level=level,
        record_kind="anl",
    )


def make_grib_bytes(size: int) -> bytes:
    return bytes(i % 251 for i in range(size))


def range_callback(data: bytes, failing_starts: set[int] | None = None):
    """Serves ``Range`` requests out of ``data`` like a static file server."""
    failing_starts = failing_starts or set()

    def _callback(url, **kwargs):
        range_header = kwargs.get("headers", {}).get("Range", "")
        match = re.match(r"bytes=(\d+)-(\d+)", range_header)
        if not match:
            return CallbackResult(status=200, body=data)
        start, end = int(match.group(1)), int(match.group(2))
        if start in failing_starts:
            return CallbackResult(status=503, body=b"unavailable")
        chunk = data[start : end + 1]
        return CallbackResult(
            status=206,
            body=chunk,
            headers={
                "Content-Range": f"bytes {start}-{start + len(chunk) - 1}/{len(data)}"
            },
        )

    return _callback


@pytest.fixture
def sample_idx_text():
    return SAMPLE_IDX


@pytest.fixture
def grib_bytes():
    return make_grib_bytes(6000)
