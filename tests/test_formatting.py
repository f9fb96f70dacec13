import pytest

from grib_fetch.utils.formatting import format_duration, format_megabytes, format_size


@pytest.mark.parametrize(
    "size, expected",
    [(0, "0 B"), (512, "512.0 B"), (1536, "1.5 KB"), (1048576 * 3, "3.0 MB")],
)
def test_format_size(size, expected):
    assert format_size(size) == expected


def test_format_megabytes():
    assert format_megabytes(1048577) == "1.00 MB"
    assert format_megabytes(1572864) == "1.50 MB"


@pytest.mark.parametrize(
    "seconds, expected", [(0, "0s"), (59, "59s"), (61, "1m 1s"), (3600, "1h")]
)
def test_format_duration(seconds, expected):
    assert format_duration(seconds) == expected
