import random

import pytest

from grib_fetch.core.index_parser import parse_index
from grib_fetch.core.range_selector import (
    TRAILING_BUFFER,
    build_plan,
    merge_ranges,
    provisional_ranges,
    select_ranges,
)
from grib_fetch.models.index import ByteRange, SelectionRequest

from .conftest import make_entry


def request(mapping):
    return SelectionRequest.from_mapping(mapping)


def test_whole_parameter_with_last_entry_buffer():
    entries = [
        make_entry(0, "A", "sfc"),
        make_entry(1000, "B", "sfc"),
        make_entry(2500, "A", "850mb"),
    ]
    ranges = select_ranges(entries, request({"A": []}))
    assert ranges == [ByteRange(0, 999), ByteRange(2500, 2500 + TRAILING_BUFFER)]

    plan = build_plan(entries, request({"A": []}), "http://x/f", "f")
    assert plan.total_size == 1000 + (1048576 + 1)


def test_excluded_entry_leaves_gap():
    entries = [
        make_entry(0, "A"),
        make_entry(500, "B"),
        make_entry(600, "A"),
        make_entry(900, "C"),
    ]
    ranges = select_ranges(entries, request({"A": []}))
    assert ranges == [ByteRange(0, 499), ByteRange(600, 899)]
    covered = {o for r in ranges for o in range(r.start, r.end + 1)}
    assert not covered & set(range(500, 600))


def test_consecutive_entries_are_merged():
    entries = [make_entry(0, "A"), make_entry(500, "A"), make_entry(600, "B")]
    assert select_ranges(entries, request({"A": []})) == [ByteRange(0, 599)]


def test_level_filter():
    entries = parse_index(
        "1:0:d=2024010100:TMP:2 m above ground:anl:\n"
        "2:100:d=2024010100:TMP:850 mb:anl:\n"
        "3:200:d=2024010100:TMP:500 mb:anl:\n"
        "4:300:d=2024010100:RH:850 mb:anl:\n"
    )
    ranges = select_ranges(entries, request({"TMP": ["500 mb", "2 m above ground"]}))
    assert ranges == [ByteRange(0, 99), ByteRange(200, 299)]


def test_unknown_parameter_yields_empty_plan():
    entries = [make_entry(0, "A"), make_entry(100, "B")]
    plan = build_plan(entries, request({"NOPE": []}), "http://x/f", "f")
    assert plan.ranges == ()
    assert plan.total_size == 0
    assert plan.is_empty
    assert plan.max_end is None


def test_unknown_level_yields_empty_plan():
    entries = [make_entry(0, "A", "sfc")]
    assert select_ranges(entries, request({"A": ["850 mb"]})) == []


def test_empty_index():
    assert select_ranges([], request({"A": []})) == []


def test_shared_offsets_extend_to_next_distinct_offset():
    entries = [make_entry(0, "A"), make_entry(0, "B"), make_entry(400, "C")]
    assert provisional_ranges(entries, request({"A": []})) == [ByteRange(0, 399)]


def test_merge_keeps_larger_end_for_nested_ranges():
    merged = merge_ranges([ByteRange(0, 100), ByteRange(10, 20), ByteRange(101, 150)])
    assert merged == [ByteRange(0, 150)]


def test_merge_does_not_join_ranges_with_a_gap():
    ranges = [ByteRange(0, 9), ByteRange(11, 20)]
    assert merge_ranges(ranges) == ranges


def test_merge_empty():
    assert merge_ranges([]) == []


def test_byte_range_validation():
    with pytest.raises(ValueError):
        ByteRange(-1, 10)
    with pytest.raises(ValueError):
        ByteRange(10, 9)
    assert ByteRange(5, 5).size == 1
    assert ByteRange(0, 99).header_value == "bytes=0-99"


def _random_index(rng):
    offset = 0
    entries = []
    for i in range(rng.randint(0, 40)):
        entries.append(
            make_entry(
                offset, rng.choice("ABCD"), rng.choice(["sfc", "850", "500"]), i + 1
            )
        )
        offset += rng.choice([0, 1, 50, 300])
    return entries


def _random_request(rng):
    mapping = {}
    for name in rng.sample("ABCDE", rng.randint(0, 3)):
        mapping[name] = rng.sample(["sfc", "850", "500"], rng.randint(0, 2))
    return request(mapping)


@pytest.mark.parametrize("seed", range(25))
def test_random_selection_invariants(seed):
    rng = random.Random(seed)
    entries = _random_index(rng)
    selection = _random_request(rng)

    provisional = provisional_ranges(entries, selection)
    merged = select_ranges(entries, selection)

    for r in merged:
        assert 0 <= r.start <= r.end
    for a, b in zip(merged, merged[1:]):
        assert b.start > a.end + 1
    assert merge_ranges(merged) == merged

    for p in provisional:
        containing = [m for m in merged if m.start <= p.start and p.end <= m.end]
        assert len(containing) == 1

    expected_count = sum(1 for e in entries if selection.matches(e))
    assert len(provisional) == expected_count
