from datetime import time
from itertools import combinations

import pytest

from tutor_match.core.exceptions import UnknownFilterLabelError
from tutor_match.core.slots import (
    ALL_BLOCKS,
    ALL_SLOTS,
    BLOCK_TO_SLOTS,
    SLOTS_PER_DAY,
    TimeBlock,
    block_for_slot,
    block_from_label,
    build_label_table,
    format_slot_time,
    hour_range_to_slots,
    slot_start,
    slots_for_blocks,
    to_canonical_slots,
)


def test_blocks_cover_the_whole_day():
    union = set()
    for slots in BLOCK_TO_SLOTS.values():
        union |= slots
    assert union == set(range(SLOTS_PER_DAY))


@pytest.mark.parametrize("first,second", list(combinations(ALL_BLOCKS, 2)))
def test_blocks_are_pairwise_disjoint(first, second):
    assert not BLOCK_TO_SLOTS[first] & BLOCK_TO_SLOTS[second]


def test_block_ranges():
    assert BLOCK_TO_SLOTS[TimeBlock.MORNING] == frozenset(range(0, 24))
    assert BLOCK_TO_SLOTS[TimeBlock.AFTERNOON] == frozenset(range(24, 36))
    assert BLOCK_TO_SLOTS[TimeBlock.EVENING] == frozenset(range(36, 48))


def test_every_slot_belongs_to_exactly_one_block():
    for slot in ALL_SLOTS:
        block = block_for_slot(slot)
        assert slot in BLOCK_TO_SLOTS[block]
    assert block_for_slot(10) == TimeBlock.MORNING
    assert block_for_slot(40) == TimeBlock.EVENING


def test_slots_for_blocks_unions_selected_blocks():
    slots = slots_for_blocks([TimeBlock.AFTERNOON, TimeBlock.EVENING])
    assert slots == frozenset(range(24, 48))
    assert slots_for_blocks([]) == frozenset()


@pytest.mark.parametrize("label,expected", [
    ("Morning", TimeBlock.MORNING),
    ("  evening ", TimeBlock.EVENING),
    ("AFTERNOON", TimeBlock.AFTERNOON),
    ("Sáng", TimeBlock.MORNING),
    ("buổi  chiều", TimeBlock.AFTERNOON),
    ("Tối", TimeBlock.EVENING),
])
def test_block_from_label(label, expected):
    assert block_from_label(label) == expected


def test_unknown_block_label_fails_fast():
    with pytest.raises(UnknownFilterLabelError):
        block_from_label("Night")
    with pytest.raises(ValueError):
        block_from_label("")


def test_label_table_rejects_conflicting_labels():
    with pytest.raises(ValueError):
        build_label_table([("Mon", 0), ("mon", 1)])
    assert build_label_table([("Mon", 0), ("MON", 0)]) == {"mon": 0}


@pytest.mark.parametrize("slot,expected", [
    (0, "00:00 - 00:30"),
    (1, "00:30 - 01:00"),
    (27, "13:30 - 14:00"),
    (47, "23:30 - 24:00"),
])
def test_format_slot_time(slot, expected):
    assert format_slot_time(slot) == expected


@pytest.mark.parametrize("slot", [-1, 48])
def test_slot_out_of_range(slot):
    with pytest.raises(ValueError):
        format_slot_time(slot)
    with pytest.raises(ValueError):
        block_for_slot(slot)


def test_slot_start():
    assert slot_start(0) == time(0, 0)
    assert slot_start(3) == time(1, 30)


def test_hour_range_to_slots():
    assert hour_range_to_slots(8, 12) == frozenset(range(16, 24))
    with pytest.raises(ValueError):
        hour_range_to_slots(20, 25)


def test_pattern_slots_starting_at_eight_map_onto_canonical_grid():
    # Half-hour pattern slots counted from 08:00
    assert to_canonical_slots([0, 1, 29], slot_minutes=30, start_hour=8) == frozenset({16, 17, 45})


def test_hourly_slots_expand_to_two_canonical_slots():
    assert to_canonical_slots([0, 23], slot_minutes=60) == frozenset({0, 1, 46, 47})


def test_four_hour_ranges_expand_to_eight_slots():
    assert to_canonical_slots([2], slot_minutes=240) == frozenset(range(16, 24))


def test_canonical_conversion_rejects_bad_input():
    with pytest.raises(ValueError):
        to_canonical_slots([0], slot_minutes=45)
    with pytest.raises(ValueError):
        to_canonical_slots([32], slot_minutes=30, start_hour=8)
    with pytest.raises(ValueError):
        to_canonical_slots([-1], slot_minutes=30)
