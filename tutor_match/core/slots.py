from typing import Dict, FrozenSet, Iterable, List, Tuple, TypeVar
from dataclasses import dataclass
from datetime import time
import enum

from tutor_match.core.exceptions import UnknownFilterLabelError

# A day is divided into 48 slots of 30 minutes; slot 0 starts at 00:00.
SLOTS_PER_DAY = 48
SLOT_MINUTES = 30
ALL_SLOTS: FrozenSet[int] = frozenset(range(SLOTS_PER_DAY))

T = TypeVar("T")


class TimeBlock(str, enum.Enum):
    MORNING = "Morning"
    AFTERNOON = "Afternoon"
    EVENING = "Evening"


@dataclass(frozen=True)
class BlockDefinition:
    """Time-of-day block configuration"""
    block: TimeBlock
    start_hour: int
    end_hour: int

    @property
    def slots(self) -> FrozenSet[int]:
        return hour_range_to_slots(self.start_hour, self.end_hour)


def hour_range_to_slots(start_hour: int, end_hour: int) -> FrozenSet[int]:
    """Slots covering [start_hour, end_hour)"""
    if not 0 <= start_hour <= end_hour <= 24:
        raise ValueError(f"Invalid hour range: {start_hour}-{end_hour}")
    per_hour = 60 // SLOT_MINUTES
    return frozenset(range(start_hour * per_hour, end_hour * per_hour))


# Block definitions, in display order
BLOCK_DEFINITIONS: Tuple[BlockDefinition, ...] = (
    BlockDefinition(block=TimeBlock.MORNING, start_hour=0, end_hour=12),
    BlockDefinition(block=TimeBlock.AFTERNOON, start_hour=12, end_hour=18),
    BlockDefinition(block=TimeBlock.EVENING, start_hour=18, end_hour=24),
)

BLOCK_TO_SLOTS: Dict[TimeBlock, FrozenSet[int]] = {
    definition.block: definition.slots for definition in BLOCK_DEFINITIONS
}

ALL_BLOCKS: Tuple[TimeBlock, ...] = tuple(d.block for d in BLOCK_DEFINITIONS)

_SLOT_TO_BLOCK: Dict[int, TimeBlock] = {
    slot: block for block, slots in BLOCK_TO_SLOTS.items() for slot in slots
}


def normalize_label(label: str) -> str:
    """Case and whitespace insensitive form of a UI label"""
    return " ".join(label.split()).casefold()


def build_label_table(entries: Iterable[Tuple[str, T]]) -> Dict[str, T]:
    """Build a label lookup table, rejecting labels that map to two values"""
    table: Dict[str, T] = {}
    for label, value in entries:
        key = normalize_label(label)
        existing = table.get(key)
        if existing is not None and existing != value:
            raise ValueError(f"Label {label!r} maps to both {existing!r} and {value!r}")
        table[key] = value
    return table


BLOCK_LABELS: Dict[str, TimeBlock] = build_label_table([
    ("Morning", TimeBlock.MORNING),
    ("Afternoon", TimeBlock.AFTERNOON),
    ("Evening", TimeBlock.EVENING),
    ("Sáng", TimeBlock.MORNING),
    ("Buổi sáng", TimeBlock.MORNING),
    ("Chiều", TimeBlock.AFTERNOON),
    ("Buổi chiều", TimeBlock.AFTERNOON),
    ("Tối", TimeBlock.EVENING),
    ("Buổi tối", TimeBlock.EVENING),
])


def verify_partition() -> None:
    """Check that the blocks are pairwise disjoint and cover the whole day"""
    seen: set = set()
    for block, slots in BLOCK_TO_SLOTS.items():
        overlap = seen & slots
        if overlap:
            raise AssertionError(f"{block.value} overlaps other blocks at slots {sorted(overlap)}")
        seen |= slots
    if seen != ALL_SLOTS:
        raise AssertionError(f"Blocks leave slots uncovered: {sorted(ALL_SLOTS - seen)}")


verify_partition()


def block_from_label(label: str) -> TimeBlock:
    """Get time block by UI label"""
    try:
        return BLOCK_LABELS[normalize_label(label)]
    except KeyError:
        raise UnknownFilterLabelError(f"Unknown time block label: {label!r}")


def slots_for_blocks(blocks: Iterable[TimeBlock]) -> FrozenSet[int]:
    """Union of the slots of the given blocks"""
    result: FrozenSet[int] = frozenset()
    for block in blocks:
        result = result | BLOCK_TO_SLOTS[block]
    return result


def _check_slot(slot: int) -> None:
    if not 0 <= slot < SLOTS_PER_DAY:
        raise ValueError(f"Slot index out of range: {slot}")


def block_for_slot(slot: int) -> TimeBlock:
    """Get the block containing a slot"""
    _check_slot(slot)
    return _SLOT_TO_BLOCK[slot]


def slot_start(slot: int) -> time:
    _check_slot(slot)
    minutes = slot * SLOT_MINUTES
    return time(minutes // 60, minutes % 60)


def format_slot_time(slot: int) -> str:
    """Format a slot as "HH:MM - HH:MM"; the last slot ends at 24:00"""
    _check_slot(slot)
    start = slot * SLOT_MINUTES
    end = start + SLOT_MINUTES
    return f"{start // 60:02d}:{start % 60:02d} - {end // 60:02d}:{end % 60:02d}"


def to_canonical_slots(
    indices: Iterable[int],
    slot_minutes: int,
    start_hour: int = 0
) -> FrozenSet[int]:
    """Convert slot indices of another granularity onto the canonical grid.

    A foreign slot ``i`` covers ``start_hour + i * slot_minutes`` minutes for
    ``slot_minutes``. The foreign length must be a whole number of canonical
    slots so that no partial slot is reported as available.
    """
    if slot_minutes <= 0 or slot_minutes % SLOT_MINUTES:
        raise ValueError(f"Slot length must be a multiple of {SLOT_MINUTES} minutes: {slot_minutes}")
    if not 0 <= start_hour < 24:
        raise ValueError(f"Invalid start hour: {start_hour}")

    ratio = slot_minutes // SLOT_MINUTES
    offset = start_hour * 60 // SLOT_MINUTES
    canonical: List[int] = []
    for index in indices:
        if index < 0:
            raise ValueError(f"Negative slot index: {index}")
        first = offset + index * ratio
        if first + ratio > SLOTS_PER_DAY:
            raise ValueError(f"Slot {index} of {slot_minutes} minutes from {start_hour}:00 runs past midnight")
        canonical.extend(range(first, first + ratio))
    return frozenset(canonical)
